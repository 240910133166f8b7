"""Construction options for :class:`kibbutz.store.Kibbutz`."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kibbutz.exceptions import InvalidArgumentError


class KibbutzOptions(BaseModel):
    """Store options.

    Parameters
    ----------
    value : dict
        Seed mapping for the aggregate. It is deep-copied by the store, so
        later changes to the caller's object are not observed. ``None``,
        lists and scalars are rejected.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    value: dict[str, Any] = Field(default_factory=dict)


def parse_options(options: KibbutzOptions | Mapping[str, Any] | None) -> KibbutzOptions:
    """Validate constructor input into a :class:`KibbutzOptions`.

    Raises
    ------
    InvalidArgumentError
        *options* is not ``None``, a mapping or a ``KibbutzOptions``, or it
        fails validation.
    """
    if options is None:
        return KibbutzOptions()
    if isinstance(options, KibbutzOptions):
        return options
    if not isinstance(options, Mapping):
        raise InvalidArgumentError(
            f"Invalid options: must be a mapping or KibbutzOptions, got {type(options).__name__}"
        )
    try:
        return KibbutzOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid options: {exc}") from exc
