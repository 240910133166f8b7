"""First-write-wins deep merge.

Policy:

- a key that already holds an opaque value is never overwritten
- mapping + mapping → recursive merge, in place
- sequence + sequence → source elements appended to the target
- any other combination → target left untouched
"""

from __future__ import annotations

from typing import Any

from kibbutz._values import is_container, is_mapping, is_sequence


def merge_into(target: Any, source: Any) -> Any:
    """Merge *source* into *target* and return *target*.

    *target* must be an owned, mutable structure (see
    :func:`kibbutz._values.clone_value`); it is modified in place. Values
    taken from *source* are inserted by reference, except that missing
    container keys are rebuilt as fresh ``dict``/``list`` instances.
    """
    if not is_container(target) or not is_container(source):
        return target

    if is_sequence(target):
        if is_sequence(source):
            target.extend(source)
        return target

    if not is_mapping(source):
        return target

    for key, source_value in source.items():
        if key not in target:
            if is_mapping(source_value):
                target[key] = merge_into({}, source_value)
            elif is_sequence(source_value):
                target[key] = merge_into([], source_value)
            else:
                target[key] = source_value
            continue

        existing = target[key]
        if is_container(existing) and is_container(source_value):
            merge_into(existing, source_value)

    return target
