"""kibbutz - Async aggregation of configuration fragments."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kibbutz")
except PackageNotFoundError:
    __version__ = "0+local"
from kibbutz._values import clone_value, freeze_value
from kibbutz.events import EventName
from kibbutz.exceptions import (
    InvalidArgumentError,
    InvalidProviderError,
    KibbutzError,
    ProviderHttpError,
    UnknownEventError,
)
from kibbutz.merge import merge_into
from kibbutz.options import KibbutzOptions
from kibbutz.pipeline import ProviderPipeline
from kibbutz.providers import (
    CallbackProvider,
    EnvironmentProvider,
    HttpJsonProvider,
    MappingProvider,
    Provider,
)
from kibbutz.store import Kibbutz, get_shared, set_shared

__all__ = [
    "__version__",
    "CallbackProvider",
    "EnvironmentProvider",
    "EventName",
    "HttpJsonProvider",
    "InvalidArgumentError",
    "InvalidProviderError",
    "Kibbutz",
    "KibbutzError",
    "KibbutzOptions",
    "MappingProvider",
    "Provider",
    "ProviderHttpError",
    "ProviderPipeline",
    "UnknownEventError",
    "clone_value",
    "freeze_value",
    "get_shared",
    "merge_into",
    "set_shared",
]
