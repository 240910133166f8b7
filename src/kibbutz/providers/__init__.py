"""Bundled providers.

None of these are required by the store; any object with a suitable
``load`` method works.
"""

from kibbutz.providers.base import CallbackProvider, Provider, ProviderCallback
from kibbutz.providers.env import EnvironmentProvider
from kibbutz.providers.http import HttpJsonProvider
from kibbutz.providers.static import MappingProvider

__all__ = [
    "CallbackProvider",
    "EnvironmentProvider",
    "HttpJsonProvider",
    "MappingProvider",
    "Provider",
    "ProviderCallback",
]
