"""stickyresolve - Sticky feature-flag assignment on top of a local resolver."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("stickyresolve")
except PackageNotFoundError:
    __version__ = "0+local"
from stickyresolve._cache import MaterializationCache
from stickyresolve.authority import HttpRemoteAuthority
from stickyresolve.config import StickyConfig, WriteMode
from stickyresolve.coordinator import ResolutionCoordinator
from stickyresolve.exceptions import (
    AuthorityError,
    ConfigurationError,
    ResolverError,
    StickyResolveError,
    StoreError,
)
from stickyresolve.models import (
    MaterializationRecord,
    MaterializationUpdate,
    MissingMaterialization,
    ResolvedFlag,
    ResolveReason,
    ResolveRequest,
    ResolveResponse,
    StickyResolveResult,
    UnitRecordSet,
)
from stickyresolve.resolver import LocalResolver
from stickyresolve.stores import FileMaterializationStore, InMemoryMaterializationStore, StoreStats
from stickyresolve.strategy import (
    AuthorityStrategy,
    MaterializationStore,
    RemoteAuthority,
    Strategy,
    StoreStrategy,
    select_strategy,
)

__all__ = [
    "__version__",
    "AuthorityError",
    "AuthorityStrategy",
    "ConfigurationError",
    "FileMaterializationStore",
    "HttpRemoteAuthority",
    "InMemoryMaterializationStore",
    "LocalResolver",
    "MaterializationCache",
    "MaterializationRecord",
    "MaterializationStore",
    "MaterializationUpdate",
    "MissingMaterialization",
    "RemoteAuthority",
    "ResolutionCoordinator",
    "ResolveReason",
    "ResolveRequest",
    "ResolveResponse",
    "ResolvedFlag",
    "ResolverError",
    "StickyConfig",
    "StickyResolveError",
    "StickyResolveResult",
    "StoreError",
    "StoreStats",
    "StoreStrategy",
    "Strategy",
    "UnitRecordSet",
    "WriteMode",
    "select_strategy",
]
