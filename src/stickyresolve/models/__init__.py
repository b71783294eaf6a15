"""Data models for materializations and resolve requests."""

from stickyresolve.models._base import StickyBaseModel, WireEnum
from stickyresolve.models.materialization import (
    MaterializationRecord,
    MaterializationUpdate,
    MissingMaterialization,
    UnitRecordSet,
    empty_record_set,
    fold_updates,
    merge_record,
    merge_record_sets,
)
from stickyresolve.models.resolve import (
    ResolvedFlag,
    ResolveReason,
    ResolveRequest,
    ResolveResponse,
    StickyResolveResult,
)

__all__ = [
    "MaterializationRecord",
    "MaterializationUpdate",
    "MissingMaterialization",
    "ResolveReason",
    "ResolveRequest",
    "ResolveResponse",
    "ResolvedFlag",
    "StickyBaseModel",
    "StickyResolveResult",
    "UnitRecordSet",
    "WireEnum",
    "empty_record_set",
    "fold_updates",
    "merge_record",
    "merge_record_sets",
]
