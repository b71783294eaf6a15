"""Coordinator-owned materialization cache, keyed by unit id."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from stickyresolve.models.materialization import (
    MaterializationRecord,
    MaterializationUpdate,
    UnitRecordSet,
    fold_updates,
    merge_record_sets,
)


class MaterializationCache:
    """In-process materializations the local resolver sees before each call.

    Shared by every request the owning coordinator serves.  Append-only:
    merges add records and rule entries but never replace a known variant.
    Expiry is out of scope.
    """

    def __init__(self) -> None:
        self._units: dict[str, UnitRecordSet] = {}

    def get(self, unit: str) -> UnitRecordSet:
        """Return a copy of the unit's cached records (empty when unknown)."""
        records = self._units.get(unit)
        if records is None:
            return {}
        return dict(records)

    def merge(self, unit: str, records: Mapping[str, MaterializationRecord]) -> UnitRecordSet:
        if not records:
            return self.get(unit)
        merged = merge_record_sets(self._units.get(unit, {}), records, overwrite=False)
        self._units[unit] = merged
        return dict(merged)

    def apply_updates(self, unit: str, updates: Iterable[MaterializationUpdate]) -> UnitRecordSet:
        """Fold resolver updates into the cache; returns the touched records."""
        touched = fold_updates(self._units.get(unit, {}), updates)
        if touched:
            self.merge(unit, touched)
        return touched

    def units(self) -> list[str]:
        return list(self._units)

    def __contains__(self, unit: object) -> bool:
        return unit in self._units

    def __len__(self) -> int:
        return len(self._units)
