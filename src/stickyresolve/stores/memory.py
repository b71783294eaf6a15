"""In-process materialization store."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from stickyresolve.exceptions import StoreError
from stickyresolve.models.materialization import (
    MaterializationRecord,
    UnitRecordSet,
    empty_record_set,
    merge_record_sets,
)

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoreStats:
    """Call counters for a reference store."""

    units: int
    loads: int
    saves: int
    hits: int
    misses: int


class InMemoryMaterializationStore:
    """Materialization store backed by a ``unit → UnitRecordSet`` mapping.

    ``save`` builds a new record set and swaps it in (copy-on-write), so a
    concurrent ``load_all`` sees either the old or the merged set, never a
    half-written one.  Rule entries are merged per rule id; for the same
    rule id the last save wins.
    """

    def __init__(self, initial: Mapping[str, Mapping[str, MaterializationRecord]] | None = None) -> None:
        self._units: dict[str, UnitRecordSet] = {}
        if initial:
            self._units = {unit: dict(records) for unit, records in initial.items() if unit}
        self._loads = 0
        self._saves = 0
        self._hits = 0
        self._misses = 0
        self._closed = False

    def _ensure_open(self, unit: str) -> None:
        if self._closed:
            raise StoreError("Materialization store is closed", unit=unit)

    async def load_all(self, unit: str, materialization: str) -> UnitRecordSet:
        """Return every record for *unit*, with a default for an unknown *materialization*."""
        self._ensure_open(unit)
        self._loads += 1

        records = self._units.get(unit)
        if records is None:
            self._misses += 1
            return empty_record_set(materialization)

        result = dict(records)
        if materialization in result:
            self._hits += 1
        else:
            self._misses += 1
            result[materialization] = MaterializationRecord()
        return result

    async def save(self, unit: str, records: UnitRecordSet) -> None:
        self._ensure_open(unit)
        self._saves += 1
        if not unit:
            _logger.debug("Ignoring save of %d record(s) without a unit", len(records))
            return
        self._units[unit] = merge_record_sets(self._units.get(unit, {}), records, overwrite=True)

    def snapshot(self) -> dict[str, UnitRecordSet]:
        """Shallow copy of the full state, safe to serialize while serving."""
        return {unit: dict(records) for unit, records in self._units.items()}

    def export_data(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Full state as plain camelCase dicts."""
        return {
            unit: {materialization: record.to_wire() for materialization, record in records.items()}
            for unit, records in self._units.items()
        }

    @property
    def stats(self) -> StoreStats:
        return StoreStats(
            units=len(self._units),
            loads=self._loads,
            saves=self._saves,
            hits=self._hits,
            misses=self._misses,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._units.clear()
