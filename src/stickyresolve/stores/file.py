"""File-persisted materialization store.

A write-through cache around :class:`InMemoryMaterializationStore`: the
whole file is read on :meth:`FileMaterializationStore.initialize`, every
read and write afterwards hits memory, and :meth:`close` replaces the file
atomically with the complete state.  Writes made since the last
successful ``close`` are lost if the process dies first.

File layout::

    {"<unit>": {"<materialization>": {"unitInInfo": true, "ruleToVariant": {"<rule>": "<variant>"}}}}
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from stickyresolve.exceptions import StoreError
from stickyresolve.models.materialization import MaterializationRecord, UnitRecordSet
from stickyresolve.stores.memory import InMemoryMaterializationStore, StoreStats

_logger = logging.getLogger(__name__)

_FILE_LAYOUT: TypeAdapter[dict[str, dict[str, MaterializationRecord]]] = TypeAdapter(
    dict[str, dict[str, MaterializationRecord]]
)

DEFAULT_PATH = "materialization-cache.json"


class FileMaterializationStore:
    """Materialization store persisted to a single JSON file.

    Usage::

        async with FileMaterializationStore("materializations.json") as store:
            coordinator = ResolutionCoordinator(resolver, store)
            ...
    """

    def __init__(self, path: str | os.PathLike[str] = DEFAULT_PATH) -> None:
        self._path = Path(path)
        self._memory = InMemoryMaterializationStore()
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def stats(self) -> StoreStats:
        return self._memory.stats

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FileMaterializationStore:
        await self.initialize()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def initialize(self) -> None:
        """Load the full file into memory, creating it when missing."""
        if self._initialized:
            return
        async with self._init_lock:
            # another caller may have finished the read while we waited
            if self._initialized:
                return
            data = await asyncio.to_thread(self._read_file)
            self._memory = InMemoryMaterializationStore(data)
            self._initialized = True
        _logger.debug("Loaded materializations for %d unit(s) from %s", len(data), self._path)

    async def close(self) -> None:
        """Write the complete state to disk; later calls do nothing."""
        if self._closed:
            return
        if self._initialized:
            snapshot = self._memory.snapshot()
            await asyncio.to_thread(self._write_file, snapshot)
            _logger.debug("Wrote materializations for %d unit(s) to %s", len(snapshot), self._path)
        self._closed = True
        self._memory.close()

    # ------------------------------------------------------------------
    # Store contract
    # ------------------------------------------------------------------

    async def _ready(self, unit: str) -> InMemoryMaterializationStore:
        if self._closed:
            raise StoreError(f"Materialization file store {self._path} is closed", unit=unit)
        if not self._initialized:
            await self.initialize()
        return self._memory

    async def load_all(self, unit: str, materialization: str) -> UnitRecordSet:
        memory = await self._ready(unit)
        return await memory.load_all(unit, materialization)

    async def save(self, unit: str, records: UnitRecordSet) -> None:
        memory = await self._ready(unit)
        await memory.save(unit, records)

    # ------------------------------------------------------------------
    # File I/O (runs in a worker thread)
    # ------------------------------------------------------------------

    def _read_file(self) -> dict[str, UnitRecordSet]:
        try:
            if not self._path.exists():
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.write_text("{}", encoding="utf-8")
                return {}
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Cannot read materialization file {self._path}: {exc}") from exc

        if not text.strip():
            return {}
        try:
            return _FILE_LAYOUT.validate_json(text)
        except ValidationError as exc:
            raise StoreError(f"Invalid materialization file {self._path}: {exc.error_count()} error(s)") from exc

    def _write_file(self, data: dict[str, UnitRecordSet]) -> None:
        payload = _FILE_LAYOUT.dump_json(data, by_alias=True, indent=2)
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=self._path.parent,
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            raise StoreError(f"Cannot write materialization file {self._path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
