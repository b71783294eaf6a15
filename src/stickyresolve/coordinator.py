"""Resolution coordinator: ties the local resolver to the active sticky strategy."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from stickyresolve._cache import MaterializationCache
from stickyresolve._constants import (
    UNRESOLVED_LOAD_MESSAGE,
    UNRESOLVED_MISSING_MESSAGE,
    UNRESOLVED_SAVE_MESSAGE,
)
from stickyresolve.config import StickyConfig, WriteMode
from stickyresolve.exceptions import StickyResolveError, StoreError
from stickyresolve.models.materialization import (
    MaterializationRecord,
    UnitRecordSet,
    fold_updates,
    merge_record_sets,
)
from stickyresolve.models.resolve import ResolveRequest, ResolveResponse, StickyResolveResult
from stickyresolve.resolver import LocalResolver
from stickyresolve.strategy import (
    AuthorityStrategy,
    MaterializationStore,
    StoreStrategy,
    Strategy,
    close_strategy,
    select_strategy,
)

_logger = logging.getLogger(__name__)

WriteErrorCallback = Callable[[str, StoreError], None]


class ResolutionCoordinator:
    """Resolve flags with sticky assignments.

    The local resolver runs first with whatever materializations are
    cached for the unit.  Only when it reports missing materialization
    data does the coordinator touch the configured strategy:

    * with a materialization store, the unit's records are loaded, the
      resolver runs again and new assignments are saved;
    * with a remote authority, the whole request is delegated and the
      authority's answer is returned verbatim.

    Usage::

        async with ResolutionCoordinator(resolver, InMemoryMaterializationStore()) as coordinator:
            response = await coordinator.resolve("user-1", ["flags/checkout"], {"country": "SE"})

    Store failures degrade only the flags that depend on the failing
    materialization ids (reason ``UNRESOLVED``).  Authority and resolver
    failures propagate.
    """

    def __init__(
        self,
        resolver: LocalResolver,
        strategy: object | None = None,
        *,
        config: StickyConfig | None = None,
        cache: MaterializationCache | None = None,
        on_write_error: WriteErrorCallback | None = None,
    ) -> None:
        self._resolver = resolver
        self._config = config or StickyConfig()
        self._strategy: Strategy = select_strategy(strategy, config=self._config)
        self._cache = cache if cache is not None else MaterializationCache()
        self._on_write_error = on_write_error
        self._pending_writes: set[asyncio.Task[None]] = set()
        self._closed = False
        self._strategy_closed = False

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    @property
    def cache(self) -> MaterializationCache:
        return self._cache

    @property
    def config(self) -> StickyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ResolutionCoordinator:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Wait for background writes, then close the strategy.

        Idempotent once the strategy closed successfully; a failed strategy
        close can be retried.  New resolves are rejected from the first call.
        """
        if self._strategy_closed:
            return
        self._closed = True
        await self.wait_for_pending_writes()
        await close_strategy(self._strategy)
        self._strategy_closed = True

    async def wait_for_pending_writes(self) -> None:
        """Block until every background ``save`` has settled."""
        while self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(
        self,
        unit: str,
        flags: Iterable[str],
        context: Mapping[str, Any] | None = None,
        *,
        apply: bool | None = None,
    ) -> ResolveResponse:
        """Resolve *flags* for *unit* under *context*."""
        if self._closed:
            raise StickyResolveError("Coordinator is closed")

        request = ResolveRequest(
            unit=unit,
            flags=list(flags),
            context=dict(context or {}),
            client_secret=self._config.client_secret,
            apply=self._config.apply if apply is None else apply,
        )

        first = self._resolver.resolve_with_sticky(request, self._cache.get(request.unit))
        if not first.missing:
            if first.updates:
                touched = self._cache.apply_updates(request.unit, first.updates)
                if self._config.persist_fast_path and isinstance(self._strategy, StoreStrategy):
                    self._schedule_write(self._strategy.store, request.unit, touched)
            _logger.debug("Resolved %d flag(s) for unit=%s locally", len(request.flags), request.unit)
            return first.response.degrade(request.flags, {})

        _logger.debug(
            "Unit=%s missing materializations %s for flags %s",
            request.unit,
            first.missing_materializations,
            sorted(first.missing_flags),
        )

        if isinstance(self._strategy, AuthorityStrategy):
            return await self._strategy.authority.resolve(request)
        return await self._resolve_with_store(self._strategy.store, request, first)

    async def _resolve_with_store(
        self,
        store: MaterializationStore,
        request: ResolveRequest,
        first: StickyResolveResult,
    ) -> ResolveResponse:
        unit = request.unit
        loaded, load_errors = await self._load_missing(store, unit, first.missing_materializations)

        working = merge_record_sets(self._cache.get(unit), loaded, overwrite=False)
        second = self._resolver.resolve_with_sticky(request, working)

        errors: dict[str, str] = {}
        for item in second.missing:
            errors[item.flag] = load_errors.get(item.materialization, UNRESOLVED_MISSING_MESSAGE)
        if second.missing and not load_errors:
            _logger.warning(
                "Resolver still missing materializations %s for unit=%s after reload",
                second.missing_materializations,
                unit,
            )

        touched = fold_updates(working, second.updates)
        save_errors: dict[str, str] = {}
        if touched:
            save_errors = await self._persist(store, unit, touched)
            for update in second.updates:
                if update.materialization in save_errors:
                    errors[update.flag] = save_errors[update.materialization]

        self._cache.merge(unit, {mid: record for mid, record in loaded.items() if mid not in save_errors})
        self._cache.merge(unit, {mid: record for mid, record in touched.items() if mid not in save_errors})

        if errors:
            _logger.warning("Returning %d unresolved flag(s) for unit=%s", len(errors), unit)
        return second.response.degrade(request.flags, errors)

    async def _load_missing(
        self,
        store: MaterializationStore,
        unit: str,
        materializations: list[str],
    ) -> tuple[UnitRecordSet, dict[str, str]]:
        """Load the unit's records, one round trip per id not already returned."""
        loaded: UnitRecordSet = {}
        errors: dict[str, str] = {}
        for materialization in materializations:
            if materialization in loaded or materialization in errors:
                continue
            try:
                records = await store.load_all(unit, materialization)
            except StoreError as exc:
                _logger.warning("Loading materialization %s for unit=%s failed: %s", materialization, unit, exc)
                for failed in exc.materialization_ids or {materialization}:
                    errors[failed] = f"{UNRESOLVED_LOAD_MESSAGE}: {exc}"
                continue
            for mid, record in records.items():
                loaded.setdefault(mid, record)
            loaded.setdefault(materialization, MaterializationRecord())
        _logger.debug("Loaded %d materialization(s) for unit=%s", len(loaded), unit)
        return loaded, errors

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _persist(self, store: MaterializationStore, unit: str, records: UnitRecordSet) -> dict[str, str]:
        """Save *records*; returns ``{materialization: error}`` for synchronous failures."""
        if self._config.write_mode is WriteMode.BACKGROUND:
            self._schedule_write(store, unit, records)
            return {}

        try:
            await store.save(unit, records)
        except StoreError as exc:
            _logger.warning("Saving materializations %s for unit=%s failed: %s", sorted(records), unit, exc)
            failed = exc.materialization_ids or frozenset(records)
            return {mid: f"{UNRESOLVED_SAVE_MESSAGE}: {exc}" for mid in failed if mid in records}
        _logger.debug("Saved %d materialization(s) for unit=%s", len(records), unit)
        return {}

    def _schedule_write(self, store: MaterializationStore, unit: str, records: UnitRecordSet) -> None:
        task = asyncio.create_task(self._save_in_background(store, unit, records))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _save_in_background(self, store: MaterializationStore, unit: str, records: UnitRecordSet) -> None:
        try:
            await store.save(unit, records)
        except StoreError as exc:
            _logger.warning("Background save for unit=%s failed", unit, exc_info=True)
            self._report_write_error(unit, exc)
        except Exception as exc:
            _logger.warning("Background save for unit=%s failed", unit, exc_info=True)
            error = StoreError(f"Background save failed: {exc}", materialization_ids=records, unit=unit)
            error.__cause__ = exc
            self._report_write_error(unit, error)
        else:
            _logger.debug("Saved %d materialization(s) for unit=%s in background", len(records), unit)

    def _report_write_error(self, unit: str, error: StoreError) -> None:
        if self._on_write_error is None:
            return
        try:
            self._on_write_error(unit, error)
        except Exception:
            _logger.debug("on_write_error callback failed", exc_info=True)
