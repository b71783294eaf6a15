"""Sticky-resolve strategies and the selector that fixes one per coordinator.

A coordinator runs with exactly one strategy:

* a :class:`MaterializationStore`, which persists materializations locally
  and lets the local resolver decide with them, or
* a :class:`RemoteAuthority`, which receives the whole request whenever
  the local resolver lacks materialization data.

Classification is structural (duck-typed, like the transport protocol
used elsewhere) but happens once, in :func:`select_strategy`.  From then
on the coordinator only sees the tagged union :data:`Strategy`.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from stickyresolve.authority import HttpRemoteAuthority
from stickyresolve.config import StickyConfig
from stickyresolve.exceptions import ConfigurationError
from stickyresolve.models.materialization import UnitRecordSet
from stickyresolve.models.resolve import ResolveRequest, ResolveResponse

_logger = logging.getLogger(__name__)


class MaterializationStore(Protocol):
    """Persistence strategy for materialization records.

    ``load_all`` returns every record known for *unit*, plus the default
    record for *materialization* when that id has no history; it never
    returns an empty set.  ``save`` merges *records* into the unit's state
    at rule granularity and is a no-op for an empty unit.  Both raise
    :class:`stickyresolve.exceptions.StoreError` on backend failure.
    """

    async def load_all(self, unit: str, materialization: str) -> UnitRecordSet: ...

    async def save(self, unit: str, records: UnitRecordSet) -> None: ...

    def close(self) -> Any: ...


class RemoteAuthority(Protocol):
    """Delegation strategy: an external resolver owning materialization state."""

    async def resolve(self, request: ResolveRequest) -> ResolveResponse: ...

    def close(self) -> Any: ...


@dataclass(frozen=True, slots=True)
class StoreStrategy:
    store: MaterializationStore


@dataclass(frozen=True, slots=True)
class AuthorityStrategy:
    authority: RemoteAuthority


Strategy = StoreStrategy | AuthorityStrategy


def _has_method(candidate: object, name: str) -> bool:
    return callable(getattr(candidate, name, None))


def is_materialization_store(candidate: object) -> bool:
    return _has_method(candidate, "load_all") and _has_method(candidate, "save")


def is_remote_authority(candidate: object) -> bool:
    return _has_method(candidate, "resolve")


def select_strategy(candidate: object | None, *, config: StickyConfig | None = None) -> Strategy:
    """Classify *candidate* as a store or an authority.

    ``None`` selects the built-in :class:`HttpRemoteAuthority` pointed at
    ``config.authority_url``.  A candidate exposing both capabilities, or
    neither, raises :class:`ConfigurationError`.
    """
    if isinstance(candidate, (StoreStrategy, AuthorityStrategy)):
        return candidate

    if candidate is None:
        config = config or StickyConfig()
        _logger.debug("No sticky strategy configured; using remote authority at %s", config.authority_url)
        return AuthorityStrategy(HttpRemoteAuthority.from_config(config))

    store = is_materialization_store(candidate)
    authority = is_remote_authority(candidate)
    name = type(candidate).__name__
    if store and authority:
        raise ConfigurationError(f"{name} implements both a materialization store and a remote authority")
    if store:
        return StoreStrategy(candidate)  # type: ignore[arg-type]
    if authority:
        return AuthorityStrategy(candidate)  # type: ignore[arg-type]
    raise ConfigurationError(f"{name} is neither a materialization store (load_all + save) nor a remote authority (resolve)")


async def close_strategy(strategy: Strategy) -> None:
    """Close the strategy's backend, awaiting ``close()`` when it is async."""
    target: Any = strategy.store if isinstance(strategy, StoreStrategy) else strategy.authority
    close = getattr(target, "close", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result
