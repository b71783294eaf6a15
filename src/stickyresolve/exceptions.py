"""Custom exception hierarchy for stickyresolve."""

from __future__ import annotations

from collections.abc import Iterable


class StickyResolveError(Exception):
    """Base exception for all stickyresolve errors."""


class ConfigurationError(StickyResolveError):
    """Invalid configuration or ambiguous sticky-resolve strategy.

    Raised once, when a coordinator is constructed, never per request.
    """


class StoreError(StickyResolveError):
    """Materialization store load/save failure.

    Scoped to the affected materialization ids so the coordinator can
    degrade only the flags that depend on them.  An empty
    ``materialization_ids`` means every id in the failed call.
    """

    def __init__(
        self,
        message: str,
        *,
        materialization_ids: Iterable[str] = (),
        unit: str = "",
    ) -> None:
        self.materialization_ids: frozenset[str] = frozenset(materialization_ids)
        self.unit = unit
        super().__init__(message)


class AuthorityError(StickyResolveError):
    """Remote authority failure (network, non-200, invalid JSON).

    Fails the whole batch; there is no per-flag granularity on this path.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ResolverError(StickyResolveError):
    """The local resolver itself failed; fatal for the request."""
