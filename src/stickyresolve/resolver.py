"""Local resolver interface consumed by the coordinator."""

from __future__ import annotations

from typing import Protocol

from stickyresolve.models.materialization import UnitRecordSet
from stickyresolve.models.resolve import ResolveRequest, StickyResolveResult


class LocalResolver(Protocol):
    """Structural interface of the in-process rule evaluator.

    Implementations are synchronous and CPU-only.  They decide flags from
    the request context plus the *materializations* supplied for the
    request's unit, report any flag they could not decide for lack of
    materialization data in ``StickyResolveResult.missing``, and list new
    assignments in ``StickyResolveResult.updates``.  Failures raise
    :class:`stickyresolve.exceptions.ResolverError`.
    """

    def resolve_with_sticky(
        self,
        request: ResolveRequest,
        materializations: UnitRecordSet,
    ) -> StickyResolveResult: ...
