"""Resolve request/response models shared by the resolver, coordinator and authority.

The request models follow a "validate → normalize → execute" flow: the
coordinator builds a :class:`ResolveRequest` from its arguments, hands it
to the local resolver and, when needed, sends it verbatim to the remote
authority.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from stickyresolve._constants import TARGETING_KEY, UNRESOLVED_ABSENT_MESSAGE
from stickyresolve.models._base import StickyBaseModel, WireEnum
from stickyresolve.models.materialization import MaterializationUpdate, MissingMaterialization


class ResolveReason(WireEnum):
    """Why a flag resolved the way it did.

    ``UNRESOLVED`` is local only: the flag could not be decided because
    materialization data was unavailable.  It is deliberately distinct
    from the no-match reasons the resolver produces.
    """

    UNSPECIFIED = "RESOLVE_REASON_UNSPECIFIED"
    MATCH = "RESOLVE_REASON_MATCH"
    NO_SEGMENT_MATCH = "RESOLVE_REASON_NO_SEGMENT_MATCH"
    NO_TREATMENT_MATCH = "RESOLVE_REASON_NO_TREATMENT_MATCH"
    FLAG_ARCHIVED = "RESOLVE_REASON_FLAG_ARCHIVED"
    TARGETING_KEY_ERROR = "RESOLVE_REASON_TARGETING_KEY_ERROR"
    ERROR = "RESOLVE_REASON_ERROR"
    UNRESOLVED = "RESOLVE_REASON_UNRESOLVED"


class ResolveRequest(StickyBaseModel):
    """One resolution request for a single targeting unit."""

    unit: str
    flags: list[str] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)
    client_secret: str = ""
    apply: bool = True

    @field_validator("unit")
    @classmethod
    def _strip_unit(cls, value: str) -> str:
        return value.strip()

    @field_validator("flags")
    @classmethod
    def _flags_non_empty(cls, value: list[str]) -> list[str]:
        flags = [flag.strip() for flag in value]
        if any(not flag for flag in flags):
            raise ValueError("flag names must be non-empty")
        return flags

    def to_wire(self) -> dict[str, Any]:
        """Authority request body: context carries the unit as ``targeting_key``."""
        context = dict(self.context)
        if self.unit:
            context[TARGETING_KEY] = self.unit
        return {
            "flags": list(self.flags),
            "evaluationContext": context,
            "clientSecret": self.client_secret,
            "apply": self.apply,
        }


class ResolvedFlag(StickyBaseModel):
    """Decision for one flag."""

    flag: str
    variant: str = ""
    value: Any = None
    reason: ResolveReason = ResolveReason.UNSPECIFIED
    error: str | None = None

    @property
    def is_unresolved(self) -> bool:
        return self.reason == ResolveReason.UNRESOLVED

    @classmethod
    def unresolved(cls, flag: str, error: str) -> ResolvedFlag:
        return cls(flag=flag, reason=ResolveReason.UNRESOLVED, error=error)


class ResolveResponse(StickyBaseModel):
    """Decisions for a request, as returned by the resolver or the authority."""

    resolved_flags: list[ResolvedFlag] = Field(default_factory=list)
    resolve_token: str = ""
    resolve_id: str = ""

    def get(self, flag: str) -> ResolvedFlag | None:
        for resolved in self.resolved_flags:
            if resolved.flag == flag:
                return resolved
        return None

    def degrade(self, requested: list[str], errors: dict[str, str]) -> ResolveResponse:
        """Return a copy with exactly one decision per requested flag.

        Flags named in *errors*, and requested flags missing from the
        response, are replaced by an ``UNRESOLVED`` decision.
        """
        by_flag = {resolved.flag: resolved for resolved in self.resolved_flags}
        decisions: list[ResolvedFlag] = []
        for flag in requested:
            if flag in errors:
                decisions.append(ResolvedFlag.unresolved(flag, errors[flag]))
            elif flag in by_flag:
                decisions.append(by_flag[flag])
            else:
                decisions.append(ResolvedFlag.unresolved(flag, UNRESOLVED_ABSENT_MESSAGE))
        return self.model_copy(update={"resolved_flags": decisions})


class StickyResolveResult(StickyBaseModel):
    """Outcome of one local resolver invocation.

    ``missing`` is the side channel naming flags that could not be decided
    for lack of materialization data; ``updates`` lists new assignments
    that must be persisted to keep them sticky.
    """

    response: ResolveResponse = Field(default_factory=ResolveResponse)
    missing: tuple[MissingMaterialization, ...] = ()
    updates: tuple[MaterializationUpdate, ...] = ()

    @property
    def missing_flags(self) -> frozenset[str]:
        return frozenset(item.flag for item in self.missing)

    @property
    def missing_materializations(self) -> list[str]:
        """Distinct missing ids in first-seen order."""
        return list(dict.fromkeys(item.materialization for item in self.missing))
