"""Base model and enum for stickyresolve wire and persisted shapes.

Every model inherits from :class:`StickyBaseModel` which provides
``alias_generator=to_camel`` so the camelCase keys used on the wire and in
persisted files (``unitInInfo``, ``ruleToVariant``, ``resolvedFlags``)
map automatically to snake_case fields.

Enums received from the remote authority inherit from :class:`WireEnum`,
whose ``_missing_`` hook returns ``UNSPECIFIED`` for any value without a
mapped member instead of raising ``ValueError``.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireEnum(enum.StrEnum):
    """Base for string enums decoded from authority responses.

    Every subclass **must** define ``UNSPECIFIED``.
    """

    @classmethod
    def _missing_(cls, value: object) -> WireEnum:
        # pylint: disable=no-member
        if hasattr(cls, "UNSPECIFIED"):
            unspecified: WireEnum = cls.UNSPECIFIED  # type: ignore[attr-defined]
            return unspecified
        return next(iter(cls))


class StickyBaseModel(BaseModel):
    """Frozen base with camelCase aliases.

    Extra keys are ignored so newer authority responses keep parsing.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump with camelCase keys and JSON-compatible values."""
        return self.model_dump(by_alias=True, mode="json")
