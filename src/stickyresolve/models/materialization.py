"""Materialization records and the merge rules that keep them sticky.

A materialization record is one (unit, materialization id) decision.  Once
a rule id carries a variant for a unit it must never change; the helpers
here only ever add rule entries.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from pydantic import Field

from stickyresolve.models._base import StickyBaseModel


class MaterializationRecord(StickyBaseModel):
    """Stored assignment state for one unit and one materialization id.

    Parameters
    ----------
    unit_in_info : bool
        Whether the unit has ever been evaluated for this materialization.
        Distinguishes "never seen" from "seen, no rule matched".
    rule_to_variant : dict[str, str]
        Rule id to the variant decided for the unit.
    """

    unit_in_info: bool = False
    rule_to_variant: dict[str, str] = Field(default_factory=dict)


UnitRecordSet = dict[str, MaterializationRecord]
"""All records for one unit, keyed by materialization id."""


class MaterializationUpdate(StickyBaseModel):
    """A decision the local resolver made that must be persisted."""

    flag: str
    materialization: str
    rule: str | None = None
    variant: str | None = None


class MissingMaterialization(StickyBaseModel):
    """Signal that the local resolver needs the unit's record for an id."""

    flag: str
    materialization: str
    rule: str | None = None


def empty_record_set(materialization: str) -> UnitRecordSet:
    """Return the default set for an id with no known history."""
    return {materialization: MaterializationRecord()}


def merge_record(
    existing: MaterializationRecord | None,
    incoming: MaterializationRecord,
    *,
    overwrite: bool,
) -> MaterializationRecord:
    """Union two records at rule granularity.

    ``overwrite=True`` lets *incoming* win for a rule id present in both
    (last save wins); ``overwrite=False`` keeps the existing variant.
    """
    if existing is None:
        return incoming.model_copy(deep=True)

    if overwrite:
        rules = {**existing.rule_to_variant, **incoming.rule_to_variant}
    else:
        rules = {**incoming.rule_to_variant, **existing.rule_to_variant}
    return MaterializationRecord(
        unit_in_info=existing.unit_in_info or incoming.unit_in_info,
        rule_to_variant=rules,
    )


def merge_record_sets(
    existing: Mapping[str, MaterializationRecord],
    incoming: Mapping[str, MaterializationRecord],
    *,
    overwrite: bool,
) -> UnitRecordSet:
    """Merge *incoming* into a copy of *existing*; ids absent from *incoming* are untouched."""
    merged: UnitRecordSet = dict(existing)
    for materialization, record in incoming.items():
        merged[materialization] = merge_record(merged.get(materialization), record, overwrite=overwrite)
    return merged


def fold_updates(
    records: Mapping[str, MaterializationRecord],
    updates: Iterable[MaterializationUpdate],
) -> UnitRecordSet:
    """Fold resolver updates into *records* without replacing known rule entries.

    Returns only the records touched by *updates*, built on top of the
    matching entries in *records*.
    """
    touched: UnitRecordSet = {}
    for update in updates:
        base = touched.get(update.materialization) or records.get(update.materialization)
        rules: dict[str, str] = {}
        if update.rule is not None and update.variant is not None:
            rules[update.rule] = update.variant
        touched[update.materialization] = merge_record(
            base,
            MaterializationRecord(unit_in_info=True, rule_to_variant=rules),
            overwrite=False,
        )
    return touched
