from __future__ import annotations

import pytest

from stickyresolve.exceptions import StoreError
from stickyresolve.models import MaterializationRecord
from stickyresolve.stores import InMemoryMaterializationStore


def _record(**rules: str) -> MaterializationRecord:
    return MaterializationRecord(unit_in_info=True, rule_to_variant=dict(rules))


@pytest.mark.asyncio
async def test_unknown_unit_gets_exactly_the_default_record() -> None:
    store = InMemoryMaterializationStore()

    records = await store.load_all("never-seen", "mX")

    assert records == {"mX": MaterializationRecord(unit_in_info=False, rule_to_variant={})}


@pytest.mark.asyncio
async def test_load_all_returns_siblings_plus_default_for_unknown_id() -> None:
    store = InMemoryMaterializationStore()
    await store.save("u", {"m1": _record(r1="a")})

    records = await store.load_all("u", "m2")

    assert records == {"m1": _record(r1="a"), "m2": MaterializationRecord()}


@pytest.mark.asyncio
async def test_save_unions_rule_entries() -> None:
    store = InMemoryMaterializationStore()
    await store.save("u", {"m1": MaterializationRecord(rule_to_variant={"r1": "a"})})

    await store.save("u", {"m1": MaterializationRecord(rule_to_variant={"r2": "b"})})

    records = await store.load_all("u", "m1")
    assert records["m1"].rule_to_variant == {"r1": "a", "r2": "b"}


@pytest.mark.asyncio
async def test_save_leaves_absent_ids_untouched() -> None:
    store = InMemoryMaterializationStore()
    await store.save("u", {"m1": _record(r1="a"), "m2": _record(r2="b")})

    await store.save("u", {"m1": _record(r3="c")})

    records = await store.load_all("u", "m1")
    assert records["m2"] == _record(r2="b")


@pytest.mark.asyncio
async def test_sticky_variant_survives_unrelated_saves() -> None:
    store = InMemoryMaterializationStore()
    await store.save("u", {"m1": _record(r1="a")})

    for i in range(5):
        await store.save("u", {f"m{i + 2}": _record(r=str(i))})

    assert (await store.load_all("u", "m9"))["m1"].rule_to_variant["r1"] == "a"


@pytest.mark.asyncio
async def test_save_with_empty_unit_is_a_no_op() -> None:
    store = InMemoryMaterializationStore()
    await store.save("u", {"m1": _record(r1="a")})
    before = store.export_data()

    await store.save("", {"m1": _record(r1="z"), "m2": _record(r2="z")})

    assert store.export_data() == before
    assert store.stats.units == 1


@pytest.mark.asyncio
async def test_loaded_sets_are_not_shared_with_store_state() -> None:
    store = InMemoryMaterializationStore()
    await store.save("u", {"m1": _record(r1="a")})

    records = await store.load_all("u", "m1")
    records["m2"] = _record(r2="b")

    assert "m2" not in (await store.load_all("u", "m1"))


@pytest.mark.asyncio
async def test_stats_count_hits_and_misses() -> None:
    store = InMemoryMaterializationStore()
    await store.load_all("u", "m1")
    await store.save("u", {"m1": _record(r1="a")})
    await store.load_all("u", "m1")
    await store.load_all("u", "m2")

    stats = store.stats
    assert (stats.units, stats.loads, stats.saves, stats.hits, stats.misses) == (1, 3, 1, 1, 2)


@pytest.mark.asyncio
async def test_export_data_uses_wire_layout() -> None:
    store = InMemoryMaterializationStore()
    await store.save("u", {"m1": _record(r1="a")})

    assert store.export_data() == {"u": {"m1": {"unitInInfo": True, "ruleToVariant": {"r1": "a"}}}}


@pytest.mark.asyncio
async def test_close_is_idempotent_and_rejects_later_use() -> None:
    store = InMemoryMaterializationStore()
    await store.save("u", {"m1": _record(r1="a")})

    store.close()
    store.close()

    assert store.closed
    with pytest.raises(StoreError):
        await store.load_all("u", "m1")
