from __future__ import annotations

from typing import Any

import pytest

from stickyresolve.authority import HttpRemoteAuthority
from stickyresolve.config import StickyConfig
from stickyresolve.exceptions import ConfigurationError
from stickyresolve.models import MaterializationRecord, ResolveRequest, ResolveResponse, UnitRecordSet
from stickyresolve.stores import InMemoryMaterializationStore
from stickyresolve.strategy import (
    AuthorityStrategy,
    StoreStrategy,
    close_strategy,
    is_materialization_store,
    is_remote_authority,
    select_strategy,
)


class _Store:
    async def load_all(self, unit: str, materialization: str) -> UnitRecordSet:
        return {materialization: MaterializationRecord()}

    async def save(self, unit: str, records: UnitRecordSet) -> None:
        return None

    def close(self) -> None:
        return None


class _Authority:
    async def resolve(self, request: ResolveRequest) -> ResolveResponse:
        return ResolveResponse()

    def close(self) -> None:
        return None


class _Both(_Store):
    async def resolve(self, request: ResolveRequest) -> ResolveResponse:
        return ResolveResponse()


class _NotCallable:
    load_all = "not a function"
    save = "not a function"
    resolve = "not a function"

    def close(self) -> None:
        return None


class _OnlySave:
    async def save(self, unit: str, records: UnitRecordSet) -> None:
        return None


def test_store_is_classified_as_store() -> None:
    strategy = select_strategy(_Store())
    assert isinstance(strategy, StoreStrategy)


def test_reference_store_is_classified_as_store() -> None:
    store = InMemoryMaterializationStore()
    strategy = select_strategy(store)
    assert isinstance(strategy, StoreStrategy)
    assert strategy.store is store


def test_authority_is_classified_as_authority() -> None:
    strategy = select_strategy(_Authority())
    assert isinstance(strategy, AuthorityStrategy)


def test_classification_is_mutually_exclusive() -> None:
    assert is_materialization_store(_Store()) and not is_remote_authority(_Store())
    assert is_remote_authority(_Authority()) and not is_materialization_store(_Authority())


@pytest.mark.parametrize("candidate", [_Both(), _NotCallable(), _OnlySave(), object()])
def test_ambiguous_or_empty_candidates_are_rejected(candidate: Any) -> None:
    with pytest.raises(ConfigurationError):
        select_strategy(candidate)


def test_none_selects_built_in_authority_from_config() -> None:
    strategy = select_strategy(None, config=StickyConfig(authority_url="https://resolver.example.com/v1/"))

    assert isinstance(strategy, AuthorityStrategy)
    assert isinstance(strategy.authority, HttpRemoteAuthority)
    assert strategy.authority.base_url == "https://resolver.example.com/v1"


def test_already_selected_strategy_passes_through() -> None:
    strategy = StoreStrategy(_Store())
    assert select_strategy(strategy) is strategy


@pytest.mark.asyncio
async def test_close_strategy_handles_sync_and_async_close() -> None:
    closed: list[str] = []

    class _SyncClose(_Authority):
        def close(self) -> None:
            closed.append("sync")

    class _AsyncClose(_Store):
        async def close(self) -> None:  # type: ignore[override]
            closed.append("async")

    await close_strategy(AuthorityStrategy(_SyncClose()))
    await close_strategy(StoreStrategy(_AsyncClose()))

    assert closed == ["sync", "async"]
