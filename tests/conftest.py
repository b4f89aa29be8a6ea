from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

import pytest

from import_staging import StagingStore, StoreConfig

Scenario = Callable[[StagingStore], Awaitable[Any]]


def run_with_store(config: StoreConfig, scenario: Scenario) -> Any:
    """Open a store, run the scenario against it and close it, all in one event loop."""
    async def runner():
        async with StagingStore(config) as store:
            return await scenario(store)

    return asyncio.run(runner())


@pytest.fixture()
def store_config(tmp_path) -> StoreConfig:
    """Integer keys, small batches."""
    return StoreConfig(directory=str(tmp_path), batch_size=10, numeric_keys=True)


@pytest.fixture()
def text_store_config(tmp_path) -> StoreConfig:
    return StoreConfig(directory=str(tmp_path), batch_size=10, numeric_keys=False)


@pytest.fixture()
def run_store(store_config: StoreConfig) -> Callable[..., Any]:
    def run(scenario: Scenario, config: Optional[StoreConfig] = None) -> Any:
        return run_with_store(config or store_config, scenario)

    return run
