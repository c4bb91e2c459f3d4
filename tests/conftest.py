# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Shared fixtures for envelope-pace tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

from envelope_pace.budget import Budget
from envelope_pace.storage.memory import MemoryStorage
from envelope_pace.types import BudgetState, Envelope, PeriodPlan

TODAY = date(2026, 10, 18)


class FlakyStorage(MemoryStorage):
    """MemoryStorage whose next save can be made to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_next_save = False
        self.state_saves = 0

    async def save_state(self, state: BudgetState) -> None:
        if self.fail_next_save:
            self.fail_next_save = False
            raise OSError("disk full")
        self.state_saves += 1
        await super().save_state(state)

    async def save_plans(self, plans: dict[str, PeriodPlan]) -> None:
        if self.fail_next_save:
            self.fail_next_save = False
            raise OSError("disk full")
        await super().save_plans(plans)


class SlowStorage(MemoryStorage):
    """MemoryStorage that yields to the event loop before every save."""

    async def save_state(self, state: BudgetState) -> None:
        await asyncio.sleep(0.01)
        await super().save_state(state)

    async def save_plans(self, plans: dict[str, PeriodPlan]) -> None:
        await asyncio.sleep(0.01)
        await super().save_plans(plans)


def make_envelope(
    allocation: str | int = 420,
    spent: str | int = 0,
    period_length: int = 14,
    day: int = 1,
    name: str = "Food",
    envelope_id: str = "env-food",
    today: date = TODAY,
) -> Envelope:
    """An envelope whose period puts ``today`` on day ``day``."""
    return Envelope(
        id=envelope_id,
        name=name,
        allocation=Decimal(str(allocation)),
        spent=Decimal(str(spent)),
        start_date=today - timedelta(days=day - 1),
        period_length=period_length,
    )


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def envelope_factory() -> Callable[..., Envelope]:
    return make_envelope


@pytest.fixture
def storage() -> FlakyStorage:
    """A fresh in-memory store that can be told to fail its next save."""
    return FlakyStorage()


@pytest.fixture
def slow_storage() -> SlowStorage:
    return SlowStorage()


@pytest_asyncio.fixture
async def budget(storage: FlakyStorage) -> Budget:
    """An empty Budget over the flaky in-memory store."""
    return await Budget.open(storage)
