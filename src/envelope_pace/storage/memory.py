# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

from envelope_pace.storage.interface import BudgetStorage
from envelope_pace.types import BudgetState, PeriodPlan


class MemoryStorage(BudgetStorage):
    """
    In-process memory store — suitable for single-process use and testing.

    All state is lost when the process exits. Values are deep-copied in and
    out so callers can never alias stored state.
    """

    def __init__(self) -> None:
        self._state: BudgetState | None = None
        self._plans: dict[str, PeriodPlan] = {}

    # ─── Active budget ────────────────────────────────────────────────────────

    async def load_state(self) -> BudgetState:
        if self._state is None:
            return BudgetState()
        return self._state.model_copy(deep=True)

    async def save_state(self, state: BudgetState) -> None:
        self._state = state.model_copy(deep=True)

    # ─── Period plans ─────────────────────────────────────────────────────────

    async def load_plans(self) -> dict[str, PeriodPlan]:
        return _copy_plans(self._plans)

    async def save_plans(self, plans: dict[str, PeriodPlan]) -> None:
        self._plans = _copy_plans(plans)


def _copy_plans(plans: dict[str, PeriodPlan]) -> dict[str, PeriodPlan]:
    return {period_id: plan.model_copy(deep=True) for period_id, plan in plans.items()}
