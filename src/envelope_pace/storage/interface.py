# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

from abc import ABC, abstractmethod

from envelope_pace.types import BudgetState, PeriodPlan


class BudgetStorage(ABC):
    """
    Persistence contract for the active budget and its period plans.

    The engine treats storage as a slow, fallible collaborator: every method
    is a coroutine, and any exception it raises is propagated to the caller
    unchanged. Implementors may back this with a key-value blob store,
    SQLite, a mobile app's local storage, or anything else that can hold
    two documents. Each ``save_*`` call must persist its document as a
    single unit.
    """

    # ─── Active budget ────────────────────────────────────────────────────────

    @abstractmethod
    async def load_state(self) -> BudgetState:
        """Return the persisted aggregate, or an empty one if none exists."""
        ...

    @abstractmethod
    async def save_state(self, state: BudgetState) -> None:
        ...

    # ─── Period plans ─────────────────────────────────────────────────────────

    @abstractmethod
    async def load_plans(self) -> dict[str, PeriodPlan]:
        """Return every saved plan keyed by period id."""
        ...

    @abstractmethod
    async def save_plans(self, plans: dict[str, PeriodPlan]) -> None:
        ...
