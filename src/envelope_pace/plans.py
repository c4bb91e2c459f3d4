# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from envelope_pace.errors import CannotModifyCurrentPeriodError, InvalidPlanError, InvalidScheduleError
from envelope_pace.periods import parse_period_id, period_end
from envelope_pace.storage.interface import BudgetStorage
from envelope_pace.types import (
    Envelope,
    PaycheckPreferences,
    PeriodPlan,
    PlannedEnvelope,
    as_decimal,
)

logger = logging.getLogger("envelope_pace.plans")

PlanEntry = Union[PlannedEnvelope, Envelope, Mapping[str, Any]]

_PLAN_FIELDS = ("name", "allocation", "period_length")


def template_from(envelopes: Iterable[Envelope], period_length: int) -> list[PlannedEnvelope]:
    """
    Seed a plan from the live envelopes: same names and allocations,
    nothing spent, sized to ``period_length``.
    """
    return [
        PlannedEnvelope(name=envelope.name, allocation=envelope.allocation, period_length=period_length)
        for envelope in envelopes
    ]


def paycheck_variance(plan: PeriodPlan, preferences: PaycheckPreferences) -> Decimal:
    """
    Planned total minus the paycheck amount.

    Positive means the plan spends more than one paycheck brings in; the
    caller decides whether to warn. Zero when the plan matches exactly.
    """
    return plan.total - preferences.paycheck_amount


def _validate_entries(period_id: str, envelopes: Sequence[PlanEntry]) -> list[PlannedEnvelope]:
    validated: list[PlannedEnvelope] = []
    for index, entry in enumerate(envelopes):
        data = entry.model_dump() if isinstance(entry, BaseModel) else dict(entry)
        # Whatever was spent against a template source does not carry into a plan.
        fields = {key: data[key] for key in _PLAN_FIELDS if key in data}
        try:
            planned = PlannedEnvelope.model_validate(fields)
        except ValidationError as exc:
            raise InvalidPlanError(period_id, str(exc), index=index) from exc

        if not planned.name.strip():
            raise InvalidPlanError(period_id, "envelope name must not be empty", index=index)
        if planned.allocation <= 0:
            raise InvalidPlanError(
                period_id, f"allocation must be positive, got {planned.allocation}", index=index
            )
        if not 1 <= planned.period_length <= 31:
            raise InvalidPlanError(
                period_id,
                f"period length must be between 1 and 31 days, got {planned.period_length}",
                index=index,
            )
        validated.append(planned)
    return validated


def _validate_bills_allocation(period_id: str, value: Decimal | int | float | str) -> Decimal:
    try:
        amount = as_decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidPlanError(period_id, f"bills allocation {value!r} is not an amount") from exc
    if not amount.is_finite() or amount < 0:
        raise InvalidPlanError(period_id, f"bills allocation must be >= 0, got {amount}")
    return amount


class PeriodPlanStore:
    """
    Plans for future, not-yet-active periods, keyed by period id. A plan
    holds the period's envelopes and the money it sets aside for bills.

    Reads are served from an in-memory mirror; writes go to storage first
    and reach the mirror only once the storage call has succeeded, so a
    failed write never leaves the mirror ahead of what is persisted. Writes
    are serialized, so overlapping saves never drop each other's plans.

    Saving is last-writer-wins. The current period is off limits for
    ``save`` and ``delete``: live envelopes change only through the active
    budget. A period counts as current if it matches the id set by the
    budget or if its dates contain today, so the guard holds even before
    the budget has reported its current period.

    Usage::

        plans = PeriodPlanStore(storage)
        await plans.load()
        plans.set_current_period(current.id)
        await plans.save(upcoming.id, template_from(budget.envelopes, upcoming.period_length))
    """

    def __init__(self, storage: BudgetStorage, current_period_id: str | None = None) -> None:
        self._storage = storage
        self._plans: dict[str, PeriodPlan] = {}
        self._current_period_id = current_period_id
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Replace the in-memory mirror with what storage holds."""
        async with self._lock:
            self._plans = await self._storage.load_plans()

    def set_current_period(self, period_id: str | None) -> None:
        self._current_period_id = period_id

    @property
    def current_period_id(self) -> str | None:
        return self._current_period_id

    # ─── Reads ────────────────────────────────────────────────────────────────

    def get(self, period_id: str) -> list[PlannedEnvelope] | None:
        """Return a copy of the planned envelopes for ``period_id``, or None if absent."""
        plan = self._plans.get(period_id)
        if plan is None:
            return None
        return [planned.model_copy(deep=True) for planned in plan.envelopes]

    def get_plan(self, period_id: str) -> PeriodPlan | None:
        """Return a copy of the whole plan, bills allocation included."""
        plan = self._plans.get(period_id)
        return plan.model_copy(deep=True) if plan is not None else None

    def bills_allocation(self, period_id: str) -> Decimal:
        plan = self._plans.get(period_id)
        return plan.bills_allocation if plan is not None else Decimal("0")

    def has_plan(self, period_id: str) -> bool:
        return period_id in self._plans

    def period_ids(self) -> list[str]:
        return sorted(self._plans)

    def get_or_template(
        self,
        period_id: str,
        envelopes: Iterable[Envelope],
        period_length: int,
    ) -> list[PlannedEnvelope]:
        """The saved plan, or an unsaved template of the live envelopes."""
        plan = self.get(period_id)
        if plan is not None:
            return plan
        return template_from(envelopes, period_length)

    # ─── Writes ───────────────────────────────────────────────────────────────

    async def save(
        self,
        period_id: str,
        envelopes: Sequence[PlanEntry],
        bills_allocation: Decimal | int | float | str = Decimal("0"),
        *,
        today: date | None = None,
    ) -> list[PlannedEnvelope]:
        """
        Validate and persist a plan, replacing any existing one.

        Raises CannotModifyCurrentPeriodError for the current period, and
        InvalidPlanError for a malformed period id, a period that has
        already ended, a negative bills allocation, or any entry with an
        empty name, a non-positive allocation or an out-of-range period
        length. Validation happens before anything is written.
        """
        today = today or date.today()
        start_date, length = self._guard_current(period_id, today)
        if period_end(start_date, length) < today:
            raise InvalidPlanError(period_id, "period has already ended")
        validated = _validate_entries(period_id, envelopes)
        plan = PeriodPlan(
            envelopes=validated,
            bills_allocation=_validate_bills_allocation(period_id, bills_allocation),
        )

        async with self._lock:
            updated = dict(self._plans)
            updated[period_id] = plan
            await self._storage.save_plans(updated)
            self._plans = updated

        logger.info(
            "saved plan for period %s with %d envelopes and %s for bills",
            period_id,
            len(validated),
            plan.bills_allocation,
        )
        return [planned.model_copy(deep=True) for planned in validated]

    async def delete(self, period_id: str, *, today: date | None = None) -> None:
        """Remove the plan for ``period_id``. Absent plans are a no-op."""
        self._guard_current(period_id, today or date.today())
        async with self._lock:
            await self._remove(period_id)

    async def consume(self, period_id: str) -> PeriodPlan | None:
        """
        Take the plan for a period the budget has just rolled into.

        Rollover is the one path allowed to drop a plan whose period may
        already be flagged current, so the guard does not apply here.
        """
        async with self._lock:
            plan = self.get_plan(period_id)
            if plan is not None:
                await self._remove(period_id)
        return plan

    # ─── Private helpers ──────────────────────────────────────────────────────

    async def _remove(self, period_id: str) -> None:
        if period_id not in self._plans:
            return

        updated = {key: value for key, value in self._plans.items() if key != period_id}
        await self._storage.save_plans(updated)
        self._plans = updated

        logger.info("deleted plan for period %s", period_id)

    def _guard_current(self, period_id: str, today: date) -> tuple[date, int]:
        try:
            start_date, length = parse_period_id(period_id)
        except InvalidScheduleError as exc:
            raise InvalidPlanError(period_id, exc.message) from exc

        if period_id == self._current_period_id:
            raise CannotModifyCurrentPeriodError(period_id)
        if start_date <= today <= period_end(start_date, length):
            raise CannotModifyCurrentPeriodError(period_id)
        return start_date, length
