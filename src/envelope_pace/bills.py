# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
The bills envelope: money set aside for mandatory monthly expenses.

Bills are kept apart from the spending envelopes. They never take part in
pace classification or shuffles; the envelope only tracks a balance and a
list of bills, each due on a day of the month.

The funding target is the monthly bills total plus a 15% cushion. The
amount needed per paycheck spreads the monthly total (and, while the
cushion has not been reached, the shortfall to the target) over the
number of paychecks in a month.

Mutating functions take a BudgetState and return a new one, like the
shuffle-limit ledger; the input is never modified.
"""

from __future__ import annotations

import calendar
from collections.abc import Mapping
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from envelope_pace.errors import BillNotFoundError, InsufficientBillsFundsError, InvalidBillError
from envelope_pace.periods import validate_schedule
from envelope_pace.types import (
    Bill,
    BillConfig,
    BillsEnvelope,
    BillsSummary,
    BudgetState,
    PaycheckPreferences,
    UpcomingBill,
    as_decimal,
)

BillInput = Union[BillConfig, BaseModel, Mapping[str, Any]]

CUSHION_RATIO = Decimal("0.15")

PERIODS_PER_MONTH: dict[str, Decimal] = {
    "weekly": Decimal("4.33"),
    "biweekly": Decimal("2.17"),
    "semimonthly": Decimal("2"),
    "monthly": Decimal("1"),
}

_UPDATABLE_FIELDS = frozenset({"name", "amount", "due_day", "is_recurring", "category"})

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def _to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _validate_bill(data: BillInput, bill_id: str | None = None) -> BillConfig:
    raw = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    fields = {key: raw[key] for key in BillConfig.model_fields if key in raw}
    try:
        config = BillConfig.model_validate(fields)
    except ValidationError as exc:
        raise InvalidBillError(f"Invalid bill: {exc}", bill_id=bill_id) from exc
    if not config.name.strip():
        raise InvalidBillError("Bill name must not be empty.", bill_id=bill_id)
    return config


def _with_bills(state: BudgetState, envelope: BillsEnvelope) -> BudgetState:
    return state.model_copy(update={"bills": envelope}, deep=True)


# ─── Derived figures ──────────────────────────────────────────────────────────


def total_monthly_bills(envelope: BillsEnvelope) -> Decimal:
    return sum((bill.amount for bill in envelope.bills), Decimal("0"))


def next_due_date(bill: Bill, today: date) -> date:
    """
    The next date ``bill`` falls due, counting today.

    A due day past the end of a short month clamps to its last day.
    """
    last_day = calendar.monthrange(today.year, today.month)[1]
    this_month = date(today.year, today.month, min(bill.due_day, last_day))
    if this_month >= today:
        return this_month

    year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(bill.due_day, last_day))


def upcoming_bills(envelope: BillsEnvelope, today: date, count: int = 3) -> list[UpcomingBill]:
    """The next ``count`` bills to fall due, soonest first."""
    upcoming = [UpcomingBill(bill=bill, due_date=next_due_date(bill, today)) for bill in envelope.bills]
    upcoming.sort(key=lambda entry: (entry.due_date, entry.bill.name))
    return upcoming[:count]


def bills_summary(envelope: BillsEnvelope, preferences: PaycheckPreferences, today: date) -> BillsSummary:
    """
    Funding position of the bills envelope for a paycheck schedule.

    With no bills both percentages read 100: there is nothing to fund.

    Raises InvalidScheduleError for an unknown paycheck frequency.
    """
    validate_schedule(preferences)
    periods_per_month = PERIODS_PER_MONTH[preferences.paycheck_frequency]

    total = total_monthly_bills(envelope)
    cushion = _to_cents(total * CUSHION_RATIO)
    target = total + cushion
    balance = envelope.current_balance

    funding = _to_cents(balance / total * HUNDRED) if total > 0 else HUNDRED
    cushion_funding = _to_cents(balance / target * HUNDRED) if target > 0 else HUNDRED
    has_reached_cushion = balance >= target

    per_paycheck = total / periods_per_month
    if not has_reached_cushion:
        per_paycheck += (target - balance) / periods_per_month

    soonest = upcoming_bills(envelope, today, count=1)
    return BillsSummary(
        total_monthly_bills=total,
        cushion_amount=cushion,
        target_amount=target,
        current_balance=balance,
        funding_percentage=funding,
        cushion_percentage=cushion_funding,
        is_fully_funded=balance >= total,
        has_reached_cushion=has_reached_cushion,
        required_per_paycheck=_to_cents(per_paycheck),
        next_due=soonest[0] if soonest else None,
    )


# ─── State transitions ────────────────────────────────────────────────────────


def add_bill(state: BudgetState, config: BillInput) -> tuple[BudgetState, Bill]:
    """Add a bill. Raises InvalidBillError for a bad name, amount or due day."""
    validated = _validate_bill(config)
    bill = Bill(**validated.model_dump())
    envelope = state.bills.model_copy(update={"bills": [*state.bills.bills, bill]}, deep=True)
    return _with_bills(state, envelope), bill


def update_bill(state: BudgetState, bill_id: str, **changes: Any) -> tuple[BudgetState, Bill]:
    """
    Change a bill's name, amount, due day, recurrence or category.

    The merged bill is validated as a whole before anything changes.
    """
    unknown = set(changes) - _UPDATABLE_FIELDS
    if unknown:
        raise InvalidBillError(f"Cannot update bill fields {sorted(unknown)}.", bill_id=bill_id)

    current = state.bills.find_bill(bill_id)
    if current is None:
        raise BillNotFoundError(bill_id)

    validated = _validate_bill({**current.model_dump(), **changes}, bill_id=bill_id)
    updated = current.model_copy(update=validated.model_dump())
    bills = [updated if bill.id == bill_id else bill for bill in state.bills.bills]
    return _with_bills(state, state.bills.model_copy(update={"bills": bills})), updated


def delete_bill(state: BudgetState, bill_id: str) -> BudgetState:
    if state.bills.find_bill(bill_id) is None:
        raise BillNotFoundError(bill_id)
    bills = [bill for bill in state.bills.bills if bill.id != bill_id]
    return _with_bills(state, state.bills.model_copy(update={"bills": bills}))


def add_money(state: BudgetState, amount: Decimal | int | float | str) -> BudgetState:
    """Add money to the bills balance. Raises InvalidBillError unless amount > 0."""
    try:
        amount = as_decimal(amount)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidBillError(f"Amount {amount!r} is not an amount.") from exc
    if not amount.is_finite() or amount <= 0:
        raise InvalidBillError(f"Amount added to bills must be positive, got {amount}.")

    envelope = state.bills.model_copy(update={"current_balance": state.bills.current_balance + amount})
    return _with_bills(state, envelope)


def pay_bill(state: BudgetState, bill_id: str, today: date) -> BudgetState:
    """
    Pay a bill out of the bills balance.

    A recurring bill records ``today`` as its last payment; a one-off bill
    is removed once paid.

    Raises BillNotFoundError, or InsufficientBillsFundsError when the
    balance cannot cover the bill.
    """
    bill = state.bills.find_bill(bill_id)
    if bill is None:
        raise BillNotFoundError(bill_id)

    balance = state.bills.current_balance
    if bill.amount > balance:
        raise InsufficientBillsFundsError(bill_id, bill.amount, balance)

    if bill.is_recurring:
        paid = bill.model_copy(update={"last_paid_on": today})
        bills = [paid if entry.id == bill_id else entry for entry in state.bills.bills]
    else:
        bills = [entry for entry in state.bills.bills if entry.id != bill_id]

    envelope = state.bills.model_copy(update={"current_balance": balance - bill.amount, "bills": bills})
    return _with_bills(state, envelope)
