# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

# ─── Status ───────────────────────────────────────────────────────────────────

StatusType = Literal[
    "super-safe",
    "safe",
    "off-track",
    "danger",
    "budget-breaker",
    "envelope-empty",
]

# ─── Paycheck schedule ────────────────────────────────────────────────────────

PaycheckFrequency = Literal["weekly", "biweekly", "semimonthly", "monthly"]


class PaycheckPreferences(BaseModel):
    """
    Paycheck schedule owned by the user's profile. Read-only to the engine.

    ``paycheck_frequency`` is kept as a plain string here; the calendar
    rejects anything outside ``PaycheckFrequency`` with InvalidScheduleError.
    """

    paycheck_frequency: str
    next_payday: date
    paycheck_amount: Decimal = Decimal("0")
    semi_monthly_pay_days: Optional[tuple[int, ...]] = None


# ─── Envelope ─────────────────────────────────────────────────────────────────


def _new_id() -> str:
    return str(uuid4())


def as_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce a money amount to Decimal. Floats go through str to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


class EnvelopeConfig(BaseModel):
    """Input model for creating an envelope in the active budget."""

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    allocation: Decimal = Field(..., gt=0)
    period_length: int = Field(..., ge=1, le=31)
    start_date: Optional[date] = None
    spent: Decimal = Field(default=Decimal("0"), ge=0)


class Envelope(BaseModel):
    """Live state of one envelope for the active period."""

    id: str = Field(default_factory=_new_id)
    name: str = Field(..., min_length=1)
    allocation: Decimal
    spent: Decimal = Field(default=Decimal("0"), ge=0)
    start_date: date
    period_length: int
    previous_remaining: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=self.period_length - 1)

    @property
    def remaining(self) -> Decimal:
        return self.allocation - self.spent


# ─── Purchases ────────────────────────────────────────────────────────────────


class Purchase(BaseModel):
    """A prospective or committed purchase against one envelope."""

    id: str = Field(default_factory=_new_id)
    amount: Decimal
    envelope_id: str
    item: Optional[str] = None
    occurred_on: date = Field(default_factory=date.today)


class PurchaseFilter(BaseModel):
    """Optional filter applied to purchase history. All fields are AND-ed."""

    envelope_id: Optional[str] = None
    since: Optional[date] = None
    until: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None


# ─── Shuffles ─────────────────────────────────────────────────────────────────

ShuffleStrategy = Literal["manual", "reduce-from-all", "recommended"]


class ShuffleAllocation(BaseModel):
    """Money taken from one source envelope as part of a shuffle."""

    source_envelope_id: str
    amount: Decimal = Field(..., gt=0)


class ShuffleTransaction(BaseModel):
    """An immutable record of money moved into a target envelope."""

    id: str = Field(default_factory=_new_id)
    occurred_on: date = Field(default_factory=date.today)
    target_envelope_id: str
    allocations: list[ShuffleAllocation] = Field(..., min_length=1)
    purchase_id: Optional[str] = None

    @property
    def total_amount(self) -> Decimal:
        return sum((allocation.amount for allocation in self.allocations), Decimal("0"))


class ShuffleLimit(BaseModel):
    """Ceiling on how much may be shuffled into one envelope this period."""

    envelope_id: str
    max_amount: Decimal = Field(..., ge=0)
    current_shuffled: Decimal = Field(default=Decimal("0"), ge=0)


# ─── Periods and plans ────────────────────────────────────────────────────────


class Period(BaseModel):
    """A budgeting period derived from the paycheck schedule."""

    id: str
    start_date: date
    end_date: date
    period_length: int
    is_current: bool = False
    is_planned: bool = False

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class PlannedEnvelope(BaseModel):
    """An envelope planned for a future period. Spent is always zero."""

    name: str
    allocation: Decimal
    spent: Decimal = Decimal("0")
    period_length: int

    @field_validator("spent")
    @classmethod
    def spent_starts_at_zero(cls, value: Decimal) -> Decimal:
        if value != 0:
            raise ValueError("planned envelopes start with nothing spent")
        return value


class PeriodPlan(BaseModel):
    """Everything planned for one future period: envelopes plus money for bills."""

    envelopes: list[PlannedEnvelope] = Field(default_factory=list)
    bills_allocation: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def total(self) -> Decimal:
        return sum((planned.allocation for planned in self.envelopes), Decimal("0")) + self.bills_allocation


# ─── Bills ────────────────────────────────────────────────────────────────────


class BillConfig(BaseModel):
    """Input model for adding a recurring or one-off bill."""

    name: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    due_day: int = Field(..., ge=1, le=31)
    is_recurring: bool = True
    category: Optional[str] = None


class Bill(BillConfig):
    """A mandatory expense paid from the bills envelope on a day of the month."""

    id: str = Field(default_factory=_new_id)
    last_paid_on: Optional[date] = None


class BillsEnvelope(BaseModel):
    """
    Money set aside for bills, kept apart from the spending envelopes.

    Only the balance and the bills are stored; totals, the cushion and
    funding figures are derived by ``envelope_pace.bills``.
    """

    id: str = "bills_envelope"
    name: str = "Bills"
    current_balance: Decimal = Field(default=Decimal("0"), ge=0)
    bills: list[Bill] = Field(default_factory=list)

    def find_bill(self, bill_id: str) -> Bill | None:
        for bill in self.bills:
            if bill.id == bill_id:
                return bill
        return None


class UpcomingBill(BaseModel, frozen=True):
    """A bill paired with the next date it falls due."""

    bill: Bill
    due_date: date


class BillsSummary(BaseModel, frozen=True):
    """Funding position of the bills envelope."""

    total_monthly_bills: Decimal
    cushion_amount: Decimal
    target_amount: Decimal
    current_balance: Decimal
    funding_percentage: Decimal
    cushion_percentage: Decimal
    is_fully_funded: bool
    has_reached_cushion: bool
    required_per_paycheck: Decimal
    next_due: Optional[UpcomingBill] = None


# ─── Status result ────────────────────────────────────────────────────────────


class StatusDescriptor(BaseModel, frozen=True):
    """Fixed display attributes for one status."""

    status: StatusType
    color: str
    text_color: str
    border_color: str
    icon: str
    text: str


class StatusResult(BaseModel, frozen=True):
    """Outcome of classifying an envelope, with or without a purchase."""

    status: StatusType
    envelope_id: str
    envelope_name: str
    current_day: int
    period_length: int
    current_spend: Decimal
    daily_amount: Decimal
    expected_spend: Decimal
    remaining_amount: Decimal
    days_worth_of_spending: Decimal
    days_worth_after_purchase: Decimal
    purchase: Optional[Purchase] = None
    descriptor: StatusDescriptor


# ─── Active-budget aggregate ──────────────────────────────────────────────────


class BudgetState(BaseModel):
    """
    Everything the active budget persists as one unit.

    Every mutating engine operation returns a new BudgetState; the paired
    writes (spent + purchase log, current_shuffled + shuffle log) therefore
    always land in storage together.
    """

    envelopes: list[Envelope] = Field(default_factory=list)
    purchases: list[Purchase] = Field(default_factory=list)
    shuffle_transactions: list[ShuffleTransaction] = Field(default_factory=list)
    shuffle_limits: list[ShuffleLimit] = Field(default_factory=list)
    active_period: Optional[Period] = None
    bills: BillsEnvelope = Field(default_factory=BillsEnvelope)

    def find_envelope(self, envelope_id: str) -> Envelope | None:
        for envelope in self.envelopes:
            if envelope.id == envelope_id:
                return envelope
        return None

    def find_limit(self, envelope_id: str) -> ShuffleLimit | None:
        for limit in self.shuffle_limits:
            if limit.envelope_id == envelope_id:
                return limit
        return None
