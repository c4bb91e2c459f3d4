# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
envelope-pace — period-based envelope budgeting with spending-pace advice.

Quick start::

    from decimal import Decimal
    from envelope_pace import (
        Budget, EnvelopeConfig, MemoryStorage, PurchaseSimulationSession, build_purchase,
    )

    budget = await Budget.open(MemoryStorage())
    food = await budget.add_envelope(
        EnvelopeConfig(name="Food", allocation=Decimal("420"), period_length=14)
    )

    session = PurchaseSimulationSession(budget)
    result = session.simulate(build_purchase(food.id, Decimal("35"), item="groceries"))
    print(result.status, result.descriptor.text)
    await session.confirm()
"""

from envelope_pace.bills import bills_summary, next_due_date, total_monthly_bills, upcoming_bills
from envelope_pace.budget import Budget
from envelope_pace.config import EngineConfig
from envelope_pace.errors import (
    BillNotFoundError,
    CannotModifyCurrentPeriodError,
    ConfirmationInProgressError,
    EnvelopeNotFoundError,
    EnvelopePaceError,
    InsufficientBillsFundsError,
    InvalidBillError,
    InvalidEnvelopeError,
    InvalidLimitError,
    InvalidPlanError,
    InvalidPurchaseError,
    InvalidScheduleError,
    InvalidShuffleError,
    NoPendingSimulationError,
    ShuffleLimitExceededError,
    SimulationAlreadyPendingError,
    UnknownStatusError,
)
from envelope_pace.history import build_purchase, filter_purchases
from envelope_pace.ledger import ShuffleLimitLedger
from envelope_pace.periods import (
    current_period,
    day_in_period,
    days_between,
    next_payday_after,
    next_periods,
    parse_period_id,
    payday_on_or_before,
    period_end,
    period_id,
)
from envelope_pace.plans import PeriodPlanStore, paycheck_variance, template_from
from envelope_pace.shuffle import amount_needed, plan_shuffle, shuffle_candidates, to_allocations
from envelope_pace.simulation import PurchaseSimulationSession
from envelope_pace.status import (
    BLOCKING_STATUSES,
    STATUS_DESCRIPTORS,
    baseline_status,
    classify,
    describe_status,
    envelope_color,
    format_currency,
    format_days_worth,
)
from envelope_pace.storage import BudgetStorage, FileStorage, MemoryStorage
from envelope_pace.types import (
    Bill,
    BillConfig,
    BillsEnvelope,
    BillsSummary,
    BudgetState,
    Envelope,
    EnvelopeConfig,
    PaycheckFrequency,
    PaycheckPreferences,
    Period,
    PeriodPlan,
    PlannedEnvelope,
    Purchase,
    PurchaseFilter,
    ShuffleAllocation,
    ShuffleLimit,
    ShuffleStrategy,
    ShuffleTransaction,
    StatusDescriptor,
    StatusResult,
    StatusType,
    UpcomingBill,
)

__all__ = [
    # Core classes
    "Budget",
    "PurchaseSimulationSession",
    "PeriodPlanStore",
    "ShuffleLimitLedger",
    "EngineConfig",
    # Types
    "Bill",
    "BillConfig",
    "BillsEnvelope",
    "BillsSummary",
    "BudgetState",
    "Envelope",
    "EnvelopeConfig",
    "PaycheckFrequency",
    "PaycheckPreferences",
    "Period",
    "PeriodPlan",
    "PlannedEnvelope",
    "Purchase",
    "PurchaseFilter",
    "ShuffleAllocation",
    "ShuffleLimit",
    "ShuffleStrategy",
    "ShuffleTransaction",
    "StatusDescriptor",
    "StatusResult",
    "StatusType",
    "UpcomingBill",
    # Errors
    "EnvelopePaceError",
    "BillNotFoundError",
    "CannotModifyCurrentPeriodError",
    "ConfirmationInProgressError",
    "EnvelopeNotFoundError",
    "InsufficientBillsFundsError",
    "InvalidBillError",
    "InvalidEnvelopeError",
    "InvalidLimitError",
    "InvalidPlanError",
    "InvalidPurchaseError",
    "InvalidScheduleError",
    "InvalidShuffleError",
    "NoPendingSimulationError",
    "ShuffleLimitExceededError",
    "SimulationAlreadyPendingError",
    "UnknownStatusError",
    # Storage
    "BudgetStorage",
    "FileStorage",
    "MemoryStorage",
    # Status
    "BLOCKING_STATUSES",
    "STATUS_DESCRIPTORS",
    "baseline_status",
    "classify",
    "describe_status",
    "envelope_color",
    "format_currency",
    "format_days_worth",
    # Periods
    "current_period",
    "day_in_period",
    "days_between",
    "next_payday_after",
    "next_periods",
    "parse_period_id",
    "payday_on_or_before",
    "period_end",
    "period_id",
    # Planning and shuffles
    "template_from",
    "paycheck_variance",
    "amount_needed",
    "plan_shuffle",
    "shuffle_candidates",
    "to_allocations",
    # Bills
    "bills_summary",
    "next_due_date",
    "total_monthly_bills",
    "upcoming_bills",
    # History
    "build_purchase",
    "filter_purchases",
]
