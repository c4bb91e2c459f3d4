# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Spending-pace classification for a single envelope.

An envelope is "on pace" when what has been spent tracks the straight-line
share of its allocation for the days elapsed so far. With ``L`` the period
length, ``A`` the allocation, ``d`` the current day and ``S`` the amount
spent, the expected spend is ``d * A / L`` and the status bands are::

    S >= A                      envelope-empty
    S >  1.2 * expected         danger
    S >  expected               off-track
    S >= 0.8 * expected         safe
    otherwise                   super-safe

All band comparisons are made by cross-multiplying integers and Decimals
(``5 * S * L > 6 * d * A`` rather than ``S > 1.2 * d * A / L``) so that no
rounding ever decides a status.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from envelope_pace.errors import InvalidEnvelopeError, InvalidPurchaseError, UnknownStatusError
from envelope_pace.periods import day_in_period
from envelope_pace.types import Envelope, Purchase, StatusDescriptor, StatusResult, StatusType

logger = logging.getLogger("envelope_pace.status")

# ─── Display descriptors ──────────────────────────────────────────────────────

STATUS_DESCRIPTORS: dict[str, StatusDescriptor] = {
    "super-safe": StatusDescriptor(
        status="super-safe",
        color="#15803d",
        text_color="#ffffff",
        border_color="#ffffff",
        icon="check",
        text="Super Safe",
    ),
    "safe": StatusDescriptor(
        status="safe",
        color="#d1fae5",
        text_color="#15803d",
        border_color="#22c55e",
        icon="thumbs-up",
        text="Safe",
    ),
    "off-track": StatusDescriptor(
        status="off-track",
        color="#fef3c7",
        text_color="#b45309",
        border_color="#f59e0b",
        icon="alert-triangle",
        text="Off Track (Caution)",
    ),
    "danger": StatusDescriptor(
        status="danger",
        color="#fed7aa",
        text_color="#9a3412",
        border_color="#ea580c",
        icon="alert-triangle",
        text="Danger Zone",
    ),
    "budget-breaker": StatusDescriptor(
        status="budget-breaker",
        color="#fecaca",
        text_color="#7f1d1d",
        border_color="#dc2626",
        icon="alert-octagon",
        text="Budget Breaker",
    ),
    "envelope-empty": StatusDescriptor(
        status="envelope-empty",
        color="#fee2e2",
        text_color="#b91c1c",
        border_color="#ef4444",
        icon="x-circle",
        text="Envelope Empty",
    ),
}

# Statuses after which the UI should offer a shuffle instead of a plain "yes".
BLOCKING_STATUSES: frozenset[str] = frozenset({"budget-breaker", "envelope-empty"})


def describe_status(status: str) -> StatusDescriptor:
    """Return the display descriptor for a status. Unknown statuses raise."""
    try:
        return STATUS_DESCRIPTORS[status]
    except KeyError:
        raise UnknownStatusError(status) from None


# ─── Validation ───────────────────────────────────────────────────────────────


def _validate_envelope(envelope: Envelope) -> None:
    if envelope.period_length < 1:
        raise InvalidEnvelopeError(
            f"Envelope '{envelope.name}' has period length {envelope.period_length}; "
            "it must be at least 1 day.",
            envelope_id=envelope.id,
        )
    if envelope.allocation <= 0:
        raise InvalidEnvelopeError(
            f"Envelope '{envelope.name}' has allocation {envelope.allocation}; "
            "it must be positive.",
            envelope_id=envelope.id,
        )


def _validate_purchase(envelope: Envelope, purchase: Purchase) -> None:
    if purchase.amount <= 0:
        raise InvalidPurchaseError(
            f"Purchase amount must be positive, got {purchase.amount}.",
            amount=purchase.amount,
            envelope_id=purchase.envelope_id,
        )
    if purchase.envelope_id != envelope.id:
        raise InvalidPurchaseError(
            f"Purchase targets envelope '{purchase.envelope_id}', "
            f"not '{envelope.id}'.",
            amount=purchase.amount,
            envelope_id=purchase.envelope_id,
        )


# ─── Classification ───────────────────────────────────────────────────────────


def _pace_band(spent: Decimal, allocation: Decimal, current_day: int, period_length: int) -> StatusType:
    """Place ``spent`` against the expected spend for ``current_day``."""
    spent_scaled = spent * period_length
    expected_scaled = current_day * allocation

    if 5 * spent_scaled > 6 * expected_scaled:
        return "danger"
    if spent_scaled > expected_scaled:
        return "off-track"
    if 5 * spent_scaled >= 4 * expected_scaled:
        return "safe"
    return "super-safe"


def _baseline(envelope: Envelope, current_day: int) -> StatusType:
    if envelope.spent >= envelope.allocation:
        return "envelope-empty"
    return _pace_band(envelope.spent, envelope.allocation, current_day, envelope.period_length)


def _with_purchase(envelope: Envelope, spent_after: Decimal, current_day: int) -> StatusType:
    # An envelope that is already empty stays empty; the user has to shuffle.
    if envelope.spent >= envelope.allocation:
        return "envelope-empty"
    if spent_after > envelope.allocation:
        return "budget-breaker"
    if spent_after == envelope.allocation:
        return "danger"
    return _pace_band(spent_after, envelope.allocation, current_day, envelope.period_length)


def baseline_status(envelope: Envelope, today: date | None = None) -> StatusType:
    """Status of the envelope as it stands, without any purchase."""
    _validate_envelope(envelope)
    today = today or date.today()
    current_day = day_in_period(envelope.start_date, today, envelope.period_length)
    return _baseline(envelope, current_day)


def envelope_color(envelope: Envelope, today: date | None = None) -> str:
    """Color tag for an envelope in list views."""
    return describe_status(baseline_status(envelope, today)).color


def classify(
    envelope: Envelope,
    purchase: Purchase | None = None,
    today: date | None = None,
) -> StatusResult:
    """
    Classify an envelope's spending pace, optionally after a prospective
    purchase.

    This function is pure: it reads the envelope and purchase and returns a
    new StatusResult. Nothing is recorded.

    Raises InvalidEnvelopeError if the envelope has a non-positive
    allocation or a period shorter than one day, and InvalidPurchaseError
    if the purchase amount is not positive or the purchase targets another
    envelope.
    """
    _validate_envelope(envelope)
    if purchase is not None:
        _validate_purchase(envelope, purchase)

    today = today or date.today()
    current_day = day_in_period(envelope.start_date, today, envelope.period_length)

    allocation = envelope.allocation
    period_length = envelope.period_length
    spent = envelope.spent

    daily_amount = allocation / period_length
    expected_spend = current_day * allocation / period_length
    days_worth = spent * period_length / allocation

    if purchase is None:
        status = _baseline(envelope, current_day)
        days_worth_after = days_worth
    else:
        spent_after = spent + purchase.amount
        status = _with_purchase(envelope, spent_after, current_day)
        days_worth_after = spent_after * period_length / allocation

    logger.debug(
        "classified envelope %s on day %d/%d as %s (spent=%s, purchase=%s)",
        envelope.id,
        current_day,
        period_length,
        status,
        spent,
        purchase.amount if purchase is not None else None,
    )

    return StatusResult(
        status=status,
        envelope_id=envelope.id,
        envelope_name=envelope.name,
        current_day=current_day,
        period_length=period_length,
        current_spend=spent,
        daily_amount=daily_amount,
        expected_spend=expected_spend,
        remaining_amount=allocation - spent,
        days_worth_of_spending=days_worth,
        days_worth_after_purchase=days_worth_after,
        purchase=purchase.model_copy(deep=True) if purchase is not None else None,
        descriptor=describe_status(status),
    )


# ─── Display helpers ──────────────────────────────────────────────────────────


def format_currency(amount: Decimal) -> str:
    """Format an amount as US dollars, e.g. ``$1,234.50`` or ``-$3.00``."""
    quantized = Decimal(amount).quantize(Decimal("0.01"))
    sign = "-" if quantized < 0 else ""
    return f"{sign}${abs(quantized):,.2f}"


def format_days_worth(days: Decimal) -> str:
    """Format a days-worth figure to one decimal, e.g. ``3.5 days``."""
    return f"{Decimal(days):.1f} days"
