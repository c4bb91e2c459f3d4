# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation

from envelope_pace.errors import InvalidPurchaseError
from envelope_pace.types import Purchase, PurchaseFilter, ShuffleTransaction, as_decimal


def build_purchase(
    envelope_id: str,
    amount: Decimal,
    item: str | None = None,
    occurred_on: date | None = None,
) -> Purchase:
    """
    Build a validated prospective Purchase with a fresh id.

    Raises InvalidPurchaseError if amount is not positive.
    """
    try:
        amount = as_decimal(amount)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidPurchaseError(
            f"Purchase amount {amount!r} is not an amount.", envelope_id=envelope_id
        ) from exc
    if not amount.is_finite() or amount <= 0:
        raise InvalidPurchaseError(
            f"Purchase amount must be positive, got {amount}.",
            amount=amount,
            envelope_id=envelope_id,
        )
    fields = {"envelope_id": envelope_id, "amount": amount, "item": item}
    if occurred_on is not None:
        fields["occurred_on"] = occurred_on
    return Purchase(**fields)


def filter_purchases(
    purchases: list[Purchase],
    purchase_filter: PurchaseFilter | None,
) -> list[Purchase]:
    """
    Apply an optional PurchaseFilter to a purchase log.
    All filter fields are AND-ed together.
    Returns a new list; the input is not modified.
    """
    if purchase_filter is None:
        return [purchase.model_copy(deep=True) for purchase in purchases]

    results: list[Purchase] = []
    for purchase in purchases:
        if purchase_filter.envelope_id is not None and purchase.envelope_id != purchase_filter.envelope_id:
            continue
        if purchase_filter.since is not None and purchase.occurred_on < purchase_filter.since:
            continue
        if purchase_filter.until is not None and purchase.occurred_on > purchase_filter.until:
            continue
        if purchase_filter.min_amount is not None and purchase.amount < purchase_filter.min_amount:
            continue
        if purchase_filter.max_amount is not None and purchase.amount > purchase_filter.max_amount:
            continue
        results.append(purchase.model_copy(deep=True))

    return results


def shuffles_into(transactions: list[ShuffleTransaction], envelope_id: str) -> list[ShuffleTransaction]:
    """Shuffle transactions whose target is ``envelope_id``, oldest first."""
    return [
        transaction.model_copy(deep=True)
        for transaction in transactions
        if transaction.target_envelope_id == envelope_id
    ]
