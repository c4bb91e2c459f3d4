# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Per-envelope limits on money shuffled in during the active period.

Every function here takes a BudgetState and returns a new one; the input
is never modified. A successful ``apply_shuffle`` therefore yields a state
in which the raised ``current_shuffled`` and the appended transaction exist
together, and a rejected one yields nothing at all.

An envelope without a configured limit has a ceiling of zero: nothing can
be shuffled into it until ``set_limit`` is called.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from envelope_pace.errors import InvalidLimitError, ShuffleLimitExceededError
from envelope_pace.types import BudgetState, ShuffleLimit, ShuffleTransaction, as_decimal


def get_limit(state: BudgetState, envelope_id: str) -> ShuffleLimit:
    """The envelope's limit, or a zero-ceiling limit if none is configured."""
    limit = state.find_limit(envelope_id)
    if limit is None:
        return ShuffleLimit(envelope_id=envelope_id, max_amount=Decimal("0"))
    return limit.model_copy()


def remaining_capacity(state: BudgetState, envelope_id: str) -> Decimal:
    """How much more may be shuffled into the envelope this period."""
    limit = get_limit(state, envelope_id)
    return max(Decimal("0"), limit.max_amount - limit.current_shuffled)


def set_limit(state: BudgetState, envelope_id: str, max_amount: Decimal) -> BudgetState:
    """
    Set the shuffle ceiling for an envelope, creating the limit if needed.

    Only the ceiling changes; the running total is left as is, even if it
    now exceeds the new ceiling (further shuffles are then rejected).

    Raises InvalidLimitError if ``max_amount`` is negative or not an amount.
    """
    try:
        max_amount = as_decimal(max_amount)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidLimitError(envelope_id, max_amount) from exc
    if not max_amount.is_finite() or max_amount < 0:
        raise InvalidLimitError(envelope_id, max_amount)

    limits = [limit.model_copy() for limit in state.shuffle_limits]
    for index, limit in enumerate(limits):
        if limit.envelope_id == envelope_id:
            limits[index] = limit.model_copy(update={"max_amount": max_amount})
            break
    else:
        limits.append(ShuffleLimit(envelope_id=envelope_id, max_amount=max_amount))

    return state.model_copy(update={"shuffle_limits": limits}, deep=True)


def apply_shuffle(state: BudgetState, transaction: ShuffleTransaction) -> BudgetState:
    """
    Record a shuffle into ``transaction.target_envelope_id``.

    Raises ShuffleLimitExceededError if the target's running total plus the
    transaction's total would exceed its ceiling. The request is rejected,
    never trimmed to fit.
    """
    target_id = transaction.target_envelope_id
    total = transaction.total_amount
    limit = get_limit(state, target_id)

    if limit.current_shuffled + total > limit.max_amount:
        raise ShuffleLimitExceededError(
            envelope_id=target_id,
            requested=total,
            current_shuffled=limit.current_shuffled,
            max_amount=limit.max_amount,
        )

    updated_limit = limit.model_copy(update={"current_shuffled": limit.current_shuffled + total})
    limits = [
        updated_limit if existing.envelope_id == target_id else existing.model_copy()
        for existing in state.shuffle_limits
    ]
    if state.find_limit(target_id) is None:
        limits.append(updated_limit)

    return state.model_copy(
        update={
            "shuffle_limits": limits,
            "shuffle_transactions": [*state.shuffle_transactions, transaction.model_copy(deep=True)],
        },
        deep=True,
    )


def reset_period(state: BudgetState) -> BudgetState:
    """Zero every envelope's running shuffle total. Ceilings are kept."""
    limits = [limit.model_copy(update={"current_shuffled": Decimal("0")}) for limit in state.shuffle_limits]
    return state.model_copy(update={"shuffle_limits": limits}, deep=True)


class ShuffleLimitLedger:
    """
    Object-style access to the ledger functions over a held BudgetState.

    Each call replaces ``state`` with the returned aggregate. Useful where a
    caller wants to chain several ledger operations before persisting.

    Usage::

        ledger = ShuffleLimitLedger(state)
        ledger.set_limit("env-food", Decimal("100"))
        ledger.apply_shuffle(transaction)
        await storage.save_state(ledger.state)
    """

    def __init__(self, state: BudgetState | None = None) -> None:
        self.state = state.model_copy(deep=True) if state is not None else BudgetState()

    def set_limit(self, envelope_id: str, max_amount: Decimal) -> ShuffleLimit:
        self.state = set_limit(self.state, envelope_id, max_amount)
        return get_limit(self.state, envelope_id)

    def apply_shuffle(self, transaction: ShuffleTransaction) -> ShuffleLimit:
        self.state = apply_shuffle(self.state, transaction)
        return get_limit(self.state, transaction.target_envelope_id)

    def reset_period(self) -> None:
        self.state = reset_period(self.state)

    def get_limit(self, envelope_id: str) -> ShuffleLimit:
        return get_limit(self.state, envelope_id)

    def remaining_capacity(self, envelope_id: str) -> Decimal:
        return remaining_capacity(self.state, envelope_id)
