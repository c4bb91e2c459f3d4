# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Proposals for covering a shortfall by shuffling money between envelopes.

A proposal maps source envelope ids to amounts, in the order the sources
should be presented. Proposals are advisory: nothing here checks shuffle
limits or changes state. Turn a proposal into allocations with
``to_allocations`` and hand them to ``Budget.shuffle``.

Strategies:

- ``manual``: every candidate at zero, for the user to fill in.
- ``reduce-from-all``: the shortfall split across candidates in proportion
  to their remaining balances.
- ``recommended``: candidates carrying a remainder from the previous period
  first, then the largest remaining balances, each drained in turn until
  the shortfall is covered.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import get_args

from envelope_pace.errors import InvalidPurchaseError, InvalidShuffleError
from envelope_pace.types import Envelope, ShuffleAllocation, ShuffleStrategy, as_decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")


def _to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def amount_needed(envelope: Envelope, purchase_amount: Decimal) -> Decimal:
    """How much of a purchase the envelope's remaining balance cannot cover."""
    try:
        amount = as_decimal(purchase_amount)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidPurchaseError(
            f"Purchase amount {purchase_amount!r} is not an amount.", envelope_id=envelope.id
        ) from exc
    if not amount.is_finite():
        raise InvalidPurchaseError(f"Purchase amount {amount} is not finite.", envelope_id=envelope.id)
    return max(ZERO, amount - envelope.remaining)


def shuffle_candidates(envelopes: Iterable[Envelope], target_id: str) -> list[Envelope]:
    """Envelopes other than the target that still have money left."""
    return [envelope for envelope in envelopes if envelope.id != target_id and envelope.remaining > 0]


def _reduce_from_all(candidates: list[Envelope], needed: Decimal) -> dict[str, Decimal]:
    total_remaining = sum((envelope.remaining for envelope in candidates), ZERO)
    target_total = min(_to_cents(needed), total_remaining)

    proposal = {
        envelope.id: min(envelope.remaining, _to_cents(needed * envelope.remaining / total_remaining))
        for envelope in candidates
    }

    # Rounding each share to cents can leave the total a few cents off.
    drift = target_total - sum(proposal.values(), ZERO)
    by_balance = sorted(candidates, key=lambda envelope: envelope.remaining, reverse=True)
    for envelope in by_balance:
        if drift == 0:
            break
        current = proposal[envelope.id]
        if drift > 0:
            step = min(drift, envelope.remaining - current)
        else:
            step = max(drift, -current)
        proposal[envelope.id] = current + step
        drift -= step

    return proposal


def _recommended(candidates: list[Envelope], needed: Decimal) -> dict[str, Decimal]:
    ordered = sorted(
        candidates,
        key=lambda envelope: (envelope.previous_remaining <= 0, -envelope.remaining),
    )
    proposal: dict[str, Decimal] = {}
    left = _to_cents(needed)
    for envelope in ordered:
        if left <= 0:
            break
        take = min(envelope.remaining, left)
        if take > 0:
            proposal[envelope.id] = take
            left -= take
    return proposal


def plan_shuffle(
    envelopes: Iterable[Envelope],
    target_id: str,
    needed: Decimal,
    strategy: ShuffleStrategy = "recommended",
) -> dict[str, Decimal]:
    """
    Propose amounts to take from other envelopes to cover ``needed``.

    If the candidates together hold less than ``needed``, the proposal
    drains them all and the caller is left short.
    """
    try:
        needed = as_decimal(needed)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidShuffleError(f"Amount needed {needed!r} is not an amount.") from exc
    if not needed.is_finite() or needed < 0:
        raise InvalidShuffleError(f"Amount needed must not be negative, got {needed}.")

    if strategy not in get_args(ShuffleStrategy):
        raise InvalidShuffleError(f"'{strategy}' is not a known shuffle strategy.")

    candidates = shuffle_candidates(envelopes, target_id)

    if strategy == "manual":
        return {envelope.id: ZERO for envelope in candidates}
    if not candidates or needed == 0:
        return {}
    if strategy == "reduce-from-all":
        return _reduce_from_all(candidates, needed)
    return _recommended(candidates, needed)


def to_allocations(proposal: Mapping[str, Decimal]) -> list[ShuffleAllocation]:
    """Allocations for every non-zero entry of a proposal, in order."""
    return [
        ShuffleAllocation(source_envelope_id=envelope_id, amount=amount)
        for envelope_id, amount in proposal.items()
        if amount > 0
    ]
