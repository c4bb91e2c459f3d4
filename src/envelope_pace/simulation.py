# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from envelope_pace.budget import Budget
from envelope_pace.errors import (
    ConfirmationInProgressError,
    NoPendingSimulationError,
    SimulationAlreadyPendingError,
)
from envelope_pace.shuffle import amount_needed
from envelope_pace.status import classify
from envelope_pace.types import Purchase, ShuffleAllocation, ShuffleTransaction, StatusResult

logger = logging.getLogger("envelope_pace.simulation")


class PurchaseSimulationSession:
    """
    One "am I about to overspend?" inquiry at a time against a Budget.

    The session is either Idle (nothing pending) or Pending (one simulated
    purchase and its StatusResult held). ``simulate`` moves Idle to Pending;
    ``confirm``, ``shuffle_and_confirm`` and ``cancel`` move back to Idle.
    A confirm that fails for any reason (envelope deleted meanwhile,
    storage error, shuffle rejected) leaves the session Pending and
    unchanged, so the caller can retry or cancel. While a confirm is in
    flight, a second confirm or a cancel raises ConfirmationInProgressError.

    Usage::

        session = PurchaseSimulationSession(budget)
        result = session.simulate(build_purchase(food.id, Decimal("50")))
        if result.status in BLOCKING_STATUSES:
            session.cancel()
        else:
            await session.confirm()
    """

    def __init__(self, budget: Budget) -> None:
        self._budget = budget
        self._pending: Purchase | None = None
        self._result: StatusResult | None = None
        self._confirming = False

    # ─── State ────────────────────────────────────────────────────────────────

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    @property
    def pending_purchase(self) -> Purchase | None:
        return self._pending.model_copy(deep=True) if self._pending is not None else None

    @property
    def result(self) -> StatusResult | None:
        return self._result

    @property
    def amount_needed(self) -> Decimal:
        """How much of the pending purchase the envelope cannot cover itself."""
        pending = self._require_pending()
        envelope = self._budget.require_envelope(pending.envelope_id)
        return amount_needed(envelope, pending.amount)

    def status(self, envelope_id: str, today: date | None = None) -> StatusResult:
        """Current status of an envelope with no purchase applied."""
        return classify(self._budget.require_envelope(envelope_id), today=today)

    # ─── Transitions ──────────────────────────────────────────────────────────

    def simulate(self, purchase: Purchase, today: date | None = None) -> StatusResult:
        """
        Classify the purchase's envelope as if the purchase were made.

        Raises SimulationAlreadyPendingError while another purchase is
        pending, EnvelopeNotFoundError for an unknown envelope and
        InvalidPurchaseError for a non-positive amount. A failed simulate
        leaves the session as it was.
        """
        if self._pending is not None:
            raise SimulationAlreadyPendingError(self._pending.id)

        envelope = self._budget.require_envelope(purchase.envelope_id)
        result = classify(envelope, purchase, today=today)

        self._pending = purchase.model_copy(deep=True)
        self._result = result
        logger.debug("simulated purchase %s of %s: %s", purchase.id, purchase.amount, result.status)
        return result

    async def confirm(self) -> Purchase:
        """Commit the pending purchase to the budget and return to Idle."""
        pending = self._begin_confirm()
        try:
            committed = await self._budget.commit_purchase(pending)
        finally:
            self._confirming = False
        self._clear()
        return committed

    async def shuffle_and_confirm(
        self,
        allocations: Sequence[ShuffleAllocation],
        today: date | None = None,
    ) -> ShuffleTransaction:
        """
        Commit the pending purchase funded by shuffling ``allocations`` into
        its envelope, then return to Idle.
        """
        pending = self._begin_confirm()
        try:
            transaction = await self._budget.shuffle(
                pending.envelope_id,
                allocations,
                purchase=pending,
                today=today,
            )
        finally:
            self._confirming = False
        self._clear()
        return transaction

    def cancel(self) -> None:
        """Discard the pending purchase. A no-op when already Idle."""
        if self._confirming and self._pending is not None:
            raise ConfirmationInProgressError(self._pending.id)
        if self._pending is not None:
            logger.debug("cancelled simulated purchase %s", self._pending.id)
        self._clear()

    # ─── Private helpers ──────────────────────────────────────────────────────

    def _require_pending(self) -> Purchase:
        if self._pending is None:
            raise NoPendingSimulationError()
        return self._pending

    def _begin_confirm(self) -> Purchase:
        pending = self._require_pending()
        if self._confirming:
            raise ConfirmationInProgressError(pending.id)
        self._confirming = True
        return pending

    def _clear(self) -> None:
        self._pending = None
        self._result = None
