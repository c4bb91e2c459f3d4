# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from envelope_pace import bills, ledger
from envelope_pace.config import EngineConfig
from envelope_pace.errors import (
    EnvelopeNotFoundError,
    InvalidEnvelopeError,
    InvalidPurchaseError,
    InvalidShuffleError,
)
from envelope_pace.history import filter_purchases, shuffles_into
from envelope_pace.periods import days_between, next_periods, period_end, period_id
from envelope_pace.plans import PeriodPlanStore, template_from
from envelope_pace.status import classify
from envelope_pace.storage.interface import BudgetStorage
from envelope_pace.types import (
    Bill,
    BillsEnvelope,
    BillsSummary,
    BudgetState,
    Envelope,
    EnvelopeConfig,
    PaycheckPreferences,
    Period,
    Purchase,
    PurchaseFilter,
    ShuffleAllocation,
    ShuffleLimit,
    ShuffleTransaction,
    StatusResult,
)

logger = logging.getLogger("envelope_pace.budget")

EnvelopeInput = Union[EnvelopeConfig, BaseModel, Mapping[str, Any]]

_UPDATABLE_FIELDS = frozenset({"name", "allocation", "spent", "start_date", "period_length"})


def _validate_config(data: EnvelopeInput) -> EnvelopeConfig:
    raw = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    fields = {key: raw[key] for key in EnvelopeConfig.model_fields if key in raw}
    try:
        return EnvelopeConfig.model_validate(fields)
    except ValidationError as exc:
        raise InvalidEnvelopeError(f"Invalid envelope: {exc}", envelope_id=raw.get("id")) from exc


class Budget:
    """
    Owner of the single live active-budget aggregate.

    Design contract
    ---------------
    - Every mutation builds a new BudgetState and persists it with one
      ``save_state`` call. The new state replaces the in-memory one only
      after the write succeeds; if storage raises, the error propagates and
      the previous state stays authoritative.
    - Paired writes (spent + purchase log, shuffle total + shuffle log) are
      always part of the same saved state.
    - Reads return deep copies; mutating them has no effect.
    - Shuffle totals are reset only by a period rollover.
    - Mutations are serialized on one lock, so overlapping calls apply in
      turn and never overwrite each other's saved state.

    Usage
    -----
    ::

        budget = await Budget.open(FileStorage("~/.envelope-pace"))
        food = await budget.add_envelope(
            EnvelopeConfig(name="Food", allocation=Decimal("420"), period_length=14)
        )
        session = PurchaseSimulationSession(budget)
        result = session.simulate(build_purchase(food.id, Decimal("35")))
        if result.status not in BLOCKING_STATUSES:
            await session.confirm()
        else:
            session.cancel()
    """

    def __init__(
        self,
        storage: BudgetStorage,
        state: BudgetState | None = None,
        plans: PeriodPlanStore | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._storage = storage
        self._config = config or EngineConfig()
        self._state = state.model_copy(deep=True) if state is not None else BudgetState()
        self._plans = plans if plans is not None else PeriodPlanStore(storage)
        self._lock = asyncio.Lock()
        if self._state.active_period is not None:
            self._plans.set_current_period(self._state.active_period.id)

    @classmethod
    async def open(cls, storage: BudgetStorage, config: EngineConfig | None = None) -> Budget:
        """Load the aggregate and the period plans from storage."""
        state = await storage.load_state()
        plans = PeriodPlanStore(storage)
        await plans.load()
        logger.debug("opened budget with %d envelopes", len(state.envelopes))
        return cls(storage, state=state, plans=plans, config=config)

    # ─── Read access ──────────────────────────────────────────────────────────

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def plans(self) -> PeriodPlanStore:
        return self._plans

    @property
    def state(self) -> BudgetState:
        return self._state.model_copy(deep=True)

    @property
    def envelopes(self) -> list[Envelope]:
        return [envelope.model_copy(deep=True) for envelope in self._state.envelopes]

    @property
    def active_period(self) -> Period | None:
        period = self._state.active_period
        return period.model_copy() if period is not None else None

    @property
    def has_active_budget(self) -> bool:
        return bool(self._state.envelopes)

    def get_envelope(self, envelope_id: str) -> Envelope | None:
        envelope = self._state.find_envelope(envelope_id)
        return envelope.model_copy(deep=True) if envelope is not None else None

    def require_envelope(self, envelope_id: str) -> Envelope:
        envelope = self.get_envelope(envelope_id)
        if envelope is None:
            raise EnvelopeNotFoundError(envelope_id)
        return envelope

    def shuffle_limit(self, envelope_id: str) -> ShuffleLimit:
        return ledger.get_limit(self._state, envelope_id)

    def purchases(self, purchase_filter: PurchaseFilter | None = None) -> list[Purchase]:
        """
        Return committed purchase history, optionally filtered.

        All filter fields are AND-ed together. Pass None to return all records.
        """
        return filter_purchases(self._state.purchases, purchase_filter)

    def shuffle_transactions(self, envelope_id: str | None = None) -> list[ShuffleTransaction]:
        if envelope_id is None:
            return [transaction.model_copy(deep=True) for transaction in self._state.shuffle_transactions]
        return shuffles_into(self._state.shuffle_transactions, envelope_id)

    def status(self, envelope_id: str, today: date | None = None) -> StatusResult:
        return classify(self.require_envelope(envelope_id), today=today)

    def statuses(self, today: date | None = None) -> dict[str, StatusResult]:
        """Baseline status of every envelope, keyed by envelope id."""
        return {envelope.id: classify(envelope, today=today) for envelope in self._state.envelopes}

    def next_periods(
        self,
        preferences: PaycheckPreferences,
        today: date | None = None,
        count: int | None = None,
    ) -> list[Period]:
        """
        Current and upcoming periods for this budget's paycheck schedule,
        anchored on the active period and flagged against saved plans.

        The returned current period becomes the one the plan store refuses
        to modify.
        """
        periods = next_periods(
            preferences,
            today or date.today(),
            count if count is not None else self._config.plan_horizon,
            active=self._state.active_period,
            plans=self._plans,
        )
        self._plans.set_current_period(periods[0].id)
        return periods

    # ─── Envelope management ──────────────────────────────────────────────────

    async def add_envelope(self, config: EnvelopeInput, today: date | None = None) -> Envelope:
        """
        Add an envelope to the active budget along with its default shuffle
        limit (``default_shuffle_limit_ratio`` of the allocation).

        The envelope starts with the active period unless ``config`` names a
        start date.
        """
        validated = _validate_config(config)
        async with self._lock:
            start_date = validated.start_date
            if start_date is None:
                active = self._state.active_period
                start_date = active.start_date if active is not None else (today or date.today())

            fields: dict[str, Any] = {
                "name": validated.name,
                "allocation": validated.allocation,
                "spent": validated.spent,
                "start_date": start_date,
                "period_length": validated.period_length,
            }
            if validated.id is not None:
                if self._state.find_envelope(validated.id) is not None:
                    raise InvalidEnvelopeError(
                        f"Envelope id '{validated.id}' is already in use.", envelope_id=validated.id
                    )
                fields["id"] = validated.id
            envelope = Envelope(**fields)

            new_state = self._state.model_copy(
                update={"envelopes": [*self._state.envelopes, envelope]},
                deep=True,
            )
            new_state = ledger.set_limit(new_state, envelope.id, self._default_limit(envelope.allocation))
            await self._commit(new_state)

        logger.info("added envelope %s (%s) with allocation %s", envelope.id, envelope.name, envelope.allocation)
        return envelope.model_copy(deep=True)

    async def update_envelope(self, envelope_id: str, **changes: Any) -> Envelope:
        """
        Change an envelope's name, allocation, spent, start date or period
        length. The result is validated as a whole before anything is saved.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise InvalidEnvelopeError(
                f"Cannot update envelope fields {sorted(unknown)}.", envelope_id=envelope_id
            )

        async with self._lock:
            current = self.require_envelope(envelope_id)
            merged = {**current.model_dump(), **changes}
            validated = _validate_config(merged)
            updated = current.model_copy(
                update={
                    "name": validated.name,
                    "allocation": validated.allocation,
                    "spent": validated.spent,
                    "start_date": validated.start_date or current.start_date,
                    "period_length": validated.period_length,
                }
            )

            envelopes = [updated if envelope.id == envelope_id else envelope for envelope in self._state.envelopes]
            await self._commit(self._state.model_copy(update={"envelopes": envelopes}, deep=True))

        logger.info("updated envelope %s: %s", envelope_id, sorted(changes))
        return updated.model_copy(deep=True)

    async def delete_envelope(self, envelope_id: str) -> None:
        """Remove an envelope and its shuffle limit. History is kept."""
        async with self._lock:
            self.require_envelope(envelope_id)
            new_state = self._state.model_copy(
                update={
                    "envelopes": [envelope for envelope in self._state.envelopes if envelope.id != envelope_id],
                    "shuffle_limits": [
                        limit for limit in self._state.shuffle_limits if limit.envelope_id != envelope_id
                    ],
                },
                deep=True,
            )
            await self._commit(new_state)
        logger.info("deleted envelope %s", envelope_id)

    # ─── Purchases ────────────────────────────────────────────────────────────

    async def commit_purchase(self, purchase: Purchase) -> Purchase:
        """
        Append a purchase to the log and add its amount to the envelope's
        spent, as one persisted unit.

        Raises EnvelopeNotFoundError if the envelope no longer exists and
        InvalidPurchaseError for a non-positive amount.
        """
        async with self._lock:
            new_state = self._with_purchase(self._state, purchase)
            await self._commit(new_state)
        logger.info(
            "committed purchase %s of %s against envelope %s",
            purchase.id,
            purchase.amount,
            purchase.envelope_id,
        )
        return purchase.model_copy(deep=True)

    # ─── Shuffles ─────────────────────────────────────────────────────────────

    async def set_shuffle_limit(self, envelope_id: str, max_amount: Decimal) -> ShuffleLimit:
        """Set how much may be shuffled into an envelope this period."""
        async with self._lock:
            self.require_envelope(envelope_id)
            new_state = ledger.set_limit(self._state, envelope_id, max_amount)
            await self._commit(new_state)
        logger.info("set shuffle limit for envelope %s to %s", envelope_id, max_amount)
        return ledger.get_limit(new_state, envelope_id)

    async def shuffle(
        self,
        target_envelope_id: str,
        allocations: Sequence[ShuffleAllocation],
        purchase: Purchase | None = None,
        today: date | None = None,
    ) -> ShuffleTransaction:
        """
        Move allocation from source envelopes into a target envelope.

        The target's shuffle limit is checked through the ledger; each
        source must exist, differ from the target and have enough remaining
        balance, and may not be left with no allocation at all. When a
        purchase is given it is committed against the target in the same
        persisted unit, so the money moved and the spend it funded are
        never saved apart.

        Raises EnvelopeNotFoundError, InvalidShuffleError,
        ShuffleLimitExceededError, or InvalidPurchaseError.
        """
        if not allocations:
            raise InvalidShuffleError("A shuffle needs at least one source allocation.")

        async with self._lock:
            target = self.require_envelope(target_envelope_id)

            taken: dict[str, Decimal] = {}
            for allocation in allocations:
                source_id = allocation.source_envelope_id
                if source_id == target.id:
                    raise InvalidShuffleError(f"Envelope '{source_id}' cannot be shuffled into itself.")
                if self._state.find_envelope(source_id) is None:
                    raise EnvelopeNotFoundError(source_id)
                taken[source_id] = taken.get(source_id, Decimal("0")) + allocation.amount

            for source_id, amount in taken.items():
                source = self._state.find_envelope(source_id)
                assert source is not None  # checked above
                if amount > source.remaining:
                    raise InvalidShuffleError(
                        f"Envelope '{source.name}' has {source.remaining} left; cannot take {amount}."
                    )
                if amount >= source.allocation:
                    raise InvalidShuffleError(
                        f"Taking {amount} would leave envelope '{source.name}' with no allocation."
                    )

            if purchase is not None and purchase.envelope_id != target.id:
                raise InvalidPurchaseError(
                    f"Purchase targets envelope '{purchase.envelope_id}', not the shuffle target '{target.id}'.",
                    amount=purchase.amount,
                    envelope_id=purchase.envelope_id,
                )

            transaction_fields: dict[str, Any] = {
                "target_envelope_id": target.id,
                "allocations": [allocation.model_copy() for allocation in allocations],
                "purchase_id": purchase.id if purchase is not None else None,
            }
            if today is not None:
                transaction_fields["occurred_on"] = today
            transaction = ShuffleTransaction(**transaction_fields)

            new_state = ledger.apply_shuffle(self._state, transaction)
            total = transaction.total_amount
            envelopes = []
            for envelope in new_state.envelopes:
                if envelope.id == target.id:
                    envelope = envelope.model_copy(update={"allocation": envelope.allocation + total})
                elif envelope.id in taken:
                    envelope = envelope.model_copy(update={"allocation": envelope.allocation - taken[envelope.id]})
                envelopes.append(envelope)
            new_state = new_state.model_copy(update={"envelopes": envelopes})

            if purchase is not None:
                new_state = self._with_purchase(new_state, purchase)

            await self._commit(new_state)

        logger.info(
            "shuffled %s into envelope %s from %d sources%s",
            total,
            target.id,
            len(taken),
            f" for purchase {purchase.id}" if purchase is not None else "",
        )
        return transaction.model_copy(deep=True)

    # ─── Bills envelope ───────────────────────────────────────────────────────

    @property
    def bills_envelope(self) -> BillsEnvelope:
        return self._state.bills.model_copy(deep=True)

    def bills_summary(self, preferences: PaycheckPreferences, today: date | None = None) -> BillsSummary:
        """Funding position of the bills envelope for the paycheck schedule."""
        return bills.bills_summary(self._state.bills, preferences, today or date.today())

    async def add_bill(self, config: bills.BillInput) -> Bill:
        async with self._lock:
            new_state, bill = bills.add_bill(self._state, config)
            await self._commit(new_state)
        logger.info("added bill %s (%s) of %s due on day %d", bill.id, bill.name, bill.amount, bill.due_day)
        return bill.model_copy(deep=True)

    async def update_bill(self, bill_id: str, **changes: Any) -> Bill:
        async with self._lock:
            new_state, bill = bills.update_bill(self._state, bill_id, **changes)
            await self._commit(new_state)
        logger.info("updated bill %s: %s", bill_id, sorted(changes))
        return bill.model_copy(deep=True)

    async def delete_bill(self, bill_id: str) -> None:
        async with self._lock:
            await self._commit(bills.delete_bill(self._state, bill_id))
        logger.info("deleted bill %s", bill_id)

    async def add_money_to_bills(self, amount: Decimal) -> BillsEnvelope:
        async with self._lock:
            new_state = bills.add_money(self._state, amount)
            await self._commit(new_state)
        logger.info("added %s to the bills envelope", amount)
        return new_state.bills.model_copy(deep=True)

    async def pay_bill(self, bill_id: str, today: date | None = None) -> BillsEnvelope:
        """
        Pay a bill from the bills envelope. A one-off bill is removed once
        paid; a recurring one records the payment date.
        """
        async with self._lock:
            new_state = bills.pay_bill(self._state, bill_id, today or date.today())
            await self._commit(new_state)
        logger.info("paid bill %s, bills balance now %s", bill_id, new_state.bills.current_balance)
        return new_state.bills.model_copy(deep=True)

    # ─── Period rollover ──────────────────────────────────────────────────────

    async def start_new_period(
        self,
        start_date: date,
        period_length: int,
        envelopes: Sequence[EnvelopeInput],
        end_date: date | None = None,
        bills_allocation: Decimal = Decimal("0"),
    ) -> Period:
        """
        Roll the budget into a new period.

        The envelopes are replaced by fresh ones (new ids, nothing spent,
        ``previous_remaining`` carried from the same-named old envelope).
        Shuffle totals are reset; a ceiling set on an old envelope carries
        to its same-named successor, other envelopes get the default ratio.
        ``bills_allocation`` is added to the bills envelope. Purchase and
        shuffle history is kept.
        """
        async with self._lock:
            period = await self._roll_over(start_date, period_length, envelopes, end_date, bills_allocation)
            self._plans.set_current_period(period.id)
        return period.model_copy()

    async def start_planned_period(self, period: Period) -> Period:
        """
        Roll over into ``period`` using its saved plan, or a template of the
        current envelopes when none was saved. A consumed plan is deleted
        and its bills allocation added to the bills envelope.
        """
        async with self._lock:
            plan = self._plans.get_plan(period.id)
            if plan is not None:
                entries = plan.envelopes
                bills_allocation = plan.bills_allocation
            else:
                entries = template_from(self._state.envelopes, period.period_length)
                bills_allocation = Decimal("0")
            started = await self._roll_over(
                period.start_date, period.period_length, entries, period.end_date, bills_allocation
            )
            if plan is not None:
                await self._plans.consume(period.id)
            self._plans.set_current_period(started.id)
        return started.model_copy()

    async def _roll_over(
        self,
        start_date: date,
        period_length: int,
        entries: Sequence[EnvelopeInput],
        end_date: date | None,
        bills_allocation: Decimal,
    ) -> Period:
        if end_date is None:
            end_date = period_end(start_date, period_length)
        length = days_between(start_date, end_date) + 1
        if length < 1:
            raise InvalidEnvelopeError(f"Period ending {end_date} starts after it ends ({start_date}).")

        validated = [_validate_config(entry) for entry in entries]
        reset = ledger.reset_period(self._state)
        if bills_allocation:
            reset = bills.add_money(reset, bills_allocation)
        old_by_name = {envelope.name: envelope for envelope in reset.envelopes}

        new_envelopes: list[Envelope] = []
        new_state = reset.model_copy(update={"envelopes": [], "shuffle_limits": []}, deep=True)
        for config in validated:
            previous = old_by_name.get(config.name)
            envelope = Envelope(
                name=config.name,
                allocation=config.allocation,
                start_date=start_date,
                period_length=config.period_length,
                previous_remaining=max(Decimal("0"), previous.remaining) if previous is not None else Decimal("0"),
            )
            new_envelopes.append(envelope)

            previous_limit = reset.find_limit(previous.id) if previous is not None else None
            max_amount = (
                previous_limit.max_amount if previous_limit is not None else self._default_limit(envelope.allocation)
            )
            new_state = ledger.set_limit(new_state, envelope.id, max_amount)

        period = Period(
            id=period_id(start_date, length),
            start_date=start_date,
            end_date=end_date,
            period_length=length,
            is_current=True,
            is_planned=True,
        )
        new_state = new_state.model_copy(update={"envelopes": new_envelopes, "active_period": period})
        await self._commit(new_state)

        logger.info(
            "started period %s (%s to %s) with %d envelopes and %s for bills",
            period.id,
            period.start_date,
            period.end_date,
            len(new_envelopes),
            bills_allocation,
        )
        return period

    # ─── Private helpers ──────────────────────────────────────────────────────

    def _default_limit(self, allocation: Decimal) -> Decimal:
        return (allocation * self._config.default_shuffle_limit_ratio).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    def _with_purchase(self, state: BudgetState, purchase: Purchase) -> BudgetState:
        if purchase.amount <= 0:
            raise InvalidPurchaseError(
                f"Purchase amount must be positive, got {purchase.amount}.",
                amount=purchase.amount,
                envelope_id=purchase.envelope_id,
            )
        if state.find_envelope(purchase.envelope_id) is None:
            raise EnvelopeNotFoundError(purchase.envelope_id)

        envelopes = [
            envelope.model_copy(update={"spent": envelope.spent + purchase.amount})
            if envelope.id == purchase.envelope_id
            else envelope
            for envelope in state.envelopes
        ]
        return state.model_copy(
            update={
                "envelopes": envelopes,
                "purchases": [*state.purchases, purchase.model_copy(deep=True)],
            },
            deep=True,
        )

    async def _commit(self, new_state: BudgetState) -> None:
        """Persist ``new_state`` and adopt it only once storage accepts it."""
        await self._storage.save_state(new_state)
        self._state = new_state
