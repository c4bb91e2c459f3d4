# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Tests for the Budget aggregate: envelope management, purchases, shuffles,
period rollover and persistence.
"""

from __future__ import annotations

import asyncio
from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

from envelope_pace.budget import Budget
from envelope_pace.config import EngineConfig
from envelope_pace.errors import (
    BillNotFoundError,
    CannotModifyCurrentPeriodError,
    EnvelopeNotFoundError,
    InsufficientBillsFundsError,
    InvalidBillError,
    InvalidEnvelopeError,
    InvalidPurchaseError,
    InvalidShuffleError,
    ShuffleLimitExceededError,
)
from envelope_pace.history import build_purchase
from envelope_pace.periods import next_periods
from envelope_pace.storage.file import FileStorage
from envelope_pace.storage.memory import MemoryStorage
from envelope_pace.types import (
    PaycheckPreferences,
    Period,
    PlannedEnvelope,
    Purchase,
    PurchaseFilter,
    ShuffleAllocation,
)


def take(source_id: str, amount: str) -> ShuffleAllocation:
    return ShuffleAllocation(source_envelope_id=source_id, amount=Decimal(amount))


@pytest_asyncio.fixture
async def stocked(budget, today) -> Budget:
    """Food: 100 with 90 spent. Fun: 100 with 40 spent. Both started today."""
    for envelope_id, name, spent in (("food", "Food", "90"), ("fun", "Fun", "40")):
        await budget.add_envelope(
            {"id": envelope_id, "name": name, "allocation": "100", "spent": spent, "period_length": 14},
            today=today,
        )
    return budget


# ---------------------------------------------------------------------------
# TestEnvelopeManagement
# ---------------------------------------------------------------------------


class TestEnvelopeManagement:
    @pytest.mark.asyncio
    async def test_add_envelope_creates_default_limit(self, budget, today) -> None:
        envelope = await budget.add_envelope(
            {"name": "Food", "allocation": "420", "period_length": 14},
            today=today,
        )

        assert envelope.start_date == today
        assert envelope.spent == Decimal("0")
        assert budget.has_active_budget is True
        limit = budget.shuffle_limit(envelope.id)
        assert limit.max_amount == Decimal("84.00")
        assert limit.current_shuffled == Decimal("0")

    @pytest.mark.asyncio
    async def test_configured_ratio_drives_default_limit(self, storage, today) -> None:
        budget = await Budget.open(storage, config=EngineConfig(default_shuffle_limit_ratio=Decimal("0.5")))

        envelope = await budget.add_envelope({"name": "Fun", "allocation": "33.33", "period_length": 7}, today=today)

        assert budget.shuffle_limit(envelope.id).max_amount == Decimal("16.67")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "config",
        [
            {"name": "", "allocation": "100", "period_length": 14},
            {"name": "Food", "allocation": "0", "period_length": 14},
            {"name": "Food", "allocation": "100", "period_length": 0},
            {"name": "Food", "allocation": "100", "period_length": 32},
        ],
    )
    async def test_invalid_config_is_rejected_without_saving(self, budget, storage, config) -> None:
        with pytest.raises(InvalidEnvelopeError):
            await budget.add_envelope(config)

        assert storage.state_saves == 0
        assert budget.envelopes == []

    @pytest.mark.asyncio
    async def test_duplicate_id_is_rejected(self, stocked) -> None:
        with pytest.raises(InvalidEnvelopeError):
            await stocked.add_envelope({"id": "food", "name": "Food 2", "allocation": "10", "period_length": 14})

    @pytest.mark.asyncio
    async def test_update_envelope(self, stocked) -> None:
        updated = await stocked.update_envelope("food", name="Groceries", allocation=Decimal("150"))

        assert updated.name == "Groceries"
        assert stocked.require_envelope("food").allocation == Decimal("150")

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_fields_and_bad_values(self, stocked) -> None:
        with pytest.raises(InvalidEnvelopeError):
            await stocked.update_envelope("food", previous_remaining=Decimal("5"))
        with pytest.raises(InvalidEnvelopeError):
            await stocked.update_envelope("food", allocation=Decimal("-1"))

        assert stocked.require_envelope("food").allocation == Decimal("100")

    @pytest.mark.asyncio
    async def test_delete_envelope_drops_limit_and_keeps_history(self, stocked) -> None:
        await stocked.commit_purchase(build_purchase("fun", Decimal("5")))

        await stocked.delete_envelope("fun")

        assert stocked.get_envelope("fun") is None
        assert stocked.state.find_limit("fun") is None
        assert len(stocked.purchases()) == 1

    @pytest.mark.asyncio
    async def test_reads_are_copies(self, stocked) -> None:
        stocked.envelopes[0].spent = Decimal("0")
        stocked.require_envelope("food").name = "Changed"

        assert stocked.require_envelope("food").spent == Decimal("90")
        assert stocked.require_envelope("food").name == "Food"

    @pytest.mark.asyncio
    async def test_statuses_cover_every_envelope(self, stocked, today) -> None:
        statuses = stocked.statuses(today)

        assert set(statuses) == {"food", "fun"}
        # Day 1 of 14 on 100: expected spend is 100/14, so 90 spent is well past danger.
        assert statuses["food"].status == "danger"
        assert stocked.status("fun", today).status == "danger"

    @pytest.mark.asyncio
    async def test_unknown_envelope_raises(self, budget) -> None:
        with pytest.raises(EnvelopeNotFoundError):
            budget.require_envelope("missing")


# ---------------------------------------------------------------------------
# TestPurchases
# ---------------------------------------------------------------------------


class TestPurchases:
    @pytest.mark.asyncio
    async def test_commit_updates_spent_and_log_together(self, stocked, storage) -> None:
        purchase = build_purchase("food", Decimal("7.50"), item="lunch")

        await stocked.commit_purchase(purchase)

        assert stocked.require_envelope("food").spent == Decimal("97.50")
        assert [p.id for p in stocked.purchases()] == [purchase.id]
        saved = await storage.load_state()
        assert saved.find_envelope("food").spent == Decimal("97.50")
        assert [p.id for p in saved.purchases] == [purchase.id]

    @pytest.mark.asyncio
    async def test_storage_failure_leaves_state_untouched(self, stocked, storage) -> None:
        storage.fail_next_save = True

        with pytest.raises(OSError):
            await stocked.commit_purchase(build_purchase("food", Decimal("5")))

        assert stocked.require_envelope("food").spent == Decimal("90")
        assert stocked.purchases() == []
        assert (await storage.load_state()).find_envelope("food").spent == Decimal("90")

    @pytest.mark.asyncio
    async def test_unknown_envelope_raises(self, stocked) -> None:
        with pytest.raises(EnvelopeNotFoundError):
            await stocked.commit_purchase(build_purchase("missing", Decimal("5")))

    @pytest.mark.asyncio
    async def test_non_positive_amount_raises(self, stocked) -> None:
        with pytest.raises(InvalidPurchaseError):
            await stocked.commit_purchase(Purchase(envelope_id="food", amount=Decimal("0")))

    @pytest.mark.parametrize("amount", ["abc", "NaN", None, "Infinity"])
    def test_build_purchase_rejects_non_numeric_amount(self, amount) -> None:
        with pytest.raises(InvalidPurchaseError) as excinfo:
            build_purchase("food", amount)

        assert excinfo.value.envelope_id == "food"

    @pytest.mark.asyncio
    async def test_purchase_filter(self, stocked, today) -> None:
        await stocked.commit_purchase(build_purchase("food", Decimal("3"), occurred_on=today - timedelta(days=2)))
        await stocked.commit_purchase(build_purchase("fun", Decimal("12"), occurred_on=today))
        await stocked.commit_purchase(build_purchase("food", Decimal("4"), occurred_on=today))

        food_only = stocked.purchases(PurchaseFilter(envelope_id="food"))
        recent = stocked.purchases(PurchaseFilter(since=today))
        large = stocked.purchases(PurchaseFilter(min_amount=Decimal("4"), max_amount=Decimal("10")))

        assert [p.amount for p in food_only] == [Decimal("3"), Decimal("4")]
        assert [p.amount for p in recent] == [Decimal("12"), Decimal("4")]
        assert [p.amount for p in large] == [Decimal("4")]


# ---------------------------------------------------------------------------
# TestShuffles
# ---------------------------------------------------------------------------


class TestShuffles:
    @pytest.mark.asyncio
    async def test_shuffle_moves_allocation_and_records_transaction(self, stocked) -> None:
        transaction = await stocked.shuffle("food", [take("fun", "15")])

        assert stocked.require_envelope("food").allocation == Decimal("115")
        assert stocked.require_envelope("fun").allocation == Decimal("85")
        assert stocked.shuffle_limit("food").current_shuffled == Decimal("15")
        assert [t.id for t in stocked.shuffle_transactions("food")] == [transaction.id]
        assert stocked.shuffle_transactions("fun") == []

    @pytest.mark.asyncio
    async def test_default_limit_rejects_large_shuffle(self, stocked) -> None:
        # Default ceiling is 20% of 100.
        with pytest.raises(ShuffleLimitExceededError):
            await stocked.shuffle("food", [take("fun", "25")])

        assert stocked.require_envelope("food").allocation == Decimal("100")
        assert stocked.require_envelope("fun").allocation == Decimal("100")
        assert stocked.shuffle_transactions() == []

    @pytest.mark.asyncio
    async def test_raised_limit_allows_larger_shuffle(self, stocked) -> None:
        await stocked.set_shuffle_limit("food", Decimal("50"))

        await stocked.shuffle("food", [take("fun", "25")])

        assert stocked.shuffle_limit("food").current_shuffled == Decimal("25")

    @pytest.mark.asyncio
    async def test_shuffle_with_purchase_commits_both(self, stocked, storage) -> None:
        purchase = build_purchase("food", Decimal("25"))

        transaction = await stocked.shuffle("food", [take("fun", "15")], purchase=purchase)

        food = stocked.require_envelope("food")
        assert food.allocation == Decimal("115")
        assert food.spent == Decimal("115")
        assert transaction.purchase_id == purchase.id
        saved = await storage.load_state()
        assert [p.id for p in saved.purchases] == [purchase.id]
        assert len(saved.shuffle_transactions) == 1

    @pytest.mark.asyncio
    async def test_storage_failure_during_shuffle_changes_nothing(self, stocked, storage) -> None:
        storage.fail_next_save = True

        with pytest.raises(OSError):
            await stocked.shuffle("food", [take("fun", "15")], purchase=build_purchase("food", Decimal("25")))

        assert stocked.require_envelope("food").allocation == Decimal("100")
        assert stocked.shuffle_limit("food").current_shuffled == Decimal("0")
        assert stocked.purchases() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("allocations", "error"),
        [
            ([], InvalidShuffleError),
            ([take("food", "5")], InvalidShuffleError),
            ([take("missing", "5")], EnvelopeNotFoundError),
            ([take("fun", "10"), take("fun", "55")], InvalidShuffleError),
        ],
    )
    async def test_bad_sources_are_rejected(self, stocked, allocations, error) -> None:
        await stocked.set_shuffle_limit("food", Decimal("100"))

        with pytest.raises(error):
            await stocked.shuffle("food", allocations)

        assert stocked.shuffle_transactions() == []

    @pytest.mark.asyncio
    async def test_source_cannot_be_emptied_of_allocation(self, budget, today) -> None:
        await budget.add_envelope({"id": "a", "name": "A", "allocation": "10", "period_length": 14}, today=today)
        await budget.add_envelope({"id": "b", "name": "B", "allocation": "100", "period_length": 14}, today=today)

        with pytest.raises(InvalidShuffleError):
            await budget.shuffle("b", [take("a", "10")])

    @pytest.mark.asyncio
    async def test_purchase_for_another_envelope_is_rejected(self, stocked) -> None:
        with pytest.raises(InvalidPurchaseError):
            await stocked.shuffle("food", [take("fun", "5")], purchase=build_purchase("fun", Decimal("5")))

    @pytest.mark.asyncio
    async def test_unknown_target_raises(self, stocked) -> None:
        with pytest.raises(EnvelopeNotFoundError):
            await stocked.shuffle("missing", [take("fun", "5")])


# ---------------------------------------------------------------------------
# TestRollover
# ---------------------------------------------------------------------------


class TestRollover:
    @pytest.mark.asyncio
    async def test_new_period_carries_remainders_and_custom_limits(self, stocked) -> None:
        await stocked.set_shuffle_limit("food", Decimal("50"))
        await stocked.shuffle("food", [take("fun", "10")])
        await stocked.commit_purchase(build_purchase("fun", Decimal("5")))

        period = await stocked.start_new_period(
            date(2026, 10, 23),
            14,
            [
                {"name": "Food", "allocation": "100", "period_length": 14},
                {"name": "Fun", "allocation": "100", "period_length": 14},
                {"name": "Rent", "allocation": "900", "period_length": 14},
            ],
        )

        assert period.id == "2026-10-23+14"
        assert period.end_date == date(2026, 11, 5)
        by_name = {envelope.name: envelope for envelope in stocked.envelopes}
        assert by_name["Food"].previous_remaining == Decimal("20")
        assert by_name["Fun"].previous_remaining == Decimal("45")
        assert by_name["Rent"].previous_remaining == Decimal("0")
        assert all(envelope.spent == 0 for envelope in by_name.values())
        assert all(envelope.start_date == date(2026, 10, 23) for envelope in by_name.values())

        assert stocked.shuffle_limit(by_name["Food"].id).max_amount == Decimal("50")
        assert stocked.shuffle_limit(by_name["Food"].id).current_shuffled == Decimal("0")
        assert stocked.shuffle_limit(by_name["Rent"].id).max_amount == Decimal("180.00")
        assert len(stocked.purchases()) == 1
        assert len(stocked.shuffle_transactions()) == 1
        assert stocked.active_period == period

    @pytest.mark.asyncio
    async def test_period_ending_before_it_starts_is_rejected(self, stocked) -> None:
        with pytest.raises(InvalidEnvelopeError):
            await stocked.start_new_period(date(2026, 10, 23), 14, [], end_date=date(2026, 10, 20))

    @pytest.mark.asyncio
    async def test_planned_period_uses_and_consumes_plan(self, stocked, storage, today) -> None:
        prefs = PaycheckPreferences(paycheck_frequency="biweekly", next_payday=date(2026, 10, 23))
        current, upcoming, _ = stocked.next_periods(prefs, today)
        rent = [PlannedEnvelope(name="Rent", allocation="900", period_length=14)]
        await stocked.plans.save(upcoming.id, rent, today=today)

        with pytest.raises(CannotModifyCurrentPeriodError):
            await stocked.plans.save(current.id, rent, today=today)

        started = await stocked.start_planned_period(upcoming)

        assert started.id == upcoming.id
        assert [envelope.name for envelope in stocked.envelopes] == ["Rent"]
        assert stocked.plans.has_plan(upcoming.id) is False
        assert await storage.load_plans() == {}
        assert stocked.plans.current_period_id == upcoming.id

    @pytest.mark.asyncio
    async def test_unplanned_period_copies_current_envelopes(self, stocked) -> None:
        period = Period(
            id="2026-10-23+14",
            start_date=date(2026, 10, 23),
            end_date=date(2026, 11, 5),
            period_length=14,
        )

        await stocked.start_planned_period(period)

        envelopes = stocked.envelopes
        assert [(e.name, e.allocation, e.spent) for e in envelopes] == [
            ("Food", Decimal("100"), Decimal("0")),
            ("Fun", Decimal("100"), Decimal("0")),
        ]
        assert envelopes[0].previous_remaining == Decimal("10")

    @pytest.mark.asyncio
    async def test_new_envelopes_join_the_active_period(self, stocked) -> None:
        await stocked.start_new_period(date(2026, 10, 23), 14, [{"name": "Food", "allocation": "100", "period_length": 14}])

        added = await stocked.add_envelope({"name": "Gas", "allocation": "60", "period_length": 14})

        assert added.start_date == date(2026, 10, 23)


# ---------------------------------------------------------------------------
# TestPersistence
# ---------------------------------------------------------------------------


class TestPersistence:
    @pytest.mark.asyncio
    async def test_reopened_file_budget_matches(self, tmp_path, today) -> None:
        budget = await Budget.open(FileStorage(tmp_path))
        food = await budget.add_envelope({"name": "Food", "allocation": "420", "period_length": 14}, today=today)
        await budget.commit_purchase(build_purchase(food.id, Decimal("12.34"), occurred_on=today))
        await budget.plans.save(
            "2026-11-06+14",
            [PlannedEnvelope(name="Food", allocation="400", period_length=14)],
            Decimal("150"),
            today=today,
        )

        reopened = await Budget.open(FileStorage(tmp_path))

        assert reopened.state == budget.state
        assert reopened.require_envelope(food.id).spent == Decimal("12.34")
        assert reopened.plans.get("2026-11-06+14") == budget.plans.get("2026-11-06+14")
        assert reopened.plans.bills_allocation("2026-11-06+14") == Decimal("150")


# ---------------------------------------------------------------------------
# TestConcurrentMutations
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def slow_budget(slow_storage, today) -> Budget:
    """Food: 100, nothing spent, over a store whose saves suspend."""
    budget = await Budget.open(slow_storage)
    await budget.add_envelope(
        {"id": "food", "name": "Food", "allocation": "100", "period_length": 14},
        today=today,
    )
    return budget


class TestConcurrentMutations:
    @pytest.mark.asyncio
    async def test_overlapping_purchases_all_land(self, slow_budget, slow_storage) -> None:
        first = build_purchase("food", Decimal("10"))
        second = build_purchase("food", Decimal("20"))

        await asyncio.gather(slow_budget.commit_purchase(first), slow_budget.commit_purchase(second))

        assert slow_budget.require_envelope("food").spent == Decimal("30")
        assert sorted(p.id for p in slow_budget.purchases()) == sorted([first.id, second.id])
        assert await slow_storage.load_state() == slow_budget.state

    @pytest.mark.asyncio
    async def test_overlapping_adds_keep_every_envelope(self, slow_budget, today) -> None:
        await asyncio.gather(
            *(
                slow_budget.add_envelope({"name": name, "allocation": "50", "period_length": 14}, today=today)
                for name in ("Fun", "Gas", "Gifts")
            )
        )

        assert sorted(envelope.name for envelope in slow_budget.envelopes) == ["Food", "Fun", "Gas", "Gifts"]
        assert len(slow_budget.state.shuffle_limits) == 4

    @pytest.mark.asyncio
    async def test_overlapping_bill_changes_all_land(self, slow_budget, slow_storage) -> None:
        await asyncio.gather(
            slow_budget.add_bill({"name": "Rent", "amount": "900", "due_day": 1}),
            slow_budget.add_money_to_bills(Decimal("300")),
            slow_budget.commit_purchase(build_purchase("food", Decimal("5"))),
        )

        stored = await slow_storage.load_state()
        assert [bill.name for bill in stored.bills.bills] == ["Rent"]
        assert stored.bills.current_balance == Decimal("300")
        assert stored.find_envelope("food").spent == Decimal("5")


# ---------------------------------------------------------------------------
# TestPlanGuardWithoutKnownCurrentPeriod
# ---------------------------------------------------------------------------


class TestPlanGuardWithoutKnownCurrentPeriod:
    @pytest.mark.asyncio
    async def test_fresh_budget_refuses_plan_for_todays_period(self, today) -> None:
        budget = await Budget.open(MemoryStorage())
        prefs = PaycheckPreferences(paycheck_frequency="biweekly", next_payday=date(2026, 10, 23))
        current = next_periods(prefs, today)[0]
        assert budget.plans.current_period_id is None

        with pytest.raises(CannotModifyCurrentPeriodError):
            await budget.plans.save(
                current.id, [PlannedEnvelope(name="Food", allocation="420", period_length=14)], today=today
            )

        assert budget.plans.has_plan(current.id) is False

    @pytest.mark.asyncio
    async def test_stale_active_period_does_not_open_todays_period(self, budget, today) -> None:
        await budget.start_new_period(
            date(2026, 9, 25), 14, [{"name": "Food", "allocation": "100", "period_length": 14}]
        )
        assert budget.plans.current_period_id == "2026-09-25+14"

        with pytest.raises(CannotModifyCurrentPeriodError):
            await budget.plans.delete("2026-10-09+14", today=today)


# ---------------------------------------------------------------------------
# TestBillsEnvelope
# ---------------------------------------------------------------------------


class TestBillsEnvelope:
    @pytest.mark.asyncio
    async def test_add_bill_is_persisted(self, budget, storage) -> None:
        bill = await budget.add_bill({"name": "Rent", "amount": "900", "due_day": 1})

        assert budget.bills_envelope.bills == [bill]
        assert (await storage.load_state()).bills.bills == [bill]

    @pytest.mark.asyncio
    async def test_pay_recurring_bill_records_payment(self, budget, today) -> None:
        bill = await budget.add_bill({"name": "Phone", "amount": "45", "due_day": 20})
        await budget.add_money_to_bills(Decimal("100"))

        envelope = await budget.pay_bill(bill.id, today=today)

        assert envelope.current_balance == Decimal("55")
        assert envelope.bills[0].last_paid_on == today

    @pytest.mark.asyncio
    async def test_pay_one_off_bill_removes_it(self, budget, today) -> None:
        bill = await budget.add_bill({"name": "Car tax", "amount": "120", "due_day": 5, "is_recurring": False})
        await budget.add_money_to_bills(Decimal("120"))

        envelope = await budget.pay_bill(bill.id, today=today)

        assert envelope.current_balance == Decimal("0")
        assert envelope.bills == []

    @pytest.mark.asyncio
    async def test_pay_without_funds_changes_nothing(self, budget, storage, today) -> None:
        bill = await budget.add_bill({"name": "Rent", "amount": "900", "due_day": 1})
        await budget.add_money_to_bills(Decimal("100"))
        saves = storage.state_saves

        with pytest.raises(InsufficientBillsFundsError):
            await budget.pay_bill(bill.id, today=today)

        assert budget.bills_envelope.current_balance == Decimal("100")
        assert budget.bills_envelope.bills[0].last_paid_on is None
        assert storage.state_saves == saves

    @pytest.mark.asyncio
    async def test_update_and_delete_bill(self, budget) -> None:
        bill = await budget.add_bill({"name": "Rent", "amount": "900", "due_day": 1})

        updated = await budget.update_bill(bill.id, amount=Decimal("950"), due_day=3)
        assert (updated.amount, updated.due_day, updated.id) == (Decimal("950"), 3, bill.id)

        with pytest.raises(InvalidBillError):
            await budget.update_bill(bill.id, last_paid_on=date(2026, 10, 1))

        await budget.delete_bill(bill.id)
        assert budget.bills_envelope.bills == []
        with pytest.raises(BillNotFoundError):
            await budget.delete_bill(bill.id)

    @pytest.mark.asyncio
    async def test_failed_save_leaves_bills_unchanged(self, budget, storage) -> None:
        await budget.add_money_to_bills(Decimal("50"))
        storage.fail_next_save = True

        with pytest.raises(OSError):
            await budget.add_money_to_bills(Decimal("25"))

        assert budget.bills_envelope.current_balance == Decimal("50")

    @pytest.mark.asyncio
    async def test_bills_summary_uses_current_state(self, budget, today) -> None:
        await budget.add_bill({"name": "Rent", "amount": "1000", "due_day": 1})
        await budget.add_money_to_bills(Decimal("1150"))
        prefs = PaycheckPreferences(paycheck_frequency="monthly", next_payday=date(2026, 11, 1))

        summary = budget.bills_summary(prefs, today=today)

        assert summary.has_reached_cushion is True
        assert summary.required_per_paycheck == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_planned_bills_allocation_funds_bills_on_rollover(self, stocked, today) -> None:
        prefs = PaycheckPreferences(paycheck_frequency="biweekly", next_payday=date(2026, 10, 23))
        _, upcoming, _ = stocked.next_periods(prefs, today)
        await stocked.plans.save(
            upcoming.id,
            [PlannedEnvelope(name="Food", allocation="100", period_length=14)],
            Decimal("250"),
            today=today,
        )

        await stocked.start_planned_period(upcoming)

        assert stocked.bills_envelope.current_balance == Decimal("250")

    @pytest.mark.asyncio
    async def test_new_period_bills_allocation_accumulates(self, stocked) -> None:
        entries = [{"name": "Food", "allocation": "100", "period_length": 14}]
        await stocked.start_new_period(date(2026, 10, 23), 14, entries, bills_allocation=Decimal("80"))
        await stocked.start_new_period(date(2026, 11, 6), 14, entries, bills_allocation=Decimal("20"))

        assert stocked.bills_envelope.current_balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_template_rollover_leaves_bills_alone(self, stocked) -> None:
        await stocked.add_money_to_bills(Decimal("40"))
        period = Period(
            id="2026-10-23+14",
            start_date=date(2026, 10, 23),
            end_date=date(2026, 11, 5),
            period_length=14,
        )

        await stocked.start_planned_period(period)

        assert stocked.bills_envelope.current_balance == Decimal("40")
