# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from decimal import Decimal


class EnvelopePaceError(Exception):
    """Base class for all envelope-pace engine errors."""

    def __init__(self, message: str, code: str = "ENVELOPE_PACE_ERROR") -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class InvalidEnvelopeError(EnvelopePaceError):
    """Raised when an envelope cannot be classified or created."""

    def __init__(self, message: str, envelope_id: str | None = None) -> None:
        super().__init__(message, code="INVALID_ENVELOPE")
        self.envelope_id = envelope_id


class EnvelopeNotFoundError(EnvelopePaceError):
    """Raised when a referenced envelope does not exist in the active budget."""

    def __init__(self, envelope_id: str) -> None:
        super().__init__(
            f"Envelope '{envelope_id}' does not exist in the active budget.",
            code="ENVELOPE_NOT_FOUND",
        )
        self.envelope_id = envelope_id


class InvalidPurchaseError(EnvelopePaceError):
    """
    Raised when a purchase has a non-positive amount or targets the wrong
    envelope.

    Attributes:
        amount: The rejected purchase amount.
        envelope_id: The envelope the purchase referenced.
    """

    def __init__(self, message: str, amount: Decimal | None = None, envelope_id: str | None = None) -> None:
        super().__init__(message, code="INVALID_PURCHASE")
        self.amount = amount
        self.envelope_id = envelope_id


class UnknownStatusError(EnvelopePaceError):
    """Raised when a status has no display descriptor."""

    def __init__(self, status: str) -> None:
        super().__init__(f"'{status}' is not a known envelope status.", code="UNKNOWN_STATUS")
        self.status = status


class InvalidScheduleError(EnvelopePaceError):
    """Raised when paycheck preferences cannot produce budgeting periods."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_SCHEDULE")


class InvalidPlanError(EnvelopePaceError):
    """
    Raised when a period plan fails validation before being persisted.

    Attributes:
        period_id: The period the plan was meant for.
        index: Position of the first offending planned envelope, if any.
    """

    def __init__(self, period_id: str, message: str, index: int | None = None) -> None:
        location = f" (entry {index})" if index is not None else ""
        super().__init__(f"Plan for period '{period_id}'{location}: {message}", code="INVALID_PLAN")
        self.period_id = period_id
        self.index = index


class CannotModifyCurrentPeriodError(EnvelopePaceError):
    """Raised when the plan store is asked to change the active period."""

    def __init__(self, period_id: str) -> None:
        super().__init__(
            f"Period '{period_id}' is the current period. "
            "Change its envelopes through the active budget instead.",
            code="CANNOT_MODIFY_CURRENT_PERIOD",
        )
        self.period_id = period_id


class InvalidLimitError(EnvelopePaceError):
    """Raised when a shuffle limit is negative."""

    def __init__(self, envelope_id: str, max_amount: object) -> None:
        super().__init__(
            f"Shuffle limit for envelope '{envelope_id}' must be an amount >= 0, got {max_amount!r}.",
            code="INVALID_LIMIT",
        )
        self.envelope_id = envelope_id
        self.max_amount = max_amount


class ShuffleLimitExceededError(EnvelopePaceError):
    """
    Raised when a shuffle would push an envelope past its shuffle limit.

    Attributes:
        envelope_id: The target envelope.
        requested: Total amount the shuffle tried to move in.
        current_shuffled: Amount already shuffled in this period.
        max_amount: The envelope's shuffle ceiling.
    """

    def __init__(
        self,
        envelope_id: str,
        requested: Decimal,
        current_shuffled: Decimal,
        max_amount: Decimal,
    ) -> None:
        super().__init__(
            f"Envelope '{envelope_id}': shuffling {requested} in would bring the "
            f"period total to {current_shuffled + requested}, above the limit of {max_amount}.",
            code="SHUFFLE_LIMIT_EXCEEDED",
        )
        self.envelope_id = envelope_id
        self.requested = requested
        self.current_shuffled = current_shuffled
        self.max_amount = max_amount


class InvalidShuffleError(EnvelopePaceError):
    """Raised when shuffle allocations reference bad or underfunded sources."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_SHUFFLE")


class SimulationAlreadyPendingError(EnvelopePaceError):
    """Raised when simulate() is called while another purchase is pending."""

    def __init__(self, pending_purchase_id: str) -> None:
        super().__init__(
            f"Purchase '{pending_purchase_id}' is still pending. "
            "Confirm or cancel it before simulating another.",
            code="SIMULATION_ALREADY_PENDING",
        )
        self.pending_purchase_id = pending_purchase_id


class NoPendingSimulationError(EnvelopePaceError):
    """Raised when confirm() is called with no simulated purchase."""

    def __init__(self) -> None:
        super().__init__(
            "There is no pending purchase to confirm. Call simulate() first.",
            code="NO_PENDING_SIMULATION",
        )


class ConfirmationInProgressError(EnvelopePaceError):
    """Raised when the pending purchase is already being committed."""

    def __init__(self, pending_purchase_id: str) -> None:
        super().__init__(
            f"Purchase '{pending_purchase_id}' is already being confirmed.",
            code="CONFIRMATION_IN_PROGRESS",
        )
        self.pending_purchase_id = pending_purchase_id


class InvalidBillError(EnvelopePaceError):
    """Raised when a bill or a bills-envelope amount fails validation."""

    def __init__(self, message: str, bill_id: str | None = None) -> None:
        super().__init__(message, code="INVALID_BILL")
        self.bill_id = bill_id


class BillNotFoundError(EnvelopePaceError):
    """Raised when a referenced bill does not exist in the bills envelope."""

    def __init__(self, bill_id: str) -> None:
        super().__init__(f"Bill '{bill_id}' does not exist.", code="BILL_NOT_FOUND")
        self.bill_id = bill_id


class InsufficientBillsFundsError(EnvelopePaceError):
    """
    Raised when the bills envelope cannot cover a bill payment.

    Attributes:
        bill_id: The bill being paid.
        amount: The bill amount.
        balance: What the bills envelope holds.
    """

    def __init__(self, bill_id: str, amount: Decimal, balance: Decimal) -> None:
        super().__init__(
            f"Bill '{bill_id}' needs {amount} but the bills envelope holds {balance}.",
            code="INSUFFICIENT_BILLS_FUNDS",
        )
        self.bill_id = bill_id
        self.amount = amount
        self.balance = balance
