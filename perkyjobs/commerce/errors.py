"""Error taxonomy for perkyjobs commerce.

All errors raised by the lifecycle engine, the settlement orchestrator and
the payment client derive from CommerceError, so callers can catch the
whole family at a service boundary.

- ValidationError: missing or malformed input. Not retried.
- NotFoundError: unknown job, user or record id.
- AuthorizationError: actor is not allowed to perform the change.
- InvalidTransitionError / TerminalStateError / InvalidStateError: state
  machine precondition violated. Re-query the job before retrying.
- PaymentVerificationError / PaymentSettlementError: facilitator rejected
  the exchange. Nothing was written, so a fresh envelope may be submitted.
- SettlementRecordError: the payment settled but the job record could not
  be updated. Needs out-of-band reconciliation.
"""

from typing import Optional


class CommerceError(Exception):
    """Base error for commerce operations."""

    pass


class ValidationError(CommerceError):
    """Required input is missing or malformed."""

    pass


class NotFoundError(CommerceError):
    """Referenced record does not exist."""

    pass


class AuthorizationError(CommerceError):
    """Actor is not permitted to perform this change."""

    pass


class InvalidTransitionError(CommerceError):
    """Requested status change is not allowed from the current status."""

    pass


class TerminalStateError(InvalidTransitionError):
    """Job is in a terminal status and cannot change."""

    pass


class InvalidStateError(CommerceError):
    """Operation requires the job to be in a different status."""

    pass


class PaymentError(CommerceError):
    """Facilitator rejected or failed a payment exchange."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PaymentVerificationError(PaymentError):
    """Payment envelope failed verification."""

    pass


class PaymentSettlementError(PaymentError):
    """Verified payment failed to settle."""

    pass


class SettlementRecordError(CommerceError):
    """Payment settled on-chain but the job could not be marked paid."""

    def __init__(self, message: str, transaction: Optional[str] = None):
        super().__init__(message)
        self.transaction = transaction
