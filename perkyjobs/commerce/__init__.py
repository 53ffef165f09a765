"""perkyjobs commerce: job lifecycle, profiles and x402 settlement.

Subsystems:
- jobs: Job model and the lifecycle engine (JobService)
- payments: x402 protocol client and the settlement orchestrator
- profiles: user profiles and the reputation rule
- store: document store contract and in-memory implementation
"""

from perkyjobs.commerce.config import CommerceConfig
from perkyjobs.commerce.errors import (
    AuthorizationError,
    CommerceError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    PaymentError,
    PaymentSettlementError,
    PaymentVerificationError,
    SettlementRecordError,
    TerminalStateError,
    ValidationError,
)
from perkyjobs.commerce.profiles import ProfileService, UserProfile
from perkyjobs.commerce.store import DocumentStore, InMemoryDocumentStore

__all__ = [
    "CommerceConfig",
    # Errors
    "CommerceError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "InvalidTransitionError",
    "TerminalStateError",
    "InvalidStateError",
    "PaymentError",
    "PaymentVerificationError",
    "PaymentSettlementError",
    "SettlementRecordError",
    # Profiles
    "ProfileService",
    "UserProfile",
    # Storage
    "DocumentStore",
    "InMemoryDocumentStore",
]
