"""Job data models for the perkyjobs marketplace.

Job lifecycle:
    open → claimed → delivered → approved → paid
    claimed → open (poster cancels the claim)
    any non-terminal status → disputed

``paid`` and ``disputed`` are terminal. Entry into ``disputed`` is decided
outside the core.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

from perkyjobs.commerce.errors import ValidationError


class JobStatus(str, Enum):
    """Job lifecycle status."""

    OPEN = "open"
    CLAIMED = "claimed"
    DELIVERED = "delivered"
    APPROVED = "approved"
    PAID = "paid"
    DISPUTED = "disputed"


TERMINAL_STATUSES = frozenset({JobStatus.PAID, JobStatus.DISPUTED})

DEFAULT_CURRENCY = "USDT"

_AMOUNT_PATTERN = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_CURRENCY_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9]*")


@dataclass(frozen=True)
class Reward:
    """A currency-qualified reward amount, e.g. ``25 USDT``."""

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __str__(self) -> str:
        return f"{self.amount.normalize():f} {self.currency}"


def parse_reward(text: Optional[str]) -> Reward:
    """Parse a reward string like ``"25 USDT"`` or ``"$5"`` into a Reward.

    The first number in the string is the amount and the first word is the
    currency symbol.

    Raises:
        ValidationError: If no positive amount can be extracted.
    """
    if not text or not str(text).strip():
        raise ValidationError("Reward is required")

    match = _AMOUNT_PATTERN.search(str(text))
    if not match:
        raise ValidationError(f"Invalid reward amount: {text!r}")

    try:
        amount = Decimal(match.group(0))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid reward amount: {text!r}") from e

    if amount <= 0:
        raise ValidationError(f"Reward must be positive: {text!r}")

    currency_match = _CURRENCY_PATTERN.search(str(text))
    currency = currency_match.group(0) if currency_match else DEFAULT_CURRENCY
    return Reward(amount=amount, currency=currency)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def utc_now() -> datetime:
    """Current UTC timestamp."""
    return datetime.now(timezone.utc)


@dataclass
class Job:
    """A job listing in the marketplace.

    Stored documents use the camelCase keys of the hosted marketplace; see
    ``to_dict`` / ``from_dict``.
    """

    id: str
    title: str
    reward: str
    poster: str
    description: str = ""
    poster_address: Optional[str] = None
    worker: Optional[str] = None
    worker_address: Optional[str] = None
    status: JobStatus = JobStatus.OPEN
    tags: List[str] = field(default_factory=list)
    source_url: Optional[str] = None
    delivery_proof: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    payment_tx: Optional[str] = None
    payer: Optional[str] = None
    # Set by create_job when the poster's profile could not be updated; not stored
    profile_error: Optional[str] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if isinstance(self.status, str) and not isinstance(self.status, JobStatus):
            try:
                self.status = JobStatus(self.status)
            except ValueError:
                raise ValueError(f"Invalid status: {self.status}") from None
        if not self.title or not self.title.strip():
            raise ValueError("Title is required")
        if not self.poster or not self.poster.strip():
            raise ValueError("Poster is required")
        if self.tags is None:
            self.tags = []

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def parsed_reward(self) -> Reward:
        """Reward parsed into amount and currency. Raises ValidationError."""
        return parse_reward(self.reward)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a store document."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "reward": self.reward,
            "poster": self.poster,
            "posterAddress": self.poster_address,
            "worker": self.worker,
            "workerAddress": self.worker_address,
            "status": self.status.value,
            "tags": list(self.tags),
            "sourceUrl": self.source_url,
            "deliveryProof": self.delivery_proof,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "paymentTx": self.payment_tx,
            "paidBy": self.payer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        """Build a Job from a store document."""
        return cls(
            id=str(data["id"]),
            title=data["title"],
            reward=data["reward"],
            poster=data["poster"],
            description=data.get("description") or "",
            poster_address=data.get("posterAddress"),
            worker=data.get("worker"),
            worker_address=data.get("workerAddress"),
            status=data.get("status", JobStatus.OPEN.value),
            tags=list(data.get("tags") or []),
            source_url=data.get("sourceUrl"),
            delivery_proof=data.get("deliveryProof"),
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
            payment_tx=data.get("paymentTx"),
            payer=data.get("paidBy"),
        )


# Fields a transition request may write, keyed by request name -> document key
UPDATABLE_FIELDS = {
    "status": "status",
    "worker": "worker",
    "worker_address": "workerAddress",
    "workerAddress": "workerAddress",
    "delivery_proof": "deliveryProof",
    "deliveryProof": "deliveryProof",
}
