"""User profiles and the reputation rule.

A profile is keyed by its social handle. Profiles are created the first
time a handle is referenced and are never deleted. Reputation only grows,
by REPUTATION_PER_COMPLETED_JOB for each paid job the user worked.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from perkyjobs.commerce.config import REPUTATION_PER_COMPLETED_JOB
from perkyjobs.commerce.errors import NotFoundError, ValidationError
from perkyjobs.commerce.jobs.models import format_timestamp, parse_timestamp, utc_now
from perkyjobs.commerce.store import USERS_COLLECTION, DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class UserProfile:
    """Marketplace participant profile."""

    id: str
    handle: str
    wallet_address: Optional[str] = None
    self_verified: bool = False
    reputation_score: int = 0
    jobs_posted: int = 0
    jobs_completed: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.handle or not self.handle.strip():
            raise ValueError("Handle is required")
        if self.reputation_score < 0:
            raise ValueError("Reputation score cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "handle": self.handle,
            "walletAddress": self.wallet_address,
            "selfVerified": self.self_verified,
            "reputationScore": self.reputation_score,
            "jobsPosted": self.jobs_posted,
            "jobsCompleted": self.jobs_completed,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=str(data["id"]),
            handle=data["handle"],
            wallet_address=data.get("walletAddress"),
            self_verified=bool(data.get("selfVerified", False)),
            reputation_score=int(data.get("reputationScore") or 0),
            jobs_posted=int(data.get("jobsPosted") or 0),
            jobs_completed=int(data.get("jobsCompleted") or 0),
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
        )


class ProfileService:
    """Profile lookups and counter updates over the document store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def _find(self, handle: str) -> Optional[UserProfile]:
        records = self.store.query(USERS_COLLECTION, "handle", handle, limit=1)
        return UserProfile.from_dict(records[0]) if records else None

    def get_by_handle(self, handle: str) -> UserProfile:
        """Get a profile by handle.

        Raises:
            NotFoundError: If no profile has this handle
        """
        profile = self._find(handle)
        if profile is None:
            raise NotFoundError(f"User {handle} not found")
        return profile

    def ensure_profile(self, handle: str) -> UserProfile:
        """Return the profile for ``handle``, creating an empty one if needed."""
        if not handle or not handle.strip():
            raise ValidationError("Handle is required")
        profile = self._find(handle)
        if profile is not None:
            return profile
        return self._create(handle)

    def _create(
        self,
        handle: str,
        wallet_address: Optional[str] = None,
        self_verified: bool = False,
    ) -> UserProfile:
        profile = UserProfile(
            id="",
            handle=handle,
            wallet_address=wallet_address,
            self_verified=self_verified,
            created_at=utc_now(),
        )
        data = profile.to_dict()
        data.pop("id")
        profile.id = self.store.insert(USERS_COLLECTION, data)
        logger.info(f"Profile created | handle={handle} | id={profile.id}")
        return profile

    def upsert_profile(
        self,
        handle: str,
        wallet_address: Optional[str] = None,
        self_verified: Optional[bool] = None,
    ) -> UserProfile:
        """Create a profile or update its wallet and verification flag.

        Reputation and job counters are never writable through this call.
        """
        if not handle or not handle.strip():
            raise ValidationError("Handle is required")

        profile = self._find(handle)
        if profile is None:
            return self._create(handle, wallet_address, bool(self_verified))

        updates: Dict[str, Any] = {}
        if wallet_address is not None:
            updates["walletAddress"] = wallet_address
            profile.wallet_address = wallet_address
        if self_verified is not None:
            updates["selfVerified"] = self_verified
            profile.self_verified = self_verified
        if updates:
            profile.updated_at = utc_now()
            updates["updatedAt"] = format_timestamp(profile.updated_at)
            self.store.update(USERS_COLLECTION, profile.id, updates)
        return profile

    def leaderboard(self, limit: int = 20) -> List[UserProfile]:
        """Profiles ordered by reputation, highest first."""
        records = self.store.query(
            USERS_COLLECTION, order_by="reputationScore", limit=limit, descending=True
        )
        return [UserProfile.from_dict(r) for r in records]

    def record_posted_job(self, handle: str) -> UserProfile:
        """Count a newly posted job against the poster's profile."""
        profile = self.ensure_profile(handle)
        profile.jobs_posted += 1
        profile.updated_at = utc_now()
        self.store.update(
            USERS_COLLECTION,
            profile.id,
            {
                "jobsPosted": profile.jobs_posted,
                "updatedAt": format_timestamp(profile.updated_at),
            },
        )
        return profile

    def record_completed_job(self, handle: str) -> UserProfile:
        """Apply the completion rule: one more completed job, +10 reputation."""
        profile = self.ensure_profile(handle)
        profile.jobs_completed += 1
        profile.reputation_score += REPUTATION_PER_COMPLETED_JOB
        profile.updated_at = utc_now()
        self.store.update(
            USERS_COLLECTION,
            profile.id,
            {
                "jobsCompleted": profile.jobs_completed,
                "reputationScore": profile.reputation_score,
                "updatedAt": format_timestamp(profile.updated_at),
            },
        )
        logger.info(
            f"Reputation updated | handle={handle} | score={profile.reputation_score} "
            f"| completed={profile.jobs_completed}"
        )
        return profile
