"""Pydantic models for API requests and responses.

Request and response bodies use the camelCase keys the marketplace clients
already speak (``workerAddress``, ``deliveryProof``, ...).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from perkyjobs.commerce.jobs.models import Job
from perkyjobs.commerce.profiles import UserProfile


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Job Models
# =============================================================================


class JobCreate(CamelModel):
    """Request to post a job."""

    title: str = Field(..., min_length=1, max_length=200)
    reward: str = Field(..., min_length=1, max_length=64)
    poster: str = Field(..., min_length=1, max_length=64)
    description: str = ""
    poster_address: str | None = None
    tags: list[str] = Field(default_factory=list)
    source_url: str | None = None


class JobUpdate(CamelModel):
    """Request to change a job.

    Only fields present in the request are applied; send ``"worker": null``
    to clear a worker. ``cancelledBy`` identifies who reopens a claimed job.
    """

    status: str | None = None
    worker: str | None = None
    worker_address: str | None = None
    delivery_proof: str | None = None
    cancelled_by: str | None = None


class JobResponse(CamelModel):
    """Job details response."""

    id: str
    title: str
    description: str
    reward: str
    poster: str
    poster_address: str | None = None
    worker: str | None = None
    worker_address: str | None = None
    status: str
    tags: list[str]
    source_url: str | None = None
    delivery_proof: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    payment_tx: str | None = None
    paid_by: str | None = None
    profile_error: str | None = None

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls.model_validate({**job.to_dict(), "profileError": job.profile_error})


class JobListResponse(BaseModel):
    jobs: list[JobResponse]


# =============================================================================
# Payment Models
# =============================================================================


class PaymentRequest(CamelModel):
    """Request to pay for an approved job."""

    job_id: str = Field(..., min_length=1)
    network: str | None = None


class PaymentResponse(CamelModel):
    """Settled payment details."""

    success: bool = True
    job_id: str
    transaction_hash: str | None = None
    payer: str | None = None
    worker: str | None = None
    reward: str
    reputation_error: str | None = None


# =============================================================================
# User Models
# =============================================================================


class UserUpsert(CamelModel):
    """Request to create or update a profile."""

    handle: str = Field(..., min_length=1, max_length=64)
    wallet_address: str | None = None
    self_verified: bool | None = None


class UserResponse(CamelModel):
    id: str
    handle: str
    wallet_address: str | None = None
    self_verified: bool = False
    reputation_score: int = 0
    jobs_posted: int = 0
    jobs_completed: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserResponse":
        return cls.model_validate(profile.to_dict())


class UserListResponse(BaseModel):
    users: list[UserResponse]
