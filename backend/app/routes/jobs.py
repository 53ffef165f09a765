"""Jobs routes.

Reads are public. Writes need the agent API key. Every change goes
through the lifecycle engine; see perkyjobs.commerce.jobs.service for the
transition rules.
"""

from fastapi import APIRouter, Query, Request, status

from ..auth import AgentKey
from ..database import Jobs
from ..logging_config import get_logger
from ..models import JobCreate, JobListResponse, JobResponse, JobUpdate
from ..rate_limit import limiter

logger = get_logger("api.jobs")
router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.get("", response_model=JobListResponse)
@limiter.limit("60/minute")
def list_jobs(
    request: Request,
    jobs: Jobs,
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
):
    """List jobs, newest first, optionally filtered by status."""
    logger.info(f"GET /api/jobs | status={status_filter} | limit={limit}")
    listed = jobs.list_jobs(status=status_filter, limit=limit)
    return JobListResponse(jobs=[JobResponse.from_job(j) for j in listed])


@router.get("/{job_id}", response_model=JobResponse)
@limiter.limit("60/minute")
def get_job(request: Request, job_id: str, jobs: Jobs):
    """Get details of a specific job."""
    return JobResponse.from_job(jobs.get_job(job_id))


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def create_job(request: Request, body: JobCreate, _auth: AgentKey, jobs: Jobs):
    """Post a new job. Jobs start in 'open' status."""
    logger.info(f"POST /api/jobs | poster={body.poster} | title={body.title[:50]}")
    job = jobs.create_job(
        title=body.title,
        reward=body.reward,
        poster=body.poster,
        description=body.description,
        poster_address=body.poster_address,
        tags=body.tags,
        source_url=body.source_url,
    )
    return JobResponse.from_job(job)


@router.patch("/{job_id}", response_model=JobResponse)
@limiter.limit("30/minute")
def update_job(request: Request, job_id: str, body: JobUpdate, _auth: AgentKey, jobs: Jobs):
    """
    Change a job's status, worker or delivery proof.

    - Claim: ``{"status": "claimed", "worker": "@handle"}``
    - Deliver: ``{"status": "delivered", "deliveryProof": "..."}``
    - Cancel a claim: ``{"status": "open", "cancelledBy": "@poster"}``

    Payment is not accepted here; use POST /api/pay.
    """
    changes = body.model_dump(exclude_unset=True)
    actor = changes.pop("cancelled_by", None)
    logger.info(f"PATCH /api/jobs/{job_id} | status={changes.get('status')} | actor={actor}")
    return JobResponse.from_job(jobs.transition(job_id, changes, actor=actor))
