"""Job lifecycle engine.

The single authority for validating and applying job state changes. Every
call re-reads the job from the store and writes back a partial update; there
is no version check, so concurrent transitions on one job race and the last
writer wins.

Ordering among claimed, delivered and approved is deliberately not enforced:
a caller may move a claimed job straight to approved. The engine only
guards the rules below.

- ``paid`` and ``disputed`` jobs never change (TerminalStateError).
- Only a ``claimed`` job can be reopened, and only by its poster.
- Only the settlement orchestrator moves a job to ``paid`` (``mark_paid``).
- Requests may write status, worker, worker address and delivery proof;
  any other field in a request is ignored.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

from perkyjobs.commerce.errors import (
    AuthorizationError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    TerminalStateError,
    ValidationError,
)
from perkyjobs.commerce.jobs.models import (
    UPDATABLE_FIELDS,
    Job,
    JobStatus,
    format_timestamp,
    utc_now,
)
from perkyjobs.commerce.store import JOBS_COLLECTION, DocumentStore

logger = logging.getLogger(__name__)


def _coerce_status(value: Any) -> JobStatus:
    try:
        return JobStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}") from None


class JobService:
    """Creates jobs and applies state transitions through the document store.

    Args:
        store: Document store holding the ``jobs`` collection.
        profiles: Optional ProfileService; when given, creating a job counts
            it against the poster's profile.
    """

    def __init__(self, store: DocumentStore, profiles=None):
        self.store = store
        self.profiles = profiles

    def create_job(
        self,
        title: str,
        reward: str,
        poster: str,
        description: str = "",
        poster_address: Optional[str] = None,
        tags: Optional[List[str]] = None,
        source_url: Optional[str] = None,
    ) -> Job:
        """Post a new job in ``open`` status.

        The stored job is authoritative. If the poster's profile counter
        cannot be updated the job is still returned, with the failure on
        ``profile_error``.

        Raises:
            ValidationError: If title, reward or poster is missing
        """
        missing = [
            name
            for name, value in (("title", title), ("reward", reward), ("poster", poster))
            if value is None or not str(value).strip()
        ]
        if missing:
            raise ValidationError(f"{', '.join(missing)} required")

        now = utc_now()
        job = Job(
            id=str(uuid.uuid4()),
            title=title.strip(),
            reward=reward.strip(),
            poster=poster.strip(),
            description=description or "",
            poster_address=poster_address,
            status=JobStatus.OPEN,
            tags=[t.strip() for t in (tags or []) if t and t.strip()],
            source_url=source_url,
            created_at=now,
            updated_at=now,
        )
        job.id = self.store.insert(JOBS_COLLECTION, job.to_dict())
        logger.info(f"Job created | id={job.id} | poster={job.poster} | reward={job.reward}")

        if self.profiles is not None:
            try:
                self.profiles.record_posted_job(job.poster)
            except Exception as e:
                logger.error(
                    f"Job created but poster profile not updated | id={job.id} "
                    f"| poster={job.poster} | {e}"
                )
                job.profile_error = str(e)

        return job

    def get_job(self, job_id: str) -> Job:
        """Load a job.

        Raises:
            NotFoundError: If the job does not exist
        """
        record = self.store.get(JOBS_COLLECTION, job_id)
        if record is None:
            raise NotFoundError(f"Job {job_id} not found")
        return Job.from_dict(record)

    def list_jobs(self, status: Optional[JobStatus] = None, limit: int = 50) -> List[Job]:
        """List jobs, newest first, optionally filtered by status."""
        if status is not None:
            records = self.store.query(
                JOBS_COLLECTION, "status", _coerce_status(status).value,
                order_by="createdAt", limit=limit,
            )
        else:
            records = self.store.query(JOBS_COLLECTION, order_by="createdAt", limit=limit)
        return [Job.from_dict(r) for r in records]

    def transition(
        self,
        job_id: str,
        changes: Mapping[str, Any],
        actor: Optional[str] = None,
    ) -> Job:
        """Apply a requested change to a job.

        Args:
            job_id: Job to change
            changes: Requested fields; only status, worker, worker address and
                delivery proof are honored
            actor: Handle of whoever requests the change. Checked against the
                poster when cancelling a claim.

        Returns:
            The job as written

        Raises:
            NotFoundError: Job does not exist
            TerminalStateError: Job is paid or disputed
            InvalidTransitionError: Reopening a job that is not claimed, or
                requesting ``paid`` directly
            AuthorizationError: Cancellation by someone other than the poster
            ValidationError: Unknown status value
        """
        job = self.get_job(job_id)

        if job.is_terminal:
            raise TerminalStateError(f"Job {job_id} is {job.status.value} and cannot change")

        requested = changes.get("status")
        target = _coerce_status(requested) if requested is not None else None

        if target == JobStatus.OPEN:
            update = self._cancellation(job, actor)
        elif target == JobStatus.PAID:
            raise InvalidTransitionError("Jobs are marked paid only through payment settlement")
        else:
            update = {}
            for key, doc_key in UPDATABLE_FIELDS.items():
                if key not in changes:
                    continue
                value = changes[key]
                if doc_key == "status":
                    if value is None:
                        continue
                    value = target.value
                update[doc_key] = value

        now = utc_now()
        update["updatedAt"] = format_timestamp(now)
        self.store.update(JOBS_COLLECTION, job_id, update)

        updated = Job.from_dict({**job.to_dict(), **update})
        if target is not None and target != job.status:
            logger.info(
                f"Job transition | id={job_id} | {job.status.value} -> {target.value} "
                f"| actor={actor}"
            )
        return updated

    def _cancellation(self, job: Job, actor: Optional[str]) -> Dict[str, Any]:
        if job.status != JobStatus.CLAIMED:
            raise InvalidTransitionError(
                f"Only claimed jobs can be reopened (job {job.id} is {job.status.value})"
            )
        if actor is not None and actor != job.poster:
            raise AuthorizationError("Only the job poster can cancel a claim")
        return {
            "status": JobStatus.OPEN.value,
            "worker": None,
            "workerAddress": None,
        }

    def mark_paid(self, job_id: str, payment_tx: Optional[str], payer: Optional[str]) -> Job:
        """Record a settled payment and move an approved job to ``paid``.

        Raises:
            NotFoundError: Job does not exist
            InvalidStateError: Job is not approved
        """
        job = self.get_job(job_id)
        if job.status != JobStatus.APPROVED:
            raise InvalidStateError(
                f"Job must be approved before payment. Current status: {job.status.value}"
            )

        update = {
            "status": JobStatus.PAID.value,
            "paymentTx": payment_tx,
            "paidBy": payer,
            "updatedAt": format_timestamp(utc_now()),
        }
        self.store.update(JOBS_COLLECTION, job_id, update)
        logger.info(f"Job paid | id={job_id} | tx={payment_tx} | payer={payer}")
        return Job.from_dict({**job.to_dict(), **update})
