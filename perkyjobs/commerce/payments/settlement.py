"""Settlement orchestrator: the only path that moves a job to ``paid``.

``request_payment`` is called twice in a normal exchange. The first call
carries no envelope and returns a PaymentRequired challenge. The second
carries the client's signed envelope, which is verified and settled through
the facilitator before the job is marked paid and the worker's reputation
is bumped.

Completion is two independent writes (job, then worker profile) with no
transaction. Both are always attempted. The job's ``paymentTx`` is the
durable completion marker; a missing reputation bump is reported on the
receipt and left to out-of-band reconciliation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from perkyjobs.commerce.errors import InvalidStateError, SettlementRecordError
from perkyjobs.commerce.jobs.models import JobStatus
from perkyjobs.commerce.jobs.service import JobService
from perkyjobs.commerce.payments.x402 import X402Client, encode_payment_header
from perkyjobs.commerce.profiles import ProfileService

logger = logging.getLogger(__name__)

PAY_RESOURCE = "/api/pay"


@dataclass
class PaymentRequired:
    """Challenge returned when a payment request carries no envelope."""

    job_id: str
    challenge: Dict[str, Any] = field(default_factory=dict)

    @property
    def header(self) -> str:
        """Base64 value for the ``PAYMENT-REQUIRED`` response header."""
        return encode_payment_header(self.challenge)


@dataclass
class PaymentReceipt:
    """Result of a settled payment."""

    job_id: str
    transaction: Optional[str]
    payer: Optional[str]
    worker: Optional[str]
    reward: str
    reputation_error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": True,
            "jobId": self.job_id,
            "transactionHash": self.transaction,
            "payer": self.payer,
            "worker": self.worker,
            "reward": self.reward,
            "reputationError": self.reputation_error,
        }


class SettlementService:
    """Ties approved jobs to x402 payment and the reputation update."""

    def __init__(
        self,
        jobs: JobService,
        profiles: ProfileService,
        payments: X402Client,
        resource: str = PAY_RESOURCE,
    ):
        self.jobs = jobs
        self.profiles = profiles
        self.payments = payments
        self.resource = resource

    def request_payment(
        self,
        job_id: str,
        envelope: Optional[Dict[str, Any]] = None,
        network: Optional[str] = None,
    ):
        """Demand or complete payment for an approved job.

        Args:
            job_id: Job to pay
            envelope: Decoded payment envelope, or None to get a challenge
            network: Payment network name; defaults to the configured one

        Returns:
            PaymentRequired when no envelope is given, else PaymentReceipt

        Raises:
            NotFoundError: Job does not exist
            InvalidStateError: Job is not approved
            ValidationError: Reward has no positive amount
            PaymentVerificationError, PaymentSettlementError: Facilitator
                rejected the payment; the job is unchanged
            SettlementRecordError: Payment settled but the job write failed
        """
        job = self.jobs.get_job(job_id)
        if job.status != JobStatus.APPROVED:
            raise InvalidStateError(
                f"Job must be approved before payment. Current status: {job.status.value}"
            )

        price = job.parsed_reward.amount

        if envelope is None:
            logger.info(f"Payment required | job={job_id} | price={price}")
            return PaymentRequired(
                job_id=job_id,
                challenge=self.payments.build_challenge(price, self.resource, network),
            )

        result = self.payments.verify_and_settle(envelope, price, self.resource, network)

        job_error: Optional[Exception] = None
        try:
            self.jobs.mark_paid(job_id, result.transaction, result.payer)
        except Exception as e:
            logger.error(
                f"Payment settled but job not marked paid | job={job_id} "
                f"| tx={result.transaction} | {e}"
            )
            job_error = e

        reputation_error: Optional[str] = None
        if job.worker:
            try:
                self.profiles.record_completed_job(job.worker)
            except Exception as e:
                logger.error(
                    f"Reputation update failed | job={job_id} | worker={job.worker} | {e}"
                )
                reputation_error = str(e)

        if job_error is not None:
            raise SettlementRecordError(
                f"Payment {result.transaction} settled but job {job_id} was not updated: "
                f"{job_error}",
                transaction=result.transaction,
            ) from job_error

        return PaymentReceipt(
            job_id=job_id,
            transaction=result.transaction,
            payer=result.payer,
            worker=job.worker,
            reward=job.reward,
            reputation_error=reputation_error,
        )
