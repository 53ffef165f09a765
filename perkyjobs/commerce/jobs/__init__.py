"""Jobs marketplace subsystem.

Models:
- Job: A work listing in the marketplace
- JobStatus: Job lifecycle status
- Reward: Parsed reward amount and currency

Service:
- JobService: Job lifecycle engine (create, transition, mark paid)
"""

from perkyjobs.commerce.jobs.models import (
    TERMINAL_STATUSES,
    Job,
    JobStatus,
    Reward,
    parse_reward,
)
from perkyjobs.commerce.jobs.service import JobService

__all__ = [
    # Models
    "Job",
    "JobStatus",
    "Reward",
    "TERMINAL_STATUSES",
    "parse_reward",
    # Service
    "JobService",
]
