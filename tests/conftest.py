"""Shared fixtures for perkyjobs tests."""

import json

import httpx
import pytest

from perkyjobs.commerce.config import CommerceConfig
from perkyjobs.commerce.jobs.service import JobService
from perkyjobs.commerce.payments.settlement import SettlementService
from perkyjobs.commerce.payments.x402 import X402Client
from perkyjobs.commerce.profiles import ProfileService
from perkyjobs.commerce.store import InMemoryDocumentStore

PAY_TO = "0x1234567890123456789012345678901234567890"
PAYER = "0x9999999999999999999999999999999999999999"
TX_HASH = "0x" + "ab" * 32


class FakeFacilitator:
    """Scripted x402 facilitator served through httpx.MockTransport."""

    payer = PAYER
    tx_hash = TX_HASH

    def __init__(self):
        self.verify_status = 200
        self.verify_body = {"isValid": True, "payer": PAYER}
        self.settle_status = 200
        self.settle_body = {"success": True, "transaction": TX_HASH}
        self.requests: list[tuple[str, dict]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append((request.url.path, body))
        if request.url.path.endswith("/verify"):
            return httpx.Response(self.verify_status, json=self.verify_body)
        if request.url.path.endswith("/settle"):
            return httpx.Response(self.settle_status, json=self.settle_body)
        return httpx.Response(404, json={})

    @property
    def paths(self) -> list[str]:
        return [path for path, _ in self.requests]


@pytest.fixture
def store():
    """Empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def config():
    """Commerce config pointing at a fake facilitator."""
    return CommerceConfig(
        facilitator_url="https://facilitator.test",
        pay_to_address=PAY_TO,
        payment_network="celo",
        resource_base_url="https://perkyjobs.test",
    )


@pytest.fixture
def facilitator():
    return FakeFacilitator()


@pytest.fixture
def x402_client(config, facilitator):
    client = X402Client(config, http_client=httpx.Client(transport=httpx.MockTransport(facilitator.handler)))
    yield client
    client.http.close()


@pytest.fixture
def profiles(store):
    return ProfileService(store)


@pytest.fixture
def jobs(store):
    return JobService(store)


@pytest.fixture
def settlement(jobs, profiles, x402_client):
    return SettlementService(jobs=jobs, profiles=profiles, payments=x402_client)


@pytest.fixture
def make_job(jobs):
    """Create a job and walk it to the given status."""

    def _make(status="open", reward="25 USDT", worker="@alice", poster="@bob"):
        job = jobs.create_job(title="Design a logo", reward=reward, poster=poster)
        if status == "open":
            return job
        job = jobs.transition(job.id, {"status": "claimed", "worker": worker})
        for step in ("delivered", "approved"):
            if status == job.status.value:
                break
            job = jobs.transition(job.id, {"status": step})
        if status == "disputed":
            job = jobs.transition(job.id, {"status": "disputed"})
        return job

    return _make
