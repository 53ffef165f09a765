"""Pytest configuration and fixtures for the backend API."""

import json
import os

import httpx
import pytest

# Unit tests run against an in-memory store and a fake facilitator
os.environ.setdefault("AGENT_API_KEY", "test-agent-key")
os.environ.pop("SUPABASE_URL", None)

from app.config import get_settings  # noqa: E402
from app.database import get_store, get_x402_client  # noqa: E402
from app.main import app  # noqa: E402
from app.rate_limit import limiter  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from perkyjobs.commerce.config import CommerceConfig  # noqa: E402
from perkyjobs.commerce.payments.x402 import X402Client  # noqa: E402
from perkyjobs.commerce.store import InMemoryDocumentStore  # noqa: E402


class Facilitator:
    """Scripted facilitator responses for /verify and /settle."""

    payer = "0x9999999999999999999999999999999999999999"
    transaction = "0x" + "cd" * 32

    def __init__(self):
        self.verify = (200, {"isValid": True, "payer": self.payer})
        self.settle = (200, {"success": True, "transaction": self.transaction})
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        json.loads(request.content)
        phase = request.url.path.rsplit("/", 1)[-1]
        self.calls.append(phase)
        code, body = self.verify if phase == "verify" else self.settle
        return httpx.Response(code, json=body)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def facilitator():
    return Facilitator()


@pytest.fixture
def client(store, facilitator):
    """Test client wired to the in-memory store and fake facilitator."""
    payments = X402Client(
        CommerceConfig(
            facilitator_url="https://facilitator.test",
            pay_to_address="0x1234567890123456789012345678901234567890",
            payment_network="celo",
        ),
        http_client=httpx.Client(transport=httpx.MockTransport(facilitator)),
    )
    limiter.enabled = False
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_x402_client] = lambda: payments
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    limiter.enabled = True
    payments.http.close()


@pytest.fixture
def auth_headers():
    """Headers carrying the agent API key."""
    return {"x-api-key": get_settings().agent_api_key}


@pytest.fixture
def create_job(client, auth_headers):
    """Post a job through the API and return its JSON."""

    def _create(**overrides):
        body = {"title": "Design a logo", "reward": "25 USDT", "poster": "@bob", **overrides}
        response = client.post("/api/jobs", json=body, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def approved_job(client, auth_headers, create_job):
    """A job claimed by @alice, delivered and approved."""
    job = create_job()
    for change in (
        {"status": "claimed", "worker": "@alice"},
        {"status": "delivered", "deliveryProof": "https://example.com/logo.png"},
        {"status": "approved"},
    ):
        response = client.patch(f"/api/jobs/{job['id']}", json=change, headers=auth_headers)
        assert response.status_code == 200, response.text
    return response.json()
