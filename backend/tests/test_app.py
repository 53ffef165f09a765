"""Tests for application wiring: health checks, error mapping, settings."""

import pytest
from app.config import Settings
from app.main import error_status
from pydantic import ValidationError as SettingsError

from perkyjobs.commerce.errors import (
    AuthorizationError,
    CommerceError,
    InvalidStateError,
    NotFoundError,
    PaymentSettlementError,
    SettlementRecordError,
    TerminalStateError,
    ValidationError,
)


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "perkyjobs-backend"

    def test_health_reports_store(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    def test_challenge_header_is_exposed_to_browsers(self, client, approved_job):
        response = client.post(
            "/api/pay",
            json={"jobId": approved_job["id"]},
            headers={"Origin": "http://localhost:3000"},
        )
        assert "PAYMENT-REQUIRED" in response.headers["access-control-expose-headers"]


class TestErrorStatus:
    @pytest.mark.parametrize(
        "error, code",
        [
            (ValidationError("bad"), 400),
            (AuthorizationError("no"), 403),
            (NotFoundError("missing"), 404),
            (TerminalStateError("frozen"), 409),
            (InvalidStateError("not approved"), 409),
            (PaymentSettlementError("insufficient_funds"), 402),
            (SettlementRecordError("write failed", transaction="0xabc"), 500),
            (CommerceError("other"), 500),
        ],
    )
    def test_maps_error_to_status(self, error, code):
        assert error_status(error) == code


class TestSettings:
    def test_commerce_config_from_settings(self):
        settings = Settings(
            agent_api_key="k",
            facilitator_url="https://facilitator.example/",
            pay_to_address="0xabc",
            payment_network="base",
            facilitator_timeout=5,
        )

        config = settings.commerce_config()

        assert config.facilitator_url == "https://facilitator.example"
        assert config.pay_to_address == "0xabc"
        assert config.payment_network == "base"
        assert config.request_timeout == 5.0

    def test_agent_api_key_required(self, monkeypatch):
        monkeypatch.delenv("AGENT_API_KEY", raising=False)
        with pytest.raises(SettingsError):
            Settings(_env_file=None)


class TestClientIp:
    def _request(self, peer, forwarded=None):
        from unittest.mock import MagicMock

        request = MagicMock()
        request.client.host = peer
        request.headers = {"x-forwarded-for": forwarded} if forwarded else {}
        return request

    def test_uses_forwarded_for_behind_trusted_proxy(self):
        from app.rate_limit import get_client_ip

        request = self._request("10.0.0.5", "203.0.113.7, 10.0.0.1")
        assert get_client_ip(request) == "203.0.113.7"

    def test_ignores_forwarded_for_from_untrusted_peer(self):
        from app.rate_limit import get_client_ip

        request = self._request("198.51.100.20", "203.0.113.7")
        assert get_client_ip(request) == "198.51.100.20"
