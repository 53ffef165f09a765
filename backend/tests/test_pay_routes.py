"""Tests for the x402 payment route."""

import base64
import json

from perkyjobs.commerce.payments.x402 import encode_payment_header

ENVELOPE = {
    "x402Version": 2,
    "payload": {
        "signature": "0x" + "ab" * 65,
        "authorization": {"from": "0x9999", "value": "25000000"},
    },
}


def _signed():
    return {"PAYMENT-SIGNATURE": encode_payment_header(ENVELOPE)}


class TestPaymentChallenge:
    def test_missing_signature_returns_402(self, client, approved_job, facilitator):
        response = client.post("/api/pay", json={"jobId": approved_job["id"]})

        assert response.status_code == 402
        body = response.json()
        assert body["error"] == "Payment Required"
        assert body["x402Version"] == 2
        assert body["defaultNetwork"] == "celo"
        requirements = body["accepts"][0]
        assert requirements["scheme"] == "exact"
        assert requirements["network"] == "eip155:42220"
        assert requirements["maxAmountRequired"] == "25000000"
        assert requirements["resource"].endswith("/api/pay")
        assert facilitator.calls == []

    def test_challenge_header_matches_body(self, client, approved_job):
        response = client.post("/api/pay", json={"jobId": approved_job["id"]})

        header = json.loads(base64.b64decode(response.headers["PAYMENT-REQUIRED"]))
        body = response.json()
        assert header["accepts"] == body["accepts"]
        assert header["x402Version"] == body["x402Version"]

    def test_challenge_for_requested_network(self, client, approved_job):
        response = client.post("/api/pay", json={"jobId": approved_job["id"], "network": "base"})

        requirements = response.json()["accepts"][0]
        assert requirements["network"] == "eip155:8453"
        assert requirements["extra"]["name"] == "USD Coin"

    def test_unreadable_signature_gets_challenge(self, client, approved_job, facilitator):
        response = client.post(
            "/api/pay",
            json={"jobId": approved_job["id"]},
            headers={"PAYMENT-SIGNATURE": "%%% not base64 %%%"},
        )

        assert response.status_code == 402
        assert "accepts" in response.json()
        assert facilitator.calls == []

    def test_job_stays_approved(self, client, approved_job):
        client.post("/api/pay", json={"jobId": approved_job["id"]})
        assert client.get(f"/api/jobs/{approved_job['id']}").json()["status"] == "approved"


class TestPaymentSettlement:
    def test_settles_and_marks_paid(self, client, approved_job, facilitator):
        response = client.post("/api/pay", json={"jobId": approved_job["id"]}, headers=_signed())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["jobId"] == approved_job["id"]
        assert body["transactionHash"] == facilitator.transaction
        assert body["payer"] == facilitator.payer
        assert body["worker"] == "@alice"
        assert body["reward"] == "25 USDT"
        assert body["reputationError"] is None
        assert facilitator.calls == ["verify", "settle"]

        job = client.get(f"/api/jobs/{approved_job['id']}").json()
        assert job["status"] == "paid"
        assert job["paymentTx"] == facilitator.transaction
        assert job["paidBy"] == facilitator.payer

    def test_worker_reputation_increases(self, client, approved_job):
        client.post("/api/pay", json={"jobId": approved_job["id"]}, headers=_signed())

        worker = client.get("/api/users/@alice").json()
        assert worker["jobsCompleted"] == 1
        assert worker["reputationScore"] == 10

    def test_accepts_x_payment_header(self, client, approved_job):
        response = client.post(
            "/api/pay",
            json={"jobId": approved_job["id"]},
            headers={"X-PAYMENT": encode_payment_header(ENVELOPE)},
        )
        assert response.status_code == 200

    def test_accepts_plain_json_envelope(self, client, approved_job):
        response = client.post(
            "/api/pay",
            json={"jobId": approved_job["id"]},
            headers={"PAYMENT-SIGNATURE": json.dumps(ENVELOPE)},
        )
        assert response.status_code == 200

    def test_paid_job_cannot_be_paid_again(self, client, approved_job, facilitator):
        client.post("/api/pay", json={"jobId": approved_job["id"]}, headers=_signed())

        response = client.post("/api/pay", json={"jobId": approved_job["id"]}, headers=_signed())

        assert response.status_code == 409
        assert "Current status: paid" in response.json()["detail"]
        assert facilitator.calls == ["verify", "settle"]

    def test_paid_job_cannot_be_patched(self, client, auth_headers, approved_job):
        client.post("/api/pay", json={"jobId": approved_job["id"]}, headers=_signed())

        response = client.patch(
            f"/api/jobs/{approved_job['id']}", json={"status": "approved"}, headers=auth_headers
        )
        assert response.status_code == 409


class TestPaymentFailures:
    def test_unapproved_job_is_409(self, client, create_job, facilitator):
        job = create_job()

        response = client.post("/api/pay", json={"jobId": job["id"]}, headers=_signed())

        assert response.status_code == 409
        assert response.json()["detail"] == (
            "Job must be approved before payment. Current status: open"
        )
        assert facilitator.calls == []

    def test_missing_job_is_404(self, client):
        response = client.post("/api/pay", json={"jobId": "does-not-exist"})
        assert response.status_code == 404

    def test_missing_job_id_is_422(self, client):
        response = client.post("/api/pay", json={})
        assert response.status_code == 422

    def test_invalid_payment_is_402(self, client, approved_job, facilitator):
        facilitator.verify = (200, {"isValid": False, "invalidReason": "invalid_signature"})

        response = client.post("/api/pay", json={"jobId": approved_job["id"]}, headers=_signed())

        assert response.status_code == 402
        assert response.json() == {"detail": "Payment failed", "reason": "invalid_signature"}
        assert facilitator.calls == ["verify"]

    def test_failed_settlement_leaves_job_approved(self, client, approved_job, facilitator):
        facilitator.settle = (200, {"success": False, "errorReason": "insufficient_funds"})

        response = client.post("/api/pay", json={"jobId": approved_job["id"]}, headers=_signed())

        assert response.status_code == 402
        assert response.json()["reason"] == "insufficient_funds"
        assert client.get(f"/api/jobs/{approved_job['id']}").json()["status"] == "approved"
        assert client.get("/api/users/@alice").status_code == 404
