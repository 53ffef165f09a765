"""x402 payment protocol client.

Implements the challenge / verify / settle exchange with an x402
facilitator for a single fixed-price resource:

1. Without a payment, the server answers with a challenge listing the
   accepted payment requirements (HTTP 402, ``PAYMENT-REQUIRED`` header).
2. The client signs a payment and resends it as a base64 JSON envelope in
   the ``PAYMENT-SIGNATURE`` (or ``X-PAYMENT``) header.
3. The server asks the facilitator to verify the envelope's payload against
   the same requirements, then to settle it on-chain.

Amounts are in the settlement asset's atomic units (6 decimals). No
retries are made; either phase failing raises immediately.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Union

import httpx

from perkyjobs.commerce.config import DEFAULT_PAYMENT_NETWORK, CommerceConfig
from perkyjobs.commerce.errors import PaymentSettlementError, PaymentVerificationError

logger = logging.getLogger(__name__)

X402_VERSION = 2
PAYMENT_SCHEME = "exact"
ASSET_DECIMALS = 6
MAX_TIMEOUT_SECONDS = 30
ASSET_VERSION = "2"

VERIFY_PATH = "/api/v2/x402/verify"
SETTLE_PATH = "/api/v2/x402/settle"

# Network name -> CAIP-2 id, settlement asset address and asset display name
NETWORK_CONFIG = {
    "celo": {
        "caip2": "eip155:42220",
        "asset": "0xcebA9300f2b948710d2653dD7B07f33A8B32118C",
        "asset_name": "USDT",
    },
    "celo-sepolia": {
        "caip2": "eip155:44787",
        "asset": "0x2F25deB3848C207fc8E0c34035B3Ba7fC157602B",
        "asset_name": "USDT",
    },
    "base": {
        "caip2": "eip155:8453",
        "asset": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        "asset_name": "USD Coin",
    },
    "avalanche": {
        "caip2": "eip155:43114",
        "asset": "0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
        "asset_name": "USD Coin",
    },
}

Price = Union[Decimal, int, float, str]


@dataclass
class SettlementResult:
    """Outcome of a successful verify + settle exchange."""

    payer: Optional[str]
    transaction: Optional[str]


def resolve_network(name: Optional[str], default: str = DEFAULT_PAYMENT_NETWORK) -> str:
    """Map a network name to a known one, falling back to ``default``.

    Unknown defaults fall back to the built-in default network.
    """
    if name in NETWORK_CONFIG:
        return name
    if default in NETWORK_CONFIG:
        return default
    return DEFAULT_PAYMENT_NETWORK


def to_atomic_units(price: Price) -> str:
    """Convert a human amount to atomic units, e.g. ``25`` -> ``"25000000"``."""
    amount = Decimal(str(price)) * (Decimal(10) ** ASSET_DECIMALS)
    return str(int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP)))


def encode_payment_header(data: Dict[str, Any]) -> str:
    """Encode a JSON object as a base64 header value."""
    return base64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")


def decode_envelope(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode a payment envelope header value.

    Tries base64 JSON first (standard or URL-safe alphabet, padding
    optional), then plain JSON. Returns None when the header is absent or
    neither decoding yields a JSON object; a missing or unreadable payment
    is not an error.
    """
    if not raw or not raw.strip():
        return None

    text = raw.strip()
    padded = text.replace("-", "+").replace("_", "/") + "=" * (-len(text) % 4)
    try:
        decoded = base64.b64decode(padded, validate=True).decode("utf-8")
        data = json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        try:
            data = json.loads(raw)
        except ValueError:
            return None

    return data if isinstance(data, dict) else None


def _envelope_payload(envelope: Dict[str, Any]) -> Any:
    return envelope.get("payload") or envelope


def _response_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class X402Client:
    """Builds x402 payment requirements and talks to the facilitator.

    Args:
        config: Commerce settings (facilitator URL, payee, default network).
        http_client: Optional preconfigured ``httpx.Client``; one is created
            with the configured timeout when omitted.
    """

    def __init__(self, config: CommerceConfig, http_client: Optional[httpx.Client] = None):
        self.config = config
        self._owns_client = http_client is None
        self.http = http_client or httpx.Client(timeout=config.request_timeout)

    def close(self) -> None:
        if self._owns_client:
            self.http.close()

    def __enter__(self) -> "X402Client":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def network_name(self, network: Optional[str] = None) -> str:
        return resolve_network(network or self.config.payment_network, self.config.payment_network)

    def build_requirements(
        self,
        price: Price,
        resource_id: str,
        network: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Payment requirements for one resource at a fixed price."""
        name = self.network_name(network)
        net = NETWORK_CONFIG[name]
        return {
            "scheme": PAYMENT_SCHEME,
            "network": net["caip2"],
            "maxAmountRequired": to_atomic_units(price),
            "resource": f"{self.config.resource_base_url}{resource_id}",
            "description": f"PerkyJobs payment for {resource_id}",
            "mimeType": "application/json",
            "payTo": self.config.pay_to_address,
            "maxTimeoutSeconds": MAX_TIMEOUT_SECONDS,
            "asset": net["asset"],
            "extra": {"name": net["asset_name"], "version": ASSET_VERSION},
        }

    def build_challenge(
        self,
        price: Price,
        resource_id: str,
        network: Optional[str] = None,
    ) -> Dict[str, Any]:
        """The 402 challenge body advertising how to pay for a resource."""
        return {
            "x402Version": X402_VERSION,
            "accepts": [self.build_requirements(price, resource_id, network)],
            "defaultNetwork": self.network_name(),
        }

    def _payment_request(
        self, requirements: Dict[str, Any], envelope: Dict[str, Any]
    ) -> Dict[str, Any]:
        return {
            "x402Version": X402_VERSION,
            "paymentRequirements": requirements,
            "paymentPayload": {
                "x402Version": X402_VERSION,
                "network": requirements["network"],
                "scheme": requirements["scheme"],
                "payload": _envelope_payload(envelope),
            },
        }

    def verify_and_settle(
        self,
        envelope: Dict[str, Any],
        price: Price,
        resource_id: str,
        network: Optional[str] = None,
    ) -> SettlementResult:
        """Verify a payment envelope with the facilitator, then settle it.

        Raises:
            PaymentVerificationError: Facilitator rejected the payment or the
                verify call failed
            PaymentSettlementError: Verified payment did not settle
        """
        requirements = self.build_requirements(price, resource_id, network)
        body = self._payment_request(requirements, envelope)
        base_url = self.config.facilitator_url

        try:
            verify_response = self.http.post(f"{base_url}{VERIFY_PATH}", json=body)
        except httpx.HTTPError as e:
            logger.error(f"Facilitator verify call failed | resource={resource_id} | {e}")
            raise PaymentVerificationError(f"Facilitator unreachable: {e}") from e

        verify_result = _response_json(verify_response)
        if not verify_response.is_success:
            reason = verify_result.get("invalidReason") or "Verification failed"
            logger.warning(
                f"Payment verification rejected | resource={resource_id} "
                f"| http={verify_response.status_code} | reason={reason}"
            )
            raise PaymentVerificationError(reason)
        if not verify_result.get("isValid"):
            reason = verify_result.get("invalidReason") or "Invalid payment"
            logger.warning(f"Payment invalid | resource={resource_id} | reason={reason}")
            raise PaymentVerificationError(reason)

        try:
            settle_response = self.http.post(f"{base_url}{SETTLE_PATH}", json=body)
        except httpx.HTTPError as e:
            logger.error(f"Facilitator settle call failed | resource={resource_id} | {e}")
            raise PaymentSettlementError(f"Facilitator unreachable: {e}") from e

        settle_result = _response_json(settle_response)
        if not settle_result.get("success"):
            reason = settle_result.get("errorReason") or "Settlement failed"
            logger.warning(f"Payment settlement failed | resource={resource_id} | reason={reason}")
            raise PaymentSettlementError(reason)

        result = SettlementResult(
            payer=verify_result.get("payer") or settle_result.get("payer"),
            transaction=settle_result.get("transaction") or settle_result.get("transactionHash"),
        )
        logger.info(
            f"Payment settled | resource={resource_id} | tx={result.transaction} "
            f"| payer={result.payer}"
        )
        return result
