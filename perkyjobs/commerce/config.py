"""Configuration for perkyjobs commerce.

Payment settings default to the values the hosted marketplace runs with and
can be overridden from the environment:

- FACILITATOR_URL: x402 facilitator base URL
- PAY_TO_ADDRESS: wallet that receives job payments
- PAYMENT_NETWORK: default network name (celo, celo-sepolia, base, avalanche)
- RESOURCE_BASE_URL: prefix for the resource URL embedded in challenges
- FACILITATOR_TIMEOUT: HTTP timeout in seconds for facilitator calls
"""

import os
from dataclasses import dataclass

DEFAULT_FACILITATOR_URL = "https://stack.perkos.xyz"
DEFAULT_PAYMENT_NETWORK = "celo"
DEFAULT_RESOURCE_BASE_URL = "https://perkyjobs.xyz"

# Reputation awarded to the worker of record per paid job
REPUTATION_PER_COMPLETED_JOB = 10


@dataclass
class CommerceConfig:
    """Settings shared by the payment client and settlement orchestrator."""

    facilitator_url: str = DEFAULT_FACILITATOR_URL
    pay_to_address: str = ""
    payment_network: str = DEFAULT_PAYMENT_NETWORK
    resource_base_url: str = DEFAULT_RESOURCE_BASE_URL
    request_timeout: float = 30.0

    def __post_init__(self):
        if not self.facilitator_url:
            raise ValueError("facilitator_url is required")
        if not self.payment_network:
            raise ValueError("payment_network is required")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        self.facilitator_url = self.facilitator_url.rstrip("/")
        self.resource_base_url = self.resource_base_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "CommerceConfig":
        """Build a config from environment variables, falling back to defaults."""
        return cls(
            facilitator_url=os.environ.get("FACILITATOR_URL") or DEFAULT_FACILITATOR_URL,
            pay_to_address=os.environ.get("PAY_TO_ADDRESS", ""),
            payment_network=os.environ.get("PAYMENT_NETWORK") or DEFAULT_PAYMENT_NETWORK,
            resource_base_url=os.environ.get("RESOURCE_BASE_URL") or DEFAULT_RESOURCE_BASE_URL,
            request_timeout=float(os.environ.get("FACILITATOR_TIMEOUT", "30")),
        )
