"""x402 payment settlement for perkyjobs."""

from .settlement import PaymentReceipt, PaymentRequired, SettlementService
from .x402 import (
    NETWORK_CONFIG,
    SettlementResult,
    X402Client,
    decode_envelope,
    encode_payment_header,
    to_atomic_units,
)

__all__ = [
    "X402Client",
    "SettlementResult",
    "NETWORK_CONFIG",
    "decode_envelope",
    "encode_payment_header",
    "to_atomic_units",
    "SettlementService",
    "PaymentRequired",
    "PaymentReceipt",
]
