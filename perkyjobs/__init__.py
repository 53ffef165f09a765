"""perkyjobs - job marketplace with x402 payment settlement."""

__version__ = "0.1.0"
