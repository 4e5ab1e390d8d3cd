"""EMV card reading, certificate chain recovery and a nonce-based identity contract."""

__version__ = "0.1.0"

__all__ = ["rsakey", "tlv", "ca_keys", "contract", "card"]