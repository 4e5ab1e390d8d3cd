"""Raw RSA public keys as used for EMV certificate recovery."""

from __future__ import annotations

from dataclasses import dataclass

MAX_MODULUS_BITS = 4096
MIN_PUBLIC_EXPONENT = 2
MAX_PUBLIC_EXPONENT = (1 << 33) - 1


class RsaKeyError(ValueError):
    """Raised when a modulus/exponent pair does not form a usable public key."""


def int_to_bytes(value: int) -> bytes:
    """Minimal big-endian encoding of a non-negative integer (zero is one byte)."""
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


@dataclass(frozen=True)
class RsaPublicKey:
    """An RSA public key with modulus ``n`` and public exponent ``e``."""

    n: int
    e: int

    def __post_init__(self) -> None:
        if self.n.bit_length() > MAX_MODULUS_BITS:
            raise RsaKeyError("modulus too large")
        if self.e >= self.n or self.n % 2 == 0:
            raise RsaKeyError("invalid modulus")
        if self.e < MIN_PUBLIC_EXPONENT:
            raise RsaKeyError("public exponent too small")
        if self.e > MAX_PUBLIC_EXPONENT:
            raise RsaKeyError("public exponent too large")

    @classmethod
    def from_bytes(cls, modulus: bytes, exponent: bytes) -> RsaPublicKey:
        """Build a key from big-endian modulus and exponent bytes."""
        return cls(int.from_bytes(modulus, "big"), int.from_bytes(exponent, "big"))

    def bits(self) -> int:
        """Bit length of the modulus."""
        return self.n.bit_length()

    def encrypt_raw(self, data: bytes) -> bytes:
        """Apply the bare public-key operation and return minimal big-endian bytes."""
        return int_to_bytes(pow(int.from_bytes(data, "big"), self.e, self.n))