"""Identity contract: registers card keys and verifies card signatures over nonces."""

from __future__ import annotations

import binascii
import enum
import hashlib
import struct
from dataclasses import dataclass, field
from typing import Optional

from zkemv.rsakey import RsaKeyError, RsaPublicKey

_U32_MAX = 0xFFFFFFFF


class ContractError(Exception):
    """Raised when a contract action fails."""


class VerificationError(ContractError):
    """Raised when card material does not verify."""


class _Reader:
    def __init__(self, data: bytes, error: str) -> None:
        self._data = bytes(data)
        self._pos = 0
        self._error = error

    def read(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise ContractError(self._error)
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u32(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def vec(self) -> bytes:
        return self.read(self.u32())

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise ContractError(self._error)


def _vec(data: bytes) -> bytes:
    return struct.pack("<I", len(data)) + data


class ZkEmvAction(enum.Enum):
    """Operations the contract accepts."""

    REGISTER_IDENTITY = 0
    VERIFY_IDENTITY = 1

    def to_bytes(self) -> bytes:
        return bytes([self.value])

    @classmethod
    def from_bytes(cls, data: bytes) -> ZkEmvAction:
        if len(data) != 1:
            raise ContractError("Could not decode action")
        try:
            return cls(data[0])
        except ValueError as exc:
            raise ContractError("Could not decode action") from exc


@dataclass(frozen=True)
class CardThings:
    """ICC public key and a signature over data ending in the nonce."""

    icc_pk_modulus: bytes
    icc_pk_exponent: bytes
    arqc_sig_raw: bytes
    arqc_sig_hash_contents: bytes

    def icc_key_hash(self) -> bytes:
        """SHA-256 over the length-prefixed modulus and exponent."""
        material = b"".join(
            (
                struct.pack(">I", len(self.icc_pk_modulus)),
                self.icc_pk_modulus,
                struct.pack(">I", len(self.icc_pk_exponent)),
                self.icc_pk_exponent,
            )
        )
        return hashlib.sha256(material).digest()

    def to_bytes(self) -> bytes:
        return b"".join(
            _vec(part)
            for part in (
                self.icc_pk_modulus,
                self.icc_pk_exponent,
                self.arqc_sig_raw,
                self.arqc_sig_hash_contents,
            )
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> CardThings:
        reader = _Reader(data, "Could not decode card things")
        things = cls(reader.vec(), reader.vec(), reader.vec(), reader.vec())
        reader.finish()
        return things

    def verify(self, nonce: int) -> None:
        """Check the signature recovers to a format-5 block over data ending in ``nonce``."""
        try:
            key = RsaPublicKey.from_bytes(self.icc_pk_modulus, self.icc_pk_exponent)
        except RsaKeyError as exc:
            raise VerificationError("invalid ICC public key") from exc

        if key.bits() != len(self.arqc_sig_raw) * 8:
            raise VerificationError("signature length does not match key")
        recovered = key.encrypt_raw(self.arqc_sig_raw)
        if key.bits() != len(recovered) * 8:
            raise VerificationError("recovered data length does not match key")
        if recovered[-1] != 0xBC or recovered[0] != 0x6A or recovered[1] != 0x05:
            raise VerificationError("bad recovered data framing")

        digest = hashlib.sha1(self.arqc_sig_hash_contents).digest()
        if digest != recovered[-21:-1]:
            raise VerificationError("signature hash mismatch")

        contents = self.arqc_sig_hash_contents
        if len(contents) < 4 or int.from_bytes(contents[-4:], "big") != nonce:
            raise VerificationError("nonce mismatch")


def _identity_key_hash(identity: str) -> bytes:
    encoded = identity.split("@")[0]
    try:
        key_hash = binascii.unhexlify(encoded)
    except (binascii.Error, ValueError) as exc:
        raise ContractError("identity decoding error") from exc
    if len(key_hash) != 32:
        raise ContractError("identity size error")
    return key_hash


@dataclass
class ZkEmv:
    """Contract state: a nonce per registered ICC key hash."""

    identities: dict[bytes, int] = field(default_factory=dict)

    def execute(self, identity: str, action: ZkEmvAction, private_input: bytes = b"") -> str:
        """Apply ``action`` for ``identity`` and return the output message."""
        key_hash = _identity_key_hash(identity)

        if action is ZkEmvAction.REGISTER_IDENTITY:
            if key_hash in self.identities:
                raise ContractError("identity already exists")
            self.identities[key_hash] = 1
            return f"Registered identity {key_hash.hex()}"

        card_things = CardThings.from_bytes(private_input)
        nonce = self.identities.get(key_hash)
        if nonce is None:
            raise ContractError("identity not found")
        if key_hash != card_things.icc_key_hash():
            raise ContractError("icc key hash mismatch")
        try:
            card_things.verify(nonce)
        except VerificationError as exc:
            raise ContractError("verification failed") from exc
        if nonce >= _U32_MAX:
            raise ContractError("nonce overflow")
        self.identities[key_hash] = nonce + 1
        return f"Verified identity {key_hash.hex()}; nonce is now {nonce + 1}"

    def commit(self) -> bytes:
        """Serialize the state with keys in ascending order."""
        entries = sorted(self.identities.items())
        return struct.pack("<I", len(entries)) + b"".join(
            key + struct.pack("<I", value) for key, value in entries
        )

    @classmethod
    def from_commitment(cls, data: bytes) -> ZkEmv:
        reader = _Reader(data, "Could not decode zkevm state")
        count = reader.u32()
        identities = {}
        for _ in range(count):
            key = reader.read(32)
            identities[key] = reader.u32()
        reader.finish()
        return cls(identities)

    def get_nonce(self, icc_key_hash: bytes) -> Optional[int]:
        return self.identities.get(bytes(icc_key_hash))