"""Reading an EMV card: APDU exchange, certificate chain recovery and the signed nonce."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol, Sequence

from zkemv.ca_keys import get_ca_key
from zkemv.contract import CardThings, VerificationError
from zkemv.rsakey import RsaKeyError, RsaPublicKey
from zkemv.tlv import Tlv, TlvError, find_data_item, parse_tag_list

log = logging.getLogger(__name__)

SW_OK = 0x9000
SW_FILE_NOT_FOUND = 0x6A82
PPSE_NAMES = (b"1PAY.SYS.DDF01", b"2PAY.SYS.DDF01")
UNPREDICTABLE_NUMBER = 0x9F37

_U32_MAX = 0xFFFFFFFF

# Fixed terminal data offered in GET PROCESSING OPTIONS.
_PDOL_VALUES = {
    0x9F66: bytes([0x31, 0x00, 0x00, 0x00]),  # terminal transaction qualifiers
    0x9F1A: bytes([0x02, 0x50]),  # terminal country code: France
    0x5F2A: bytes([0x09, 0x78]),  # transaction currency code: Euro
    0x9A: bytes(3),  # transaction date
    0x9F37: bytes([0xDE, 0xAD, 0xBE, 0xEF]),  # unpredictable number
}


class CardError(Exception):
    """Raised when the card or the data it returns cannot be used."""


class ApduError(CardError):
    """Raised when the card answers a command with a status other than 9000."""

    def __init__(self, payload: bytes, sw: int) -> None:
        super().__init__(f"APDU failed with status {sw:04X}")
        self.payload = bytes(payload)
        self.sw = sw


class CardTransport(Protocol):
    """Anything that can exchange APDUs with a card."""

    def transmit(self, apdu: bytes) -> bytes:
        """Send a command APDU and return the response including the status word."""
        ...


@dataclass(frozen=True)
class Command:
    """A short command APDU; always encoded with Le = 00."""

    cla: int
    ins: int
    p1: int
    p2: int
    data: bytes = b""

    def __post_init__(self) -> None:
        if len(self.data) > 0xFF:
            raise ValueError("command data too long for a short APDU")
        object.__setattr__(self, "data", bytes(self.data))

    def to_bytes(self) -> bytes:
        header = bytes([self.cla, self.ins, self.p1, self.p2])
        body = bytes([len(self.data)]) + self.data if self.data else b""
        return header + body + b"\x00"


def select_file(name: bytes) -> Command:
    """SELECT by DF name."""
    return Command(0x00, 0xA4, 0x04, 0x00, bytes(name))


def do_apdu(card: CardTransport, command: Command) -> bytes:
    """Send ``command`` and return the response data without the status word."""
    apdu = command.to_bytes()
    log.info("-> %s", apdu.hex().upper())
    response = bytes(card.transmit(apdu))
    log.info("<- %s", response.hex().upper())
    if len(response) < 2:
        raise CardError("APDU response too short")
    sw = int.from_bytes(response[-2:], "big")
    payload = response[:-2]
    if sw != SW_OK:
        raise ApduError(payload, sw)
    return payload


def build_pdol_data(pdol: Iterable[tuple[int, int]]) -> bytes:
    """Terminal data for the processing options data object list."""
    parts = []
    for tag, length in pdol:
        value = _PDOL_VALUES.get(tag)
        if value is None:
            value = bytes(length)
        elif len(value) != length:
            raise CardError(f"unexpected length {length} for PDOL tag {tag:X}")
        parts.append(value)
    return b"".join(parts)


def build_cdol_data(cdol: Iterable[tuple[int, int]], nonce: int) -> bytes:
    """Transaction data for GENERATE AC, carrying ``nonce`` as the unpredictable number."""
    return b"".join(
        nonce.to_bytes(4, "big") if tag == UNPREDICTABLE_NUMBER else bytes(length)
        for tag, length in cdol
    )


def _require(data_items: Sequence[Tlv], path: str, what: str) -> bytes:
    value = find_data_item(data_items, path)
    if value is None:
        raise CardError(f"{what} missing")
    return value


def _make_key(modulus: bytes, exponent: bytes) -> RsaPublicKey:
    try:
        return RsaPublicKey.from_bytes(modulus, exponent)
    except RsaKeyError as exc:
        raise CardError(f"invalid public key: {exc}") from exc


def _recover(key: RsaPublicKey, raw: bytes, fmt: int, what: str) -> bytes:
    """Recover a signed block and check its header, format byte and trailer."""
    if key.bits() != len(raw) * 8:
        raise CardError(f"{what} length does not match key")
    recovered = key.encrypt_raw(raw)
    log.info("%s: %s", what, recovered.hex())
    if key.bits() != len(recovered) * 8:
        raise CardError(f"recovered {what} length does not match key")
    if recovered[-1] != 0xBC or recovered[0] != 0x6A or recovered[1] != fmt:
        raise CardError(f"bad {what} framing")
    return recovered


def _check_hash(contents: bytes, recovered: bytes, what: str) -> None:
    digest = hashlib.sha1(contents).digest()
    expected = recovered[-21:-1]
    log.info("%s hash: %s, expected: %s", what, digest.hex(), expected.hex())
    if digest != expected:
        raise CardError(f"{what} hash mismatch")


def recover_issuer_key(ca_key: RsaPublicKey, data_items: Sequence[Tlv]) -> RsaPublicKey:
    """Recover the issuer public key from its certificate signed by ``ca_key``."""
    raw = _require(data_items, "90", "issuer cert")
    cert = _recover(ca_key, raw, 0x02, "issuer cert")
    if len(cert) < 36:
        raise CardError("issuer cert too short")
    if cert[11] != 0x01:
        raise CardError("unsupported issuer cert hash algorithm")
    if cert[12] != 0x01:
        raise CardError("unsupported issuer public key algorithm")

    remainder = find_data_item(data_items, "92") or b""
    exponent = _require(data_items, "9F32", "issuer public key exponent")

    room = len(cert) - 36
    _check_hash(cert[1:15 + room] + remainder + exponent, cert, "issuer cert")

    modulus_len, exponent_len = cert[13], cert[14]
    modulus = cert[15:15 + min(modulus_len, room)] + remainder
    if len(modulus) != modulus_len:
        raise CardError("issuer public key modulus length mismatch")
    if len(exponent) != exponent_len:
        raise CardError("issuer public key exponent length mismatch")
    return _make_key(modulus, exponent)


def recover_icc_key(
    issuer_key: RsaPublicKey, data_items: Sequence[Tlv], dda_data: bytes
) -> tuple[bytes, bytes]:
    """Recover the ICC public key; returns its (modulus, exponent) bytes."""
    raw = _require(data_items, "9F46", "icc cert")
    cert = _recover(issuer_key, raw, 0x04, "icc cert")
    if len(cert) < 42:
        raise CardError("icc cert too short")
    if cert[17] != 0x01:
        raise CardError("unsupported icc cert hash algorithm")
    if cert[18] != 0x01:
        raise CardError("unsupported icc public key algorithm")

    remainder = find_data_item(data_items, "9F48") or b""
    exponent = _require(data_items, "9F47", "icc public key exponent")

    contents = bytearray(cert[1:len(cert) - 21])
    contents += remainder + exponent + bytes(dda_data)
    sda_tags = find_data_item(data_items, "9F4A")
    if sda_tags is not None:
        for tag in sda_tags:
            contents += _require(
                data_items, f"{tag:02x}", f"data item {tag:02x} from SDA tag list"
            )
    log.info("icc cert hash contents: %s", bytes(contents).hex())
    _check_hash(bytes(contents), cert, "icc cert")

    modulus_len, exponent_len = cert[19], cert[20]
    modulus = cert[21:21 + min(modulus_len, len(cert) - 42)] + remainder
    if len(modulus) != modulus_len:
        raise CardError("icc public key modulus length mismatch")
    if len(exponent) != exponent_len:
        raise CardError("icc public key exponent length mismatch")
    return modulus, exponent


def _text(value: Optional[bytes]) -> str:
    return "(unknown)" if value is None else value.decode("utf-8", errors="replace")


def _select_payment_directory(card: CardTransport) -> bytes:
    try:
        return do_apdu(card, select_file(PPSE_NAMES[0]))
    except ApduError as exc:
        if exc.sw != SW_FILE_NOT_FOUND:
            raise
        return do_apdu(card, select_file(PPSE_NAMES[1]))


def _read_records(
    card: CardTransport, afl: bytes
) -> tuple[list[Tlv], bytes]:
    if len(afl) % 4:
        raise CardError("AFL length is not a multiple of 4")
    records: list[Tlv] = []
    dda = bytearray()
    entries = iter(afl)
    for sfi_byte, first, last, offline_count in zip(entries, entries, entries, entries):
        if sfi_byte & 0b111:
            raise CardError("malformed AFL entry")
        sfi = sfi_byte >> 3
        for number in range(first, last + 1):
            log.info("Reading file %d, record %d", sfi, number)
            record = Tlv.parse(do_apdu(card, Command(0x00, 0xB2, number, (sfi << 3) | 0b100)))
            if record.tag != 0x70:
                raise CardError("record is not a template 70")
            if number - first < offline_count:
                dda += record.to_bytes() if sfi > 10 else record.value_bytes()
            records.append(record)
    return records, bytes(dda)


def _read_card(card: CardTransport, nonce_getter: Callable[[bytes], int]) -> CardThings:
    directory = Tlv.parse(_select_payment_directory(card))
    aid = directory.find_value("6F / A5 / BF0C / 61 / 4F")
    if aid is None:
        raise CardError("AID not found")
    log.info("Selecting AID %s...", aid.hex().upper())

    fci = Tlv.parse(do_apdu(card, select_file(aid)))
    log.info("Label: %s", _text(fci.find_value("6F / A5 / 50")))
    log.info("Language: %s", _text(fci.find_value("6F / A5 / 5F2D")))
    log.info("Country: %s", _text(fci.find_value("6F / A5 / BF0C / 5F55")))

    pdol = parse_tag_list(fci.find_value("6F / A5 / 9F38") or b"")
    gpo_data = Tlv(0x83, build_pdol_data(pdol)).to_bytes()
    processing_options = Tlv.parse(do_apdu(card, Command(0x80, 0xA8, 0x00, 0x00, gpo_data)))

    afl = processing_options.find_value("77 / 94")
    if afl is None:
        raise CardError("AFL not found")
    records, dda = _read_records(card, afl)
    data_items = [processing_options, *records]

    if len(aid) < 5:
        raise CardError("AID too short")
    rid = int.from_bytes(aid[:5], "big")
    ca_idx = _require(data_items, "8F", "ca_idx")
    if len(ca_idx) != 1:
        raise CardError("ca_idx must be one byte")
    log.info("ca_idx: %010x/%02x", rid, ca_idx[0])
    ca_key = get_ca_key(rid, ca_idx[0])
    if ca_key is None:
        raise CardError("unknown CA key")

    issuer_key = recover_issuer_key(ca_key, data_items)
    _require(data_items, "5A", "PAN")

    icc_modulus, icc_exponent = recover_icc_key(issuer_key, data_items, dda)
    icc_key = _make_key(icc_modulus, icc_exponent)

    key_hash = CardThings(icc_modulus, icc_exponent, b"", b"").icc_key_hash()
    nonce = nonce_getter(key_hash)
    if not 0 <= nonce <= _U32_MAX:
        raise CardError("nonce does not fit in 32 bits")
    log.info("Using nonce: 0x%08x", nonce)

    cdol1 = parse_tag_list(_require(data_items, "8C", "CDOL1"))
    arqc = Tlv.parse(
        do_apdu(card, Command(0x80, 0xAE, 0x90, 0x00, build_cdol_data(cdol1, nonce)))
    )
    sig_raw = arqc.find_value("77 / 9F4B")
    if sig_raw is None:
        raise CardError("ARQC CDA sig missing")
    signature = _recover(icc_key, sig_raw, 0x05, "ARQC sig")
    hash_contents = signature[1:len(signature) - 21] + nonce.to_bytes(4, "big")
    _check_hash(hash_contents, signature, "ARQC sig")

    things = CardThings(icc_modulus, icc_exponent, sig_raw, hash_contents)
    try:
        things.verify(nonce)
    except VerificationError as exc:
        raise CardError("Reverification failed!") from exc
    return things


def read_card(card: CardTransport, nonce_getter: Callable[[bytes], int]) -> CardThings:
    """Run a transaction that makes the card sign a nonce, verifying the chain.

    ``nonce_getter`` receives the ICC key hash and returns the nonce to sign.
    """
    try:
        return _read_card(card, nonce_getter)
    except TlvError as exc:
        raise CardError(f"malformed card data: {exc}") from exc