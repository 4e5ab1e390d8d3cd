import hashlib
import random
from functools import lru_cache

import pytest

from zkemv.card import (
    ApduError,
    CardError,
    Command,
    build_cdol_data,
    build_pdol_data,
    do_apdu,
    read_card,
    recover_icc_key,
    recover_issuer_key,
    select_file,
)
from zkemv.rsakey import RsaPublicKey
from zkemv.tlv import Tlv

OK = b"\x90\x00"
CA_SIZE, ISSUER_SIZE, ICC_SIZE = 96, 80, 64


def _is_prime(n, rng):
    for small in (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37):
        if n % small == 0:
            return n == small
    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1
    for _ in range(24):
        x = pow(rng.randrange(2, n - 1), d, n)
        if x in (1, n - 1):
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def _prime(bits, rng):
    while True:
        candidate = rng.getrandbits(bits) | (3 << (bits - 2)) | 1
        if candidate % 3 == 2 and _is_prime(candidate, rng):
            return candidate


@lru_cache(maxsize=None)
def _private_key(size, seed):
    rng = random.Random(seed)
    p = _prime(size * 4, rng)
    q = _prime(size * 4, rng)
    while q == p:
        q = _prime(size * 4, rng)
    n = p * q
    return n, pow(3, -1, (p - 1) * (q - 1))


def _sign(key, message):
    n, d = key
    return pow(int.from_bytes(message, "big"), d, n).to_bytes(len(message), "big")


def _modulus(key, size):
    return key[0].to_bytes(size, "big")


def _issuer_cert(ca, modulus, exponent, fmt=0x02):
    room = CA_SIZE - 36
    part, remainder = modulus[:room].ljust(room, b"\xbb"), modulus[room:]
    body = (
        bytes([fmt]) + b"\x11" * 4 + b"\x12\x30" + b"\x00\x00\x01"
        + bytes([1, 1, len(modulus), len(exponent)]) + part
    )
    digest = hashlib.sha1(body + remainder + exponent).digest()
    return _sign(ca, b"\x6a" + body + digest + b"\xbc"), remainder


def _icc_cert(issuer, modulus, exponent, extra):
    room = ISSUER_SIZE - 42
    part, remainder = modulus[:room].ljust(room, b"\xbb"), modulus[room:]
    body = (
        b"\x04" + b"\xaa" * 10 + b"\x12\x30" + b"\x00\x00\x02"
        + bytes([1, 1, len(modulus), len(exponent)]) + part
    )
    digest = hashlib.sha1(body + remainder + exponent + extra).digest()
    return _sign(issuer, b"\x6a" + body + digest + b"\xbc"), remainder


@pytest.fixture(scope="module")
def keys():
    return _private_key(CA_SIZE, 1), _private_key(ISSUER_SIZE, 2), _private_key(ICC_SIZE, 3)


class _ScriptedCard:
    def __init__(self, responses):
        self.responses = responses
        self.sent = []

    def transmit(self, apdu):
        self.sent.append(apdu)
        return self.responses.get(apdu, b"\x6a\x82")


def test_select_ppse_wire_bytes():
    apdu = select_file(b"1PAY.SYS.DDF01").to_bytes()
    assert apdu == bytes.fromhex("00A404000E") + b"1PAY.SYS.DDF01" + b"\x00"


def test_command_without_data_has_le_only():
    assert Command(0x00, 0xB2, 0x01, 0x0C).to_bytes() == bytes.fromhex("00B2010C00")


def test_command_rejects_long_data():
    with pytest.raises(ValueError):
        Command(0x80, 0xAE, 0x90, 0x00, bytes(256))


def test_do_apdu_strips_status_word():
    command = Command(0x00, 0xB2, 0x01, 0x0C)
    card = _ScriptedCard({command.to_bytes(): b"\x70\x00" + OK})
    assert do_apdu(card, command) == b"\x70\x00"
    assert card.sent == [command.to_bytes()]


def test_do_apdu_raises_on_error_status():
    command = select_file(b"1PAY.SYS.DDF01")
    card = _ScriptedCard({command.to_bytes(): b"\x01\x6a\x81"})
    with pytest.raises(ApduError) as info:
        do_apdu(card, command)
    assert info.value.sw == 0x6A81
    assert info.value.payload == b"\x01"


def test_do_apdu_rejects_short_response():
    command = select_file(b"1PAY.SYS.DDF01")
    card = _ScriptedCard({command.to_bytes(): b"\x90"})
    with pytest.raises(CardError, match="too short"):
        do_apdu(card, command)


def test_pdol_data_uses_terminal_values():
    pdol = [(0x9F66, 4), (0x9F1A, 2), (0x5F2A, 2), (0x9A, 3), (0x9F37, 4), (0x9F02, 6)]
    assert build_pdol_data(pdol) == (
        bytes([0x31, 0, 0, 0]) + bytes([0x02, 0x50]) + bytes([0x09, 0x78])
        + bytes(3) + bytes([0xDE, 0xAD, 0xBE, 0xEF]) + bytes(6)
    )


def test_pdol_data_rejects_wrong_length():
    with pytest.raises(CardError):
        build_pdol_data([(0x9F1A, 3)])


def test_cdol_data_places_nonce():
    data = build_cdol_data([(0x9F02, 6), (0x9F37, 4), (0x95, 5)], 0x01020304)
    assert data == bytes(6) + b"\x01\x02\x03\x04" + bytes(5)


def test_recover_issuer_key_round_trip(keys):
    ca, issuer, _ = keys
    modulus = _modulus(issuer, ISSUER_SIZE)
    cert, remainder = _issuer_cert(ca, modulus, b"\x03")
    items = [Tlv(0x70, (Tlv(0x90, cert), Tlv(0x92, remainder), Tlv(0x9F32, b"\x03")))]
    key = recover_issuer_key(RsaPublicKey(ca[0], 3), items)
    assert key == RsaPublicKey(issuer[0], 3)


def test_recover_issuer_key_rejects_wrong_exponent(keys):
    ca, issuer, _ = keys
    cert, remainder = _issuer_cert(ca, _modulus(issuer, ISSUER_SIZE), b"\x03")
    items = [Tlv(0x70, (Tlv(0x90, cert), Tlv(0x92, remainder), Tlv(0x9F32, b"\x05")))]
    with pytest.raises(CardError, match="hash mismatch"):
        recover_issuer_key(RsaPublicKey(ca[0], 3), items)


def test_recover_issuer_key_rejects_wrong_format(keys):
    ca, issuer, _ = keys
    cert, remainder = _issuer_cert(ca, _modulus(issuer, ISSUER_SIZE), b"\x03", fmt=0x03)
    items = [Tlv(0x70, (Tlv(0x90, cert), Tlv(0x92, remainder), Tlv(0x9F32, b"\x03")))]
    with pytest.raises(CardError, match="framing"):
        recover_issuer_key(RsaPublicKey(ca[0], 3), items)


def test_recover_issuer_key_requires_certificate(keys):
    ca, _, _ = keys
    with pytest.raises(CardError, match="issuer cert missing"):
        recover_issuer_key(RsaPublicKey(ca[0], 3), [Tlv(0x70, (Tlv(0x9F32, b"\x03"),))])


def _icc_items(keys, dda):
    _, issuer, icc = keys
    modulus = _modulus(icc, ICC_SIZE)
    aip = b"\x19\x80"
    cert, remainder = _icc_cert(issuer, modulus, b"\x03", dda + aip)
    items = [
        Tlv(0x77, (Tlv(0x82, aip),)),
        Tlv(0x70, (
            Tlv(0x9F46, cert),
            Tlv(0x9F48, remainder),
            Tlv(0x9F47, b"\x03"),
            Tlv(0x9F4A, b"\x82"),
        )),
    ]
    return items, modulus


def test_recover_icc_key_round_trip(keys):
    items, modulus = _icc_items(keys, b"\x01\x02")
    issuer_key = RsaPublicKey(keys[1][0], 3)
    assert recover_icc_key(issuer_key, items, b"\x01\x02") == (modulus, b"\x03")


def test_recovered_icc_key_is_usable(keys):
    items, modulus = _icc_items(keys, b"")
    recovered_modulus, exponent = recover_icc_key(RsaPublicKey(keys[1][0], 3), items, b"")
    assert RsaPublicKey.from_bytes(recovered_modulus, exponent).bits() == ICC_SIZE * 8


def test_recover_icc_key_rejects_other_dda_data(keys):
    items, _ = _icc_items(keys, b"\x01\x02")
    with pytest.raises(CardError, match="hash mismatch"):
        recover_icc_key(RsaPublicKey(keys[1][0], 3), items, b"\x01\x03")


def _fci_with_aid(aid):
    return Tlv(0x6F, (Tlv(0xA5, (Tlv(0xBF0C, (Tlv(0x61, (Tlv(0x4F, aid),)),)),)),)).to_bytes()


def test_read_card_falls_back_to_second_directory():
    second = select_file(b"2PAY.SYS.DDF01").to_bytes()
    card = _ScriptedCard({second: Tlv(0x6F, (Tlv(0xA5, ()),)).to_bytes() + OK})
    with pytest.raises(CardError, match="AID not found"):
        read_card(card, lambda key_hash: 1)
    assert card.sent == [select_file(b"1PAY.SYS.DDF01").to_bytes(), second]


def test_read_card_propagates_other_select_errors():
    first = select_file(b"1PAY.SYS.DDF01").to_bytes()
    card = _ScriptedCard({first: b"\x6a\x81"})
    with pytest.raises(ApduError) as info:
        read_card(card, lambda key_hash: 1)
    assert info.value.sw == 0x6A81
    assert card.sent == [first]


def _scripted_until_records(afl, record):
    aid = b"\xa0\x00\x00\x00\x99\x99"
    fci = Tlv(0x6F, (Tlv(0x84, aid), Tlv(0xA5, (Tlv(0x50, b"TEST"),)))).to_bytes()
    gpo = Command(0x80, 0xA8, 0x00, 0x00, b"\x83\x00").to_bytes()
    options = Tlv(0x77, (Tlv(0x82, b"\x19\x80"), Tlv(0x94, afl))).to_bytes()
    read = Command(0x00, 0xB2, 0x01, 0x0C).to_bytes()
    return _ScriptedCard({
        select_file(b"1PAY.SYS.DDF01").to_bytes(): _fci_with_aid(aid) + OK,
        select_file(aid).to_bytes(): fci + OK,
        gpo: options + OK,
        read: record + OK,
    }), gpo, read


def test_read_card_stops_at_unknown_ca_key():
    record = Tlv(0x70, (Tlv(0x8F, b"\x01"),)).to_bytes()
    card, gpo, read = _scripted_until_records(bytes([0x08, 0x01, 0x01, 0x00]), record)
    with pytest.raises(CardError, match="unknown CA key"):
        read_card(card, lambda key_hash: 1)
    assert card.sent[2:] == [gpo, read]


def test_read_card_rejects_malformed_afl():
    record = Tlv(0x70, (Tlv(0x8F, b"\x01"),)).to_bytes()
    card, _, _ = _scripted_until_records(bytes([0x09, 0x01, 0x01, 0x00]), record)
    with pytest.raises(CardError, match="AFL"):
        read_card(card, lambda key_hash: 1)
    assert len(card.sent) == 3


def test_read_card_rejects_record_outside_template():
    record = Tlv(0x77, (Tlv(0x8F, b"\x01"),)).to_bytes()
    card, _, _ = _scripted_until_records(bytes([0x08, 0x01, 0x01, 0x00]), record)
    with pytest.raises(CardError, match="template 70"):
        read_card(card, lambda key_hash: 1)