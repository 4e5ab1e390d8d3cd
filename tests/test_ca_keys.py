import pytest

from zkemv.ca_keys import get_ca_key

KNOWN = [
    (0xA000000003, 0x08),
    (0xA000000003, 0x09),
    (0xA000000004, 0x05),
    (0xA000000004, 0x06),
    (0xA000000025, 0x0F),
    (0xA000000025, 0x10),
    (0xA000000152, 0x05),
    (0xA000000065, 0x14),
    (0xA000000333, 0x04),
    (0xA000000768, 0xFF),
    (0xA000000768, 0xF2),
    (0xA000000277, 0x08),
]


@pytest.mark.parametrize("rid, idx", KNOWN)
def test_known_keys_are_whole_bytes(rid, idx):
    key = get_ca_key(rid, idx)
    assert key is not None
    assert key.bits() % 8 == 0
    assert key.n % 2 == 1


def test_visa_key_values():
    key = get_ca_key(0xA000000003, 0x08)
    modulus = key.n.to_bytes(key.bits() // 8, "big").hex().upper()
    assert modulus.startswith("D9FD6ED75D51D0E3")
    assert modulus.endswith("E1ED0B")
    assert key.e == 3


def test_interac_exponent():
    assert get_ca_key(0xA000000277, 0x08).e == 0x010001


@pytest.mark.parametrize(
    "rid, idx",
    [(0xA000000003, 0x01), (0xA000000999, 0x08), (0, 0)],
)
def test_unknown_key_returns_none(rid, idx):
    assert get_ca_key(rid, idx) is None