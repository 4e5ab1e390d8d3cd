"""BER-TLV parsing and lookup for EMV card responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

TlvValue = Union[bytes, "tuple[Tlv, ...]"]


class TlvError(ValueError):
    """Raised on malformed TLV data or a bad lookup."""


def _read_tag(data: bytes, pos: int) -> tuple[int, int, int]:
    if pos >= len(data):
        raise TlvError("truncated tag")
    first = data[pos]
    tag = first
    pos += 1
    if first & 0x1F == 0x1F:
        while True:
            if pos >= len(data):
                raise TlvError("truncated tag")
            byte = data[pos]
            pos += 1
            tag = (tag << 8) | byte
            if not byte & 0x80:
                break
    return tag, first, pos


def _read_length(data: bytes, pos: int) -> tuple[int, int]:
    if pos >= len(data):
        raise TlvError("truncated length")
    first = data[pos]
    pos += 1
    if first < 0x80:
        return first, pos
    count = first & 0x7F
    if count == 0 or count > 4:
        raise TlvError(f"unsupported length encoding 0x{first:02x}")
    if pos + count > len(data):
        raise TlvError("truncated length")
    return int.from_bytes(data[pos:pos + count], "big"), pos + count


def _encode_tag(tag: int) -> bytes:
    return tag.to_bytes(max(1, (tag.bit_length() + 7) // 8), "big")


def _encode_length(length: int) -> bytes:
    if length < 0x80:
        return bytes([length])
    raw = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([0x80 | len(raw)]) + raw


def _parse_one(data: bytes, pos: int) -> tuple[Tlv, int]:
    tag, first, pos = _read_tag(data, pos)
    length, pos = _read_length(data, pos)
    end = pos + length
    if end > len(data):
        raise TlvError(f"value of tag {tag:x} is truncated")
    body = data[pos:end]
    if first & 0x20:
        return Tlv(tag, tuple(_parse_children(body))), end
    return Tlv(tag, bytes(body)), end


def _parse_children(data: bytes) -> Iterable[Tlv]:
    pos = 0
    while pos < len(data):
        if data[pos] in (0x00, 0xFF):
            pos += 1
            continue
        child, pos = _parse_one(data, pos)
        yield child


def _parse_path(path: str) -> list[int]:
    try:
        return [int(part.strip(), 16) for part in path.split("/")]
    except ValueError as exc:
        raise TlvError(f"invalid TLV path {path!r}") from exc


@dataclass(frozen=True)
class Tlv:
    """A TLV object: a primitive byte value or a tuple of child objects."""

    tag: int
    value: TlvValue

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bytes, bytearray)):
            object.__setattr__(self, "value", tuple(self.value))
        else:
            object.__setattr__(self, "value", bytes(self.value))

    @property
    def is_constructed(self) -> bool:
        return isinstance(self.value, tuple)

    @classmethod
    def parse(cls, data: bytes) -> Tlv:
        """Parse exactly one TLV object spanning all of ``data``."""
        tlv, end = _parse_one(bytes(data), 0)
        if end != len(data):
            raise TlvError("trailing bytes after TLV object")
        return tlv

    def value_bytes(self) -> bytes:
        """The encoded value field."""
        if isinstance(self.value, tuple):
            return b"".join(child.to_bytes() for child in self.value)
        return self.value

    def to_bytes(self) -> bytes:
        """The full encoding: tag, length and value."""
        body = self.value_bytes()
        return _encode_tag(self.tag) + _encode_length(len(body)) + body

    def find(self, path: str) -> Optional[Tlv]:
        """Follow a path such as ``"6F / A5 / 50"``, starting at this object's tag."""
        tags = _parse_path(path)
        if tags[0] != self.tag:
            return None
        node = self
        for tag in tags[1:]:
            if not isinstance(node.value, tuple):
                return None
            node = next((child for child in node.value if child.tag == tag), None)
            if node is None:
                return None
        return node

    def find_value(self, path: str) -> Optional[bytes]:
        """The primitive value at ``path``, or None when absent."""
        node = self.find(path)
        if node is None:
            return None
        if isinstance(node.value, tuple):
            raise TlvError("bad TLV value type")
        return node.value


def parse_tag_list(buf: bytes) -> list[tuple[int, int]]:
    """Parse a data object list into (tag, length) pairs."""
    entries = []
    pos = 0
    while pos < len(buf):
        tag, _, pos = _read_tag(buf, pos)
        length, pos = _read_length(buf, pos)
        entries.append((tag, length))
    return entries


def find_data_item(data_items: Iterable[Tlv], path: str) -> Optional[bytes]:
    """Search records (template 70) and response templates (77) for ``path``."""
    for tlv in data_items:
        for template in ("70", "77"):
            found = tlv.find_value(f"{template} / {path}")
            if found is not None:
                return found
    return None