"""Bedrock (little-endian) NBT reader/writer.

Nodes are kept as ``Tag(kind, value)`` so callers read fields through checked
accessors instead of poking at bare dicts and lists:

    root = load_nbt(path.read_bytes())
    size = root["size"].as_ints()
    grid = root["structure"]["block_indices"].as_list()[0].as_ints()

A type mismatch or a missing field raises ``TagTypeError`` naming the field.
"""

from __future__ import annotations

import gzip
import struct
from dataclasses import dataclass
from typing import Any, Optional

TAG_END = 0
TAG_BYTE = 1
TAG_SHORT = 2
TAG_INT = 3
TAG_LONG = 4
TAG_FLOAT = 5
TAG_DOUBLE = 6
TAG_BYTE_ARRAY = 7
TAG_STRING = 8
TAG_LIST = 9
TAG_COMPOUND = 10
TAG_INT_ARRAY = 11
TAG_LONG_ARRAY = 12

TAG_NAMES = {
    TAG_END: "end",
    TAG_BYTE: "byte",
    TAG_SHORT: "short",
    TAG_INT: "int",
    TAG_LONG: "long",
    TAG_FLOAT: "float",
    TAG_DOUBLE: "double",
    TAG_BYTE_ARRAY: "byte_array",
    TAG_STRING: "string",
    TAG_LIST: "list",
    TAG_COMPOUND: "compound",
    TAG_INT_ARRAY: "int_array",
    TAG_LONG_ARRAY: "long_array",
}

INTEGRAL_TAGS = {TAG_BYTE, TAG_SHORT, TAG_INT, TAG_LONG}
NUMERIC_TAGS = INTEGRAL_TAGS | {TAG_FLOAT, TAG_DOUBLE}
ARRAY_TAGS = {TAG_BYTE_ARRAY, TAG_INT_ARRAY, TAG_LONG_ARRAY}

_SCALAR_FORMATS = {
    TAG_BYTE: "<b",
    TAG_SHORT: "<h",
    TAG_INT: "<i",
    TAG_LONG: "<q",
    TAG_FLOAT: "<f",
    TAG_DOUBLE: "<d",
}
_ARRAY_ITEM = {TAG_BYTE_ARRAY: "b", TAG_INT_ARRAY: "i", TAG_LONG_ARRAY: "q"}


class NBTError(Exception):
    pass


class TagTypeError(NBTError):
    pass


def tag_name(kind: int) -> str:
    return TAG_NAMES.get(kind, f"tag#{kind}")


@dataclass(frozen=True)
class Tag:
    kind: int
    value: Any

    def _expect(self, *kinds: int) -> None:
        if self.kind not in kinds:
            wanted = "/".join(tag_name(k) for k in kinds)
            raise TagTypeError(f"expected {wanted}, got {tag_name(self.kind)}")

    def as_compound(self) -> dict[str, "Tag"]:
        self._expect(TAG_COMPOUND)
        return self.value

    def as_list(self) -> list["Tag"]:
        self._expect(TAG_LIST)
        return self.value

    def as_number(self) -> int | float:
        self._expect(*NUMERIC_TAGS)
        return self.value

    def as_string(self) -> str:
        self._expect(TAG_STRING)
        return self.value

    def as_ints(self) -> list[int]:
        """Integers from an int/long/byte array or from a list of integral tags."""
        if self.kind in ARRAY_TAGS:
            return list(self.value)
        out: list[int] = []
        for i, item in enumerate(self.as_list()):
            if item.kind not in INTEGRAL_TAGS:
                raise TagTypeError(f"list item {i}: expected integer, got {tag_name(item.kind)}")
            out.append(item.value)
        return out

    def child(self, name: str) -> "Tag":
        fields = self.as_compound()
        if name not in fields:
            raise TagTypeError(f"missing field {name!r}")
        return fields[name]

    def get(self, name: str, default: Optional["Tag"] = None) -> Optional["Tag"]:
        return self.as_compound().get(name, default)

    def __getitem__(self, name: str) -> "Tag":
        return self.child(name)

    def to_python(self) -> Any:
        if self.kind == TAG_COMPOUND:
            return {k: v.to_python() for k, v in self.value.items()}
        if self.kind == TAG_LIST:
            return [v.to_python() for v in self.value]
        if self.kind in ARRAY_TAGS:
            return list(self.value)
        return self.value


class _Buf:
    __slots__ = ("b", "o")

    def __init__(self, b: bytes):
        self.b = b
        self.o = 0

    def read_bytes(self, n: int) -> bytes:
        if self.o + n > len(self.b):
            raise NBTError("unexpected EOF")
        v = self.b[self.o : self.o + n]
        self.o += n
        return v

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_i32(self) -> int:
        return struct.unpack("<i", self.read_bytes(4))[0]

    def read_fmt(self, fmt: str) -> Any:
        return struct.unpack(fmt, self.read_bytes(struct.calcsize(fmt)))[0]

    def read_string(self) -> str:
        ln = struct.unpack("<H", self.read_bytes(2))[0]
        try:
            return self.read_bytes(ln).decode("utf-8", errors="strict")
        except UnicodeDecodeError as exc:
            raise NBTError(f"invalid utf-8 string: {exc}") from exc

    def read_length(self, what: str) -> int:
        ln = self.read_i32()
        if ln < 0:
            raise NBTError(f"negative {what} length")
        return ln


def _read_tag_payload(tag: int, buf: _Buf) -> Tag:
    fmt = _SCALAR_FORMATS.get(tag)
    if fmt is not None:
        return Tag(tag, buf.read_fmt(fmt))
    if tag in ARRAY_TAGS:
        ln = buf.read_length(tag_name(tag))
        item = _ARRAY_ITEM[tag]
        raw = buf.read_bytes(ln * struct.calcsize(item))
        return Tag(tag, list(struct.unpack(f"<{ln}{item}", raw)))
    if tag == TAG_STRING:
        return Tag(tag, buf.read_string())
    if tag == TAG_LIST:
        inner = buf.read_u8()
        ln = buf.read_length("list")
        if ln and inner == TAG_END:
            raise NBTError("non-empty list of TAG_End")
        return Tag(tag, [_read_tag_payload(inner, buf) for _ in range(ln)])
    if tag == TAG_COMPOUND:
        out: dict[str, Tag] = {}
        while True:
            t = buf.read_u8()
            if t == TAG_END:
                return Tag(tag, out)
            name = buf.read_string()
            out[name] = _read_tag_payload(t, buf)
    raise NBTError(f"unknown tag {tag}")


def load_nbt(raw: bytes) -> Tag:
    """Decode a little-endian NBT document; gzip-wrapped input is accepted."""
    if raw[:2] == b"\x1f\x8b":
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError) as exc:
            raise NBTError(f"bad gzip stream: {exc}") from exc
    buf = _Buf(raw)
    root_t = buf.read_u8()
    if root_t != TAG_COMPOUND:
        raise NBTError(f"unexpected root tag: {tag_name(root_t)} (expected compound)")
    _ = buf.read_string()  # root name (usually empty)
    return _read_tag_payload(TAG_COMPOUND, buf)


# --- Writer ---
def _enc_string(s: str) -> bytes:
    b = s.encode("utf-8", errors="strict")
    if len(b) > 65535:
        raise NBTError("string too long for NBT")
    return struct.pack("<H", len(b)) + b


def _tag_type(value: Any) -> int:
    if isinstance(value, Tag):
        return value.kind
    if isinstance(value, bool):
        return TAG_BYTE
    if isinstance(value, int):
        return TAG_INT
    if isinstance(value, float):
        return TAG_FLOAT
    if isinstance(value, str):
        return TAG_STRING
    if isinstance(value, (bytes, bytearray)):
        return TAG_BYTE_ARRAY
    if isinstance(value, dict):
        return TAG_COMPOUND
    if isinstance(value, list):
        return TAG_LIST
    raise NBTError(f"unsupported Python type for NBT write: {type(value)}")


def _write_payload(value: Any) -> tuple[int, bytes]:
    tag = _tag_type(value)
    if isinstance(value, Tag):
        value = value.value
    fmt = _SCALAR_FORMATS.get(tag)
    if fmt is not None:
        return tag, struct.pack(fmt, value)
    if tag in ARRAY_TAGS:
        if isinstance(value, (bytes, bytearray)):
            body = bytes(value)
        else:
            body = struct.pack(f"<{len(value)}{_ARRAY_ITEM[tag]}", *value)
        return tag, struct.pack("<i", len(value)) + body
    if tag == TAG_STRING:
        return tag, _enc_string(value)
    if tag == TAG_COMPOUND:
        pieces: list[bytes] = []
        for k, v in value.items():
            t, p = _write_payload(v)
            pieces.append(bytes([t]) + _enc_string(k) + p)
        pieces.append(bytes([TAG_END]))
        return tag, b"".join(pieces)
    if tag == TAG_LIST:
        inner = _tag_type(value[0]) if value else TAG_END
        payloads = []
        for item in value:
            t, p = _write_payload(item)
            if t != inner:
                raise NBTError("NBT list values must be homogeneous")
            payloads.append(p)
        return tag, bytes([inner]) + struct.pack("<i", len(value)) + b"".join(payloads)
    raise NBTError(f"unsupported write tag {tag}")


def dump_nbt(root: Any, name: str = "") -> bytes:
    """Encode a compound (plain dict or ``Tag``) as uncompressed little-endian NBT.

    Python ints are written as TAG_Int, floats as TAG_Float and lists as
    TAG_List; wrap a value in ``Tag`` to pick another kind.
    """
    tag, payload = _write_payload(root)
    if tag != TAG_COMPOUND:
        raise NBTError("root NBT payload must be compound")
    return bytes([TAG_COMPOUND]) + _enc_string(name) + payload
