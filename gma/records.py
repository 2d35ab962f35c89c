from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional

from .constants import STRING_ENCODING
from .errors import InvalidInput, MissingNullTerminator


# Fixed-width little-endian fields
_I8 = struct.Struct("<b")
_U8 = struct.Struct("<B")
_I32 = struct.Struct("<i")
_U32 = struct.Struct("<I")
_I64 = struct.Struct("<q")
_U64 = struct.Struct("<Q")


@dataclass
class Entry:
    name: str
    content: bytes = b""

    @property
    def size(self) -> int:
        """Declared size; always equals len(content)."""
        return len(self.content)


@dataclass
class Archive:
    name: str
    description: str = ""
    author: str = ""
    owner_id: int = 0
    timestamp: Optional[int] = None  # only set on decoded archives
    entries: List[Entry] = field(default_factory=list)

    def total_size(self) -> int:
        return sum(e.size for e in self.entries)


def read_exact(f: BinaryIO, n: int) -> bytes:
    b = f.read(n)
    if b is None or len(b) != n:
        raise EOFError("Unexpected EOF")
    return b


def read_i8(f: BinaryIO) -> int:
    return _I8.unpack(read_exact(f, _I8.size))[0]


def read_u8(f: BinaryIO) -> int:
    return _U8.unpack(read_exact(f, _U8.size))[0]


def read_i32(f: BinaryIO) -> int:
    return _I32.unpack(read_exact(f, _I32.size))[0]


def read_u32(f: BinaryIO) -> int:
    return _U32.unpack(read_exact(f, _U32.size))[0]


def read_i64(f: BinaryIO) -> int:
    return _I64.unpack(read_exact(f, _I64.size))[0]


def read_u64(f: BinaryIO) -> int:
    return _U64.unpack(read_exact(f, _U64.size))[0]


def read_cstring(f: BinaryIO) -> str:
    """Read a null-terminated string.

    The terminator is consumed and dropped. Invalid UTF-8 is replaced rather
    than rejected so loosely encoded legacy archives still load.
    """
    buf = bytearray()
    while True:
        b = f.read(1)
        if not b:
            raise MissingNullTerminator()
        if b == b"\x00":
            break
        buf += b
    return buf.decode(STRING_ENCODING, errors="replace")


def encode_cstring(s: str, *, label: str = "string") -> bytes:
    """Return the wire form of `s` (UTF-8 plus terminator)."""
    if "\x00" in s:
        raise InvalidInput(f"{label} contains null byte")
    return s.encode(STRING_ENCODING) + b"\x00"


def pack_i8(v: int) -> bytes:
    return _I8.pack(v)


def pack_u8(v: int) -> bytes:
    return _U8.pack(v)


def pack_i32(v: int) -> bytes:
    return _I32.pack(v)


def pack_u32(v: int) -> bytes:
    return _U32.pack(v)


def pack_i64(v: int) -> bytes:
    return _I64.pack(v)


def pack_u64(v: int) -> bytes:
    return _U64.pack(v)
