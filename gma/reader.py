from __future__ import annotations

import io
import os
from typing import BinaryIO, List, Optional, Tuple

from .constants import (
    HEADER_MAGIC,
    FORMAT_VERSION,
    METADATA_END,
    TRAILING_MARKER,
    READ_CHUNK_SIZE,
)
from .errors import (
    GmaError,
    InvalidHeader,
    InvalidVersion,
    SizeOutOfRange,
    TrailingMarkerMismatch,
)
from .records import (
    Archive,
    Entry,
    read_exact,
    read_cstring,
    read_i8,
    read_u8,
    read_i32,
    read_u32,
    read_i64,
    read_u64,
)


def _read_content(f: BinaryIO, size: int) -> bytes:
    if size <= READ_CHUNK_SIZE:
        return read_exact(f, size)
    parts = []
    remaining = size
    while remaining > 0:
        n = min(remaining, READ_CHUNK_SIZE)
        parts.append(read_exact(f, n))
        remaining -= n
    return b"".join(parts)


def _read_metadata(f: BinaryIO) -> List[Tuple[str, int]]:
    # Index values are positional only; they are not checked for order or duplicates.
    pending: List[Tuple[str, int]] = []
    while True:
        idx = read_u32(f)
        if idx == METADATA_END:
            break
        name = read_cstring(f)
        size = read_i64(f)
        if size < 0:
            raise SizeOutOfRange(size)
        read_u32(f)  # crc32, unused
        pending.append((name, size))
    return pending


def decode(f: BinaryIO) -> Archive:
    """Decode one archive from a readable binary stream.

    The stream is consumed strictly forward. Raises a GmaError subclass on
    grammar violations, EOFError on short reads; stream errors propagate as-is.
    """
    magic = read_exact(f, len(HEADER_MAGIC))
    if magic != HEADER_MAGIC:
        raise InvalidHeader(magic)

    version = read_i8(f)
    if version != FORMAT_VERSION:
        raise InvalidVersion(version)

    owner_id = read_i64(f)
    timestamp = read_u64(f)
    read_u8(f)  # required content, unused

    name = read_cstring(f)
    description = read_cstring(f)
    author = read_cstring(f)

    read_i32(f)  # addon version, unused

    pending = _read_metadata(f)

    # Contents follow in metadata order
    entries = [Entry(name=entry_name, content=_read_content(f, size)) for entry_name, size in pending]

    trailing = read_u32(f)
    if trailing != TRAILING_MARKER:
        raise TrailingMarkerMismatch(trailing)

    return Archive(
        name=name,
        description=description,
        author=author,
        owner_id=owner_id,
        timestamp=timestamp,
        entries=entries,
    )


def decode_bytes(data: bytes) -> Archive:
    return decode(io.BytesIO(data))


class ArchiveReader:
    def __init__(self, path: str):
        self.path = path
        self.f: Optional[BinaryIO] = None
        self.archive: Optional[Archive] = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = open(self.path, "rb")
        try:
            self.archive = decode(self.f)
        except (GmaError, EOFError, OSError) as exc:
            # Ensure file handle is closed on failure to avoid leaks
            self.close()
            raise exc

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def list(self) -> List[Entry]:
        if self.archive is None:
            raise RuntimeError("Archive not open")
        return self.archive.entries

    def extract(self, entry: Entry, out_path: str):
        if self.archive is None:
            raise RuntimeError("Archive not open")
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "wb") as wf:
            wf.write(entry.content)
