from __future__ import annotations

import io
import time
from typing import BinaryIO, List, Optional

from .constants import (
    HEADER_MAGIC,
    FORMAT_VERSION,
    REQUIRED_CONTENT,
    ADDON_VERSION,
    FILE_CRC_UNSET,
    METADATA_END,
    TRAILING_MARKER,
    INT64_MIN,
    INT64_MAX,
    UINT64_MAX,
    DEFAULT_AUTHOR,
    DEFAULT_DESCRIPTION,
)
from .errors import InvalidInput
from .records import (
    Archive,
    Entry,
    encode_cstring,
    pack_i8,
    pack_u8,
    pack_i32,
    pack_u32,
    pack_i64,
    pack_u64,
)


class Builder:
    """Collects addon metadata and entries, then serializes them as a .gma stream.

    `author` and `description` are plain attributes and may be changed at any
    time before encoding. Encoding never mutates the builder, so the same
    builder can be encoded repeatedly; each call stamps the current time
    unless an explicit timestamp is given.
    """

    def __init__(self, name: str, owner_id: int):
        self.name = name
        self.owner_id = owner_id
        self.author = DEFAULT_AUTHOR
        self.description = DEFAULT_DESCRIPTION
        self.entries: List[Entry] = []

    def add_entry(self, name: str, data: bytes) -> Entry:
        e = Entry(name=name, content=bytes(memoryview(data)))
        self.entries.append(e)
        return e

    def add_text(self, name: str, text: str) -> Entry:
        return self.add_entry(name, text.encode("utf-8"))

    def add_file(self, name: str, src_path: str) -> Entry:
        with open(src_path, "rb") as rf:
            return self.add_entry(name, rf.read())

    def archive(self) -> Archive:
        return Archive(
            name=self.name,
            description=self.description,
            author=self.author,
            owner_id=self.owner_id,
            entries=list(self.entries),
        )

    def _pack_header(self, timestamp: int) -> bytes:
        hdr = bytearray()
        hdr += HEADER_MAGIC
        hdr += pack_i8(FORMAT_VERSION)
        hdr += pack_i64(self.owner_id)
        hdr += pack_u64(timestamp)
        hdr += pack_u8(REQUIRED_CONTENT)
        hdr += encode_cstring(self.name, label="addon name")
        hdr += encode_cstring(self.description, label="addon description")
        hdr += encode_cstring(self.author, label="addon author")
        hdr += pack_i32(ADDON_VERSION)
        return bytes(hdr)

    def _pack_metadata(self) -> bytes:
        meta = bytearray()
        for i, e in enumerate(self.entries, start=1):
            meta += pack_u32(i)
            meta += encode_cstring(e.name, label=f"entry name #{i}")
            meta += pack_i64(e.size)
            meta += pack_u32(FILE_CRC_UNSET)
        meta += pack_u32(METADATA_END)
        return bytes(meta)

    def encode(self, sink: BinaryIO, timestamp: Optional[int] = None) -> None:
        """Write the archive to `sink`.

        Every string and integer field is validated before the first byte is
        written, so an InvalidInput error leaves `sink` untouched.
        """
        if timestamp is None:
            timestamp = int(time.time())
        if not (INT64_MIN <= self.owner_id <= INT64_MAX):
            raise InvalidInput(f"owner id out of int64 range: {self.owner_id}")
        if not (0 <= timestamp <= UINT64_MAX):
            raise InvalidInput(f"timestamp out of uint64 range: {timestamp}")

        header = self._pack_header(timestamp)
        metadata = self._pack_metadata()

        sink.write(header)
        sink.write(metadata)
        for e in self.entries:
            sink.write(e.content)
        sink.write(pack_u32(TRAILING_MARKER))
        sink.flush()

    def to_bytes(self, timestamp: Optional[int] = None) -> bytes:
        buf = io.BytesIO()
        self.encode(buf, timestamp=timestamp)
        return buf.getvalue()

    def write(self, out_path: str, timestamp: Optional[int] = None) -> None:
        # Build in memory first so a rejected input never leaves a partial file behind.
        data = self.to_bytes(timestamp=timestamp)
        with open(out_path, "wb") as wf:
            wf.write(data)
