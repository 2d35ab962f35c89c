"""
GMA addon archive codec

Reads and writes the sequential "GMAD" container: a header with addon
metadata (name, description, author, owner id), a list of file metadata
records terminated by a zero index, the concatenated file contents and a
trailing zero marker.

- gma.reader.decode / ArchiveReader: strict forward-only decoder
- gma.writer.Builder: accumulate entries and serialize them
- gma.cli: create/list/info/extract tool

Checksums are neither written nor verified, and there is no compression.
String fields are decoded as UTF-8 with invalid sequences replaced.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "errors",
    "records",
    "reader",
    "writer",
    "pathutil",
    "cli",
]
