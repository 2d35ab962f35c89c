from __future__ import annotations

import os


def norm_path(p: str) -> str:
    """Normalize an entry name to the forward-slash form stored in archives.

    Backslashes become slashes, leading/trailing slashes and empty or '.'
    segments are dropped, and '..' segments are rejected.
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    if any(q == ".." for q in parts):
        raise ValueError(f"Entry name may not contain '..': {p}")
    if not parts:
        raise ValueError("Entry name is empty")
    return "/".join(parts)


def entry_name_for(fs_path: str, start: str) -> str:
    """Entry name of `fs_path` relative to directory `start`."""
    return norm_path(os.path.relpath(fs_path, start=start))


def safe_join(outdir: str, name: str) -> str:
    """Destination path for entry `name` below `outdir`."""
    rel = norm_path(name)
    return os.path.join(outdir or ".", *rel.split("/"))
