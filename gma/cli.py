from __future__ import annotations

import os
import sys
import time
import argparse

from pathlib import Path
from typing import List, Optional, Tuple

from gma.writer import Builder
from gma.reader import ArchiveReader
from gma.pathutil import norm_path, entry_name_for, safe_join
from gma.constants import DEFAULT_AUTHOR, DEFAULT_DESCRIPTION
from gma.errors import GmaError


def _gather_files(inputs: List[str]) -> List[Tuple[str, str]]:
    """Collect (entry name, filesystem path) pairs from files and directories.

    Directories are walked recursively with names relative to the input's
    parent as given (not its resolved target), so `create out.gma lua` stores
    `lua/...`. Symlinked subdirectories are not followed.
    """
    files: List[Tuple[str, str]] = []
    for raw in inputs:
        p = Path(raw)
        if p.is_dir():
            top = os.path.abspath(raw)
            parent = os.path.dirname(top)
            for root, dirnames, filenames in os.walk(top):
                dirnames[:] = sorted(d for d in dirnames if not os.path.islink(os.path.join(root, d)))
                for fn in sorted(filenames):
                    full = os.path.join(root, fn)
                    files.append((entry_name_for(full, parent), full))
        elif p.exists():
            files.append((norm_path(p.name), str(p)))
        else:
            raise FileNotFoundError(f"No such file or directory: {raw}")
    return files


def _next_nonconflicting_path(path: str) -> str:
    if not os.path.lexists(path):
        return path
    base_dir = os.path.dirname(path)
    root, ext = os.path.splitext(os.path.basename(path))
    i = 1
    while True:
        candidate = os.path.join(base_dir, f"{root} ({i}){ext}")
        if not os.path.lexists(candidate):
            return candidate
        i += 1


def cmd_create(
    output: str,
    inputs: List[str],
    *,
    name: Optional[str] = None,
    author: str = DEFAULT_AUTHOR,
    description: str = DEFAULT_DESCRIPTION,
    owner_id: int = 0,
    quiet: bool = False,
) -> bool:
    """Create a new archive from filesystem paths.

    Args:
        output: Path of the .gma file to write.
        inputs: Files and/or directories to store.
        name: Addon name; defaults to the output file stem.
        author: Addon author.
        description: Addon description.
        owner_id: Opaque 64-bit owner identifier stored in the header.
        quiet: Only print the summary line.
    """
    files = _gather_files(inputs)
    b = Builder(name if name is not None else Path(output).stem, owner_id)
    b.author = author
    b.description = description

    t0 = time.time()
    total = len(files)
    for i, (arc, full) in enumerate(files, start=1):
        e = b.add_file(arc, full)
        if not quiet:
            print(f"    adding: {i:>4}/{total:<4} {arc} ({e.size} bytes)")
    b.write(output)

    dt = max(0.000001, time.time() - t0)
    mib = sum(e.size for e in b.entries) / (1024.0 * 1024.0)
    print(f"Done: {total} files; {mib:.2f} MiB in {dt:.1f}s -> {output}")
    return True


def cmd_list(archive: str) -> bool:
    """List archive entries as `<size>\\t<name>` lines."""
    with ArchiveReader(archive) as r:
        for e in r.list():
            print(f"{e.size}\t{e.name}")
    return True


def cmd_info(archive: str) -> bool:
    """Print addon metadata and totals."""
    with ArchiveReader(archive) as r:
        a = r.archive
        print(f"Archive: {archive}")
        print(f"  Name: {a.name}")
        print(f"  Description: {a.description}")
        print(f"  Author: {a.author}")
        print(f"  Owner ID: {a.owner_id}")
        print(f"  Timestamp: {a.timestamp}")
        print(f"  Entries: {len(a.entries)}")
        print(f"  Total bytes: {a.total_size()}")
    return True


def cmd_extract(
    archive: str,
    *,
    outdir: str = ".",
    paths: Optional[List[str]] = None,
    exists: str = "rename",
    quiet: bool = False,
) -> bool:
    """Extract entries from an archive into a directory.

    Args:
        archive: Path to the .gma file.
        outdir: Destination directory.
        paths: Optional entry names or directory prefixes to restrict extraction.
        exists: Policy for existing destinations: overwrite, skip, rename or fail.
        quiet: Only print the summary line.
    """
    with ArchiveReader(archive) as r:
        entries = r.list()
        if paths:
            wanted = [norm_path(p) for p in paths]
            entries = [
                e for e in entries
                if any(norm_path(e.name) == w or norm_path(e.name).startswith(w + "/") for w in wanted)
            ]

        # Resolve every destination first so an unsafe name aborts before anything is written
        targets = [(e, safe_join(outdir, e.name)) for e in entries]

        t0 = time.time()
        total = len(targets)
        extracted = 0
        extracted_bytes = 0
        skipped = 0
        renamed = 0
        for i, (e, dst) in enumerate(targets, start=1):
            rename_note = None
            if os.path.lexists(dst):
                if exists == "overwrite":
                    if os.path.isdir(dst) and not os.path.islink(dst):
                        raise RuntimeError(f"Cannot overwrite directory with file: {dst}")
                    if os.path.islink(dst):
                        os.remove(dst)
                elif exists == "skip":
                    print(f"    skipping: {e.name} (exists)")
                    skipped += 1
                    continue
                elif exists == "rename":
                    dst = _next_nonconflicting_path(dst)
                    rename_note = dst
                else:
                    raise RuntimeError(f"Destination exists: {dst}")
            if not quiet:
                print(f" extracting: {i:>4}/{total:<4} {e.name}")
            r.extract(e, dst)
            if rename_note:
                print(f"       note: renamed to {rename_note}")
                renamed += 1
            extracted += 1
            extracted_bytes += e.size

    dt = max(0.000001, time.time() - t0)
    mib = extracted_bytes / (1024.0 * 1024.0)
    print(
        f"Done: extracted {extracted}/{total} files ({mib:.2f} MiB) in {dt:.1f}s; "
        f"skipped={skipped} renamed={renamed}"
    )
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="gma",
        description="Create, list and extract .gma addon archives",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_create = sub.add_parser("create", help="Create archive")
    ap_create.add_argument("output", help="Output .gma path")
    ap_create.add_argument("inputs", nargs="+", help="Input files/directories")
    ap_create.add_argument("--name", help="Addon name (default: output file stem)")
    ap_create.add_argument("--author", default=DEFAULT_AUTHOR, help=f"Addon author (default: {DEFAULT_AUTHOR})")
    ap_create.add_argument("--description", default=DEFAULT_DESCRIPTION, help="Addon description")
    ap_create.add_argument("--owner-id", type=int, default=0, help="64-bit owner identifier (default 0)")
    ap_create.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")

    ap_info = sub.add_parser("info", help="Show archive information")
    ap_info.add_argument("archive", help="Archive path")

    ap_extract = sub.add_parser("extract", help="Extract files")
    ap_extract.add_argument("archive", help="Archive path")
    ap_extract.add_argument("paths", nargs="*", help="Specific entry names or directories to extract")
    ap_extract.add_argument("--outdir", default=".", help="Output directory")
    ap_extract.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    ap_extract.add_argument(
        "--exists",
        choices=["overwrite", "skip", "rename", "fail"],
        default="rename",
        help=(
            "What to do if a destination file exists: overwrite (replace), "
            "skip (do not extract that entry), rename (append ' (n)' before extension), or fail (abort). "
            "Default: rename"
        ),
    )

    args = ap.parse_args(argv)
    try:
        if args.cmd == "create":
            cmd_create(
                args.output,
                args.inputs,
                name=args.name,
                author=args.author,
                description=args.description,
                owner_id=args.owner_id,
                quiet=args.quiet,
            )
        elif args.cmd == "list":
            cmd_list(args.archive)
        elif args.cmd == "info":
            cmd_info(args.archive)
        elif args.cmd == "extract":
            cmd_extract(args.archive, outdir=args.outdir, paths=args.paths, exists=args.exists, quiet=args.quiet)
        else:
            raise RuntimeError("Unknown command")
    except EOFError:
        print("Error: archive is truncated (unexpected end of file)", file=sys.stderr)
        sys.exit(2)
    except (GmaError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
