from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Dict

from gma.reader import ArchiveReader
from gma.writer import Builder


def _build_fixture_tree(root: Path) -> Dict[str, bytes]:
    files: Dict[str, bytes] = {}
    addon = root / "addon"
    (addon / "lua" / "autorun").mkdir(parents=True)
    (addon / "materials").mkdir()

    script = b"print('hello')\n" * 20
    (addon / "lua" / "autorun" / "init.lua").write_bytes(script)
    files["addon/lua/autorun/init.lua"] = script

    blob = os.urandom(2048)
    (addon / "materials" / "texture.vtf").write_bytes(blob)
    files["addon/materials/texture.vtf"] = blob

    (addon / "materials" / "empty.vmt").write_bytes(b"")
    files["addon/materials/empty.vmt"] = b""
    return files


class CLIIntegrationTests(unittest.TestCase):
    def run_cli(self, args, *, expect: int | None = 0, cwd: Path | None = None):
        cmd = [sys.executable, "-m", "gma.cli"] + list(args)
        env = os.environ.copy()
        repo_root = Path(__file__).resolve().parent
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(repo_root) if not existing else f"{repo_root}{os.pathsep}{existing}"
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}"
            )
        return proc

    def test_create_list_info_extract_roundtrip(self):
        tmp_src = tempfile.TemporaryDirectory()
        tmp_workspace = tempfile.TemporaryDirectory()
        self.addCleanup(tmp_src.cleanup)
        self.addCleanup(tmp_workspace.cleanup)

        src_root = Path(tmp_src.name)
        workspace = Path(tmp_workspace.name)
        files = _build_fixture_tree(src_root)

        archive = workspace / "my_addon.gma"
        create_proc = self.run_cli(
            ["create", str(archive), str(src_root / "addon"), "--author", "tester", "--description", "hello", "--owner-id", "-9"]
        )
        self.assertIn("Done: 3 files", create_proc.stdout)

        with ArchiveReader(str(archive)) as r:
            a = r.archive
            self.assertEqual(a.name, "my_addon")
            self.assertEqual(a.author, "tester")
            self.assertEqual(a.description, "hello")
            self.assertEqual(a.owner_id, -9)
            self.assertEqual(
                [e.name for e in a.entries],
                ["addon/lua/autorun/init.lua", "addon/materials/empty.vmt", "addon/materials/texture.vtf"],
            )

        list_proc = self.run_cli(["list", str(archive)])
        lines = list_proc.stdout.strip().splitlines()
        self.assertEqual(lines[0], f"{len(files['addon/lua/autorun/init.lua'])}\taddon/lua/autorun/init.lua")
        self.assertEqual(len(lines), 3)

        info_proc = self.run_cli(["info", str(archive)])
        self.assertIn("Name: my_addon", info_proc.stdout)
        self.assertIn("Author: tester", info_proc.stdout)
        self.assertIn("Entries: 3", info_proc.stdout)
        self.assertIn(f"Total bytes: {sum(len(v) for v in files.values())}", info_proc.stdout)

        extract_dir = workspace / "extract"
        extract_dir.mkdir()
        self.run_cli(["extract", str(archive), "--outdir", str(extract_dir)])
        for name, content in files.items():
            self.assertEqual((extract_dir / name).read_bytes(), content)

    def test_extract_selected_paths(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            files = _build_fixture_tree(root)
            archive = root / "sel.gma"
            self.run_cli(["create", str(archive), str(root / "addon"), "--quiet"])
            out = root / "out"
            out.mkdir()
            self.run_cli(["extract", str(archive), "addon/materials", "--outdir", str(out)])
            self.assertFalse((out / "addon" / "lua").exists())
            self.assertEqual(
                (out / "addon" / "materials" / "texture.vtf").read_bytes(), files["addon/materials/texture.vtf"]
            )

    def test_conflict_policies(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            file_path = root / "file.txt"
            file_path.write_text("alpha")

            archive = root / "arc.gma"
            self.run_cli(["create", str(archive), str(file_path)])

            out_skip = root / "ex_skip"
            out_skip.mkdir()
            (out_skip / "file.txt").write_text("beta")
            skip_proc = self.run_cli(["extract", str(archive), "--outdir", str(out_skip), "--exists", "skip"])
            self.assertIn("skipping: file.txt", skip_proc.stdout)
            self.assertEqual((out_skip / "file.txt").read_text(), "beta")

            out_rename = root / "ex_rename"
            out_rename.mkdir()
            (out_rename / "file.txt").write_text("beta")
            rename_proc = self.run_cli(["extract", str(archive), "--outdir", str(out_rename), "--exists", "rename"])
            self.assertIn("renamed to", rename_proc.stdout)
            self.assertEqual((out_rename / "file.txt").read_text(), "beta")
            self.assertEqual((out_rename / "file (1).txt").read_text(), "alpha")

            out_overwrite = root / "ex_overwrite"
            out_overwrite.mkdir()
            (out_overwrite / "file.txt").write_text("beta")
            self.run_cli(["extract", str(archive), "--outdir", str(out_overwrite), "--exists", "overwrite"])
            self.assertEqual((out_overwrite / "file.txt").read_text(), "alpha")

            out_fail = root / "ex_fail"
            out_fail.mkdir()
            (out_fail / "file.txt").write_text("beta")
            fail_proc = self.run_cli(["extract", str(archive), "--outdir", str(out_fail), "--exists", "fail"], expect=2)
            self.assertIn("Destination exists", fail_proc.stderr)
            self.assertEqual((out_fail / "file.txt").read_text(), "beta")

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_create_names_symlinked_input_by_link_name(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "real" / "lua").mkdir(parents=True)
            (root / "real" / "lua" / "a.lua").write_bytes(b"print(1)\n")
            link = root / "myaddon"
            try:
                os.symlink("real", link)
            except (OSError, NotImplementedError):
                self.skipTest("cannot create symlinks here")
            archive = root / "linked.gma"
            self.run_cli(["create", str(archive), str(link), "--quiet"])
            with ArchiveReader(str(archive)) as r:
                self.assertEqual([e.name for e in r.list()], ["myaddon/lua/a.lua"])

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_overwrite_replaces_symlink_instead_of_following_it(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            file_path = root / "file.txt"
            file_path.write_text("alpha")
            archive = root / "arc.gma"
            self.run_cli(["create", str(archive), str(file_path), "--quiet"])

            outside = root / "outside.txt"
            outside.write_text("untouched")
            out = root / "out"
            out.mkdir()
            try:
                os.symlink(str(outside), out / "file.txt")
            except (OSError, NotImplementedError):
                self.skipTest("cannot create symlinks here")
            self.run_cli(["extract", str(archive), "--outdir", str(out), "--exists", "overwrite"])
            self.assertFalse(os.path.islink(out / "file.txt"))
            self.assertEqual((out / "file.txt").read_text(), "alpha")
            self.assertEqual(outside.read_text(), "untouched")

    def test_extract_rejects_parent_segments(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            b = Builder("evil", 0)
            b.add_entry("ok.txt", b"fine")
            b.add_entry("../escape.txt", b"nope")
            archive = root / "evil.gma"
            b.write(str(archive))
            out = root / "out"
            out.mkdir()
            proc = self.run_cli(["extract", str(archive), "--outdir", str(out)], expect=2)
            self.assertIn("..", proc.stderr)
            self.assertFalse((root / "escape.txt").exists())
            self.assertFalse((out / "ok.txt").exists())

    def test_corrupt_archives_report_errors(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            bad_header = root / "bad.gma"
            bad_header.write_bytes(b"ZIPP" + b"\x00" * 32)
            proc = self.run_cli(["info", str(bad_header)], expect=2)
            self.assertIn("invalid header", proc.stderr)

            good = root / "good.gma"
            b = Builder("t", 0)
            b.add_entry("a.bin", os.urandom(100))
            b.write(str(good))
            truncated = root / "truncated.gma"
            truncated.write_bytes(good.read_bytes()[:-20])
            proc = self.run_cli(["list", str(truncated)], expect=2)
            self.assertIn("truncated", proc.stderr)

            proc = self.run_cli(["list", str(root / "missing.gma")], expect=2)
            self.assertIn("Error:", proc.stderr)

    def test_create_rejects_missing_input(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            archive = root / "x.gma"
            proc = self.run_cli(["create", str(archive), str(root / "nope")], expect=2)
            self.assertIn("No such file or directory", proc.stderr)
            self.assertFalse(archive.exists())


if __name__ == "__main__":
    unittest.main()
