"""Tests for checksum manifests — determinism, scope, read failures, verification."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

import pytest

from forgeops.core.errors import ManifestReadError
from forgeops.core.manifest import (
    build_manifest,
    generate_manifest,
    iter_tree_files,
    parse_manifest,
    render_manifest,
    verify_manifest,
    write_manifest,
)


class TestGenerate:
    def test_digests_and_relative_paths(self, make_tree):
        root = make_tree({"a.txt": b"alpha", "sub/b.txt": b"beta"})
        entries = generate_manifest(root)
        assert [e.relative_path for e in entries] == ["a.txt", "sub/b.txt"]
        assert entries[0].digest == hashlib.sha256(b"alpha").hexdigest()
        assert entries[1].size == 4

    def test_sorted_by_bytes(self, make_tree):
        root = make_tree({"b": b"1", "B": b"2", "a/z": b"3", "a-b": b"4", "é": b"5"})
        paths = [e.relative_path for e in generate_manifest(root)]
        assert paths == sorted(paths, key=lambda p: p.encode("utf-8"))
        assert paths[0] == "B"
        assert paths[-1] == "é"

    def test_deterministic_across_creation_order(self, make_tree):
        files = {f"dir{i % 3}/file{i}.txt": f"content {i}".encode() for i in range(12)}
        forward = make_tree(files)
        backward = make_tree(dict(reversed(list(files.items()))))
        assert render_manifest(generate_manifest(forward)) == render_manifest(
            generate_manifest(backward)
        )

    def test_exclusions(self, make_tree):
        root = make_tree(
            {
                "keep.txt": b"k",
                "packaging/SHASUMS256.txt": b"old",
                "packaging/make_package.sh": b"#!",
                "logs/run.log": b"log",
                "logsy/kept.txt": b"prefix only",
            }
        )
        paths = [e.relative_path for e in generate_manifest(root, {"logs", "packaging/SHASUMS256.txt"})]
        assert paths == ["keep.txt", "logsy/kept.txt", "packaging/make_package.sh"]

    def test_symlinks_and_temp_files_skipped(self, make_tree):
        root = make_tree({"real.txt": b"r", ".real.txt.x1y2.tmp": b"partial"})
        os.symlink(root / "real.txt", root / "link.txt")
        os.symlink(root, root / "loop")
        assert [e.relative_path for e in generate_manifest(root)] == ["real.txt"]

    def test_empty_dirs_not_listed(self, make_tree):
        root = make_tree({"a.txt": b"a"})
        (root / "hooks").mkdir()
        assert [e.relative_path for e in generate_manifest(root)] == ["a.txt"]

    def test_read_failure_aborts(self, make_tree, monkeypatch: pytest.MonkeyPatch):
        root = make_tree({"a.txt": b"a", "b.txt": b"b"})

        def _unreadable(path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr("forgeops.core.manifest.sha256_file", _unreadable)
        with pytest.raises(ManifestReadError):
            generate_manifest(root)

    def test_missing_root(self, tmp_dir: Path):
        with pytest.raises(ManifestReadError):
            iter_tree_files(tmp_dir / "absent")


class TestWrite:
    def test_render_format(self, make_tree):
        root = make_tree({"x": b"x"})
        text = render_manifest(generate_manifest(root))
        assert text == f"{hashlib.sha256(b'x').hexdigest()}  x\n"

    def test_empty_manifest(self, make_tree):
        assert render_manifest(generate_manifest(make_tree({}))) == ""

    def test_write_overwrites(self, make_tree, tmp_dir: Path):
        root = make_tree({"x": b"x"})
        dest = tmp_dir / "out" / "SHASUMS256.txt"
        dest.parent.mkdir()
        dest.write_text("stale\n")
        write_manifest(generate_manifest(root), dest)
        assert dest.read_text().endswith("  x\n")

    def test_build_excludes_itself(self, make_tree):
        root = make_tree({"README.md": b"r"})
        dest = root / "packaging" / "SHASUMS256.txt"
        entries = build_manifest(root, dest)
        assert [e.relative_path for e in entries] == ["README.md"]
        # A second pass sees the first manifest on disk and still excludes it.
        assert build_manifest(root, dest) == entries
        assert dest.read_text().count("\n") == 1

    def test_no_partial_manifest_on_read_failure(
        self, make_tree, monkeypatch: pytest.MonkeyPatch
    ):
        root = make_tree({"a.txt": b"a"})
        dest = root / "packaging" / "SHASUMS256.txt"
        monkeypatch.setattr(
            "forgeops.core.manifest.sha256_file",
            lambda path: (_ for _ in ()).throw(OSError("EIO")),
        )
        with pytest.raises(ManifestReadError):
            build_manifest(root, dest)
        assert not dest.exists()


class TestVerify:
    def test_clean_tree_verifies(self, make_tree):
        root = make_tree({"a.txt": b"a", "sub/b.txt": b"b"})
        manifest = root / "packaging" / "SHASUMS256.txt"
        build_manifest(root, manifest)
        result = verify_manifest(root, manifest)
        assert result.ok
        assert result.checked == 2

    def test_detects_changes(self, make_tree):
        root = make_tree({"a.txt": b"a", "b.txt": b"b", "c.txt": b"c"})
        manifest = root / "packaging" / "SHASUMS256.txt"
        build_manifest(root, manifest)
        (root / "a.txt").write_bytes(b"tampered")
        (root / "b.txt").unlink()
        (root / "new.txt").write_bytes(b"n")

        result = verify_manifest(root, manifest)
        assert not result.ok
        assert result.mismatched == ["a.txt"]
        assert result.missing == ["b.txt"]
        assert result.extra == ["new.txt"]

    def test_missing_manifest(self, make_tree):
        root = make_tree({"a.txt": b"a"})
        with pytest.raises(ManifestReadError):
            verify_manifest(root, root / "nope.txt")

    def test_parse_accepts_binary_marker(self):
        digest = "0" * 64
        assert parse_manifest(f"{digest} *bin/x\n{digest}  y z\n") == {
            "bin/x": digest,
            "y z": digest,
        }

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_manifest("not a manifest line\n")
