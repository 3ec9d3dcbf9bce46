"""Checksum manifests — deterministic ``digest  path`` listings of a tree.

Entries are sorted by the UTF-8 bytes of their POSIX relative path, so the
same file set always yields the same manifest text regardless of the order
the filesystem enumerates it in.  Symlinks and directories are never
listed.  A file that cannot be read aborts the whole manifest: no partial
manifest is ever returned or written.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict

from forgeops.core.errors import ManifestReadError
from forgeops.core.hasher import sha256_file
from forgeops.core.writer import atomic_write, ensure_directory, is_temp_artifact
from forgeops.models.artifacts import ManifestEntry

logger = logging.getLogger(__name__)


def _is_excluded(relative: str, exclude: frozenset[str]) -> bool:
    return any(relative == ex or relative.startswith(ex + "/") for ex in exclude)


def iter_tree_files(root: Path, exclude: Iterable[str] = ()) -> list[tuple[str, Path]]:
    """List regular files under *root* as ``(relative_posix_path, path)`` pairs.

    *exclude* holds POSIX paths relative to *root*; an entry excludes a file
    of that name or everything beneath a directory of that name.  The result
    is sorted by the byte order of the relative path.

    Raises
    ------
    ManifestReadError
        If any directory under *root* cannot be listed.
    """
    root = Path(root)
    excluded = frozenset(PurePosixPath(e).as_posix() for e in exclude)
    files: list[tuple[str, Path]] = []

    def _raise(err: OSError) -> None:
        raise ManifestReadError(f"Cannot list {err.filename}: {err.strerror}") from err

    if not root.is_dir():
        raise ManifestReadError(f"Manifest root is not a directory: {root}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise, followlinks=False):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"

        dirnames[:] = [
            d
            for d in dirnames
            if not _is_excluded(prefix + d, excluded) and not (current / d).is_symlink()
        ]
        for filename in filenames:
            relative = prefix + filename
            path = current / filename
            if _is_excluded(relative, excluded) or is_temp_artifact(filename):
                continue
            if path.is_symlink() or not path.is_file():
                continue
            files.append((relative, path))

    files.sort(key=lambda item: item[0].encode("utf-8"))
    return files


def generate_manifest(root: Path, exclude: Iterable[str] = ()) -> list[ManifestEntry]:
    """Hash every regular file under *root*.

    Raises
    ------
    ManifestReadError
        If any file in scope cannot be read.
    """
    entries: list[ManifestEntry] = []
    for relative, path in iter_tree_files(root, exclude):
        try:
            digest, size = sha256_file(path)
        except OSError as exc:
            raise ManifestReadError(f"Cannot read {path}: {exc}") from exc
        entries.append(ManifestEntry(relative_path=relative, digest=digest, size=size))
    logger.debug("Manifest of %s: %d file(s)", root, len(entries))
    return entries


def render_manifest(entries: Iterable[ManifestEntry]) -> str:
    """Serialize entries as newline-terminated ``digest  path`` records."""
    return "".join(f"{entry.to_line()}\n" for entry in entries)


def write_manifest(entries: Iterable[ManifestEntry], dest: Path) -> Path:
    """Atomically write the manifest text to *dest* (always overwriting)."""
    dest = Path(dest)
    ensure_directory(dest.parent)
    atomic_write(dest, render_manifest(entries).encode("utf-8"), 0o644)
    logger.info("Wrote manifest: %s", dest)
    return dest


def build_manifest(root: Path, dest: Path, exclude: Iterable[str] = ()) -> list[ManifestEntry]:
    """Generate the manifest of *root* and write it to *dest*.

    *dest* is excluded from its own scope when it lives under *root*.
    """
    scope = set(exclude)
    try:
        self_rel = Path(dest).relative_to(root).as_posix()
    except ValueError:
        self_rel = None
    if self_rel is not None:
        scope.update({self_rel, f"{self_rel}.sig"})
    entries = generate_manifest(root, scope)
    write_manifest(entries, dest)
    return entries


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


def parse_manifest(text: str) -> dict[str, str]:
    """Parse manifest text into ``{relative_path: digest}``.

    Accepts both the two-space text form and ``sha256sum``'s ``*`` binary
    marker.  Malformed lines raise ``ValueError``.
    """
    parsed: dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        digest, sep, path = line.partition(" ")
        if not sep or len(digest) != 64 or not path:
            raise ValueError(f"Malformed manifest line {lineno}: {line!r}")
        path = path[1:] if path[:1] in (" ", "*") else path
        parsed[path] = digest.lower()
    return parsed


class ManifestVerification(BaseModel):
    """Differences between a manifest and the tree it describes."""

    model_config = ConfigDict(frozen=True)

    checked: int = 0
    missing: list[str] = []
    mismatched: list[str] = []
    extra: list[str] = []

    @property
    def ok(self) -> bool:
        return not (self.missing or self.mismatched or self.extra)


def verify_manifest(
    root: Path,
    manifest_path: Path,
    exclude: Iterable[str] = (),
) -> ManifestVerification:
    """Recompute digests under *root* and compare with *manifest_path*."""
    try:
        expected = parse_manifest(Path(manifest_path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestReadError(f"Cannot read manifest {manifest_path}: {exc}") from exc

    scope = set(exclude)
    try:
        self_rel = Path(manifest_path).resolve().relative_to(Path(root).resolve()).as_posix()
        scope.update({self_rel, f"{self_rel}.sig"})
    except ValueError:
        pass

    actual = {e.relative_path: e.digest for e in generate_manifest(root, scope)}
    return ManifestVerification(
        checked=len(expected),
        missing=sorted(p for p in expected if p not in actual),
        mismatched=sorted(p for p in expected if p in actual and actual[p] != expected[p]),
        extra=sorted(p for p in actual if p not in expected),
    )
