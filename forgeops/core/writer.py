"""Atomic, idempotent file writer.

Every generated file goes through :func:`write_artifact`:

1. ancestor directories are created (a non-directory component is a
   ``DirectoryCreateError``);
2. an existing destination is left untouched unless ``overwrite`` is set;
3. content is written to a sibling temp file, fsynced, and given its final
   permission bits;
4. the temp file is renamed onto the destination with ``os.replace``.

The rename is the last step, so a reader either sees the old file (or no
file) or the complete new one, already carrying its final mode.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from forgeops.core.errors import DirectoryCreateError, WriteError
from forgeops.models.artifacts import WriteOutcome

logger = logging.getLogger(__name__)

_TMP_SUFFIX = ".tmp"


def ensure_directory(path: Path) -> Path:
    """Create *path* and its ancestors.

    Raises
    ------
    DirectoryCreateError
        If a component of *path* exists and is not a directory, or the
        directory cannot be created.
    """
    path = Path(path)
    for candidate in (path, *path.parents):
        if candidate.exists() and not candidate.is_dir():
            raise DirectoryCreateError(
                f"Path exists and is not a directory: {candidate}"
            )
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreateError(f"Failed to create directory {path}: {exc}") from exc
    return path


def atomic_write(dest: Path, content: bytes, mode: int = 0o644) -> None:
    """Write *content* to *dest* via a same-directory temp file and rename.

    Raises ``WriteError`` on any failure; the destination is untouched in
    that case and the temp file is removed.
    """
    dest = Path(dest)
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{dest.name}.", suffix=_TMP_SUFFIX, dir=dest.parent
        )
    except OSError as exc:
        raise WriteError(f"Failed to create temp file for {dest}: {exc}") from exc

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        # Permissions are set on the temp file so the renamed file never
        # appears without them.
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, dest)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise WriteError(f"Failed to write {dest}: {exc}") from exc


def write_artifact(
    dest: Path,
    content: bytes,
    *,
    mode: int = 0o644,
    overwrite: bool = False,
) -> WriteOutcome:
    """Write one artifact and report what happened.

    Never raises for I/O problems: ``DirectoryCreateError`` and
    ``WriteError`` become a ``Failed`` outcome so that sibling artifacts can
    still be written.
    """
    dest = Path(dest)
    try:
        ensure_directory(dest.parent)
        # Only an existing file is spared; a directory in the way always fails.
        if dest.is_dir():
            raise WriteError(f"Destination is a directory: {dest}")
        if dest.exists() and not overwrite:
            logger.warning("File exists, skipping: %s (set FORCE=1 to overwrite)", dest)
            return WriteOutcome.skipped(dest)
        atomic_write(dest, content, mode)
    except (DirectoryCreateError, WriteError) as exc:
        logger.error("Write failed: %s (%s)", dest, exc)
        return WriteOutcome.failed(dest, str(exc))

    logger.info("Wrote: %s", dest)
    return WriteOutcome.written(dest)


def is_temp_artifact(filename: str) -> bool:
    """True for a temp file left behind by an interrupted :func:`atomic_write`."""
    return filename.startswith(".") and filename.endswith(_TMP_SUFFIX)
