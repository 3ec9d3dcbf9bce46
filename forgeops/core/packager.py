"""Packager — reproducible ``tar.gz`` archives of a directory subtree.

The member list is snapshotted *before* the temporary archive is created,
so an archive written inside (or beside) its own source tree never
contains itself.  Members are added in byte order of their relative path
with mtime, ownership and mode normalised, and the gzip header carries no
timestamp: packaging the same tree twice yields identical bytes.

The archive is assembled in a temp file next to its destination and
renamed into place, so ``archive_path`` is either absent, the previous
archive, or the complete new one.
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import subprocess
import tarfile
import tempfile
from collections.abc import Iterable
from pathlib import Path

from forgeops.core.errors import ArchiveError, DirectoryCreateError, ManifestReadError
from forgeops.core.hasher import sha256_file
from forgeops.core.manifest import iter_tree_files
from forgeops.core.writer import ensure_directory
from forgeops.models.artifacts import PackageArtifact

logger = logging.getLogger(__name__)

_DIR_MODE = 0o755


def _normalise(info: tarfile.TarInfo, mode: int) -> tarfile.TarInfo:
    info.mtime = 0
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    info.mode = mode
    return info


def _member_dirs(files: Iterable[str]) -> list[str]:
    """Every ancestor directory of *files*, parents before children."""
    dirs: set[str] = set()
    for relative in files:
        parts = relative.split("/")[:-1]
        for i in range(1, len(parts) + 1):
            dirs.add("/".join(parts[:i]))
    return sorted(dirs, key=lambda d: d.encode("utf-8"))


class Packager:
    """Creates archives of directory trees.

    Parameters
    ----------
    compresslevel:
        gzip compression level (1-9).
    """

    def __init__(self, compresslevel: int = 9) -> None:
        self.compresslevel = compresslevel

    def package(
        self,
        source_dir: Path,
        archive_path: Path,
        exclude: Iterable[str] = (),
    ) -> PackageArtifact:
        """Archive every regular file under *source_dir* into *archive_path*.

        *exclude* holds POSIX paths relative to *source_dir*; files or whole
        directories matching an entry are left out.

        Raises
        ------
        ArchiveError
            If the tree cannot be listed, a member cannot be read, or the
            archive cannot be written.
        """
        source_dir = Path(source_dir)
        archive_path = Path(archive_path)

        try:
            files = iter_tree_files(source_dir, exclude)
        except ManifestReadError as exc:
            raise ArchiveError(f"Cannot list {source_dir}: {exc}") from exc

        try:
            ensure_directory(archive_path.parent)
        except DirectoryCreateError as exc:
            raise ArchiveError(f"Cannot create {archive_path.parent}: {exc}") from exc

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{archive_path.name}.", suffix=".tmp", dir=archive_path.parent
            )
        except OSError as exc:
            raise ArchiveError(f"Cannot create temp archive for {archive_path}: {exc}") from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as raw:
                with gzip.GzipFile(
                    filename="",
                    mode="wb",
                    fileobj=raw,
                    compresslevel=self.compresslevel,
                    mtime=0,
                ) as gz:
                    with tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar:
                        for directory in _member_dirs(rel for rel, _ in files):
                            info = tarfile.TarInfo(directory)
                            info.type = tarfile.DIRTYPE
                            tar.addfile(_normalise(info, _DIR_MODE))
                        for relative, path in files:
                            info = tar.gettarinfo(str(path), arcname=relative)
                            mode = 0o755 if info.mode & 0o111 else 0o644
                            with open(path, "rb") as fh:
                                tar.addfile(_normalise(info, mode), fh)
                raw.flush()
                os.fsync(raw.fileno())
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, archive_path)
        except (OSError, tarfile.TarError) as exc:
            tmp_path.unlink(missing_ok=True)
            raise ArchiveError(f"Failed to create archive {archive_path}: {exc}") from exc

        try:
            digest, _ = sha256_file(archive_path)
        except OSError as exc:
            raise ArchiveError(f"Cannot read back archive {archive_path}: {exc}") from exc
        logger.info("Packaged %s -> %s (%d file(s))", source_dir, archive_path, len(files))
        return PackageArtifact(
            source_dir=source_dir,
            archive_path=archive_path,
            file_count=len(files),
            digest=digest,
        )


def list_archive(archive_path: Path) -> list[str]:
    """Names of the regular-file members of *archive_path*, in archive order."""
    try:
        with tarfile.open(archive_path, mode="r:gz") as tar:
            return [m.name for m in tar.getmembers() if m.isfile()]
    except (OSError, tarfile.TarError) as exc:
        raise ArchiveError(f"Cannot read archive {archive_path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Embedded service build (best-effort)
# ---------------------------------------------------------------------------


class ServiceBuilder:
    """Runs the Maven build of a module's embedded Java service.

    Only constructed when the build is enabled and ``mvn`` is available, so
    callers branch on whether they hold one rather than on tool presence.
    ``build`` returns ``None`` on success and a human-readable reason on
    failure; it never raises.
    """

    def __init__(
        self,
        executable: str = "mvn",
        args: Iterable[str] = ("-q", "-DskipTests", "package"),
        timeout: float | None = None,
    ) -> None:
        self.executable = executable
        self.args = list(args)
        self.timeout = timeout

    @classmethod
    def detect(cls, timeout: float | None = None) -> ServiceBuilder | None:
        path = shutil.which("mvn")
        if path is None:
            logger.info("mvn not found on PATH; embedded service builds disabled")
            return None
        return cls(executable=path, timeout=timeout)

    def build(self, module_root: Path) -> str | None:
        project = Path(module_root) / "java"
        if not (project / "pom.xml").is_file():
            return f"no pom.xml under {project}"
        logger.info("Building embedded service: %s", project)
        try:
            result = subprocess.run(
                [self.executable, *self.args],
                cwd=project,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            return f"service build failed to run: {exc}"
        if result.returncode != 0:
            tail = (result.stderr or result.stdout).strip().splitlines()[-1:]
            return f"service build exited {result.returncode}: {' '.join(tail)}"
        return None

    def __repr__(self) -> str:
        return f"ServiceBuilder(executable={self.executable!r})"
