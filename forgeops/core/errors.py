"""Error taxonomy for a bootstrap run.

Every error carries the process exit status the CLI reports when the error
ends the run.  Per-artifact and per-module failures are recorded rather than
raised past the Orchestrator; only run-level failures reach the CLI.
"""

from __future__ import annotations


class BootstrapError(RuntimeError):
    """Base class for all bootstrap failures."""

    exit_code: int = 1


class DirectoryCreateError(BootstrapError):
    """Raised when a directory cannot be created (or a path component is a file)."""

    exit_code = 2


class MissingToolError(BootstrapError):
    """Raised at pre-flight when a required external command is absent."""

    exit_code = 3


class WriteError(BootstrapError):
    """Raised when the temp-file write, chmod, or rename of an artifact fails."""

    exit_code = 4


class ArchiveError(BootstrapError):
    """Raised when an archive cannot be produced."""

    exit_code = 5


class ManifestReadError(BootstrapError):
    """Raised when any file in a manifest's scope cannot be read.

    No partial manifest is ever written when this is raised.
    """

    exit_code = 6


class SigningError(BootstrapError):
    """Raised when a detached signature cannot be produced.

    Signing is best-effort: the Orchestrator records this as a warning and
    the archive stands unsigned.
    """

    exit_code = 7


class RegistryError(BootstrapError):
    """Raised for invalid or duplicate module descriptors."""

    exit_code = 8


class ConfigError(BootstrapError):
    """Raised when settings from the environment or CLI are invalid."""

    exit_code = 9
