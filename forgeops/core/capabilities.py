"""Pre-flight: resolve optional external collaborators once, before any write.

Signing and the embedded-service build are optional capabilities.  They are
resolved here into ``Signer | None`` and ``ServiceBuilder | None`` so the
Orchestrator branches on presence instead of discovering a missing tool
halfway through a run.  A capability that was *requested* but cannot be
provided is a ``MissingToolError``.
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Callable, Iterable

from pydantic import BaseModel, ConfigDict

from forgeops.config import BootstrapSettings
from forgeops.core.errors import MissingToolError, SigningError
from forgeops.core.packager import ServiceBuilder
from forgeops.core.signer import Ed25519Signer, GpgSigner, Signer

logger = logging.getLogger(__name__)

_SEED_RE = re.compile(r"^[0-9a-fA-F]{64}$")

WhichFn = Callable[[str], str | None]


class Capabilities(BaseModel):
    """Optional collaborators available for this run."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    signer: Signer | None = None
    service_builder: ServiceBuilder | None = None

    @property
    def signing(self) -> bool:
        return self.signer is not None


def check_tools(tools: Iterable[str], which: WhichFn = shutil.which) -> None:
    """Fail fast if any of *tools* is not on ``PATH``."""
    missing = [tool for tool in tools if which(tool) is None]
    if missing:
        raise MissingToolError(f"Required command(s) not found: {', '.join(missing)}")


def resolve_signer(settings: BootstrapSettings, which: WhichFn = shutil.which) -> Signer | None:
    """Pick the signing backend, or ``None`` when signing is disabled.

    ``auto`` prefers Ed25519 when the configured key is a 64-hex-char seed
    and otherwise uses ``gpg`` (with the key, if any, as ``--local-user``).
    """
    if not settings.gpg_sign:
        logger.info("Signing disabled (GPG_SIGN not set)")
        return None

    backend = settings.signing_backend
    key = settings.signing_key.strip()
    if backend == "auto":
        backend = "ed25519" if _SEED_RE.match(key) else "gpg"

    if backend == "ed25519":
        if not key:
            raise MissingToolError(
                "Ed25519 signing requested but FORGEOPS_SIGNING_KEY is not set"
            )
        try:
            signer: Signer = Ed25519Signer(key)
        except SigningError as exc:
            raise MissingToolError(f"Ed25519 signing unavailable: {exc}") from exc
    else:
        gpg = which("gpg")
        if gpg is None:
            raise MissingToolError("Signing requested (GPG_SIGN=1) but gpg is not on PATH")
        signer = GpgSigner(
            executable=gpg, key=key or None, timeout=settings.command_timeout
        )

    logger.info("Signing enabled: %s", signer.name)
    return signer


def resolve_service_builder(
    settings: BootstrapSettings, which: WhichFn = shutil.which
) -> ServiceBuilder | None:
    if not settings.build_services:
        return None
    mvn = which("mvn")
    if mvn is None:
        logger.warning("Service builds requested but mvn is not on PATH; skipping")
        return None
    return ServiceBuilder(executable=mvn, timeout=settings.command_timeout)


def resolve_capabilities(
    settings: BootstrapSettings, which: WhichFn = shutil.which
) -> Capabilities:
    """Run every pre-flight check and return the resolved capabilities.

    Raises
    ------
    MissingToolError
        If a required command is absent or signing was requested without a
        usable backend.
    """
    check_tools(settings.required_tools, which)
    return Capabilities(
        signer=resolve_signer(settings, which),
        service_builder=resolve_service_builder(settings, which),
    )
