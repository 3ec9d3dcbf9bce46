"""Detached signatures over archives and manifests.

Two backends produce ``<file>.sig`` next to the signed file:

``GpgSigner``
    Shells out to ``gpg --batch --yes --detach-sign`` (binary OpenPGP
    signature), optionally with ``--local-user`` for a specific key.

``Ed25519Signer``
    Signs the file bytes with PyNaCl and writes the 128-char hex signature.
    Verify with :func:`verify_ed25519_signature` and the public key printed
    by ``forgeops keygen``.

Both raise ``SigningError`` on failure.  Callers treat that as a warning:
an archive whose signature failed still stands, unsigned.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

import nacl.signing
from nacl.exceptions import BadSignatureError, CryptoError

from forgeops.core.errors import SigningError, WriteError
from forgeops.core.hasher import sha256_hex
from forgeops.core.writer import atomic_write

logger = logging.getLogger(__name__)

SIGNATURE_SUFFIX = ".sig"


def signature_path_for(path: Path) -> Path:
    path = Path(path)
    return path.with_name(path.name + SIGNATURE_SUFFIX)


@runtime_checkable
class Signer(Protocol):
    """Anything that can produce a detached signature for a file."""

    name: str

    def sign(self, path: Path) -> Path:
        """Sign *path* and return the signature path."""
        ...


class GpgSigner:
    """Detached OpenPGP signatures via the ``gpg`` executable.

    Parameters
    ----------
    executable:
        Path to ``gpg``.
    key:
        Optional key id / user id passed as ``--local-user``.
    timeout:
        Seconds before the ``gpg`` call is abandoned; ``None`` waits forever.
    """

    name = "gpg"

    def __init__(
        self,
        executable: str = "gpg",
        key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.executable = executable
        self.key = key
        self.timeout = timeout

    @classmethod
    def detect(cls, key: str | None = None, timeout: float | None = None) -> GpgSigner | None:
        path = shutil.which("gpg")
        if path is None:
            return None
        return cls(executable=path, key=key, timeout=timeout)

    def command(self, path: Path, sig_path: Path) -> list[str]:
        cmd = [self.executable, "--batch", "--yes"]
        if self.key:
            cmd += ["--local-user", self.key]
        cmd += ["--output", str(sig_path), "--detach-sign", str(path)]
        return cmd

    def sign(self, path: Path) -> Path:
        path = Path(path)
        sig_path = signature_path_for(path)
        try:
            result = subprocess.run(
                self.command(path, sig_path),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise SigningError(f"gpg could not sign {path}: {exc}") from exc
        if result.returncode != 0:
            raise SigningError(
                f"gpg exited {result.returncode} signing {path}: {result.stderr.strip()}"
            )
        logger.info("Signed (gpg): %s", sig_path)
        return sig_path

    def __repr__(self) -> str:
        return f"GpgSigner(executable={self.executable!r}, key={self.key!r})"


class Ed25519Signer:
    """Detached Ed25519 signatures via PyNaCl.

    Parameters
    ----------
    private_key:
        Hex-encoded 32-byte seed, as returned by :func:`generate_keypair`.
    """

    name = "ed25519"

    def __init__(self, private_key: str) -> None:
        try:
            self._key = nacl.signing.SigningKey(bytes.fromhex(private_key.strip()))
        except (ValueError, TypeError, CryptoError) as exc:
            raise SigningError(f"Invalid Ed25519 signing key: {exc}") from exc

    @property
    def public_key(self) -> str:
        return self._key.verify_key.encode().hex()

    def sign(self, path: Path) -> Path:
        path = Path(path)
        sig_path = signature_path_for(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise SigningError(f"Cannot read {path} for signing: {exc}") from exc
        signature = self._key.sign(data).signature.hex()
        try:
            atomic_write(sig_path, f"{signature}\n".encode("ascii"), 0o644)
        except WriteError as exc:
            raise SigningError(f"Cannot write signature {sig_path}: {exc}") from exc
        logger.info("Signed (ed25519): %s sha256=%s", sig_path, sha256_hex(data))
        return sig_path

    def __repr__(self) -> str:
        return f"Ed25519Signer(public_key={self.public_key[:16]}...)"


def generate_keypair() -> tuple[str, str]:
    """Generate an Ed25519 key pair.

    Returns
    -------
    tuple[str, str]
        ``(private_key_hex, public_key_hex)``
    """
    sk = nacl.signing.SigningKey.generate()
    return sk.encode().hex(), sk.verify_key.encode().hex()


def verify_ed25519_signature(data: bytes, signature: str, public_key: str) -> bool:
    """Return ``True`` if *signature* (hex) is valid for *data* under *public_key* (hex).

    Malformed keys or signatures verify as ``False``.
    """
    try:
        vk = nacl.signing.VerifyKey(bytes.fromhex(public_key.strip()))
        vk.verify(data, bytes.fromhex(signature.strip()))
    except (BadSignatureError, CryptoError, ValueError, TypeError):
        return False
    return True
