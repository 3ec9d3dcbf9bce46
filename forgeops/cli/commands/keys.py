"""``forgeops keygen`` and ``forgeops verify-signature`` — Ed25519 helpers.

``keygen`` prints a hex seed for ``FORGEOPS_SIGNING_KEY`` and the matching
public key; ``verify-signature`` checks a ``.sig`` written by the Ed25519
backend.
"""

from __future__ import annotations

from pathlib import Path

import typer

from forgeops.cli.common import console
from forgeops.core.signer import generate_keypair, verify_ed25519_signature


def keygen_cmd() -> None:
    """Generate an Ed25519 signing key pair (hex)."""
    private_key, public_key = generate_keypair()
    typer.echo(f"private_key: {private_key}")
    typer.echo(f"public_key:  {public_key}")


def verify_signature_cmd(
    file: Path = typer.Argument(..., help="The signed file."),
    signature: Path = typer.Argument(..., help="Detached signature (hex)."),
    public_key: str = typer.Argument(..., help="Signer's public key (hex)."),
) -> None:
    """Verify an Ed25519 detached signature."""
    try:
        data = file.read_bytes()
        sig_hex = signature.read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[bold red]Cannot read input:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    if not verify_ed25519_signature(data, sig_hex, public_key):
        console.print(f"[bold red]BAD signature[/bold red] for {file}")
        raise typer.Exit(code=1)
    console.print(f"[bold green]Good signature[/bold green] for {file}")
