"""Main Typer application — imports and registers all CLI commands.

Entry point: ``forgeops`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import typer

from forgeops.cli.commands.bootstrap import bootstrap_cmd
from forgeops.cli.commands.keys import keygen_cmd, verify_signature_cmd
from forgeops.cli.commands.modules import modules_cmd
from forgeops.cli.commands.verify import manifest_cmd, verify_cmd

app = typer.Typer(
    name="forgeops",
    help="ForgeOps: scaffold, checksum, package and sign the ForgeOps module tree.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="bootstrap", help="Generate, manifest, package and sign every module.")(
    bootstrap_cmd
)
app.command(name="verify", help="Verify a directory against its SHA-256 manifest.")(verify_cmd)
app.command(name="manifest", help="Print or write a SHA-256 manifest for a directory.")(
    manifest_cmd
)
app.command(name="modules", help="List the module registry.")(modules_cmd)
app.command(name="keygen", help="Generate an Ed25519 signing key pair.")(keygen_cmd)
app.command(name="verify-signature", help="Verify an Ed25519 detached signature.")(
    verify_signature_cmd
)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
