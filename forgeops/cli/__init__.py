"""ForgeOps CLI — Typer-based command-line interface.

Provides the ``forgeops`` command with subcommands for bootstrapping the
module tree, checking manifests and signatures, and listing modules.

All output uses Rich for formatted terminal display.
"""
