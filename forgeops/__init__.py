"""ForgeOps: scaffold generation and packaging engine for the ForgeOps module tree.

A bootstrap run turns a registry of module descriptors into:
  - one fixed scaffold per module (scripts, config, Docker/K8s/CI stubs,
    docs, an embedded Java service stub), written atomically and
    idempotently;
  - a SHA-256 manifest per module and for the whole tree;
  - reproducible ``tar.gz`` archives per module and for the whole tree;
  - optional detached signatures (gpg or Ed25519) over those archives.
"""

__version__ = "1.0.0"
__description__ = "Scaffold generation and packaging engine for ForgeOps modules"

from forgeops.core.orchestrator import BootstrapOrchestrator
from forgeops.core.registry import ModuleRegistry
from forgeops.cli.app import app as cli

__all__ = ["BootstrapOrchestrator", "ModuleRegistry", "cli", "__version__"]
