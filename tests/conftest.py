"""Shared test fixtures for ForgeOps."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from forgeops.core.capabilities import Capabilities
from forgeops.core.orchestrator import BootstrapOrchestrator
from forgeops.core.registry import ModuleRegistry
from forgeops.core.scaffold import ScaffoldBuilder
from forgeops.core.templates import TemplateRenderer
from forgeops.logs import reset_logging
from forgeops.models.context import RunContext
from forgeops.models.modules import ModuleDescriptor

# Environment variables read by BootstrapSettings.
_SETTINGS_ENV = (
    "BASE_DIR",
    "FORCE",
    "GPG_SIGN",
    "FORGEOPS_LOG_LEVEL",
    "FORGEOPS_SIGNING_BACKEND",
    "FORGEOPS_SIGNING_KEY",
    "FORGEOPS_BUILD_SERVICES",
    "FORGEOPS_REQUIRED_TOOLS",
    "FORGEOPS_COMMAND_TIMEOUT",
    "FORGEOPS_MODULES_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Isolate every test from the caller's environment and any ``.env`` file."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    reset_logging()


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def base_dir(tmp_dir: Path) -> Path:
    """Output root for a bootstrap run (not created yet)."""
    return tmp_dir / "ForgeOpsModules"


@pytest.fixture
def context(base_dir: Path) -> RunContext:
    """RunContext with the default (skip-on-exists) overwrite policy."""
    return RunContext(base_dir=base_dir, log=logging.getLogger("forgeops.test"))


@pytest.fixture
def module() -> ModuleDescriptor:
    return ModuleDescriptor(name="canary-deployer", description="Immutable Release Canary Deployer")


@pytest.fixture
def secrets_module() -> ModuleDescriptor:
    return ModuleDescriptor(
        name="secrets-lifecycle", description="Secrets Lifecycle Manager (Edge-friendly)"
    )


@pytest.fixture
def small_registry() -> ModuleRegistry:
    """Two modules, one of which receives the Vault extension."""
    return ModuleRegistry.from_pairs(
        [
            ("secrets-lifecycle", "Secrets Lifecycle Manager (Edge-friendly)"),
            ("canary-deployer", "Immutable Release Canary Deployer"),
        ]
    )


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def builder(renderer: TemplateRenderer) -> ScaffoldBuilder:
    return ScaffoldBuilder(renderer=renderer)


@pytest.fixture
def make_orchestrator(
    builder: ScaffoldBuilder,
) -> Callable[..., BootstrapOrchestrator]:
    """Factory fixture: an orchestrator over *registry* writing to *base_dir*."""

    def _factory(
        base_dir: Path,
        registry: ModuleRegistry,
        *,
        overwrite: bool = False,
        capabilities: Capabilities | None = None,
    ) -> BootstrapOrchestrator:
        ctx = RunContext(
            base_dir=base_dir,
            overwrite=overwrite,
            log=logging.getLogger("forgeops.test"),
        )
        return BootstrapOrchestrator(ctx, registry, capabilities, builder=builder)

    return _factory


@pytest.fixture
def make_tree(tmp_dir: Path) -> Callable[[dict[str, bytes]], Path]:
    """Factory fixture: materialize ``{relative_path: content}`` under a fresh root."""
    counter = iter(range(1_000))

    def _factory(files: dict[str, bytes]) -> Path:
        root = tmp_dir / f"tree{next(counter)}"
        root.mkdir()
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        return root

    return _factory

