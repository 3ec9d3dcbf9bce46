"""Module registry — the ordered, validated list of modules to scaffold.

Order matters only for log readability; every downstream component iterates
the registry in the order it was built.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from pydantic import ValidationError

from forgeops.core.errors import RegistryError
from forgeops.models.modules import ModuleDescriptor

DEFAULT_MODULES: list[tuple[str, str]] = [
    ("secrets-lifecycle", "Secrets Lifecycle Manager (Edge-friendly)"),
    ("fleet-forensics", "Fleet Incident Collector & Forensics Snapper"),
    ("canary-deployer", "Immutable Release Canary Deployer"),
    ("zero-trust-bootstrap", "Zero-Trust Node Bootstrap & Attestor"),
    ("cost-waste-engine", "Cost & Waste Remediation Engine"),
    ("supplychain-monitor", "Supply-chain Integrity Monitor"),
    ("sbom-gen", "SBOM & Dependency Monitor"),
    ("confidential-orchestrator", "Confidential Compute Orchestrator"),
    ("file-distributor", "Secure File Distribution with Verifiable Integrity"),
    ("rbac-sudo-guard", "RBAC-enforced Local Admin Workflow Guard"),
    ("cross-cloud-net", "Cross-Cloud Network Stitching & Diagnostics"),
    ("compliance-packager", "Compliance Evidence Packager"),
    ("edge-observability", "Edge-First Observability Injector"),
    ("data-residency", "Data Residency Enforcer"),
    ("dev-ephemeral-envs", "Developer Productivity Ops (On-demand Dev Envs)"),
]

# Names that would collide with the run's own output directories.
RESERVED_NAMES: frozenset[str] = frozenset({"packaging", "logs"})


def parse_module_pair(pair: str) -> ModuleDescriptor:
    """Parse a ``name:description`` string into a descriptor.

    The description may itself contain colons; only the first one splits.
    """
    name, _, description = pair.partition(":")
    return _descriptor(name.strip(), description.strip())


def _descriptor(name: str, description: str) -> ModuleDescriptor:
    try:
        return ModuleDescriptor(name=name, description=description)
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        raise RegistryError(f"Invalid module {name!r}: {messages}") from exc


class ModuleRegistry:
    """Immutable, ordered collection of unique module descriptors.

    Parameters
    ----------
    modules:
        Descriptors in iteration order.  Duplicate or reserved names raise
        ``RegistryError``.
    """

    def __init__(self, modules: Iterable[ModuleDescriptor]) -> None:
        ordered: list[ModuleDescriptor] = []
        seen: set[str] = set()
        for module in modules:
            if module.name in RESERVED_NAMES:
                raise RegistryError(
                    f"Module name {module.name!r} is reserved for run output"
                )
            if module.name in seen:
                raise RegistryError(f"Duplicate module name: {module.name!r}")
            seen.add(module.name)
            ordered.append(module)
        self._modules: tuple[ModuleDescriptor, ...] = tuple(ordered)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def default(cls) -> ModuleRegistry:
        """The built-in ForgeOps module set."""
        return cls.from_pairs(DEFAULT_MODULES)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> ModuleRegistry:
        return cls(_descriptor(name, description) for name, description in pairs)

    @classmethod
    def from_strings(cls, entries: Iterable[str]) -> ModuleRegistry:
        """Build from ``name:description`` strings (CLI ``--module`` values)."""
        return cls(parse_module_pair(entry) for entry in entries)

    @classmethod
    def from_file(cls, path: Path) -> ModuleRegistry:
        """Load ``name:description`` lines; blank lines and ``#`` comments are ignored."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise RegistryError(f"Cannot read modules file {path}: {exc}") from exc
        entries = [
            line.strip()
            for line in text.splitlines()
            if line.strip() and not line.strip().startswith("#")
        ]
        return cls.from_strings(entries)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def select(self, names: Iterable[str]) -> ModuleRegistry:
        """Return a registry narrowed to *names*, keeping registry order."""
        wanted = set(names)
        unknown = wanted - set(self.names)
        if unknown:
            raise RegistryError(f"Unknown module(s): {', '.join(sorted(unknown))}")
        return ModuleRegistry(m for m in self._modules if m.name in wanted)

    def get(self, name: str) -> ModuleDescriptor:
        for module in self._modules:
            if module.name == name:
                return module
        raise KeyError(name)

    @property
    def names(self) -> list[str]:
        return [m.name for m in self._modules]

    def __iter__(self) -> Iterator[ModuleDescriptor]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, name: object) -> bool:
        return any(m.name == name for m in self._modules)

    def __repr__(self) -> str:
        return f"ModuleRegistry({self.names!r})"
