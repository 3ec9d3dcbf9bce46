"""Bootstrap orchestrator — drives every module through its lifecycle.

For each module, in registry order::

    PENDING -> SCAFFOLDING -> MANIFESTING -> PACKAGING -> SIGNED|UNSIGNED -> DONE

Any ``BootstrapError`` inside a module moves that module to ``FAILED`` and
the run continues with the next one.  Once every module is terminal the
top-level files, the whole-tree manifest and the whole-tree archive are
produced; failures there are run-level and propagate to the caller.  The
directories of FAILED modules are excluded from the whole-tree manifest and
archive.

Signing and the embedded-service build are best-effort: their failures are
recorded as warnings and never change a module's terminal state.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from forgeops.core.capabilities import Capabilities
from forgeops.core.errors import BootstrapError, SigningError, WriteError
from forgeops.core.manifest import build_manifest
from forgeops.core.packager import Packager
from forgeops.core.registry import ModuleRegistry
from forgeops.core.scaffold import ScaffoldBuilder, write_artifacts
from forgeops.core.state_machine import ModuleStateMachine
from forgeops.core.writer import ensure_directory
from forgeops.models.artifacts import PackageArtifact
from forgeops.models.context import LOGS_DIRNAME, PACKAGING_DIRNAME, RunContext
from forgeops.models.modules import ModuleDescriptor
from forgeops.models.reports import ModuleReport, RunSummary
from forgeops.models.states import ModuleState

logger = logging.getLogger(__name__)

# Relative to BASE_DIR; never part of the whole-tree manifest or archive.
TREE_EXCLUDES: frozenset[str] = frozenset({PACKAGING_DIRNAME, LOGS_DIRNAME})


class BootstrapOrchestrator:
    """Runs a full bootstrap over a module registry.

    Parameters
    ----------
    context:
        Target directory, overwrite policy and run logger.
    registry:
        Modules to generate, in order.
    capabilities:
        Optional signer and service builder resolved at pre-flight.
    builder:
        Scaffold builder.  A default one is created if omitted.
    packager:
        Archive creator.  A default one is created if omitted.
    """

    def __init__(
        self,
        context: RunContext,
        registry: ModuleRegistry,
        capabilities: Capabilities | None = None,
        builder: ScaffoldBuilder | None = None,
        packager: Packager | None = None,
    ) -> None:
        self.context = context
        self.registry = registry
        self.capabilities = capabilities or Capabilities()
        self.builder = builder or ScaffoldBuilder()
        self.packager = packager or Packager()
        self._log = context.log

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def run(self) -> RunSummary:
        """Bootstrap every module, then the whole tree.

        Raises
        ------
        DirectoryCreateError
            If the base directory cannot be created.
        ManifestReadError, WriteError, ArchiveError
            If the whole-tree manifest or archive cannot be produced.
        """
        ctx = self.context
        summary = RunSummary(base_dir=ctx.base_dir)
        self._log.info(
            "Bootstrap starting: %d module(s) under %s (overwrite=%s, signing=%s)",
            len(self.registry),
            ctx.base_dir,
            ctx.overwrite,
            self.capabilities.signer.name if self.capabilities.signer else "off",
        )
        ensure_directory(ctx.base_dir)
        ensure_directory(ctx.packaging_dir)

        for module in self.registry:
            summary.modules.append(self.run_module(module))

        self._finish_tree(summary)
        summary.finished_at = datetime.now(timezone.utc)

        failed = summary.failed_modules
        if failed:
            self._log.error(
                "Bootstrap finished with %d failed module(s): %s",
                len(failed),
                ", ".join(m.name for m in failed),
            )
        else:
            self._log.info("Bootstrap finished: %d module(s) done", len(summary.modules))
        return summary

    # ------------------------------------------------------------------
    # Per-module pipeline
    # ------------------------------------------------------------------

    def run_module(self, module: ModuleDescriptor) -> ModuleReport:
        """Drive one module to ``DONE`` or ``FAILED``; never raises ``BootstrapError``."""
        ctx = self.context
        machine = ModuleStateMachine(module.name, log=self._log)
        report = ModuleReport(name=module.name, description=module.description)
        module_dir = ctx.module_dir(module.name)

        try:
            machine.transition(ModuleState.SCAFFOLDING)
            report.outcomes = self.builder.build(module, ctx.base_dir, ctx.overwrite)
            if report.failed_count:
                raise WriteError(
                    f"{report.failed_count} of {len(report.outcomes)} artifact(s) failed to write"
                )
            self._build_service(module, report)

            machine.transition(ModuleState.MANIFESTING)
            manifest_path = ctx.module_manifest_path(module.name)
            report.manifest_entries = build_manifest(module_dir, manifest_path)
            report.manifest_path = manifest_path

            machine.transition(ModuleState.PACKAGING)
            package = self.packager.package(module_dir, ctx.module_archive_path(module.name))
            package, error = self._sign(package)
            if error:
                report.warnings.append(error)
                machine.transition(ModuleState.UNSIGNED, error)
            elif package.signed:
                machine.transition(ModuleState.SIGNED)
            else:
                machine.transition(ModuleState.UNSIGNED)
            report.package = package

            machine.transition(ModuleState.DONE)
        except BootstrapError as exc:
            report.error = str(exc)
            machine.fail(str(exc))

        report.state = machine.state
        report.transitions = list(machine.history)
        return report

    def _build_service(self, module: ModuleDescriptor, report: ModuleReport) -> None:
        service_builder = self.capabilities.service_builder
        if service_builder is None:
            return
        reason = service_builder.build(self.context.module_dir(module.name))
        if reason:
            self._log.warning("[%s] %s", module.name, reason)
            report.warnings.append(reason)

    def _sign(self, package: PackageArtifact) -> tuple[PackageArtifact, str]:
        """Sign the archive if a signer is configured.

        Returns the (possibly updated) artifact and an error string that is
        empty unless signing was attempted and failed.
        """
        signer = self.capabilities.signer
        if signer is None:
            return package, ""
        try:
            sig_path = signer.sign(package.archive_path)
        except SigningError as exc:
            self._log.warning("Signing failed, archive left unsigned: %s", exc)
            return package, str(exc)
        return package.model_copy(update={"signature_path": sig_path}), ""

    # ------------------------------------------------------------------
    # Whole tree
    # ------------------------------------------------------------------

    def _finish_tree(self, summary: RunSummary) -> None:
        ctx = self.context
        self._log.info("Writing top-level artifacts under %s", ctx.base_dir)
        summary.tree_outcomes = write_artifacts(
            ctx.base_dir,
            self.builder.renderer.render_tree(self.registry),
            overwrite=ctx.overwrite,
        )
        for outcome in summary.failed_tree_outcomes:
            summary.warnings.append(f"top-level write failed: {outcome.path}: {outcome.reason}")

        # A failed module's directory may be partially written or stale.
        failed = sorted(m.name for m in summary.failed_modules)
        exclude = TREE_EXCLUDES | set(failed)
        if failed:
            names = ", ".join(failed)
            self._log.warning("Failed module(s) left out of the tree manifest and archive: %s", names)
            summary.warnings.append(f"left out of tree manifest and archive (failed): {names}")

        build_manifest(ctx.base_dir, ctx.tree_manifest_path, exclude=exclude)
        summary.tree_manifest_path = ctx.tree_manifest_path

        package = self.packager.package(ctx.base_dir, ctx.tree_archive_path, exclude=exclude)
        package, error = self._sign(package)
        if error:
            summary.warnings.append(error)
        summary.tree_package = package

        signer = self.capabilities.signer
        if signer is not None:
            try:
                summary.tree_manifest_signature = signer.sign(ctx.tree_manifest_path)
            except SigningError as exc:
                self._log.warning("Tree manifest left unsigned: %s", exc)
                summary.warnings.append(str(exc))
