"""Scaffold builder — one module descriptor in, one directory tree out.

Creates the fixed directory skeleton, renders every template kind plus any
extension artifacts, and writes each through the atomic writer.  A failed
artifact does not stop its siblings; the caller decides what a failure
means for the module.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath

from forgeops.core.errors import DirectoryCreateError
from forgeops.core.extensions import ExtensionStep, default_extensions, extensions_for
from forgeops.core.templates import TemplateRenderer
from forgeops.core.writer import ensure_directory, write_artifact
from forgeops.models.artifacts import ArtifactSpec, WriteOutcome
from forgeops.models.modules import ModuleDescriptor

logger = logging.getLogger(__name__)

MODULE_SKELETON: tuple[str, ...] = (
    "bin",
    "etc",
    "lib",
    "docs",
    "tests",
    "ci",
    "packaging",
    "hooks",
    "docker",
    "k8s",
)


def skeleton_for(module: ModuleDescriptor) -> list[str]:
    """Directories created for *module*, relative to its root."""
    return [
        *MODULE_SKELETON,
        f"java/src/main/java/com/forgeops/{module.package_name}",
    ]


def resolve_artifact_path(root: Path, relative_path: str) -> Path:
    """Join *relative_path* onto *root*, refusing absolute or escaping paths."""
    rel = PurePosixPath(relative_path)
    if rel.is_absolute() or ".." in rel.parts:
        raise ValueError(f"Artifact path escapes module root: {relative_path!r}")
    return root.joinpath(*rel.parts)


class ScaffoldBuilder:
    """Builds module scaffolds under a base directory.

    Parameters
    ----------
    renderer:
        Template renderer; a default one is created if omitted.
    extensions:
        Extension steps keyed by module name.  Defaults to the built-ins.
    """

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        extensions: Mapping[str, Iterable[ExtensionStep]] | None = None,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.extensions = (
            {k: list(v) for k, v in extensions.items()}
            if extensions is not None
            else default_extensions()
        )

    def artifacts_for(self, module: ModuleDescriptor) -> list[ArtifactSpec]:
        """Render every artifact for *module* without touching the filesystem."""
        artifacts = self.renderer.render_all(module)
        for step in extensions_for(module, self.extensions):
            artifacts.extend(step.contribute(module, self.renderer))
        return artifacts

    def build(
        self,
        module: ModuleDescriptor,
        base_dir: Path,
        overwrite: bool = False,
    ) -> list[WriteOutcome]:
        """Materialize *module* under ``base_dir/module.name``.

        Raises
        ------
        DirectoryCreateError
            If the module root or a skeleton directory cannot be created;
            no file is written in that case.
        """
        root = Path(base_dir) / module.name
        logger.info("Scaffolding module: %s - %s", module.name, module.description)

        ensure_directory(root)
        for rel in skeleton_for(module):
            ensure_directory(root / rel)

        outcomes: list[WriteOutcome] = []
        for artifact in self.artifacts_for(module):
            try:
                dest = resolve_artifact_path(root, artifact.relative_path)
            except ValueError as exc:
                outcomes.append(WriteOutcome.failed(root / artifact.relative_path, str(exc)))
                continue
            outcomes.append(
                write_artifact(
                    dest,
                    artifact.content,
                    mode=artifact.mode,
                    overwrite=overwrite,
                )
            )

        failed = sum(1 for o in outcomes if not o.ok)
        if failed:
            logger.error(
                "Module %s: %d of %d artifact(s) failed", module.name, failed, len(outcomes)
            )
        return outcomes


def write_artifacts(
    root: Path,
    artifacts: Iterable[ArtifactSpec],
    overwrite: bool = False,
) -> list[WriteOutcome]:
    """Write pre-rendered artifacts under *root* (used for top-level files)."""
    artifacts = list(artifacts)
    try:
        ensure_directory(root)
    except DirectoryCreateError as exc:
        return [WriteOutcome.failed(root / a.relative_path, str(exc)) for a in artifacts]
    outcomes: list[WriteOutcome] = []
    for artifact in artifacts:
        try:
            dest = resolve_artifact_path(root, artifact.relative_path)
        except ValueError as exc:
            outcomes.append(WriteOutcome.failed(root / artifact.relative_path, str(exc)))
            continue
        outcomes.append(
            write_artifact(dest, artifact.content, mode=artifact.mode, overwrite=overwrite)
        )
    return outcomes
