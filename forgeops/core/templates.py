"""Jinja2 template rendering for module scaffolds.

``TemplateRenderer.render`` is a pure function of ``(module, kind)``: it
reads only the packaged ``.j2`` bodies and the descriptor, never the target
tree or the environment, so identical inputs always produce identical bytes.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from pydantic import BaseModel, ConfigDict

from forgeops.models.artifacts import ArtifactSpec
from forgeops.models.modules import ModuleDescriptor

_DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


class TemplateKind(str, Enum):
    """The fixed set of artifacts every module receives."""

    README = "readme"
    ENTRYPOINT = "entrypoint"
    DEFAULT_CONFIG = "default_config"
    UTILS_LIB = "utils_lib"
    METRICS_LIB = "metrics_lib"
    SECRETS_CLI = "secrets_cli"
    DOCKERFILE = "dockerfile"
    K8S_MANIFEST = "k8s_manifest"
    CI_WORKFLOW = "ci_workflow"
    CI_BUILD = "ci_build"
    TEST_STUB = "test_stub"
    PACKAGING_SCRIPT = "packaging_script"
    SECURITY_ADVISORY = "security_advisory"
    IMPLEMENTATION_NOTES = "implementation_notes"
    SERVICE_POM = "service_pom"
    SERVICE_CLASS = "service_class"


class TemplateSpec(BaseModel):
    """Where a template lives and where its output goes.

    ``path`` is a ``str.format`` pattern over the descriptor's ``name``,
    ``package_name`` and ``class_name``.
    """

    model_config = ConfigDict(frozen=True)

    template: str
    path: str
    executable: bool = False

    def relative_path(self, module: ModuleDescriptor) -> str:
        return self.path.format(
            name=module.name,
            package_name=module.package_name,
            class_name=module.class_name,
        )


TEMPLATE_TABLE: dict[TemplateKind, TemplateSpec] = {
    TemplateKind.README: TemplateSpec(template="module/README.md.j2", path="README.md"),
    TemplateKind.ENTRYPOINT: TemplateSpec(
        template="module/entrypoint.sh.j2", path="bin/entrypoint.sh", executable=True
    ),
    TemplateKind.DEFAULT_CONFIG: TemplateSpec(
        template="module/default.conf.j2", path="etc/default.conf"
    ),
    TemplateKind.UTILS_LIB: TemplateSpec(template="module/utils.sh.j2", path="lib/utils.sh"),
    TemplateKind.METRICS_LIB: TemplateSpec(
        template="module/metrics.sh.j2", path="lib/metrics.sh", executable=True
    ),
    TemplateKind.SECRETS_CLI: TemplateSpec(
        template="module/secrets_cli.py.j2", path="bin/secrets_cli.py", executable=True
    ),
    TemplateKind.DOCKERFILE: TemplateSpec(
        template="module/Dockerfile.j2", path="docker/Dockerfile"
    ),
    TemplateKind.K8S_MANIFEST: TemplateSpec(
        template="module/deployment.yaml.j2", path="k8s/deployment.yaml"
    ),
    TemplateKind.CI_WORKFLOW: TemplateSpec(template="module/ci.yml.j2", path="ci/ci.yml"),
    TemplateKind.CI_BUILD: TemplateSpec(
        template="module/build.sh.j2", path="ci/build.sh", executable=True
    ),
    TemplateKind.TEST_STUB: TemplateSpec(
        template="module/run_tests.sh.j2", path="tests/run_tests.sh", executable=True
    ),
    TemplateKind.PACKAGING_SCRIPT: TemplateSpec(
        template="module/make_package.sh.j2",
        path="packaging/make_package.sh",
        executable=True,
    ),
    TemplateKind.SECURITY_ADVISORY: TemplateSpec(
        template="module/SECURITY_ADVISORY.md.j2", path="docs/SECURITY_ADVISORY.md"
    ),
    TemplateKind.IMPLEMENTATION_NOTES: TemplateSpec(
        template="module/IMPLEMENTATION_NOTES.md.j2", path="docs/IMPLEMENTATION_NOTES.md"
    ),
    TemplateKind.SERVICE_POM: TemplateSpec(template="module/pom.xml.j2", path="java/pom.xml"),
    TemplateKind.SERVICE_CLASS: TemplateSpec(
        template="module/Service.java.j2",
        path="java/src/main/java/com/forgeops/{package_name}/{class_name}Service.java",
    ),
}

# Top-level files written once per run, relative to the base directory.
TREE_TEMPLATES: list[TemplateSpec] = [
    TemplateSpec(template="tree/README.md.j2", path="README.md"),
    TemplateSpec(template="tree/PACKAGING_MANIFEST.txt.j2", path="PACKAGING_MANIFEST.txt"),
    TemplateSpec(template="tree/run_all_tests.sh.j2", path="run_all_tests.sh", executable=True),
]


class TemplateRenderer:
    """Renders packaged Jinja2 templates into ``ArtifactSpec``s.

    Parameters
    ----------
    template_dir:
        Root of the ``.j2`` bodies.  Defaults to ``forgeops/templates``.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.template_dir = Path(template_dir) if template_dir else _DEFAULT_TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    # -- Module artifacts --------------------------------------------------

    def render(self, module: ModuleDescriptor, kind: TemplateKind) -> ArtifactSpec:
        """Render one artifact of *kind* for *module*."""
        return self.render_spec(module, TEMPLATE_TABLE[kind])

    def render_all(self, module: ModuleDescriptor) -> list[ArtifactSpec]:
        """Render every ``TemplateKind`` for *module*, in enumeration order."""
        return [self.render(module, kind) for kind in TemplateKind]

    def render_spec(self, module: ModuleDescriptor, spec: TemplateSpec) -> ArtifactSpec:
        content = self.render_text(spec.template, _module_context(module))
        return ArtifactSpec(
            relative_path=spec.relative_path(module),
            content=content.encode("utf-8"),
            executable=spec.executable,
        )

    # -- Tree artifacts ----------------------------------------------------

    def render_tree(self, modules: Iterable[ModuleDescriptor]) -> list[ArtifactSpec]:
        """Render the top-level README, packaging manifest and test runner."""
        context = {"modules": [_module_context(m) for m in modules]}
        return [
            ArtifactSpec(
                relative_path=spec.path,
                content=self.render_text(spec.template, context).encode("utf-8"),
                executable=spec.executable,
            )
            for spec in TREE_TEMPLATES
        ]

    # -- Low level ---------------------------------------------------------

    def render_text(self, template_path: str, context: dict[str, Any]) -> str:
        template = self.env.get_template(template_path)
        return template.render(**context)

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return sorted ``.j2`` template paths under *prefix*."""
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix() for p in search_dir.rglob("*.j2")
        )


def _module_context(module: ModuleDescriptor) -> dict[str, str]:
    return {
        "name": module.name,
        "description": module.description,
        "package_name": module.package_name,
        "class_name": module.class_name,
    }
