"""Scaffold extension steps — extra artifacts for specific modules.

An extension is keyed by module name and contributes additional
``ArtifactSpec``s on top of the fixed template set.  The built-in
``vault-bindings`` extension gives ``secrets-lifecycle`` its secret-store
integration stubs and guidance document.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from forgeops.core.templates import TemplateRenderer, TemplateSpec
from forgeops.models.artifacts import ArtifactSpec
from forgeops.models.modules import ModuleDescriptor

logger = logging.getLogger(__name__)


class ExtensionStep:
    """A named set of extra templates rendered for one module.

    Parameters
    ----------
    name:
        Identifier used in logs (e.g. ``"vault-bindings"``).
    module_name:
        The module this step applies to.
    templates:
        Template specs rendered with the module's context.
    """

    def __init__(
        self,
        name: str,
        module_name: str,
        templates: Iterable[TemplateSpec],
    ) -> None:
        self.name = name
        self.module_name = module_name
        self.templates = list(templates)

    def contribute(
        self, module: ModuleDescriptor, renderer: TemplateRenderer
    ) -> list[ArtifactSpec]:
        """Render this step's artifacts for *module*."""
        if module.name != self.module_name:
            return []
        artifacts = [renderer.render_spec(module, spec) for spec in self.templates]
        logger.info(
            "Extension %s contributed %d artifact(s) to %s",
            self.name,
            len(artifacts),
            module.name,
        )
        return artifacts

    def __repr__(self) -> str:
        return f"ExtensionStep(name={self.name!r}, module={self.module_name!r})"


VAULT_BINDINGS = ExtensionStep(
    name="vault-bindings",
    module_name="secrets-lifecycle",
    templates=[
        TemplateSpec(
            template="extensions/secrets_hvac.py.j2",
            path="bin/secrets_hvac.py",
            executable=True,
        ),
        TemplateSpec(
            template="extensions/VaultClientStub.java.j2",
            path="java/src/main/java/com/forgeops/secrets/VaultClientStub.java",
        ),
        TemplateSpec(
            template="extensions/VaultClientStubTest.java.j2",
            path="java/src/test/java/com/forgeops/secrets/VaultClientStubTest.java",
        ),
        TemplateSpec(
            template="extensions/VAULT_INTEGRATION.md.j2",
            path="docs/VAULT_INTEGRATION.md",
        ),
    ],
)


def default_extensions() -> dict[str, list[ExtensionStep]]:
    """Built-in extensions keyed by module name."""
    return {VAULT_BINDINGS.module_name: [VAULT_BINDINGS]}


def extensions_for(
    module: ModuleDescriptor, extensions: Mapping[str, Iterable[ExtensionStep]]
) -> list[ExtensionStep]:
    return list(extensions.get(module.name, []))
