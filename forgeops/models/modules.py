"""Module descriptors — the unit of iteration for a bootstrap run."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, field_validator

# Lowercase, starts alphanumeric; dots, dashes and underscores allowed after.
_SAFE_NAME = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


class ModuleDescriptor(BaseModel):
    """A named unit of generated scaffolding.

    Identity is ``name``.  Names are used verbatim as directory and archive
    names, so they must be path-safe.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""

    @field_validator("name")
    @classmethod
    def _name_is_path_safe(cls, value: str) -> str:
        if not value:
            raise ValueError("module name must not be empty")
        if ".." in value or not _SAFE_NAME.match(value):
            raise ValueError(
                f"module name {value!r} is not path-safe "
                "(expected lowercase letters, digits, '.', '_' or '-')"
            )
        return value

    @property
    def package_name(self) -> str:
        """Name usable as a Java package segment (``secrets-lifecycle`` -> ``secretslifecycle``)."""
        return re.sub(r"[^a-z0-9]", "", self.name)

    @property
    def class_name(self) -> str:
        """PascalCase form of the name (``secrets-lifecycle`` -> ``SecretsLifecycle``)."""
        parts = re.split(r"[^a-z0-9]+", self.name)
        return "".join(part.capitalize() for part in parts if part)

    def __str__(self) -> str:
        return self.name
