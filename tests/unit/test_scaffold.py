"""Tests for the ScaffoldBuilder and extension steps."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from forgeops.core.errors import DirectoryCreateError
from forgeops.core.extensions import VAULT_BINDINGS, default_extensions
from forgeops.core.scaffold import (
    MODULE_SKELETON,
    ScaffoldBuilder,
    resolve_artifact_path,
    write_artifacts,
)
from forgeops.core.templates import TemplateKind, TemplateRenderer
from forgeops.models.artifacts import ArtifactSpec, OutcomeKind
from forgeops.models.modules import ModuleDescriptor


class TestArtifactsFor:
    def test_plain_module_gets_every_kind(self, builder: ScaffoldBuilder, module: ModuleDescriptor):
        artifacts = builder.artifacts_for(module)
        assert len(artifacts) == len(TemplateKind)

    def test_secrets_module_gets_vault_extension(
        self, builder: ScaffoldBuilder, secrets_module: ModuleDescriptor
    ):
        paths = {a.relative_path for a in builder.artifacts_for(secrets_module)}
        assert len(paths) == len(TemplateKind) + len(VAULT_BINDINGS.templates)
        assert "bin/secrets_hvac.py" in paths
        assert "docs/VAULT_INTEGRATION.md" in paths
        assert "java/src/test/java/com/forgeops/secrets/VaultClientStubTest.java" in paths

    def test_extension_ignores_other_modules(
        self, renderer: TemplateRenderer, module: ModuleDescriptor
    ):
        assert VAULT_BINDINGS.contribute(module, renderer) == []

    def test_extensions_can_be_disabled(
        self, renderer: TemplateRenderer, secrets_module: ModuleDescriptor
    ):
        bare = ScaffoldBuilder(renderer=renderer, extensions={})
        assert len(bare.artifacts_for(secrets_module)) == len(TemplateKind)

    def test_default_extensions_keyed_by_module(self):
        assert list(default_extensions()) == ["secrets-lifecycle"]


class TestBuild:
    def test_creates_skeleton_and_files(
        self, builder: ScaffoldBuilder, module: ModuleDescriptor, base_dir: Path
    ):
        outcomes = builder.build(module, base_dir)
        root = base_dir / module.name
        for rel in MODULE_SKELETON:
            assert (root / rel).is_dir(), rel
        assert all(o.kind == OutcomeKind.WRITTEN for o in outcomes)
        assert (root / "README.md").is_file()
        assert (root / "java/src/main/java/com/forgeops/canarydeployer/CanaryDeployerService.java").is_file()

    def test_permissions(self, builder: ScaffoldBuilder, module: ModuleDescriptor, base_dir: Path):
        builder.build(module, base_dir)
        root = base_dir / module.name
        assert stat.S_IMODE((root / "bin/entrypoint.sh").stat().st_mode) == 0o755
        assert stat.S_IMODE((root / "tests/run_tests.sh").stat().st_mode) == 0o755
        assert stat.S_IMODE((root / "etc/default.conf").stat().st_mode) == 0o644
        assert stat.S_IMODE((root / "docker/Dockerfile").stat().st_mode) == 0o644

    def test_rerun_skips_everything(
        self, builder: ScaffoldBuilder, module: ModuleDescriptor, base_dir: Path
    ):
        builder.build(module, base_dir)
        readme = base_dir / module.name / "README.md"
        readme.write_text("hand edited\n")

        outcomes = builder.build(module, base_dir)
        assert all(o.kind == OutcomeKind.SKIPPED_EXISTING for o in outcomes)
        assert readme.read_text() == "hand edited\n"

    def test_overwrite_restores_generated_content(
        self, builder: ScaffoldBuilder, module: ModuleDescriptor, base_dir: Path
    ):
        builder.build(module, base_dir)
        readme = base_dir / module.name / "README.md"
        original = readme.read_bytes()
        readme.write_text("hand edited\n")

        outcomes = builder.build(module, base_dir, overwrite=True)
        assert all(o.kind == OutcomeKind.WRITTEN for o in outcomes)
        assert readme.read_bytes() == original

    def test_single_artifact_failure_is_isolated(
        self, builder: ScaffoldBuilder, module: ModuleDescriptor, base_dir: Path
    ):
        root = base_dir / module.name
        (root / "docs").mkdir(parents=True)
        # A directory where a file should be: that one write fails, siblings land.
        (root / "docs" / "SECURITY_ADVISORY.md").mkdir()

        outcomes = builder.build(module, base_dir, overwrite=True)
        failed = [o for o in outcomes if o.kind == OutcomeKind.FAILED]
        assert [o.path.name for o in failed] == ["SECURITY_ADVISORY.md"]
        assert (root / "docs" / "IMPLEMENTATION_NOTES.md").is_file()

    def test_blocked_module_root_raises(
        self, builder: ScaffoldBuilder, module: ModuleDescriptor, base_dir: Path
    ):
        base_dir.mkdir()
        (base_dir / module.name).write_text("a file, not a directory")
        with pytest.raises(DirectoryCreateError):
            builder.build(module, base_dir)


class TestPaths:
    @pytest.mark.parametrize("rel", ["/etc/passwd", "../outside.txt", "bin/../../x"])
    def test_escaping_paths_rejected(self, tmp_dir: Path, rel: str):
        with pytest.raises(ValueError):
            resolve_artifact_path(tmp_dir, rel)

    def test_nested_path(self, tmp_dir: Path):
        assert resolve_artifact_path(tmp_dir, "a/b/c.txt") == tmp_dir / "a" / "b" / "c.txt"

    def test_write_artifacts_top_level(self, tmp_dir: Path):
        artifacts = [
            ArtifactSpec(relative_path="README.md", content=b"# top\n"),
            ArtifactSpec(relative_path="run_all_tests.sh", content=b"#!/bin/sh\n", executable=True),
        ]
        outcomes = write_artifacts(tmp_dir / "out", iter(artifacts))
        assert [o.kind for o in outcomes] == [OutcomeKind.WRITTEN, OutcomeKind.WRITTEN]
        assert stat.S_IMODE((tmp_dir / "out" / "run_all_tests.sh").stat().st_mode) == 0o755

    def test_write_artifacts_escaping_path_is_failed_outcome(self, tmp_dir: Path):
        artifacts = [
            ArtifactSpec(relative_path="../escape.txt", content=b"nope\n"),
            ArtifactSpec(relative_path="README.md", content=b"# top\n"),
        ]
        outcomes = write_artifacts(tmp_dir / "out", artifacts)
        assert [o.kind for o in outcomes] == [OutcomeKind.FAILED, OutcomeKind.WRITTEN]
        assert "escapes" in outcomes[0].reason
        assert not (tmp_dir / "escape.txt").exists()
