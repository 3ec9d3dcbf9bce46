"""Tests for BootstrapSettings — env-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from forgeops.config import BootstrapSettings, load_settings


class TestDefaults:
    def test_defaults(self):
        settings = BootstrapSettings()
        assert settings.base_dir == Path("./ForgeOpsModules")
        assert settings.force is False
        assert settings.gpg_sign is False
        assert settings.log_level == "INFO"
        assert settings.signing_backend == "auto"
        assert settings.required_tools == []
        assert settings.command_timeout is None
        assert settings.modules_file is None

    def test_to_context(self, tmp_dir: Path):
        ctx = BootstrapSettings(base_dir=tmp_dir, force=True).to_context()
        assert ctx.base_dir == tmp_dir
        assert ctx.overwrite is True


class TestEnvironment:
    def test_historical_names(self, monkeypatch: pytest.MonkeyPatch, tmp_dir: Path):
        monkeypatch.setenv("BASE_DIR", str(tmp_dir / "out"))
        monkeypatch.setenv("FORCE", "1")
        monkeypatch.setenv("GPG_SIGN", "1")
        settings = BootstrapSettings()
        assert settings.base_dir == tmp_dir / "out"
        assert settings.force is True
        assert settings.gpg_sign is True

    @pytest.mark.parametrize("value,expected", [("0", False), ("", False), ("true", True)])
    def test_force_parsing(self, monkeypatch: pytest.MonkeyPatch, value: str, expected: bool):
        monkeypatch.setenv("FORCE", value)
        assert BootstrapSettings().force is expected

    def test_prefixed_settings(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FORGEOPS_LOG_LEVEL", "debug")
        monkeypatch.setenv("FORGEOPS_SIGNING_BACKEND", "ed25519")
        monkeypatch.setenv("FORGEOPS_BUILD_SERVICES", "true")
        monkeypatch.setenv("FORGEOPS_REQUIRED_TOOLS", "tar, gzip git")
        monkeypatch.setenv("FORGEOPS_COMMAND_TIMEOUT", "30")
        settings = BootstrapSettings()
        assert settings.log_level == "DEBUG"
        assert settings.signing_backend == "ed25519"
        assert settings.build_services is True
        assert settings.required_tools == ["tar", "gzip", "git"]
        assert settings.command_timeout == 30.0

    def test_unprefixed_names_do_not_leak(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert BootstrapSettings().log_level == "INFO"

    def test_blank_timeout_is_none(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FORGEOPS_COMMAND_TIMEOUT", "")
        assert BootstrapSettings().command_timeout is None

    def test_dotenv_file(self, tmp_dir: Path):
        # The autouse fixture runs every test from tmp_dir.
        (tmp_dir / ".env").write_text("FORGEOPS_SIGNING_KEY=abc\nFORCE=1\n")
        settings = BootstrapSettings()
        assert settings.signing_key == "abc"
        assert settings.force is True


class TestValidation:
    def test_unknown_backend(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FORGEOPS_SIGNING_BACKEND", "rsa")
        with pytest.raises(ValidationError):
            BootstrapSettings()

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            BootstrapSettings(log_level="LOUD")


class TestLoadSettings:
    def test_overrides_win(self, monkeypatch: pytest.MonkeyPatch, tmp_dir: Path):
        monkeypatch.setenv("FORCE", "1")
        monkeypatch.setenv("BASE_DIR", "/from/env")
        settings = load_settings(base_dir=tmp_dir, force=False)
        assert settings.base_dir == tmp_dir
        assert settings.force is False

    def test_none_overrides_ignored(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GPG_SIGN", "1")
        settings = load_settings(gpg_sign=None, base_dir=None)
        assert settings.gpg_sign is True
        assert settings.base_dir == Path("./ForgeOpsModules")
