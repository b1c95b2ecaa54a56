"""
Tests for environment settings and the per-run BuildConfig.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from cloudapk.build.config import BuildConfig, load_settings
from cloudapk.core.errors import ConfigurationError

from conftest import make_settings

ENV_VARS = ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO", "APP_ID", "ARTIFACT_NAME", "DOWNLOAD_DIR")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    """No settings in the environment and no .env in the working directory."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def _set_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
    monkeypatch.setenv("GITHUB_OWNER", "acme")
    monkeypatch.setenv("GITHUB_REPO", "app")
    monkeypatch.setenv("APP_ID", "com.acme.app")


# =============================================================================
# Settings
# =============================================================================


@pytest.mark.evergreen
class TestLoadSettings:
    def test_from_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        _set_required(clean_env)
        settings = load_settings()

        assert settings.github_token == "ghp_env"
        assert settings.repository == "acme/app"
        assert settings.app_id == "com.acme.app"
        assert settings.artifact_name == "my-app-apk"
        assert settings.download_dir == Path.home() / "Downloads"

    def test_optional_overrides(self, clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
        _set_required(clean_env)
        clean_env.setenv("ARTIFACT_NAME", "release-apk")
        clean_env.setenv("DOWNLOAD_DIR", str(tmp_path / "out"))

        settings = load_settings()

        assert settings.artifact_name == "release-apk"
        assert settings.download_dir == tmp_path / "out"

    def test_download_dir_expands_home(self, clean_env: pytest.MonkeyPatch) -> None:
        _set_required(clean_env)
        clean_env.setenv("DOWNLOAD_DIR", "~/apks")

        settings = load_settings()

        assert settings.download_dir == Path.home() / "apks"

    def test_missing_token_is_fatal(self, clean_env: pytest.MonkeyPatch) -> None:
        _set_required(clean_env)
        clean_env.delenv("GITHUB_TOKEN")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()
        assert "GITHUB_TOKEN" in str(exc_info.value)

    def test_empty_app_id_is_fatal(self, clean_env: pytest.MonkeyPatch) -> None:
        _set_required(clean_env)
        clean_env.setenv("APP_ID", "")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()
        assert "APP_ID" in str(exc_info.value)

    def test_env_file(self, clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
        env_file = tmp_path / "project.env"
        env_file.write_text(
            "GITHUB_TOKEN=ghp_file\nGITHUB_OWNER=o\nGITHUB_REPO=r\nAPP_ID=com.file.app\nUNRELATED=1\n"
        )

        settings = load_settings(env_file)

        assert settings.github_token == "ghp_file"
        assert settings.app_id == "com.file.app"

    def test_missing_env_file(self, clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(tmp_path / "nope.env")

    def test_token_not_in_repr(self, tmp_path: Path) -> None:
        settings = make_settings(tmp_path, github_token="ghp_do_not_print")
        assert "ghp_do_not_print" not in repr(settings)

    def test_settings_frozen(self, tmp_path: Path) -> None:
        settings = make_settings(tmp_path)
        with pytest.raises(Exception):
            settings.app_id = "changed"


# =============================================================================
# BuildConfig
# =============================================================================


@pytest.mark.evergreen
class TestBuildConfig:
    def test_paths(self, tmp_path: Path) -> None:
        config = BuildConfig(project_root=tmp_path, settings=make_settings(tmp_path))

        assert config.manifest_path == tmp_path / "config.xml"
        assert config.www_dir == tmp_path / "www"
        assert config.index_path == tmp_path / "www" / "index.html"

    def test_defaults(self, tmp_path: Path) -> None:
        config = BuildConfig(project_root=tmp_path, settings=make_settings(tmp_path))

        assert config.poll_interval == 10
        assert config.grace_delay == 8
        assert config.max_polls is None
        assert config.missing_manifest == "fail"
        assert config.build_type is None

    def test_frozen(self, tmp_path: Path) -> None:
        config = BuildConfig(project_root=tmp_path, settings=make_settings(tmp_path))
        with pytest.raises(FrozenInstanceError):
            config.dry_run = True

    @pytest.mark.parametrize(
        "overrides",
        [
            {"build_type": "profile"},
            {"missing_manifest": "ignore"},
            {"max_polls": 0},
        ],
    )
    def test_invalid_values_rejected(self, tmp_path: Path, overrides: dict) -> None:
        with pytest.raises(ConfigurationError):
            BuildConfig(project_root=tmp_path, settings=make_settings(tmp_path), **overrides)
