"""Tests for the layered configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from modelpick import configuration


def _prepare_repo_defaults(tmp_path: Path, content: str = "ui:\n  verbose: true\n") -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "10-default.yml").write_text(content, encoding="utf-8")
    return config_dir


def test_resolve_home_dir_uses_env_expansion(tmp_path: Path):
    env = {"MODELPICK_HOME": str(tmp_path / "home")}
    path = configuration.resolve_home_dir(env=env)
    assert path == tmp_path / "home"


def test_load_runtime_configuration_merges_repo_and_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    repo_dir = _prepare_repo_defaults(
        tmp_path,
        content="models:\n  default: gpt-4.1\n  recommended: [o3]\n",
    )
    home_dir = tmp_path / "home"
    overrides_dir = home_dir / "config"
    overrides_dir.mkdir(parents=True)
    (overrides_dir / "20-overrides.yml").write_text(
        "models:\n  default: o3\n  effort: high\n",
        encoding="utf-8",
    )

    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", repo_dir)

    bundle = configuration.load_runtime_configuration(home_dir)

    assert bundle.status == "ready"
    assert bundle.merged["models"]["default"] == "o3"
    assert bundle.merged["models"]["effort"] == "high"
    assert bundle.merged["models"]["recommended"] == ["o3"]
    assert len(bundle.files_loaded) == 2


def test_schema_fills_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    repo_dir = _prepare_repo_defaults(tmp_path)
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", repo_dir)

    bundle = configuration.load_runtime_configuration(home_dir)

    assert bundle.section("models")["recommended"] == ["o4-mini", "o3"]
    assert bundle.section("models")["reasoning_prefixes"] == ["o"]
    assert bundle.section("catalog")["source"] == "static"
    assert bundle.section("logging")["level"] == "WARNING"


def test_load_runtime_configuration_reports_missing_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    repo_dir = _prepare_repo_defaults(tmp_path)
    missing_home = tmp_path / "missing"
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", repo_dir)

    bundle = configuration.load_runtime_configuration(missing_home)

    assert bundle.status == "missing"
    assert any("does not exist" in diag.message for diag in bundle.diagnostics)
    assert bundle.section("ui")["verbose"] is True


def test_load_runtime_configuration_handles_bad_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    repo_dir = _prepare_repo_defaults(tmp_path)
    home_dir = tmp_path / "home"
    overrides_dir = home_dir / "config"
    overrides_dir.mkdir(parents=True)
    (overrides_dir / "broken.yml").write_text("models: [\n", encoding="utf-8")

    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", repo_dir)

    bundle = configuration.load_runtime_configuration(home_dir)

    assert bundle.status == "invalid"
    assert any("Failed to parse" in diag.message for diag in bundle.diagnostics)


def test_unknown_effort_is_reported_and_cleared(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    repo_dir = _prepare_repo_defaults(tmp_path, content="models:\n  effort: extreme\n")
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", repo_dir)

    bundle = configuration.load_runtime_configuration(home_dir)

    assert bundle.status == "invalid"
    assert bundle.section("models")["effort"] is None
    assert any("models.effort" in diag.message for diag in bundle.diagnostics)


def test_unknown_catalog_source_falls_back_to_static(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    repo_dir = _prepare_repo_defaults(tmp_path, content="catalog:\n  source: carrier-pigeon\n")
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", repo_dir)

    bundle = configuration.load_runtime_configuration(home_dir)

    assert bundle.section("catalog")["source"] == "static"
    assert any("catalog.source" in diag.message for diag in bundle.diagnostics)
