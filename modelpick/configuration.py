"""Layered YAML configuration for modelpick."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, MutableMapping, Optional, Tuple

import yaml

REPO_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_DIR = REPO_ROOT / "config"
DEFAULT_HOME = "~/.modelpick"
HOME_ENV = "MODELPICK_HOME"

DiagnosticLevel = Literal["info", "warning", "error"]
ConfigurationStatus = Literal["ready", "missing", "invalid"]


SchemaSpec = Dict[str, Any]

DEFAULT_MODEL = "o4-mini"
DEFAULT_RECOMMENDED: List[str] = ["o4-mini", "o3"]
DEFAULT_CATALOG_MODELS: List[str] = ["gpt-4.1", "gpt-4.1-mini", "gpt-4o", "o3", "o4-mini"]
EFFORT_CHOICES: Tuple[str, ...] = ("low", "medium", "high")
CATALOG_SOURCES: Tuple[str, ...] = ("static", "http")
_UNREADABLE = object()


CONFIG_SCHEMA: SchemaSpec = {
    "logging": {
        "type": dict,
        "schema": {
            "level": {"type": str, "default": "WARNING"},
        },
        "default": {},
    },
    "ui": {
        "type": dict,
        "schema": {
            "verbose": {"type": bool, "default": True},
        },
        "default": {},
    },
    "models": {
        "type": dict,
        "schema": {
            "default": {"type": str, "default": DEFAULT_MODEL},
            "effort": {"type": (str, type(None)), "default": None},
            "recommended": {
                "type": list,
                "item_type": str,
                "default_factory": lambda: list(DEFAULT_RECOMMENDED),
            },
            "reasoning_prefixes": {
                "type": list,
                "item_type": str,
                "default_factory": lambda: ["o"],
            },
        },
        "default": {},
    },
    "catalog": {
        "type": dict,
        "schema": {
            "source": {"type": str, "default": "static"},
            "models": {
                "type": list,
                "item_type": str,
                "default_factory": lambda: list(DEFAULT_CATALOG_MODELS),
            },
            "base_url": {"type": str, "default": "https://api.openai.com/v1"},
            "api_key_env": {"type": str, "default": "OPENAI_API_KEY"},
            "timeout": {"type": (int, float), "default": 5.0},
        },
        "default": {},
    },
}


@dataclass
class Diagnostic:
    """Represents a configuration validation or loading issue."""

    level: DiagnosticLevel
    message: str
    source: Optional[Path] = None


@dataclass
class ConfigurationBundle:
    """Merged configuration plus where it came from."""

    home_dir: Path
    status: ConfigurationStatus
    merged: Dict[str, Any] = field(default_factory=dict)
    repo_defaults: Dict[str, Any] = field(default_factory=dict)
    home_overrides: Dict[str, Any] = field(default_factory=dict)
    files_loaded: List[Path] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    log_path: Optional[Path] = None

    def section(self, name: str) -> Dict[str, Any]:
        return (self.merged or {}).get(name) or {}


def resolve_home_dir(
    env: Optional[Mapping[str, str]] = None,
    default: str = DEFAULT_HOME,
) -> Path:
    """Resolve the per-user home directory from the environment."""

    env_source = env or os.environ
    raw = env_source.get(HOME_ENV, default)
    return Path(raw).expanduser()


def load_runtime_configuration(home_dir: Optional[Path] = None) -> ConfigurationBundle:
    """Load repo defaults, then overlay ``<home>/config/*.yml``."""

    resolved_home = home_dir or resolve_home_dir()
    diagnostics: List[Diagnostic] = []
    files_loaded: List[Path] = []

    repo_defaults, repo_files = _load_directory_configs(
        DEFAULT_CONFIG_DIR,
        diagnostics,
        label="repo defaults",
    )
    files_loaded.extend(repo_files)

    status: ConfigurationStatus = "ready"
    home_overrides: Dict[str, Any] = {}

    if not resolved_home.exists():
        diagnostics.append(
            Diagnostic(
                level="warning",
                message=f"Home directory '{resolved_home}' does not exist; using defaults.",
            )
        )
        status = "missing"
    elif not resolved_home.is_dir():
        diagnostics.append(
            Diagnostic(
                level="error",
                message=f"Home path '{resolved_home}' is not a directory.",
            )
        )
        status = "invalid"
    else:
        home_overrides, override_files = _load_directory_configs(
            resolved_home / "config",
            diagnostics,
            label="user overrides",
        )
        files_loaded.extend(override_files)

    merged = deepcopy(repo_defaults)
    _deep_merge_dicts(merged, home_overrides)

    _validate_schema(merged, diagnostics)

    if status == "ready" and any(diag.level == "error" for diag in diagnostics):
        status = "invalid"

    return ConfigurationBundle(
        home_dir=resolved_home,
        status=status,
        merged=merged,
        repo_defaults=repo_defaults,
        home_overrides=home_overrides,
        files_loaded=files_loaded,
        diagnostics=diagnostics,
    )


def _load_directory_configs(
    directory: Path,
    diagnostics: List[Diagnostic],
    label: str,
) -> Tuple[Dict[str, Any], List[Path]]:
    """Merge every ``*.yml``/``*.yaml`` file in ``directory`` in name order."""

    data: Dict[str, Any] = {}
    loaded_files: List[Path] = []

    if not directory.is_dir():
        exists = directory.exists()
        diagnostics.append(
            Diagnostic(
                level="error" if exists else "info",
                message=(
                    f"Configuration path '{directory}' ({label}) is not a directory."
                    if exists
                    else f"No configuration directory at '{directory}' ({label})."
                ),
                source=directory,
            )
        )
        return data, loaded_files

    for yaml_file in sorted(directory.glob("*.yml")) + sorted(directory.glob("*.yaml")):
        content = _read_yaml(yaml_file, diagnostics)
        if content is _UNREADABLE:
            continue
        if content is not None:
            _deep_merge_dicts(data, dict(content))
        loaded_files.append(yaml_file)

    return data, loaded_files


def _read_yaml(yaml_file: Path, diagnostics: List[Diagnostic]) -> Any:
    """Parse one file; report problems and return ``_UNREADABLE`` instead of raising."""

    try:
        content = yaml.safe_load(yaml_file.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        diagnostics.append(
            Diagnostic(level="error", message=f"Failed to parse '{yaml_file}': {exc}", source=yaml_file)
        )
        return _UNREADABLE

    if content is not None and not isinstance(content, MutableMapping):
        diagnostics.append(
            Diagnostic(
                level="warning",
                message=f"Ignoring '{yaml_file}': top level is not a mapping.",
                source=yaml_file,
            )
        )
        return _UNREADABLE
    return content


def _deep_merge_dicts(dest: MutableMapping[str, Any], source: Mapping[str, Any]) -> None:
    """Recursively merge ``source`` into ``dest``; later values win."""

    for key, value in source.items():
        current = dest.get(key)
        if isinstance(current, MutableMapping) and isinstance(value, Mapping):
            _deep_merge_dicts(current, value)
        else:
            dest[key] = deepcopy(value)


def _default_from_spec(spec: SchemaSpec) -> Any:
    factory = spec.get("default_factory")
    if callable(factory):
        return factory()
    return deepcopy(spec.get("default"))


def _has_default(spec: SchemaSpec) -> bool:
    return "default" in spec or "default_factory" in spec


def _type_name(expected: Any) -> str:
    if isinstance(expected, tuple):
        return ", ".join(t.__name__ for t in expected)
    return expected.__name__


def _validate_schema(config: Dict[str, Any], diagnostics: List[Diagnostic]) -> None:
    _validate_section(config, CONFIG_SCHEMA, "config", diagnostics)
    _validate_choices(config, diagnostics)


def _validate_choices(config: Dict[str, Any], diagnostics: List[Diagnostic]) -> None:
    """Check values that must come from a fixed set; reset offenders to defaults."""

    models = config.get("models") or {}
    effort = models.get("effort")
    if effort is not None and effort not in EFFORT_CHOICES:
        diagnostics.append(
            Diagnostic(
                level="error",
                message=(
                    f"'config.models.effort' must be one of: "
                    f"{', '.join(EFFORT_CHOICES)}."
                ),
            )
        )
        models["effort"] = None

    catalog = config.get("catalog") or {}
    source = catalog.get("source")
    if source not in CATALOG_SOURCES:
        diagnostics.append(
            Diagnostic(
                level="error",
                message=(
                    f"'config.catalog.source' must be one of: "
                    f"{', '.join(CATALOG_SOURCES)}."
                ),
            )
        )
        catalog["source"] = "static"


def _validate_section(
    target: Dict[str, Any],
    schema: SchemaSpec,
    path: str,
    diagnostics: List[Diagnostic],
) -> None:
    """Validate ``target`` in place: warn on unknown keys, fill defaults, reset bad values."""

    def _error(message: str) -> None:
        diagnostics.append(Diagnostic(level="error", message=message))

    for key in target:
        if key not in schema:
            diagnostics.append(
                Diagnostic(level="warning", message=f"Unknown configuration key '{path}.{key}'.")
            )

    for key, spec in schema.items():
        child_path = f"{path}.{key}"
        expected = spec.get("type")

        if key not in target:
            if not _has_default(spec):
                continue
            target[key] = _default_from_spec(spec)
            # Missing sections still get their nested defaults.
            if expected is not dict:
                continue

        value = target[key]
        if expected is dict:
            if isinstance(value, dict):
                _validate_section(value, spec.get("schema", {}), child_path, diagnostics)
            else:
                _error(f"'{child_path}' must be a mapping.")
                target[key] = _default_from_spec(spec) or {}
        elif expected is list:
            if not isinstance(value, list):
                _error(f"'{child_path}' must be a list.")
                target[key] = _default_from_spec(spec) or []
                continue
            item_type = spec.get("item_type")
            if item_type is None:
                continue
            kept: List[Any] = []
            for idx, item in enumerate(value):
                if isinstance(item, item_type):
                    kept.append(item)
                else:
                    _error(f"'{child_path}[{idx}]' must be of type {_type_name(item_type)}.")
            target[key] = kept
        elif expected is not None and not isinstance(value, expected):
            _error(f"'{child_path}' must be of type {_type_name(expected)}.")
            target[key] = _default_from_spec(spec)


__all__ = [
    "ConfigurationBundle",
    "ConfigurationStatus",
    "DEFAULT_CONFIG_DIR",
    "Diagnostic",
    "HOME_ENV",
    "load_runtime_configuration",
    "resolve_home_dir",
]
