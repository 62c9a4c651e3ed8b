"""Configuration loading for al-review."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from al_review.rules.base import SEVERITIES

CONFIG_FILENAMES = (".al-review.toml", "al-review.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("al_review", "al-review")
DEFAULT_STANDARDS_FILENAME = "standards.json"
DEFAULT_INCLUDE = ["**/*.al"]


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: list[str] = field(default_factory=list)
    fail_on: str | None = None
    standards: str | None = None
    disable: list[str] = field(default_factory=list)
    rules: dict[str, Any] = field(default_factory=dict)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "include": list(self.include),
            "exclude": list(self.exclude),
            "fail_on": self.fail_on,
            "standards": self.standards,
            "disable": list(self.disable),
            "rules": dict(self.rules),
            "source": self.source,
        }


def load_app_config(
    repo: Path,
    config_path: Path | None = None,
    standards_path: Path | None = None,
) -> AppConfig:
    """Load config from an explicit path or repository-local files.

    The rule configuration comes from the standards JSON file: ``--standards``
    first, then the ``standards`` key, then ``standards.json`` in the repo.
    """
    repo = repo.resolve()
    config = _load_toml_config(repo, config_path)

    resolved_standards = _resolve_standards_path(repo, standards_path, config.standards)
    if resolved_standards is not None:
        config.standards = str(resolved_standards)
        config.rules = load_standards(resolved_standards)
    return config


def load_standards(path: Path) -> dict[str, Any]:
    """Return the ``rules`` table of a standards JSON file, or {} when missing."""
    try:
        loaded = json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    except OSError as exc:
        raise ValueError(f"Unable to read {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    rules = loaded.get("rules")
    return rules if isinstance(rules, dict) else {}


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            'include = ["**/*.al"]',
            'exclude = [".alpackages/**"]',
            'fail_on = "major"',
            'standards = "standards.json"',
            "# disable = [\"unusedVariable\"]",
            "",
        ]
    )


def default_standards_template() -> str:
    """Return a starter standards JSON document."""
    payload = {
        "rules": {
            "objectPrefix": {
                "requiredPrefix": "TES",
                "applyTo": ["table", "tableextension", "page", "pageextension", "codeunit"],
                "severity": "major",
            },
            "documentation": {"requireXmlDoc": True, "severity": "major"},
            "formatting": {"braceOnNewLine": True, "severity": "minor"},
        }
    }
    return json.dumps(payload, indent=2) + "\n"


def _load_toml_config(repo: Path, config_path: Path | None) -> AppConfig:
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def _resolve_standards_path(
    repo: Path, explicit: Path | None, configured: str | None
) -> Path | None:
    if explicit is not None:
        resolved = explicit if explicit.is_absolute() else (repo / explicit)
        if not resolved.exists():
            raise ValueError(f"Standards file does not exist: {resolved}")
        return resolved
    if configured is not None:
        resolved = Path(configured)
        resolved = resolved if resolved.is_absolute() else (repo / resolved)
        if not resolved.exists():
            raise ValueError(f"Standards file does not exist: {resolved}")
        return resolved
    default = repo / DEFAULT_STANDARDS_FILENAME
    return default if default.exists() else None


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    raw_format = mapping.get("format", "human")
    format_value = str(raw_format).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    raw_fail_on = mapping.get("fail_on")
    fail_on = None if raw_fail_on is None else _as_choice(raw_fail_on, set(SEVERITIES), "fail_on")

    raw_standards = mapping.get("standards")
    standards = None if raw_standards is None else _as_str(raw_standards, "standards")

    return AppConfig(
        format=format_value,
        include=_as_str_list(mapping.get("include"), "include") or list(DEFAULT_INCLUDE),
        exclude=_as_str_list(mapping.get("exclude"), "exclude"),
        fail_on=fail_on,
        standards=standards,
        disable=_as_str_list(mapping.get("disable"), "disable"),
        source=source,
    )


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return list(value)


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value
