"""Base rule protocol, finding model and lenient setting helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Protocol

logger = logging.getLogger(__name__)

Severity = Literal["blocker", "major", "minor", "info"]
SEVERITIES: tuple[Severity, ...] = ("blocker", "major", "minor", "info")
SEVERITY_RANK: dict[str, int] = {"blocker": 3, "major": 2, "minor": 1, "info": 0}


@dataclass(frozen=True, slots=True)
class Finding:
    """A single rule violation found in one file.

    ``subject`` and ``line`` carry the flagged identifier and its 0-based
    line so fixers never have to re-read them out of ``message``.
    """

    severity: Severity
    rule: str
    file: str
    message: str
    subject: str | None = None
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "severity": self.severity,
            "rule": self.rule,
            "file": self.file,
            "message": self.message,
        }
        if self.subject is not None:
            payload["subject"] = self.subject
        if self.line is not None:
            payload["line"] = self.line
        return payload

    @classmethod
    def from_dict(cls, value: Any) -> Finding:
        if not isinstance(value, dict):
            raise ValueError("finding must be an object")
        severity = value.get("severity")
        if severity not in SEVERITIES:
            choices = ", ".join(SEVERITIES)
            raise ValueError(f"finding.severity must be one of: {choices}")
        for key in ("rule", "file", "message"):
            if not isinstance(value.get(key), str):
                raise ValueError(f"finding.{key} must be a string")
        subject = value.get("subject")
        line = value.get("line")
        return cls(
            severity=severity,
            rule=value["rule"],
            file=value["file"],
            message=value["message"],
            subject=subject if isinstance(subject, str) else None,
            line=line if isinstance(line, int) and not isinstance(line, bool) else None,
        )


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One file handed to the rules: root-relative path plus decoded text."""

    path: str
    text: str


class Rule(Protocol):
    """Protocol for source rules."""

    rule_id: str

    def evaluate(self, source: SourceFile) -> list[Finding]:
        """Evaluate a source file and return findings."""


def setting_table(rule_config: Any, key: str) -> dict[str, Any] | None:
    """Return the settings table for ``key``, or None when absent or malformed."""
    if not isinstance(rule_config, dict):
        return None
    value = rule_config.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        logger.warning("Rule settings for %r are not an object; rule disabled", key)
        return None
    return value


def resolve_severity(raw: Any, default: Severity, key: str) -> Severity | None:
    """Return the configured severity override, the default, or None if malformed."""
    if raw is None:
        return default
    if isinstance(raw, str) and raw.lower() in SEVERITIES:
        return raw.lower()  # type: ignore[return-value]
    logger.warning("Invalid severity %r for %r; rule disabled", raw, key)
    return None


def is_enabled_flag(settings: dict[str, Any], flag: str) -> bool:
    """True only for a literal boolean ``true``; anything else is off."""
    return settings.get(flag) is True
