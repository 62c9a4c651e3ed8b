"""Object naming prefix rule."""

from __future__ import annotations

from typing import Any

from al_review.rules.base import (
    Finding,
    Severity,
    SourceFile,
    resolve_severity,
    setting_table,
)
from al_review.source import parse_object_header

CONFIG_KEY = "objectPrefix"


class ObjectPrefixRule:
    """Requires object names to start with the configured prefix."""

    rule_id = "objectPrefix"

    def __init__(
        self,
        required_prefix: str,
        apply_to: list[str],
        severity: Severity = "major",
    ) -> None:
        self.required_prefix = required_prefix
        self.apply_to = {item.lower() for item in apply_to}
        self.severity = severity

    @classmethod
    def from_config(cls, rule_config: Any) -> ObjectPrefixRule | None:
        settings = setting_table(rule_config, CONFIG_KEY)
        if settings is None:
            return None
        prefix = settings.get("requiredPrefix")
        apply_to = settings.get("applyTo")
        if not isinstance(prefix, str) or not prefix:
            return None
        if not isinstance(apply_to, list) or not all(isinstance(item, str) for item in apply_to):
            return None
        severity = resolve_severity(settings.get("severity"), "major", CONFIG_KEY)
        if severity is None:
            return None
        return cls(prefix, apply_to, severity)

    def evaluate(self, source: SourceFile) -> list[Finding]:
        header = parse_object_header(source.text)
        if header is None or header.type not in self.apply_to:
            return []
        if header.name.startswith(self.required_prefix):
            return []
        return [
            Finding(
                severity=self.severity,
                rule=self.rule_id,
                file=source.path,
                message=(
                    f"Object name '{header.name}' should start with '{self.required_prefix}'."
                ),
                subject=header.name,
                line=header.line,
            )
        ]
