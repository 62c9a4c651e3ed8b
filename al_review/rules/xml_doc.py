"""Documentation-comment coverage rule for triggers and procedures."""

from __future__ import annotations

from typing import Any

from al_review.rules.base import (
    Finding,
    Severity,
    SourceFile,
    is_enabled_flag,
    resolve_severity,
    setting_table,
)
from al_review.source import extract_declarations, has_doc_comment_above
from al_review.textlines import split_lines

CONFIG_KEY = "documentation"


class XmlDocRule:
    """Flags triggers and procedures without a preceding /// block."""

    rule_id = "xmlDoc"

    def __init__(self, severity: Severity = "major") -> None:
        self.severity = severity

    @classmethod
    def from_config(cls, rule_config: Any) -> XmlDocRule | None:
        settings = setting_table(rule_config, CONFIG_KEY)
        if settings is None or not is_enabled_flag(settings, "requireXmlDoc"):
            return None
        severity = resolve_severity(settings.get("severity"), "major", CONFIG_KEY)
        if severity is None:
            return None
        return cls(severity)

    def evaluate(self, source: SourceFile) -> list[Finding]:
        contents = [line.content for line in split_lines(source.text)]
        declarations = extract_declarations(source.text)
        # Triggers are reported before procedures, each group in source order.
        ordered = [item for item in declarations if item.kind == "trigger"]
        ordered += [item for item in declarations if item.kind == "procedure"]

        findings: list[Finding] = []
        for declaration in ordered:
            if has_doc_comment_above(contents, declaration.line):
                continue
            findings.append(
                Finding(
                    severity=self.severity,
                    rule=self.rule_id,
                    file=source.path,
                    message=f"Missing XML doc for {declaration.kind} {declaration.name}.",
                    subject=declaration.name,
                    line=declaration.line,
                )
            )
        return findings
