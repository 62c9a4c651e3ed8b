"""Same-line opening brace formatting rule."""

from __future__ import annotations

import re
from typing import Any

from al_review.rules.base import (
    Finding,
    Severity,
    SourceFile,
    is_enabled_flag,
    resolve_severity,
    setting_table,
)
from al_review.textlines import split_lines

CONFIG_KEY = "formatting"
SAME_LINE_BRACE_RE = re.compile(r"\)[ \t]*\{")


class BraceOnNewLineRule:
    """Flags a file once when any ``) {`` sits on a single line."""

    rule_id = "braceOnNewLine"

    def __init__(self, severity: Severity = "minor") -> None:
        self.severity = severity

    @classmethod
    def from_config(cls, rule_config: Any) -> BraceOnNewLineRule | None:
        settings = setting_table(rule_config, CONFIG_KEY)
        if settings is None or not is_enabled_flag(settings, "braceOnNewLine"):
            return None
        severity = resolve_severity(settings.get("severity"), "minor", CONFIG_KEY)
        if severity is None:
            return None
        return cls(severity)

    def evaluate(self, source: SourceFile) -> list[Finding]:
        for index, line in enumerate(split_lines(source.text)):
            if SAME_LINE_BRACE_RE.search(line.content):
                return [
                    Finding(
                        severity=self.severity,
                        rule=self.rule_id,
                        file=source.path,
                        message="Curly brace should be on a new line.",
                        line=index,
                    )
                ]
        return []
