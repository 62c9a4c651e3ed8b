"""Unused variable heuristic."""

from __future__ import annotations

from al_review.rules.base import Finding, SourceFile
from al_review.source import count_word, extract_variables


class UnusedVariableRule:
    """Flags first-var-section variables whose name occurs only once in the file.

    Occurrences inside comments and string literals count as uses.
    """

    rule_id = "unusedVariable"

    def evaluate(self, source: SourceFile) -> list[Finding]:
        findings: list[Finding] = []
        for variable in extract_variables(source.text):
            if count_word(source.text, variable.name) > 1:
                continue
            findings.append(
                Finding(
                    severity="minor",
                    rule=self.rule_id,
                    file=source.path,
                    message=f"Variable '{variable.name}' appears unused.",
                    subject=variable.name,
                    line=variable.line,
                )
            )
        return findings
