"""Rule evaluation orchestration for a single file."""

from __future__ import annotations

import logging
from typing import Any

from al_review.rules import build_rules
from al_review.rules.base import SEVERITY_RANK, Finding, Rule, SourceFile

logger = logging.getLogger(__name__)


def evaluate(
    file_path: str,
    content: str,
    rule_config: Any,
    *,
    rules: list[Rule] | None = None,
) -> list[Finding]:
    """Evaluate the configured rules against one file's text.

    Findings keep rule order: objectPrefix, xmlDoc, braceOnNewLine,
    unusedVariable. Pass prebuilt ``rules`` to skip re-reading the
    configuration for every file.
    """
    active = rules if rules is not None else build_rules(rule_config)
    source = SourceFile(path=file_path, text=content)
    findings: list[Finding] = []
    for rule in active:
        rule_findings = rule.evaluate(source)
        if rule_findings:
            logger.debug(
                "%s: %s produced %d finding(s)", file_path, rule.rule_id, len(rule_findings)
            )
        findings.extend(rule_findings)
    return findings


def filter_findings(findings: list[Finding], focus: list[str] | None) -> list[Finding]:
    """Keep findings whose rule is in ``focus``; unknown names match nothing."""
    if not focus:
        return list(findings)
    wanted = set(focus)
    return [finding for finding in findings if finding.rule in wanted]


def count_by_severity(findings: list[Finding]) -> dict[str, int]:
    counts = {severity: 0 for severity in SEVERITY_RANK}
    for finding in findings:
        counts[finding.severity] = counts.get(finding.severity, 0) + 1
    return counts


def gate_failed(findings: list[Finding], fail_on: str | None) -> bool:
    """Return True when any finding is at or above the ``fail_on`` severity."""
    if fail_on is None:
        return False
    threshold = SEVERITY_RANK[fail_on]
    return any(SEVERITY_RANK[finding.severity] >= threshold for finding in findings)
