"""Output rendering."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import click

from al_review import __version__
from al_review.edits import ApplyResult, NotConfirmed, Proposal
from al_review.engine import count_by_severity
from al_review.rules.base import Finding

SEVERITY_COLORS = {
    "blocker": "red",
    "major": "yellow",
    "minor": "cyan",
    "info": "white",
}


def render_human(findings: list[Finding], *, focus: list[str] | None = None) -> str:
    """Render a compact colorized findings summary."""
    counts = count_by_severity(findings)
    severity_summary = ", ".join(f"{name}:{count}" for name, count in counts.items())
    lines: list[str] = [
        click.style("Summary", bold=True),
        f"- Checked {len(findings)} findings. Severity: {severity_summary}",
    ]
    if focus:
        lines.append(f"- Focus: {', '.join(focus)}")

    if findings:
        lines.append(click.style("Findings", bold=True))
        for index, finding in enumerate(findings, start=1):
            label = click.style(f"[{finding.severity}]", fg=SEVERITY_COLORS[finding.severity])
            location = finding.file
            if finding.line is not None:
                location = f"{finding.file}:{finding.line + 1}"
            lines.append(f"{index}. {label} {finding.rule} - {finding.message} ({location})")
    return "\n".join(lines)


def build_findings_payload(findings: list[Finding], *, root: str) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    return {
        "findings": [finding.to_dict() for finding in findings],
        "summary": count_by_severity(findings),
        "meta": {
            "generated_at": datetime.now(tz=UTC)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
            "root": root,
            "version": __version__,
        },
    }


def render_findings_json(findings: list[Finding], *, root: str) -> str:
    return json.dumps(build_findings_payload(findings, root=root), sort_keys=True)


def render_proposal_json(proposal: Proposal) -> str:
    return json.dumps(proposal.to_dict(), sort_keys=True)


def render_apply_json(result: ApplyResult | NotConfirmed) -> str:
    return json.dumps(result.to_dict(), sort_keys=True)
