"""Rule engine orchestration tests."""

from __future__ import annotations

from al_review.engine import count_by_severity, evaluate, filter_findings, gate_failed
from al_review.rules.base import Finding
from tests.helpers_al import FULL_RULES, worker_codeunit


def test_clean_content_yields_no_findings() -> None:
    text = "\n".join(
        [
            'codeunit 50100 "TES Clean"',
            "{",
            "    /// <summary>",
            "    /// Runs.",
            "    /// </summary>",
            "    trigger OnRun()",
            "    var",
            "        Ctr: Integer;",
            "    begin",
            "        Ctr := 1;",
            "    end;",
            "}",
        ]
    )
    assert evaluate("src/Clean.al", text, FULL_RULES) == []


def test_customer_buffer_scenario_reports_object_prefix() -> None:
    config = {"objectPrefix": {"requiredPrefix": "TES", "applyTo": ["table"]}}
    findings = evaluate("Buffer.Table.al", 'table 50100 "Customer Buffer"\n{\n}\n', config)
    assert len(findings) == 1
    assert findings[0].severity == "major"
    assert findings[0].rule == "objectPrefix"
    assert "Customer Buffer" in findings[0].message
    assert "TES" in findings[0].message


def test_unused_counter_scenario() -> None:
    findings = evaluate("Counter.al", "var\n  Ctr: Integer;\nbegin\nend;", {})
    assert [(finding.rule, finding.subject) for finding in findings] == [("unusedVariable", "Ctr")]


def test_findings_follow_rule_evaluation_order() -> None:
    config = dict(FULL_RULES)
    config["objectPrefix"] = {"requiredPrefix": "ABC", "applyTo": ["codeunit"]}
    findings = evaluate("src/Worker.al", worker_codeunit(), config)
    assert [finding.rule for finding in findings] == [
        "objectPrefix",
        "xmlDoc",
        "braceOnNewLine",
        "unusedVariable",
    ]
    assert all(finding.file == "src/Worker.al" for finding in findings)


def test_malformed_configuration_does_not_raise() -> None:
    config = {
        "objectPrefix": {"requiredPrefix": ["TES"], "applyTo": "table"},
        "documentation": None,
        "formatting": "yes",
    }
    findings = evaluate("src/Worker.al", worker_codeunit(), config)
    assert [finding.rule for finding in findings] == ["unusedVariable"]


def test_filter_findings_by_focus() -> None:
    findings = [_finding("xmlDoc", "major"), _finding("unusedVariable", "minor")]
    assert filter_findings(findings, ["unusedVariable"]) == [findings[1]]
    assert filter_findings(findings, ["noSuchRule"]) == []
    assert filter_findings(findings, None) == findings


def test_gate_failed_uses_severity_order() -> None:
    findings = [_finding("unusedVariable", "minor")]
    assert gate_failed(findings, "minor")
    assert gate_failed(findings, "info")
    assert not gate_failed(findings, "major")
    assert not gate_failed(findings, None)
    assert not gate_failed([], "info")


def test_count_by_severity_lists_every_severity() -> None:
    counts = count_by_severity([_finding("xmlDoc", "major"), _finding("xmlDoc", "major")])
    assert counts == {"blocker": 0, "major": 2, "minor": 0, "info": 0}


def _finding(rule: str, severity: str) -> Finding:
    return Finding(severity=severity, rule=rule, file="a.al", message="m")  # type: ignore[arg-type]
