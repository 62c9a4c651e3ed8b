"""Scan, propose, apply and re-scan against real files."""

from __future__ import annotations

from pathlib import Path

import pytest

from al_review.applier import apply_edits
from al_review.edits import ApplyResult
from al_review.proposer import propose_fixes
from al_review.scanner import scan_repository
from tests.helpers_al import FULL_RULES, read_file, worker_codeunit, write_file


@pytest.mark.parametrize("eol", ["\n", "\r\n"])
def test_fixes_clear_targeted_findings(tmp_path: Path, eol: str) -> None:
    write_file(tmp_path, "src/Worker.al", worker_codeunit(eol))
    before = scan_repository(tmp_path, ["**/*.al"], FULL_RULES)
    assert [finding.rule for finding in before] == ["xmlDoc", "braceOnNewLine", "unusedVariable"]

    proposal = propose_fixes(tmp_path, before)
    result = apply_edits(tmp_path, proposal.files, confirmed=True)
    assert isinstance(result, ApplyResult)
    assert result.ok

    assert scan_repository(tmp_path, ["**/*.al"], FULL_RULES) == []
    assert read_file(tmp_path, "src/Worker.al") == eol.join(
        [
            'codeunit 50100 "TES Worker"',
            "{",
            "    /// <summary>",
            "    /// Calculate.",
            "    /// </summary>",
            "    procedure Calculate()",
            "    var",
            "        Total: Decimal;",
            "    begin",
            "        Total := 1;",
            "        if (Total > 0)",
            "        {",
            "    end;",
            "}",
            "",
        ]
    )


def test_counter_scenario_removes_declaration(tmp_path: Path) -> None:
    write_file(tmp_path, "Counter.al", "var\n  Ctr: Integer;\nbegin\nend;")
    findings = scan_repository(tmp_path, None, {})
    assert [finding.subject for finding in findings] == ["Ctr"]

    apply_edits(tmp_path, propose_fixes(tmp_path, findings).files, confirmed=True)
    assert read_file(tmp_path, "Counter.al") == "var\nbegin\nend;"
    assert scan_repository(tmp_path, None, {}) == []


def test_mixed_line_endings_delete_the_right_lines(tmp_path: Path) -> None:
    write_file(tmp_path, "Mixed.al", "var\r\n  A: Integer;\n  B: Integer;\r\nbegin\r\nend;\n")
    findings = scan_repository(tmp_path, None, {})
    assert [finding.subject for finding in findings] == ["A", "B"]

    apply_edits(tmp_path, propose_fixes(tmp_path, findings).files, confirmed=True)
    assert read_file(tmp_path, "Mixed.al") == "var\r\nbegin\r\nend;\n"


def test_duplicate_procedures_are_each_documented(tmp_path: Path) -> None:
    text = "procedure Foo()\nbegin\nend;\n\nprocedure Foo()\nbegin\nend;\n"
    write_file(tmp_path, "Dup.al", text)
    config = {"documentation": {"requireXmlDoc": True}}
    findings = scan_repository(tmp_path, None, config)
    assert len(findings) == 2

    apply_edits(tmp_path, propose_fixes(tmp_path, findings).files, confirmed=True)
    assert scan_repository(tmp_path, None, config) == []
