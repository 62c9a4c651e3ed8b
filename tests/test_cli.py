"""CLI tests."""

from __future__ import annotations

import codecs
import json
from pathlib import Path

from typer.testing import CliRunner

from al_review.cli import app
from tests.helpers_al import FULL_RULES, read_file, worker_codeunit, write_file

runner = CliRunner()


def _repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    write_file(repo, "src/Worker.Codeunit.al", worker_codeunit())
    write_file(repo, "src/Buffer.Table.al", 'table 50100 "Customer Buffer"\n{\n}\n')
    write_file(repo, "standards.json", json.dumps({"rules": FULL_RULES}))
    return repo


def test_root_help_works() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "lint" in result.stdout
    assert "propose" in result.stdout
    assert "apply" in result.stdout


def test_lint_json_lists_findings(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    result = runner.invoke(app, ["lint", "--repo", str(repo), "--format", "json"])
    assert result.exit_code == 0

    payload = json.loads(result.stdout)
    assert [(item["file"], item["rule"]) for item in payload["findings"]] == [
        ("src/Buffer.Table.al", "objectPrefix"),
        ("src/Worker.Codeunit.al", "xmlDoc"),
        ("src/Worker.Codeunit.al", "braceOnNewLine"),
        ("src/Worker.Codeunit.al", "unusedVariable"),
    ]
    assert payload["summary"] == {"blocker": 0, "major": 2, "minor": 2, "info": 0}


def test_lint_focus_and_fail_on(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    result = runner.invoke(
        app,
        ["lint", "--repo", str(repo), "--focus", "unusedVariable", "--fail-on", "major"],
    )
    assert result.exit_code == 0
    assert "Variable 'Ctr' appears unused." in result.stdout
    assert "objectPrefix" not in result.stdout.split("Findings", 1)[-1]

    failing = runner.invoke(app, ["lint", "--repo", str(repo), "--fail-on", "major"])
    assert failing.exit_code == 1

    unknown = runner.invoke(
        app, ["lint", "--repo", str(repo), "--focus", "noSuchRule", "--format", "json"]
    )
    assert unknown.exit_code == 0
    assert json.loads(unknown.stdout)["findings"] == []


def test_lint_missing_root_fails(tmp_path: Path) -> None:
    result = runner.invoke(app, ["lint", "--repo", str(tmp_path / "missing")])
    assert result.exit_code == 1


def test_propose_then_apply_round_trip(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    proposal_path = tmp_path / "proposal.json"

    proposed = runner.invoke(app, ["propose", "--repo", str(repo), "--out", str(proposal_path)])
    assert proposed.exit_code == 0
    proposal = json.loads(proposal_path.read_text(encoding="utf-8"))
    assert [item["file"] for item in proposal["files"]] == ["src/Worker.Codeunit.al"]

    unconfirmed = runner.invoke(
        app, ["apply", "--repo", str(repo), "--proposal", str(proposal_path)]
    )
    assert unconfirmed.exit_code == 0
    assert json.loads(unconfirmed.stdout) == {"applied": False, "reason": "not confirmed"}
    assert read_file(repo, "src/Worker.Codeunit.al") == worker_codeunit()

    applied = runner.invoke(
        app, ["apply", "--repo", str(repo), "--proposal", str(proposal_path), "--yes"]
    )
    assert applied.exit_code == 0
    assert json.loads(applied.stdout) == {
        "applied": [{"file": "src/Worker.Codeunit.al", "applied": 3}]
    }

    rescanned = runner.invoke(app, ["lint", "--repo", str(repo), "--format", "json"])
    assert [item["rule"] for item in json.loads(rescanned.stdout)["findings"]] == ["objectPrefix"]


def test_apply_reads_utf16_payload_from_stdin(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    write_file(repo, "v.al", "var\n  Ctr: Integer;\nbegin\nend;")
    proposal = {
        "files": [
            {
                "file": "v.al",
                "edits": [
                    {
                        "range": {
                            "start": {"line": 1, "column": 0},
                            "end": {"line": 2, "column": 0},
                        },
                        "newText": "",
                    }
                ],
            }
        ]
    }
    data = codecs.BOM_UTF16_LE + json.dumps(proposal).encode("utf-16-le")

    result = runner.invoke(app, ["apply", "--repo", str(repo), "--stdin", "--yes"], input=data)
    assert result.exit_code == 0
    assert read_file(repo, "v.al") == "var\nbegin\nend;"


def test_apply_rejects_malformed_payload(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["apply", "--repo", str(tmp_path), "--stdin", "--yes"], input=b'{"files": [}'
    )
    assert result.exit_code != 0


def test_rules_command_json_reports_enabled_state(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    standards = {"rules": {"formatting": {"braceOnNewLine": True}}}
    write_file(repo, "standards.json", json.dumps(standards))
    result = runner.invoke(app, ["rules", "--repo", str(repo), "--format", "json"])
    assert result.exit_code == 0
    enabled = {item["rule_id"]: item["enabled"] for item in json.loads(result.stdout)["rules"]}
    assert enabled == {
        "objectPrefix": False,
        "xmlDoc": False,
        "braceOnNewLine": True,
        "unusedVariable": True,
    }


def test_config_command_reports_active_rules(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    result = runner.invoke(app, ["config", "--repo", str(repo), "--format", "json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["active_rule_ids"] == [
        "objectPrefix",
        "xmlDoc",
        "braceOnNewLine",
        "unusedVariable",
    ]


def test_config_init_refuses_to_overwrite(tmp_path: Path) -> None:
    first = runner.invoke(app, ["config-init", "--repo", str(tmp_path)])
    assert first.exit_code == 0
    assert (tmp_path / ".al-review.toml").exists()
    assert (tmp_path / "standards.json").exists()

    second = runner.invoke(app, ["config-init", "--repo", str(tmp_path)])
    assert second.exit_code != 0


def test_propose_from_saved_lint_report(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    report = tmp_path / "report.json"
    linted = runner.invoke(app, ["lint", "--repo", str(repo), "--format", "json"])
    report.write_text(linted.stdout, encoding="utf-8")

    result = runner.invoke(
        app,
        ["propose", "--repo", str(repo), "--findings", str(report), "--focus", "unusedVariable"],
    )
    assert result.exit_code == 0
    proposal = json.loads(result.stdout)
    assert proposal == {
        "files": [
            {
                "file": "src/Worker.Codeunit.al",
                "edits": [
                    {
                        "range": {
                            "start": {"line": 4, "column": 0},
                            "end": {"line": 5, "column": 0},
                        },
                        "newText": "",
                    }
                ],
            }
        ]
    }


def test_propose_rejects_malformed_findings_file(tmp_path: Path) -> None:
    report = tmp_path / "report.json"
    report.write_text('{"findings": [{"severity": "urgent"}]}', encoding="utf-8")
    result = runner.invoke(app, ["propose", "--repo", str(tmp_path), "--findings", str(report)])
    assert result.exit_code != 0
