"""CLI entrypoint for al-review."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from al_review import __version__
from al_review.applier import apply_edits
from al_review.config import (
    AppConfig,
    default_config_template,
    default_standards_template,
    load_app_config,
)
from al_review.edits import FileProposal, NotConfirmed
from al_review.engine import filter_findings, gate_failed
from al_review.output import (
    render_apply_json,
    render_findings_json,
    render_human,
    render_proposal_json,
)
from al_review.payload import PayloadError, load_proposal_payload
from al_review.proposer import propose_fixes
from al_review.rules import build_rules, list_rule_info
from al_review.rules.base import SEVERITIES, Finding
from al_review.scanner import ScanError, scan_repository

app = typer.Typer(
    name="al-review",
    no_args_is_help=True,
    help="Review AL source files against coding standards and propose fixes.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log progress to stderr.")
    ] = False,
) -> None:
    """Root command callback."""
    _ = version
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("lint")
def lint_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    focus: Annotated[list[str] | None, typer.Option(help="Only report this rule id.")] = None,
    fail_on: Annotated[
        str | None, typer.Option(help="Exit nonzero if a finding is at or above this severity.")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    standards: Annotated[
        Path | None,
        typer.Option("--standards", help="Path to standards JSON file."),
    ] = None,
) -> None:
    """Lint AL files and report findings."""
    app_config = _load_config_or_raise(repo, config_file, standards)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    threshold = (fail_on or app_config.fail_on or "").lower() or None
    if threshold is not None and threshold not in SEVERITIES:
        choices = ", ".join(SEVERITIES)
        raise typer.BadParameter(f"fail-on must be one of: {choices}", param_hint="--fail-on")

    findings = filter_findings(_scan_or_exit(repo, app_config), focus)

    if output_format == "json":
        typer.echo(render_findings_json(findings, root=str(repo)))
    else:
        typer.echo(render_human(findings, focus=focus))

    if gate_failed(findings, threshold):
        raise typer.Exit(code=1)


@app.command("propose")
def propose_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    file: Annotated[
        str | None, typer.Option("--file", help="Only propose edits for this relative path.")
    ] = None,
    focus: Annotated[list[str] | None, typer.Option(help="Only fix this rule id.")] = None,
    out: Annotated[Path | None, typer.Option(help="Write proposal JSON to this path.")] = None,
    findings_file: Annotated[
        Path | None,
        typer.Option("--findings", help="Use a saved lint JSON report instead of scanning."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    standards: Annotated[
        Path | None,
        typer.Option("--standards", help="Path to standards JSON file."),
    ] = None,
) -> None:
    """Propose position-addressed edits for fixable findings."""
    if findings_file is not None:
        findings = filter_findings(_load_findings_or_raise(findings_file), focus)
    else:
        app_config = _load_config_or_raise(repo, config_file, standards)
        findings = filter_findings(_scan_or_exit(repo, app_config), focus)
    if file is not None:
        wanted = file.replace("\\", "/")
        findings = [finding for finding in findings if finding.file == wanted]

    try:
        proposal = propose_fixes(repo, findings)
    except (OSError, UnicodeDecodeError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    rendered = render_proposal_json(proposal)
    if out is None:
        typer.echo(rendered)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(rendered + "\n", encoding="utf-8")
    typer.echo(f"Proposal written to: {out}")


@app.command("apply")
def apply_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    proposal: Annotated[
        Path | None, typer.Option("--proposal", help="Path to proposal JSON file.")
    ] = None,
    stdin: Annotated[bool, typer.Option(help="Read proposal JSON from stdin.")] = False,
    file: Annotated[
        str | None, typer.Option("--file", help="Only apply edits for this relative path.")
    ] = None,
    yes: Annotated[bool, typer.Option("--yes", help="Confirm writing edits to disk.")] = False,
) -> None:
    """Apply a proposal to files on disk."""
    if proposal and stdin:
        raise typer.BadParameter("Use either --proposal or --stdin, not both.")
    if proposal is None and not stdin:
        raise typer.BadParameter("Provide --proposal or --stdin.")

    try:
        if proposal is not None:
            data = proposal.read_bytes()
        else:
            data = typer.get_binary_stream("stdin").read()
        parsed = load_proposal_payload(data)
    except (OSError, PayloadError) as exc:
        raise typer.BadParameter(str(exc), param_hint="proposal") from exc

    file_proposals: list[FileProposal] = list(parsed.files)
    if file is not None:
        wanted = file.replace("\\", "/")
        file_proposals = [item for item in file_proposals if item.file == wanted]

    result = apply_edits(repo, file_proposals, confirmed=yes)
    typer.echo(render_apply_json(result))
    if not isinstance(result, NotConfirmed) and not result.ok:
        raise typer.Exit(code=1)


@app.command("rules")
def rules_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    standards: Annotated[
        Path | None,
        typer.Option("--standards", help="Path to standards JSON file."),
    ] = None,
) -> None:
    """List available rules and whether the configuration enables them."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file, standards)
    active_ids = {
        rule.rule_id for rule in build_rules(app_config.rules, disabled_rule_ids=app_config.disable)
    }
    rule_info = list_rule_info()

    if output_format == "json":
        payload = {
            "rules": [
                {
                    "rule_id": item.rule_id,
                    "name": item.name,
                    "description": item.description,
                    "config_key": item.config_key,
                    "default_severity": item.default_severity,
                    "enabled": item.rule_id in active_ids,
                }
                for item in rule_info
            ],
            "meta": {"config_source": app_config.source, "standards": app_config.standards},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available rules:"]
    for item in rule_info:
        status = "enabled" if item.rule_id in active_ids else "disabled"
        lines.append(f"- {item.rule_id} [{status}] - {item.description}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    standards: Annotated[
        Path | None,
        typer.Option("--standards", help="Path to standards JSON file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file, standards)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = [
        rule.rule_id for rule in build_rules(app_config.rules, disabled_rule_ids=app_config.disable)
    ]

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- standards: {payload['standards'] or 'none'}",
        f"- format: {payload['format']}",
        f"- include: {payload['include']}",
        f"- exclude: {payload['exclude']}",
        f"- fail_on: {payload['fail_on']}",
        f"- disable: {payload['disable']}",
        f"- active_rule_ids: {payload['active_rule_ids']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if files already exist."),
    ] = False,
) -> None:
    """Create a starter config TOML and standards JSON."""
    targets = {
        repo.resolve() / ".al-review.toml": default_config_template(),
        repo.resolve() / "standards.json": default_standards_template(),
    }
    for path in targets:
        if path.exists() and not force:
            raise typer.BadParameter(
                f"Refusing to overwrite existing file: {path}. Use --force to overwrite."
            )
    for path, content in targets.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        typer.echo(f"Wrote starter file: {path}")


def main() -> None:
    """Console script entrypoint."""
    app()


def _load_config_or_raise(
    repo: Path, config_file: Path | None = None, standards: Path | None = None
) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file, standards_path=standards)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _scan_or_exit(repo: Path, app_config: AppConfig) -> list[Finding]:
    try:
        return scan_repository(
            repo,
            app_config.include,
            app_config.rules,
            exclude_globs=app_config.exclude,
            disabled_rule_ids=app_config.disable,
        )
    except ScanError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _load_findings_or_raise(path: Path) -> list[Finding]:
    """Read findings from a JSON report or a bare list of findings."""
    try:
        loaded = json.loads(path.read_text(encoding="utf-8-sig"))
        items = loaded.get("findings") if isinstance(loaded, dict) else loaded
        if not isinstance(items, list):
            raise ValueError("expected a findings list")
        return [Finding.from_dict(item) for item in items]
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(f"{path}: {exc}", param_hint="--findings") from exc
