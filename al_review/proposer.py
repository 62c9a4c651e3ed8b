"""Turn findings into concrete, position-addressed text edits."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from al_review.edits import Edit, FileProposal, Position, Proposal, Range
from al_review.rules.base import Finding
from al_review.rules.brace_on_new_line import SAME_LINE_BRACE_RE
from al_review.source import extract_declarations, find_var_section
from al_review.textlines import TextLine, read_source, split_lines

logger = logging.getLogger(__name__)

_INDENT_RE = re.compile(r"^[ \t]*")


def propose_fixes(root: Path, findings: list[Finding]) -> Proposal:
    """Compute edits for the given findings, grouped per file.

    Each file is re-read from disk so positions match its current text.
    Findings with no automatic fix contribute nothing; files without any
    edit are left out. Overlapping edits are not merged here.
    """
    root_path = Path(root)
    grouped: dict[str, list[Finding]] = {}
    for finding in findings:
        grouped.setdefault(finding.file, []).append(finding)

    files: list[FileProposal] = []
    for relative, file_findings in grouped.items():
        text = read_source(root_path / relative).text
        edits = propose_file_edits(text, file_findings)
        if edits:
            files.append(FileProposal(file=relative, edits=tuple(edits)))
        else:
            logger.debug("No edits proposed for %s", relative)
    return Proposal(files=tuple(files))


def propose_file_edits(text: str, findings: list[Finding]) -> list[Edit]:
    """Compute edits for one file's findings against its current text."""
    lines = split_lines(text)
    edits: list[Edit] = []
    for finding in findings:
        if finding.rule == "unusedVariable":
            edit = _remove_variable(text, lines, finding)
            if edit is not None:
                edits.append(edit)
        elif finding.rule == "xmlDoc":
            edit = _insert_doc_stub(text, lines, finding)
            if edit is not None:
                edits.append(edit)
        elif finding.rule == "braceOnNewLine":
            edits.extend(_move_braces(lines))
    return edits


def _remove_variable(text: str, lines: list[TextLine], finding: Finding) -> Edit | None:
    name = finding.subject
    if not name:
        return None
    # Only a line holding this declaration alone is deleted; shared lines such
    # as `var Ctr: Integer;` or `A: Integer; B: Integer;` are left untouched.
    declaration_re = re.compile(rf"^\s*{re.escape(name)}\s*:\s*[^;:]+;\s*(?://.*)?$")
    section = find_var_section(text)
    if section is not None:
        candidates = range(section.first_line, section.last_line + 1)
    else:
        candidates = range(len(lines))

    target = _hinted_line(finding, lines, declaration_re)
    if target is None:
        target = next(
            (index for index in candidates if declaration_re.search(lines[index].content)),
            None,
        )
    if target is None:
        logger.debug("Declaration of %s not found", name)
        return None
    return _delete_line(lines, target)


def _delete_line(lines: list[TextLine], index: int) -> Edit:
    line = lines[index]
    if line.eol:
        span = Range(Position(index, 0), Position(index + 1, 0))
    elif index > 0:
        # Last line has no terminator: take the preceding one instead.
        previous = lines[index - 1]
        span = Range(
            Position(index - 1, len(previous.content)),
            Position(index, len(line.content)),
        )
    else:
        span = Range(Position(index, 0), Position(index, len(line.content)))
    return Edit(range=span, new_text="")


def _insert_doc_stub(text: str, lines: list[TextLine], finding: Finding) -> Edit | None:
    name = finding.subject
    if not name:
        return None
    declaration_re = re.compile(rf"\b(?:trigger|procedure)\s+{re.escape(name)}\b")
    target = _hinted_line(finding, lines, declaration_re)
    if target is None:
        target = next(
            (item.line for item in extract_declarations(text) if item.name == name),
            None,
        )
    if target is None:
        logger.debug("Declaration of %s not found", name)
        return None

    line = lines[target]
    indent = _INDENT_RE.match(line.content).group()
    eol = _eol_for(lines, target)
    stub = [
        f"{indent}/// <summary>",
        f"{indent}/// {name}.",
        f"{indent}/// </summary>",
    ]
    position = Position(target, 0)
    return Edit(range=Range(position, position), new_text=eol.join(stub) + eol)


def _move_braces(lines: list[TextLine]) -> list[Edit]:
    edits: list[Edit] = []
    for index, line in enumerate(lines):
        if not SAME_LINE_BRACE_RE.search(line.content):
            continue
        indent = _INDENT_RE.match(line.content).group()
        eol = _eol_for(lines, index)
        replacement = _split_braces(line.content, indent, eol)
        edits.append(
            Edit(
                range=Range(Position(index, 0), Position(index, len(line.content))),
                new_text=replacement,
            )
        )
    return edits


def _split_braces(content: str, indent: str, eol: str) -> str:
    parts: list[str] = []
    remaining = content
    match = SAME_LINE_BRACE_RE.search(remaining)
    while match is not None:
        parts.append(remaining[: match.start() + 1])
        remaining = indent + remaining[match.end() - 1 :]
        match = SAME_LINE_BRACE_RE.search(remaining)
    parts.append(remaining)
    return eol.join(parts)


def _hinted_line(finding: Finding, lines: list[TextLine], pattern: re.Pattern[str]) -> int | None:
    """Use the finding's recorded line when it still holds the declaration."""
    if finding.line is None or not 0 <= finding.line < len(lines):
        return None
    if pattern.search(lines[finding.line].content):
        return finding.line
    return None


def _eol_for(lines: list[TextLine], index: int) -> str:
    if lines[index].eol:
        return lines[index].eol
    for line in lines:
        if line.eol:
            return line.eol
    return "\n"
