"""Pattern-based structural extraction over raw AL source text.

Nothing here is a parser: object headers, trigger and procedure
declarations, documentation comments and the first ``var`` section are all
located with a small, fixed set of regular expressions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from al_review.textlines import line_index_at, line_starts, split_lines

OBJECT_KINDS = (
    "tableextension",
    "table",
    "pageextension",
    "page",
    "codeunit",
    "reportextension",
    "report",
    "query",
    "xmlport",
    "enumextension",
    "enum",
    "permissionsetextension",
    "permissionset",
)

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"

HEADER_RE = re.compile(
    rf"\b(?P<kind>{'|'.join(OBJECT_KINDS)})\s+(?P<id>\d+)\s+"
    r'"(?P<name>[^"]+)"(?:\s+extends\s+"(?P<base>[^"]+)")?',
    re.IGNORECASE,
)
TRIGGER_RE = re.compile(r"\btrigger\s+(?P<name>On[A-Za-z0-9_]+)")
PROCEDURE_RE = re.compile(rf"\b(?:local\s+)?procedure\s+(?P<name>{_IDENT})")
DECLARATION_LINE_RE = re.compile(r"\b(?:trigger|procedure)\s+[A-Za-z_]")
VAR_RE = re.compile(r"\bvar\b", re.IGNORECASE)
BEGIN_RE = re.compile(r"\bbegin\b", re.IGNORECASE)
VARIABLE_RE = re.compile(rf"\b(?P<name>{_IDENT})\s*:\s*(?P<type>[^;:]+);")
DOC_MARKER = "///"

DeclarationKind = Literal["trigger", "procedure"]


@dataclass(frozen=True, slots=True)
class ObjectHeader:
    """Declared type, id, name and optional base object of a source file."""

    type: str
    id: int
    name: str
    extends_name: str | None = None
    line: int = 0


@dataclass(frozen=True, slots=True)
class Declaration:
    """A trigger or procedure declaration found in source order."""

    kind: DeclarationKind
    name: str
    line: int


@dataclass(frozen=True, slots=True)
class VarSection:
    """Span of the first ``var`` section, from the keyword up to ``begin``."""

    start: int
    end: int
    first_line: int
    last_line: int


@dataclass(frozen=True, slots=True)
class VariableDeclaration:
    """A ``<name> : <type>;`` entry inside the var section."""

    name: str
    type: str
    line: int


def parse_object_header(text: str) -> ObjectHeader | None:
    """Return the first object header in the text, if any."""
    match = HEADER_RE.search(text)
    if match is None:
        return None
    starts = line_starts(split_lines(text))
    return ObjectHeader(
        type=match.group("kind").lower(),
        id=int(match.group("id")),
        name=match.group("name"),
        extends_name=match.group("base"),
        line=line_index_at(starts, match.start()),
    )


def extract_declarations(text: str) -> list[Declaration]:
    """Return every trigger and procedure declaration in source order.

    Names declared more than once are returned once per declaration.
    """
    starts = line_starts(split_lines(text))
    found: list[tuple[int, Declaration]] = []
    for match in TRIGGER_RE.finditer(text):
        line = line_index_at(starts, match.start())
        found.append((match.start(), Declaration("trigger", match.group("name"), line)))
    for match in PROCEDURE_RE.finditer(text):
        line = line_index_at(starts, match.start())
        found.append((match.start(), Declaration("procedure", match.group("name"), line)))
    found.sort(key=lambda item: item[0])
    return [declaration for _, declaration in found]


def extract_triggers(text: str) -> list[str]:
    return [item.name for item in extract_declarations(text) if item.kind == "trigger"]


def extract_procedures(text: str) -> list[str]:
    return [item.name for item in extract_declarations(text) if item.kind == "procedure"]


def has_doc_comment_above(lines: list[str], line: int) -> bool:
    """Return True when a ``///`` block precedes the declaration on ``line``.

    The scan walks upward and gives up at the previous trigger or procedure
    declaration, so a block anywhere between the two still counts.
    """
    for index in range(min(line, len(lines)) - 1, -1, -1):
        stripped = lines[index].strip()
        if stripped.startswith(DOC_MARKER):
            return True
        if DECLARATION_LINE_RE.search(stripped):
            return False
    return False


def has_doc_comment(text: str, name: str) -> bool:
    """Return True when the first declaration of ``name`` is documented."""
    contents = [item.content for item in split_lines(text)]
    for declaration in extract_declarations(text):
        if declaration.name == name:
            return has_doc_comment_above(contents, declaration.line)
    return False


def find_var_section(text: str) -> VarSection | None:
    """Locate the first ``var`` keyword and the first ``begin`` after it."""
    var_match = VAR_RE.search(text)
    if var_match is None:
        return None
    begin_match = BEGIN_RE.search(text, var_match.end())
    if begin_match is None:
        return None
    starts = line_starts(split_lines(text))
    return VarSection(
        start=var_match.end(),
        end=begin_match.start(),
        first_line=line_index_at(starts, var_match.start()),
        last_line=line_index_at(starts, begin_match.start()),
    )


def extract_variables(text: str) -> list[VariableDeclaration]:
    """Return the variables declared in the first var section."""
    section = find_var_section(text)
    if section is None:
        return []
    starts = line_starts(split_lines(text))
    variables: list[VariableDeclaration] = []
    for match in VARIABLE_RE.finditer(text, section.start, section.end):
        variables.append(
            VariableDeclaration(
                name=match.group("name"),
                type=match.group("type").strip(),
                line=line_index_at(starts, match.start("name")),
            )
        )
    return variables


def count_word(text: str, word: str) -> int:
    """Count case-sensitive whole-word occurrences of ``word``."""
    pattern = re.compile(rf"(?<![A-Za-z0-9_]){re.escape(word)}(?![A-Za-z0-9_])")
    return len(pattern.findall(text))
