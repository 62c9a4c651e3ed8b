"""Position-addressed edit records and their JSON shape.

The JSON produced by ``to_dict`` is exchanged with editors and other tools:
0-based ``line``/``column`` and end-exclusive ranges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """0-based line and column."""

    line: int
    column: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True, slots=True)
class Range:
    """End-exclusive span between two positions."""

    start: Position
    end: Position

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass(frozen=True, slots=True)
class Edit:
    """Replace ``range`` with ``new_text``.

    An empty ``new_text`` deletes; an empty range inserts.
    """

    range: Range
    new_text: str

    def to_dict(self) -> dict[str, Any]:
        return {"range": self.range.to_dict(), "newText": self.new_text}


@dataclass(frozen=True, slots=True)
class FileProposal:
    """Edits proposed for one root-relative file."""

    file: str
    edits: tuple[Edit, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "edits": [edit.to_dict() for edit in self.edits]}


@dataclass(frozen=True, slots=True)
class Proposal:
    """Batch of file proposals; only files with at least one edit appear."""

    files: tuple[FileProposal, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"files": [item.to_dict() for item in self.files]}


@dataclass(frozen=True, slots=True)
class FileApplyCount:
    file: str
    applied: int

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "applied": self.applied}


@dataclass(frozen=True, slots=True)
class FileApplyError:
    file: str
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "error": self.error}


@dataclass(slots=True)
class ApplyResult:
    """Per-file outcome of an apply run.

    Files written before a failure stay written and are listed in ``applied``.
    """

    applied: list[FileApplyCount] = field(default_factory=list)
    errors: list[FileApplyError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"applied": [item.to_dict() for item in self.applied]}
        if self.errors:
            payload["errors"] = [item.to_dict() for item in self.errors]
        return payload


@dataclass(frozen=True, slots=True)
class NotConfirmed:
    """Outcome of an apply request that was not explicitly confirmed."""

    reason: str = "not confirmed"

    def to_dict(self) -> dict[str, Any]:
        return {"applied": False, "reason": self.reason}


def proposal_from_payload(value: Any) -> Proposal:
    """Build a Proposal from decoded JSON.

    Accepts ``{"files": [...]}`` or a bare list of file proposals. Raises
    ``ValueError`` naming the offending field.
    """
    if isinstance(value, dict):
        files = value.get("files")
        if not isinstance(files, list):
            raise ValueError("files must be a list")
    elif isinstance(value, list):
        files = value
    else:
        raise ValueError("proposal must be an object or a list of file proposals")
    return Proposal(
        files=tuple(_file_proposal(item, f"files[{index}]") for index, item in enumerate(files))
    )


def _file_proposal(value: Any, field_name: str) -> FileProposal:
    item = _as_object(value, field_name)
    file_value = item.get("file")
    if not isinstance(file_value, str) or not file_value:
        raise ValueError(f"{field_name}.file must be a non-empty string")
    edits = item.get("edits")
    if not isinstance(edits, list):
        raise ValueError(f"{field_name}.edits must be a list")
    return FileProposal(
        file=file_value,
        edits=tuple(_edit(edit, f"{field_name}.edits[{idx}]") for idx, edit in enumerate(edits)),
    )


def _edit(value: Any, field_name: str) -> Edit:
    item = _as_object(value, field_name)
    range_value = _as_object(item.get("range"), f"{field_name}.range")
    new_text = item.get("newText")
    if not isinstance(new_text, str):
        raise ValueError(f"{field_name}.newText must be a string")
    start = _position(range_value.get("start"), f"{field_name}.range.start")
    end = _position(range_value.get("end"), f"{field_name}.range.end")
    if end < start:
        raise ValueError(f"{field_name}.range ends before it starts")
    return Edit(range=Range(start=start, end=end), new_text=new_text)


def _position(value: Any, field_name: str) -> Position:
    item = _as_object(value, field_name)
    return Position(
        line=_as_non_negative_int(item.get("line"), f"{field_name}.line"),
        column=_as_non_negative_int(item.get("column"), f"{field_name}.column"),
    )


def _as_object(value: Any, field_name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be an object")
    return value


def _as_non_negative_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise ValueError(f"{field_name} must be a non-negative integer")
    return raw
