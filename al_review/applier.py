"""Apply proposed edits to files on disk."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from al_review.edits import (
    ApplyResult,
    Edit,
    FileApplyCount,
    FileApplyError,
    FileProposal,
    NotConfirmed,
    Position,
)
from al_review.textlines import (
    SourceText,
    TextLine,
    line_starts,
    read_source,
    split_lines,
    write_source,
)

logger = logging.getLogger(__name__)


class EditError(ValueError):
    """Raised when an edit batch cannot be applied to a file."""


class EditConflictError(EditError):
    """Raised when two edits for the same file overlap."""


@dataclass(frozen=True, slots=True)
class _ResolvedEdit:
    start: int
    end: int
    new_text: str
    edit: Edit


def apply_edits(
    root: Path,
    file_proposals: Iterable[FileProposal],
    *,
    confirmed: bool,
) -> ApplyResult | NotConfirmed:
    """Apply each file's edits, one file at a time.

    Nothing is touched unless ``confirmed`` is true. A failing file is
    recorded in ``errors`` and does not undo files already written.
    """
    if not confirmed:
        logger.info("Apply request not confirmed; no files touched")
        return NotConfirmed()

    root_path = Path(root).resolve()
    result = ApplyResult()
    for proposal in file_proposals:
        try:
            count = apply_file_proposal(root_path, proposal)
        except (OSError, UnicodeDecodeError, EditError) as exc:
            logger.warning("Failed to apply edits to %s: %s", proposal.file, exc)
            result.errors.append(FileApplyError(file=proposal.file, error=str(exc)))
            continue
        result.applied.append(FileApplyCount(file=proposal.file, applied=count))
    return result


def apply_file_proposal(root: Path, proposal: FileProposal) -> int:
    """Apply one file's edits in place and return how many were applied."""
    target = _resolve_inside(root, proposal.file)
    source = read_source(target)
    new_text, count = _apply(source.text, proposal.edits)
    write_source(target, SourceText(new_text, bom=source.bom))
    logger.info("Applied %d edit(s) to %s", count, proposal.file)
    return count


def apply_text_edits(text: str, edits: Iterable[Edit]) -> str:
    """Return ``text`` with every edit applied.

    Positions are converted to offsets using each line's own terminator
    length. Edits run from the highest offset down so earlier offsets stay
    valid. Overlapping edits raise ``EditConflictError``.
    """
    new_text, _ = _apply(text, edits)
    return new_text


def _apply(text: str, edits: Iterable[Edit]) -> tuple[str, int]:
    lines = split_lines(text)
    starts = line_starts(lines)

    resolved: list[_ResolvedEdit] = []
    seen: set[tuple[int, int, str]] = set()
    for edit in edits:
        start = _offset(lines, starts, len(text), edit.range.start)
        end = _offset(lines, starts, len(text), edit.range.end)
        if end < start:
            raise EditError(f"Edit range ends before it starts: {edit.range}")
        key = (start, end, edit.new_text)
        if key in seen:
            continue
        seen.add(key)
        resolved.append(_ResolvedEdit(start, end, edit.new_text, edit))

    # Equal starts: the wider edit goes first so an insertion lands before it.
    ordered = sorted(resolved, key=lambda item: (item.start, item.end), reverse=True)
    _check_overlaps(ordered)

    for item in ordered:
        text = text[: item.start] + item.new_text + text[item.end :]
    return text, len(ordered)


def _check_overlaps(ordered: list[_ResolvedEdit]) -> None:
    for later, earlier in zip(ordered, ordered[1:]):
        same_point = earlier.start == later.start == earlier.end == later.end
        if earlier.end > later.start or same_point:
            raise EditConflictError(
                "Overlapping edits at "
                f"{_describe(earlier.edit.range.start)} and {_describe(later.edit.range.start)}"
            )


def _offset(lines: list[TextLine], starts: list[int], text_length: int, position: Position) -> int:
    if position.line >= len(lines):
        return text_length
    line = lines[position.line]
    return starts[position.line] + min(position.column, len(line.content))


def _describe(position: Position) -> str:
    return f"{position.line}:{position.column}"


def _resolve_inside(root: Path, relative: str) -> Path:
    candidate = (root / relative).resolve()
    if not candidate.is_relative_to(root):
        raise EditError(f"Path escapes repository root: {relative}")
    return candidate
