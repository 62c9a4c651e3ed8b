"""Line model with per-line terminators and byte-exact UTF-8 file IO."""

from __future__ import annotations

import codecs
import re
from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path

EOL_RE = re.compile(r"\r\n|\n|\r")
BOM_CHAR = "\ufeff"


@dataclass(frozen=True, slots=True)
class TextLine:
    """A single line of text and the terminator that ended it."""

    content: str
    eol: str

    @property
    def length(self) -> int:
        return len(self.content) + len(self.eol)


@dataclass(frozen=True, slots=True)
class SourceText:
    """Decoded file text plus whether a UTF-8 byte-order mark preceded it."""

    text: str
    bom: bool = False


def split_lines(text: str) -> list[TextLine]:
    """Split text into lines keeping each line's own terminator.

    The result always has at least one entry; text ending in a terminator
    yields a trailing empty line, the same way editors count lines.
    """
    lines: list[TextLine] = []
    cursor = 0
    for match in EOL_RE.finditer(text):
        lines.append(TextLine(text[cursor : match.start()], match.group()))
        cursor = match.end()
    lines.append(TextLine(text[cursor:], ""))
    return lines


def line_starts(lines: list[TextLine]) -> list[int]:
    """Return the absolute character offset at which each line begins."""
    starts: list[int] = []
    offset = 0
    for line in lines:
        starts.append(offset)
        offset += line.length
    return starts


def line_index_at(starts: list[int], offset: int) -> int:
    """Return the 0-based line containing an absolute offset."""
    return max(0, bisect_right(starts, offset) - 1)


def read_source(path: Path) -> SourceText:
    """Read a UTF-8 file without newline translation."""
    raw = path.read_bytes()
    if raw.startswith(codecs.BOM_UTF8):
        return SourceText(raw[len(codecs.BOM_UTF8) :].decode("utf-8"), bom=True)
    return SourceText(raw.decode("utf-8"))


def write_source(path: Path, source: SourceText) -> None:
    """Write text back as UTF-8, restoring the byte-order mark if it had one."""
    payload = source.text.encode("utf-8")
    if source.bom:
        payload = codecs.BOM_UTF8 + payload
    path.write_bytes(payload)
