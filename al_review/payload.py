"""Decoding of externally supplied proposal payloads.

Payloads arrive from pipes and files whose encoding is not known up front:
shells on some platforms re-encode piped output as UTF-16LE, with or
without a byte-order mark.
"""

from __future__ import annotations

import codecs
import json
from typing import Any

from al_review.edits import Proposal, proposal_from_payload
from al_review.textlines import BOM_CHAR

NULL_SNIFF_BYTES = 64
NULL_THRESHOLD = 10


class PayloadError(ValueError):
    """Raised when a proposal payload cannot be decoded or parsed."""

    def __init__(self, message: str, *, byte_offset: int | None = None) -> None:
        super().__init__(message)
        self.byte_offset = byte_offset


def detect_encoding(data: bytes) -> tuple[str, int]:
    """Return the codec name and byte-order-mark length for a payload."""
    if data.startswith(codecs.BOM_UTF8):
        return ("utf-8", len(codecs.BOM_UTF8))
    if data.startswith(codecs.BOM_UTF16_LE):
        return ("utf-16-le", len(codecs.BOM_UTF16_LE))
    if data.startswith(codecs.BOM_UTF16_BE):
        return ("utf-16-be", len(codecs.BOM_UTF16_BE))
    if data[:NULL_SNIFF_BYTES].count(0) > NULL_THRESHOLD:
        return ("utf-16-le", 0)
    return ("utf-8", 0)


def decode_payload(data: bytes) -> str:
    """Decode payload bytes to text with any byte-order mark removed."""
    encoding, bom_length = detect_encoding(data)
    return _decode(data, encoding, bom_length)


def load_proposal_payload(data: bytes) -> Proposal:
    """Decode, parse and validate a proposal payload."""
    encoding, bom_length = detect_encoding(data)
    text = _decode(data, encoding, bom_length)
    try:
        loaded: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        offset = _byte_offset(text, exc.pos, encoding, bom_length)
        raise PayloadError(
            f"Invalid proposal JSON at byte {offset} "
            f"(line {exc.lineno}, column {exc.colno}): {exc.msg}",
            byte_offset=offset,
        ) from exc
    try:
        return proposal_from_payload(loaded)
    except ValueError as exc:
        raise PayloadError(f"Invalid proposal: {exc}") from exc


def _decode(data: bytes, encoding: str, bom_length: int) -> str:
    try:
        text = data[bom_length:].decode(encoding)
    except UnicodeDecodeError as exc:
        offset = bom_length + exc.start
        raise PayloadError(
            f"Payload is not valid {encoding} at byte {offset}: {exc.reason}",
            byte_offset=offset,
        ) from exc
    if text.startswith(BOM_CHAR):
        text = text[len(BOM_CHAR) :]
    return text


def _byte_offset(text: str, char_offset: int, encoding: str, bom_length: int) -> int:
    return bom_length + len(text[:char_offset].encode(encoding))
