"""Repository scanning: file discovery plus per-file rule evaluation."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Any

from al_review.engine import evaluate
from al_review.rules import build_rules
from al_review.rules.base import Finding
from al_review.textlines import read_source

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE = ["**/*.al"]


class ScanError(RuntimeError):
    """Raised when the repository cannot be scanned completely."""


def discover_files(
    root: Path,
    include_globs: list[str],
    exclude_globs: list[str] | None = None,
) -> list[str]:
    """Return root-relative POSIX paths of matching files, sorted.

    Dotfiles and dot-directories are included.
    """
    found: set[str] = set()
    for pattern in include_globs:
        for path in root.glob(pattern):
            if not path.is_file():
                continue
            relative = path.relative_to(root).as_posix()
            if exclude_globs and any(fnmatch.fnmatch(relative, item) for item in exclude_globs):
                continue
            found.add(relative)
    return sorted(found)


def scan_repository(
    root: Path,
    include_globs: list[str] | None,
    rule_config: Any,
    *,
    exclude_globs: list[str] | None = None,
    disabled_rule_ids: list[str] | None = None,
) -> list[Finding]:
    """Scan every matching file under ``root`` and concatenate findings.

    Files are processed one at a time in sorted relative-path order. Any
    unreadable file aborts the whole scan.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise ScanError(f"Repository root is not a directory: {root_path}")

    rules = build_rules(rule_config, disabled_rule_ids=disabled_rule_ids)
    files = discover_files(root_path, include_globs or DEFAULT_INCLUDE, exclude_globs)
    logger.info("Scanning %d file(s) under %s with %d rule(s)", len(files), root_path, len(rules))

    findings: list[Finding] = []
    for relative in files:
        absolute = root_path / relative
        try:
            content = read_source(absolute).text
        except (OSError, UnicodeDecodeError) as exc:
            raise ScanError(f"Unable to read {absolute}: {exc}") from exc
        findings.extend(evaluate(relative, content, rule_config, rules=rules))
    return findings
