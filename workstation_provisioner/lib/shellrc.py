from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


def has_line(path: Path, line: str) -> bool:
    if not path.exists():
        return False
    wanted = line.strip()
    return any(ln.strip() == wanted for ln in path.read_text(encoding="utf-8", errors="ignore").splitlines())


def ensure_line(path: Path, line: str, *, dry_run: bool = False) -> bool:
    """Append line to a shell profile unless an identical line is already there.

    Returns True when the file was (or, in dry-run, would be) changed.
    """

    if has_line(path, line):
        logger.info("%s already contains %r", path, line)
        return False

    if dry_run:
        logger.info("Would append %r to %s", line, path)
        return True

    path.parent.mkdir(parents=True, exist_ok=True)
    existing = path.read_text(encoding="utf-8", errors="ignore") if path.exists() else ""
    prefix = "" if not existing or existing.endswith("\n") else "\n"
    with path.open("a", encoding="utf-8") as f:
        f.write(f"{prefix}{line}\n")
    logger.info("Appended %r to %s", line, path)
    return True


def ensure_line_in_all(paths: Iterable[Path], line: str, *, dry_run: bool = False) -> list[Path]:
    return [p for p in paths if ensure_line(p, line, dry_run=dry_run)]
