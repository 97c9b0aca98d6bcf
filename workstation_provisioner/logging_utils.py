from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

DEFAULT_LOG_PATH = "~/.local/state/workstation-provisioner/provision.log"
FALLBACK_LOG_NAME = "workstation-provisioner.log"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Handlers installed on the root logger by configure_logging().
_installed: Dict[str, logging.Handler] = {}
_log_path: Optional[str] = None


def _log_candidates(requested: str) -> List[str]:
    return [requested, str(Path.cwd() / FALLBACK_LOG_NAME)]


def _open_log_file(requested: str) -> tuple[Optional[logging.Handler], Optional[str]]:
    for candidate in _log_candidates(requested):
        try:
            Path(candidate).parent.mkdir(parents=True, exist_ok=True)
            return logging.FileHandler(candidate, encoding="utf-8"), candidate
        except OSError:
            continue
    return None, None


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    *,
    verbose: bool = False,
    console: bool = True,
) -> Optional[str]:
    """Send provisioner logs to a file and, optionally, to stderr.

    The file always records DEBUG, which includes the stdout/stderr of every
    command. The console shows INFO and above unless ``verbose`` is set.

    The state directory is created when missing. When the requested file
    cannot be opened the log goes to ``./workstation-provisioner.log``; when
    that fails as well only the console is used. Returns the file actually
    written, or None.

    Calling this again only adjusts the console level.
    """

    global _log_path

    console_level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    if _installed:
        if "console" in _installed:
            _installed["console"].setLevel(console_level)
        return _log_path

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    requested = os.path.expanduser(log_path)

    file_handler, _log_path = _open_log_file(requested)
    if file_handler is not None:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)
        _installed["file"] = file_handler

    if console:
        stream = logging.StreamHandler()
        stream.setLevel(console_level)
        stream.setFormatter(fmt)
        root.addHandler(stream)
        _installed["console"] = stream

    log = logging.getLogger(__name__)
    if _log_path is None:
        log.warning("Cannot open %s or a local fallback; logging to the console only", requested)
    elif _log_path != requested:
        log.warning("Cannot open %s; logging to %s", requested, _log_path)
    log.debug("Logging initialized (file=%s, verbose=%s)", _log_path, verbose)
    return _log_path


def reset_logging() -> None:
    """Remove the handlers installed by configure_logging()."""

    global _log_path

    root = logging.getLogger()
    for handler in _installed.values():
        root.removeHandler(handler)
        handler.close()
    _installed.clear()
    _log_path = None
