from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence, Tuple

from ..errors import PreconditionProbeError
from .command import run_cmd
from .shellrc import has_line

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 30.0


class Precondition(Protocol):
    """A read-only check: True means the step's effect already holds."""

    def holds(self) -> bool:
        ...

    def describe(self) -> str:
        ...


@dataclass(frozen=True)
class CommandAvailable:
    name: str
    search_path: Optional[str] = None

    def holds(self) -> bool:
        return shutil.which(self.name, path=self.search_path) is not None

    def describe(self) -> str:
        return f"command {self.name} on PATH"


@dataclass(frozen=True)
class PathExists:
    path: Path

    def holds(self) -> bool:
        try:
            self.path.stat()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PreconditionProbeError(f"Cannot stat {self.path}: {e}") from e
        return True

    def describe(self) -> str:
        return f"{self.path} exists"


def _probe(argv: Sequence[str]) -> int:
    try:
        r = run_cmd(argv, check=False, quiet=True, timeout=PROBE_TIMEOUT_SECONDS)
    except (OSError, subprocess.SubprocessError) as e:
        raise PreconditionProbeError(f"Probe {argv[0]} unavailable: {e}") from e
    return r.returncode


def _dpkg_installed(package: str) -> bool:
    try:
        r = run_cmd(
            ["dpkg-query", "-W", "-f=${Status}", package],
            check=False,
            quiet=True,
            timeout=PROBE_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise PreconditionProbeError(f"dpkg-query unavailable: {e}") from e
    return r.returncode == 0 and "install ok installed" in r.stdout


@dataclass(frozen=True)
class PackageInstalled:
    manager: str
    packages: Tuple[str, ...]

    def holds(self) -> bool:
        if self.manager == "dpkg":
            return all(_dpkg_installed(p) for p in self.packages)
        if self.manager == "pacman":
            return _probe(["pacman", "-Q", *self.packages]) == 0
        if self.manager == "snap":
            return all(_probe(["snap", "list", p]) == 0 for p in self.packages)
        raise PreconditionProbeError(f"Unknown package manager: {self.manager}")

    def describe(self) -> str:
        return f"{self.manager} packages installed: {' '.join(self.packages)}"


@dataclass(frozen=True)
class ProfileLinePresent:
    files: Tuple[Path, ...]
    line: str

    def holds(self) -> bool:
        try:
            return all(has_line(f, self.line) for f in self.files)
        except OSError as e:
            raise PreconditionProbeError(f"Cannot read shell profile: {e}") from e

    def describe(self) -> str:
        return f"{self.line!r} in {', '.join(str(f) for f in self.files)}"


@dataclass(frozen=True)
class GitIdentityConfigured:
    name: str
    email: str

    def _get(self, key: str) -> str:
        try:
            r = run_cmd(
                ["git", "config", "--global", "--get", key],
                check=False,
                quiet=True,
                timeout=PROBE_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise PreconditionProbeError(f"git unavailable: {e}") from e
        return r.stdout.strip()

    def holds(self) -> bool:
        return self._get("user.name") == self.name and self._get("user.email") == self.email

    def describe(self) -> str:
        return f"git identity {self.name} <{self.email}>"


@dataclass(frozen=True)
class Not:
    inner: Precondition

    def holds(self) -> bool:
        return not self.inner.holds()

    def describe(self) -> str:
        return f"not ({self.inner.describe()})"


class AllOf:
    def __init__(self, *inner: Precondition) -> None:
        self.inner = inner

    def holds(self) -> bool:
        return all(p.holds() for p in self.inner)

    def describe(self) -> str:
        return " and ".join(p.describe() for p in self.inner)


def evaluate(precondition: Optional[Precondition]) -> bool:
    """Return True when the step can be skipped. Probe failures count as False."""

    if precondition is None:
        return False
    try:
        return bool(precondition.holds())
    except (PreconditionProbeError, OSError) as e:
        logger.warning("Precondition probe failed (%s): %s; treating as not satisfied", precondition.describe(), e)
        return False
