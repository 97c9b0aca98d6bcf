from __future__ import annotations

import logging
import os
import platform
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from ..errors import UnsupportedArchitecture

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")

_ARCH_MAP = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}

# Vendor download tokens per canonical arch. A vendor missing an arch does not ship it.
_VENDOR_ARCH: Dict[str, Dict[str, str]] = {
    "go": {"amd64": "amd64", "arm64": "arm64"},
    "debian": {"amd64": "amd64", "arm64": "arm64"},
    "chrome": {"amd64": "amd64"},
}

_OS_FAMILIES = {
    "debian": "debian",
    "ubuntu": "debian",
    "arch": "arch",
}


@dataclass(frozen=True)
class HostFacts:
    machine: str
    os_family: str
    home: str
    user: str
    path: str
    hostname: str

    def home_path(self, *parts: str) -> Path:
        return Path(self.home, *parts)


def resolve_arch(machine: str) -> str:
    """Normalize the kernel CPU tag to 'amd64' or 'arm64'."""

    arch = _ARCH_MAP.get((machine or "").strip().lower())
    if arch is None:
        raise UnsupportedArchitecture(machine)
    return arch


def vendor_arch(machine: str, vendor: str) -> str:
    arch = resolve_arch(machine)
    token = _VENDOR_ARCH.get(vendor, {}).get(arch)
    if token is None:
        raise UnsupportedArchitecture(machine, vendor)
    return token


def _parse_os_release(text: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        out[key.strip()] = value.strip().strip('"').strip("'")
    return out


def detect_os_family(os_release: Path = OS_RELEASE) -> str:
    """Return 'debian', 'arch' or 'unknown' from os-release ID / ID_LIKE."""

    try:
        info = _parse_os_release(os_release.read_text(encoding="utf-8", errors="ignore"))
    except OSError:
        logger.warning("Cannot read %s; OS family unknown", os_release)
        return "unknown"

    candidates = [info.get("ID", "")] + info.get("ID_LIKE", "").split()
    for c in candidates:
        fam = _OS_FAMILIES.get(c.lower())
        if fam:
            return fam
    return "unknown"


def gather_host_facts(
    environ: Optional[Mapping[str, str]] = None,
    *,
    machine: Optional[str] = None,
    os_family: Optional[str] = None,
    os_release: Path = OS_RELEASE,
) -> HostFacts:
    """Snapshot the host once per run. Nothing else reads the environment."""

    env = os.environ if environ is None else environ
    home = env.get("HOME") or os.path.expanduser("~")
    facts = HostFacts(
        machine=machine if machine is not None else platform.machine(),
        os_family=os_family if os_family is not None else detect_os_family(os_release),
        home=home,
        user=env.get("USER") or Path(home).name,
        path=env.get("PATH", ""),
        hostname=socket.gethostname(),
    )
    logger.info(
        "Host: machine=%s os_family=%s user=%s home=%s",
        facts.machine,
        facts.os_family,
        facts.user,
        facts.home,
    )
    return facts
