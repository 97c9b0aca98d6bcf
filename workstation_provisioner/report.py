from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .lib.command import run_cmd
from .lib.hostfacts import HostFacts

logger = logging.getLogger(__name__)

NOT_INSTALLED = "Not installed"
NO_SSH_KEY = "No SSH key found."
PROBE_TIMEOUT_SECONDS = 15.0


def first_line(out: str) -> str:
    return out.strip().splitlines()[0].strip()


def nth_field(index: int) -> Callable[[str], str]:
    """Pick a whitespace-separated field from the first line (e.g. 'git version 2.43.0')."""

    def parse(out: str) -> str:
        return first_line(out).split()[index].rstrip(",")

    return parse


def dpkg_version(out: str) -> str:
    for line in out.splitlines():
        if line.startswith("Version:"):
            return line.split(":", 1)[1].strip()
    raise ValueError("no Version field")


def snap_version(out: str) -> str:
    # "Name Version Rev ..." header, then one row per snap.
    return out.strip().splitlines()[1].split()[1]


@dataclass(frozen=True)
class ToolProbe:
    label: str
    argv: Tuple[str, ...]
    parse: Callable[[str], str] = first_line


def _nvm(cmd: str) -> Tuple[str, ...]:
    return ("bash", "-c", f'. "$NVM_DIR/nvm.sh" >/dev/null 2>&1; {cmd}')


COMMON_PROBES: List[ToolProbe] = [
    ToolProbe("Git", ("git", "--version"), nth_field(2)),
    ToolProbe("Node.js", _nvm("node -v")),
    ToolProbe("npm", _nvm("npm -v")),
    ToolProbe("Go", ("go", "version"), nth_field(2)),
    ToolProbe("Docker", ("docker", "--version"), nth_field(2)),
]

DEBIAN_PROBES: List[ToolProbe] = COMMON_PROBES + [
    ToolProbe("VSCode", ("dpkg", "-s", "code"), dpkg_version),
    ToolProbe("Google Chrome", ("google-chrome", "--version")),
    ToolProbe("Postman", ("snap", "list", "postman"), snap_version),
    ToolProbe("Discord", ("dpkg", "-s", "discord"), dpkg_version),
    ToolProbe("Spotify", ("dpkg", "-s", "spotify-client"), dpkg_version),
]

ARCH_PROBES: List[ToolProbe] = COMMON_PROBES + [
    ToolProbe("Rust", ("rustc", "--version"), nth_field(1)),
    ToolProbe("VSCode", ("code", "--version")),
    ToolProbe("Chrome", ("google-chrome", "--version")),
    ToolProbe("Discord", ("pacman", "-Q", "discord"), nth_field(1)),
    ToolProbe("Spotify", ("pacman", "-Q", "spotify"), nth_field(1)),
    ToolProbe("Neovim", ("nvim", "--version")),
]

PROBES: Dict[str, List[ToolProbe]] = {
    "debian": DEBIAN_PROBES,
    "arch": ARCH_PROBES,
}


def report_env(facts: HostFacts) -> Dict[str, str]:
    """Environment for probes: user PATH plus the toolchain dirs this run may have added."""

    extra = [
        "/usr/local/go/bin",
        str(facts.home_path(".cargo", "bin")),
    ]
    return {
        "PATH": os.pathsep.join([facts.path, *extra]) if facts.path else os.pathsep.join(extra),
        "HOME": facts.home,
        "NVM_DIR": str(facts.home_path(".nvm")),
    }


def probe_version(probe: ToolProbe, *, env: Optional[Dict[str, str]] = None) -> str:
    """Return the tool's version string or NOT_INSTALLED. Never raises for probe failures."""

    try:
        r = run_cmd(probe.argv, check=False, env=env, timeout=PROBE_TIMEOUT_SECONDS, quiet=True)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Probe %s failed: %s", probe.label, e)
        return NOT_INSTALLED

    if r.returncode != 0 or not r.stdout.strip():
        return NOT_INSTALLED
    try:
        return probe.parse(r.stdout) or NOT_INSTALLED
    except (IndexError, ValueError):
        return NOT_INSTALLED


def generate_report(facts: HostFacts, probes: Optional[Sequence[ToolProbe]] = None) -> List[Tuple[str, str]]:
    if probes is None:
        probes = PROBES.get(facts.os_family, COMMON_PROBES)
    env = report_env(facts)
    return [(p.label, probe_version(p, env=env)) for p in probes]


def read_ssh_public_key(facts: HostFacts) -> str:
    try:
        return facts.home_path(".ssh", "id_ed25519.pub").read_text(encoding="utf-8").strip()
    except OSError:
        return NO_SSH_KEY


def render_report(rows: Sequence[Tuple[str, str]], ssh_public_key: Optional[str] = None) -> str:
    width = max([len(label) for label, _ in rows] + [0]) + 2
    lines = ["Installed Versions:"]
    lines += [f"{(label + ':').ljust(width)} {value}" for label, value in rows]
    if ssh_public_key is not None:
        lines += ["", "SSH Public Key:", ssh_public_key]
    return "\n".join(lines)
