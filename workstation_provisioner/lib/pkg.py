from __future__ import annotations

import logging
from typing import Sequence

from .command import run_cmd, sudo
from .net import fetch_text

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


# --- apt (Debian / Ubuntu) ---------------------------------------------------


def apt_update(*, dry_run: bool = False) -> None:
    run_cmd(sudo(["apt-get", "update"]), env=APT_ENV, dry_run=dry_run)


def apt_upgrade(*, dry_run: bool = False) -> None:
    run_cmd(sudo(["apt-get", "upgrade", "-y"]), env=APT_ENV, dry_run=dry_run)


def apt_install(packages: Sequence[str], *, dry_run: bool = False) -> None:
    """Install packages (names or local .deb paths)."""
    if not packages:
        return
    run_cmd(sudo(["apt-get", "install", "-y", *packages]), env=APT_ENV, dry_run=dry_run)


def apt_fix_broken(*, dry_run: bool = False) -> None:
    run_cmd(sudo(["apt-get", "--fix-broken", "install", "-y"]), env=APT_ENV, dry_run=dry_run)


def apt_remove(packages: Sequence[str], *, dry_run: bool = False) -> None:
    run_cmd(sudo(["apt-get", "remove", "-y", *packages]), env=APT_ENV, dry_run=dry_run)


def apt_cleanup(*, dry_run: bool = False) -> None:
    run_cmd(sudo(["apt-get", "autoremove", "-y"]), env=APT_ENV, dry_run=dry_run)
    run_cmd(sudo(["apt-get", "clean"]), dry_run=dry_run)


def add_apt_repository(repo: str, *, dry_run: bool = False) -> None:
    run_cmd(sudo(["add-apt-repository", "-y", repo]), env=APT_ENV, dry_run=dry_run)


def add_apt_source(
    *,
    name: str,
    key_url: str,
    keyring: str,
    source_line: str,
    dry_run: bool = False,
) -> None:
    """Register a third-party apt repository with a dearmored signing key.

    The key fetch is an idempotent GET (retried); writing the keyring and the
    sources list overwrites any previous copy, so re-running is safe.
    """

    list_path = f"/etc/apt/sources.list.d/{name}.list"
    if dry_run:
        logger.info("Would install key %s -> %s and write %s", key_url, keyring, list_path)
        return

    armored = fetch_text(key_url)
    run_cmd(sudo(["gpg", "--dearmor", "--yes", "-o", keyring]), input_text=armored)
    run_cmd(sudo(["tee", list_path]), input_text=source_line + "\n")
    logger.info("Configured apt source %s: %s", name, source_line)


# --- pacman / AUR (Arch) -----------------------------------------------------


def pacman_sync_upgrade(*, dry_run: bool = False) -> None:
    run_cmd(sudo(["pacman", "-Syu", "--noconfirm"]), dry_run=dry_run)


def pacman_install(packages: Sequence[str], *, dry_run: bool = False) -> None:
    if not packages:
        return
    run_cmd(sudo(["pacman", "-S", "--needed", "--noconfirm", *packages]), dry_run=dry_run)


def pacman_remove(packages: Sequence[str], *, dry_run: bool = False) -> None:
    run_cmd(sudo(["pacman", "-Rns", "--noconfirm", *packages]), dry_run=dry_run)


def yay_install(packages: Sequence[str], *, dry_run: bool = False) -> None:
    # yay escalates on its own; running it as root is refused.
    if not packages:
        return
    run_cmd(["yay", "-S", "--needed", "--noconfirm", *packages], dry_run=dry_run)


# --- snap / downloads --------------------------------------------------------


def snap_install(package: str, *, classic: bool = False, dry_run: bool = False) -> None:
    argv = ["snap", "install", package]
    if classic:
        argv.append("--classic")
    run_cmd(sudo(argv), dry_run=dry_run)


def download(url: str, dest: str, *, dry_run: bool = False) -> None:
    """Download an artifact to dest. Single attempt."""
    run_cmd(["curl", "-fsSL", "-o", dest, url], dry_run=dry_run)
