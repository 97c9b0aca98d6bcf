from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..errors import ExternalCommandFailure
from ..lib.command import run_cmd, sudo
from ..lib.guards import CommandAvailable, Not, PackageInstalled, PathExists, ProfileLinePresent
from ..lib.hostfacts import vendor_arch
from ..lib.net import latest_go_release, run_remote_script
from ..lib.pkg import (
    add_apt_repository,
    add_apt_source,
    apt_cleanup,
    apt_fix_broken,
    apt_install,
    apt_remove,
    apt_update,
    apt_upgrade,
    download,
    snap_install,
)
from ..lib.shellrc import ensure_line_in_all
from .base import Step, StepContext
from .common import identity_steps, nvm_steps, sdkman_step

logger = logging.getLogger(__name__)

BASE_PACKAGES = [
    "git",
    "curl",
    "wget",
    "apt-transport-https",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "software-properties-common",
    "remmina",
    "openssh-client",
]

GO_ROOT = Path("/usr/local/go")
GO_DOWNLOAD_URL = "https://go.dev/dl/{release}.linux-{arch}.tar.gz"
GO_PATH_LINE = "export PATH=$PATH:/usr/local/go/bin"

VSCODE_KEY_URL = "https://packages.microsoft.com/keys/microsoft.asc"
VSCODE_KEYRING = "/usr/share/keyrings/packages.microsoft.gpg"
CHROME_DEB_URL = "https://dl.google.com/linux/direct/google-chrome-stable_current_{arch}.deb"
DOCKER_INSTALL_URL = "https://get.docker.com"
GRUB_CUSTOMIZER_PPA = "ppa:danielrichter2007/grub-customizer"
DISCORD_DEB_URL = "https://discordapp.com/api/download?platform=linux&format=deb"
SPOTIFY_KEY_URL = "https://download.spotify.com/debian/pubkey_C85668DF69375001.gpg"
SPOTIFY_KEYRING = "/etc/apt/trusted.gpg.d/spotify.gpg"


def _install_deb_from_url(url: str, dest: str, ctx: StepContext) -> None:
    download(url, dest, dry_run=ctx.dry_run)
    try:
        apt_install([dest], dry_run=ctx.dry_run)
    finally:
        if not ctx.dry_run:
            Path(dest).unlink(missing_ok=True)


def system_upgrade(ctx: StepContext) -> None:
    apt_update(dry_run=ctx.dry_run)
    apt_upgrade(dry_run=ctx.dry_run)


def install_base_packages(ctx: StepContext) -> None:
    apt_install(BASE_PACKAGES + ctx.config.extra_packages, dry_run=ctx.dry_run)


def install_golang(ctx: StepContext) -> None:
    arch = vendor_arch(ctx.facts.machine, "go")
    release = "go<latest>" if ctx.dry_run else latest_go_release()
    tarball = "/tmp/go.tar.gz"
    logger.info("Installing %s (%s) into %s", release, arch, GO_ROOT)

    download(GO_DOWNLOAD_URL.format(release=release, arch=arch), tarball, dry_run=ctx.dry_run)
    try:
        run_cmd(sudo(["rm", "-rf", str(GO_ROOT)]), dry_run=ctx.dry_run)
        run_cmd(sudo(["tar", "-C", str(GO_ROOT.parent), "-xzf", tarball]), dry_run=ctx.dry_run)
    finally:
        if not ctx.dry_run:
            Path(tarball).unlink(missing_ok=True)


def add_golang_path(ctx: StepContext) -> None:
    ensure_line_in_all(ctx.shell_profiles(), GO_PATH_LINE, dry_run=ctx.dry_run)


def install_vscode(ctx: StepContext) -> None:
    arch = vendor_arch(ctx.facts.machine, "debian")
    add_apt_source(
        name="vscode",
        key_url=VSCODE_KEY_URL,
        keyring=VSCODE_KEYRING,
        source_line=f"deb [arch={arch} signed-by={VSCODE_KEYRING}] https://packages.microsoft.com/repos/code stable main",
        dry_run=ctx.dry_run,
    )
    apt_update(dry_run=ctx.dry_run)
    apt_install(["code"], dry_run=ctx.dry_run)


def install_chrome(ctx: StepContext) -> None:
    arch = vendor_arch(ctx.facts.machine, "chrome")
    dest = "/tmp/chrome.deb"
    download(CHROME_DEB_URL.format(arch=arch), dest, dry_run=ctx.dry_run)
    try:
        try:
            apt_install([dest], dry_run=ctx.dry_run)
        except ExternalCommandFailure as e:
            logger.warning("Chrome install failed (%s); trying apt --fix-broken", e)
            apt_fix_broken(dry_run=ctx.dry_run)
    finally:
        if not ctx.dry_run:
            Path(dest).unlink(missing_ok=True)


def install_postman(ctx: StepContext) -> None:
    snap_install("postman", dry_run=ctx.dry_run)


def install_docker(ctx: StepContext) -> None:
    run_remote_script(DOCKER_INSTALL_URL, interpreter=("sudo", "sh", "-s"), dry_run=ctx.dry_run)
    run_cmd(sudo(["usermod", "-aG", "docker", ctx.facts.user]), dry_run=ctx.dry_run)
    logger.info("Docker installed. Log out and back in for the docker group to apply.")


def install_gnome_tweaks(ctx: StepContext) -> None:
    apt_install(["gnome-tweaks"], dry_run=ctx.dry_run)


def install_grub_customizer(ctx: StepContext) -> None:
    add_apt_repository(GRUB_CUSTOMIZER_PPA, dry_run=ctx.dry_run)
    apt_update(dry_run=ctx.dry_run)
    apt_install(["grub-customizer"], dry_run=ctx.dry_run)


def install_discord(ctx: StepContext) -> None:
    _install_deb_from_url(DISCORD_DEB_URL, "/tmp/discord.deb", ctx)


def install_spotify(ctx: StepContext) -> None:
    add_apt_source(
        name="spotify",
        key_url=SPOTIFY_KEY_URL,
        keyring=SPOTIFY_KEYRING,
        source_line="deb http://repository.spotify.com stable non-free",
        dry_run=ctx.dry_run,
    )
    apt_update(dry_run=ctx.dry_run)
    apt_install(["spotify-client"], dry_run=ctx.dry_run)


def remove_firefox(ctx: StepContext) -> None:
    apt_remove(["firefox"], dry_run=ctx.dry_run)


def cleanup(ctx: StepContext) -> None:
    apt_cleanup(dry_run=ctx.dry_run)


def build_steps(ctx: StepContext) -> List[Step]:
    """Debian / Ubuntu registry, in execution order."""

    def dpkg(*packages: str) -> PackageInstalled:
        return PackageInstalled("dpkg", packages)

    return [
        Step("system_upgrade", "apt update && apt upgrade", system_upgrade),
        Step(
            "apt_packages",
            "base developer packages",
            install_base_packages,
            precondition=dpkg(*BASE_PACKAGES, *ctx.config.extra_packages),
            continue_on_failure=False,
        ),
        *nvm_steps(ctx),
        Step("golang", "latest Go into /usr/local/go", install_golang, precondition=PathExists(GO_ROOT / "bin" / "go")),
        Step(
            "golang_path",
            "Go PATH export in shell profiles",
            add_golang_path,
            precondition=ProfileLinePresent(tuple(ctx.shell_profiles()), GO_PATH_LINE),
            depends_on=("golang",),
        ),
        Step("vscode", "Visual Studio Code (Microsoft apt repo)", install_vscode, precondition=dpkg("code")),
        Step("chrome", "Google Chrome", install_chrome, precondition=CommandAvailable("google-chrome", ctx.facts.path)),
        Step("postman", "Postman (snap)", install_postman, precondition=PackageInstalled("snap", ("postman",))),
        Step("docker", "Docker Engine", install_docker, precondition=CommandAvailable("docker", ctx.facts.path)),
        Step("gnome_tweaks", "GNOME Tweaks", install_gnome_tweaks, precondition=dpkg("gnome-tweaks")),
        Step("grub_customizer", "GRUB Customizer (PPA)", install_grub_customizer, precondition=dpkg("grub-customizer")),
        Step("discord", "Discord", install_discord, precondition=dpkg("discord")),
        Step("spotify", "Spotify", install_spotify, precondition=dpkg("spotify-client")),
        sdkman_step(ctx),
        *identity_steps(ctx),
        Step("remove_firefox", "remove Firefox", remove_firefox, precondition=Not(dpkg("firefox"))),
        Step("apt_cleanup", "apt autoremove && apt clean", cleanup),
    ]
