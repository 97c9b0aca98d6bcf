from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import List

from ..lib.command import run_cmd, sudo
from ..lib.guards import CommandAvailable, Not, PackageInstalled, PathExists, ProfileLinePresent
from ..lib.net import run_remote_script
from ..lib.pkg import pacman_install, pacman_remove, pacman_sync_upgrade, yay_install
from ..lib.shellrc import ensure_line_in_all
from .base import Step, StepContext
from .common import identity_steps, lazyvim_step, nvm_steps, sdkman_step

logger = logging.getLogger(__name__)

BASE_PACKAGES = [
    "git",
    "curl",
    "wget",
    "ca-certificates",
    "lsb-release",
    "remmina",
    "openssh",
    "jq",
    "base-devel",
    "unzip",
    "ripgrep",
    "gnome-tweaks",
    "cmake",
    "pkgconf",
    "fontconfig",
    "freetype2",
    "libxcb",
    "xcb-util",
    "python",
    "zsh",
]

YAY_REPO = "https://aur.archlinux.org/yay.git"
RUSTUP_URL = "https://sh.rustup.rs"
CARGO_ENV_LINE = 'source "$HOME/.cargo/env"'
HID_APPLE_CONF = Path("/etc/modprobe.d/hid_apple.conf")
HID_APPLE_OPTIONS = "options hid_apple fnmode=2"

# (step name, AUR package, description)
AUR_APPS = [
    ("vscode", "visual-studio-code-bin", "Visual Studio Code"),
    ("chrome", "google-chrome", "Google Chrome"),
    ("postman", "postman-bin", "Postman"),
    ("grub_customizer", "grub-customizer", "GRUB Customizer"),
    ("discord", "discord", "Discord"),
    ("obsidian", "obsidian", "Obsidian"),
    ("dbeaver", "dbeaver", "DBeaver Community"),
    ("spotify", "spotify", "Spotify"),
    ("neovim", "neovim", "Neovim"),
    ("alacritty", "alacritty", "Alacritty"),
]


def system_upgrade(ctx: StepContext) -> None:
    pacman_sync_upgrade(dry_run=ctx.dry_run)


def install_base_packages(ctx: StepContext) -> None:
    pacman_install(BASE_PACKAGES + ctx.config.extra_packages, dry_run=ctx.dry_run)


def _build_yay(work: Path, dry_run: bool) -> None:
    run_cmd(["git", "clone", YAY_REPO, str(work / "yay")], dry_run=dry_run)
    run_cmd(["makepkg", "-si", "--noconfirm"], cwd=str(work / "yay"), dry_run=dry_run)


def install_yay(ctx: StepContext) -> None:
    if ctx.dry_run:
        _build_yay(Path(tempfile.gettempdir()) / "yay-build", dry_run=True)
        return
    work = Path(tempfile.mkdtemp(prefix="yay-"))
    try:
        _build_yay(work, dry_run=False)
    finally:
        shutil.rmtree(work, ignore_errors=True)


def install_golang(ctx: StepContext) -> None:
    pacman_install(["go"], dry_run=ctx.dry_run)


def install_rustup(ctx: StepContext) -> None:
    run_remote_script(RUSTUP_URL, interpreter=("sh", "-s"), args=("-y",), dry_run=ctx.dry_run)


def add_cargo_env(ctx: StepContext) -> None:
    ensure_line_in_all(ctx.shell_profiles(), CARGO_ENV_LINE, dry_run=ctx.dry_run)


def rust_toolchain(ctx: StepContext) -> None:
    rustup = str(ctx.facts.home_path(".cargo", "bin", "rustup"))
    run_cmd([rustup, "install", "stable"], dry_run=ctx.dry_run)
    run_cmd([rustup, "default", "stable"], dry_run=ctx.dry_run)


def _aur_action(package: str):
    def action(ctx: StepContext) -> None:
        yay_install([package], dry_run=ctx.dry_run)

    return action


def install_docker(ctx: StepContext) -> None:
    pacman_install(["docker"], dry_run=ctx.dry_run)
    run_cmd(sudo(["systemctl", "enable", "--now", "docker"]), dry_run=ctx.dry_run)
    run_cmd(sudo(["usermod", "-aG", "docker", ctx.facts.user]), dry_run=ctx.dry_run)
    logger.info("Docker installed and %s added to the docker group. Re-login may be required.", ctx.facts.user)


def install_nerd_fonts(ctx: StepContext) -> None:
    yay_install(["nerd-fonts-fira-code"], dry_run=ctx.dry_run)
    run_cmd(["fc-cache", "-fv"], dry_run=ctx.dry_run)


def remove_firefox(ctx: StepContext) -> None:
    pacman_remove(["firefox"], dry_run=ctx.dry_run)


def configure_fn_keys(ctx: StepContext) -> None:
    run_cmd(sudo(["tee", str(HID_APPLE_CONF)]), input_text=HID_APPLE_OPTIONS + "\n", dry_run=ctx.dry_run)
    run_cmd(sudo(["mkinitcpio", "-P"]), dry_run=ctx.dry_run)
    logger.info("fnmode=2 set. Reboot to apply.")


def build_steps(ctx: StepContext) -> List[Step]:
    """Arch registry, in execution order. AUR steps depend on yay."""

    def pacman(*packages: str) -> PackageInstalled:
        return PackageInstalled("pacman", packages)

    cargo_bin = str(ctx.facts.home_path(".cargo", "bin"))
    steps: List[Step] = [
        Step("system_upgrade", "pacman -Syu", system_upgrade),
        Step(
            "pacman_packages",
            "base developer packages",
            install_base_packages,
            precondition=pacman(*BASE_PACKAGES, *ctx.config.extra_packages),
            continue_on_failure=False,
        ),
        Step(
            "yay",
            "yay AUR helper",
            install_yay,
            precondition=CommandAvailable("yay", ctx.facts.path),
            continue_on_failure=False,
        ),
        *nvm_steps(ctx),
        Step("golang", "Go", install_golang, precondition=pacman("go")),
        Step(
            "rust",
            "Rust via rustup",
            install_rustup,
            precondition=CommandAvailable("rustup", f"{cargo_bin}:{ctx.facts.path}"),
        ),
        Step(
            "rust_path",
            "cargo env in shell profiles",
            add_cargo_env,
            precondition=ProfileLinePresent(tuple(ctx.shell_profiles()), CARGO_ENV_LINE),
            depends_on=("rust",),
        ),
        Step("rust_toolchain", "stable Rust toolchain", rust_toolchain, depends_on=("rust",)),
    ]

    for name, package, description in AUR_APPS:
        steps.append(
            Step(
                name,
                f"{description} (AUR)",
                _aur_action(package),
                precondition=pacman(package),
                depends_on=("yay",),
            )
        )

    steps += [
        Step("docker", "Docker", install_docker, precondition=pacman("docker")),
        lazyvim_step(ctx),
        Step(
            "nerd_fonts",
            "FiraCode Nerd Font (AUR)",
            install_nerd_fonts,
            precondition=pacman("nerd-fonts-fira-code"),
            depends_on=("yay",),
        ),
        sdkman_step(ctx),
        *identity_steps(ctx),
        Step("remove_firefox", "remove Firefox", remove_firefox, precondition=Not(pacman("firefox"))),
        Step("fn_keys", "F1-F12 as primary keys (hid_apple fnmode=2)", configure_fn_keys, precondition=PathExists(HID_APPLE_CONF)),
    ]
    return steps
