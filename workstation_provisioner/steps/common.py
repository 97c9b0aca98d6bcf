from __future__ import annotations

import logging
import shutil
from typing import List

from ..lib.command import run_cmd
from ..lib.guards import GitIdentityConfigured, PathExists
from ..lib.net import github_latest_tag, run_remote_script
from .base import Step, StepContext

logger = logging.getLogger(__name__)

NVM_REPO = "nvm-sh/nvm"
NVM_INSTALL_URL = "https://raw.githubusercontent.com/nvm-sh/nvm/{version}/install.sh"
SDKMAN_INSTALL_URL = "https://get.sdkman.io"
LAZYVIM_STARTER = "https://github.com/LazyVim/starter"


def nvm_dir(ctx: StepContext) -> str:
    return str(ctx.facts.home_path(".nvm"))


def nvm_shell(ctx: StepContext, script: str) -> None:
    """Run a bash snippet with nvm loaded."""
    run_cmd(
        ["bash", "-c", f'. "$NVM_DIR/nvm.sh" && {script}'],
        env={"NVM_DIR": nvm_dir(ctx)},
        dry_run=ctx.dry_run,
    )


def install_nvm(ctx: StepContext) -> None:
    version = ctx.config.nvm_version
    if version == "latest" and not ctx.dry_run:
        version = github_latest_tag(NVM_REPO)
    logger.info("Installing nvm %s into %s", version, nvm_dir(ctx))
    run_remote_script(
        NVM_INSTALL_URL.format(version=version),
        env={"NVM_DIR": nvm_dir(ctx)},
        dry_run=ctx.dry_run,
    )


def install_node_lts(ctx: StepContext) -> None:
    nvm_shell(ctx, "nvm install --lts && nvm use --lts && nvm alias default 'lts/*'")


def install_sdkman(ctx: StepContext) -> None:
    run_remote_script(SDKMAN_INSTALL_URL, env={"SDKMAN_DIR": str(ctx.facts.home_path(".sdkman"))}, dry_run=ctx.dry_run)


def configure_git_identity(ctx: StepContext) -> None:
    name, email = ctx.config.git_name, ctx.config.git_email
    run_cmd(["git", "config", "--global", "user.name", str(name)], dry_run=ctx.dry_run)
    run_cmd(["git", "config", "--global", "user.email", str(email)], dry_run=ctx.dry_run)


def generate_ssh_key(ctx: StepContext) -> None:
    key = ctx.facts.home_path(".ssh", "id_ed25519")
    comment = ctx.config.ssh_comment or f"{ctx.facts.user}@{ctx.facts.hostname}"
    if not ctx.dry_run:
        key.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    run_cmd(["ssh-keygen", "-t", "ed25519", "-C", comment, "-f", str(key), "-N", ""], dry_run=ctx.dry_run)


def install_lazyvim(ctx: StepContext) -> None:
    target = ctx.facts.home_path(".config", "nvim")
    run_cmd(["git", "clone", "--depth", "1", LAZYVIM_STARTER, str(target)], dry_run=ctx.dry_run)
    if not ctx.dry_run:
        shutil.rmtree(target / ".git", ignore_errors=True)
    logger.info("LazyVim installed at %s", target)


def nvm_steps(ctx: StepContext) -> List[Step]:
    home = ctx.facts.home_path
    return [
        Step(
            name="nvm",
            description="Node Version Manager",
            action=install_nvm,
            precondition=PathExists(home(".nvm")),
        ),
        Step(
            name="node",
            description="latest LTS Node.js via nvm",
            action=install_node_lts,
            precondition=PathExists(home(".nvm", "alias", "default")),
            depends_on=("nvm",),
        ),
    ]


def sdkman_step(ctx: StepContext) -> Step:
    return Step(
        name="sdkman",
        description="SDKMAN! (JVM toolchains)",
        action=install_sdkman,
        precondition=PathExists(ctx.facts.home_path(".sdkman")),
    )


def lazyvim_step(ctx: StepContext) -> Step:
    return Step(
        name="lazyvim",
        description="LazyVim starter configuration",
        action=install_lazyvim,
        precondition=PathExists(ctx.facts.home_path(".config", "nvim")),
    )


def identity_steps(ctx: StepContext) -> List[Step]:
    steps: List[Step] = []
    name, email = ctx.config.git_name, ctx.config.git_email
    if name and email:
        steps.append(
            Step(
                name="git_identity",
                description="global git user.name / user.email",
                action=configure_git_identity,
                precondition=GitIdentityConfigured(name, email),
            )
        )
    else:
        logger.info("git identity not configured; git_identity step not registered")

    steps.append(
        Step(
            name="ssh_key",
            description="ed25519 SSH keypair",
            action=generate_ssh_key,
            precondition=PathExists(ctx.facts.home_path(".ssh", "id_ed25519")),
        )
    )
    return steps
