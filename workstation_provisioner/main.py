from __future__ import annotations

import argparse
import logging
from typing import List, Mapping, Optional, Sequence

from .config import load_config
from .errors import ConfigError, UnsupportedOSFamily
from .lib.hostfacts import HostFacts, gather_host_facts
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import Outcome, PipelineResult, RunOutcome, run_pipeline, validate_step_names
from .report import generate_report, read_ssh_public_key, render_report
from .steps import Step, StepContext, build_registry

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ABORTED = 1


def _split_names(values: Optional[Sequence[str]]) -> List[str]:
    names: List[str] = []
    for v in values or []:
        names.extend(n.strip() for n in v.split(",") if n.strip())
    return names


def run(
    *,
    facts: HostFacts,
    ctx: StepContext,
    steps: Sequence[Step],
    skip: Sequence[str] = (),
    only: Sequence[str] = (),
) -> PipelineResult:
    """Run the registry, then print the version report (always, even when aborted)."""

    try:
        result = run_pipeline(steps=steps, ctx=ctx, skip=skip, only=only)
    finally:
        print()
        print(render_report(generate_report(facts), read_ssh_public_key(facts)))

    failed = [r for r in result.results if r.outcome is Outcome.FAILED]
    for r in failed:
        logger.warning("Failed: %s (%s)", r.step, r.message)
    if result.outcome is RunOutcome.ABORTED:
        logger.error("Provisioning aborted; fix the failed prerequisite and re-run")
    else:
        logger.info("All done. Restart your terminal or source your shell config.")
    return result


def main(argv: Optional[list[str]] = None, *, environ: Optional[Mapping[str, str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="provision",
        description="Provision a fresh Debian/Ubuntu or Arch developer workstation.",
    )
    p.add_argument("--dry-run", action="store_true", help="Log commands without executing them")
    p.add_argument("--skip", action="append", default=None, metavar="STEP[,STEP...]", help="Steps to skip")
    p.add_argument("--only", action="append", default=None, metavar="STEP[,STEP...]", help="Run only these steps")
    p.add_argument("--config", default=None, help="Path to YAML config")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to provisioner log")
    p.add_argument("--list", action="store_true", help="List the steps for this host and exit")
    p.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug output (command stdout/stderr) on the console"
    )

    args = p.parse_args(argv)

    configure_logging(log_path=args.log, verbose=bool(args.verbose))

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        p.error(str(e))

    facts = gather_host_facts(environ)
    ctx = StepContext(facts=facts, config=cfg, dry_run=bool(args.dry_run))

    try:
        steps = build_registry(ctx)
    except UnsupportedOSFamily as e:
        p.error(str(e))

    skip = _split_names(args.skip) + cfg.skip
    only = _split_names(args.only)
    try:
        validate_step_names(steps, [*skip, *only])
    except ValueError as e:
        p.error(str(e))

    if args.list:
        for s in steps:
            flags = " [prerequisite]" if s.prerequisite else ""
            deps = f" (after {', '.join(s.depends_on)})" if s.depends_on else ""
            print(f"{s.name:<18} {s.description}{deps}{flags}")
        return EXIT_OK

    result = run(facts=facts, ctx=ctx, steps=steps, skip=skip, only=only)
    return EXIT_ABORTED if result.outcome is RunOutcome.ABORTED else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
