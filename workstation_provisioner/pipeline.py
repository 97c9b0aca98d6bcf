from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import ProvisionError
from .lib.guards import evaluate
from .steps.base import Step, StepContext

logger = logging.getLogger(__name__)


class Outcome(str, enum.Enum):
    PERFORMED = "Performed"
    SKIPPED = "Skipped"
    FAILED = "Failed"


class RunOutcome(str, enum.Enum):
    COMPLETED = "Completed"
    ABORTED = "Aborted"


@dataclass(frozen=True)
class InstallResult:
    step: str
    outcome: Outcome
    message: Optional[str] = None


@dataclass(frozen=True)
class PipelineResult:
    outcome: RunOutcome
    results: Tuple[InstallResult, ...]

    def outcomes(self) -> List[Outcome]:
        return [r.outcome for r in self.results]

    def by_step(self) -> Dict[str, InstallResult]:
        return {r.step: r for r in self.results}


def validate_step_names(steps: Sequence[Step], names: Iterable[str]) -> None:
    known = {s.name for s in steps}
    unknown = sorted(set(names) - known)
    if unknown:
        raise ValueError(f"Unknown step(s): {', '.join(unknown)}")


def run_pipeline(
    *,
    steps: Sequence[Step],
    ctx: StepContext,
    skip: Iterable[str] = (),
    only: Iterable[str] = (),
) -> PipelineResult:
    """Run steps in registry order with guard/dependency/failure semantics.

    Per step: Pending -> Skipped | Performed | Failed. The run is Completed
    unless a prerequisite step fails, in which case every later step not
    excluded by skip/only is recorded Failed and the run is Aborted.
    """

    skip_set = set(skip)
    only_set = set(only)
    results: List[InstallResult] = []
    outcome_of: Dict[str, Outcome] = {}
    aborted_by: Optional[str] = None

    def record(step: Step, outcome: Outcome, message: Optional[str] = None) -> None:
        results.append(InstallResult(step=step.name, outcome=outcome, message=message))
        outcome_of[step.name] = outcome

    for step in steps:
        if step.name in skip_set or (only_set and step.name not in only_set):
            logger.info("Skipping step %s (excluded)", step.name)
            record(step, Outcome.SKIPPED, "excluded")
            continue

        if aborted_by is not None:
            if aborted_by in step.depends_on:
                msg = f"prerequisite {aborted_by} failed"
            else:
                msg = f"not run: aborted after prerequisite {aborted_by} failed"
            logger.error("Step %s: %s", step.name, msg)
            record(step, Outcome.FAILED, msg)
            continue

        failed_deps = [d for d in step.depends_on if outcome_of.get(d) is Outcome.FAILED]
        if failed_deps:
            msg = f"dependency {', '.join(failed_deps)} failed"
            logger.error("Step %s: %s", step.name, msg)
            record(step, Outcome.FAILED, msg)
            if step.prerequisite:
                aborted_by = step.name
            continue

        if evaluate(step.precondition):
            logger.info("Skipping step %s (already satisfied)", step.name)
            record(step, Outcome.SKIPPED, "already satisfied")
            continue

        logger.info("Running step %s: %s", step.name, step.description)
        try:
            step.action(ctx)
        except (ProvisionError, OSError) as e:
            logger.error("Step %s failed: %s", step.name, e)
            record(step, Outcome.FAILED, str(e))
            if step.prerequisite:
                logger.error("Step %s is a prerequisite; aborting the remaining steps", step.name)
                aborted_by = step.name
            continue

        record(step, Outcome.PERFORMED, "dry-run" if ctx.dry_run else None)

    run_outcome = RunOutcome.ABORTED if aborted_by is not None else RunOutcome.COMPLETED
    logger.info("Run %s (%d steps)", run_outcome.value.lower(), len(results))
    return PipelineResult(outcome=run_outcome, results=tuple(results))
