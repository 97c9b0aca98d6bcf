from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..config import ProvisionConfig
from ..lib.guards import Precondition
from ..lib.hostfacts import HostFacts


@dataclass(frozen=True)
class StepContext:
    facts: HostFacts
    config: ProvisionConfig
    dry_run: bool = False

    def shell_profiles(self) -> List[Path]:
        return [self.facts.home_path(p) for p in self.config.shell_profiles]


@dataclass(frozen=True)
class Step:
    """A single named, idempotent provisioning step.

    continue_on_failure=False marks a prerequisite: if it fails, the rest of
    the run is aborted.
    """

    name: str
    description: str
    action: Callable[[StepContext], None]
    precondition: Optional[Precondition] = None
    continue_on_failure: bool = True
    depends_on: Tuple[str, ...] = ()

    @property
    def prerequisite(self) -> bool:
        return not self.continue_on_failure
