from __future__ import annotations

from typing import List

from ..errors import UnsupportedOSFamily
from . import arch, debian
from .base import Step, StepContext

REGISTRIES = {
    "debian": debian.build_steps,
    "arch": arch.build_steps,
}


def build_registry(ctx: StepContext) -> List[Step]:
    builder = REGISTRIES.get(ctx.facts.os_family)
    if builder is None:
        raise UnsupportedOSFamily(ctx.facts.os_family)
    steps = builder(ctx)
    names = [s.name for s in steps]
    if len(names) != len(set(names)):
        raise ValueError(f"Duplicate step names in {ctx.facts.os_family} registry")
    return steps


__all__ = ["Step", "StepContext", "build_registry", "REGISTRIES"]
