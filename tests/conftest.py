from pathlib import Path

import pytest

from workstation_provisioner.config import ProvisionConfig
from workstation_provisioner.lib.hostfacts import HostFacts
from workstation_provisioner.steps.base import StepContext


@pytest.fixture
def facts(tmp_path: Path) -> HostFacts:
    home = tmp_path / "home"
    home.mkdir()
    return HostFacts(
        machine="x86_64",
        os_family="debian",
        home=str(home),
        user="dev",
        path=str(tmp_path / "bin"),
        hostname="box",
    )


@pytest.fixture
def ctx(facts: HostFacts) -> StepContext:
    return StepContext(facts=facts, config=ProvisionConfig(), dry_run=False)
