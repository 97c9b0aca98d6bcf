from workstation_provisioner.errors import ExternalCommandFailure, UnsupportedArchitecture
from workstation_provisioner.lib.guards import PathExists
from workstation_provisioner.lib.hostfacts import vendor_arch
from workstation_provisioner.pipeline import Outcome, RunOutcome, run_pipeline, validate_step_names
from workstation_provisioner.steps.base import Step


class Always:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def holds(self):
        self.calls += 1
        return self.value

    def describe(self):
        return f"always {self.value}"


def ok(calls, name):
    def action(ctx):
        calls.append(name)

    return action


def fail(calls, name):
    def action(ctx):
        calls.append(name)
        raise ExternalCommandFailure(f"{name} exited 1", argv=[name], returncode=1)

    return action


def test_prerequisite_failure_scenario(ctx):
    calls = []
    steps = [
        Step("a", "A", ok(calls, "a"), precondition=Always(False)),
        Step("b", "B", ok(calls, "b"), precondition=Always(True)),
        Step("c", "C", fail(calls, "c"), continue_on_failure=False),
        Step("d", "D", ok(calls, "d"), depends_on=("c",)),
    ]
    result = run_pipeline(steps=steps, ctx=ctx)
    assert result.outcomes() == [Outcome.PERFORMED, Outcome.SKIPPED, Outcome.FAILED, Outcome.FAILED]
    assert result.outcome is RunOutcome.ABORTED
    assert calls == ["a", "c"]
    assert "prerequisite c failed" in result.by_step()["d"].message


def test_abort_marks_all_remaining_steps_failed(ctx):
    calls = []
    steps = [
        Step("yay", "AUR helper", fail(calls, "yay"), continue_on_failure=False),
        Step("vscode", "AUR", ok(calls, "vscode"), depends_on=("yay",)),
        Step("ssh_key", "unrelated", ok(calls, "ssh_key")),
    ]
    result = run_pipeline(steps=steps, ctx=ctx)
    assert result.outcome is RunOutcome.ABORTED
    assert result.outcomes() == [Outcome.FAILED] * 3
    assert calls == ["yay"]


def test_best_effort_failure_continues(ctx):
    calls = []
    steps = [
        Step("discord", "chat client", fail(calls, "discord")),
        Step("spotify", "music", ok(calls, "spotify")),
        Step("ssh_key", "key", ok(calls, "ssh_key")),
    ]
    result = run_pipeline(steps=steps, ctx=ctx)
    assert result.outcome is RunOutcome.COMPLETED
    assert result.outcomes() == [Outcome.FAILED, Outcome.PERFORMED, Outcome.PERFORMED]
    assert calls == ["discord", "spotify", "ssh_key"]


def test_unsupported_arch_fails_step_and_dependents_only(ctx):
    calls = []

    def chrome(c):
        vendor_arch("mips", "chrome")

    steps = [
        Step("chrome", "browser", chrome),
        Step("chrome_config", "needs chrome", ok(calls, "chrome_config"), depends_on=("chrome",)),
        Step("postman", "other", ok(calls, "postman")),
    ]
    result = run_pipeline(steps=steps, ctx=ctx)
    assert result.outcome is RunOutcome.COMPLETED
    assert result.outcomes() == [Outcome.FAILED, Outcome.FAILED, Outcome.PERFORMED]
    assert "Unsupported architecture" in result.by_step()["chrome"].message
    assert calls == ["postman"]


def test_dependency_skipped_by_precondition_still_runs_dependent(ctx):
    calls = []
    steps = [
        Step("golang", "go", ok(calls, "golang"), precondition=Always(True)),
        Step("golang_path", "path", ok(calls, "golang_path"), depends_on=("golang",)),
    ]
    result = run_pipeline(steps=steps, ctx=ctx)
    assert result.outcomes() == [Outcome.SKIPPED, Outcome.PERFORMED]


def test_precondition_evaluated_once_per_step(ctx):
    guard = Always(False)
    run_pipeline(steps=[Step("a", "A", lambda c: None, precondition=guard)], ctx=ctx)
    assert guard.calls == 1


def test_skip_and_only(ctx):
    calls = []
    steps = [Step(n, n, ok(calls, n)) for n in ("a", "b", "c")]

    result = run_pipeline(steps=steps, ctx=ctx, skip=["b"])
    assert result.outcomes() == [Outcome.PERFORMED, Outcome.SKIPPED, Outcome.PERFORMED]
    assert result.by_step()["b"].message == "excluded"

    calls.clear()
    result = run_pipeline(steps=steps, ctx=ctx, only=["c"])
    assert result.outcomes() == [Outcome.SKIPPED, Outcome.SKIPPED, Outcome.PERFORMED]
    assert calls == ["c"]


def test_os_error_in_action_is_recorded(ctx):
    def boom(c):
        raise PermissionError("denied")

    result = run_pipeline(steps=[Step("x", "x", boom)], ctx=ctx)
    assert result.outcomes() == [Outcome.FAILED]
    assert result.outcome is RunOutcome.COMPLETED


def test_path_guard_skips_after_first_run(ctx, tmp_path):
    marker = tmp_path / "installed"

    def install(c):
        marker.write_text("ok")

    steps = [Step("tool", "tool", install, precondition=PathExists(marker))]
    first = run_pipeline(steps=steps, ctx=ctx)
    second = run_pipeline(steps=steps, ctx=ctx)
    assert first.outcomes() == [Outcome.PERFORMED]
    assert second.outcomes() == [Outcome.SKIPPED]


def test_validate_step_names():
    steps = [Step("a", "A", lambda c: None)]
    validate_step_names(steps, ["a"])
    try:
        validate_step_names(steps, ["a", "nope"])
        assert False, "Should have raised"
    except ValueError as e:
        assert "nope" in str(e)


def test_unsupported_architecture_is_not_swallowed_outside_pipeline():
    try:
        vendor_arch("mips", "go")
        assert False, "Should have raised"
    except UnsupportedArchitecture as e:
        assert e.machine == "mips"
