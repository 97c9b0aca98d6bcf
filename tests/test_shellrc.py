from workstation_provisioner.lib.guards import ProfileLinePresent
from workstation_provisioner.lib.shellrc import ensure_line, ensure_line_in_all, has_line
from workstation_provisioner.pipeline import Outcome, run_pipeline
from workstation_provisioner.steps import debian
from workstation_provisioner.steps.base import Step

GO_LINE = "export PATH=$PATH:/usr/local/go/bin"


def test_ensure_line_appends_once(tmp_path):
    rc = tmp_path / ".bashrc"
    rc.write_text("alias ll='ls -l'")  # no trailing newline
    assert ensure_line(rc, GO_LINE) is True
    assert ensure_line(rc, GO_LINE) is False
    assert rc.read_text() == f"alias ll='ls -l'\n{GO_LINE}\n"


def test_ensure_line_creates_missing_profile(tmp_path):
    rc = tmp_path / ".zshrc"
    assert ensure_line(rc, GO_LINE) is True
    assert has_line(rc, GO_LINE)


def test_dry_run_does_not_write(tmp_path):
    rc = tmp_path / ".zshrc"
    assert ensure_line(rc, GO_LINE, dry_run=True) is True
    assert not rc.exists()


def test_existing_line_with_whitespace_counts(tmp_path):
    rc = tmp_path / ".bashrc"
    rc.write_text(f"  {GO_LINE}  \n")
    assert ensure_line_in_all([rc], GO_LINE) == []


def test_two_runs_leave_no_duplicate_exports(ctx):
    profiles = ctx.shell_profiles()
    step = Step(
        "golang_path",
        "Go PATH export",
        debian.add_golang_path,
        precondition=ProfileLinePresent(tuple(profiles), GO_LINE),
    )
    first = run_pipeline(steps=[step], ctx=ctx)
    second = run_pipeline(steps=[step], ctx=ctx)

    assert first.outcomes() == [Outcome.PERFORMED]
    assert second.outcomes() == [Outcome.SKIPPED]
    for rc in profiles:
        assert rc.read_text().count(GO_LINE) == 1


def test_partial_profile_state_is_completed_without_duplicates(ctx):
    bashrc, zshrc = ctx.shell_profiles()
    bashrc.write_text(f"{GO_LINE}\n")
    debian.add_golang_path(ctx)
    assert bashrc.read_text().count(GO_LINE) == 1
    assert zshrc.read_text().count(GO_LINE) == 1
