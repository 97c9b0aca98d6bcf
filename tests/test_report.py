import sys

from workstation_provisioner.report import (
    NO_SSH_KEY,
    NOT_INSTALLED,
    ToolProbe,
    dpkg_version,
    generate_report,
    nth_field,
    probe_version,
    read_ssh_public_key,
    render_report,
    report_env,
    snap_version,
)


def test_missing_tool_reports_not_installed():
    assert probe_version(ToolProbe("Ghost", ("no-such-tool-xyz", "--version"))) == NOT_INSTALLED


def test_failing_tool_reports_not_installed():
    probe = ToolProbe("Broken", (sys.executable, "-c", "raise SystemExit(1)"))
    assert probe_version(probe) == NOT_INSTALLED


def test_unparseable_output_reports_not_installed():
    probe = ToolProbe("Odd", (sys.executable, "-c", "print('x')"), nth_field(5))
    assert probe_version(probe) == NOT_INSTALLED


def test_version_parsed():
    probe = ToolProbe("Docker", (sys.executable, "-c", "print('Docker version 27.0.3, build 7d4bcd8')"), nth_field(2))
    assert probe_version(probe) == "27.0.3"


def test_parsers():
    assert dpkg_version("Package: code\nStatus: install ok installed\nVersion: 1.90.0-1718\n") == "1.90.0-1718"
    assert snap_version("Name     Version  Rev\npostman  11.2.0   283\n") == "11.2.0"


def test_generate_report_uses_given_probes(facts):
    rows = generate_report(facts, [ToolProbe("Ghost", ("no-such-tool-xyz",))])
    assert rows == [("Ghost", NOT_INSTALLED)]


def test_report_env_adds_toolchain_dirs(facts):
    env = report_env(facts)
    assert env["PATH"].startswith(facts.path)
    assert "/usr/local/go/bin" in env["PATH"]
    assert env["NVM_DIR"].endswith(".nvm")


def test_ssh_key_section(facts):
    assert read_ssh_public_key(facts) == NO_SSH_KEY
    ssh = facts.home_path(".ssh")
    ssh.mkdir()
    (ssh / "id_ed25519.pub").write_text("ssh-ed25519 AAAA dev@box\n")
    assert read_ssh_public_key(facts) == "ssh-ed25519 AAAA dev@box"


def test_render_report():
    out = render_report([("Git", "2.43.0"), ("Node.js", NOT_INSTALLED)], "ssh-ed25519 AAAA")
    lines = out.splitlines()
    assert lines[0] == "Installed Versions:"
    assert lines[1].startswith("Git:") and lines[1].endswith("2.43.0")
    assert lines[2].endswith(NOT_INSTALLED)
    assert lines[-1] == "ssh-ed25519 AAAA"
