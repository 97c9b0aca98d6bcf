import pytest

from workstation_provisioner.errors import UnsupportedArchitecture
from workstation_provisioner.lib.hostfacts import detect_os_family, gather_host_facts, resolve_arch, vendor_arch


def test_amd64_aliases_share_a_tag():
    assert resolve_arch("amd64") == resolve_arch("x86_64") == "amd64"


def test_arm64_aliases_share_a_tag():
    assert resolve_arch("arm64") == resolve_arch("aarch64") == "arm64"


def test_unknown_arch_rejected():
    with pytest.raises(UnsupportedArchitecture):
        resolve_arch("mips")


def test_vendor_tokens():
    assert vendor_arch("x86_64", "go") == "amd64"
    assert vendor_arch("aarch64", "go") == "arm64"
    assert vendor_arch("aarch64", "debian") == "arm64"
    assert vendor_arch("amd64", "chrome") == "amd64"


def test_chrome_has_no_arm64_build():
    with pytest.raises(UnsupportedArchitecture) as exc:
        vendor_arch("aarch64", "chrome")
    assert exc.value.vendor == "chrome"


@pytest.mark.parametrize(
    "content,expected",
    [
        ('ID=ubuntu\nID_LIKE=debian\n', "debian"),
        ('ID="debian"\n', "debian"),
        ("ID=pop\nID_LIKE=\"ubuntu debian\"\n", "debian"),
        ("ID=arch\n", "arch"),
        ("ID=endeavouros\nID_LIKE=arch\n", "arch"),
        ("ID=fedora\n", "unknown"),
    ],
)
def test_detect_os_family(tmp_path, content, expected):
    p = tmp_path / "os-release"
    p.write_text(content)
    assert detect_os_family(p) == expected


def test_missing_os_release_is_unknown(tmp_path):
    assert detect_os_family(tmp_path / "missing") == "unknown"


def test_gather_host_facts_reads_given_environment(tmp_path):
    p = tmp_path / "os-release"
    p.write_text("ID=arch\n")
    facts = gather_host_facts(
        {"HOME": "/home/alice", "USER": "alice", "PATH": "/usr/bin"},
        machine="aarch64",
        os_release=p,
    )
    assert facts.os_family == "arch"
    assert facts.machine == "aarch64"
    assert facts.home == "/home/alice"
    assert facts.user == "alice"
    assert facts.path == "/usr/bin"
    assert str(facts.home_path(".nvm")) == "/home/alice/.nvm"
