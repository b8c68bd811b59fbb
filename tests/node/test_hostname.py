import pytest

from yurtboot.errors import HostnameLookupFailed, InvalidHostname
from yurtboot.node.hostname import get_pod_manifest_path, resolve_hostname


def _host():
    return "test_host"


@pytest.mark.parametrize(
    "override, expected",
    [
        ("TEST_HOST", "test_host"),
        ("    test_host", "test_host"),
        ("test_host", "test_host"),
        ("", "test_host"),
    ],
)
def test_resolve_hostname(override, expected):
    assert resolve_hostname(override, lookup=_host) == expected


def test_blank_override_is_rejected_not_defaulted():
    with pytest.raises(InvalidHostname):
        resolve_hostname("    ", lookup=_host)


def test_system_hostname_is_normalized():
    assert resolve_hostname("", lookup=lambda: " Edge-01\n") == "edge-01"


def test_lookup_failure_is_wrapped():
    def broken():
        raise OSError("no hostname")

    with pytest.raises(HostnameLookupFailed) as ei:
        resolve_hostname("", lookup=broken)
    assert isinstance(ei.value.__cause__, OSError)


def test_pod_manifest_path():
    assert get_pod_manifest_path() == "/etc/kubernetes/manifests"
