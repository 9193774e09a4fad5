"""Tests for triplet fact derivation and the static facts provider."""

import pytest

from qualifiers.facts import StaticFactsProvider, facts_for_triplet


@pytest.mark.parametrize("triplet,expected", [
    ("x64-linux", {"arch": "x64", "os": "linux", "linkage": "static", "crt": "dynamic"}),
    ("x64-windows", {"arch": "x64", "os": "windows", "linkage": "dynamic", "crt": "dynamic"}),
    ("x64-windows-static", {"arch": "x64", "os": "windows", "linkage": "static", "crt": "static"}),
    ("x86-windows-static-md", {"arch": "x86", "os": "windows", "linkage": "static", "crt": "dynamic"}),
    ("arm64-osx-dynamic", {"arch": "arm64", "os": "osx", "linkage": "dynamic", "crt": "dynamic"}),
])
def test_facts_for_triplet(triplet, expected):
    assert facts_for_triplet(triplet) == expected


def test_unknown_parts_become_flags():
    facts = facts_for_triplet("x64-linux-release-cuda")
    assert facts["os"] == "linux"
    assert facts["release"] == "1"
    assert facts["cuda"] == "1"


class TestStaticFactsProvider:

    def test_configured_facts_are_used(self):
        provider = StaticFactsProvider({"custom": {"os": "linux", "arch": "riscv64"}})
        facts = provider.facts_for("custom", "x64-linux")
        assert facts["arch"] == "riscv64"
        assert facts["native"] == "0"

    def test_native_when_target_is_host(self):
        provider = StaticFactsProvider()
        assert provider.facts_for("x64-linux", "x64-linux")["native"] == "1"
        assert provider.facts_for("arm64-linux", "x64-linux")["native"] == "0"

    def test_returned_facts_are_copies(self):
        provider = StaticFactsProvider({"t": {"os": "linux"}})
        provider.facts_for("t", "t")["os"] = "windows"
        assert provider.facts_for("t", "t")["os"] == "linux"
