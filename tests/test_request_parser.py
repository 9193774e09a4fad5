"""Tests for package request tokens and version text parsing."""

import pytest

from common.errors import InvalidVersion
from versioning.models import VersionScheme
from versioning.parser import (
    is_valid_package_name,
    parse_package_token,
    parse_version_text,
    tokenize_rightmost,
)


class TestTokenizeRightmost:

    def test_splits_on_last_separator(self):
        assert tokenize_rightmost("a:b:c", ":") == ("a:b", "c")

    def test_missing_separator(self):
        assert tokenize_rightmost(" zlib ", "@") == ("zlib", None)

    def test_empty_tail_is_none(self):
        assert tokenize_rightmost("zlib@", "@") == ("zlib", None)


class TestParseVersionText:

    def test_port_revision_suffix(self):
        version = parse_version_text("1.2#3")
        assert version.text == "1.2"
        assert version.port_revision == 3
        assert version.scheme is VersionScheme.RELAXED

    def test_explicit_revision_wins(self):
        assert parse_version_text("1.2#3", port_revision=5).port_revision == 5

    def test_validates_under_scheme(self):
        with pytest.raises(InvalidVersion):
            parse_version_text("1.2", VersionScheme.SEMVER)

    def test_no_scheme_skips_validation(self):
        version = parse_version_text("anything goes", None)
        assert version.scheme is None

    def test_bad_revision(self):
        with pytest.raises(InvalidVersion):
            parse_version_text("1.2#x")


class TestParsePackageToken:
    """Tokens of the form name[features][:host][@version]."""

    def test_plain_name(self):
        request = parse_package_token("zlib")
        assert request.name == "zlib"
        assert request.features == frozenset()
        assert request.default_features is True
        assert request.version is None
        assert request.host is False
        assert request.raw_token == "zlib"

    def test_features(self):
        request = parse_package_token("curl[ssl, http2]")
        assert request.features == frozenset({"ssl", "http2"})
        assert request.default_features is True

    def test_core_suppresses_defaults(self):
        request = parse_package_token("curl[core,ssl]")
        assert request.default_features is False
        assert "ssl" in request.features

    def test_host_qualifier(self):
        assert parse_package_token("protobuf:host").host is True

    def test_version_has_no_scheme(self):
        request = parse_package_token("fmt[core]:host@10.1.0#2")
        assert request.host is True
        assert request.version.text == "10.1.0"
        assert request.version.port_revision == 2
        assert request.version.scheme is None

    @pytest.mark.parametrize("token", ["Zlib", "zlib:arm64-linux", "zl_ib", "curl[ssl", "-zlib", ""])
    def test_invalid_tokens(self, token):
        with pytest.raises(ValueError):
            parse_package_token(token)


@pytest.mark.parametrize("name,valid", [
    ("zlib", True),
    ("boost-asio", True),
    ("7zip", True),
    ("boost--asio", False),
    ("Boost", False),
    ("boost-", False),
])
def test_package_name_rules(name, valid):
    assert is_valid_package_name(name) is valid
