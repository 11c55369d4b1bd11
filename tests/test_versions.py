# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Unit tests for version parsing and the fast-forward window.

Tests parse_tag_version(), parse_branch_version(), parse_version(),
format_version() and in_fast_forward_window() from k8s_repo_tools/versions.py.
"""

from __future__ import annotations

import pytest
import semver

from k8s_repo_tools.errors import ParseError
from k8s_repo_tools.refs import Ref
from k8s_repo_tools.versions import (
    fast_forward_window,
    format_version,
    in_fast_forward_window,
    parse_branch_version,
    parse_tag_version,
    parse_version,
)


class TestParseTagVersion:
    """Tests for parse_tag_version() function."""

    def test_full_tag_ref(self) -> None:
        """Test parsing a full refs/tags/ ref."""
        assert parse_tag_version("refs/tags/v1.17.3") == semver.Version(1, 17, 3)

    def test_ref_object(self) -> None:
        """Test parsing a Ref object."""
        assert parse_tag_version(Ref("refs/tags/v1.17.0-rc.1", "sha")) == semver.Version(
            1, 17, 0, prerelease="rc.1"
        )

    def test_bare_tag(self) -> None:
        """Test parsing a tag without the refs/tags/ prefix."""
        assert parse_tag_version("v1.17.0") == semver.Version(1, 17, 0)

    def test_missing_patch_is_zero(self) -> None:
        """Test that v1.18 parses as 1.18.0."""
        assert parse_tag_version("refs/tags/v1.18") == semver.Version(1, 18, 0)

    def test_without_v_prefix(self) -> None:
        """Test that the leading 'v' is optional."""
        assert parse_tag_version("1.2.3") == semver.Version(1, 2, 3)

    @pytest.mark.parametrize(
        "tag",
        [
            "refs/tags/some-non-semver-ref",
            "refs/tags/v11111",
            "refs/tags/v1.23.0-alpha:0",
            "refs/tags/v1.2.3.4",
            "",
        ],
    )
    def test_invalid_tags_raise(self, tag: str) -> None:
        """Test that non-SemVer tags raise ParseError."""
        with pytest.raises(ParseError):
            parse_tag_version(tag)

    def test_error_carries_ref(self) -> None:
        """Test that ParseError keeps the original ref for diagnostics."""
        with pytest.raises(ParseError) as exc_info:
            parse_tag_version("refs/tags/foo")
        assert exc_info.value.ref == "refs/tags/foo"
        assert "refs/tags/foo" in str(exc_info.value)


class TestParseBranchVersion:
    """Tests for parse_branch_version() function."""

    def test_default_prefix(self) -> None:
        """Test parsing a release-X.Y branch ref."""
        assert parse_branch_version("refs/heads/release-1.17") == semver.Version(1, 17, 0)

    def test_custom_prefix(self) -> None:
        """Test parsing with a custom prefix."""
        assert parse_branch_version("refs/heads/release/v2.3", "release/v") == semver.Version(2, 3, 0)

    def test_short_branch_name(self) -> None:
        """Test parsing a branch without refs/heads/."""
        assert parse_branch_version("release-1.17") == semver.Version(1, 17, 0)

    def test_missing_prefix_raises(self) -> None:
        """Test that a branch without the prefix raises ParseError."""
        with pytest.raises(ParseError, match="prefix"):
            parse_branch_version("refs/heads/master")

    def test_non_semver_raises(self) -> None:
        """Test that a prefixed but non-SemVer branch raises ParseError."""
        with pytest.raises(ParseError):
            parse_branch_version("refs/heads/release-next")


class TestParseVersion:
    """Tests for parse_version() and format_version()."""

    def test_pre_release(self) -> None:
        """Test that pre-release labels are kept."""
        assert parse_version("v1.23.0-beta.0").prerelease == "beta.0"

    def test_format_version(self) -> None:
        """Test the canonical tag form."""
        assert format_version(semver.Version(1, 17, 0, prerelease="rc.1")) == "v1.17.0-rc.1"

    def test_pre_release_ordering(self) -> None:
        """Test SemVer 2.0 precedence for pre-releases."""
        assert parse_version("v1.18.0-rc.1") < parse_version("v1.18.0")
        assert parse_version("v1.18.0-alpha.3") < parse_version("v1.18.0-beta.0")
        assert parse_version("v1.18.0-beta.2") < parse_version("v1.18.0-beta.10")


class TestFastForwardWindow:
    """Tests for in_fast_forward_window() and fast_forward_window()."""

    @pytest.fixture
    def branch(self) -> semver.Version:
        return parse_branch_version("refs/heads/release-1.17")

    @pytest.mark.parametrize(
        ("tag", "expected"),
        [
            ("v1.17.0-alpha.3", False),
            ("v1.17.0-beta.0", True),
            ("v1.17.0-beta.2", True),
            ("v1.17.0-rc.0", True),
            ("v1.17.0-rc.1", False),
            ("v1.17.0", False),
            ("v1.17.1", False),
            ("v1.16.0-beta.0", False),
        ],
    )
    def test_window(self, branch: semver.Version, tag: str, expected: bool) -> None:
        """Test the beta.0 inclusive and rc.1 exclusive bounds."""
        assert in_fast_forward_window(parse_tag_version(tag), branch) is expected

    def test_bounds(self, branch: semver.Version) -> None:
        """Test the window bounds."""
        lower, upper = fast_forward_window(branch)
        assert str(lower) == "1.17.0-beta.0"
        assert str(upper) == "1.17.0-rc.1"
