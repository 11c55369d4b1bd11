# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Unit tests for the release notes range start resolver.

Tests resolve_range_start() and its helpers from k8s_repo_tools/release_notes.py.
"""

from __future__ import annotations

import logging

import pytest
import semver

from k8s_repo_tools.errors import ParseError
from k8s_repo_tools.refs import Ref
from k8s_repo_tools.release_notes import (
    find_exact_version_ref,
    find_largest_for_major_ref,
    find_previous_minor_ref,
    find_previous_pre_release,
    resolve_range_start,
)
from tests.conftest import make_tag


def tags(*names: str) -> list[Ref]:
    return [make_tag(name) for name in names]


class TestResolveRangeStart:
    """Tests for resolve_range_start() function."""

    @pytest.mark.parametrize(
        ("target", "all_tags", "expected"),
        [
            pytest.param("v0.0.0", [], "v0.0.0", id="first-release-self-range"),
            pytest.param(
                "v1.17.0",
                ["some-non-semver-ref", "v1.16.0", "v1.17.0"],
                "v1.16.0",
                id="minor-release",
            ),
            pytest.param(
                "v2.0.0",
                ["some-non-semver-ref", "v1.63.0", "v1.64.0", "v2.0.0"],
                "v1.64.0",
                id="major-release",
            ),
            pytest.param("v1.23.0", ["v1.63.0"], "v1.23.0", id="no-reference"),
            pytest.param(
                "v1.23.2",
                ["some-non-semver-ref", "v1.23.2", "v1.23.1", "v1.23.0"],
                "v1.23.1",
                id="previous-patch",
            ),
            pytest.param("v1.23.2", ["v1.23.0"], "v1.23.2", id="missing-previous-patch"),
            pytest.param("v1.23.0-alpha.0", [], "v1.23.0-alpha.0", id="alpha-0"),
            pytest.param(
                "v1.23.0-alpha.0",
                ["v1.22.0", "v1.22.5"],
                "v1.23.0-alpha.0",
                id="alpha-0-ignores-tags",
            ),
            pytest.param(
                "v1.23.0-alpha.1",
                ["v1.23.0-alpha.0", "v1.23.0", "v1.22.0"],
                "v1.22.0",
                id="alpha-1-previous-minor",
            ),
            pytest.param(
                "v2.0.0-alpha.1",
                ["v2.0.0-alpha.0", "v2.0.0-alpha.1", "v1.23.0", "v1.22.0"],
                "v1.23.0",
                id="alpha-1-previous-major",
            ),
            pytest.param(
                "v1.23.0-beta.0",
                ["some-non-semver-ref", "v1.23.0-beta.0", "v1.23.0-alpha.3", "v1.22.0-rc.2", "v1.22.0-rc.1"],
                "v1.23.0-alpha.3",
                id="beta-0-previous-pre-release",
            ),
            pytest.param(
                "v1.23.0-beta.0",
                ["v1.23.0-alpha.3", "v1.22.0-rc.1"],
                "v1.23.0-alpha.3",
                id="pre-release-stays-in-minor",
            ),
            pytest.param(
                "v1.24.0-rc.1",
                ["v1.24.0-beta.1", "v1.24.0-alpha.3", "v1.24.0-alpha.2"],
                "v1.24.0-beta.1",
                id="rc-1-previous-pre-release",
            ),
            pytest.param(
                "v1.24.0-beta.2",
                ["v1.23.0-rc.3", "v1.23.0"],
                "v1.24.0-beta.2",
                id="pre-release-without-predecessor",
            ),
        ],
    )
    def test_resolve(self, target: str, all_tags: list[str], expected: str) -> None:
        """Test the range start for each kind of release."""
        result = resolve_range_start(f"refs/tags/{target}", tags(*all_tags))
        assert result.name == f"refs/tags/{expected}"

    @pytest.mark.parametrize(
        "target",
        ["v1.23.0-alpha:0", "v11111", "v1.23.0-rc1", "v1.23.0-rc.1.2"],
    )
    def test_invalid_target_raises(self, target: str) -> None:
        """Test that a non-SemVer target or malformed pre-release raises."""
        with pytest.raises(ParseError):
            resolve_range_start(f"refs/tags/{target}", [])

    def test_ref_target_is_returned_on_self_range(self) -> None:
        """Test that the target Ref itself is returned, SHA included."""
        target = make_tag("v1.23.0-alpha.0", "abc")
        assert resolve_range_start(target, []) is target

    def test_self_range_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that falling back to the target is logged."""
        with caplog.at_level(logging.WARNING):
            resolve_range_start("refs/tags/v1.23.0", [])
        assert "refs/tags/v1.23.0" in caplog.text

    def test_bare_tag_name(self) -> None:
        """Test that the target may be given without refs/tags/."""
        assert resolve_range_start("v1.17.1", tags("v1.17.0")).short_name == "v1.17.0"


class TestHelpers:
    """Tests for the resolver helpers."""

    def test_find_exact_version_ref(self) -> None:
        """Test that the first exact match wins."""
        refs = [make_tag("v1.2.0", "first"), make_tag("v1.2", "second")]
        assert find_exact_version_ref(semver.Version(1, 2, 0), refs).sha == "first"
        assert find_exact_version_ref(semver.Version(1, 3, 0), refs) is None

    def test_find_largest_for_major_excludes_floor(self) -> None:
        """Test that MAJOR.0.0 and its pre-releases are not candidates."""
        refs = tags("v1.0.0", "v1.0.0-rc.1")
        assert find_largest_for_major_ref(1, refs) is None

    def test_find_largest_for_major(self) -> None:
        """Test that the largest tag of the MAJOR is returned."""
        refs = tags("v1.9.0", "v1.10.0", "v1.10.1-rc.0", "v2.1.0")
        assert find_largest_for_major_ref(1, refs).short_name == "v1.10.1-rc.0"

    def test_find_previous_pre_release_skips_finals(self) -> None:
        """Test that only pre-releases of the same MAJOR.MINOR qualify."""
        refs = tags("v1.24.0-alpha.1", "v1.23.5", "v1.24.0-beta.3")
        target = semver.Version(1, 24, 0, prerelease="beta.2")
        assert find_previous_pre_release(target, refs).short_name == "v1.24.0-alpha.1"

    def test_find_previous_minor_for_v0(self) -> None:
        """Test that 0.0.0 has no previous MINOR."""
        assert find_previous_minor_ref(semver.Version(0, 0, 0), tags("v0.0.0")) is None
