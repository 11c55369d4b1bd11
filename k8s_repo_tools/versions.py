# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Semantic version parsing for tag and branch refs.

Tags look like ``refs/tags/vX.Y.Z[-pre]`` and branches like
``refs/heads/<prefix>X.Y``. A missing PATCH component is treated as ``0``.

References:
    - Semantic Versioning 2.0.0: https://semver.org/
    - python-semver: https://python-semver.readthedocs.io/
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import semver

from k8s_repo_tools.errors import ParseError

if TYPE_CHECKING:
    from k8s_repo_tools.refs import Ref

TAG_REF_PREFIX = "refs/tags/"
BRANCH_REF_PREFIX = "refs/heads/"

# Default release branch prefix and trunk branch name.
PREFIX_BRANCH = "release-"
BRANCH_MASTER = "master"


def _ref_name(ref: Ref | str) -> str:
    return ref if isinstance(ref, str) else ref.name


def _strip_prefix(value: str, prefix: str) -> str:
    if value.startswith(prefix):
        return value[len(prefix) :]
    return value


def parse_version(version: str, ref: str | None = None) -> semver.Version:
    """Parse a bare version string, tolerating a leading 'v' and a missing PATCH.

    Args:
        version: Version string (e.g., 'v1.18', '1.18.2', 'v1.18.0-rc.1').
        ref: Original ref to report in errors. Defaults to ``version``.

    Returns:
        The parsed semver.Version.

    Raises:
        ParseError: If the string is not a valid semantic version.

    Examples:
        >>> str(parse_version("v1.18"))
        '1.18.0'
    """
    original = ref if ref is not None else version
    if version.startswith("v"):
        version = version[1:]
    # A version without a .PATCH component.
    if version.count(".") < 2:
        version = f"{version}.0"
    try:
        return semver.Version.parse(version)
    except (ValueError, TypeError) as e:
        raise ParseError(original, str(e)) from e


def parse_tag_version(ref: Ref | str) -> semver.Version:
    """Convert a tag ref to a semantic version.

    Args:
        ref: A Ref or a ref string (e.g., 'refs/tags/v1.17.0', 'v1.18').

    Returns:
        The parsed semver.Version.

    Raises:
        ParseError: If the tag is not SemVer.
    """
    name = _ref_name(ref)
    return parse_version(_strip_prefix(name, TAG_REF_PREFIX), ref=name)


def parse_branch_version(ref: Ref | str, prefix: str = PREFIX_BRANCH) -> semver.Version:
    """Convert a versioned branch ref to a semantic version.

    Args:
        ref: A Ref or a ref string (e.g., 'refs/heads/release-1.17').
        prefix: Branch name prefix in front of MAJOR.MINOR.

    Returns:
        The parsed semver.Version, with PATCH 0 for 'prefixMAJOR.MINOR'.

    Raises:
        ParseError: If the branch lacks the prefix or is not SemVer.

    Examples:
        >>> str(parse_branch_version("refs/heads/release-1.17"))
        '1.17.0'
    """
    name = _ref_name(ref)
    branch = _strip_prefix(name, BRANCH_REF_PREFIX)
    if not branch.startswith(prefix):
        raise ParseError(name, f"branch does not have the prefix '{prefix}'")
    return parse_version(branch[len(prefix) :], ref=name)


def format_version(version: semver.Version) -> str:
    """Return the canonical tag form of a version (e.g., 'v1.17.0-rc.1')."""
    return f"v{version}"


def same_minor(a: semver.Version, b: semver.Version) -> bool:
    """Check whether two versions share MAJOR.MINOR."""
    return a.major == b.major and a.minor == b.minor


def fast_forward_window(branch_version: semver.Version) -> tuple[semver.Version, semver.Version]:
    """Return the fast-forward window bounds for a release branch version.

    The lower bound is inclusive and the upper bound exclusive.

    References:
        - https://github.com/kubernetes/sig-release/blob/d6a4a0c/release-engineering/role-handbooks/branch-manager.md#branch-fast-forward
    """
    lower = semver.Version(branch_version.major, branch_version.minor, 0, prerelease="beta.0")
    upper = semver.Version(branch_version.major, branch_version.minor, 0, prerelease="rc.1")
    return lower, upper


def in_fast_forward_window(latest_tag: semver.Version, branch_version: semver.Version) -> bool:
    """Check if a release branch's latest tag allows fast-forwarding.

    A branch may be fast-forwarded to trunk while its latest tag is between
    MAJOR.MINOR.0-beta.0 (inclusive) and MAJOR.MINOR.0-rc.1 (exclusive).

    Args:
        latest_tag: Version of the latest tag on the branch.
        branch_version: Version of the release branch.

    Returns:
        True if the tag is inside the window.

    Examples:
        >>> branch = parse_branch_version("release-1.17")
        >>> in_fast_forward_window(parse_tag_version("v1.17.0-beta.2"), branch)
        True
        >>> in_fast_forward_window(parse_tag_version("v1.17.0-rc.1"), branch)
        False
    """
    lower, upper = fast_forward_window(branch_version)
    return lower <= latest_tag < upper
