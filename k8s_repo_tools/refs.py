# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Ref filtering and selection for tag and branch synchronization.

All functions here are pure over in-memory lists. Refs that cannot be parsed
as versions are skipped with a warning instead of failing the whole batch.

References:
    - Semantic Versioning 2.0.0: https://semver.org/
    - Git references: https://docs.github.com/en/rest/git/refs
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import semver

from k8s_repo_tools.errors import NotFoundError, ParseError
from k8s_repo_tools.versions import (
    BRANCH_MASTER,
    BRANCH_REF_PREFIX,
    PREFIX_BRANCH,
    TAG_REF_PREFIX,
    parse_branch_version,
    parse_tag_version,
    same_minor,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ref:
    """A Git reference: full name (refs/tags/..., refs/heads/...) and target SHA."""

    name: str
    sha: str = ""
    url: str = ""

    @property
    def short_name(self) -> str:
        """Return the name without the refs/tags/ or refs/heads/ prefix."""
        for prefix in (TAG_REF_PREFIX, BRANCH_REF_PREFIX):
            if self.name.startswith(prefix):
                return self.name[len(prefix) :]
        return self.name

    def to_dict(self) -> dict[str, object]:
        """Return the ref in the GitHub API reference JSON shape."""
        return {
            "ref": self.name,
            "url": self.url,
            "object": {"sha": self.sha},
        }


def format_ref_list(refs: Iterable[Ref]) -> str:
    """Format refs as a compact list of {"ref", "sha"} objects for logging."""
    return json.dumps([{"ref": ref.name, "sha": ref.sha} for ref in refs])


def trim_tags(refs: Iterable[Ref], min_version: semver.Version) -> list[Ref]:
    """Return the tags that are SemVer and newer or equal than a minimum version.

    Args:
        refs: Tag refs to filter.
        min_version: Minimum version, compared with full SemVer precedence.

    Returns:
        The surviving refs in input order.

    Examples:
        >>> refs = [Ref("refs/tags/v1.16.0"), Ref("refs/tags/v1.17.0"), Ref("refs/tags/foo")]
        >>> [r.name for r in trim_tags(refs, parse_tag_version("v1.17.0"))]
        ['refs/tags/v1.17.0']
    """
    result = []
    for ref in refs:
        try:
            version = parse_tag_version(ref)
        except ParseError as e:
            logger.warning("%s", e)
            continue
        if version < min_version:
            logger.warning("Skipping ref '%s': version is older than the minimum version", ref.name)
            continue
        result.append(ref)
    return result


def trim_branches(
    refs: Iterable[Ref],
    min_version: semver.Version,
    prefix: str = PREFIX_BRANCH,
) -> list[Ref]:
    """Return the versioned branches whose MAJOR.MINOR is at least the minimum version's.

    PATCH and pre-release of ``min_version`` are ignored.

    Args:
        refs: Branch refs to filter.
        min_version: Minimum version.
        prefix: Branch name prefix.

    Returns:
        The surviving refs in input order.
    """
    result = []
    for ref in refs:
        try:
            version = parse_branch_version(ref, prefix)
        except ParseError as e:
            logger.warning("%s", e)
            continue
        if (version.major, version.minor) < (min_version.major, min_version.minor):
            logger.warning(
                "Skipping ref '%s': MAJOR.MINOR is older than the minimum version",
                ref.name,
            )
            continue
        result.append(ref)
    return result


def find_new_refs(src: Iterable[Ref], dest: Iterable[Ref]) -> list[Ref]:
    """Return the refs of src whose names are not present in dest.

    SHAs are ignored. The order of src is preserved.

    Examples:
        >>> [r.name for r in find_new_refs([Ref("a"), Ref("b"), Ref("c")], [Ref("b", "x")])]
        ['a', 'c']
    """
    existing = {ref.name for ref in dest}
    return [ref for ref in src if ref.name not in existing]


def find_branch_sha_for_tag(
    tag: Ref,
    branches: Iterable[Ref],
    default_sha: str,
    prefix: str = PREFIX_BRANCH,
    trunk: str = BRANCH_MASTER,
) -> str:
    """Match a tag to the versioned branch with the same MAJOR.MINOR.

    Args:
        tag: The tag ref.
        branches: Branch refs; the first match in input order wins.
        default_sha: SHA to fall back to, usually the trunk HEAD.
        prefix: Branch name prefix.
        trunk: Name of the trunk branch, which is never matched.

    Returns:
        The SHA of the matching branch, or default_sha.
    """
    try:
        tag_version = parse_tag_version(tag)
    except ParseError as e:
        logger.warning("Skipping non-versioned ref: %s", e)
        logger.info("Using the '%s' branch for new tag '%s'", trunk, tag.name)
        return default_sha

    logger.info("Finding branch for tag '%s'", tag.name)
    for branch in branches:
        if branch.short_name == trunk:
            continue
        try:
            branch_version = parse_branch_version(branch, prefix)
        except ParseError as e:
            logger.warning("%s", e)
            continue
        if same_minor(tag_version, branch_version):
            logger.info(
                "Found matching branch '%s' for tag '%s' with HEAD '%s'",
                branch.name,
                tag.name,
                branch.sha,
            )
            return branch.sha

    logger.info("Using the '%s' branch for new tag '%s'", trunk, tag.name)
    return default_sha


def find_latest_branch(refs: Iterable[Ref], prefix: str = PREFIX_BRANCH) -> Ref:
    """Find the latest branch of the form prefixMAJOR.MINOR.

    Of two branches with the same version the first one is kept.

    Raises:
        NotFoundError: If no ref is a versioned branch.
    """
    result: Ref | None = None
    latest: semver.Version | None = None

    for ref in refs:
        try:
            version = parse_branch_version(ref, prefix)
        except ParseError as e:
            logger.warning("%s", e)
            continue
        if latest is None or version > latest:
            latest = version
            result = ref

    if result is None:
        raise NotFoundError(f"could not find any branches of the format {prefix}MAJOR.MINOR")
    return result


def find_latest_tag(refs: Iterable[Ref], branch_version: semver.Version) -> Ref:
    """Find the latest tag for a branch's MAJOR.MINOR.

    Pre-releases take part in the comparison, so v1.18.0 wins over
    v1.18.0-rc.1. Of two tags with the same version the first one is kept.

    Raises:
        NotFoundError: If no tag matches the branch version.
    """
    result: Ref | None = None
    latest: semver.Version | None = None

    for ref in refs:
        try:
            version = parse_tag_version(ref)
        except ParseError as e:
            logger.warning("%s", e)
            continue
        if not same_minor(version, branch_version):
            continue
        if latest is None or version > latest:
            latest = version
            result = ref

    if result is None:
        raise NotFoundError(
            f"could not find any SemVer tag that matches branch version "
            f"{branch_version.major}.{branch_version.minor}"
        )
    return result


def find_latest_version(lines: Sequence[str], branch_version: semver.Version | None = None) -> str:
    """Find the latest SemVer tag in a list of tag strings.

    Args:
        lines: Tag names (e.g., the output of 'git tag').
        branch_version: If given, only tags with this MAJOR.MINOR are considered.

    Returns:
        The latest tag string, as given in the input.

    Raises:
        NotFoundError: If no tag qualifies.
    """
    result = ""
    latest: semver.Version | None = None

    for line in lines:
        try:
            version = parse_tag_version(line)
        except ParseError as e:
            logger.warning("%s", e)
            continue
        if branch_version is not None and not same_minor(version, branch_version):
            continue
        if latest is None or version > latest:
            latest = version
            result = line

    if not result:
        if branch_version is not None:
            raise NotFoundError(
                f"could not find any SemVer tag that matches branch version "
                f"{branch_version.major}.{branch_version.minor}"
            )
        raise NotFoundError("could not find the latest tag from the given input")
    return result
