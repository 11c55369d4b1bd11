# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Release notes range selection for Kubernetes style release trains.

Given the tag a release is cut from, find the tag that starts the
"what changed since" range:

    tag               | returned tag    | comment
    ------------------|-----------------|---------------------------
    v1.17.0-alpha.0   | v1.17.0-alpha.0 | no changelog
    v1.17.0-alpha.1   | v1.16.0         | previous MINOR
    v1.17.0-<pre>     | v1.17.0-<pre-1> | previous pre-release
    v1.17.0           | v1.16.0         | previous MINOR
    v2.0.0            | v1.<latest>     | latest release of previous MAJOR
    v1.17.1           | v1.17.0         | previous PATCH

If no suitable tag exists the target tag itself is returned.

This logic needs to be adapted if the Kubernetes release process changes.

References:
    - Kubernetes release cycle: https://kubernetes.io/releases/release/
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

import semver

from k8s_repo_tools.errors import ParseError
from k8s_repo_tools.refs import Ref
from k8s_repo_tools.versions import parse_tag_version, same_minor

logger = logging.getLogger(__name__)


def _parsed_tags(refs: Iterable[Ref]) -> Iterable[tuple[Ref, semver.Version]]:
    for ref in refs:
        try:
            yield ref, parse_tag_version(ref)
        except ParseError as e:
            logger.warning("Skipping ref '%s': %s", ref.name, e)


def _find_largest(
    refs: Iterable[Ref],
    accept: Callable[[semver.Version], bool],
) -> Ref | None:
    result: Ref | None = None
    largest: semver.Version | None = None
    for ref, version in _parsed_tags(refs):
        if accept(version) and (largest is None or version > largest):
            largest = version
            result = ref
    return result


def find_exact_version_ref(target: semver.Version, refs: Iterable[Ref]) -> Ref | None:
    """Return the first tag whose version equals target."""
    for ref, version in _parsed_tags(refs):
        if version == target:
            return ref
    return None


def find_largest_for_major_ref(major: int, refs: Iterable[Ref]) -> Ref | None:
    """Return the largest tag of a MAJOR version that is newer than MAJOR.0.0."""
    floor = semver.Version(major, 0, 0)
    return _find_largest(refs, lambda v: v.major == major and v > floor)


def find_previous_pre_release(target: semver.Version, refs: Iterable[Ref]) -> Ref | None:
    """Return the largest pre-release of target's MAJOR.MINOR that precedes target."""
    return _find_largest(
        refs,
        lambda v: v.prerelease is not None and same_minor(v, target) and v < target,
    )


def find_previous_minor_ref(version: semver.Version, refs: Iterable[Ref]) -> Ref | None:
    """Return the tag closing the previous MINOR cycle of version.

    For MINOR > 0 that is the exact MAJOR.(MINOR-1).0 tag. For a new MAJOR it is
    the largest tag of the previous MAJOR.
    """
    minor = version.minor - 1
    if minor >= 0:
        return find_exact_version_ref(semver.Version(version.major, minor, 0), refs)

    major = version.major - 1
    if major < 0:
        return None
    return find_largest_for_major_ref(major, refs)


def _split_pre_release(ref: str, pre_release: str) -> tuple[str, str]:
    parts = pre_release.split(".")
    if len(parts) != 2:
        raise ParseError(ref, f"pre-release '{pre_release}' is not of the format 'stage.N'")
    return parts[0], parts[1]


def resolve_range_start(target_tag: Ref | str, all_tags: Iterable[Ref]) -> Ref:
    """Find the tag to use as the start of a release notes range.

    Args:
        target_tag: The tag a release is being created from.
        all_tags: All tag refs of the repository. Unparsable tags are skipped.

    Returns:
        The start tag, or target_tag itself when there is no prior reference.

    Raises:
        ParseError: If target_tag is not SemVer or its pre-release is not
            of the format 'stage.N'.

    Examples:
        >>> tags = [Ref("refs/tags/v1.16.0"), Ref("refs/tags/v1.17.0")]
        >>> resolve_range_start("refs/tags/v1.17.0", tags).name
        'refs/tags/v1.16.0'
    """
    target = target_tag if isinstance(target_tag, Ref) else Ref(name=target_tag)
    version = parse_tag_version(target)
    tags = list(all_tags)
    result: Ref | None = None

    if version.prerelease is None:
        if version.patch == 0:
            result = find_previous_minor_ref(version, tags)
        else:
            previous_patch = semver.Version(version.major, version.minor, version.patch - 1)
            result = find_exact_version_ref(previous_patch, tags)
    else:
        stage, number = _split_pre_release(target.name, version.prerelease)
        if stage == "alpha" and number == "0":
            result = None
        elif stage == "alpha" and number == "1":
            result = find_previous_minor_ref(version, tags)
        else:
            # Kubernetes does not have pre-releases for PATCH releases.
            result = find_previous_pre_release(version, tags)

    if result is None:
        logger.warning(
            "Could not find a release notes range reference for '%s'; using the same reference",
            target.name,
        )
        return target
    return result
