# Copyright (c) 2026 Mark Ferrell. MIT License.
"""k8s-latest-version: print the latest SemVer tag from a list of tags on stdin.

Usage:
    git tag | k8s-latest-version --branch=release-1.17 --branch-prefix=release-
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TextIO

import semver

from k8s_repo_tools.errors import ParseError, RepoToolsError, ValidationError
from k8s_repo_tools.inputs import (
    FLAG_BRANCH,
    FLAG_DEBUG,
    FLAG_PREFIX_BRANCH,
    build_parser,
    configure_logging,
)
from k8s_repo_tools.refs import find_latest_version
from k8s_repo_tools.versions import parse_branch_version

logger = logging.getLogger(__name__)


@dataclass
class LatestVersionInputs:
    """Parsed inputs of k8s-latest-version."""

    branch: str = ""
    branch_prefix: str = "release-"
    debug: bool = False


def parse_inputs(args: list[str] | None = None) -> LatestVersionInputs:
    """Parse the inputs from CLI arguments or environment variables."""
    parser = build_parser(
        description="k8s-latest-version is a tool for obtaining the latest SemVer "
        "from a list of tags separated by newlines and passed via stdin",
        epilog="""
Examples:
  git tag | k8s-latest-version
  git tag | k8s-latest-version --branch=release-1.17 --branch-prefix=release-
        """,
        flags=[FLAG_BRANCH, FLAG_PREFIX_BRANCH, FLAG_DEBUG],
    )
    parsed = parser.parse_args(args)
    return LatestVersionInputs(
        branch=parsed.branch,
        branch_prefix=parsed.branch_prefix,
        debug=parsed.debug,
    )


def branch_version(branch: str, prefix: str) -> semver.Version | None:
    """Extract the version of a 'prefixMAJOR.MINOR' branch, or None for no branch.

    Raises:
        ValidationError: If the branch does not carry the prefix or is not SemVer.
    """
    if not branch:
        return None
    try:
        return parse_branch_version(branch, prefix)
    except ParseError as e:
        raise ValidationError(f"could not extract a SemVer from the branch '{branch}': {e}") from e


def process(stdin: TextIO, inputs: LatestVersionInputs) -> str:
    """Return the latest tag from the newline separated tags on stdin.

    Raises:
        ValidationError: If the branch is invalid.
        NotFoundError: If no tag qualifies.
    """
    version = branch_version(inputs.branch, inputs.branch_prefix)
    lines = [line.strip() for line in stdin if line.strip()]
    logger.info("Using the following input: %s", lines)
    return find_latest_version(lines, version)


def main(args: list[str] | None = None) -> None:
    """Main entry point for k8s-latest-version."""
    inputs = parse_inputs(args)
    # stdout carries the result, so logs go to stderr.
    configure_logging(inputs.debug)

    try:
        latest = process(sys.stdin, inputs)
    except RepoToolsError as e:
        logger.error("%s", e)
        sys.exit(1)

    logger.info("Found latest tag '%s'", latest)
    print(latest)


if __name__ == "__main__":  # pragma: no cover
    main()
