# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Error types shared by the release tooling."""

from __future__ import annotations


class RepoToolsError(Exception):
    """Base error for all release tooling errors."""


class ParseError(RepoToolsError, ValueError):
    """A ref is not a valid (possibly patch-elided) semantic version."""

    def __init__(self, ref: str, reason: str = "") -> None:
        self.ref = ref
        message = f"cannot parse a semantic version from ref '{ref}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NotFoundError(RepoToolsError, LookupError):
    """No ref satisfies a required selection."""


class ValidationError(RepoToolsError, ValueError):
    """Invalid user input."""


class GitHubError(RepoToolsError):
    """The GitHub API returned an outcome the tools cannot handle."""


class ReleaseBranchError(RepoToolsError):
    """No release branch could be found for fast-forwarding."""


class FastForwardWindowError(RepoToolsError):
    """The latest release branch tag is outside of the fast-forward window."""


class IdenticalBranchesError(RepoToolsError):
    """The release branch and the trunk branch are identical."""
