# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Release engineering tools for Kubernetes style GitHub repositories - Core modules."""

from k8s_repo_tools.errors import NotFoundError, ParseError
from k8s_repo_tools.refs import (
    Ref,
    find_branch_sha_for_tag,
    find_latest_branch,
    find_latest_tag,
    find_new_refs,
    trim_branches,
    trim_tags,
)
from k8s_repo_tools.release_notes import resolve_range_start
from k8s_repo_tools.versions import in_fast_forward_window, parse_branch_version, parse_tag_version

__all__ = [
    "NotFoundError",
    "ParseError",
    "Ref",
    "find_branch_sha_for_tag",
    "find_latest_branch",
    "find_latest_tag",
    "find_new_refs",
    "in_fast_forward_window",
    "parse_branch_version",
    "parse_tag_version",
    "resolve_range_start",
    "trim_branches",
    "trim_tags",
]
