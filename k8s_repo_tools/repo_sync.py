# Copyright (c) 2026 Mark Ferrell. MIT License.
"""k8s-repo-sync: synchronize tags and branches between two GitHub repositories.

New versioned branches of the source repository are created from the trunk
HEAD of the destination repository. New tags are created on the HEAD of the
destination branch with the same MAJOR.MINOR, or on trunk if there is none.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TextIO

from github.GithubException import GithubException

from k8s_repo_tools.errors import NotFoundError, RepoToolsError
from k8s_repo_tools.github_api import GitHubAPI, find_trunk_sha
from k8s_repo_tools.inputs import (
    FLAG_DEBUG,
    FLAG_DEST,
    FLAG_DRY_RUN,
    FLAG_FORCE,
    FLAG_MIN_VERSION,
    FLAG_OUTPUT,
    FLAG_PREFIX_BRANCH,
    FLAG_SOURCE,
    FLAG_TIMEOUT,
    FLAG_TOKEN,
    build_parser,
    configure_logging,
    exit_on_validation_error,
    validate_empty_option,
    validate_min_version,
    validate_prefix,
    validate_repo,
    validate_token,
    warn_dry_run,
)
from k8s_repo_tools.output import format_refs, write_output
from k8s_repo_tools.prompt import Confirmation, confirm
from k8s_repo_tools.refs import Ref, find_new_refs, format_ref_list, trim_branches, trim_tags
from k8s_repo_tools.versions import BRANCH_MASTER, parse_version

logger = logging.getLogger(__name__)


@dataclass
class SyncInputs:
    """Parsed inputs of k8s-repo-sync."""

    source: str
    dest: str
    token: str
    min_version: str
    branch_prefix: str = "release-"
    output: str = ""
    timeout: int = 20
    dry_run: bool = True
    force: bool = False
    debug: bool = False


def parse_inputs(args: list[str] | None = None) -> SyncInputs:
    """Parse and validate the inputs from CLI arguments or environment variables.

    Exits with status 1 on invalid input.
    """
    parser = build_parser(
        description="k8s-repo-sync is a tool for synchronizing tags and branches "
        "between two GitHub repositories",
        epilog="""
Examples:
  k8s-repo-sync --source=org/a --dest=org/b --min-version=v1.17.0 --token=<token>
  k8s-repo-sync --source=org/a --dest=org/b --min-version=v1.17.0 --no-dry-run --force
        """,
        flags=[
            FLAG_SOURCE,
            FLAG_DEST,
            FLAG_TOKEN,
            FLAG_MIN_VERSION,
            FLAG_PREFIX_BRANCH,
            FLAG_OUTPUT,
            FLAG_TIMEOUT,
            FLAG_DRY_RUN,
            FLAG_FORCE,
            FLAG_DEBUG,
        ],
    )
    parsed = parser.parse_args(args)
    inputs = SyncInputs(
        source=parsed.source,
        dest=parsed.dest,
        token=parsed.token,
        min_version=parsed.min_version,
        branch_prefix=parsed.branch_prefix,
        output=parsed.output,
        timeout=parsed.timeout,
        dry_run=parsed.dry_run,
        force=parsed.force,
        debug=parsed.debug,
    )

    def validate() -> None:
        validate_empty_option(FLAG_SOURCE, inputs.source)
        validate_empty_option(FLAG_DEST, inputs.dest)
        validate_empty_option(FLAG_TOKEN, inputs.token)
        validate_empty_option(FLAG_MIN_VERSION, inputs.min_version)
        validate_repo(FLAG_SOURCE, inputs.source)
        validate_repo(FLAG_DEST, inputs.dest)
        validate_token(FLAG_TOKEN, inputs.token)
        validate_min_version(FLAG_MIN_VERSION, inputs.min_version)
        validate_prefix(FLAG_PREFIX_BRANCH, inputs.branch_prefix)

    exit_on_validation_error(validate)
    return inputs


def _refresh(refs: list[Ref], current: list[Ref]) -> list[Ref]:
    """Replace refs with their current state (SHA, URL) by name."""
    by_name = {ref.name: ref for ref in current}
    return [by_name.get(ref.name, ref) for ref in refs]


def process(
    source: GitHubAPI,
    dest: GitHubAPI,
    inputs: SyncInputs,
    stdin: TextIO | None = None,
) -> list[Ref]:
    """Find the new tags and branches of source and write them to dest.

    Args:
        source: API of the source repository.
        dest: API of the destination repository.
        inputs: Tool inputs.
        stdin: Input for the confirmation prompt. Defaults to sys.stdin.

    Returns:
        The new tags and branches sorted by name.

    Raises:
        NotFoundError: If the destination has no trunk branch.
        GithubException: If a GitHub API call fails.
    """
    # The version was validated with the inputs.
    min_version = parse_version(inputs.min_version)
    logger.info("Using minimum version '%s'", min_version)
    logger.info("Using branch prefix '%s'", inputs.branch_prefix)

    tags_src = trim_tags(source.get_tags(), min_version)
    branches_src = trim_branches(source.get_branches(), min_version, inputs.branch_prefix)
    logger.info("Existing tags for %s: %s", source.repository, format_ref_list(tags_src))
    logger.info("Existing branches for %s: %s", source.repository, format_ref_list(branches_src))

    tags_dest = dest.get_tags()
    branches_dest = dest.get_branches()
    tags_dest_trimmed = trim_tags(tags_dest, min_version)
    branches_dest_trimmed = trim_branches(branches_dest, min_version, inputs.branch_prefix)
    logger.info("Existing tags for %s: %s", dest.repository, format_ref_list(tags_dest_trimmed))
    logger.info("Existing branches for %s: %s", dest.repository, format_ref_list(branches_dest_trimmed))

    new_tags = find_new_refs(tags_src, tags_dest_trimmed)
    new_branches = find_new_refs(branches_src, branches_dest_trimmed)
    if not new_tags and not new_branches:
        logger.info("No new branches and tags for repository '%s'", dest.repository)
        return []

    logger.info("New tags for %s: %s", dest.repository, format_ref_list(new_tags))
    logger.info("New branches for %s: %s", dest.repository, format_ref_list(new_branches))

    confirmation = confirm(
        f"Do you want to write these changes to repository '{dest.repository}'?",
        inputs.force,
        stdin=stdin,
    )
    if confirmation is Confirmation.ABORTED:
        return sorted(new_tags + new_branches, key=lambda ref: ref.name)

    trunk_sha = find_trunk_sha(branches_dest, BRANCH_MASTER)
    if not trunk_sha:
        raise NotFoundError(f"the repository '{dest.repository}' does not have a branch called '{BRANCH_MASTER}'")

    created_branches = dest.create_new_branches(new_branches, trunk_sha, inputs.dry_run)
    # In dry-run mode nothing was written, so the would-be refs stand in for a refetch.
    if inputs.dry_run:
        branches_dest = branches_dest + created_branches
    else:
        branches_dest = dest.get_branches()
    new_branches = _refresh(new_branches, branches_dest)

    created_tags = dest.create_new_tags(new_tags, branches_dest, trunk_sha, inputs.branch_prefix, inputs.dry_run)
    if inputs.dry_run:
        tags_dest = tags_dest + created_tags
    else:
        tags_dest = dest.get_tags()
    new_tags = _refresh(new_tags, tags_dest)

    return sorted(new_tags + new_branches, key=lambda ref: ref.name)


def main(args: list[str] | None = None) -> None:
    """Main entry point for k8s-repo-sync."""
    inputs = parse_inputs(args)
    configure_logging(inputs.debug)
    warn_dry_run(inputs.dry_run)

    try:
        source = GitHubAPI(token=inputs.token, repository=inputs.source, timeout=inputs.timeout)
        dest = GitHubAPI(token=inputs.token, repository=inputs.dest, timeout=inputs.timeout)
        refs = process(source, dest, inputs)
        if inputs.output:
            write_output(inputs.output, format_refs(refs))
    except (RepoToolsError, GithubException, OSError, EOFError) as e:
        logger.error("%s", e)
        sys.exit(1)

    logger.info("Done!")


if __name__ == "__main__":  # pragma: no cover
    main()
