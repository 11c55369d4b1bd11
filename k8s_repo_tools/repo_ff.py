# Copyright (c) 2026 Mark Ferrell. MIT License.
"""k8s-repo-ff: fast-forward the latest release branch to the trunk branch.

The branch is only fast-forwarded while its latest tag is inside the
fast-forward window (MAJOR.MINOR.0-beta.0 <= tag < MAJOR.MINOR.0-rc.1).

References:
    - Branch fast-forward: https://github.com/kubernetes/sig-release/blob/d6a4a0c/release-engineering/role-handbooks/branch-manager.md#branch-fast-forward
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TextIO

from github.GithubException import GithubException

from k8s_repo_tools.errors import (
    FastForwardWindowError,
    GitHubError,
    IdenticalBranchesError,
    NotFoundError,
    ReleaseBranchError,
    RepoToolsError,
)
from k8s_repo_tools.github_api import GitHubAPI
from k8s_repo_tools.inputs import (
    FLAG_DEBUG,
    FLAG_DEST,
    FLAG_DRY_RUN,
    FLAG_FORCE,
    FLAG_OUTPUT,
    FLAG_PREFIX_BRANCH,
    FLAG_TIMEOUT,
    FLAG_TOKEN,
    build_parser,
    configure_logging,
    exit_on_validation_error,
    validate_empty_option,
    validate_prefix,
    validate_repo,
    validate_token,
    warn_dry_run,
)
from k8s_repo_tools.output import format_merge_result, write_output
from k8s_repo_tools.prompt import Confirmation, confirm
from k8s_repo_tools.refs import Ref, find_latest_branch, find_latest_tag, format_ref_list
from k8s_repo_tools.versions import (
    BRANCH_MASTER,
    BRANCH_REF_PREFIX,
    fast_forward_window,
    in_fast_forward_window,
    parse_branch_version,
    parse_tag_version,
)

logger = logging.getLogger(__name__)

# Outcomes that are reported without failing the run.
NON_FATAL_ERRORS = (ReleaseBranchError, FastForwardWindowError, IdenticalBranchesError)


@dataclass
class FastForwardInputs:
    """Parsed inputs of k8s-repo-ff."""

    dest: str
    token: str
    branch_prefix: str = "release-"
    output: str = ""
    timeout: int = 20
    dry_run: bool = True
    force: bool = False
    debug: bool = False


@dataclass
class FastForwardResult:
    """The fast-forwarded branch and the merge commit, if any."""

    reference: Ref | None = None
    commit_sha: str | None = None
    commit_message: str | None = None


def parse_inputs(args: list[str] | None = None) -> FastForwardInputs:
    """Parse and validate the inputs from CLI arguments or environment variables.

    Exits with status 1 on invalid input.
    """
    parser = build_parser(
        description="k8s-repo-ff is a tool for fast forwarding a release branch "
        "to the master branch of a GitHub repository",
        epilog="""
Examples:
  k8s-repo-ff --dest=org/repo --token=<token>
  k8s-repo-ff --dest=org/repo --token=<token> --no-dry-run --force --output=ff.json
        """,
        flags=[
            FLAG_DEST,
            FLAG_TOKEN,
            FLAG_PREFIX_BRANCH,
            FLAG_OUTPUT,
            FLAG_TIMEOUT,
            FLAG_DRY_RUN,
            FLAG_FORCE,
            FLAG_DEBUG,
        ],
    )
    parsed = parser.parse_args(args)
    inputs = FastForwardInputs(
        dest=parsed.dest,
        token=parsed.token,
        branch_prefix=parsed.branch_prefix,
        output=parsed.output,
        timeout=parsed.timeout,
        dry_run=parsed.dry_run,
        force=parsed.force,
        debug=parsed.debug,
    )

    def validate() -> None:
        validate_empty_option(FLAG_DEST, inputs.dest)
        validate_empty_option(FLAG_TOKEN, inputs.token)
        validate_repo(FLAG_DEST, inputs.dest)
        validate_token(FLAG_TOKEN, inputs.token)
        validate_prefix(FLAG_PREFIX_BRANCH, inputs.branch_prefix)

    exit_on_validation_error(validate)
    return inputs


def format_merge_commit_message(base: str, head: str) -> str:
    """Create a commit message that names the merged branches.

    Examples:
        >>> format_merge_commit_message("refs/heads/release-1.17", "master")
        'Merge branch "master" into release-1.17'
    """
    base = base.removeprefix(BRANCH_REF_PREFIX)
    head = head.removeprefix(BRANCH_REF_PREFIX)
    return f'Merge branch "{head}" into {base}'


def process(api: GitHubAPI, inputs: FastForwardInputs, stdin: TextIO | None = None) -> FastForwardResult:
    """Fast-forward the latest release branch of a repository to trunk.

    Args:
        api: API of the destination repository.
        inputs: Tool inputs.
        stdin: Input for the confirmation prompt. Defaults to sys.stdin.

    Returns:
        The merged branch and merge commit. Empty if the user declined.

    Raises:
        ReleaseBranchError: If there is no release branch.
        FastForwardWindowError: If the latest tag is outside the window.
        IdenticalBranchesError: If the release branch and trunk are identical.
        NotFoundError: If the release branch has no tags.
        GitHubError: If the comparison status is unexpected.
        GithubException: If a GitHub API call fails.
    """
    logger.info("Using branch prefix '%s'", inputs.branch_prefix)

    tags = api.get_tags()
    branches = api.get_branches()
    logger.info("Existing tags for %s: %s", api.repository, format_ref_list(tags))
    logger.info("Existing branches for %s: %s", api.repository, format_ref_list(branches))

    try:
        latest_branch = find_latest_branch(branches, inputs.branch_prefix)
    except NotFoundError as e:
        raise ReleaseBranchError(str(e)) from e
    logger.info("Found '%s' as the latest versioned branch", latest_branch.name)

    branch_version = parse_branch_version(latest_branch, inputs.branch_prefix)
    latest_tag = find_latest_tag(tags, branch_version)
    logger.info(
        "Found '%s' as the latest versioned tag for branch '%s'",
        latest_tag.name,
        latest_branch.name,
    )

    tag_version = parse_tag_version(latest_tag)
    if not in_fast_forward_window(tag_version, branch_version):
        lower, upper = fast_forward_window(branch_version)
        raise FastForwardWindowError(
            f"the latest versioned tag '{latest_tag.name}' for branch '{latest_branch.name}' "
            f"does not fall within the fast-forward window: {lower} <= VER < {upper}"
        )

    branch_name = latest_branch.short_name
    comparison = api.compare(branch_name, BRANCH_MASTER)
    if comparison.status == "identical":
        raise IdenticalBranchesError(f"the branches '{BRANCH_MASTER}' and '{branch_name}' are identical")
    if comparison.status != "ahead":
        raise GitHubError(
            f"got unhandled status '{comparison.status}' comparing branches '{BRANCH_MASTER}' "
            f"and '{branch_name}'. Please check the state of the repository!"
        )
    commits = list(comparison.commits)
    if not commits:
        raise GitHubError(
            f"branch '{BRANCH_MASTER}' was reported with status '{comparison.status}', "
            "but there are no new commits"
        )

    logger.info(
        "Branch '%s' is ahead of '%s' by %d commits",
        BRANCH_MASTER,
        branch_name,
        comparison.total_commits,
    )
    logger.info("List of commits:\n%s", "\n".join(c.html_url for c in commits))
    logger.info("Comparison URL:\n%s", comparison.html_url)

    confirmation = confirm(
        f"Do you want to fast-forward branch '{latest_branch.name}' of repository '{api.repository}'?",
        inputs.force,
        stdin=stdin,
    )
    if confirmation is Confirmation.ABORTED:
        return FastForwardResult()

    message = format_merge_commit_message(branch_name, BRANCH_MASTER)
    sha = api.merge(branch_name, BRANCH_MASTER, message, inputs.dry_run)
    logger.info("Created commit with SHA '%s' in repository '%s'", sha, api.repository)
    return FastForwardResult(reference=latest_branch, commit_sha=sha, commit_message=message)


def main(args: list[str] | None = None) -> None:
    """Main entry point for k8s-repo-ff."""
    inputs = parse_inputs(args)
    configure_logging(inputs.debug)
    warn_dry_run(inputs.dry_run)

    result = FastForwardResult()
    error: RepoToolsError | None = None
    try:
        api = GitHubAPI(token=inputs.token, repository=inputs.dest, timeout=inputs.timeout)
        result = process(api, inputs)
    except NON_FATAL_ERRORS as e:
        logger.error("%s", e)
        error = e
    except (RepoToolsError, GithubException, EOFError) as e:
        logger.error("%s", e)
        sys.exit(1)

    if inputs.output:
        try:
            write_output(
                inputs.output,
                format_merge_result(result.reference, result.commit_sha, result.commit_message, error),
            )
        except OSError as e:
            logger.error("%s", e)
            sys.exit(1)

    logger.info("Done!")


if __name__ == "__main__":  # pragma: no cover
    main()
