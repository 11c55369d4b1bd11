# Copyright (c) 2026 Mark Ferrell. MIT License.
"""k8s-create-release: create a GitHub release from a tag with a changelog and assets.

Release notes are read from a file, or generated with the release notes tool
over the commit range between the previous release tag and the release tag.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
import tempfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TextIO

from github.GithubException import GithubException

from k8s_repo_tools.errors import RepoToolsError
from k8s_repo_tools.github_api import PREFIX_DRY_RUN, GitHubAPI
from k8s_repo_tools.inputs import (
    FLAG_BUILD_COMMAND,
    FLAG_DEBUG,
    FLAG_DEST,
    FLAG_DRY_RUN,
    FLAG_FORCE,
    FLAG_PREFIX_BRANCH,
    FLAG_RELEASE_ASSET,
    FLAG_RELEASE_NOTES_PATH,
    FLAG_RELEASE_NOTES_TOOL_PATH,
    FLAG_RELEASE_TAG,
    FLAG_TIMEOUT,
    FLAG_TOKEN,
    build_parser,
    configure_logging,
    exit_on_validation_error,
    parse_assets,
    validate_empty_option,
    validate_prefix,
    validate_release_tag,
    validate_repo,
    validate_token,
    warn_dry_run,
)
from k8s_repo_tools.prompt import Confirmation, confirm
from k8s_repo_tools.release_notes import resolve_range_start
from k8s_repo_tools.versions import BRANCH_MASTER, BRANCH_REF_PREFIX, TAG_REF_PREFIX, parse_tag_version

if TYPE_CHECKING:
    from github.GitRelease import GitRelease

logger = logging.getLogger(__name__)

DRY_RUN_RELEASE_NOTES = "dry-run-release-notes"


@dataclass
class ReleaseInputs:
    """Parsed inputs of k8s-create-release."""

    dest: str
    token: str
    release_tag: str
    branch_prefix: str = "release-"
    release_notes_tool_path: str = ""
    release_notes_path: str = ""
    build_command: str = ""
    release_assets: dict[str, str] = field(default_factory=dict)
    timeout: int = 20
    dry_run: bool = True
    force: bool = False
    debug: bool = False


def parse_inputs(args: list[str] | None = None) -> ReleaseInputs:
    """Parse and validate the inputs from CLI arguments or environment variables.

    Exits with status 1 on invalid input.
    """
    parser = build_parser(
        description="k8s-create-release is a tool for creating a GitHub release "
        "from a tag with a changelog and assets",
        epilog="""
Examples:
  k8s-create-release --dest=org/repo --token=<token> --release-tag=v1.17.0 \\
      --release-notes-tool-path=./release-notes --build-command="make release" \\
      --release-asset=kinder=bin/kinder
        """,
        flags=[
            FLAG_DEST,
            FLAG_TOKEN,
            FLAG_RELEASE_TAG,
            FLAG_PREFIX_BRANCH,
            FLAG_RELEASE_NOTES_TOOL_PATH,
            FLAG_RELEASE_NOTES_PATH,
            FLAG_BUILD_COMMAND,
            FLAG_RELEASE_ASSET,
            FLAG_TIMEOUT,
            FLAG_DRY_RUN,
            FLAG_FORCE,
            FLAG_DEBUG,
        ],
    )
    parsed = parser.parse_args(args)
    inputs = ReleaseInputs(
        dest=parsed.dest,
        token=parsed.token,
        release_tag=parsed.release_tag,
        branch_prefix=parsed.branch_prefix,
        release_notes_tool_path=parsed.release_notes_tool_path,
        release_notes_path=parsed.release_notes_path,
        build_command=parsed.build_command,
        timeout=parsed.timeout,
        dry_run=parsed.dry_run,
        force=parsed.force,
        debug=parsed.debug,
    )

    def validate() -> None:
        validate_empty_option(FLAG_DEST, inputs.dest)
        validate_empty_option(FLAG_TOKEN, inputs.token)
        validate_empty_option(FLAG_RELEASE_TAG, inputs.release_tag)
        validate_repo(FLAG_DEST, inputs.dest)
        validate_token(FLAG_TOKEN, inputs.token)
        validate_release_tag(FLAG_RELEASE_TAG, inputs.release_tag)
        validate_prefix(FLAG_PREFIX_BRANCH, inputs.branch_prefix)
        inputs.release_assets = parse_assets(parsed.release_asset)

    exit_on_validation_error(validate)
    return inputs


def run_command(
    command: Sequence[str],
    environment: Mapping[str, str] | None = None,
    dry_run: bool = True,
) -> None:
    """Run a command with extra environment variables.

    Raises:
        subprocess.CalledProcessError: If the command exits with non-zero status.
        OSError: If the command cannot be executed.
    """
    if dry_run:
        logger.info("%s: would run command: %s", PREFIX_DRY_RUN, command[0])
        logger.info("%s: using arguments: %s", PREFIX_DRY_RUN, list(command[1:]))
        return
    logger.info("Running command: %s", command[0])
    logger.info("Using arguments: %s", list(command[1:]))
    env = {**os.environ, **(environment or {})}
    subprocess.run(list(command), env=env, check=True)


def get_release_notes_shas(api: GitHubAPI, release_tag: str) -> tuple[str, str]:
    """Find the start and end commit SHAs for the release notes tool.

    Returns:
        Tuple of (start_sha, end_sha).
    """
    logger.info("Finding which commits to use for the release notes tool")
    end_ref = api.get_ref(TAG_REF_PREFIX + release_tag)
    start_ref = resolve_range_start(end_ref, api.get_tags())

    start_sha = api.get_commit_sha(start_ref)
    end_sha = api.get_commit_sha(end_ref)
    logger.info("Found start SHA %s and end SHA %s", start_sha, end_sha)
    return start_sha, end_sha


def run_release_notes_tool(
    inputs: ReleaseInputs,
    branch: str,
    start_sha: str,
    end_sha: str,
) -> str:
    """Run the release notes tool and return the path of its output file.

    The caller owns the returned file and must remove it.
    """
    logger.info("Will now run the release notes tool at '%s'", inputs.release_notes_tool_path)
    with tempfile.NamedTemporaryFile(prefix="release-notes", delete=False) as f:
        output_path = f.name
    logger.info("Using output path '%s'", output_path)

    owner, repo = inputs.dest.split("/", 1)
    command = [
        inputs.release_notes_tool_path,
        f"--start-sha={start_sha}",
        f"--end-sha={end_sha}",
        f"--output={output_path}",
        f"--github-org={owner}",
        f"--github-repo={repo}",
        '--required-author=""',
        f"--branch={branch}",
        "--toc",
    ]
    try:
        run_command(command, {"GITHUB_TOKEN": inputs.token}, inputs.dry_run)
    except (subprocess.CalledProcessError, OSError):
        os.remove(output_path)
        raise
    return output_path


def read_release_notes(path: str, dry_run: bool = True) -> str:
    """Read the release notes from a file."""
    if dry_run:
        logger.info("%s: would read the release notes from '%s'", PREFIX_DRY_RUN, path)
        return DRY_RUN_RELEASE_NOTES
    logger.info("Reading the release notes from '%s'", path)
    with open(path) as f:
        return f.read()


def _release_notes(api: GitHubAPI, inputs: ReleaseInputs) -> str:
    if inputs.release_notes_path:
        return read_release_notes(inputs.release_notes_path, inputs.dry_run)
    if not inputs.release_notes_tool_path:
        return ""

    start_sha, end_sha = get_release_notes_shas(api, inputs.release_tag)

    # If a branch does not exist for this tag use the trunk branch.
    version = parse_tag_version(inputs.release_tag)
    branch = f"{inputs.branch_prefix}{version.major}.{version.minor}"
    if not api.ref_exists(BRANCH_REF_PREFIX + branch):
        branch = BRANCH_MASTER

    output_path = run_release_notes_tool(inputs, branch, start_sha, end_sha)
    try:
        return read_release_notes(output_path, inputs.dry_run)
    finally:
        os.remove(output_path)


def process(api: GitHubAPI, inputs: ReleaseInputs, stdin: TextIO | None = None) -> GitRelease | None:
    """Create the release, build it and upload its assets.

    Args:
        api: API of the destination repository.
        inputs: Tool inputs.
        stdin: Input for the confirmation prompts. Defaults to sys.stdin.

    Returns:
        The release, or None if it was not created.
    """
    body = _release_notes(api, inputs)

    confirmation = confirm(
        f"Do you want to create a release for tag '{inputs.release_tag}' if it does not exist already?",
        inputs.force,
        stdin=stdin,
    )
    if confirmation is Confirmation.ABORTED:
        return None

    # The body is empty if no release notes were requested.
    release = api.get_or_create_release(inputs.release_tag, body, inputs.dry_run)

    if inputs.build_command:
        run_command(shlex.split(inputs.build_command), dry_run=inputs.dry_run)
    else:
        logger.warning("Empty --%s value; skipping build", FLAG_BUILD_COMMAND)

    confirmation = confirm(
        f"Do you want to upload the given assets to release '{inputs.release_tag}'?",
        inputs.force,
        stdin=stdin,
    )
    if confirmation is Confirmation.ABORTED:
        return release

    if inputs.release_assets:
        api.upload_release_assets(release, inputs.release_assets, inputs.dry_run)
    else:
        logger.warning("No release assets were provided using --%s; skipping upload", FLAG_RELEASE_ASSET)
    return release


def main(args: list[str] | None = None) -> None:
    """Main entry point for k8s-create-release."""
    inputs = parse_inputs(args)
    configure_logging(inputs.debug)
    warn_dry_run(inputs.dry_run)

    try:
        api = GitHubAPI(token=inputs.token, repository=inputs.dest, timeout=inputs.timeout)
        process(api, inputs)
    except (RepoToolsError, GithubException, subprocess.CalledProcessError, OSError, EOFError) as e:
        logger.error("%s", e)
        sys.exit(1)

    logger.info("Done!")


if __name__ == "__main__":  # pragma: no cover
    main()
