# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Command-line flags, validation and logging setup shared by all tools.

Every flag falls back to a GitHub Actions style environment variable
(INPUT_<NAME>), so the tools run unchanged from a workflow step or a shell.

References:
    - GitHub Actions inputs: https://docs.github.com/en/actions/sharing-automations/creating-actions/metadata-syntax-for-github-actions#inputs
"""

from __future__ import annotations

import argparse
import logging
import os
import re
import sys
from collections.abc import Callable, Iterable

from k8s_repo_tools.errors import ParseError, ValidationError
from k8s_repo_tools.versions import PREFIX_BRANCH, parse_version

logger = logging.getLogger(__name__)

FLAG_DEST = "dest"
FLAG_SOURCE = "source"
FLAG_MIN_VERSION = "min-version"
FLAG_TOKEN = "token"
FLAG_BRANCH = "branch"
FLAG_PREFIX_BRANCH = "branch-prefix"
FLAG_OUTPUT = "output"
FLAG_TIMEOUT = "timeout"
FLAG_DRY_RUN = "dry-run"
FLAG_FORCE = "force"
FLAG_RELEASE_TAG = "release-tag"
FLAG_RELEASE_NOTES_TOOL_PATH = "release-notes-tool-path"
FLAG_RELEASE_NOTES_PATH = "release-notes-path"
FLAG_BUILD_COMMAND = "build-command"
FLAG_RELEASE_ASSET = "release-asset"
FLAG_DEBUG = "debug"

DEFAULT_TIMEOUT = 20

REPO_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
TOKEN_PATTERN = re.compile(
    r"^((v[0-9]\.)?[0-9a-f]{40}|gh[pousr]_[A-Za-z0-9]{36,}|github_pat_[A-Za-z0-9_]{22,})$"
)

# Characters invalid in git refs (branch names and tags)
# See: https://git-scm.com/docs/git-check-ref-format
INVALID_PREFIX_CHARS = ["..", "~", "^", ":", "\\", " ", "\t", "\n", "*", "?", "["]


def _env(flag: str, default: str = "") -> str:
    return os.environ.get("INPUT_" + flag.upper().replace("-", "_"), default)


def _env_bool(flag: str, default: bool) -> bool:
    return _env(flag, str(default).lower()).lower() == "true"


def _add_dest(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dest",
        default=_env(FLAG_DEST),
        help="Destination org/repo to write tags and branches to",
    )


def _add_source(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        default=_env(FLAG_SOURCE),
        help="Source org/repo from which to take tags and branches",
    )


def _add_min_version(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--min-version",
        default=_env(FLAG_MIN_VERSION),
        help="All versions for tags and branches older than this SemVer will be ignored",
    )


def _add_token(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--token",
        default=_env(FLAG_TOKEN, os.environ.get("GITHUB_TOKEN", "")),
        help="Token for the GitHub API. Write permissions are required for the destination repository "
        "(default: from INPUT_TOKEN or GITHUB_TOKEN env)",
    )


def _add_branch(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--branch",
        default=_env(FLAG_BRANCH),
        help='Branch to use in the format "prefixMAJOR.MINOR"',
    )


def _add_prefix_branch(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--branch-prefix",
        default=_env(FLAG_PREFIX_BRANCH, PREFIX_BRANCH),
        help=f'Branch name prefix. Expected format is "prefixMAJOR.MINOR" (default: {PREFIX_BRANCH})',
    )


def _add_output(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        default=_env(FLAG_OUTPUT),
        help="Path to a file that will be written with the result as GitHub API JSON objects",
    )


def _add_timeout(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--timeout",
        type=int,
        default=int(_env(FLAG_TIMEOUT, str(DEFAULT_TIMEOUT))),
        help=f"Timeout in seconds for client connections to remote servers (default: {DEFAULT_TIMEOUT})",
    )


def _add_dry_run(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action=argparse.BooleanOptionalAction,
        default=_env_bool(FLAG_DRY_RUN, True),
        help="In dry-run mode repository writing operations are disabled (default: enabled)",
    )


def _add_force(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--force",
        action="store_true",
        default=_env_bool(FLAG_FORCE, False),
        help="Skip the confirmation prompts before writing to the destination repository",
    )


def _add_release_tag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--release-tag",
        default=_env(FLAG_RELEASE_TAG),
        help="A SemVer tag from which to create a release",
    )


def _add_release_notes_tool_path(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--release-notes-tool-path",
        default=_env(FLAG_RELEASE_NOTES_TOOL_PATH),
        help="Path to the release notes tool binary",
    )


def _add_release_notes_path(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--release-notes-path",
        default=_env(FLAG_RELEASE_NOTES_PATH),
        help=f"Path to a text file containing release notes. Overrides --{FLAG_RELEASE_NOTES_TOOL_PATH}",
    )


def _add_build_command(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--build-command",
        default=_env(FLAG_BUILD_COMMAND),
        help="A command to execute to build the release assets",
    )


def _add_release_asset(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--release-asset",
        action="append",
        default=[],
        help="A release asset to upload, formatted as 'name=path'. May be given multiple times",
    )


def _add_debug(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--debug",
        action="store_true",
        default=_env_bool(FLAG_DEBUG, False),
        help="Enable debug logging",
    )


_FLAG_ADDERS: dict[str, Callable[[argparse.ArgumentParser], None]] = {
    FLAG_DEST: _add_dest,
    FLAG_SOURCE: _add_source,
    FLAG_MIN_VERSION: _add_min_version,
    FLAG_TOKEN: _add_token,
    FLAG_BRANCH: _add_branch,
    FLAG_PREFIX_BRANCH: _add_prefix_branch,
    FLAG_OUTPUT: _add_output,
    FLAG_TIMEOUT: _add_timeout,
    FLAG_DRY_RUN: _add_dry_run,
    FLAG_FORCE: _add_force,
    FLAG_RELEASE_TAG: _add_release_tag,
    FLAG_RELEASE_NOTES_TOOL_PATH: _add_release_notes_tool_path,
    FLAG_RELEASE_NOTES_PATH: _add_release_notes_path,
    FLAG_BUILD_COMMAND: _add_build_command,
    FLAG_RELEASE_ASSET: _add_release_asset,
    FLAG_DEBUG: _add_debug,
}


def build_parser(description: str, epilog: str, flags: Iterable[str]) -> argparse.ArgumentParser:
    """Create an argument parser with the given subset of the shared flags.

    Args:
        description: Tool description for --help.
        epilog: Usage examples for --help.
        flags: Names of the flags to add (e.g., FLAG_DEST, FLAG_TOKEN).

    Returns:
        The configured parser. Environment defaults are read at call time.
    """
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    for flag in flags:
        _FLAG_ADDERS[flag](parser)
    return parser


def validate_empty_option(option: str, value: str) -> None:
    """Check that an option is not empty."""
    if not value:
        raise ValidationError(f"the option '{option}' cannot be empty")


def validate_repo(option: str, repo: str) -> None:
    """Check that a repository is of the format 'org/repo'."""
    if not REPO_PATTERN.match(repo):
        raise ValidationError(f"the option '{option}' must be of the format 'org/repo': {repo}")


def validate_token(option: str, token: str) -> None:
    """Check that a token is a GitHub token.

    Accepted are 40 character HEX strings with an optional version prefix and
    the prefixed formats (ghp_, ghs_, github_pat_, ...).
    """
    if not TOKEN_PATTERN.match(token):
        raise ValidationError(
            f"the option '{option}' must be a 40 character HEX string with an optional version prefix "
            "or a prefixed GitHub token"
        )


def validate_min_version(option: str, value: str) -> None:
    """Check that the minimum version is SemVer."""
    try:
        parse_version(value)
    except ParseError as e:
        raise ValidationError(f"the option '{option}' is not a valid version: {e}") from e


def validate_release_tag(option: str, value: str) -> None:
    """Check that the release tag is SemVer."""
    try:
        parse_version(value)
    except ParseError as e:
        raise ValidationError(f"cannot validate release tag of option '{option}': {e}") from e


def validate_prefix(option: str, prefix: str) -> None:
    """Check that a prefix is non-empty and valid inside git ref names.

    References:
        - git-check-ref-format: https://git-scm.com/docs/git-check-ref-format
    """
    if not prefix:
        raise ValidationError(f"the option '{option}' cannot be empty")
    for invalid_char in INVALID_PREFIX_CHARS:
        if invalid_char in prefix:
            raise ValidationError(
                f"the option '{option}' contains the invalid git ref character {invalid_char!r}"
            )


def parse_asset(value: str) -> tuple[str, str]:
    """Parse a 'name=path' release asset.

    Examples:
        >>> parse_asset("kinder=bin/kinder")
        ('kinder', 'bin/kinder')
    """
    name, sep, path = value.partition("=")
    if not sep or not name or not path:
        raise ValidationError(f"invalid asset format '{value}'. Value must be formatted as 'name=path'")
    return name, path


def parse_assets(values: Iterable[str]) -> dict[str, str]:
    """Parse repeated 'name=path' release assets into a mapping."""
    return dict(parse_asset(value) for value in values)


def exit_on_validation_error(validate: Callable[[], None]) -> None:
    """Run validators, logging the error and exiting with status 1 on failure."""
    logger.info("Validating user input...")
    try:
        validate()
    except ValidationError as e:
        logger.error("%s", e)
        sys.exit(1)


def configure_logging(debug: bool) -> None:
    """Configure logging based on debug flag.

    Args:
        debug: If True, enable DEBUG level logging.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def warn_dry_run(dry_run: bool) -> None:
    """Log a banner when repository writes are disabled."""
    if dry_run:
        logger.warning(
            "Running in DRY-RUN mode. To enable repository writing operations pass --no-%s",
            FLAG_DRY_RUN,
        )
