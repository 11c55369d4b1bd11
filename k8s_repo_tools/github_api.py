# Copyright (c) 2026 Mark Ferrell. MIT License.
"""GitHub API wrapper for ref, merge and release operations.

References:
    - GitHub REST API: https://docs.github.com/en/rest
    - PyGithub Documentation: https://pygithub.readthedocs.io/
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from github import Auth, Github
from github.GithubException import GithubException, UnknownObjectException

from k8s_repo_tools.errors import GitHubError
from k8s_repo_tools.refs import Ref, find_branch_sha_for_tag
from k8s_repo_tools.versions import BRANCH_MASTER, PREFIX_BRANCH

if TYPE_CHECKING:
    from github.Comparison import Comparison
    from github.GitRef import GitRef
    from github.GitRelease import GitRelease

logger = logging.getLogger(__name__)

# Prefix for log messages of skipped write operations.
PREFIX_DRY_RUN = "DRY-RUN"

DRY_RUN_SHA = "dry-run-sha"

DEFAULT_TIMEOUT = 20


def _to_ref(git_ref: GitRef) -> Ref:
    return Ref(name=git_ref.ref, sha=git_ref.object.sha, url=git_ref.url)


def _ref_path(name: str) -> str:
    """Return a ref name in the 'tags/...' form the Git refs API expects."""
    if name.startswith("refs/"):
        return name[len("refs/") :]
    return name


class GitHubAPI:
    """Wrapper around PyGithub for the refs and releases of one repository.

    Handles authentication via token input, defaulting to GITHUB_TOKEN
    environment variable if not provided.

    References:
        - Authentication: https://docs.github.com/en/rest/authentication
        - GITHUB_TOKEN: https://docs.github.com/en/actions/security-for-github-actions/security-guides/automatic-token-authentication
    """

    def __init__(
        self,
        token: str | None = None,
        repository: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub token for authentication. Defaults to GITHUB_TOKEN env var.
            repository: Repository in 'owner/repo' format. Defaults to GITHUB_REPOSITORY env var.
            timeout: Timeout in seconds for each request.

        References:
            - Get a repository: https://docs.github.com/en/rest/repos/repos#get-a-repository
        """
        self._token = token or os.environ.get("GITHUB_TOKEN", "")
        self._repository = repository or os.environ.get("GITHUB_REPOSITORY", "")

        if not self._token:
            raise ValueError("GitHub token is required. Set GITHUB_TOKEN or pass token parameter.")
        if not self._repository:
            raise ValueError("Repository is required. Set GITHUB_REPOSITORY or pass repository parameter.")

        self._github = Github(auth=Auth.Token(self._token), timeout=timeout)
        self._repo = self._github.get_repo(self._repository)

    @property
    def repository(self) -> str:
        """The 'owner/repo' name of the wrapped repository."""
        return self._repository

    def get_refs(self, namespace: str) -> list[Ref]:
        """List the refs in a namespace such as 'tags' or 'heads'.

        A missing namespace yields an empty list.

        References:
            - List matching references: https://docs.github.com/en/rest/git/refs#list-matching-references
        """
        logger.info("Getting 'refs/%s' from repository '%s'", namespace, self._repository)
        try:
            return [_to_ref(r) for r in self._repo.get_git_matching_refs(namespace)]
        except UnknownObjectException:
            return []

    def get_tags(self) -> list[Ref]:
        """List all tag refs."""
        return self.get_refs("tags")

    def get_branches(self) -> list[Ref]:
        """List all branch refs."""
        return self.get_refs("heads")

    def get_ref(self, name: str) -> Ref:
        """Get a single ref (e.g., 'refs/tags/v1.17.0').

        Raises:
            GithubException: If the ref doesn't exist or access fails.

        References:
            - Get a reference: https://docs.github.com/en/rest/git/refs#get-a-reference
        """
        return _to_ref(self._repo.get_git_ref(_ref_path(name)))

    def ref_exists(self, name: str) -> bool:
        """Check if a ref exists in the repository."""
        try:
            self._repo.get_git_ref(_ref_path(name))
            return True
        except GithubException:
            return False

    def get_commit_sha(self, ref: Ref) -> str:
        """Get the commit SHA a ref points to, dereferencing annotated tags.

        References:
            - Get a tag: https://docs.github.com/en/rest/git/tags#get-a-tag
        """
        git_ref = self._repo.get_git_ref(_ref_path(ref.name))
        # Handle annotated tags (need to dereference)
        if git_ref.object.type == "tag":
            return self._repo.get_git_tag(git_ref.object.sha).object.sha
        return git_ref.object.sha

    def create_ref(self, name: str, sha: str, dry_run: bool = True) -> Ref:
        """Create a ref pointing to a commit.

        Args:
            name: Full ref name (e.g., 'refs/heads/release-1.17').
            sha: SHA of the commit.
            dry_run: Only log what would be created.

        Raises:
            GithubException: If ref creation fails.

        References:
            - Create a reference: https://docs.github.com/en/rest/git/refs#create-a-reference
        """
        if dry_run:
            logger.info(
                "%s: would create ref '%s' from commit '%s' in repository '%s'",
                PREFIX_DRY_RUN,
                name,
                sha,
                self._repository,
            )
            return Ref(name=name, sha=sha)

        logger.info("Creating ref '%s' from commit '%s' in repository '%s'", name, sha, self._repository)
        return _to_ref(self._repo.create_git_ref(ref=name, sha=sha))

    def create_new_branches(self, new_branches: Iterable[Ref], trunk_sha: str, dry_run: bool = True) -> list[Ref]:
        """Create branches from the trunk HEAD.

        Returns:
            The refs that were created (or would be created in dry-run mode).
        """
        return [self.create_ref(branch.name, trunk_sha, dry_run) for branch in new_branches]

    def create_new_tags(
        self,
        new_tags: Iterable[Ref],
        branches: list[Ref],
        trunk_sha: str,
        prefix: str = PREFIX_BRANCH,
        dry_run: bool = True,
    ) -> list[Ref]:
        """Create tags on the HEAD of their matching versioned branch.

        Tags without a matching branch are created on trunk_sha.

        Returns:
            The refs that were created (or would be created in dry-run mode).
        """
        created = []
        for tag in new_tags:
            sha = find_branch_sha_for_tag(tag, branches, trunk_sha, prefix)
            created.append(self.create_ref(tag.name, sha, dry_run))
        return created

    def compare(self, base: str, head: str) -> Comparison:
        """Compare two branches or SHAs.

        References:
            - Compare two commits: https://docs.github.com/en/rest/commits/commits#compare-two-commits
        """
        return self._repo.compare(base, head)

    def merge(self, base: str, head: str, message: str, dry_run: bool = True) -> str:
        """Merge head into base, creating a merge commit.

        Returns:
            The SHA of the merge commit.

        Raises:
            GitHubError: If there was nothing to merge.
            GithubException: If the merge fails (e.g., conflicts).

        References:
            - Merge a branch: https://docs.github.com/en/rest/branches/branches#merge-a-branch
        """
        if dry_run:
            logger.info("%s: would create a merge commit in repository '%s'", PREFIX_DRY_RUN, self._repository)
            return DRY_RUN_SHA

        logger.info("Merging '%s' into '%s' for repository '%s'", head, base, self._repository)
        commit = self._repo.merge(base, head, commit_message=message)
        if commit is None:
            raise GitHubError(
                f"no merge commit was created when merging branch '{head}' into '{base}'. "
                "Please verify if the branch is mergeable!"
            )
        return commit.sha

    def get_or_create_release(self, tag: str, body: str, dry_run: bool = True) -> GitRelease | None:
        """Get the release of a tag, creating it if missing.

        Args:
            tag: Tag name (e.g., 'v1.17.0'). The tag must exist.
            body: Release notes for a new release.
            dry_run: Do not create a missing release.

        Returns:
            The release, or None if it would be created in dry-run mode.

        Raises:
            GithubException: If the tag doesn't exist or the API call fails.

        References:
            - Get a release by tag name: https://docs.github.com/en/rest/releases/releases#get-a-release-by-tag-name
            - Create a release: https://docs.github.com/en/rest/releases/releases#create-a-release
        """
        logger.info("Checking if tag '%s' exists", tag)
        self._repo.get_git_ref(f"tags/{tag}")

        logger.info("Getting release from tag '%s'", tag)
        try:
            return self._repo.get_release(tag)
        except UnknownObjectException:
            pass

        if dry_run:
            logger.info("%s: would create release for tag '%s'", PREFIX_DRY_RUN, tag)
            return None

        logger.info("Creating release for tag '%s'", tag)
        return self._repo.create_git_release(tag, tag, body, draft=False, prerelease=False)

    def upload_release_assets(
        self,
        release: GitRelease | None,
        assets: Mapping[str, str],
        dry_run: bool = True,
    ) -> list[str]:
        """Upload files as release assets, skipping names that already exist.

        Args:
            release: The release, or None for a release not created in dry-run mode.
            assets: Asset name to file path.
            dry_run: Only log what would be uploaded.

        Returns:
            Names of the uploaded (or would-be uploaded) assets.

        References:
            - Upload a release asset: https://docs.github.com/en/rest/releases/assets#upload-a-release-asset
        """
        existing: set[str] = set()
        if release is not None:
            logger.info("Checking for existing assets in release '%s'", release.tag_name)
            existing = {asset.name for asset in release.get_assets()}
            logger.info("Found %d assets", len(existing))

        uploaded = []
        for name, path in assets.items():
            if name in existing:
                logger.info("Skipping existing asset '%s'", name)
                continue
            if dry_run or release is None:
                logger.info("%s: would upload asset '%s' from '%s'", PREFIX_DRY_RUN, name, path)
            else:
                logger.info("Uploading asset '%s' from '%s'", name, path)
                release.upload_asset(path, name=name, content_type="application/octet-stream")
            uploaded.append(name)
        return uploaded


def find_trunk_sha(branches: Iterable[Ref], trunk: str = BRANCH_MASTER) -> str | None:
    """Return the HEAD SHA of the trunk branch, if present."""
    for branch in branches:
        if branch.short_name == trunk:
            return branch.sha
    return None
