"""Shared pytest fixtures for the test suite."""

from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from k8s_repo_tools.refs import Ref


def make_tag(name: str, sha: str = "default_sha") -> Ref:
    """Create a tag ref from a short tag name.

    This is a shared helper for building tag refs used across multiple
    test modules.

    Args:
        name: The tag name (e.g., 'v1.2.0').
        sha: The SHA of the object the tag points to.
    """
    return Ref(name=f"refs/tags/{name}", sha=sha)


def make_branch(name: str, sha: str = "default_sha") -> Ref:
    """Create a branch ref from a short branch name (e.g., 'release-1.17')."""
    return Ref(name=f"refs/heads/{name}", sha=sha)


def make_git_ref(name: str, sha: str, obj_type: str = "commit") -> MagicMock:
    """Create a mock PyGithub GitRef object."""
    git_ref = MagicMock()
    git_ref.ref = name
    git_ref.url = f"https://api.github.com/repos/owner/repo/git/{name}"
    git_ref.object.sha = sha
    git_ref.object.type = obj_type
    return git_ref


def make_commit(html_url: str) -> MagicMock:
    """Create a mock comparison commit with the given URL."""
    commit = MagicMock()
    commit.html_url = html_url
    return commit


@pytest.fixture
def mock_github_api() -> MagicMock:
    """Create a mock GitHubAPI instance for unit tests."""
    mock_api = MagicMock()
    mock_api.repository = "owner/dest"
    mock_api.get_tags.return_value = []
    mock_api.get_branches.return_value = []
    return mock_api


@pytest.fixture
def clean_input_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove INPUT_* and GITHUB_TOKEN variables that would leak into defaults."""
    import os

    for key in list(os.environ):
        if key.startswith("INPUT_") or key == "GITHUB_TOKEN":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_pygithub() -> Generator[dict[str, Any], None, None]:
    """Patch PyGithub for unit tests."""
    with patch("k8s_repo_tools.github_api.Github") as mock_github:
        mock_repo = MagicMock()
        mock_github.return_value.get_repo.return_value = mock_repo
        yield {"github": mock_github, "repo": mock_repo}


@pytest.fixture
def valid_token() -> str:
    """A syntactically valid 40 character HEX token."""
    return "0123456789abcdef0123456789abcdef01234567"


@pytest.fixture
def sample_tags() -> list[Ref]:
    """Sample tag refs for testing."""
    return [
        make_tag("v1.16.0", "sha-1.16.0"),
        make_tag("v1.17.0-alpha.0", "sha-1.17.0-alpha.0"),
        make_tag("v1.17.0-beta.0", "sha-1.17.0-beta.0"),
        make_tag("v1.17.0", "sha-1.17.0"),
        make_tag("v1.17.1", "sha-1.17.1"),
        make_tag("some-non-semver-ref", "sha-junk"),
    ]


@pytest.fixture
def sample_branches() -> list[Ref]:
    """Sample branch refs for testing."""
    return [
        make_branch("master", "sha-master"),
        make_branch("release-1.16", "sha-release-1.16"),
        make_branch("release-1.17", "sha-release-1.17"),
        make_branch("feature-x", "sha-feature-x"),
    ]
