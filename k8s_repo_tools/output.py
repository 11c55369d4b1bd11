# Copyright (c) 2026 Mark Ferrell. MIT License.
"""JSON output files for the sync and fast-forward tools."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from typing import Any

from k8s_repo_tools.refs import Ref

logger = logging.getLogger(__name__)


def format_refs(refs: Iterable[Ref], indent: bool = True) -> str:
    """Marshal a list of refs to JSON."""
    data = [ref.to_dict() for ref in refs]
    return json.dumps(data, indent="\t" if indent else None)


def format_merge_result(
    ref: Ref | None,
    commit_sha: str | None,
    commit_message: str | None,
    error: BaseException | None,
    indent: bool = True,
) -> str:
    """Marshal the result of a fast-forward to JSON.

    The shape is {"outputError": ..., "reference": ..., "commit": ...}, with
    null for missing values.
    """
    commit: dict[str, Any] | None = None
    if commit_sha is not None:
        commit = {"sha": commit_sha, "commit": {"message": commit_message}}
    data = {
        "outputError": str(error) if error is not None else None,
        "reference": ref.to_dict() if ref is not None else None,
        "commit": commit,
    }
    return json.dumps(data, indent="\t" if indent else None)


def write_output(file_path: str, content: str) -> None:
    """Write content to file_path, readable by the owner only."""
    logger.info("Writing the resulting output to the file '%s'", file_path)
    fd = os.open(file_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(content)
