"""Pipe acquisition from GitHub folders or local directories.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import urlparse

import httpx

from pipekit.pipes.copy import copy_dir_all
from pipekit.pipes.errors import InvalidSourceError, NoEntryFileError, PipeIOError, UnsupportedSourceError
from pipekit.pipes.github import GITHUB_HOST, download_github_folder
from pipekit.pipes.launcher import find_pipe_file
from pipekit.pipes.naming import get_pipes_dir, is_hidden_file, pipe_name_from_source

logger = logging.getLogger(__name__)


def _is_url(source: str) -> bool:
    """A source counts as a URL only with both a scheme and a host."""
    parsed = urlparse(source)
    return bool(parsed.scheme and parsed.netloc)


def download_pipe(
    source: str,
    root: Union[str, Path],
    client: Optional[httpx.Client] = None,
    token: Optional[str] = None,
) -> Path:
    """Materialize a pipe into <root>/pipes/<name>.

    The destination is created before the source is inspected. Re-running
    over an existing pipe merges into it; files that disappeared upstream are
    not removed.

    Args:
        source: GitHub folder URL or local directory path.
        root: Workspace root.
        client: Optional httpx client for GitHub downloads.
        token: Optional GitHub token.

    Returns:
        The pipe directory.

    Raises:
        InvalidSourceError: Local path missing or not a directory.
        UnsupportedSourceError: URL host is not github.com.
        InvalidUrlFormatError: GitHub URL is not a folder reference.
        InvalidApiResponseError: GitHub listing could not be understood.
        PipeFetchError: A GitHub request failed.
        PipeIOError: Creating or writing files failed.
    """
    logger.info(f"processing pipe from source: {source}")

    pipe_name = pipe_name_from_source(source)
    dest_dir = get_pipes_dir(root) / pipe_name

    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PipeIOError(f"failed to create pipe directory {dest_dir}: {e}") from e

    if _is_url(source):
        if urlparse(source).hostname != GITHUB_HOST:
            raise UnsupportedSourceError(f"unsupported url format: {source}")
        download_github_folder(source, dest_dir, client=client, token=token)
    else:
        source_path = Path(source).expanduser()
        if not source_path.exists():
            raise InvalidSourceError(f"local source path does not exist: {source}")
        if not source_path.is_dir():
            raise InvalidSourceError(f"local source is not a directory: {source}")

        copy_dir_all(source_path, dest_dir)
        logger.info(f"Copied local folder: {source_path} to {dest_dir}")

    logger.info(f"pipe copied successfully to: {dest_dir}")
    return dest_dir


def list_pipes(root: Union[str, Path]) -> List[dict]:
    """List installed pipes under <root>/pipes.

    Returns:
        One dict per pipe directory with name, path and entry file (None when
        the directory has no pipe.js/pipe.ts).
    """
    pipes_dir = get_pipes_dir(root)
    if not pipes_dir.is_dir():
        return []

    pipes = []
    for pipe_dir in sorted(pipes_dir.iterdir()):
        if not pipe_dir.is_dir() or is_hidden_file(pipe_dir.name):
            continue
        try:
            entry = str(find_pipe_file(pipe_dir))
        except NoEntryFileError:
            entry = None
        pipes.append({"name": pipe_dir.name, "path": str(pipe_dir), "entry_file": entry})

    return pipes
