"""Pipe acquisition and execution engine.

Pipes are small Deno script bundles. They are materialized from a GitHub
folder or a local directory into <root>/pipes/<id>/ and run as sandboxed
Deno subprocesses with their output streamed into logging.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from pipekit.pipes.copy import copy_dir_all
from pipekit.pipes.errors import (
    InvalidApiResponseError,
    InvalidSourceError,
    InvalidUrlFormatError,
    NoEntryFileError,
    NonZeroExitError,
    PipeCancelledError,
    PipeError,
    PipeFetchError,
    PipeIOError,
    RuntimeNotFoundError,
    SpawnFailedError,
    UnsupportedSourceError,
)
from pipekit.pipes.github import (
    GithubFolder,
    download_github_folder,
    get_github_api_url,
    parse_github_folder_url,
)
from pipekit.pipes.launcher import (
    build_deno_command,
    build_pipe_env,
    find_pipe_file,
    launch_pipe,
    run_pipe,
)
from pipekit.pipes.naming import (
    get_pipe_dir,
    get_pipes_dir,
    is_hidden_file,
    sanitize_pipe_name,
)
from pipekit.pipes.runtime import find_deno
from pipekit.pipes.source import download_pipe, list_pipes

__all__ = [
    "sanitize_pipe_name",
    "is_hidden_file",
    "get_pipes_dir",
    "get_pipe_dir",
    "copy_dir_all",
    "GithubFolder",
    "parse_github_folder_url",
    "get_github_api_url",
    "download_github_folder",
    "download_pipe",
    "list_pipes",
    "find_deno",
    "find_pipe_file",
    "build_pipe_env",
    "build_deno_command",
    "launch_pipe",
    "run_pipe",
    "PipeError",
    "InvalidSourceError",
    "UnsupportedSourceError",
    "InvalidUrlFormatError",
    "InvalidApiResponseError",
    "PipeFetchError",
    "PipeIOError",
    "RuntimeNotFoundError",
    "SpawnFailedError",
    "NoEntryFileError",
    "NonZeroExitError",
    "PipeCancelledError",
]
