"""Exceptions raised while acquiring and running pipes.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""


class PipeError(Exception):
    """Base class for all pipe acquisition and execution failures."""

    pass


class InvalidSourceError(PipeError):
    """Raised when a source is neither a usable URL nor a local directory."""

    pass


class UnsupportedSourceError(InvalidSourceError):
    """Raised when a source URL points at a host other than GitHub."""

    pass


class InvalidUrlFormatError(PipeError):
    """Raised when a GitHub URL is not a owner/repo/tree/branch/path folder reference."""

    pass


class InvalidApiResponseError(PipeError):
    """Raised when the GitHub contents API returns something other than a listing."""

    pass


class PipeFetchError(PipeError):
    """Raised when an HTTP request to GitHub fails."""

    pass


class PipeIOError(PipeError):
    """Raised when a file or directory cannot be created, copied or written."""

    pass


class RuntimeNotFoundError(PipeError):
    """Raised when the Deno executable does not exist."""

    pass


class SpawnFailedError(PipeError):
    """Raised when the Deno process cannot be started."""

    pass


class NoEntryFileError(PipeError):
    """Raised when a pipe directory has no pipe.js or pipe.ts."""

    pass


class NonZeroExitError(PipeError):
    """Raised when a pipe process exits with a non-zero status."""

    def __init__(self, returncode: int, message: str = ""):
        self.returncode = returncode
        super().__init__(message or f"deno execution failed with status: {returncode}")


class PipeCancelledError(PipeError):
    """Raised when a running pipe is stopped through its cancel event."""

    pass
