"""Pipe launcher: runs a pipe's entry file under Deno.

Each launch owns one Deno subprocess and two drain tasks, one per output
stream. The exit status is only inspected once both drains have reached EOF,
so trailing output is always logged before the result is reported.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Union

from pipekit.event_client import EventClient
from pipekit.pipes.errors import (
    NoEntryFileError,
    NonZeroExitError,
    PipeCancelledError,
    PipeError,
    PipeIOError,
    RuntimeNotFoundError,
    SpawnFailedError,
)
from pipekit.pipes.naming import get_pipe_dir, is_hidden_file
from pipekit.pipes.runtime import DENO_INSTALL_URL, deno_executable_name, find_deno

logger = logging.getLogger(__name__)

ENTRY_FILES = ("pipe.js", "pipe.ts")
CONFIG_FILE = "deno.json"

# Deno prints "Download https://..." on stderr while fetching modules
DOWNLOAD_MARKER = "Download"

# Longer output lines are split
STREAM_LIMIT = 1024 * 1024

LineHandler = Callable[[str, str], None]


def find_pipe_file(pipe_dir: Union[str, Path]) -> Path:
    """Return the first pipe.js or pipe.ts found in pipe_dir.

    Raises:
        NoEntryFileError: If the directory is missing or has no entry file.
        PipeIOError: If the directory cannot be read.
    """
    pipe_dir = Path(pipe_dir)
    if not pipe_dir.is_dir():
        raise NoEntryFileError(f"pipe directory not found: {pipe_dir}")

    try:
        for entry in pipe_dir.iterdir():
            if entry.name in ENTRY_FILES and not is_hidden_file(entry.name) and entry.is_file():
                return entry
    except OSError as e:
        raise PipeIOError(f"failed to read pipe directory {pipe_dir}: {e}") from e

    raise NoEntryFileError(f"No pipe.js/pipe.ts found in the pipe directory: {pipe_dir}")


def build_pipe_env(
    root: Union[str, Path],
    pipe: str,
    entry_file: Path,
    pipe_dir: Path,
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Build the environment for one launch.

    A snapshot of base_env (default: os.environ) plus PIPEKIT_DIR, PIPE_ID,
    PIPE_FILE and PIPE_DIR. os.environ itself is never modified.
    """
    env = dict(os.environ if base_env is None else base_env)
    env.update(
        {
            "PIPEKIT_DIR": str(Path(root).resolve()),
            "PIPE_ID": pipe,
            "PIPE_FILE": str(Path(entry_file).resolve()),
            "PIPE_DIR": str(Path(pipe_dir).resolve()),
        }
    )
    return env


def build_deno_command(runtime: Union[str, Path], pipe_dir: Path, entry_file: Path) -> List[str]:
    """Deno argv: read/write/net/env permissions, no module cache, the entry file."""
    return [
        str(runtime),
        "run",
        "--config",
        str(Path(pipe_dir) / CONFIG_FILE),
        "--allow-read",
        "--allow-write",
        "--allow-net",
        "--allow-env",
        "--reload",
        str(entry_file),
    ]


def _resolve_runtime(runtime: Optional[Union[str, Path]]) -> str:
    if runtime is not None:
        return str(runtime)
    found = find_deno()
    return str(found) if found is not None else deno_executable_name()


def _log_stdout(pipe: str, line: str) -> None:
    logger.info(f"[pipe][info][{pipe}] {line}")


def _log_stderr(pipe: str, line: str) -> None:
    if DOWNLOAD_MARKER in line:
        logger.info(f"[pipe][download][{pipe}] {line}")
    else:
        logger.error(f"[pipe][error][{pipe}] {line}")


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


async def _drain(stream: asyncio.StreamReader, pipe: str, handler: LineHandler) -> None:
    """Hand every line of stream to handler until EOF.

    Lines longer than STREAM_LIMIT are handed over in several pieces, so the
    stream keeps flowing whatever the child writes.
    """
    split = False
    while True:
        try:
            raw = await stream.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            if e.partial:
                handler(pipe, _decode(e.partial))
            return
        except asyncio.LimitOverrunError as e:
            if not split:
                logger.debug(f"[pipe][{pipe}] splitting output line longer than {STREAM_LIMIT} bytes")
            handler(pipe, _decode(await stream.read(e.consumed)))
            split = True
            continue

        # Bare terminator of a line that was already handed over
        if not (split and raw == b"\n"):
            handler(pipe, _decode(raw))
        split = False


def _terminate(process: asyncio.subprocess.Process) -> None:
    try:
        process.terminate()
    except ProcessLookupError:
        # Already exited
        pass


async def _wait_for_exit(process: asyncio.subprocess.Process, cancel: Optional[asyncio.Event]) -> bool:
    """Wait for the process to exit.

    Returns:
        True if the cancel event fired first and the process was terminated.
    """
    if cancel is None:
        await process.wait()
        return False

    exit_task = asyncio.ensure_future(process.wait())
    cancel_task = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({exit_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancel_task.cancel()

    if exit_task in done:
        return False

    logger.info(f"terminating pipe process {process.pid}")
    _terminate(process)
    await exit_task
    return True


async def _supervise(
    pipe: str,
    command: List[str],
    env: Dict[str, str],
    cancel: Optional[asyncio.Event],
) -> int:
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            env=env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT,
        )
    except FileNotFoundError as e:
        raise RuntimeNotFoundError(
            f"deno not found in system path. please install deno: {DENO_INSTALL_URL}"
        ) from e
    except OSError as e:
        raise SpawnFailedError(f"failed to spawn deno process: {e}") from e

    drains = [
        asyncio.ensure_future(_drain(process.stdout, pipe, _log_stdout)),
        asyncio.ensure_future(_drain(process.stderr, pipe, _log_stderr)),
    ]

    try:
        cancelled = await _wait_for_exit(process, cancel)
    finally:
        if process.returncode is None:
            # The awaiting task itself was cancelled
            _terminate(process)
            await process.wait()
        await asyncio.gather(*drains)

    if cancelled:
        raise PipeCancelledError(f"pipe {pipe} was cancelled")
    if process.returncode != 0:
        raise NonZeroExitError(process.returncode)
    return process.returncode


async def launch_pipe(
    pipe: str,
    root: Union[str, Path],
    runtime: Optional[Union[str, Path]] = None,
    cancel: Optional[asyncio.Event] = None,
    events: Optional[EventClient] = None,
) -> int:
    """Run a pipe and supervise it until it exits.

    Args:
        pipe: Pipe identifier; its directory is <root>/pipes/<sanitized id>.
        root: Workspace root.
        runtime: Deno executable (located with find_deno() when omitted).
        cancel: Setting this event terminates the pipe.
        events: Optional event log for started/completed/failed records.

    Returns:
        0 once the pipe has exited successfully and its output is drained.

    Raises:
        NoEntryFileError: No pipe.js/pipe.ts; nothing is spawned.
        RuntimeNotFoundError: The Deno executable does not exist.
        SpawnFailedError: Deno could not be started for another reason.
        NonZeroExitError: The pipe exited with a non-zero status.
        PipeCancelledError: The cancel event fired.
    """
    root = Path(root)
    pipe_dir = get_pipe_dir(root, pipe)
    entry_file = find_pipe_file(pipe_dir)

    logger.info(f"executing pipe: {entry_file}")

    env = build_pipe_env(root, pipe, entry_file, pipe_dir)
    command = build_deno_command(_resolve_runtime(runtime), pipe_dir, entry_file)

    run = events.start_run(pipe, entry_file, command[0]) if events else None

    try:
        returncode = await _supervise(pipe, command, env, cancel)
    except PipeError as e:
        if run:
            run.failed(
                str(e),
                exit_code=getattr(e, "returncode", None),
                cancelled=isinstance(e, PipeCancelledError),
            )
        raise
    except asyncio.CancelledError:
        if run:
            run.failed(f"pipe {pipe} was cancelled", cancelled=True)
        raise

    if run:
        run.completed(returncode)

    logger.info("deno execution completed successfully")
    return returncode


def run_pipe(
    pipe: str,
    root: Union[str, Path],
    runtime: Optional[Union[str, Path]] = None,
    events: Optional[EventClient] = None,
) -> int:
    """Blocking wrapper around launch_pipe()."""
    return asyncio.run(launch_pipe(pipe, root, runtime=runtime, events=events))
