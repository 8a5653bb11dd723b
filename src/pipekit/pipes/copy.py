"""Local directory materialization.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import shutil
from collections import deque
from pathlib import Path
from typing import Deque, Tuple, Union

from pipekit.pipes.errors import PipeIOError
from pipekit.pipes.naming import is_hidden_file

logger = logging.getLogger(__name__)


def copy_dir_all(src: Union[str, Path], dst: Union[str, Path]) -> None:
    """Copy a directory tree into dst, skipping hidden entries.

    Hidden files and directories are neither copied nor descended into.
    Symlinked directories are skipped; symlinked files are copied as files.
    Directories are walked from an explicit queue, so arbitrarily deep trees
    are fine.

    Args:
        src: Source directory.
        dst: Destination directory (created if missing).

    Raises:
        PipeIOError: On the first failed read, create or copy. Whatever was
            copied before the failure is left in place.
    """
    pending: Deque[Tuple[Path, Path]] = deque([(Path(src), Path(dst))])

    while pending:
        src_dir, dst_dir = pending.popleft()
        try:
            dst_dir.mkdir(parents=True, exist_ok=True)
            entries = sorted(src_dir.iterdir())
        except OSError as e:
            raise PipeIOError(f"failed to copy {src_dir} to {dst_dir}: {e}") from e

        for entry in entries:
            if is_hidden_file(entry.name):
                logger.info(f"skipping hidden file: {entry.name}")
                continue

            if entry.is_symlink() and entry.is_dir():
                logger.info(f"skipping symlinked directory: {entry.name}")
                continue

            target = dst_dir / entry.name
            try:
                if entry.is_dir():
                    pending.append((entry, target))
                else:
                    shutil.copyfile(entry, target)
                    logger.debug(f"copied: {entry} -> {target}")
            except OSError as e:
                raise PipeIOError(f"failed to copy {entry} to {target}: {e}") from e
