"""Pipe naming and workspace layout.

Pipe identifiers become directory names under <root>/pipes/, so they are
reduced to a filesystem-safe alphabet first.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import re
from pathlib import Path, PurePosixPath
from typing import Union

from pipekit.pipes.errors import InvalidSourceError

# Anything outside this set becomes "-"
UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")

# Left behind by folder links that carry ?ref=main
REF_MAIN_SUFFIXES = ("-ref-main/", "-ref-main")

# Windows thumbnail cache
THUMBNAIL_CACHE = "Thumbs.db"


def sanitize_pipe_name(name: str) -> str:
    """Turn an arbitrary identifier into a safe single path component.

    Example:
        >>> sanitize_pipe_name("my pipe!name-ref-main")
        'my-pipe-name'
    """
    sanitized = UNSAFE_CHARS.sub("-", name)
    for suffix in REF_MAIN_SUFFIXES:
        if sanitized.endswith(suffix):
            return sanitized[: -len(suffix)]
    return sanitized


def is_hidden_file(name: str) -> bool:
    """Dotfiles and thumbnail caches are never copied or downloaded."""
    return name.startswith(".") or name == THUMBNAIL_CACHE


def pipe_name_from_source(source: str) -> str:
    """Derive the pipe name from the last path component of a source.

    Works the same for folder URLs and local paths.

    Raises:
        InvalidSourceError: If the source has no usable last component.
    """
    name = PurePosixPath(source.replace("\\", "/")).name
    if not name or name == "..":
        raise InvalidSourceError(f"cannot derive a pipe name from source: {source}")
    return sanitize_pipe_name(name)


def get_pipes_dir(root: Union[str, Path]) -> Path:
    """Directory holding every installed pipe."""
    return Path(root) / "pipes"


def get_pipe_dir(root: Union[str, Path], pipe: str) -> Path:
    """Directory of a single pipe: <root>/pipes/<sanitized id>."""
    return get_pipes_dir(root) / sanitize_pipe_name(pipe)
