"""Deno executable discovery.

Candidates are produced by an ordered list of generators; only the list
changes between platforms, the lookup loop is shared.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import shutil
import sys
from pathlib import Path
from typing import Callable, Iterator, List, Optional

logger = logging.getLogger(__name__)

DENO_INSTALL_URL = "https://deno.land/#installation"

CandidateSource = Callable[[str, Path, Path], Iterator[Path]]


def deno_executable_name(platform: Optional[str] = None) -> str:
    """deno.exe on Windows, deno everywhere else."""
    platform = platform or sys.platform
    return "deno.exe" if platform.startswith("win") else "deno"


def _current_exe() -> Path:
    """Path of the running program (the frozen binary when bundled)."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve()
    return Path(sys.argv[0]).resolve()


def _from_path(name: str, cwd: Path, exe_dir: Path) -> Iterator[Path]:
    found = shutil.which(name)
    if found:
        yield Path(found)


def _from_cwd(name: str, cwd: Path, exe_dir: Path) -> Iterator[Path]:
    yield cwd / name


def _from_exe_dir(name: str, cwd: Path, exe_dir: Path) -> Iterator[Path]:
    yield exe_dir / name


def _from_resources(name: str, cwd: Path, exe_dir: Path) -> Iterator[Path]:
    # macOS app bundles keep sidecars in Contents/Resources
    yield exe_dir.parent / "Resources" / name


def _from_lib(name: str, cwd: Path, exe_dir: Path) -> Iterator[Path]:
    yield exe_dir / "lib" / name


def candidate_sources(platform: Optional[str] = None) -> List[CandidateSource]:
    """Ordered candidate generators for the given platform."""
    platform = platform or sys.platform
    sources: List[CandidateSource] = [_from_path, _from_cwd, _from_exe_dir]
    if platform == "darwin":
        sources.append(_from_resources)
    elif platform.startswith("linux"):
        sources.append(_from_lib)
    return sources


def find_deno(
    platform: Optional[str] = None,
    cwd: Optional[Path] = None,
    exe_path: Optional[Path] = None,
) -> Optional[Path]:
    """Locate the Deno executable.

    Checks, in order: PATH, the working directory, the directory of the
    running program, then the platform fallback (../Resources on macOS,
    lib/ on Linux).

    Args:
        platform: sys.platform value to search for (defaults to the host).
        cwd: Working directory (defaults to Path.cwd()).
        exe_path: Running program path (defaults to the current executable).

    Returns:
        Path to the first existing candidate, or None if Deno is not found.
    """
    logger.debug("starting search for deno executable")

    name = deno_executable_name(platform)
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    exe_dir = Path(exe_path if exe_path is not None else _current_exe()).parent

    for source in candidate_sources(platform):
        for candidate in source(name, cwd, exe_dir):
            if candidate.is_file():
                logger.debug(f"found deno at: {candidate}")
                return candidate
            logger.debug(f"deno not found at: {candidate}")

    logger.error("deno not found")
    return None
