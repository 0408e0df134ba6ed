"""Context file assembly.

Turns the caller's ``context_files`` list into one text block that is
prepended to the prompt. Every path is handled independently: a file
that cannot be included becomes a placeholder line and the request
carries on.
"""
from __future__ import annotations

import logging
import os
import stat
from collections.abc import Sequence

from .config import MAX_CONTEXT_FILES, MAX_FILE_SIZE
from .errors import TooManyContextFilesError
from .models import ContextFile

logger = logging.getLogger(__name__)

_MB = 1024 * 1024


def _header(path: object) -> str:
    return f"--- File: {path} ---"


def _placeholder(path: object, reason: str) -> ContextFile:
    return ContextFile(path=path, block=f"{_header(path)} ({reason})")


def read_context_file(
    path: object,
    max_file_size: int = MAX_FILE_SIZE,
) -> ContextFile:
    """Resolve one context path into a block. Never raises."""
    if not isinstance(path, str):
        return _placeholder(path, "Invalid path type")

    try:
        resolved = os.path.abspath(path)
        st = os.stat(resolved)
    except (FileNotFoundError, NotADirectoryError):
        return _placeholder(path, "Not a regular file")
    except (OSError, ValueError) as exc:
        logger.debug("Cannot stat context file %s: %s", path, exc)
        return _placeholder(path, "Error reading file")

    if not stat.S_ISREG(st.st_mode):
        return _placeholder(path, "Not a regular file")

    if st.st_size > max_file_size:
        logger.info(
            "Skipping context file %s (%d bytes > %d)",
            path, st.st_size, max_file_size,
        )
        return _placeholder(
            path,
            f"File too large: {st.st_size / _MB:.1f}MB, "
            f"max {max_file_size / _MB:g}MB",
        )

    try:
        # newline="" keeps the file's own line endings
        with open(resolved, encoding="utf-8", errors="replace", newline="") as f:
            content = f.read()
    except OSError as exc:
        logger.debug("Cannot read context file %s: %s", path, exc)
        return _placeholder(path, "Error reading file")

    return ContextFile(path=path, block=f"{_header(path)}\n{content}", included=True)


def build_file_context(
    paths: Sequence[object] | None,
    *,
    max_files: int = MAX_CONTEXT_FILES,
    max_file_size: int = MAX_FILE_SIZE,
) -> str | None:
    """Build the combined context block for *paths*.

    Returns None when no paths were supplied. Raises
    TooManyContextFilesError before touching the filesystem when the
    list is longer than *max_files*.
    """
    if not paths:
        return None
    if len(paths) > max_files:
        raise TooManyContextFilesError(len(paths), max_files)

    files = [read_context_file(p, max_file_size) for p in paths]
    logger.debug(
        "Assembled context: %d/%d files included",
        sum(1 for f in files if f.included), len(files),
    )
    return "\n\n".join(f.block for f in files)
