"""
Journal preallocation for mongod.

Left to itself, mongod creates its journal preallocation files at 100MB
each on first start. We create small ones up front so a fresh node does not
burn several hundred megabytes of disk (and startup time) on placeholders.

Invariants:
    - The journal directory is owner-only (0700)
    - Exactly PREALLOC_FILE_COUNT files, each >= PREALLOC_FILE_SIZE bytes
    - Only ever called before the service is first installed; running this
      against a live journal would clobber it

How to change safely:
    - mongod only looks for prealloc.<n>; do not rename the files
    - Partial files are left behind on failure, the next pass rewrites them
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .errors import PreallocationError

logger = logging.getLogger(__name__)

JOURNAL_DIR_NAME = "journal"
PREALLOC_FILE_COUNT = 3
PREALLOC_FILE_SIZE = 1024 * 1024
WRITE_CHUNK_SIZE = 64 * 1024


def journal_dir(db_dir: str | os.PathLike[str]) -> Path:
    """Return the journal directory inside a mongod dbpath."""
    return Path(db_dir) / JOURNAL_DIR_NAME


def prealloc_file_names() -> list[str]:
    return [f"prealloc.{n}" for n in range(PREALLOC_FILE_COUNT)]


def make_journal_dirs(db_dir: str | os.PathLike[str]) -> list[Path]:
    """Create the journal directory and its zero-filled preallocation files.

    Args:
        db_dir: The mongod dbpath (usually <dataDir>/db)

    Returns:
        Paths of the preallocation files written

    Raises:
        PreallocationError: If the directory or any file cannot be written
    """
    jdir = journal_dir(db_dir)
    try:
        jdir.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as e:
        logger.error("failed to make mongo journal dir %s: %s", jdir, e)
        raise PreallocationError(
            f"failed to make mongo journal dir {str(jdir)!r}: {e}", path=str(jdir)
        ) from e

    zeroes = bytes(WRITE_CHUNK_SIZE)
    written = []
    for name in prealloc_file_names():
        path = jdir / name
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o700)
        except OSError as e:
            raise PreallocationError(
                f"failed to open mongo prealloc file {str(path)!r}: {e}", path=str(path)
            ) from e
        try:
            with os.fdopen(fd, "wb") as f:
                total = 0
                while total < PREALLOC_FILE_SIZE:
                    total += f.write(zeroes)
        except OSError as e:
            raise PreallocationError(
                f"failed to write to mongo prealloc file {str(path)!r}: {e}", path=str(path)
            ) from e
        written.append(path)

    logger.debug("Created %d journal preallocation files in %s", len(written), jdir)
    return written
