"""Publishing — replaces a destination directory with a rendered output tree."""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


class PublishError(Exception):
    """Raised when the output tree cannot be published to its destination."""

    def __init__(self, source: Path, destination: Path, cause: Exception) -> None:
        self.source = source
        self.destination = destination
        super().__init__(f"publishing {source} to {destination} failed: {cause}")
        self.__cause__ = cause


def publish_tree(source: str | Path, destination: str | Path) -> Path:
    """Replace ``destination`` with a copy of ``source``.

    The copy is staged next to the destination and swapped in with
    ``os.replace``, so the destination is never seen half-copied. Previous
    content is deleted only after the swap. The destination's parent must
    already exist.

    Returns the destination path.
    """
    src = Path(source)
    dest = Path(destination)

    if not src.is_dir():
        raise PublishError(src, dest, FileNotFoundError(f"no such directory: {src}"))

    parent = dest.parent
    if not parent.is_dir():
        raise PublishError(
            src, dest, FileNotFoundError(f"destination parent does not exist: {parent}")
        )

    token = uuid.uuid4().hex[:8]
    staging = parent / f".{dest.name}.staging-{token}"
    retired = parent / f".{dest.name}.old-{token}"

    try:
        shutil.copytree(src, staging)
    except OSError as e:
        _remove(staging)
        raise PublishError(src, dest, e) from e

    try:
        if dest.exists() or dest.is_symlink():
            os.replace(dest, retired)
        os.replace(staging, dest)
    except OSError as e:
        # Put the old tree back if it was already moved aside
        if retired.exists() and not dest.exists():
            os.replace(retired, dest)
        _remove(staging)
        raise PublishError(src, dest, e) from e

    try:
        _remove(retired)
    except OSError:
        logger.warning("could not remove previous tree %s", retired, exc_info=True)
    logger.info("published %s -> %s", src, dest)
    return dest


def _remove(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)
