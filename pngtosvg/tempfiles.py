"""
Scoped temporary PNG files for handing bitmaps to the tracer.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from .exceptions import TempFileCleanupError

logger = logging.getLogger(__name__)


def _remove(path: Path, strict: bool) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        if strict:
            raise TempFileCleanupError(path, e) from e
        logger.warning("Could not clean up temp file: %s (%s)", path, e)


@contextmanager
def temporary_png(
    directory: Optional[Union[str, Path]] = None,
    prefix: str = "temp_",
    strict: bool = True,
) -> Iterator[Path]:
    """
    Reserve a uniquely named ``.png`` path and delete it on exit.

    Args:
        directory: Where to create the file (system temp dir when None)
        prefix: File name prefix
        strict: Raise ``TempFileCleanupError`` if the file cannot be removed;
            otherwise only log a warning

    Yields:
        Path of the (empty) reserved file
    """
    fd, name = tempfile.mkstemp(
        prefix=prefix,
        suffix=".png",
        dir=str(directory) if directory is not None else None,
    )
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        _remove(path, strict)
