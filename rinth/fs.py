import logging
import os
import shutil
import tempfile
import typing as t
from contextlib import contextmanager

logger = logging.getLogger(__name__)


def isfile(path: str) -> bool:
    return os.path.isfile(path)


def child_path(directory: str, filename: str):
    """Join a remote-supplied :param:`filename` onto :param:`directory`.

    Only the final path component is used, so the result is always directly
    inside :param:`directory`.

    :raises ValueError: if nothing usable remains of :param:`filename`.
    """
    name = os.path.basename(filename.replace("\\", "/"))
    if name in ("", ".", ".."):
        raise ValueError(f"'{filename}' is not a valid file name.")
    return os.path.join(directory, name)


def remove_file(path: str) -> bool:
    """Delete :param:`path` if it exists.

    :returns: `True` if a file was deleted. Failures are logged, not raised.
    """
    try:
        os.remove(path)
        logger.debug(f"Deleted '{path}'.")
        return True
    except FileNotFoundError:
        logger.debug(f"'{path}' does not exist, nothing to delete.")
    except OSError as e:
        logger.warning(f"Could not delete '{path}': {e.strerror or e}")
    return False


@contextmanager
def temporary_file(dir: t.Optional[str] = None, suffix="_rinth"):
    """Yield the path of a new empty file, removed on exit unless moved away."""
    fd, path = tempfile.mkstemp(suffix=suffix, dir=dir)
    os.close(fd)
    try:
        yield path
    finally:
        if isfile(path):
            os.remove(path)


def replace_file(src: str, dest: str):
    """Move :param:`src` over :param:`dest`.

    `os.replace` cannot move across filesystems, so fall back on `shutil.move`."""
    try:
        os.replace(src, dest)
    except OSError:
        if isfile(dest):
            os.remove(dest)
        shutil.move(src, dest)
