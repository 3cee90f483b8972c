import contextlib
import logging
import os
import secrets
import tempfile
from dataclasses import dataclass

from .errors import StagingIOError

logger = logging.getLogger(__name__)

FILE_MODE = 0o600


@dataclass(frozen=True)
class StagedFile:
    path: str
    size: int


def staged_path(tmpdir=None) -> str:
    """Return an unguessable path under the temp directory; nothing is created."""
    directory = tmpdir or tempfile.gettempdir()
    return os.path.join(directory, f"temp_{secrets.token_hex(16)}.bin")


def _remove(path):
    try:
        os.unlink(path)
    except OSError as e:
        logger.debug(f"Could not remove staged file: {e}")


def _write(path, content):
    # O_EXCL: never write through a file or symlink that is already there.
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, FILE_MODE)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
    except OSError:
        _remove(path)
        raise


@contextlib.contextmanager
def staged_file(content: bytes, tmpdir=None):
    """Write ``content`` to a private temp file and remove it when the block exits.

    Removal runs on every exit path, including exceptions raised inside the
    block. A failed removal is logged and otherwise ignored.
    """
    path = staged_path(tmpdir)
    try:
        _write(path, content)
    except OSError as e:
        logger.error(f"Failed to stage bytecode: {e}")
        raise StagingIOError() from e

    try:
        yield StagedFile(path, len(content))
    finally:
        _remove(path)
