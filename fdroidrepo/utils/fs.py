# Filesystem utilities.
# Copyright (C) 2025  The fdroidrepo authors

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.

# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""
This package contains utilities used for dealing with the filesystem.
"""

import contextlib
import logging
import os
import os.path as path
import tempfile
import typing as T

from fdroidrepo.errors import ExpectedDirectoryError, ExpectedFileError

AnyPath: T.TypeAlias = os.PathLike[str] | str

logger = logging.getLogger(__name__)


def ensure_directory(dir_path: AnyPath) -> str:
    """
    Make sure ``dir_path`` is a directory, creating it if nothing exists there yet.

    Raises:
      ExpectedDirectoryError: if something other than a directory is in the way.
    """
    dir_path = os.fspath(dir_path)
    if path.lexists(dir_path):
        if not path.isdir(dir_path):
            raise ExpectedDirectoryError(dir_path)
        return dir_path
    os.mkdir(dir_path)
    return dir_path


def expect_directory_if_present(dir_path: AnyPath) -> str:
    """Like :py:func:`ensure_directory`, but never creates anything."""
    dir_path = os.fspath(dir_path)
    if path.lexists(dir_path) and not path.isdir(dir_path):
        raise ExpectedDirectoryError(dir_path)
    return dir_path


def expect_file_if_present(file_path: AnyPath) -> str:
    """
    Returns ``file_path`` as a string.

    Raises:
      ExpectedFileError: if ``file_path`` exists but is not a regular file.
    """
    file_path = os.fspath(file_path)
    if path.lexists(file_path) and not path.isfile(file_path):
        raise ExpectedFileError(file_path)
    return file_path


def remove_quietly(file_path: AnyPath) -> None:
    """
    Best-effort removal of ``file_path``, used to undo a partially applied operation.  A
    failure is logged rather than raised, so that it does not mask the original error.
    """
    try:
        os.unlink(file_path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.exception(f"failed to remove {os.fspath(file_path)!r} during cleanup")


def replace_quietly(src: AnyPath, dst: AnyPath) -> None:
    """
    Best-effort rename of ``src`` over ``dst``, used to put back a file that an operation
    moved aside.  Like :py:func:`remove_quietly`, a failure is only logged.
    """
    try:
        os.replace(src, dst)
    except OSError:
        logger.exception(
            f"failed to move {os.fspath(src)!r} back to {os.fspath(dst)!r} during cleanup"
        )


@contextlib.contextmanager
def atomic_write_open(fpath: AnyPath, mode: str) -> T.Generator[T.IO[T.Any], None, None]:
    """
    Open a temporary file beside ``fpath`` for writing, and rename it over ``fpath`` once
    the block exits successfully.  Readers never observe a half-written file.
    """
    path_dir = path.dirname(os.fspath(fpath))
    with tempfile.NamedTemporaryFile(prefix=".", dir=path_dir, delete=False, mode=mode) as f:
        try:
            yield f
        except BaseException:
            f.close()
            os.unlink(f.name)
            raise
    os.replace(f.name, fpath)
