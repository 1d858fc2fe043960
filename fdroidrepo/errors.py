# Exception types.
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
This module contains the exceptions raised by repository operations.

Filesystem failures are not wrapped; they propagate as the :py:class:`OSError` raised by
the failing call.
"""

import typing as T

if T.TYPE_CHECKING:
    from .utils.fs import AnyPath


class RepositoryError(Exception):
    """
    Base class for all errors raised by this package.
    """


class DecodeError(RepositoryError, ValueError):
    """
    Raised when a structured document on disk could not be decoded.
    """


class ConfigDecodeError(DecodeError):
    """Raised when ``config.yml`` (or a tool settings file) is unreadable as configuration."""


class IndexDecodeError(DecodeError):
    """Raised when the repository index file is not valid JSON."""


class MalformedIndexError(IndexDecodeError):
    """
    Raised when the repository index file is valid JSON, but does not match the expected
    schema.  No partial result is ever produced.
    """


class MetadataDecodeError(DecodeError):
    """Raised when a metadata record is unreadable."""


class EntryKindError(RepositoryError):
    """
    Raised when a path exists, but is of the wrong kind (e.g. a file where a directory was
    expected).
    """

    def __init__(self, path: "AnyPath", message: str) -> None:
        super().__init__(f"{message}: {str(path)!r}")
        self.path = path


class ExpectedDirectoryError(EntryKindError):
    def __init__(self, path: "AnyPath") -> None:
        super().__init__(path, "The provided path is not a directory")


class ExpectedFileError(EntryKindError):
    def __init__(self, path: "AnyPath") -> None:
        super().__init__(path, "The provided path is not a file")


class InvalidFileError(RepositoryError):
    """
    Raised when a file (an APK or an image) fails a semantic check.
    """

    def __init__(self, file: "AnyPath", reason: str | None = None) -> None:
        message = f"File with path {str(file)!r} is invalid."
        if reason is not None:
            message += f' Reason: "{reason}".'
        super().__init__(message)
        self.file = file
        self.reason = reason
        """Human-readable explanation, if any."""


class CommandFailedError(RepositoryError):
    """
    Raised when an external command could not be spawned or did not exit successfully.
    """

    def __init__(self, command: str) -> None:
        super().__init__(f'Command failed. Command "{command}"!')
        self.command = command
        """The attempted command line, for diagnostics."""


class InitializationError(RepositoryError):
    """Raised when ``fdroid init`` fails, regardless of the cause."""

    def __init__(self) -> None:
        super().__init__("Could not initialize the repository!")


class UpdateError(RepositoryError):
    """Raised when either step of a repository update fails."""

    def __init__(self) -> None:
        super().__init__("Could not update the repository!")
