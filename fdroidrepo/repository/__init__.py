# Repository lifecycle.
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
This package contains :py:class:`Repository`, which sequences the operations on an F-Droid
repository: adding, signing and deleting APKs, and changing its configuration and
metadata.
"""

import logging
import os
import os.path as path
import shutil
import typing as T

import fdroidrepo.utils.fs as fdr_fs
from fdroidrepo.data.config import Config, ToolsConfig, load_tools_config
from fdroidrepo.data.index import App, read_index
from fdroidrepo.data.metadata import Metadata
from fdroidrepo.errors import (
    CommandFailedError,
    ExpectedDirectoryError,
    ExpectedFileError,
    InitializationError,
    InvalidFileError,
    UpdateError,
)
from fdroidrepo.utils.logging import repository_logger
from fdroidrepo.utils.proc import CommandRunner, SubprocessRunner

from .config import ConfigStore
from .metadata import MetadataStore
from .paths import RepositoryPaths
from .tool import FdroidTool, get_name, get_version_code

if T.TYPE_CHECKING:
    from fdroidrepo.utils.fs import AnyPath

logger = logging.getLogger(__name__)


class Repository:
    """
    An F-Droid repository in the directory ``root``.

    If ``root`` contains no ``config.yml``, a new repository is initialized there by
    running ``fdroid init``.

    Every operation runs to completion, including the external tools it starts, before it
    returns.  There is no locking: operations on the same root must not run concurrently,
    from this or any other process.  Callers sharing a repository should serialize access
    to it, for instance with a lock around each call.

    Args:
      root: Directory containing the repository.  Must exist.
      runner: Used to execute ``fdroid`` and ``aapt``.  Defaults to a
              :py:class:`SubprocessRunner` set up according to ``tools``.
      tools: Tool settings.  Defaults to :py:func:`load_tools_config`.

    Raises:
      ExpectedDirectoryError: if ``root`` is not a directory.
      InitializationError: if a new repository had to be created, and that failed.
      UpdateError: if the initial update of a new repository failed.
    """

    def __init__(
        self,
        root: "AnyPath",
        runner: CommandRunner | None = None,
        tools: ToolsConfig | None = None,
    ) -> None:
        root = path.abspath(root)
        if not path.isdir(root):
            raise ExpectedDirectoryError(root)

        if tools is None:
            tools = load_tools_config()
        if runner is None:
            runner = SubprocessRunner(env=tools.env or None, timeout=tools.timeout)

        self.root = root
        self.paths = RepositoryPaths(root)
        self.tool = FdroidTool(runner, root, fdroid=tools.fdroid, aapt=tools.aapt)
        self.log = repository_logger(logger, root)
        self._config = ConfigStore(self.paths, self.update)
        self._metadata = MetadataStore(self.paths, self.update)

        if not path.exists(fdr_fs.expect_file_if_present(self.paths.config)):
            self.initialize()

    def initialize(self) -> None:
        """
        Runs ``fdroid init``, then updates the new repository.

        Raises:
          InitializationError: if ``fdroid init`` failed, for whatever reason.
          UpdateError: if the update afterwards failed.
        """
        self.log.info("Initializing a new repository")
        try:
            self.tool.run("init")
        except CommandFailedError as e:
            raise InitializationError() from e
        self.update()

    def update(self) -> None:
        """
        Regenerates the index, by running ``fdroid update -c`` followed by ``fdroid update``.

        All operations that change the repository call this, so it should never need to be
        called manually.

        Raises:
          UpdateError: if either step failed.
        """
        self.log.info("Updating repository")
        try:
            self.tool.run("update", "-c")
            self.tool.run("update")
        except CommandFailedError as e:
            raise UpdateError() from e

    def publish(self) -> None:
        """Signs the APKs waiting in the unsigned directory, by running ``fdroid publish``."""
        self.log.info("Publishing changes")
        self.tool.run("publish")

    def cleanup(self) -> None:
        """
        Normalizes the formatting of all metadata files, by running ``fdroid rewritemeta``.
        Missing fields are filled in, but no data is changed.
        """
        self.log.debug("Cleaning up metadata files")
        self.tool.run("rewritemeta")

    def clear(self) -> None:
        """
        Permanently deletes **all** APKs and metadata, keeping the configuration and keys,
        then updates the repository.  There is no way back.
        """
        self.log.warning("Clearing the repository")
        for dir in (self.paths.repo_dir, self.paths.metadata_dir):
            if path.lexists(fdr_fs.expect_directory_if_present(dir)):
                shutil.rmtree(dir)
            os.mkdir(dir)
        self.update()

    def apps(self) -> list[App]:
        """
        Reads the index and returns all apps in the repository.

        Raises:
          IndexDecodeError: if the index could not be decoded.
        """
        return read_index(fdr_fs.expect_file_if_present(self.paths.index))

    def add_app(self, file_path: "AnyPath") -> None:
        """
        Adds an already signed APK to the repository.  An APK with the same file name is
        replaced.

        If copying or the update fails, the copied APK is removed again, and an APK it
        replaced is put back.

        Raises:
          ExpectedFileError: if ``file_path`` does not name a file.
          FileNotFoundError: if ``file_path`` does not exist.
          UpdateError: if updating the repository failed.
        """
        self.log.info(f"Adding new app: {os.fspath(file_path)!r}")
        file_name = path.basename(os.fspath(file_path))
        if not file_name:
            raise ExpectedFileError(file_path)

        fdr_fs.ensure_directory(self.paths.repo_dir)
        new_file_path = fdr_fs.expect_file_if_present(self.paths.apk(file_name))
        backup_file_path = None
        if path.exists(new_file_path):
            self.log.warning(f"File already exists, overriding existing file: {new_file_path!r}")
            # Not an .apk, so fdroid update skips it.
            backup_file_path = path.join(self.paths.repo_dir, f".{file_name}.orig")
            os.replace(new_file_path, backup_file_path)

        try:
            shutil.copyfile(file_path, new_file_path)
            self.update()
        except (OSError, UpdateError):
            self.log.warning(f"Adding {file_name!r} failed, removing {new_file_path!r} again")
            fdr_fs.remove_quietly(new_file_path)
            if backup_file_path is not None:
                fdr_fs.replace_quietly(backup_file_path, new_file_path)
            raise

        if backup_file_path is not None:
            fdr_fs.remove_quietly(backup_file_path)

    def delete_app(self, apk_name: str) -> None:
        """
        Deletes the APK named ``apk_name``, if it exists, and updates the repository.

        Raises:
          ExpectedFileError: if ``apk_name`` exists, but is not a file.
          UpdateError: if updating the repository failed.  The APK stays deleted.
        """
        self.log.warning(f"Deleting {apk_name!r}")
        file_path = self.paths.apk(apk_name)

        if not path.lexists(file_path):
            self.log.warning(f"Trying to delete {apk_name!r} but file does not exist")
            return
        if not path.isfile(file_path):
            raise ExpectedFileError(file_path)

        os.unlink(file_path)
        self.update()

    def sign_app(self, file_path: "AnyPath") -> None:
        """
        Signs an APK and adds it to the repository:

        #. Read the package name and version code of the APK using ``aapt``.
        #. Copy it into the unsigned directory as ``${name}_${version_code}.apk``.
        #. Create empty metadata for it, if there is none yet.
        #. Sign it with ``fdroid publish``, and update the repository.

        Nothing is undone if the last step fails.  The staged APK and metadata are left in
        place, and a later successful :py:meth:`publish` will pick them up.

        Raises:
          ExpectedFileError: if ``file_path`` is not a file.
          InvalidFileError: if the APK could not be read, or lacks a name or version code.
          CommandFailedError: if ``fdroid publish`` failed.
          UpdateError: if updating the repository failed.
        """
        self.log.info(f"Signing {os.fspath(file_path)!r}")
        apk_info = self.tool.apk_info(file_path)

        version_code = get_version_code(apk_info)
        if version_code is None:
            raise InvalidFileError(file_path, "Version Code not found!")
        name = get_name(apk_info)
        if name is None:
            raise InvalidFileError(file_path, "Name not found!")

        unsigned_file = path.join(self.paths.unsigned_dir(), f"{name}_{version_code}.apk")
        shutil.copyfile(file_path, unsigned_file)

        if not self._metadata.exists(name):
            self.log.warning("No metadata for this package exists, creating empty metadata file")
            self._metadata.create(name)

        self.publish()
        self.update()

    def config(self) -> Config:
        """
        Returns the public configuration of the repository.

        Raises:
          ConfigDecodeError: if ``config.yml`` is malformed.
        """
        return self._config.read_public()

    def set_config(self, config: Config) -> None:
        """
        Saves ``config`` as the new public configuration, keeping all secret fields, and
        updates the repository.
        """
        self._config.write_public(config)

    def keystore_password(self) -> str:
        """Returns the password of the keystore at :py:attr:`RepositoryPaths.keystore`."""
        return self._config.keystore_password()

    def image_path(self) -> str:
        """Returns the path to the repository icon."""
        return self._config.image_path()

    def set_image(self, new_image_path: "AnyPath") -> None:
        """
        Replaces the repository icon.  The new image must be of the same file type as the
        current one.

        Raises:
          InvalidFileError: if the file type differs.
        """
        self._config.set_image(new_image_path)

    def metadata(self, package_name: str) -> Metadata:
        """
        Returns the metadata of the app ``package_name``.

        Raises:
          FileNotFoundError: if the app has no metadata.
          MetadataDecodeError: if the metadata is malformed.
        """
        return self._metadata.read(package_name)

    def set_metadata(self, package_name: str, metadata: Metadata) -> None:
        """Saves new metadata for the app ``package_name``, and updates the repository."""
        self._metadata.write(package_name, metadata)

    def create_metadata(self, package_name: str) -> None:
        """Creates an empty metadata record for the app ``package_name``."""
        self._metadata.create(package_name)
