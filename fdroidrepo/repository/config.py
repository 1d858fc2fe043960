# Repository configuration management.
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
This module contains the logic for reading and changing ``config.yml``.

Writes always go through a read-merge-write cycle: the file is reloaded, only the public
part is replaced, and the whole is written back, so that the secrets ``fdroid init``
generated are never lost.
"""

import logging
import os
import os.path as path
import shutil
import typing as T

from pydantic import ValidationError

import fdroidrepo.utils.fs as fdr_fs
from fdroidrepo.data.config import Config, ConfigFile, decode_config, encode_config
from fdroidrepo.errors import ConfigDecodeError, InvalidFileError

from .paths import RepositoryPaths

if T.TYPE_CHECKING:
    from fdroidrepo.utils.fs import AnyPath

logger = logging.getLogger(__name__)


class ConfigStore:
    """
    Access to the configuration of the repository whose layout is ``paths``.

    Args:
      paths: Repository layout.
      update: Called after the configuration changed, to regenerate the index.
    """

    def __init__(self, paths: RepositoryPaths, update: T.Callable[[], None]) -> None:
        self.paths = paths
        self.update = update

    def read(self) -> ConfigFile:
        """
        Load the complete configuration, secrets included.

        Raises:
          ConfigDecodeError: if the file is malformed, or a secret field is missing.
        """
        with open(fdr_fs.expect_file_if_present(self.paths.config), "r", encoding="utf-8") as f:
            return decode_config(f.read())

    def read_public(self) -> Config:
        """Load the public part of the configuration."""
        return self.read().public

    def write_public(self, public: Config) -> None:
        """
        Replace the public part of the configuration with ``public``, and update the
        repository so that the change is published.

        Raises:
          ConfigDecodeError: if ``public`` holds invalid values.  The file is left as it was.
        """
        logger.info("Setting new config")
        try:
            public = Config.model_validate(public.model_dump())
        except ValidationError as e:
            raise ConfigDecodeError(f"refusing to write invalid config: {e}") from e
        merged = self.read().with_public(public)
        with fdr_fs.atomic_write_open(self.paths.config, "w") as f:
            f.write(encode_config(merged))
        self.update()

    def keystore_password(self) -> str:
        """
        Returns the keystore password.

        See `signing <https://f-droid.org/en/docs/Signing_Process/>`_.
        """
        return self.read().secrets.keystorepass

    def image_path(self) -> str:
        """Path to the repository icon."""
        return self.paths.icon(self.read_public().repo_icon)

    def set_image(self, new_image_path: "AnyPath") -> None:
        """
        Replace the repository icon with the file at ``new_image_path``.  The new image must
        have the same file type (extension) as the configured icon.

        Raises:
          InvalidFileError: if the file types differ.
        """
        logger.info(f"Setting new repository image: {os.fspath(new_image_path)!r}")
        image_path = self.image_path()

        new_image_type = path.splitext(new_image_path)[1]
        current_image_type = path.splitext(image_path)[1]
        if not new_image_type:
            raise InvalidFileError(new_image_path, "Image does not have a file type")
        if not current_image_type:
            raise InvalidFileError(new_image_path, "Configured icon does not have a file type")
        if new_image_type != current_image_type:
            raise InvalidFileError(new_image_path, f"Image type should be: {current_image_type}")

        fdr_fs.ensure_directory(self.paths.repo_dir)
        fdr_fs.ensure_directory(self.paths.icons_dir)
        shutil.copyfile(new_image_path, fdr_fs.expect_file_if_present(image_path))
