# App metadata management.
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
This module contains the logic for reading and writing per-app metadata records.
"""

import logging
import os.path as path
import typing as T

import fdroidrepo.utils.fs as fdr_fs
from fdroidrepo.data.metadata import Metadata, decode_metadata, encode_metadata

from .paths import RepositoryPaths

logger = logging.getLogger(__name__)


class MetadataStore:
    """
    Access to the ``metadata/`` directory of the repository whose layout is ``paths``.
    ``update`` is called after a record was changed.
    """

    def __init__(self, paths: RepositoryPaths, update: T.Callable[[], None]) -> None:
        self.paths = paths
        self.update = update

    def read(self, package_name: str) -> Metadata:
        """
        Raises:
          FileNotFoundError: if no record exists for ``package_name``.
          MetadataDecodeError: if the record is malformed.
        """
        metadata_file = fdr_fs.expect_file_if_present(self.paths.metadata_file(package_name))
        with open(metadata_file, "r", encoding="utf-8") as f:
            return decode_metadata(f.read())

    def exists(self, package_name: str) -> bool:
        return path.lexists(self.paths.metadata_file(package_name))

    def _write(self, package_name: str, metadata: Metadata) -> None:
        fdr_fs.ensure_directory(self.paths.metadata_dir)
        with fdr_fs.atomic_write_open(self.paths.metadata_file(package_name), "w") as f:
            f.write(encode_metadata(metadata))

    def write(self, package_name: str, metadata: Metadata) -> None:
        """Replace the record of ``package_name``, and update the repository."""
        logger.info(f"Setting metadata of {package_name}")
        self._write(package_name, metadata)
        self.update()

    def create(self, package_name: str) -> None:
        """Create an empty record for ``package_name``.  Does not update the repository."""
        logger.info(f"Creating empty metadata for {package_name}")
        self._write(package_name, Metadata())
