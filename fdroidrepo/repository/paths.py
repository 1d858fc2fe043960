# Repository layout.
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
This module contains the fixed on-disk layout of a repository.
"""

import os.path as path

import fdroidrepo.utils.fs as fdr_fs

DEFAULT_ICON = "icon.png"
"""Icon file name used when ``repo_icon`` is not configured."""

INDEX_FILE = "index-v1.json"


class RepositoryPaths:
    """
    Computes the paths of a repository rooted at ``root``.  None of the methods touch the
    filesystem, except :py:meth:`unsigned_dir`, which creates the intake directory if
    needed.
    """

    def __init__(self, root: str) -> None:
        self.root = root

    @property
    def keystore(self) -> str:
        """
        The keystore file.  See `signing <https://f-droid.org/en/docs/Signing_Process/>`_.
        """
        return path.join(self.root, "keystore.p12")

    @property
    def config(self) -> str:
        """The ``config.yml`` file shared with ``fdroid``."""
        return path.join(self.root, "config.yml")

    @property
    def metadata_dir(self) -> str:
        """Directory of per-app metadata records."""
        return path.join(self.root, "metadata")

    @property
    def repo_dir(self) -> str:
        """Directory containing all APKs, the index, and some additional files."""
        return path.join(self.root, "repo")

    @property
    def index(self) -> str:
        return path.join(self.repo_dir, INDEX_FILE)

    @property
    def icons_dir(self) -> str:
        return path.join(self.repo_dir, "icons")

    def icon(self, repo_icon: str | None) -> str:
        """Path of the repository icon, given the configured ``repo_icon``, if any."""
        return path.join(self.icons_dir, repo_icon or DEFAULT_ICON)

    def metadata_file(self, package_name: str) -> str:
        return path.join(self.metadata_dir, f"{package_name}.yml")

    def apk(self, apk_name: str) -> str:
        """Path of the APK named ``apk_name`` in the repository."""
        return path.join(self.repo_dir, apk_name)

    def unsigned_dir(self) -> str:
        """
        Directory in which APKs wait to be signed by ``fdroid publish``.  Created on first
        access.

        Raises:
          ExpectedDirectoryError: if the path exists, but is not a directory.
        """
        return fdr_fs.ensure_directory(path.join(self.root, "unsigned"))
