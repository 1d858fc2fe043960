# Invocation of external tools.
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
This module contains the interface to the two external tools a repository relies on:
``fdroid``, which maintains and signs the repository, and ``aapt``, which reads APK
manifests.
"""

import logging
import os
import os.path as path
import re
import shlex
import typing as T

from fdroidrepo.errors import CommandFailedError, ExpectedFileError, InvalidFileError
from fdroidrepo.utils.proc import CommandRunner, CommandStatus

if T.TYPE_CHECKING:
    from fdroidrepo.utils.fs import AnyPath

logger = logging.getLogger(__name__)

VERSION_CODE_RE = re.compile(r"versionCode='(\d+)'")
NAME_RE = re.compile(r"name='([A-Za-z.]+)'")


class FdroidTool:
    """
    Runs ``fdroid`` subcommands and ``aapt`` for one repository, through ``runner``.
    """

    def __init__(
        self,
        runner: CommandRunner,
        root: str,
        fdroid: str = "fdroid",
        aapt: str = "aapt",
    ) -> None:
        self.runner = runner
        self.root = root
        self.fdroid = fdroid
        self.aapt = aapt

    def run(self, subcommand: str, *args: str) -> None:
        """
        Runs ``fdroid ${subcommand} ${args}`` in the repository root.  Only the exit status
        is considered; output goes wherever the runner sends it.

        Raises:
          CommandFailedError: if the command could not be spawned, or failed.
        """
        command = shlex.join([self.fdroid, subcommand, *args])
        context = dict(repository=self.root, command=command)
        logger.debug(f"Running fdroid {subcommand}", extra=context)
        outcome = self.runner.run(self.fdroid, [subcommand, *args], cwd=self.root)
        if not outcome.is_success:
            logger.error(
                f"fdroid {subcommand} failed ({outcome.status.value}, rc={outcome.returncode})",
                extra=context,
            )
            raise CommandFailedError(command)

    def apk_info(self, apk_path: "AnyPath") -> str:
        """
        Returns the output of ``aapt dump badging`` for ``apk_path``, decoded leniently.

        Raises:
          ExpectedFileError: if ``apk_path`` is not an existing file.
          InvalidFileError: if ``aapt`` could not be run, or rejected the file.
        """
        if not path.isfile(apk_path):
            raise ExpectedFileError(apk_path)

        args = ["dump", "badging", os.fspath(apk_path)]
        outcome = self.runner.run(self.aapt, args, capture=True)
        if outcome.status == CommandStatus.SPAWN_FAILED:
            raise InvalidFileError(apk_path, "aapt could not be run")
        if not outcome.is_success:
            raise InvalidFileError(apk_path, "aapt rejected the file")
        return outcome.stdout.decode("utf-8", errors="replace")


def get_version_code(apk_info: str) -> int | None:
    """Extract the version code from ``aapt dump badging`` output, if present."""
    match = VERSION_CODE_RE.search(apk_info)
    return int(match.group(1)) if match else None


def get_name(apk_info: str) -> str | None:
    """Extract the package name from ``aapt dump badging`` output, if present."""
    match = NAME_RE.search(apk_info)
    return match.group(1) if match else None
