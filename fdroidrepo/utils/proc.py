# Utilities for dealing with processes.
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
This module contains utilities for executing subprocesses.

Commands are executed through a :py:class:`CommandRunner`, so that callers can substitute
a fake runner (for instance, in tests) for the real executables.
"""

import enum
import logging
import os
import shlex
import subprocess
import typing as T
from dataclasses import dataclass, field

if T.TYPE_CHECKING:
    from .fs import AnyPath

logger = logging.getLogger(__name__)


class CommandStatus(enum.Enum):
    """How a command invocation ended."""

    SUCCEEDED = "SUCCEEDED"
    """The process ran and exited with status zero."""
    SPAWN_FAILED = "SPAWN_FAILED"
    """The process could not be started at all (e.g. the executable is missing)."""
    FAILED = "FAILED"
    """The process exited with a nonzero status, was killed, or timed out."""


@dataclass
class CommandOutcome:
    """Result of a single command invocation."""

    status: CommandStatus
    """Classification of the outcome."""

    returncode: int | None = None
    """Exit status, if the process ran to completion."""

    stdout: bytes = field(default=b"")
    """Captured standard output.  Empty unless capture was requested."""

    @property
    def is_success(self) -> bool:
        return self.status == CommandStatus.SUCCEEDED


class CommandRunner(T.Protocol):
    """
    Something capable of running a program to completion.
    """

    def run(
        self,
        program: str,
        args: T.Sequence[str],
        cwd: T.Optional["AnyPath"] = None,
        capture: bool = False,
    ) -> CommandOutcome:
        """
        Run ``program`` with ``args`` in ``cwd`` and block until it terminates.  If
        ``capture`` is set, standard output is collected into the outcome.  Must not raise
        for ordinary failures; those are expressed through :py:attr:`CommandOutcome.status`.
        """


def merge_env(env: dict[str, str]) -> dict[str, str]:
    """Gets the current :py:data:`os.environ`, modified with ``env``."""
    environ = os.environ.copy()
    environ.update(env)
    return environ


class SubprocessRunner:
    """
    A :py:class:`CommandRunner` that runs real executables via :py:mod:`subprocess`.
    """

    def __init__(self, env: dict[str, str] | None = None, timeout: float | None = None) -> None:
        """
        Args:
          env: Variables to add to the inherited environment, if any.
          timeout: Seconds to wait before killing the command.  ``None`` waits forever.
        """
        self.env = env
        self.timeout = timeout

    def run(
        self,
        program: str,
        args: T.Sequence[str],
        cwd: T.Optional["AnyPath"] = None,
        capture: bool = False,
    ) -> CommandOutcome:
        cmdline = [program, *args]
        logger.info(f"Running command {shlex.join(cmdline)} (cwd={cwd!r})")
        environ = merge_env(self.env) if self.env else None
        try:
            proc = subprocess.run(
                cmdline,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE if capture else None,
                env=environ,
                cwd=cwd,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command {shlex.join(cmdline)} timed out after {self.timeout}s")
            return CommandOutcome(CommandStatus.FAILED)
        except OSError as e:
            logger.error(f"Failed to spawn {shlex.join(cmdline)}: {e}")
            return CommandOutcome(CommandStatus.SPAWN_FAILED)

        logger.debug(f"Exit code: {proc.returncode}")
        status = CommandStatus.SUCCEEDED if proc.returncode == 0 else CommandStatus.FAILED
        return CommandOutcome(status, proc.returncode, proc.stdout or b"")
