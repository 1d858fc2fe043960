# Create and manipulate F-Droid repositories.
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
Create and manipulate an F-Droid_ repository.

:py:class:`fdroidrepo.repository.Repository` is the entry point: open a directory with it
to get at the apps, configuration and metadata of the repository inside, or to create a
new one.  The ``fdroid`` tool from fdroidserver and ``aapt`` from the Android build tools
must be installed.

.. _F-Droid: https://f-droid.org/
"""

__version__ = "0.1.0"

from .repository import Repository  # noqa: E402

__all__ = ["Repository", "__version__"]
