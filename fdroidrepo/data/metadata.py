# App metadata records.
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
This module contains the model of per-app metadata files, as stored in the ``metadata/``
directory of a repository.

Only the commonly used fields are modelled.  See the `Build Metadata Reference`_ for the
complete format; fields not listed here survive a read-modify-write cycle unchanged.

.. _`Build Metadata Reference`: https://f-droid.org/en/docs/Build_Metadata_Reference/
"""

import enum
import typing as T

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fdroidrepo.errors import MetadataDecodeError


class Category(enum.Enum):
    """Well-known F-Droid app categories."""

    CONNECTIVITY = "Connectivity"
    DEVELOPMENT = "Development"
    GAMES = "Games"
    GRAPHICS = "Graphics"
    INTERNET = "Internet"
    MONEY = "Money"
    MULTIMEDIA = "Multimedia"
    NAVIGATION = "Navigation"
    PHONE_SMS = "Phone & SMS"
    READING = "Reading"
    SCIENCE_EDUCATION = "Science & Education"
    SECURITY = "Security"
    SPORTS_HEALTH = "Sports & Health"
    SYSTEM = "System"
    THEMING = "Theming"
    TIME = "Time"
    WRITING = "Writing"

    @classmethod
    def parse(cls, value: str) -> "Category | str":
        """
        Returns the matching :py:class:`Category`, or ``value`` itself if it names a
        custom category.
        """
        try:
            return cls(value)
        except ValueError:
            return value


AnyCategory: T.TypeAlias = Category | str
"""Either a well-known category, or the name of a custom one."""


class Metadata(BaseModel):
    """
    Metadata of a single app, keyed by its package name.
    """

    model_config = ConfigDict(extra="allow")

    Categories: list[str] = Field(default_factory=list)
    AuthorName: str | None = None
    AuthorEmail: str | None = None
    AuthorWebSite: str | None = None
    WebSite: str | None = None
    SourceCode: str | None = None
    IssueTracker: str | None = None
    Translation: str | None = None
    Changelog: str | None = None
    Donate: str | None = None
    License: str | None = None
    Name: str | None = None
    Summary: str | None = None
    Description: str | None = None
    AntiFeatures: list[str] | dict[str, T.Any] | None = None
    """
    Anti-features of the app, such as ``Ads`` or ``Tracking``.  Newer fdroidserver releases
    write a mapping from each anti-feature to the reasons for it.
    """

    def categories(self) -> list[AnyCategory]:
        """``Categories``, with well-known ones converted to :py:class:`Category`."""
        return [Category.parse(c) for c in self.Categories]


def decode_metadata(text: str) -> Metadata:
    """
    Parse a metadata file.  An empty file is an empty record.

    Raises:
      MetadataDecodeError: on malformed YAML or fields of the wrong type.
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise MetadataDecodeError(f"metadata is not valid YAML: {e}") from e
    if document is None:
        document = {}
    try:
        return Metadata.model_validate(document)
    except ValidationError as e:
        raise MetadataDecodeError(f"invalid metadata: {e}") from e


def encode_metadata(metadata: Metadata) -> str:
    """Serialize ``metadata``, leaving out unset fields."""
    document = metadata.model_dump(exclude_none=True)
    if not document.get("Categories"):
        document.pop("Categories", None)
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
