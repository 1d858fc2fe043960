# Repository index models.
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
This module contains the typed view of ``index-v1.json``, the index ``fdroid update``
generates for a repository, and the logic to decode it.

The index lists apps in a top-level ``apps`` array, and their packages (APKs) in a separate
top-level ``packages`` mapping keyed by package name.  Decoding is all-or-nothing: a single
malformed app fails the whole index.
"""

import json
import logging
import typing as T
from dataclasses import dataclass

from fdroidrepo.errors import IndexDecodeError, MalformedIndexError

from .metadata import AnyCategory, Category

if T.TYPE_CHECKING:
    from fdroidrepo.utils.fs import AnyPath

logger = logging.getLogger(__name__)

_U32_MAX = 2**32 - 1


def _is_int(value: T.Any) -> bool:
    # JSON booleans decode to bool, which is an int subclass.
    return isinstance(value, int) and not isinstance(value, bool)


class DocumentAccessor:
    """
    Typed field access on one JSON object.

    Required fields that are absent or of the wrong shape raise
    :py:class:`MalformedIndexError`.  Optional fields that are absent or of the wrong shape
    read as ``None``.
    """

    _MISSING = object()

    def __init__(self, value: T.Any, what: str) -> None:
        if not isinstance(value, dict):
            raise MalformedIndexError(f"{what} is not an object")
        self.value = value
        self.what = what

    def _get(self, key: str) -> T.Any:
        return self.value.get(key, self._MISSING)

    def _fail(self, key: str, expected: str) -> T.NoReturn:
        if self._get(key) is self._MISSING:
            raise MalformedIndexError(f"{self.what} is missing {key!r}")
        raise MalformedIndexError(f"{self.what} field {key!r} is not {expected}")

    def required_str(self, key: str) -> str:
        value = self._get(key)
        if not isinstance(value, str):
            self._fail(key, "a string")
        return value

    def required_int(self, key: str, minimum: int | None = None) -> int:
        value = self._get(key)
        if not _is_int(value) or (minimum is not None and value < minimum):
            self._fail(key, "an integer" if minimum is None else f"an integer >= {minimum}")
        return T.cast(int, value)

    def required_list(self, key: str) -> list[T.Any]:
        value = self._get(key)
        if not isinstance(value, list):
            self._fail(key, "an array")
        return value

    def required_object(self, key: str) -> dict[str, T.Any]:
        value = self._get(key)
        if not isinstance(value, dict):
            self._fail(key, "an object")
        return value

    def optional_str(self, key: str) -> str | None:
        value = self._get(key)
        return value if isinstance(value, str) else None

    def optional_uint(self, key: str, maximum: int | None = None) -> int | None:
        value = self._get(key)
        if not _is_int(value) or value < 0 or (maximum is not None and value > maximum):
            return None
        return T.cast(int, value)

    def optional_list(self, key: str) -> list[T.Any] | None:
        value = self._get(key)
        return value if isinstance(value, list) else None


@dataclass
class Permission:
    """A ``uses-permission`` entry of a package."""

    name: str
    """Permission name, e.g. ``android.permission.INTERNET``."""

    max_sdk_version: int | None
    """The permission is only requested up to this SDK version, if set."""


@dataclass
class Package:
    """A specific version of a single app, that is, a single APK."""

    added: int
    """When this package was added, in milliseconds since the epoch."""
    apk_name: str
    hash: str
    hash_type: str
    """Name of the hash algorithm of ``hash``, usually ``sha256``."""
    package_name: str
    size: int
    """Size of the APK in bytes."""
    version_name: str

    nativecode: list[str]
    """Native code ABIs this APK contains.  Empty if none are listed."""
    max_sdk_version: int | None
    min_sdk_version: int | None
    target_sdk_version: int | None
    sig: str | None
    signer: str | None
    uses_permission: list[Permission]
    version_code: int | None

    @classmethod
    def from_json(cls, value: T.Any) -> "Package":
        doc = DocumentAccessor(value, "package")

        nativecode = doc.optional_list("nativecode") or []
        if not all(isinstance(abi, str) for abi in nativecode):
            nativecode = []

        uses_permission = []
        for entry in doc.optional_list("uses-permission") or []:
            if not isinstance(entry, list) or len(entry) != 2 or not isinstance(entry[0], str):
                raise MalformedIndexError(f"malformed uses-permission entry {entry!r}")
            max_version = entry[1]
            if not _is_int(max_version) or not 0 <= max_version <= _U32_MAX:
                max_version = None
            uses_permission.append(Permission(name=entry[0], max_sdk_version=max_version))

        return cls(
            added=doc.required_int("added"),
            apk_name=doc.required_str("apkName"),
            hash=doc.required_str("hash"),
            hash_type=doc.required_str("hashType"),
            package_name=doc.required_str("packageName"),
            size=doc.required_int("size", minimum=0),
            version_name=doc.required_str("versionName"),
            nativecode=nativecode,
            max_sdk_version=doc.optional_uint("maxSdkVersion", _U32_MAX),
            min_sdk_version=doc.optional_uint("minSdkVersion", _U32_MAX),
            target_sdk_version=doc.optional_uint("targetSdkVersion", _U32_MAX),
            sig=doc.optional_str("sig"),
            signer=doc.optional_str("signer"),
            uses_permission=uses_permission,
            version_code=doc.optional_uint("versionCode"),
        )


@dataclass
class App:
    """A single app, and all of its packages present in the repository."""

    package_name: str
    """Unique identifier of the app."""
    name: str
    license: str
    categories: list[AnyCategory]
    suggested_version_code: str
    added: int
    last_updated: int
    packages: list[Package]


def parse_index(document: T.Any) -> list[App]:
    """
    Map a decoded ``index-v1.json`` document into a list of apps, in index order.

    Raises:
      MalformedIndexError: if any app or package does not match the expected schema.
    """
    index = DocumentAccessor(document, "index")
    packages = index.required_object("packages")

    apps = []
    for app_value in index.required_list("apps"):
        app = DocumentAccessor(app_value, "app")
        package_name = app.required_str("packageName")
        if not package_name:
            raise MalformedIndexError("app has an empty packageName")
        app.what = f"app {package_name!r}"

        categories: list[AnyCategory] = []
        for category in app.required_list("categories"):
            if not isinstance(category, str):
                raise MalformedIndexError(f"{app.what} has a non-string category")
            categories.append(Category.parse(category))

        package_list = packages.get(package_name)
        if not isinstance(package_list, list):
            raise MalformedIndexError(f"{app.what} has no package list")
        app_packages = [Package.from_json(p) for p in package_list]
        if not any(p.package_name == package_name for p in app_packages):
            raise MalformedIndexError(f"{app.what} has no packages of its own")

        apps.append(
            App(
                package_name=package_name,
                name=app.required_str("name"),
                license=app.required_str("license"),
                categories=categories,
                suggested_version_code=app.required_str("suggestedVersionCode"),
                added=app.required_int("added"),
                last_updated=app.required_int("lastUpdated"),
                packages=app_packages,
            )
        )

    return apps


def read_index(index_file: "AnyPath") -> list[App]:
    """
    Read and decode the index at ``index_file``.  A repository that was never updated has
    no index, and hence no apps.

    Raises:
      IndexDecodeError: if the file is not valid JSON, or does not match the schema.
    """
    try:
        with open(index_file, "r", encoding="utf-8") as f:
            document = json.load(f)
    except FileNotFoundError:
        logger.debug(f"no index at {index_file!r}, assuming no apps")
        return []
    except ValueError as e:
        raise IndexDecodeError("Could not read repository index file!") from e
    return parse_index(document)
