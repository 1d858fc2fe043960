# Configuration file models
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
Data models and validation schemas for configuration files.

Two kinds of configuration exist: the repositories ``config.yml``, which is shared with
``fdroid`` and split into a secret and a public part (see :py:class:`ConfigFile`), and the
settings of this library itself (see :py:class:`ToolsConfig`).
"""

import logging
import os
import os.path as path
import typing as T

import toml
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fdroidrepo.errors import ConfigDecodeError

logger = logging.getLogger(__name__)


class LoggingConfig(BaseModel):
    """
    Common logging configuration.  Applications hand it to
    :py:func:`fdroidrepo.utils.logging.apply_logging_config` at startup.
    """

    debug: bool = Field(default=False)
    """
    If ``true``, enables logging the debug level.  This can be extremely verbose.
    """

    quiet_commands: bool = Field(default=False)
    """
    If ``true``, command lines of executed tools are not logged.
    """


class ToolsConfig(BaseModel):
    """
    Settings for the external tools this library drives.
    """

    fdroid: str = Field(default="fdroid")
    """
    Name of, or path to, the ``fdroid`` executable from fdroidserver_.

    .. _fdroidserver: https://gitlab.com/fdroid/fdroidserver
    """

    aapt: str = Field(default="aapt")
    """
    Name of, or path to, the ``aapt`` executable from the Android build tools.  Used to
    extract metadata from APKs.
    """

    timeout: T.Annotated[float, Field(gt=0)] | None = Field(default=None)
    """
    Number of seconds after which a running tool is killed and considered failed.
    Defaults to waiting forever.
    """

    env: dict[str, str] = Field(default_factory=dict)
    """
    Extra environment variables for the tools, on top of the inherited environment.
    """


def load_tools_config(config_file: str = "tools.toml") -> ToolsConfig:
    """
    Load tool settings from ``config_file`` in the configuration directory, given by
    ``FDROIDREPO_CFG_DIR`` and defaulting to ``/etc/fdroidrepo``.  If the file does not
    exist, the defaults are used.

    Raises:
      ConfigDecodeError: if the file exists, but cannot be parsed or validated.
    """

    config_dir = os.getenv("FDROIDREPO_CFG_DIR") or "/etc/fdroidrepo"
    config_path = path.join(config_dir, config_file)

    try:
        with open(config_path, "r") as config:
            return ToolsConfig.model_validate(toml.load(config))
    except FileNotFoundError:
        logger.debug(f"{config_path} not found, using default tool settings")
        return ToolsConfig()
    except (ValidationError, toml.TomlDecodeError) as e:
        raise ConfigDecodeError(f"failed to parse {config_path}: {e}") from e


class SecretConfig(BaseModel):
    """
    The part of ``config.yml`` written by ``fdroid init`` and never changed afterwards.
    Contains signing keys and passwords, so it is never exposed by ordinary configuration
    reads.

    Keys ``fdroid init`` writes that are not listed here are kept as-is.

    See the fdroidserver `example configuration`_ for the meaning of each of these.

    .. _`example configuration`:
       https://gitlab.com/fdroid/fdroidserver/-/blob/master/examples/config.yml
    """

    model_config = ConfigDict(extra="allow")

    sdk_path: str
    """Path to the Android SDK."""

    repo_keyalias: str
    """Alias of the repository signing key in the keystore."""

    keystore: str
    """Location of the keystore, relative to the repository root."""

    keystorepass: str
    """Password of the keystore."""

    keypass: str
    """Password of the signing key."""

    keydname: str
    """Distinguished name of the signing key."""

    apksigner: str | None = Field(default=None)
    """Path to ``apksigner``, if not found automatically."""


class Config(BaseModel):
    """
    Configuration data of a repository that may be freely read and changed.
    """

    model_config = ConfigDict(validate_assignment=True)

    repo_url: str | None = None
    repo_name: str | None = None
    repo_icon: str | None = None
    """File name of the repository icon, inside ``repo/icons/``."""
    repo_description: str | None = None

    archive_url: str | None = None
    archive_name: str | None = None
    archive_icon: str | None = None
    archive_description: str | None = None
    archive_older: T.Annotated[int, Field(ge=0, le=255)] | None = None
    """How many old versions of an app to keep before moving them to the archive."""


_PUBLIC_KEYS = frozenset(Config.model_fields)


class ConfigFile(BaseModel):
    """
    The complete contents of ``config.yml``.  On disk, this is a single flat mapping; here,
    it is split by key into the secret and the public part.
    """

    secrets: SecretConfig
    public: Config

    @classmethod
    def from_document(cls, document: T.Any) -> "ConfigFile":
        """
        Split a decoded ``config.yml`` mapping.

        Raises:
          ConfigDecodeError: if the document is not a mapping, or some field is missing or
                             malformed.
        """
        if not isinstance(document, dict):
            raise ConfigDecodeError("config.yml does not contain a mapping")
        secret_part = {k: v for k, v in document.items() if k not in _PUBLIC_KEYS}
        public_part = {k: v for k, v in document.items() if k in _PUBLIC_KEYS}
        try:
            return cls(
                secrets=SecretConfig.model_validate(secret_part),
                public=Config.model_validate(public_part),
            )
        except ValidationError as e:
            raise ConfigDecodeError(f"invalid config.yml: {e}") from e

    def to_document(self) -> dict[str, T.Any]:
        """Flatten back into the on-disk mapping.  Unset optional fields are omitted."""
        document = self.secrets.model_dump()
        if document["apksigner"] is None:
            del document["apksigner"]
        document.update(self.public.model_dump(exclude_none=True))
        return document

    def with_public(self, public: Config) -> "ConfigFile":
        """Returns a copy with the public part replaced by ``public``."""
        return ConfigFile(secrets=self.secrets, public=public)


def decode_config(text: str) -> ConfigFile:
    """Parse the text of a ``config.yml`` file."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigDecodeError(f"config.yml is not valid YAML: {e}") from e
    return ConfigFile.from_document(document)


def encode_config(config: ConfigFile) -> str:
    """Serialize ``config`` into the text of a ``config.yml`` file."""
    return yaml.safe_dump(config.to_document(), sort_keys=False, allow_unicode=True)
