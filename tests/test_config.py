"""
Tests for the repository configuration and tool settings.
"""

import pytest
import yaml
from pydantic import ValidationError

from fdroidrepo.data.config import (
    Config,
    ConfigFile,
    ToolsConfig,
    decode_config,
    encode_config,
    load_tools_config,
)
from fdroidrepo.errors import ConfigDecodeError, InvalidFileError

from .fakes import SECRETS


def read_document(repo):
    with open(repo.paths.config) as f:
        return yaml.safe_load(f)


class TestRepositoryConfig:
    def test_default_config_is_empty(self, repo):
        assert repo.config() == Config()

    def test_round_trip(self, repo):
        config = repo.config()
        config.repo_name = "new name"
        config.archive_description = "test description"
        config.archive_older = 3

        repo.set_config(config)

        assert repo.config() == config

    def test_secrets_are_preserved(self, repo):
        before = repo._config.read().secrets

        repo.set_config(Config(repo_name="Example", repo_url="https://example.org/fdroid/repo"))

        assert repo._config.read().secrets == before
        document = read_document(repo)
        for key, value in SECRETS.items():
            assert document[key] == value

    def test_unknown_keys_are_preserved(self, repo):
        with open(repo.paths.config, "a") as f:
            f.write("make_current_version_link: false\n")

        repo.set_config(Config(repo_name="Example"))

        assert read_document(repo)["make_current_version_link"] is False

    def test_unset_fields_are_omitted(self, repo):
        repo.set_config(Config(repo_name="Example"))
        repo.set_config(Config(repo_description="Only a description"))

        document = read_document(repo)
        assert "repo_name" not in document
        assert "apksigner" not in document
        assert document["repo_description"] == "Only a description"

    def test_set_config_updates(self, repo, runner):
        runner.calls.clear()
        repo.set_config(Config(repo_name="Example"))
        assert runner.fdroid_calls() == [["update", "-c"], ["update"]]

    @pytest.mark.parametrize(
        "field, value", [("archive_older", 300), ("archive_older", -1), ("repo_name", 123)]
    )
    def test_invalid_assignment(self, repo, field, value):
        config = repo.config()
        with pytest.raises(ValidationError):
            setattr(config, field, value)

    def test_invalid_config_is_not_written(self, repo, runner):
        repo.set_config(Config(repo_name="Example"))
        before = read_document(repo)
        runner.calls.clear()

        with pytest.raises(ConfigDecodeError):
            repo.set_config(Config.model_construct(archive_older=300))

        assert read_document(repo) == before
        assert repo.config() == Config(repo_name="Example")
        assert runner.fdroid_calls() == []

    def test_keystore_password(self, repo):
        assert repo.keystore_password() == SECRETS["keystorepass"]

    def test_missing_secret(self, repo):
        document = read_document(repo)
        del document["keypass"]
        with open(repo.paths.config, "w") as f:
            yaml.safe_dump(document, f)

        with pytest.raises(ConfigDecodeError):
            repo.config()

    def test_malformed_yaml(self, repo):
        with open(repo.paths.config, "w") as f:
            f.write("repo_name: [unterminated\n")
        with pytest.raises(ConfigDecodeError):
            repo.config()


class TestConfigDocument:
    def test_split_and_flatten(self):
        config = decode_config(yaml.safe_dump(dict(SECRETS, repo_name="Example", archive_older=2)))

        assert config.secrets.keystore == "keystore.p12"
        assert config.public == Config(repo_name="Example", archive_older=2)
        assert yaml.safe_load(encode_config(config)) == dict(
            SECRETS, repo_name="Example", archive_older=2
        )

    def test_with_public_keeps_secrets(self):
        config = ConfigFile.from_document(dict(SECRETS, apksigner="/usr/bin/apksigner"))
        merged = config.with_public(Config(repo_icon="logo.png"))
        assert merged.secrets == config.secrets
        assert merged.to_document()["apksigner"] == "/usr/bin/apksigner"

    @pytest.mark.parametrize("document", [None, [], "text"])
    def test_not_a_mapping(self, document):
        with pytest.raises(ConfigDecodeError):
            ConfigFile.from_document(document)

    def test_archive_older_out_of_range(self):
        with pytest.raises(ConfigDecodeError):
            ConfigFile.from_document(dict(SECRETS, archive_older=256))


class TestImage:
    def test_default_image_path(self, repo):
        assert repo.image_path() == str(repo.paths.icon(None))
        assert repo.image_path().endswith("repo/icons/icon.png")

    def test_configured_image_path(self, repo):
        repo.set_config(Config(repo_icon="logo.jpg"))
        assert repo.image_path().endswith("repo/icons/logo.jpg")

    def test_set_image(self, repo, tmp_path):
        image = tmp_path / "new-icon.png"
        image.write_bytes(b"\x89PNG\r\n\x1a\nfake image data")

        repo.set_image(image)

        with open(repo.image_path(), "rb") as f:
            assert f.read() == image.read_bytes()

    def test_set_image_overwrites(self, repo, tmp_path):
        first = tmp_path / "first.png"
        first.write_bytes(b"first")
        second = tmp_path / "second.png"
        second.write_bytes(b"second")

        repo.set_image(first)
        repo.set_image(second)

        with open(repo.image_path(), "rb") as f:
            assert f.read() == b"second"

    def test_set_image_wrong_type(self, repo, tmp_path):
        original = tmp_path / "original.png"
        original.write_bytes(b"original image")
        repo.set_image(original)
        image = tmp_path / "new-icon.jpg"
        image.write_bytes(b"jpeg data")

        with pytest.raises(InvalidFileError) as excinfo:
            repo.set_image(image)

        assert excinfo.value.reason == "Image type should be: .png"
        with open(repo.image_path(), "rb") as f:
            assert f.read() == b"original image"

    def test_set_image_without_type(self, repo, tmp_path):
        image = tmp_path / "icon"
        image.write_bytes(b"data")
        with pytest.raises(InvalidFileError):
            repo.set_image(image)

    def test_set_image_follows_configured_type(self, repo, tmp_path):
        repo.set_config(Config(repo_icon="logo.svg"))
        image = tmp_path / "icon.svg"
        image.write_bytes(b"<svg/>")

        repo.set_image(image)

        with open(repo.image_path(), "rb") as f:
            assert f.read() == b"<svg/>"


class TestToolsConfig:
    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FDROIDREPO_CFG_DIR", str(tmp_path))
        assert load_tools_config() == ToolsConfig()

    def test_load(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FDROIDREPO_CFG_DIR", str(tmp_path))
        (tmp_path / "tools.toml").write_text(
            """
fdroid = "/opt/fdroidserver/fdroid"
timeout = 600

[env]
ANDROID_HOME = "/opt/android-sdk"
"""
        )

        tools = load_tools_config()

        assert tools.fdroid == "/opt/fdroidserver/fdroid"
        assert tools.aapt == "aapt"
        assert tools.timeout == 600
        assert tools.env == {"ANDROID_HOME": "/opt/android-sdk"}

    @pytest.mark.parametrize("text", ["timeout = -1\n", "fdroid = [\n"])
    def test_invalid(self, tmp_path, monkeypatch, text):
        monkeypatch.setenv("FDROIDREPO_CFG_DIR", str(tmp_path))
        (tmp_path / "tools.toml").write_text(text)
        with pytest.raises(ConfigDecodeError):
            load_tools_config()
