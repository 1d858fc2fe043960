"""
Shared fixtures.
"""

import pytest

from fdroidrepo.data.config import ToolsConfig
from fdroidrepo.repository import Repository

from .fakes import FakeRunner, badging


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def repo_root(tmp_path):
    root = tmp_path / "fdroid"
    root.mkdir()
    return root


@pytest.fixture
def repo(repo_root, runner) -> Repository:
    return Repository(repo_root, runner=runner, tools=ToolsConfig())


@pytest.fixture
def make_apk(tmp_path):
    """Factory writing a fake APK for ``name`` at ``version_code``."""
    apk_dir = tmp_path / "apks"
    apk_dir.mkdir()

    def _make_apk(name="org.example.notes", version_code=3, file_name=None):
        apk = apk_dir / (file_name or f"{name}-{version_code}.apk")
        apk.write_text(badging(name, version_code))
        return apk

    return _make_apk
