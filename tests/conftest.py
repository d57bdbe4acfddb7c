import os

import pytest

from toolenv.utils import cache
from toolenv.utils.config import Settings

from tests.helpers import RELEASES_URL, FakeSession


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep every test away from the real home, cache and TOOLENV_* variables"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("SUDO_USER", raising=False)
    for name in list(os.environ):
        if name.startswith("TOOLENV_"):
            monkeypatch.delenv(name)
    monkeypatch.setattr(cache, "CACHE_DIR", str(tmp_path / "cache"))
    return home


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def project_dir(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def settings(tmp_path, project_dir):
    return Settings(
        tool_name="tofu",
        remote_url=RELEASES_URL,
        archive_ext=".zip",
        version_file=".opentofu-version",
        switch_file=".tfswitch.toml",
        root_path=str(tmp_path / "root"),
        working_dir=str(project_dir),
        user_config_dir=str(tmp_path / "config"),
        platform="linux",
        arch="amd64",
        cache_enabled=False,
    )
