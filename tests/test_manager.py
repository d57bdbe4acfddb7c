import os
from dataclasses import replace

import pytest

from toolenv.core.errors import ParseError
from toolenv.core.manager import ToolManager
from toolenv.core.sources import SourceKind

from tests.helpers import RELEASES_URL, build_zip, publish_release, release, sha256_line


@pytest.fixture
def manager(settings, session):
    return ToolManager(settings, session=session, environ={})


def _install_dirs(settings, *versions):
    for version in versions:
        os.makedirs(os.path.join(settings.root_path, "tofu", version))


def test_install_resolves_constraint_then_installs(manager, settings, session, project_dir):
    (project_dir / ".opentofu-version").write_text(">= 1.5.0, < 1.7.0\n")
    session.add_pages(RELEASES_URL, [release("v1.5.0"), release("v1.6.0"), release("v1.7.0")])
    archive = build_zip({"tofu": b"binary"})
    asset_name = "tofu_1.6.0_linux_amd64.zip"
    publish_release(session, "1.6.0", archive, asset_name, manifest=sha256_line(archive, asset_name))

    version, path = manager.install()

    assert version == "1.6.0"
    assert os.path.isfile(os.path.join(path, "tofu"))


def test_install_of_existing_exact_version_stays_offline(manager, settings, session):
    _install_dirs(settings, "1.6.0")

    assert manager.install("v1.6.0") == ("1.6.0", os.path.join(settings.root_path, "tofu", "1.6.0"))
    assert session.calls == []


def test_requested_version_overrides_detection(manager, project_dir):
    (project_dir / ".opentofu-version").write_text("1.5.0\n")

    found = manager.detect("1.6.0")

    assert [(r.origin, r.raw) for r in found] == [(SourceKind.ARGUMENT, "1.6.0")]


def test_list_installed_is_semver_sorted(manager, settings):
    _install_dirs(settings, "1.10.0", "1.9.0", "1.6.0-rc1")

    assert manager.list_installed() == ["1.6.0-rc1", "1.9.0", "1.10.0"]


def test_list_installed_without_root(manager):
    assert manager.list_installed() == []


def test_list_remote_can_filter_prereleases(manager, session):
    session.add_pages(RELEASES_URL, [release("v1.6.0"), release("v1.7.0-beta1")])

    assert manager.list_remote() == ["1.6.0", "1.7.0-beta1"]
    assert manager.list_remote(stable=True) == ["1.6.0"]


def test_uninstall(manager, settings):
    _install_dirs(settings, "1.6.0")

    assert manager.uninstall("v1.6.0") == ["1.6.0"]
    assert manager.uninstall("1.6.0") == []
    assert manager.list_installed() == []


def test_uninstall_short_version_names_full_directory(manager, settings):
    _install_dirs(settings, "1.6.0")

    assert manager.uninstall("1.6") == ["1.6.0"]
    assert manager.list_installed() == []


def test_uninstall_all(manager, settings):
    _install_dirs(settings, "1.5.0", "1.6.0")

    assert manager.uninstall("all") == ["1.5.0", "1.6.0"]
    assert manager.list_installed() == []


def test_uninstall_but_last_keeps_highest(manager, settings):
    _install_dirs(settings, "1.10.0", "1.9.0", "1.6.0-rc1")

    assert manager.uninstall("but-last") == ["1.6.0-rc1", "1.9.0"]
    assert manager.list_installed() == ["1.10.0"]


def test_uninstall_by_constraint(manager, settings):
    _install_dirs(settings, "1.5.0", "1.6.0", "1.6.2", "1.7.0")

    assert manager.uninstall("~> 1.6.0") == ["1.6.0", "1.6.2"]
    assert manager.list_installed() == ["1.5.0", "1.7.0"]


def test_uninstall_rejects_non_versions(manager):
    with pytest.raises(ParseError):
        manager.uninstall("../../etc")


def test_reset_removes_root_version_file(manager, settings, project_dir):
    manager.use("1.6.0")
    project_file = manager.use("1.5.0", working_dir=True)

    assert manager.reset()
    assert not os.path.exists(os.path.join(settings.root_path, ".opentofu-version"))
    assert os.path.isfile(project_file)
    assert not manager.reset()


def test_short_pinned_version_installs_full_version(manager, settings, session, project_dir):
    (project_dir / ".opentofu-version").write_text("1.6\n")
    archive = build_zip({"tofu": b"binary"})
    asset_name = "tofu_1.6.0_linux_amd64.zip"
    publish_release(session, "1.6.0", archive, asset_name, manifest=sha256_line(archive, asset_name))

    version, path = manager.install()

    assert version == "1.6.0"
    assert path == os.path.join(settings.root_path, "tofu", "1.6.0")
    assert os.path.isfile(os.path.join(path, "tofu"))


def test_constraint_satisfied_by_installed_version_stays_offline(manager, settings, session, project_dir):
    (project_dir / ".opentofu-version").write_text(">= 1.5.0\n")
    _install_dirs(settings, "1.6.0")

    assert manager.install() == ("1.6.0", os.path.join(settings.root_path, "tofu", "1.6.0"))
    assert session.calls == []


def test_keyword_prefers_installed_version(manager, settings, session):
    _install_dirs(settings, "1.5.0", "1.6.0-rc1")

    assert manager.resolve_version("latest-stable") == "1.5.0"
    assert session.calls == []


def test_force_remote_skips_installed_versions(settings, session, project_dir):
    manager = ToolManager(replace(settings, force_remote=True), session=session, environ={})
    (project_dir / ".opentofu-version").write_text(">= 1.5.0\n")
    _install_dirs(settings, "1.6.0")
    session.add_pages(RELEASES_URL, [release("v1.6.0"), release("v1.7.0")])

    assert manager.resolve_version() == "1.7.0"
    assert session.calls


def test_use_writes_pinned_file_in_root_or_project(manager, settings, project_dir):
    root_file = manager.use("1.6.0")
    project_file = manager.use("~> 1.5", working_dir=True)

    assert root_file == os.path.join(settings.root_path, ".opentofu-version")
    assert project_file == str(project_dir / ".opentofu-version")
    with open(project_file) as f:
        assert f.read() == "~> 1.5\n"
    assert manager.detect()[0].raw == "~> 1.5"


def test_use_rejects_invalid_requirement(manager):
    with pytest.raises(ParseError):
        manager.use("newest")


def test_from_config_reads_yaml_and_overrides(tmp_path, monkeypatch):
    config = tmp_path / "toolenv.yaml"
    config.write_text("options:\n  default_version: latest-stable\n  cache_enabled: true\n")
    monkeypatch.chdir(tmp_path)

    manager = ToolManager.from_config(
        str(config), root_path=str(tmp_path / "root"), environ={}, cache_enabled=False
    )

    assert manager.config_path == str(config)
    assert manager.settings.default_version == "latest-stable"
    assert manager.catalog.cache_enabled is False
    assert manager.settings.root_path == str(tmp_path / "root")


def test_from_config_with_missing_explicit_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        ToolManager.from_config(str(tmp_path / "missing.yaml"), environ={})
