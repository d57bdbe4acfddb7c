import os

import pytest

from toolenv.cli.cli import run_cli
from toolenv.version import __version__


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    path = tmp_path / "work"
    path.mkdir()
    monkeypatch.chdir(path)
    return path


def test_version_flag(capsys):
    run_cli(["--version"])

    assert f"toolenv v{__version__}" in capsys.readouterr().out


def test_init_creates_user_config(isolated_home, capsys):
    run_cli(["--init"])

    assert (isolated_home / ".config" / "toolenv" / "toolenv.yaml").is_file()
    run_cli(["--init"])
    assert "already exists" in capsys.readouterr().out


def test_use_then_list_installed(tmp_path, workdir, capsys):
    root = tmp_path / "root"
    os.makedirs(root / "tofu" / "1.6.0")
    os.makedirs(root / "tofu" / "1.5.0")

    run_cli(["--root", str(root), "--use", "1.6.0", "--working-dir"])
    run_cli(["--root", str(root), "--list"])

    assert (workdir / ".opentofu-version").read_text() == "1.6.0\n"
    out = capsys.readouterr().out
    assert "* 1.6.0" in out
    assert "  1.5.0" in out


def test_uninstall(tmp_path, workdir, capsys):
    root = tmp_path / "root"
    os.makedirs(root / "tofu" / "1.6.0")

    run_cli(["--root", str(root), "--uninstall", "1.6.0"])

    assert not (root / "tofu" / "1.6.0").exists()
    assert "Uninstalled tofu 1.6.0" in capsys.readouterr().out


def test_detect_exact_pinned_version_offline(tmp_path, workdir, capsys):
    (workdir / ".opentofu-version").write_text("v1.6.0\n")

    run_cli(["--root", str(tmp_path / "root"), "--detect"])

    out = capsys.readouterr().out
    assert "pinned version file" in out
    assert "Resolved tofu version: 1.6.0" in out


def test_invalid_requirement_exits_with_error(tmp_path, workdir, capsys):
    with pytest.raises(SystemExit) as excinfo:
        run_cli(["--root", str(tmp_path / "root"), "--install", "newest!"])

    assert excinfo.value.code == 1
    assert "ParseError" in capsys.readouterr().out


def test_missing_explicit_config_exits_with_error(tmp_path, workdir, capsys):
    with pytest.raises(SystemExit):
        run_cli(["--config", str(tmp_path / "absent.yaml"), "--list"])

    assert "--init" in capsys.readouterr().out


def test_uninstall_all_but_last(tmp_path, workdir, capsys):
    root = tmp_path / "root"
    for version in ("1.5.0", "1.6.0", "1.7.0"):
        os.makedirs(root / "tofu" / version)

    run_cli(["--root", str(root), "--uninstall", "but-last"])

    assert sorted(os.listdir(root / "tofu")) == ["1.7.0"]
    out = capsys.readouterr().out
    assert "Uninstalled tofu 1.5.0" in out
    assert "Uninstalled tofu 1.6.0" in out


def test_reset_removes_root_version_file(tmp_path, workdir, capsys):
    root = tmp_path / "root"
    run_cli(["--root", str(root), "--use", "1.6.0"])

    run_cli(["--root", str(root), "--reset"])

    assert not (root / ".opentofu-version").exists()
    assert f"Removed {root / '.opentofu-version'}" in capsys.readouterr().out


def test_detect_flag_and_default_action(tmp_path, workdir, capsys):
    (workdir / ".opentofu-version").write_text("1.6\n")

    run_cli(["--root", str(tmp_path / "root"), "--detect"])
    out = capsys.readouterr().out
    assert "Resolved tofu version: 1.6.0" in out
    assert "No action given" not in out

    run_cli(["--root", str(tmp_path / "root")])
    out = capsys.readouterr().out
    assert "No action given" in out
    assert "Resolved tofu version: 1.6.0" in out


def test_force_remote_flag_sets_override(tmp_path, workdir, monkeypatch):
    seen = {}

    def fake_detect(manager):
        seen["force_remote"] = manager.settings.force_remote
        seen["resolver"] = manager.resolver.force_remote

    monkeypatch.setattr("toolenv.cli.cli.detect_version", fake_detect)

    run_cli(["--root", str(tmp_path / "root"), "--force-remote", "--detect"])

    assert seen == {"force_remote": True, "resolver": True}
