"""Tests for the invoke task wrappers."""

import textwrap
from unittest.mock import patch

import pytest
import yaml
from invoke import Context

from multi_dist.build.ci.exceptions import VendoredActionHashMismatch
from multi_dist.build.tasks.config_show import show_config
from multi_dist.build.tasks.plan import plan
from multi_dist.build.tasks.vendor import vendor_actions_task


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "dist-workspace.yaml").write_text(textwrap.dedent("""
        workspace:
          members: [app]
        dist:
          ci:
            github: true
    """))
    (tmp_path / "app").mkdir()
    (tmp_path / "app" / "dist.yaml").write_text(textwrap.dedent("""
        package:
          name: app
        dist:
          targets: [x86_64-unknown-linux-gnu]
    """))
    return tmp_path


def test_show_config_workspace(workspace, capsys):
    show_config(Context(), root=str(workspace))

    out = yaml.safe_load(capsys.readouterr().out)
    assert out["workspace"]["ci"]["github"]["create_release"] is True


def test_show_config_package(workspace, capsys):
    show_config(Context(), package="app", root=str(workspace))

    out = yaml.safe_load(capsys.readouterr().out)
    assert out["package"] == "app"
    assert out["config"]["targets"] == ["x86_64-unknown-linux-gnu"]


def test_show_config_unknown_package(workspace, capsys):
    with pytest.raises(SystemExit) as exc_info:
        show_config(Context(), package="nope", root=str(workspace))

    assert exc_info.value.code == 1
    assert "❌" in capsys.readouterr().err


def test_plan_prints_description(workspace, capsys):
    plan(Context(), root=str(workspace))

    captured = capsys.readouterr()
    description = yaml.safe_load(captured.out)
    assert description["artifacts_matrix"]["include"][0]["targets"] == ["x86_64-unknown-linux-gnu"]
    assert "release.yml" in captured.err


def test_plan_without_workspace(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        plan(Context(), root=str(tmp_path))

    assert exc_info.value.code == 1
    assert "dist-workspace.yaml" in capsys.readouterr().err


def test_vendor_actions_reports_integrity_failure(tmp_path, capsys):
    error = VendoredActionHashMismatch("mismatch", expected="a" * 64, actual="b" * 64,
                                       repo="actions/upload-artifact", revision="c" * 40)
    with patch("multi_dist.build.tasks.vendor.vendor_actions", side_effect=error):
        with pytest.raises(SystemExit) as exc_info:
            vendor_actions_task(Context(), root=str(tmp_path))

    assert exc_info.value.code == 1
    assert "integrity check" in capsys.readouterr().err


def test_vendor_actions_lists_paths(tmp_path, capsys):
    vendored = [tmp_path / ".github" / "actions" / "rust-cache"]
    with patch("multi_dist.build.tasks.vendor.vendor_actions", return_value=vendored) as mock_vendor:
        vendor_actions_task(Context(), root=str(tmp_path))

    mock_vendor.assert_called_once_with(tmp_path)
    assert "rust-cache" in capsys.readouterr().err
