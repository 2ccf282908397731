"""Tests for assembling the GitHub release workflow description."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from multi_dist.build.ci.github import (
    GithubCiInfo,
    install_dist_ps1_for_version,
    install_dist_sh_for_version,
    yaml_renderer,
)
from multi_dist.build.ci.runners import GITHUB_LINUX_RUNNER, GITHUB_MACOS_ARM64_RUNNER
from multi_dist.build.config.exceptions import CiNotEnabledError, GeneratedFileMismatch
from multi_dist.build.config.layers import ConfigLayer
from multi_dist.build.config.resolver import project_config
from multi_dist.build.project import Package, WorkspaceGraph


def _project(root: Path, workspace: dict, packages: dict = None):
    graph = WorkspaceGraph(
        root=root,
        packages=[
            Package(name="app", package_root=root / "app"),
            Package(name="internal", package_root=root / "internal", publish=False),
        ],
        repository="https://github.com/axo/widgets",
    )
    layers = {name: ConfigLayer.model_validate(data) for name, data in (packages or {}).items()}
    return project_config(graph, ConfigLayer.model_validate(workspace), layers)


def json_renderer(description):
    return json.dumps(description, sort_keys=True, indent=2)


@pytest.fixture
def project(tmp_path):
    return _project(tmp_path, {
        "ci": {"github": True, "fail-fast": True, "plan-jobs": ["./lint"]},
        "installers": {"homebrew": {"tap": "axo/homebrew-tap"}},
        "publishers": {"homebrew": True},
    }, {
        "app": {
            "targets": ["x86_64-unknown-linux-gnu", "aarch64-apple-darwin"],
            "builds": {"system-dependencies": {"apt": {"libssl-dev": {"version": "3.0", "stage": ["build"]}}}},
        },
        "internal": {"targets": ["x86_64-pc-windows-msvc"]},
    })


def test_requires_github_ci(tmp_path):
    project = _project(tmp_path, {"ci": {"fail-fast": True}})
    with pytest.raises(CiNotEnabledError) as exc_info:
        GithubCiInfo.new(project, tmp_path)
    assert "github: true" in exc_info.value.guidance


def test_only_released_packages_are_built(project, tmp_path):
    info = GithubCiInfo.new(project, tmp_path)

    targets = [t for entry in info.artifacts_matrix.include for t in entry.targets]
    assert sorted(targets) == ["aarch64-apple-darwin", "x86_64-unknown-linux-gnu"]


def test_local_tasks(project, tmp_path):
    info = GithubCiInfo.new(project, tmp_path)

    by_target = {entry.targets[0]: entry for entry in info.artifacts_matrix.include}
    linux = by_target["x86_64-unknown-linux-gnu"]
    assert linux.runner == GITHUB_LINUX_RUNNER
    assert linux.dist_args == "--artifacts=local --target=x86_64-unknown-linux-gnu"
    assert linux.install_dist == info.install_dist_sh
    assert "libssl-dev=3.0" in linux.packages_install

    mac = by_target["aarch64-apple-darwin"]
    assert mac.runner == GITHUB_MACOS_ARM64_RUNNER
    assert mac.packages_install is None


def test_global_task(project, tmp_path):
    info = GithubCiInfo.new(project, tmp_path)

    assert info.global_task.runner == GITHUB_LINUX_RUNNER
    assert info.global_task.dist_args == "--artifacts=global"
    assert info.global_task.targets is None
    assert info.global_task.install_dist == info.install_dist_sh


def test_pipeline_flags_and_jobs(project, tmp_path):
    info = GithubCiInfo.new(project, tmp_path)

    assert info.fail_fast is True
    assert info.build_local_artifacts is True
    assert info.dispatch_releases is False
    assert info.plan_jobs == ["./lint"]
    assert info.tap == "axo/homebrew-tap"
    assert info.publish_jobs == ["homebrew"]
    assert info.hosting_providers == ["github"]
    assert info.create_release is True
    assert info.vendor_actions is False


def test_merge_tasks_and_runner_overrides(tmp_path):
    project = _project(tmp_path, {
        "ci": {"merge-tasks": True, "github": {"runners": {
            "global": "ubuntu-22.04",
            "aarch64-apple-darwin": "macos-14",
        }}},
        "targets": ["x86_64-unknown-linux-gnu", "aarch64-unknown-linux-gnu", "aarch64-apple-darwin"],
    })

    info = GithubCiInfo.new(project, tmp_path)

    assert info.global_task.runner == "ubuntu-22.04"
    assert [(e.runner, e.targets) for e in info.artifacts_matrix.include] == [
        ("macos-14", ["aarch64-apple-darwin"]),
        (GITHUB_LINUX_RUNNER, ["aarch64-unknown-linux-gnu", "x86_64-unknown-linux-gnu"]),
    ]
    assert info.artifacts_matrix.include[1].dist_args == \
        "--artifacts=local --target=aarch64-unknown-linux-gnu --target=x86_64-unknown-linux-gnu"


def test_windows_task_uses_powershell_installer(tmp_path):
    project = _project(tmp_path, {"ci": {"github": True}, "targets": ["x86_64-pc-windows-msvc"]})

    info = GithubCiInfo.new(project, tmp_path)

    assert info.artifacts_matrix.include[0].install_dist == info.install_dist_ps1


def test_dist_version_pins_installer(tmp_path):
    project = _project(tmp_path, {"dist-version": "0.7.1", "ci": {"github": True}})

    info = GithubCiInfo.new(project, tmp_path)

    assert info.install_dist_sh == install_dist_sh_for_version("0.7.1")
    assert info.install_dist_ps1 == install_dist_ps1_for_version("0.7.1")
    assert "v0.7.1/" in info.install_dist_sh


def test_unknown_targets_become_warnings(tmp_path):
    project = _project(tmp_path, {"ci": {"github": True}, "targets": ["wasm32-unknown-unknown"]})

    info = GithubCiInfo.new(project, tmp_path)

    assert info.artifacts_matrix.include[0].runner == GITHUB_LINUX_RUNNER
    assert [w.target for w in info.warnings] == ["wasm32-unknown-unknown"]


def test_description_is_plain_data(project, tmp_path):
    description = GithubCiInfo.new(project, tmp_path).description()

    assert "workspace_dir" not in description
    assert "warnings" not in description
    assert description["pr_run_mode"] == "plan"
    # survives a round trip through the renderer's input format
    assert yaml.safe_load(yaml_renderer(description)) == description


def test_external_repo_is_exposed(tmp_path):
    project = _project(tmp_path, {"ci": {"github": {"external-repo": "axo/releases", "create-release": False}}})

    description = GithubCiInfo.new(project, tmp_path).description()

    assert description["github_releases_repo"] == {"owner": "axo", "repo": "releases"}
    assert description["create_release"] is False


class TestWorkflowFile:

    def test_path(self, project, tmp_path):
        info = GithubCiInfo.new(project, tmp_path)
        assert info.github_ci_path() == tmp_path / ".github" / "workflows" / "release.yml"

    def test_path_with_tag_namespace(self, tmp_path):
        project = _project(tmp_path, {"ci": {"github": True, "tag-namespace": "owo"}})
        info = GithubCiInfo.new(project, tmp_path)
        assert info.github_ci_path() == tmp_path / ".github" / "workflows" / "owo-release.yml"

    def test_write_then_check(self, project, tmp_path):
        info = GithubCiInfo.new(project, tmp_path)

        with pytest.raises(GeneratedFileMismatch):
            info.check(json_renderer)

        path = info.write_to_disk(json_renderer)
        assert json.loads(path.read_text()) == info.description()
        info.check(json_renderer)

    def test_check_detects_drift(self, project, tmp_path):
        info = GithubCiInfo.new(project, tmp_path)
        path = info.write_to_disk(json_renderer)
        path.write_text(path.read_text() + "\n# hand edit\n")

        with pytest.raises(GeneratedFileMismatch) as exc_info:
            info.check(json_renderer)
        assert exc_info.value.path == str(path)

    def test_write_vendors_actions_first_when_enabled(self, tmp_path):
        project = _project(tmp_path, {"ci": {"github": {"vendor-actions": True}}})
        info = GithubCiInfo.new(project, tmp_path)

        with patch("multi_dist.build.ci.github.vendor_actions") as mock_vendor:
            info.write_to_disk(json_renderer)

        mock_vendor.assert_called_once_with(tmp_path, None, session=None)

    def test_write_skips_vendoring_by_default(self, project, tmp_path):
        info = GithubCiInfo.new(project, tmp_path)

        with patch("multi_dist.build.ci.github.vendor_actions") as mock_vendor:
            info.write_to_disk(json_renderer)

        mock_vendor.assert_not_called()
