"""Tests for reading dist-workspace.yaml and dist.yaml files."""

import textwrap

import pytest

from multi_dist.build.config.exceptions import (
    ConfigLoadError,
    PackageNotFoundError,
    WorkspaceNotFoundError,
)
from multi_dist.build.config.layers import DependencyKind, GithubRepoPair, SystemDependency
from multi_dist.build.config.loading import load_workspace, parse_layer


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content))


@pytest.fixture
def workspace(tmp_path):
    """A workspace with one released app and one library."""
    _write(tmp_path / "dist-workspace.yaml", """
        workspace:
          members: ["crates/app", "crates/lib"]
          repository: https://github.com/axo/widgets.git
        dist:
          ci:
            fail-fast: true
            github: true
          artifacts:
            archives:
              include: [LICENSE]
    """)
    _write(tmp_path / "crates/app/dist.yaml", """
        package:
          name: app
          version: 1.2.0
          binaries: [app]
        dist:
          targets: [x86_64-unknown-linux-gnu, aarch64-apple-darwin]
          builds:
            system-dependencies:
              apt:
                libssl-dev: "3.0"
    """)
    _write(tmp_path / "crates/lib/dist.yaml", """
        package:
          name: lib
          publish: false
    """)
    return tmp_path


def test_load_and_resolve(workspace):
    loaded = load_workspace(workspace)

    assert loaded.graph.package_names() == ["app", "lib"]
    assert loaded.package_layers["lib"] is None

    project = loaded.resolve()
    app = project.packages["app"]
    assert app.ci.fail_fast is True
    assert app.dist is True
    assert project.packages["lib"].dist is False
    assert app.targets == ["x86_64-unknown-linux-gnu", "aarch64-apple-darwin"]
    assert app.artifacts.archives.include == [workspace.resolve() / "LICENSE"]
    assert app.builds.system_dependencies.apt["libssl-dev"].version == "3.0"
    assert app.hosts.github.repo == GithubRepoPair(owner="axo", repo="widgets")


def test_missing_workspace_file(tmp_path):
    with pytest.raises(WorkspaceNotFoundError) as exc_info:
        load_workspace(tmp_path)
    assert "dist-workspace.yaml" in exc_info.value.guidance


def test_member_without_package_file(tmp_path):
    _write(tmp_path / "dist-workspace.yaml", """
        workspace:
          members: [missing]
    """)
    with pytest.raises(PackageNotFoundError):
        load_workspace(tmp_path)


def test_duplicate_package_names(tmp_path):
    _write(tmp_path / "dist-workspace.yaml", """
        workspace:
          members: [a, b]
    """)
    _write(tmp_path / "a/dist.yaml", "package: {name: same}\n")
    _write(tmp_path / "b/dist.yaml", "package: {name: same}\n")

    with pytest.raises(ConfigLoadError, match="Duplicate"):
        load_workspace(tmp_path)


def test_package_name_required(tmp_path):
    _write(tmp_path / "dist-workspace.yaml", "workspace: {members: [a]}\n")
    _write(tmp_path / "a/dist.yaml", "package: {version: 1.0.0}\n")

    with pytest.raises(ConfigLoadError, match="package.name"):
        load_workspace(tmp_path)


@pytest.mark.parametrize("content", [
    "- just\n- a list\n",
    "dist: [unterminated\n",
    "dist:\n  ci:\n    fail-fast: sometimes\n",
    "dist:\n  no-such-key: true\n",
])
def test_invalid_workspace_file(tmp_path, content):
    (tmp_path / "dist-workspace.yaml").write_text(content)

    with pytest.raises(ConfigLoadError) as exc_info:
        load_workspace(tmp_path)
    assert exc_info.value.path.endswith("dist-workspace.yaml")


@pytest.mark.parametrize("content", [
    "workspace: [app]\n",
    "workspace: app\n",
])
def test_workspace_section_must_be_mapping(tmp_path, content):
    (tmp_path / "dist-workspace.yaml").write_text(content)

    with pytest.raises(ConfigLoadError, match="workspace must be a mapping") as exc_info:
        load_workspace(tmp_path)
    assert exc_info.value.path.endswith("dist-workspace.yaml")


def test_package_section_must_be_mapping(tmp_path):
    _write(tmp_path / "dist-workspace.yaml", "workspace: {members: [a]}\n")
    _write(tmp_path / "a/dist.yaml", "package: app\n")

    with pytest.raises(ConfigLoadError, match="package must be a mapping") as exc_info:
        load_workspace(tmp_path)
    assert exc_info.value.path.endswith("dist.yaml")


def test_non_utf8_file(tmp_path):
    (tmp_path / "dist-workspace.yaml").write_bytes(b"\xff\xfe workspace: {}\n")

    with pytest.raises(ConfigLoadError, match="UTF-8") as exc_info:
        load_workspace(tmp_path)
    assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)


def test_empty_workspace_file(tmp_path):
    (tmp_path / "dist-workspace.yaml").write_text("")

    loaded = load_workspace(tmp_path)
    assert loaded.graph.packages == []
    assert loaded.workspace_layer is None


class TestLayerDecoding:

    def test_kebab_and_snake_case_keys(self):
        kebab = parse_layer({"ci": {"fail-fast": True, "merge-tasks": True}})
        snake = parse_layer({"ci": {"fail_fast": True, "merge_tasks": True}})
        assert kebab == snake

    def test_unset_keys_are_none(self):
        fragment = parse_layer({"ci": {}})
        assert fragment.ci.fail_fast is None
        assert fragment.targets is None

    def test_none_section(self):
        assert parse_layer(None) is None

    def test_toggle_fields_accept_bool_or_table(self):
        fragment = parse_layer({"ci": {"github": {"runners": {"global": "x"}}}, "hosts": {"github": False}})
        assert fragment.ci.github.runners == {"global": "x"}
        assert fragment.hosts.github is False

    def test_system_dependency_shorthand(self):
        assert SystemDependency.model_validate("3.0").version == "3.0"
        assert SystemDependency.model_validate("*").version is None
        assert SystemDependency.model_validate(None).version is None
        assert SystemDependency.model_validate(1.1).version == "1.1"

    def test_system_dependency_table(self):
        dependency = SystemDependency.model_validate({
            "version": "*",
            "stage": ["build"],
            "targets": ["x86_64-unknown-linux-gnu"],
        })
        assert dependency.version is None
        assert dependency.stage_wanted(DependencyKind.BUILD)
        assert not dependency.stage_wanted(DependencyKind.RUN)
        assert dependency.wanted_for_target("x86_64-unknown-linux-gnu")
        assert not dependency.wanted_for_target("aarch64-unknown-linux-gnu")

    def test_system_dependency_defaults_to_every_stage_and_target(self):
        dependency = SystemDependency.model_validate("2.1")
        assert dependency.stage_wanted(DependencyKind.RUN)
        assert dependency.wanted_for_target("anything")


class TestGithubRepoPair:

    def test_parse(self):
        assert GithubRepoPair.parse("axo/widgets") == GithubRepoPair(owner="axo", repo="widgets")
        assert str(GithubRepoPair.parse("axo/widgets")) == "axo/widgets"

    @pytest.mark.parametrize("value", ["axo", "axo/", "/widgets", "a/b/c"])
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            GithubRepoPair.parse(value)

    @pytest.mark.parametrize("url", [
        "https://github.com/axo/widgets",
        "https://github.com/axo/widgets.git",
        "https://github.com/axo/widgets/",
        "git@github.com:axo/widgets.git",
    ])
    def test_from_url(self, url):
        assert GithubRepoPair.from_url(url) == GithubRepoPair(owner="axo", repo="widgets")

    @pytest.mark.parametrize("url", [None, "", "https://gitlab.com/axo/widgets"])
    def test_from_url_not_github(self, url):
        assert GithubRepoPair.from_url(url) is None
