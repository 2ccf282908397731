"""
GitHub CI task assembly.

Combines the resolved project configuration, the runner planner and the
system dependency selector into the description an external template
renderer turns into .github/workflows/release.yml.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import requests
import yaml
from pydantic import BaseModel, Field

from ..config.exceptions import CiNotEnabledError, GeneratedFileMismatch
from ..config.layers import GithubRepoPair, PrRunMode, ProductionMode
from ..config.models import SystemDependencies
from ..config.resolver import ProjectConfig
from .packages import package_install_for_targets
from .runners import (
    GITHUB_LINUX_RUNNER,
    PlanWarning,
    Strategy,
    install_dist_for_targets,
    plan,
)
from .vendor import VendoredAction, vendor_actions

logger = logging.getLogger(__name__)

SELF_DIST_VERSION = "0.1.0"
INSTALLER_BASE_URL = "https://github.com/multi-dist/multi-dist/releases/download"

GITHUB_CI_DIR = ".github/workflows"
GITHUB_CI_FILE = "release.yml"

Renderer = Callable[[Dict[str, Any]], str]


def install_dist_sh_for_version(version: str) -> str:
    installer_url = f"{INSTALLER_BASE_URL}/v{version}/multi-dist-installer.sh"
    return f"curl --proto '=https' --tlsv1.2 -LsSf {installer_url} | sh"


def install_dist_ps1_for_version(version: str) -> str:
    installer_url = f"{INSTALLER_BASE_URL}/v{version}/multi-dist-installer.ps1"
    return f'powershell -c "irm {installer_url} | iex"'


class GithubMatrixEntry(BaseModel):
    """One build task of the release workflow."""
    targets: Optional[List[str]] = None
    runner: Optional[str] = None
    dist_args: Optional[str] = None
    install_dist: Optional[str] = None
    packages_install: Optional[str] = None


class GithubMatrix(BaseModel):
    include: List[GithubMatrixEntry] = []


def yaml_renderer(description: Dict[str, Any]) -> str:
    """Dump the task description as YAML, for inspection or as a stand-in renderer."""
    return yaml.safe_dump(description, sort_keys=False, default_flow_style=False)


class GithubCiInfo(BaseModel):
    """Everything the release workflow template needs to know."""
    install_dist_sh: str
    install_dist_ps1: str
    fail_fast: bool
    build_local_artifacts: bool
    dispatch_releases: bool
    release_branch: Optional[str]
    pr_run_mode: PrRunMode
    tag_namespace: Optional[str]
    artifacts_matrix: GithubMatrix
    global_task: GithubMatrixEntry
    tap: Optional[str]
    plan_jobs: List[str]
    local_artifacts_jobs: List[str]
    global_artifacts_jobs: List[str]
    host_jobs: List[str]
    publish_jobs: List[str]
    user_publish_jobs: List[str]
    post_announce_jobs: List[str]
    create_release: bool
    github_releases_repo: Optional[GithubRepoPair]
    ssldotcom_windows_sign: Optional[ProductionMode]
    hosting_providers: List[str]
    vendor_actions: bool

    workspace_dir: Path = Field(exclude=True)
    warnings: List[PlanWarning] = Field(default=[], exclude=True)

    @classmethod
    def new(cls, project: ProjectConfig, workspace_dir: Union[str, Path]) -> 'GithubCiInfo':
        """Assemble the CI description for a resolved project.

        Only packages with `dist` enabled contribute targets, system
        dependencies and publishing settings.

        Args:
            project: Resolved workspace and package configuration
            workspace_dir: Root of the workspace the workflow is written into

        Returns:
            GithubCiInfo ready to be rendered

        Raises:
            CiNotEnabledError: If ci.github is disabled for the workspace
        """
        github = project.workspace.ci.github
        if github is None:
            raise CiNotEnabledError("GitHub CI is not enabled for this workspace")

        dist_version = project.workspace.dist_version or SELF_DIST_VERSION
        install_dist_sh = install_dist_sh_for_version(dist_version)
        install_dist_ps1 = install_dist_ps1_for_version(dist_version)

        releases = {name: app for name, app in project.packages.items() if app.dist}
        if not releases:
            logger.warning("No package has dist enabled, the release workflow will build nothing")

        local_targets = set()
        dependencies = SystemDependencies()
        tap = None
        publish_jobs = []
        hosting_providers = []
        ssldotcom_windows_sign = None
        for name in sorted(releases):
            app = releases[name]
            local_targets.update(app.targets)
            dependencies.append(app.builds.system_dependencies)

            if app.installers.homebrew is not None and app.installers.homebrew.tap:
                tap = tap or app.installers.homebrew.tap
                if app.publishers.homebrew is not None and "homebrew" not in publish_jobs:
                    publish_jobs.append("homebrew")
            if app.installers.npm is not None and app.publishers.npm is not None \
                    and "npm" not in publish_jobs:
                publish_jobs.append("npm")
            if app.hosts.github is not None and "github" not in hosting_providers:
                hosting_providers.append("github")
            if app.builds.ssldotcom_windows_sign is not None:
                ssldotcom_windows_sign = app.builds.ssldotcom_windows_sign

        # Global artifacts can be built anywhere; Linux is usually fast and cheap
        global_task = GithubMatrixEntry(
            runner=github.runners.get("global", GITHUB_LINUX_RUNNER),
            dist_args="--artifacts=global",
            install_dist=install_dist_sh,
        )

        runner_plan = plan(Strategy.from_merge_tasks(github.merge_tasks), local_targets,
                           github.runners)
        tasks = []
        for group in runner_plan.groups:
            dist_args = "--artifacts=local" + "".join(f" --target={t}" for t in group.targets)
            tasks.append(GithubMatrixEntry(
                targets=list(group.targets),
                runner=group.runner,
                dist_args=dist_args,
                install_dist=install_dist_for_targets(group.targets, install_dist_sh,
                                                      install_dist_ps1),
                packages_install=package_install_for_targets(group.targets, dependencies),
            ))

        logger.debug(f"Planned {len(tasks)} local artifact task(s) for {len(local_targets)} target(s)")

        return cls(
            install_dist_sh=install_dist_sh,
            install_dist_ps1=install_dist_ps1,
            fail_fast=github.fail_fast,
            build_local_artifacts=github.build_local_artifacts,
            dispatch_releases=github.dispatch_releases,
            release_branch=github.release_branch,
            pr_run_mode=github.pr_run_mode,
            tag_namespace=github.tag_namespace,
            artifacts_matrix=GithubMatrix(include=tasks),
            global_task=global_task,
            tap=tap,
            plan_jobs=list(github.plan_jobs),
            local_artifacts_jobs=list(github.build_local_jobs),
            global_artifacts_jobs=list(github.build_global_jobs),
            host_jobs=list(github.host_jobs),
            publish_jobs=publish_jobs,
            user_publish_jobs=list(github.publish_jobs),
            post_announce_jobs=list(github.post_announce_jobs),
            create_release=github.create_release,
            github_releases_repo=github.external_repo,
            ssldotcom_windows_sign=ssldotcom_windows_sign,
            hosting_providers=hosting_providers,
            vendor_actions=github.vendor_actions,
            workspace_dir=Path(workspace_dir),
            warnings=runner_plan.warnings,
        )

    def description(self) -> Dict[str, Any]:
        """The plain-data view handed to the renderer."""
        return self.model_dump(mode="json")

    def github_ci_path(self) -> Path:
        """Path of the workflow file; a tag namespace prefixes the file name."""
        prefix = f"{self.tag_namespace}-" if self.tag_namespace else ""
        return self.workspace_dir / GITHUB_CI_DIR / f"{prefix}{GITHUB_CI_FILE}"

    def generate(self, renderer: Renderer) -> str:
        return renderer(self.description())

    def write_vendored_actions(self, actions: Optional[List[VendoredAction]] = None,
                               session: Optional[requests.Session] = None) -> None:
        """Vendor every pinned action the workflow uses, one after the other."""
        vendor_actions(self.workspace_dir, actions, session=session)

    def write_to_disk(self, renderer: Renderer,
                      session: Optional[requests.Session] = None) -> Path:
        """Render the workflow and write it, vendoring actions first when enabled."""
        ci_file = self.github_ci_path()
        rendered = self.generate(renderer)
        if self.vendor_actions:
            self.write_vendored_actions(session=session)

        ci_file.parent.mkdir(parents=True, exist_ok=True)
        ci_file.write_text(rendered)
        print(f"✅ Generated GitHub CI to {ci_file}", file=sys.stderr)
        return ci_file

    def check(self, renderer: Renderer) -> None:
        """Verify the workflow on disk matches what would be generated.

        Raises:
            GeneratedFileMismatch: If the file is missing or differs
        """
        ci_file = self.github_ci_path()
        rendered = self.generate(renderer)
        existing = ci_file.read_text() if ci_file.exists() else None
        if existing != rendered:
            raise GeneratedFileMismatch(
                f"{ci_file} differs from the generated workflow",
                path=str(ci_file)
            )
        logger.debug(f"{ci_file} is up to date")
