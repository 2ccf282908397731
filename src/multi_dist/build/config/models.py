"""
Accumulators and resolved configuration models.

Each configuration section comes in up to two shapes:

- an accumulator (`...Inheritable`), where fields may still be unset (None)
  after all layers are applied, and
- a resolved config (`...Config`), produced by the inheritance pass, where
  every field has a value.

Sections whose defaults are fully known up front (artifacts, builds, system
dependencies) are their own accumulator.
"""
import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..project import Package, WorkspaceGraph
from .layers import (
    ArchiveLayer,
    ArtifactLayer,
    BuildLayer,
    ChecksumStyle,
    CiLayer,
    CommonCiLayer,
    CommonInstallerLayer,
    CommonPublisherLayer,
    ConfigLayer,
    ExtraArtifact,
    GithubCiLayer,
    GithubHostLayer,
    GithubReleasePhase,
    GithubRepoPair,
    HomebrewInstallerLayer,
    HostLayer,
    InstallerLayer,
    NpmInstallerLayer,
    PrRunMode,
    ProductionMode,
    PublisherLayer,
    SystemDependenciesLayer,
    SystemDependency,
)
from .merge import APPLY, IGNORE, MERGE, ApplyLayer, Toggle

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_PATH = ["~/.local/bin"]
DEFAULT_SUCCESS_MSG = "everything's installed!"


def _first_set(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


# ---------------------------------------------------------------------------
# ci (workspace scope)
# ---------------------------------------------------------------------------

COMMON_CI_DEFAULTS: Dict[str, Any] = {
    "merge_tasks": False,
    "fail_fast": False,
    "cache_builds": False,
    "build_local_artifacts": True,
    "dispatch_releases": False,
    "release_branch": None,
    "pr_run_mode": PrRunMode.PLAN,
    "tag_namespace": None,
    "plan_jobs": [],
    "build_local_jobs": [],
    "build_global_jobs": [],
    "host_jobs": [],
    "publish_jobs": [],
    "post_announce_jobs": [],
}

COMMON_CI_DISPOSITIONS: Dict[str, Any] = {
    "merge_tasks": APPLY,
    "fail_fast": APPLY,
    "cache_builds": APPLY,
    "build_local_artifacts": APPLY,
    "dispatch_releases": APPLY,
    "release_branch": APPLY,
    "pr_run_mode": APPLY,
    "tag_namespace": APPLY,
    "plan_jobs": APPLY,
    "build_local_jobs": APPLY,
    "build_global_jobs": APPLY,
    "host_jobs": APPLY,
    "publish_jobs": APPLY,
    "post_announce_jobs": APPLY,
}


class CommonCiConfig(BaseModel):
    """Resolved CI settings shared by every CI provider."""
    merge_tasks: bool
    fail_fast: bool
    cache_builds: bool
    build_local_artifacts: bool
    dispatch_releases: bool
    release_branch: Optional[str]
    pr_run_mode: PrRunMode
    tag_namespace: Optional[str]
    plan_jobs: List[str]
    build_local_jobs: List[str]
    build_global_jobs: List[str]
    host_jobs: List[str]
    publish_jobs: List[str]
    post_announce_jobs: List[str]


class GithubCiConfig(CommonCiConfig):
    """Resolved GitHub Actions settings."""
    runners: Dict[str, str]
    create_release: bool
    external_repo: Optional[GithubRepoPair]
    vendor_actions: bool


class CiConfig(CommonCiConfig):
    """Resolved CI settings. `github` is None when GitHub CI is disabled."""
    github: Optional[GithubCiConfig]


class CommonCiInheritable(ApplyLayer):
    layer_type = CommonCiLayer
    dispositions = COMMON_CI_DISPOSITIONS

    merge_tasks: Optional[bool] = None
    fail_fast: Optional[bool] = None
    cache_builds: Optional[bool] = None
    build_local_artifacts: Optional[bool] = None
    dispatch_releases: Optional[bool] = None
    release_branch: Optional[str] = None
    pr_run_mode: Optional[PrRunMode] = None
    tag_namespace: Optional[str] = None
    plan_jobs: Optional[List[str]] = None
    build_local_jobs: Optional[List[str]] = None
    build_global_jobs: Optional[List[str]] = None
    host_jobs: Optional[List[str]] = None
    publish_jobs: Optional[List[str]] = None
    post_announce_jobs: Optional[List[str]] = None

    def common_values(self, fallback: Optional['CommonCiInheritable'] = None) -> Dict[str, Any]:
        """Resolve the common fields: own value, then fallback's, then default."""
        values = {}
        for name, default in COMMON_CI_DEFAULTS.items():
            value = getattr(self, name)
            if value is None and fallback is not None:
                value = getattr(fallback, name)
            if value is None:
                value = copy.deepcopy(default)
            values[name] = value
        return values


class GithubCiInheritable(CommonCiInheritable):
    layer_type = GithubCiLayer
    dispositions = {
        **COMMON_CI_DISPOSITIONS,
        "runners": APPLY,
        "create_release": APPLY,
        "external_repo": APPLY,
        "vendor_actions": APPLY,
    }

    runners: Optional[Dict[str, str]] = None
    create_release: Optional[bool] = None
    external_repo: Optional[GithubRepoPair] = None
    vendor_actions: Optional[bool] = None

    def apply_inheritance(self, ci: 'CiInheritable') -> GithubCiConfig:
        return GithubCiConfig(
            **self.common_values(fallback=ci),
            runners=dict(self.runners or {}),
            create_release=_first_set(self.create_release, True),
            external_repo=self.external_repo,
            vendor_actions=_first_set(self.vendor_actions, False),
        )


class CiInheritable(CommonCiInheritable):
    layer_type = CiLayer
    dispositions = {
        **COMMON_CI_DISPOSITIONS,
        "github": Toggle(GithubCiInheritable),
    }

    github: Optional[GithubCiInheritable] = None

    @classmethod
    def defaults_for_workspace(cls, workspaces: WorkspaceGraph) -> 'CiInheritable':
        return cls()

    def apply_inheritance_for_workspace(self, workspaces: WorkspaceGraph) -> CiConfig:
        github = None
        if self.github is not None:
            github = self.github.apply_inheritance(self)
        return CiConfig(**self.common_values(), github=github)


# ---------------------------------------------------------------------------
# artifacts (package scope)
# ---------------------------------------------------------------------------

class ArchiveConfig(ApplyLayer):
    layer_type = ArchiveLayer
    dispositions = {
        "include": APPLY,
        "auto_includes": APPLY,
        "windows_archive": APPLY,
        "unix_archive": APPLY,
        "package_libraries": APPLY,
    }

    include: List[Path] = []
    auto_includes: bool = True
    windows_archive: str = ".zip"
    unix_archive: str = ".tar.xz"
    package_libraries: List[str] = []


class ArtifactConfig(ApplyLayer):
    layer_type = ArtifactLayer
    dispositions = {
        "archives": MERGE,
        "source_tarball": APPLY,
        "extra": APPLY,
        "checksum": APPLY,
    }

    archives: ArchiveConfig = Field(default_factory=ArchiveConfig)
    source_tarball: bool = True
    extra: List[ExtraArtifact] = []
    checksum: ChecksumStyle = ChecksumStyle.SHA256

    @classmethod
    def defaults_for_package(cls, workspaces: WorkspaceGraph, package: Package) -> 'ArtifactConfig':
        return cls()


# ---------------------------------------------------------------------------
# builds (package scope)
# ---------------------------------------------------------------------------

class SystemDependencies(ApplyLayer):
    """System packages to install, per package manager."""
    layer_type = SystemDependenciesLayer
    dispositions = {
        "homebrew": APPLY,
        "apt": APPLY,
        "chocolatey": APPLY,
    }

    homebrew: Dict[str, SystemDependency] = {}
    apt: Dict[str, SystemDependency] = {}
    chocolatey: Dict[str, SystemDependency] = {}

    def append(self, other: 'SystemDependencies') -> None:
        """Add another package's requirements; on a name clash the other one wins."""
        self.homebrew.update(copy.deepcopy(other.homebrew))
        self.apt.update(copy.deepcopy(other.apt))
        self.chocolatey.update(copy.deepcopy(other.chocolatey))

    def is_empty(self) -> bool:
        return not (self.homebrew or self.apt or self.chocolatey)


class AppBuildConfig(ApplyLayer):
    layer_type = BuildLayer
    dispositions = {
        "ssldotcom_windows_sign": APPLY,
        "msvc_crt_static": APPLY,
        "system_dependencies": MERGE,
    }

    ssldotcom_windows_sign: Optional[ProductionMode] = None
    msvc_crt_static: bool = True
    system_dependencies: SystemDependencies = Field(default_factory=SystemDependencies)

    @classmethod
    def defaults_for_package(cls, workspaces: WorkspaceGraph, package: Package) -> 'AppBuildConfig':
        return cls()


# ---------------------------------------------------------------------------
# hosts (package scope)
# ---------------------------------------------------------------------------

class GithubHostConfig(BaseModel):
    repo: Optional[GithubRepoPair]
    create: bool
    submodule_path: Optional[Path]
    during: GithubReleasePhase


class AppHostConfig(BaseModel):
    force_latest: bool
    display: bool
    display_name: str
    github: Optional[GithubHostConfig]


class GithubHostInheritable(ApplyLayer):
    layer_type = GithubHostLayer
    dispositions = {
        "repo": APPLY,
        "create": APPLY,
        "submodule_path": APPLY,
        "during": APPLY,
    }

    repo: Optional[GithubRepoPair] = None
    create: Optional[bool] = None
    submodule_path: Optional[Path] = None
    during: Optional[GithubReleasePhase] = None

    def apply_inheritance_for_package(self, workspaces: WorkspaceGraph,
                                      package: Package) -> GithubHostConfig:
        repo = self.repo
        if repo is None:
            repo = GithubRepoPair.from_url(workspaces.repository_for(package))
            if repo is None:
                logger.warning(f"No GitHub repository known for package '{package.name}', "
                               "set hosts.github.repo or a github.com repository URL")
        return GithubHostConfig(
            repo=repo,
            create=_first_set(self.create, True),
            submodule_path=self.submodule_path,
            during=_first_set(self.during, GithubReleasePhase.HOST),
        )


class HostInheritable(ApplyLayer):
    layer_type = HostLayer
    dispositions = {
        "force_latest": APPLY,
        "display": APPLY,
        "display_name": APPLY,
        "github": Toggle(GithubHostInheritable),
    }

    force_latest: Optional[bool] = None
    display: Optional[bool] = None
    display_name: Optional[str] = None
    github: Optional[GithubHostInheritable] = None

    @classmethod
    def defaults_for_package(cls, workspaces: WorkspaceGraph, package: Package,
                             workspace: 'WorkspaceConfig') -> 'HostInheritable':
        # Releases are hosted on GitHub by default when releasing from GitHub CI
        github = GithubHostInheritable() if workspace.ci.github is not None else None
        return cls(github=github)

    def apply_inheritance_for_package(self, workspaces: WorkspaceGraph,
                                      package: Package) -> AppHostConfig:
        github = None
        if self.github is not None:
            github = self.github.apply_inheritance_for_package(workspaces, package)
        return AppHostConfig(
            force_latest=_first_set(self.force_latest, False),
            display=_first_set(self.display, False),
            display_name=_first_set(self.display_name, package.name),
            github=github,
        )


# ---------------------------------------------------------------------------
# installers (package scope)
# ---------------------------------------------------------------------------

COMMON_INSTALLER_DISPOSITIONS: Dict[str, Any] = {
    "install_path": APPLY,
    "success_msg": APPLY,
    "install_updater": APPLY,
}


class CommonInstallerConfig(BaseModel):
    install_path: List[str]
    success_msg: str
    install_updater: bool


class HomebrewInstallerConfig(CommonInstallerConfig):
    tap: Optional[str]
    formula: str


class NpmInstallerConfig(CommonInstallerConfig):
    scope: Optional[str]
    package: str


class AppInstallerConfig(BaseModel):
    """Resolved installers; a None entry means the installer is disabled."""
    shell: Optional[CommonInstallerConfig]
    powershell: Optional[CommonInstallerConfig]
    homebrew: Optional[HomebrewInstallerConfig]
    npm: Optional[NpmInstallerConfig]


class CommonInstallerInheritable(ApplyLayer):
    layer_type = CommonInstallerLayer
    dispositions = COMMON_INSTALLER_DISPOSITIONS

    install_path: Optional[List[str]] = None
    success_msg: Optional[str] = None
    install_updater: Optional[bool] = None

    def common_values(self, fallback: 'CommonInstallerInheritable') -> Dict[str, Any]:
        return {
            "install_path": list(_first_set(self.install_path, fallback.install_path,
                                            DEFAULT_INSTALL_PATH)),
            "success_msg": _first_set(self.success_msg, fallback.success_msg,
                                      DEFAULT_SUCCESS_MSG),
            "install_updater": _first_set(self.install_updater, fallback.install_updater,
                                          False),
        }


class HomebrewInstallerInheritable(CommonInstallerInheritable):
    layer_type = HomebrewInstallerLayer
    dispositions = {
        **COMMON_INSTALLER_DISPOSITIONS,
        "tap": APPLY,
        "formula": APPLY,
    }

    tap: Optional[str] = None
    formula: Optional[str] = None


class NpmInstallerInheritable(CommonInstallerInheritable):
    layer_type = NpmInstallerLayer
    dispositions = {
        **COMMON_INSTALLER_DISPOSITIONS,
        "scope": APPLY,
        "package": APPLY,
    }

    scope: Optional[str] = None
    package: Optional[str] = None


class InstallerInheritable(CommonInstallerInheritable):
    layer_type = InstallerLayer
    dispositions = {
        **COMMON_INSTALLER_DISPOSITIONS,
        "shell": Toggle(CommonInstallerInheritable),
        "powershell": Toggle(CommonInstallerInheritable),
        "homebrew": Toggle(HomebrewInstallerInheritable),
        "npm": Toggle(NpmInstallerInheritable),
    }

    shell: Optional[CommonInstallerInheritable] = None
    powershell: Optional[CommonInstallerInheritable] = None
    homebrew: Optional[HomebrewInstallerInheritable] = None
    npm: Optional[NpmInstallerInheritable] = None

    @classmethod
    def defaults_for_package(cls, workspaces: WorkspaceGraph,
                             package: Package) -> 'InstallerInheritable':
        return cls()

    def apply_inheritance_for_package(self, workspaces: WorkspaceGraph,
                                      package: Package) -> AppInstallerConfig:
        shell = powershell = homebrew = npm = None
        if self.shell is not None:
            shell = CommonInstallerConfig(**self.shell.common_values(self))
        if self.powershell is not None:
            powershell = CommonInstallerConfig(**self.powershell.common_values(self))
        if self.homebrew is not None:
            homebrew = HomebrewInstallerConfig(
                **self.homebrew.common_values(self),
                tap=self.homebrew.tap,
                formula=_first_set(self.homebrew.formula, package.name),
            )
        if self.npm is not None:
            npm = NpmInstallerConfig(
                **self.npm.common_values(self),
                scope=self.npm.scope,
                package=_first_set(self.npm.package, package.name),
            )
        return AppInstallerConfig(shell=shell, powershell=powershell, homebrew=homebrew, npm=npm)


# ---------------------------------------------------------------------------
# publishers (package scope)
# ---------------------------------------------------------------------------

class CommonPublisherConfig(BaseModel):
    prereleases: bool


class PublisherConfig(BaseModel):
    homebrew: Optional[CommonPublisherConfig]
    npm: Optional[CommonPublisherConfig]


class CommonPublisherInheritable(ApplyLayer):
    layer_type = CommonPublisherLayer
    dispositions = {
        "prereleases": APPLY,
    }

    prereleases: Optional[bool] = None

    def resolve(self, fallback: 'CommonPublisherInheritable') -> CommonPublisherConfig:
        return CommonPublisherConfig(
            prereleases=_first_set(self.prereleases, fallback.prereleases, False)
        )


class PublisherInheritable(CommonPublisherInheritable):
    layer_type = PublisherLayer
    dispositions = {
        "prereleases": APPLY,
        "homebrew": Toggle(CommonPublisherInheritable),
        "npm": Toggle(CommonPublisherInheritable),
    }

    homebrew: Optional[CommonPublisherInheritable] = None
    npm: Optional[CommonPublisherInheritable] = None

    @classmethod
    def defaults_for_package(cls, workspaces: WorkspaceGraph,
                             package: Package) -> 'PublisherInheritable':
        return cls()

    def apply_inheritance_for_package(self, workspaces: WorkspaceGraph,
                                      package: Package) -> PublisherConfig:
        return PublisherConfig(
            homebrew=self.homebrew.resolve(self) if self.homebrew is not None else None,
            npm=self.npm.resolve(self) if self.npm is not None else None,
        )


# ---------------------------------------------------------------------------
# top level
# ---------------------------------------------------------------------------

class WorkspaceConfig(BaseModel):
    """Resolved workspace-scope configuration."""
    dist_version: Optional[str]
    allow_dirty: List[str]
    ci: CiConfig
    repository: Optional[str]


class WorkspaceConfigInheritable(ApplyLayer):
    layer_type = ConfigLayer
    dispositions = {
        "dist_version": APPLY,
        "allow_dirty": APPLY,
        "ci": MERGE,
        # package scope only
        "dist": IGNORE,
        "targets": IGNORE,
        "artifacts": IGNORE,
        "builds": IGNORE,
        "hosts": IGNORE,
        "installers": IGNORE,
        "publishers": IGNORE,
    }

    dist_version: Optional[str] = None
    allow_dirty: List[str] = []
    ci: CiInheritable

    @classmethod
    def defaults_for_workspace(cls, workspaces: WorkspaceGraph) -> 'WorkspaceConfigInheritable':
        return cls(ci=CiInheritable.defaults_for_workspace(workspaces))

    def apply_inheritance_for_workspace(self, workspaces: WorkspaceGraph) -> WorkspaceConfig:
        return WorkspaceConfig(
            dist_version=self.dist_version,
            allow_dirty=list(self.allow_dirty),
            ci=self.ci.apply_inheritance_for_workspace(workspaces),
            repository=workspaces.repository,
        )


class AppConfig(BaseModel):
    """Resolved package-scope configuration.

    `ci` is the resolved workspace CI configuration, visible to the package
    but not settable from package scope.
    """
    dist: bool
    targets: List[str]
    artifacts: ArtifactConfig
    builds: AppBuildConfig
    hosts: AppHostConfig
    installers: AppInstallerConfig
    publishers: PublisherConfig
    ci: CiConfig


class AppConfigInheritable(ApplyLayer):
    layer_type = ConfigLayer
    dispositions = {
        "dist": APPLY,
        "targets": APPLY,
        "artifacts": MERGE,
        "builds": MERGE,
        "hosts": MERGE,
        "installers": MERGE,
        "publishers": MERGE,
        # workspace scope only
        "dist_version": IGNORE,
        "allow_dirty": IGNORE,
        "ci": IGNORE,
    }

    dist: Optional[bool] = None
    targets: List[str] = []
    artifacts: ArtifactConfig
    builds: AppBuildConfig
    hosts: HostInheritable
    installers: InstallerInheritable
    publishers: PublisherInheritable

    @classmethod
    def defaults_for_package(cls, workspaces: WorkspaceGraph, package: Package,
                             workspace: WorkspaceConfig) -> 'AppConfigInheritable':
        return cls(
            artifacts=ArtifactConfig.defaults_for_package(workspaces, package),
            builds=AppBuildConfig.defaults_for_package(workspaces, package),
            hosts=HostInheritable.defaults_for_package(workspaces, package, workspace),
            installers=InstallerInheritable.defaults_for_package(workspaces, package),
            publishers=PublisherInheritable.defaults_for_package(workspaces, package),
        )

    def apply_inheritance_for_package(self, workspaces: WorkspaceGraph, package: Package,
                                      workspace: WorkspaceConfig) -> AppConfig:
        return AppConfig(
            dist=_first_set(self.dist, package.publish),
            targets=list(self.targets),
            artifacts=self.artifacts,
            builds=self.builds,
            hosts=self.hosts.apply_inheritance_for_package(workspaces, package),
            installers=self.installers.apply_inheritance_for_package(workspaces, package),
            publishers=self.publishers.apply_inheritance_for_package(workspaces, package),
            ci=workspace.ci.model_copy(deep=True),
        )
