"""
Pydantic models for configuration fragments ("layers").

A layer is one sparse, decoded configuration source: the `dist` section of
dist-workspace.yaml or of a package's dist.yaml. Every field is optional and
None means "unset, inherit whatever is already there".

Keys are written kebab-case in YAML (`fail-fast`); snake_case is accepted too.
"""
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


def _kebab(name: str) -> str:
    return name.replace('_', '-')


class Layer(BaseModel):
    """Base for all fragment models."""
    model_config = ConfigDict(alias_generator=_kebab, populate_by_name=True, extra='forbid')


class PrRunMode(str, Enum):
    """What the release workflow does on pull requests."""
    SKIP = "skip"
    PLAN = "plan"
    UPLOAD = "upload"


class ProductionMode(str, Enum):
    """Which ssl.com signing environment to use."""
    TEST = "test"
    PROD = "prod"


class GithubReleasePhase(str, Enum):
    """When the GitHub release gets created."""
    PLAN = "plan"
    HOST = "host"
    ANNOUNCE = "announce"


class ChecksumStyle(str, Enum):
    SHA256 = "sha256"
    SHA512 = "sha512"
    SHA3_256 = "sha3-256"
    SHA3_512 = "sha3-512"
    BLAKE2S = "blake2s"
    BLAKE2B = "blake2b"
    FALSE = "false"


class DependencyKind(str, Enum):
    """Build stage a system dependency is needed for."""
    BUILD = "build"
    RUN = "run"


_REPO_URL = re.compile(r'github\.com[/:]([^/]+)/([^/]+?)(?:\.git)?/?$')


class GithubRepoPair(BaseModel):
    """An `owner/repo` pair on GitHub."""
    owner: str
    repo: str

    @model_validator(mode='before')
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            owner, _, repo = data.partition('/')
            if not owner or not repo or '/' in repo:
                raise ValueError(f"expected 'owner/repo', got '{data}'")
            return {'owner': owner, 'repo': repo}
        return data

    @classmethod
    def parse(cls, value: str) -> 'GithubRepoPair':
        """Parse an `owner/repo` string."""
        return cls.model_validate(value)

    @classmethod
    def from_url(cls, url: Optional[str]) -> Optional['GithubRepoPair']:
        """Extract the pair from a GitHub repository URL, if it is one."""
        if not url:
            return None
        match = _REPO_URL.search(url.strip())
        if not match:
            return None
        return cls(owner=match.group(1), repo=match.group(2))

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


class SystemDependency(Layer):
    """One system package requirement.

    Decodes from either a bare version string (`"*"` meaning any version) or a
    mapping with `version`, `stage` and `targets`.
    """
    version: Optional[str] = None
    stage: List[DependencyKind] = [DependencyKind.BUILD, DependencyKind.RUN]
    targets: Optional[List[str]] = None

    @model_validator(mode='before')
    @classmethod
    def _from_version(cls, data: Any) -> Any:
        if data is None or isinstance(data, (str, int, float)):
            return {'version': data}
        return data

    @field_validator('version', mode='before')
    @classmethod
    def _normalize_version(cls, value: Any) -> Any:
        if value is None:
            return None
        value = str(value).strip()
        if value in ('', '*'):
            return None
        return value

    def wanted_for_target(self, target: str) -> bool:
        return self.targets is None or target in self.targets

    def stage_wanted(self, kind: DependencyKind) -> bool:
        return kind in self.stage


class SystemDependenciesLayer(Layer):
    """System packages per package manager."""
    homebrew: Optional[Dict[str, SystemDependency]] = None
    apt: Optional[Dict[str, SystemDependency]] = None
    chocolatey: Optional[Dict[str, SystemDependency]] = None


class CommonCiLayer(Layer):
    """CI settings shared by every CI provider."""
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


class GithubCiLayer(CommonCiLayer):
    """GitHub Actions settings; common fields here override the CI-wide ones."""
    runners: Optional[Dict[str, str]] = None
    create_release: Optional[bool] = None
    external_repo: Optional[GithubRepoPair] = None
    vendor_actions: Optional[bool] = None


class CiLayer(CommonCiLayer):
    github: Optional[Union[bool, GithubCiLayer]] = None


class ArchiveLayer(Layer):
    include: Optional[List[Path]] = None
    auto_includes: Optional[bool] = None
    windows_archive: Optional[str] = None
    unix_archive: Optional[str] = None
    package_libraries: Optional[List[str]] = None


class ExtraArtifact(Layer):
    """An extra artifact produced by running a command."""
    working_dir: Path = Path('.')
    command: List[str]
    artifacts: List[str]


class ArtifactLayer(Layer):
    archives: Optional[ArchiveLayer] = None
    source_tarball: Optional[bool] = None
    extra: Optional[List[ExtraArtifact]] = None
    checksum: Optional[ChecksumStyle] = None


class BuildLayer(Layer):
    ssldotcom_windows_sign: Optional[ProductionMode] = None
    msvc_crt_static: Optional[bool] = None
    system_dependencies: Optional[SystemDependenciesLayer] = None


class GithubHostLayer(Layer):
    repo: Optional[GithubRepoPair] = None
    create: Optional[bool] = None
    submodule_path: Optional[Path] = None
    during: Optional[GithubReleasePhase] = None


class HostLayer(Layer):
    force_latest: Optional[bool] = None
    display: Optional[bool] = None
    display_name: Optional[str] = None
    github: Optional[Union[bool, GithubHostLayer]] = None


class CommonInstallerLayer(Layer):
    """Installer settings shared by every installer."""
    install_path: Optional[List[str]] = None
    success_msg: Optional[str] = None
    install_updater: Optional[bool] = None


class HomebrewInstallerLayer(CommonInstallerLayer):
    tap: Optional[str] = None
    formula: Optional[str] = None


class NpmInstallerLayer(CommonInstallerLayer):
    scope: Optional[str] = None
    package: Optional[str] = None


class InstallerLayer(CommonInstallerLayer):
    shell: Optional[Union[bool, CommonInstallerLayer]] = None
    powershell: Optional[Union[bool, CommonInstallerLayer]] = None
    homebrew: Optional[Union[bool, HomebrewInstallerLayer]] = None
    npm: Optional[Union[bool, NpmInstallerLayer]] = None


class CommonPublisherLayer(Layer):
    prereleases: Optional[bool] = None


class PublisherLayer(CommonPublisherLayer):
    homebrew: Optional[Union[bool, CommonPublisherLayer]] = None
    npm: Optional[Union[bool, CommonPublisherLayer]] = None


class ConfigLayer(Layer):
    """A whole configuration fragment.

    Workspace-scope fields: dist_version, allow_dirty, ci.
    Package-scope fields: dist, targets, artifacts, builds, hosts, installers,
    publishers.
    """
    dist_version: Optional[str] = None
    allow_dirty: Optional[List[str]] = None
    ci: Optional[CiLayer] = None
    dist: Optional[bool] = None
    targets: Optional[List[str]] = None
    artifacts: Optional[ArtifactLayer] = None
    builds: Optional[BuildLayer] = None
    hosts: Optional[HostLayer] = None
    installers: Optional[InstallerLayer] = None
    publishers: Optional[PublisherLayer] = None
