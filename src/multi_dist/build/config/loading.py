"""
Configuration file loading.

Reads dist-workspace.yaml at the workspace root and dist.yaml in every member
package, producing the project introspection model plus one decoded layer per
file. Nothing is merged here; see resolver for that.

dist-workspace.yaml:

    workspace:
      members: ["crates/app"]
      repository: https://github.com/owner/repo
    dist:
      ci:
        github: true

dist.yaml:

    package:
      name: app
      version: 1.2.0
    dist:
      targets: [x86_64-unknown-linux-gnu]
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ValidationError

from ..project import Package, WorkspaceGraph
from .exceptions import ConfigLoadError, PackageNotFoundError, WorkspaceNotFoundError
from .layers import ConfigLayer
from .resolver import ProjectConfig, project_config

logger = logging.getLogger(__name__)

WORKSPACE_FILE = "dist-workspace.yaml"
PACKAGE_FILE = "dist.yaml"


class LoadedWorkspace(BaseModel):
    """Everything read from disk for one workspace."""
    graph: WorkspaceGraph
    workspace_layer: Optional[ConfigLayer] = None
    package_layers: Dict[str, Optional[ConfigLayer]] = {}

    def resolve(self) -> ProjectConfig:
        """Resolve the workspace and every package."""
        return project_config(self.graph, self.workspace_layer, self.package_layers)


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML file whose root must be a mapping. Empty files are empty mappings."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML: {e}", path=str(path)) from e
    except UnicodeDecodeError as e:
        raise ConfigLoadError(f"File is not valid UTF-8: {e}", path=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(
            f"Config root must be a mapping, got {type(data).__name__}",
            path=str(path)
        )
    return data


def _section(data: Dict[str, Any], key: str, path: Path) -> Dict[str, Any]:
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigLoadError(f"{key} must be a mapping, got {type(section).__name__}", path=str(path))
    return section


def parse_layer(data: Optional[Dict[str, Any]], path: Union[str, Path] = None) -> Optional[ConfigLayer]:
    """Decode the `dist` section of a configuration file into a layer."""
    if data is None:
        return None
    try:
        return ConfigLayer.model_validate(data)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid dist configuration: {e}", path=str(path) if path else None) from e


def load_package(package_dir: Path) -> Tuple[Package, Optional[ConfigLayer]]:
    """Load a member package's dist.yaml.

    Returns:
        Tuple of (Package, package layer or None)

    Raises:
        PackageNotFoundError: If dist.yaml does not exist
        ConfigLoadError: If the file is invalid
    """
    package_file = package_dir / PACKAGE_FILE
    if not package_file.exists():
        raise PackageNotFoundError(f"Package file not found: {package_file}", path=str(package_file))

    data = _read_yaml(package_file)
    package_data = _section(data, 'package', package_file)
    if not package_data.get('name'):
        raise ConfigLoadError("package.name is required", path=str(package_file))

    try:
        package = Package(package_root=package_dir, **package_data)
    except (TypeError, ValidationError) as e:
        raise ConfigLoadError(f"Invalid package section: {e}", path=str(package_file)) from e

    layer = parse_layer(data.get('dist'), package_file)
    logger.debug(f"Loaded package '{package.name}' from {package_file}")
    return package, layer


def load_workspace(root: Union[str, Path] = None) -> LoadedWorkspace:
    """Load the workspace rooted at root (defaults to the current directory).

    Raises:
        WorkspaceNotFoundError: If dist-workspace.yaml does not exist
        PackageNotFoundError: If a member has no dist.yaml
        ConfigLoadError: If any file is invalid
    """
    root = Path(root) if root is not None else Path.cwd()
    root = root.resolve()
    workspace_file = root / WORKSPACE_FILE
    if not workspace_file.exists():
        raise WorkspaceNotFoundError(f"Workspace file not found: {workspace_file}",
                                     path=str(workspace_file))

    data = _read_yaml(workspace_file)
    workspace_data = _section(data, 'workspace', workspace_file)
    members: List[str] = workspace_data.get('members') or []
    if not isinstance(members, list):
        raise ConfigLoadError("workspace.members must be a list", path=str(workspace_file))

    packages = []
    package_layers = {}
    for member in members:
        package, layer = load_package(root / member)
        if package.name in package_layers:
            raise ConfigLoadError(f"Duplicate package name '{package.name}'", path=str(workspace_file))
        packages.append(package)
        package_layers[package.name] = layer

    graph = WorkspaceGraph(root=root, packages=packages, repository=workspace_data.get('repository'))
    workspace_layer = parse_layer(data.get('dist'), workspace_file)
    logger.info(f"Loaded workspace {root} with {len(packages)} package(s)")
    return LoadedWorkspace(graph=graph, workspace_layer=workspace_layer, package_layers=package_layers)
