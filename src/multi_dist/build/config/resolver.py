"""
Scope resolver.

Turns the workspace layer and a package's own layer into resolved
configurations:

    workspace: defaults -> apply(workspace layer) -> inherit
    package:   defaults (from the resolved workspace) -> apply(workspace layer)
               -> apply(package layer) -> inherit

Layers are applied workspace first so that package settings always win.
Resolution does no I/O and never mutates the layers it is given.
"""
import logging
from typing import Dict, Optional

from pydantic import BaseModel

from ..project import Package, WorkspaceGraph
from .layers import ConfigLayer
from .models import AppConfig, AppConfigInheritable, WorkspaceConfig, WorkspaceConfigInheritable
from .paths import make_relative_to

logger = logging.getLogger(__name__)


class ProjectConfig(BaseModel):
    """Resolved configuration for a workspace and every member package."""
    workspace: WorkspaceConfig
    packages: Dict[str, AppConfig]


def _relative_copy(layer: Optional[ConfigLayer], base_path) -> Optional[ConfigLayer]:
    """Private copy of a layer with its paths rewritten against base_path."""
    if layer is None:
        return None
    layer = layer.model_copy(deep=True)
    make_relative_to(layer, base_path)
    return layer


def workspace_config(workspaces: WorkspaceGraph,
                     global_config: Optional[ConfigLayer]) -> WorkspaceConfig:
    """Compute the workspace-level config."""
    global_config = _relative_copy(global_config, workspaces.root)

    config = WorkspaceConfigInheritable.defaults_for_workspace(workspaces)
    config.apply_layer(global_config)
    return config.apply_inheritance_for_workspace(workspaces)


def app_config(workspaces: WorkspaceGraph,
               package: Package,
               global_config: Optional[ConfigLayer],
               local_config: Optional[ConfigLayer],
               workspace: Optional[WorkspaceConfig] = None) -> AppConfig:
    """Compute the package-level config.

    Args:
        workspaces: Project introspection
        package: The package to resolve
        global_config: Layer from the workspace configuration file
        local_config: Layer from the package's own configuration file
        workspace: Already resolved workspace config; resolved from
            global_config when not given

    Returns:
        Fully resolved AppConfig
    """
    if workspace is None:
        workspace = workspace_config(workspaces, global_config)

    global_config = _relative_copy(global_config, workspaces.root)
    local_config = _relative_copy(local_config, package.package_root)

    config = AppConfigInheritable.defaults_for_package(workspaces, package, workspace)
    config.apply_layer(global_config)
    config.apply_layer(local_config)
    return config.apply_inheritance_for_package(workspaces, package, workspace)


def project_config(workspaces: WorkspaceGraph,
                   global_config: Optional[ConfigLayer],
                   package_configs: Dict[str, Optional[ConfigLayer]]) -> ProjectConfig:
    """Resolve the workspace and every member package.

    Args:
        workspaces: Project introspection
        global_config: Layer from the workspace configuration file
        package_configs: Package name -> that package's layer (missing or None
            means the package declares nothing of its own)
    """
    workspace = workspace_config(workspaces, global_config)
    packages = {}
    for package in workspaces.packages:
        logger.debug(f"Resolving configuration for package '{package.name}'")
        packages[package.name] = app_config(
            workspaces,
            package,
            global_config,
            package_configs.get(package.name),
            workspace=workspace
        )
    return ProjectConfig(workspace=workspace, packages=packages)
