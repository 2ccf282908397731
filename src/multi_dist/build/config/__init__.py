"""
Configuration management for multi-dist.

Layers are decoded from dist-workspace.yaml and dist.yaml, merged per scope
and resolved into WorkspaceConfig and AppConfig.
"""

from .exceptions import ConfigException, ConfigContractError
from .layers import ConfigLayer
from .models import AppConfig, WorkspaceConfig
from .resolver import ProjectConfig, app_config, project_config, workspace_config
from .loading import LoadedWorkspace, load_workspace


__all__ = [
    'ConfigException',
    'ConfigContractError',
    'ConfigLayer',
    'AppConfig',
    'WorkspaceConfig',
    'ProjectConfig',
    'app_config',
    'project_config',
    'workspace_config',
    'LoadedWorkspace',
    'load_workspace'
]
