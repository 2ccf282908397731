"""
Build package for multi-dist.

This package contains configuration resolution and CI task planning.
"""

# config first: project.py imports from config.exceptions
from .config import ConfigException, load_workspace, project_config
from .project import Package, WorkspaceGraph
from .ci import GithubCiInfo, plan, vendor_actions

__all__ = [
    'ConfigException',
    'load_workspace',
    'project_config',
    'Package',
    'WorkspaceGraph',
    'GithubCiInfo',
    'plan',
    'vendor_actions',
]
