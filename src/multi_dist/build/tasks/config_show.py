"""
Configuration Display Task

Shows resolved configuration with diagnostic information.
"""

import sys
import yaml
import logging
from invoke import task

from ..config import ConfigException, load_workspace

logger = logging.getLogger(__name__)


@task
def show_config(ctx, package=None, root=None):
    """
    Show the resolved workspace configuration, or one package's.

    Args:
        package: Member package to show (default: the workspace)
        root: Workspace root (default: current directory)

    Outputs:
        stdout: YAML configuration (parseable)
        stderr: Diagnostic information
    """
    try:
        print(f"🔍 Loading workspace from: {root or '.'}", file=sys.stderr)
        loaded = load_workspace(root)
        project = loaded.resolve()

        print(f"✅ Configuration resolved successfully", file=sys.stderr)
        print(f"📦 Packages: {', '.join(loaded.graph.package_names()) or 'none'}", file=sys.stderr)
        print(f"🐙 GitHub CI: {'enabled' if project.workspace.ci.github else 'disabled'}", file=sys.stderr)

        if package:
            # Raises PackageNotFoundError for non-members
            loaded.graph.package(package)
            config_dict = {
                'package': package,
                'config': project.packages[package].model_dump(mode='json')
            }
        else:
            config_dict = {
                'workspace': project.workspace.model_dump(mode='json')
            }

        # Output parseable YAML to stdout
        yaml.dump(config_dict, sys.stdout, default_flow_style=False, sort_keys=True)

    except ConfigException as e:
        print(e.guidance, file=sys.stderr)
        sys.exit(1)
