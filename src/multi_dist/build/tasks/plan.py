"""
CI Planning Task

Prints the GitHub release workflow description the template renderer consumes.
"""

import sys
import logging
from invoke import task

from ..ci.github import GithubCiInfo, yaml_renderer
from ..config import ConfigException, load_workspace

logger = logging.getLogger(__name__)


@task
def plan(ctx, root=None):
    """
    Plan the release workflow: runner tasks, install commands and job lists.

    Args:
        root: Workspace root (default: current directory)

    Outputs:
        stdout: YAML task description
        stderr: Diagnostic information and planning warnings
    """
    try:
        loaded = load_workspace(root)
        info = GithubCiInfo.new(loaded.resolve(), loaded.graph.root)
    except ConfigException as e:
        print(e.guidance, file=sys.stderr)
        sys.exit(1)

    tasks = info.artifacts_matrix.include
    print(f"🗺️  Planned {len(tasks)} local artifact task(s)", file=sys.stderr)
    for entry in tasks:
        print(f"   {entry.runner}: {', '.join(entry.targets or [])}", file=sys.stderr)
    for warning in info.warnings:
        print(f"⚠️  {warning.message}", file=sys.stderr)
    print(f"📄 Workflow file: {info.github_ci_path()}", file=sys.stderr)

    sys.stdout.write(info.generate(yaml_renderer))
