"""
Action Vendoring Task

Fetches the pinned GitHub Actions into .github/actions/ after verifying them.
"""

import sys
import logging
from pathlib import Path
from invoke import task

from ..ci.exceptions import VendorError
from ..ci.vendor import GITHUB_ACTIONS_DIR, VENDORED_ACTIONS, vendor_actions

logger = logging.getLogger(__name__)


@task(name='vendor-actions')
def vendor_actions_task(ctx, root=None):
    """
    Vendor every pinned action used by the release workflow.

    Args:
        root: Workspace root (default: current directory)
    """
    workspace_dir = Path(root) if root else Path.cwd()
    print(f"📥 Vendoring {len(VENDORED_ACTIONS)} action(s) into "
          f"{workspace_dir / GITHUB_ACTIONS_DIR}", file=sys.stderr)
    try:
        paths = vendor_actions(workspace_dir)
    except VendorError as e:
        print(e.guidance, file=sys.stderr)
        sys.exit(1)

    for path in paths:
        print(f"✅ {path}", file=sys.stderr)
