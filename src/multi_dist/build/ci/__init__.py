"""
CI planning: runner distribution, system packages, vendored actions and the
GitHub release workflow description.
"""

from .exceptions import VendorError, VendoredActionHashMismatch, VendorTransportError
from .runners import RunnerPlan, Strategy, plan
from .packages import package_install_for_targets
from .vendor import VENDORED_ACTIONS, vendor_actions, vendor_repo
from .github import GithubCiInfo, yaml_renderer

__all__ = [
    'VendorError',
    'VendoredActionHashMismatch',
    'VendorTransportError',
    'RunnerPlan',
    'Strategy',
    'plan',
    'package_install_for_targets',
    'VENDORED_ACTIONS',
    'vendor_actions',
    'vendor_repo',
    'GithubCiInfo',
    'yaml_renderer',
]
