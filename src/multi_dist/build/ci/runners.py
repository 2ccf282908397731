"""
Distribute build targets onto CI runners.

A target triple is treated as an opaque string: the runner for it comes from
the user's override table (exact match) or from the first platform-family
marker it contains. Unknown targets are never an error; they get the default
runner and a warning in the plan.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Older runners keep system dependencies from creeping in too recent, which
# helps the portability of the built artifacts.
GITHUB_LINUX_RUNNER = "ubuntu-20.04"
GITHUB_MACOS_INTEL_RUNNER = "macos-12"
GITHUB_MACOS_ARM64_RUNNER = "macos-12"
GITHUB_WINDOWS_RUNNER = "windows-2019"
DEFAULT_RUNNER = GITHUB_LINUX_RUNNER

# Evaluated top to bottom, first marker contained in the target wins
RUNNER_FAMILIES = [
    ("linux", GITHUB_LINUX_RUNNER),
    ("x86_64-apple", GITHUB_MACOS_INTEL_RUNNER),
    ("aarch64-apple", GITHUB_MACOS_ARM64_RUNNER),
    ("windows", GITHUB_WINDOWS_RUNNER),
]


class Strategy(str, Enum):
    """How targets are spread over runners.

    CONSOLIDATE puts every target sharing a runner into one task, saving setup
    time at the cost of latency and fault isolation (e.g. both macOS targets
    wait on each other and fail together). ISOLATE gives every target its own
    task.
    """
    CONSOLIDATE = "consolidate"
    ISOLATE = "isolate"

    @classmethod
    def from_merge_tasks(cls, merge_tasks: bool) -> 'Strategy':
        return cls.CONSOLIDATE if merge_tasks else cls.ISOLATE


class PlanWarning(BaseModel):
    """A recoverable problem found while planning."""
    target: str
    runner: str
    message: str


class RunnerGroupEntry(BaseModel):
    """One CI task: a runner and the targets it builds."""
    runner: str
    targets: List[str]


class RunnerPlan(BaseModel):
    groups: List[RunnerGroupEntry] = []
    warnings: List[PlanWarning] = []

    def targets(self) -> List[str]:
        """Every planned target, in group order."""
        return [target for group in self.groups for target in group.targets]


def github_runner_for_target(target: str, overrides: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Get the runner for a target, or None if its platform is not recognized."""
    if overrides and target in overrides:
        return overrides[target]

    for marker, runner in RUNNER_FAMILIES:
        if marker in target:
            return runner
    return None


def _runner_or_default(target: str, overrides: Optional[Dict[str, str]],
                       warnings: List[PlanWarning]) -> str:
    runner = github_runner_for_target(target, overrides)
    if runner is not None:
        return runner

    message = f"not sure which github runner should be used for {target}, assuming {DEFAULT_RUNNER}"
    logger.warning(message)
    warnings.append(PlanWarning(target=target, runner=DEFAULT_RUNNER, message=message))
    return DEFAULT_RUNNER


def distribute_targets_to_runners_merged(targets: Iterable[str],
                                         overrides: Optional[Dict[str, str]] = None) -> RunnerPlan:
    """Group targets by runner, one task per distinct runner (ordered by runner name)."""
    warnings: List[PlanWarning] = []
    groups: Dict[str, List[str]] = {}
    for target in sorted(set(targets)):
        runner = _runner_or_default(target, overrides, warnings)
        groups.setdefault(runner, []).append(target)

    return RunnerPlan(
        groups=[RunnerGroupEntry(runner=runner, targets=groups[runner]) for runner in sorted(groups)],
        warnings=warnings
    )


def distribute_targets_to_runners_split(targets: Iterable[str],
                                        overrides: Optional[Dict[str, str]] = None) -> RunnerPlan:
    """One task per target, in target order."""
    warnings: List[PlanWarning] = []
    groups = []
    for target in sorted(set(targets)):
        runner = _runner_or_default(target, overrides, warnings)
        groups.append(RunnerGroupEntry(runner=runner, targets=[target]))
    return RunnerPlan(groups=groups, warnings=warnings)


def plan(strategy: Strategy, targets: Iterable[str],
         overrides: Optional[Dict[str, str]] = None) -> RunnerPlan:
    """Map build targets onto runners.

    Every target ends up in exactly one group. The result only depends on the
    inputs, so repeated runs give identical plans.

    Args:
        strategy: CONSOLIDATE or ISOLATE
        targets: Target triples to build (duplicates are ignored)
        overrides: Target triple -> runner name, checked before the built-in table

    Returns:
        RunnerPlan with the groups and any unrecognized-platform warnings
    """
    if Strategy(strategy) is Strategy.CONSOLIDATE:
        return distribute_targets_to_runners_merged(targets, overrides)
    return distribute_targets_to_runners_split(targets, overrides)


def install_dist_for_targets(targets: List[str], install_sh: str, install_ps1: str) -> str:
    """Pick the multi-dist install expression for the runner building targets."""
    for target in targets:
        if "linux" in target or "apple" in target:
            return install_sh
        elif "windows" in target:
            return install_ps1

    # Unrecognized targets were planned onto the default (Linux) runner
    return install_sh
