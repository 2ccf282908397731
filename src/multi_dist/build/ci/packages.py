"""
System package installation for CI runners.

Given the targets of one runner task, pick the package manager of the first
target we know how to provision and render the command installing every
build-time system dependency that applies to that target.

Known limitation: a task mixing operating systems only gets the packages of
the first recognized target's family.
"""

import logging
from typing import List, Optional

from ..config.layers import DependencyKind
from ..config.models import SystemDependencies

logger = logging.getLogger(__name__)

HOMEBREW_TARGETS = (
    "i686-apple-darwin",
    "x86_64-apple-darwin",
    "aarch64-apple-darwin",
)
APT_TARGETS = (
    "i686-unknown-linux-gnu",
    "x86_64-unknown-linux-gnu",
    "aarch64-unknown-linux-gnu",
    "i686-unknown-linux-musl",
    "x86_64-unknown-linux-musl",
    "aarch64-unknown-linux-musl",
)
CHOCOLATEY_TARGETS = (
    "i686-pc-windows-msvc",
    "x86_64-pc-windows-msvc",
    "aarch64-pc-windows-msvc",
)

CASK_PREFIXES = ("homebrew/cask", "homebrew/homebrew-cask")
MUSL_EXTRA_PACKAGE = "musl-tools"


def _wanted(packages, target: str):
    """(name, spec) pairs needed at build time for target, in name order."""
    return [
        (name, spec)
        for name, spec in sorted(packages.items())
        if spec.wanted_for_target(target) and spec.stage_wanted(DependencyKind.BUILD)
    ]


def brewfile_from(packages: List[str]) -> str:
    """Render Brewfile lines; casks need the `cask` verb, formulas `brew`."""
    lines = []
    for package in packages:
        if package.lower().startswith(CASK_PREFIXES):
            lines.append(f'cask "{package}"')
        else:
            lines.append(f'brew "{package}"')
    return "\n".join(lines)


def brew_bundle_command(packages: List[str]) -> str:
    return f"""cat << EOF >Brewfile
{brewfile_from(packages)}
EOF

brew bundle install"""


def _homebrew_install(target: str, dependencies: SystemDependencies) -> Optional[str]:
    packages = [name for name, _ in _wanted(dependencies.homebrew, target)]
    if not packages:
        return None
    return brew_bundle_command(packages)


def _apt_install(target: str, dependencies: SystemDependencies) -> Optional[str]:
    packages = [
        f"{name}={spec.version}" if spec.version else name
        for name, spec in _wanted(dependencies.apt, target)
    ]
    # musl builds may need musl-tools for anything non-trivial
    if target.endswith("linux-musl"):
        packages.append(MUSL_EXTRA_PACKAGE)
    if not packages:
        return None
    return f"sudo apt-get update && sudo apt-get install {' '.join(packages)}"


def _chocolatey_install(target: str, dependencies: SystemDependencies) -> Optional[str]:
    commands = [
        f"choco install {name} --version={spec.version}" if spec.version else f"choco install {name}"
        for name, spec in _wanted(dependencies.chocolatey, target)
    ]
    if not commands:
        return None
    return "\n".join(commands)


def package_install_for_targets(targets: List[str], dependencies: SystemDependencies) -> Optional[str]:
    """Render the system package install command for a runner task.

    Args:
        targets: Targets assigned to the runner
        dependencies: Every declared system dependency of the release

    Returns:
        Shell command(s) to run, or None when nothing needs installing
    """
    for target in targets:
        if target in HOMEBREW_TARGETS:
            return _homebrew_install(target, dependencies)
        if target in APT_TARGETS:
            return _apt_install(target, dependencies)
        if target in CHOCOLATEY_TARGETS:
            return _chocolatey_install(target, dependencies)
        logger.debug(f"No package manager known for {target}, trying next target")

    return None
