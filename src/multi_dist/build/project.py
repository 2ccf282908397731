"""
Project introspection.

Describes the workspace being released: its root directory, its member
packages and where each of them lives. Configuration resolution only reads
this model; building it from disk is the job of config.loading.
"""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from .config.exceptions import PackageNotFoundError

logger = logging.getLogger(__name__)


class Package(BaseModel):
    """A member package of the workspace."""
    name: str
    package_root: Path
    version: Optional[str] = None
    repository: Optional[str] = None
    publish: bool = True
    binaries: List[str] = []


class WorkspaceGraph(BaseModel):
    """The workspace and all of its member packages."""
    root: Path
    packages: List[Package] = []
    repository: Optional[str] = None

    def package(self, name: str) -> Package:
        """Look up a member package by name.

        Raises:
            PackageNotFoundError: If no member has that name
        """
        for package in self.packages:
            if package.name == name:
                return package
        raise PackageNotFoundError(
            f"Package '{name}' is not a member of the workspace at {self.root}",
            path=str(self.root),
            package_name=name
        )

    def package_names(self) -> List[str]:
        return [package.name for package in self.packages]

    def repository_for(self, package: Package) -> Optional[str]:
        """Repository URL of a package, falling back to the workspace's."""
        return package.repository or self.repository
