"""
Rewrite config-file-relative paths in a layer.

Paths in a configuration file are relative to the directory of the file that
declares them. Once layers are merged that origin is lost, so each layer gets
rewritten against its own directory before it is applied.

This must happen exactly once per layer: joining an already rewritten relative
path against a second base would corrupt it.

Path-bearing fields:
    artifacts.archives.include[*]
    artifacts.extra[*].working_dir
    hosts.github.submodule_path
Any new path field added to the layers must be handled here as well.
"""
from pathlib import Path
from typing import Union

from .layers import ConfigLayer, GithubHostLayer


def make_path_relative_to(path: Union[str, Path], base_path: Path) -> Path:
    """Join a relative path onto base_path; absolute paths are kept as they are."""
    path = Path(path)
    if path.is_absolute():
        return path
    return Path(base_path) / path


def make_relative_to(layer: ConfigLayer, base_path: Path) -> None:
    """Rewrite every path field of the layer in place to be relative to base_path."""
    artifacts = layer.artifacts
    if artifacts is not None:
        archives = artifacts.archives
        if archives is not None and archives.include is not None:
            archives.include = [make_path_relative_to(path, base_path) for path in archives.include]
        if artifacts.extra is not None:
            for extra in artifacts.extra:
                extra.working_dir = make_path_relative_to(extra.working_dir, base_path)

    hosts = layer.hosts
    if hosts is not None and isinstance(hosts.github, GithubHostLayer):
        github = hosts.github
        if github.submodule_path is not None:
            github.submodule_path = make_path_relative_to(github.submodule_path, base_path)
