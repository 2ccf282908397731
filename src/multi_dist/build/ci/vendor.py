"""
Vendor pinned GitHub Actions into the repository.

Each action is fetched as the source archive of a pinned commit and checked
against a pinned SHA-256 before anything is written. Floating tags are never
trusted. A verified archive replaces any previously vendored copy; on any
failure the previous copy stays where it was.
"""

import hashlib
import logging
import tarfile
import tempfile
from pathlib import Path
from typing import List, Optional, Union

import requests
from pydantic import BaseModel

from ..config.layers import GithubRepoPair
from .exceptions import VendoredActionHashMismatch, VendorTransportError

logger = logging.getLogger(__name__)

GITHUB_ACTIONS_DIR = ".github/actions"
FETCH_TIMEOUT = 60


class VendoredAction(BaseModel):
    """A pinned action: repository, commit and expected archive hash."""
    repo: str
    revision: str
    hash: str


# Latest revision of each action's floating tag at the time of pinning
VENDORED_ACTIONS: List[VendoredAction] = [
    # Floating tag: v4
    VendoredAction(
        repo="actions/download-artifact",
        revision="65a9edc5881444af0b9093a5e628f2fe47ea3b2e",
        hash="a8711a1218e748f8f067ae8a2400fe6057f822d93df682a4893e0498824766bf",
    ),
    # Floating tag: v1
    VendoredAction(
        repo="ncipollo/release-action",
        revision="2c591bcc8ecdcd2db72b97d6147f871fcd833ba5",
        hash="d250495fdc9e5fdb9ba11573a2db0280825ad99b599f9edc2a97c93c8c711dc3",
    ),
    # Floating tag: v2
    VendoredAction(
        repo="Swatinem/rust-cache",
        revision="23bce251a8cd2ffc3c1075eaa2367cf899916d84",
        hash="66d5fe3ef0d928c52baa7a604746eb73e23356d8891df65c2d7dd6353bbff97c",
    ),
    # Floating tag: v4
    VendoredAction(
        repo="actions/upload-artifact",
        revision="65462800fd760344b1a7b4382951275a0abb4808",
        hash="3574378b2862238bc550b90d3711eb09e9ccb9d8052519d9a23d061e468ed811",
    ),
]


def archive_url(repo: GithubRepoPair, revision: str) -> str:
    return f"https://github.com/{repo}/archive/{revision}.tar.gz"


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _fetch(url: str, repo: GithubRepoPair, revision: str,
           session: Optional[requests.Session], timeout: float) -> bytes:
    http = session if session is not None else requests
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise VendorTransportError(
            f"Failed to fetch {url}: {e}",
            repo=str(repo),
            revision=revision,
            url=url
        ) from e
    return response.content


def _extract(archive: tarfile.TarFile, dest: Path) -> None:
    """Extract archive into dest, refusing members that would land outside it."""
    if hasattr(tarfile, "data_filter"):
        archive.extractall(dest, filter="data")
        return

    # Interpreters without extraction filters: only plain files and directories
    # inside dest are accepted
    base = dest.resolve()
    for member in archive.getmembers():
        target = (base / member.name).resolve()
        if not (member.isfile() or member.isdir()):
            raise tarfile.TarError(f"Refusing to extract {member.name}: not a regular file")
        if target != base and base not in target.parents:
            raise tarfile.TarError(f"Refusing to extract {member.name}: outside {dest}")
    archive.extractall(dest)


def vendor_repo(root: Union[str, Path],
                repo: GithubRepoPair,
                revision: str,
                expected_hash: str,
                session: Optional[requests.Session] = None,
                timeout: float = FETCH_TIMEOUT) -> Path:
    """Fetch, verify and install one pinned action under root/<repo name>.

    Not safe to run concurrently for the same destination.

    Args:
        root: Directory holding vendored actions
        repo: GitHub repository of the action
        revision: Pinned commit
        expected_hash: Hex SHA-256 of the archive at that commit
        session: Optional requests session to fetch with
        timeout: Fetch timeout in seconds

    Returns:
        Path of the vendored copy

    Raises:
        VendoredActionHashMismatch: If the archive does not match expected_hash
        VendorTransportError: If fetching, extracting or renaming fails
    """
    root = Path(root)
    url = archive_url(repo, revision)
    repo_path = root / repo.repo

    logger.info(f"Vendoring action {repo}@{revision}")
    data = _fetch(url, repo, revision, session, timeout)

    actual_hash = sha256_hex(data)
    if actual_hash != expected_hash.lower():
        raise VendoredActionHashMismatch(
            f"Hash mismatch for {repo}@{revision}: expected {expected_hash}, got {actual_hash}",
            expected=expected_hash,
            actual=actual_hash,
            repo=str(repo),
            revision=revision
        )

    try:
        root.mkdir(parents=True, exist_ok=True)
        # Staged inside root so the final rename stays on one filesystem
        with tempfile.TemporaryDirectory(prefix=".vendor-", dir=root) as staging:
            staging = Path(staging)
            artifact_file = staging / f"{revision}.tar.gz"
            artifact_file.write_bytes(data)

            extract_dir = staging / "extract"
            with tarfile.open(artifact_file, "r:gz") as archive:
                _extract(archive, extract_dir)

            # GitHub archives unpack to <repo>-<revision>/
            extracted = extract_dir / f"{repo.repo}-{revision}"
            if not extracted.is_dir():
                raise VendorTransportError(
                    f"Archive for {repo}@{revision} has no {extracted.name}/ directory",
                    repo=str(repo),
                    revision=revision,
                    url=url
                )

            # The previous copy is parked in staging and only discarded once
            # the new copy is in place
            previous = None
            if repo_path.exists():
                logger.debug(f"Replacing previously vendored copy at {repo_path}")
                previous = staging / "previous"
                repo_path.rename(previous)
            try:
                extracted.rename(repo_path)
            except OSError:
                if previous is not None:
                    previous.rename(repo_path)
                raise
    except (OSError, tarfile.TarError) as e:
        raise VendorTransportError(
            f"Failed to unpack {repo}@{revision} into {repo_path}: {e}",
            repo=str(repo),
            revision=revision,
            url=url
        ) from e

    logger.debug(f"Vendored {repo}@{revision} to {repo_path}")
    return repo_path


def vendor_actions(workspace_dir: Union[str, Path],
                   actions: Optional[List[VendoredAction]] = None,
                   session: Optional[requests.Session] = None) -> List[Path]:
    """Vendor every pinned action under <workspace>/.github/actions, one at a time."""
    root = Path(workspace_dir) / GITHUB_ACTIONS_DIR
    if actions is None:
        actions = VENDORED_ACTIONS

    paths = []
    for action in actions:
        paths.append(vendor_repo(root, GithubRepoPair.parse(action.repo), action.revision,
                                 action.hash, session=session))
    return paths
