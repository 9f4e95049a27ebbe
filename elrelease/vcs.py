"""Git as the version-control collaborator."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from . import versions
from .shell import git


class VCS(Protocol):
    def stage_all(self) -> None: ...

    def commit(
        self, message: str, *, gpg_key: str | None = None, allow_empty: bool = False
    ) -> None: ...

    def list_releases(self) -> list[str]: ...

    def compare(self, a: str, b: str) -> versions.Comparison: ...


class GitVCS:
    """Release operations backed by the git repository at root."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def stage_all(self) -> None:
        """Stage modifications of all tracked files."""
        git("add", "--update", cwd=self.root)

    def commit(
        self, message: str, *, gpg_key: str | None = None, allow_empty: bool = False
    ) -> None:
        args = ["commit", "-m", message]
        if gpg_key:
            args.append(f"--gpg-sign={gpg_key}")
        if allow_empty:
            args.append("--allow-empty")
        git(*args, cwd=self.root)

    def list_releases(self) -> list[str]:
        """Return released versions, newest first.

        Release tags follow the pattern v{version}. Tags that are not plain
        release versions (snapshots, pre-releases) are ignored.
        """
        tags = git(
            "tag", "--list", "v*", "--sort=-v:refname", cwd=self.root, check=False
        )
        releases: list[str] = []
        for tag in tags.splitlines():
            version = tag.strip()[1:]
            if versions.is_valid(version) and not versions.is_snapshot(version):
                releases.append(version)
        return sorted(releases, key=versions.parse_version, reverse=True)

    def compare(self, a: str, b: str) -> versions.Comparison:
        return versions.compare(a, b)
