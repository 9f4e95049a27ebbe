"""Documentation build collaborator.

Texinfo manuals are generated from the Org sources by the project's own
build. elrelease only triggers that build; it does not model it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .config import Settings
from .shell import run


class DocsBuilder(Protocol):
    def build(self, *, full: bool = False) -> None: ...


class MakeDocsBuilder:
    """Run the configured make targets from the project root."""

    def __init__(self, root: Path, settings: Settings) -> None:
        self.root = root
        self.settings = settings

    def build(self, *, full: bool = False) -> None:
        command = (
            self.settings.docs_rebuild_command
            if full
            else self.settings.docs_build_command
        )
        print(f"  Running: {' '.join(command)}")
        run(*command, cwd=self.root)
