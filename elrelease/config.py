"""Project settings.

Settings are read with tomlkit from ``.elrelease.toml`` at the project
root. Every key is optional; a project without the file gets the defaults,
which match the usual layout of an Emacs package repository::

    source_dir = "lisp"
    docs_dir = "docs"
    gpg_sign = "0xDEADBEEF"
    skip_missing_descriptors = true
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import ParseError

from .errors import ReleaseError

CONFIG_FILE = ".elrelease.toml"


class Settings(BaseModel):
    """Layout conventions and release options for one project.

    Attributes:
        source_dir: Directory holding the Lisp libraries and descriptors.
                    The project root is used when it does not exist.
        docs_dir: Directory holding the documentation. The project root
                  is used when it does not exist.
        readme_names: Top-level readme file names never treated as docs.
        changelog_names: Candidate changelog file names, in lookup order.
                         The first one is used when creating the file.
        core_dependency: Dependency sorted first (the Emacs runtime).
        compat_dependency: Dependency sorted second (the compat shim).
        gpg_sign: Key used to sign release commits, if any.
        skip_missing_descriptors: Silently skip files lacking a structural
                                  element instead of reporting them.
        docs_build_command: Command regenerating Texinfo from Org sources.
        docs_rebuild_command: Command for a full documentation rebuild.
    """

    model_config = ConfigDict(extra="forbid")

    source_dir: str = "lisp"
    docs_dir: str = "docs"
    readme_names: list[str] = Field(
        default_factory=lambda: ["README", "README.org", "README.md"]
    )
    changelog_names: list[str] = Field(
        default_factory=lambda: ["CHANGELOG", "CHANGELOG.org", "CHANGELOG.md"]
    )
    core_dependency: str = "emacs"
    compat_dependency: str = "compat"
    gpg_sign: str | None = None
    skip_missing_descriptors: bool = False
    docs_build_command: list[str] = Field(
        default_factory=lambda: ["make", "-C", "docs", "texi"]
    )
    docs_rebuild_command: list[str] = Field(
        default_factory=lambda: ["make", "-C", "docs", "clean", "texi"]
    )


def load_settings(root: Path) -> Settings:
    """Load settings for the project at root.

    Returns the defaults when no config file exists.

    Raises:
        ReleaseError: If the config file is not valid TOML or contains
            unknown or mistyped keys.
    """
    path = root / CONFIG_FILE
    if not path.exists():
        return Settings()

    try:
        doc = tomlkit.parse(path.read_text())
        return Settings.model_validate(doc.unwrap())
    except (ParseError, ValidationError) as exc:
        raise ReleaseError(f"Invalid {CONFIG_FILE}: {exc}") from exc
