"""Data models for elrelease.

These Pydantic models represent the core data structures passed between
the discoverer, the rewriters and the release pipeline.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class ReleaseFileSet(BaseModel):
    """Files under the project root that take part in a release.

    Attributes:
        libraries: Emacs Lisp modules carrying version/metadata headers.
        descriptors: ``*-pkg.el`` package descriptors. Never also listed
                     as libraries.
        docs: Org documentation files that may embed a version.
        texinfo: Texinfo sources; their presence means the documentation
                 has to be rebuilt after the Org files change.
    """

    libraries: list[Path] = Field(default_factory=list)
    descriptors: list[Path] = Field(default_factory=list)
    docs: list[Path] = Field(default_factory=list)
    texinfo: list[Path] = Field(default_factory=list)


class DependencyEntry(BaseModel):
    """A single ``(NAME "CONSTRAINT")`` dependency."""

    name: str
    constraint: str


class ChangelogEntry(BaseModel):
    """Header of the top-most changelog entry.

    Attributes:
        version: Version named by the header, without the leading "v".
        date: ``YYYY-MM-DD`` or the unreleased placeholder.
        line: Zero-based line number of the header in the file.
    """

    version: str
    date: str
    line: int = 0


class RewriteFailure(BaseModel):
    """A file that was skipped because its rewrite failed."""

    path: Path
    message: str


class VersionBump(BaseModel):
    """Records the version change carried out by an operation.

    Attributes:
        old: The last release version, if any.
        new: The version written into the files.
    """

    old: str | None = None
    new: str


class ReleaseReport(BaseModel):
    """Outcome of one release operation."""

    bump: VersionBump | None = None
    rewritten: list[Path] = Field(default_factory=list)
    failures: list[RewriteFailure] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    committed: bool = False

    def merge(self, other: ReleaseReport) -> None:
        """Fold the file results of another pass into this report."""
        self.rewritten.extend(other.rewritten)
        self.failures.extend(other.failures)
        self.warnings.extend(other.warnings)
