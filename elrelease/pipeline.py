"""Release operations: version → changelog → propagate → commit.

Each operation:
1. Resolves and validates the version against the last release tag
2. Reconciles the changelog's top entry with that version
3. Rewrites the version (or copyright years) into every release file
4. Stages and commits the result, unless told not to

Version validation and a refused changelog confirmation stop the
operation before anything is committed. Files that fail to rewrite are
collected and reported once the pass is over; the commit still happens.
"""

from __future__ import annotations

import warnings
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Protocol

from . import changelog
from .config import Settings
from .copyright import bump_copyright_years
from .discover import discover
from .docs import DocsBuilder
from .errors import InvalidVersion, StubChangelogWarning
from .models import ReleaseReport, VersionBump
from .propagate import propagate
from .shell import step
from .vcs import VCS
from .versions import derive_next_candidate, snapshot_of, validate_release_version

RELEASE_MESSAGE = "Release version {version}"
RESUME_MESSAGE = "Resume development"
COPYRIGHT_MESSAGE = "Bump copyright years"


class Prompter(Protocol):
    def confirm(self, message: str) -> bool: ...

    def ask(self, message: str, default: str | None = None) -> str: ...


class Releaser:
    """Runs release operations on the project at root.

    Args:
        root: Project root.
        settings: Project settings.
        vcs: Version-control collaborator.
        prompter: Asks the maintainer for versions and confirmations.
        docs_builder: Rebuilds Texinfo manuals, if the project has any.
        clock: Returns today's date.
    """

    def __init__(
        self,
        root: Path,
        settings: Settings,
        vcs: VCS,
        prompter: Prompter,
        docs_builder: DocsBuilder | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.root = root
        self.settings = settings
        self.vcs = vcs
        self.prompter = prompter
        self.docs_builder = docs_builder
        self.clock = clock

    def previous_release(self) -> str | None:
        """Return the most recent release version, or None."""
        step("Finding last release")
        releases = self.vcs.list_releases()
        previous = releases[0] if releases else None
        print(f"  {previous or '<none>'}")
        return previous

    def _resolve_version(
        self, version: str | None, previous: str | None, prompt: str
    ) -> str:
        """Ask for a version if none was given, then validate it."""
        if version is None:
            version = self.prompter.ask(prompt, derive_next_candidate(previous)).strip()
        validate_release_version(version, previous)
        return version

    def _reconcile_changelog(
        self,
        report: ReleaseReport,
        target: str,
        previous: str | None,
        *,
        stub: bool,
    ) -> None:
        decision = changelog.reconcile(
            self.root,
            self.settings,
            target,
            previous,
            stub=stub,
            prompter=self.prompter,
            today=self.clock(),
        )
        if decision.action is not changelog.Action.NOTHING:
            report.rewritten.append(decision.path)
        if decision.warning:
            report.warnings.append(decision.warning)
            warnings.warn(decision.warning, StubChangelogWarning, stacklevel=3)

    def _finish(
        self, report: ReleaseReport, message: str, *, allow_empty: bool, commit: bool
    ) -> ReleaseReport:
        """Hand the result to the VCS unless committing is disabled."""
        if not commit:
            return report

        step("Committing")
        if not allow_empty and not report.rewritten:
            print("  Nothing to commit")
            return report

        self.vcs.stage_all()
        self.vcs.commit(
            message, gpg_key=self.settings.gpg_sign, allow_empty=allow_empty
        )
        report.committed = True
        print(f"  {message}")
        return report

    def create_release(
        self, version: str | None = None, *, commit: bool = True
    ) -> ReleaseReport:
        """Prepare the release of version.

        Dates the changelog entry, writes version into every release file
        and commits "Release version {version}". The commit may be empty,
        e.g. when everything was already updated by hand.

        Raises:
            InvalidVersion: If version is not newer than the last release.
            ChangelogAbort: If the maintainer refuses to overwrite a
                mismatched changelog entry.
        """
        previous = self.previous_release()
        version = self._resolve_version(version, previous, "Create release version")

        report = ReleaseReport(bump=VersionBump(old=previous, new=version))
        self._reconcile_changelog(report, version, previous, stub=False)

        file_set = discover(self.root, self.settings)
        report.merge(
            propagate(
                file_set,
                version,
                previous,
                self.settings,
                today=self.clock(),
                docs_builder=self.docs_builder,
            )
        )
        message = RELEASE_MESSAGE.format(version=version)
        return self._finish(report, message, allow_empty=True, commit=commit)

    def bump_post_release(
        self, version: str | None = None, *, commit: bool = True
    ) -> ReleaseReport:
        """Resume development after the last release.

        The files get the development snapshot of the last release
        ("1.2.0" → "1.2.0.50-git"). version names the next anticipated
        release and is only used for the unreleased changelog entry.

        Raises:
            InvalidVersion: If there is no release yet, or version is not
                newer than the last release.
            ChangelogAbort: If the maintainer refuses to create the changelog.
        """
        previous = self.previous_release()
        if previous is None:
            raise InvalidVersion("No release found to resume development from")
        version = self._resolve_version(version, previous, "Next release version")
        snapshot = snapshot_of(previous)

        report = ReleaseReport(bump=VersionBump(old=previous, new=snapshot))
        self._reconcile_changelog(report, version, previous, stub=True)

        file_set = discover(self.root, self.settings)
        report.merge(
            propagate(
                file_set,
                snapshot,
                previous,
                self.settings,
                today=self.clock(),
                docs_builder=self.docs_builder,
            )
        )
        return self._finish(report, RESUME_MESSAGE, allow_empty=False, commit=commit)

    def bump_copyright(self, *, commit: bool = True) -> ReleaseReport:
        """Extend the copyright notices of all libraries to this year."""
        file_set = discover(self.root, self.settings)
        report = bump_copyright_years(
            file_set,
            self.settings,
            year=self.clock().year,
            docs_builder=self.docs_builder,
        )
        return self._finish(report, COPYRIGHT_MESSAGE, allow_empty=False, commit=commit)
