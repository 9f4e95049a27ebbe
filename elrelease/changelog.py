"""Changelog reconciliation.

The changelog is an Org file whose entries start with a header line::

    * v4.1.0    2024-08-01
    * v4.2.0    UNRELEASED

Only the top-most entry is ever inspected or changed. Reconciling it
against a target version is split in two steps so the caller can ask the
maintainer before anything is written:

1. decide() inspects the file and returns a ChangelogDecision, which may
   carry a question that must be confirmed first.
2. apply() carries the decision out.

reconcile() combines both for callers with a prompter at hand.
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from .config import Settings
from .errors import ChangelogAbort
from .files import atomic_write_text, read_text
from .models import ChangelogEntry
from .shell import step

UNRELEASED = "UNRELEASED"

_HEADER_RE = re.compile(
    r"^\* v(?P<version>\S+)[ \t]+(?P<date>\d{4}-\d{2}-\d{2}|" + UNRELEASED + r")\b"
)


class Confirmer(Protocol):
    def confirm(self, message: str) -> bool: ...


class Action(str, Enum):
    NOTHING = "nothing"
    CREATE = "create"
    INSERT_STUB = "insert-stub"
    SET_STUB = "set-stub"
    INSERT_DATED = "insert-dated"
    UPDATE_DATE = "update-date"
    OVERWRITE = "overwrite"


class ChangelogDecision(BaseModel):
    """What reconciling the changelog will do.

    Attributes:
        action: The change to carry out.
        path: The changelog file (existing or to be created).
        version: Version for the header that will be written.
        date: Date or UNRELEASED placeholder for that header.
        entry: The top-most existing entry, if any.
        question: Must be confirmed before apply() when set.
        warning: Message for the maintainer, not fatal.
    """

    action: Action
    path: Path
    version: str | None = None
    date: str | None = None
    entry: ChangelogEntry | None = None
    question: str | None = None
    warning: str | None = None


def format_header(version: str, when: str) -> str:
    """Render an entry header, version padded so dates line up.

    Example:
        format_header("1.0.0", "UNRELEASED") → "* v1.0.0   UNRELEASED"
    """
    return f"* {('v' + version).ljust(8)} {when}"


def find_changelog(root: Path, settings: Settings) -> Path | None:
    """Return the first existing changelog, or None."""
    for name in settings.changelog_names:
        path = root / name
        if path.is_file():
            return path
    return None


def parse_entry(text: str) -> ChangelogEntry | None:
    """Return the first entry header in text, or None."""
    for lineno, line in enumerate(text.splitlines()):
        match = _HEADER_RE.match(line)
        if match:
            return ChangelogEntry(
                version=match.group("version"), date=match.group("date"), line=lineno
            )
    return None


def decide(
    root: Path,
    settings: Settings,
    target: str,
    previous: str | None,
    *,
    stub: bool,
    today: date,
) -> ChangelogDecision:
    """Choose how to reconcile the changelog with target.

    The first matching rule wins:

    1. No changelog and no previous release: nothing to do.
    2. No changelog but a previous release: create the file with an
       unreleased entry for the previous version (after confirmation).
    3. No entry header: insert an unreleased entry for target at the top.
    4. Stub mode (resuming development): turn the top entry into an
       unreleased entry for target.
    5. Otherwise, by the top entry's version:
       a. the previous release: insert a dated entry for target above it
          and warn that its body has to be written;
       b. target: set the date to today, unless it already is;
       c. anything else: overwrite the header, after confirmation.

    Args:
        root: Project root.
        settings: Layout conventions.
        target: Version the changelog should describe.
        previous: Last release version, or None.
        stub: True when resuming development after a release.
        today: Current date.
    """
    today_str = today.isoformat()
    path = find_changelog(root, settings)

    if path is None:
        path = root / settings.changelog_names[0]
        if previous is None:
            return ChangelogDecision(action=Action.NOTHING, path=path)
        return ChangelogDecision(
            action=Action.CREATE,
            path=path,
            version=previous,
            date=UNRELEASED,
            question=f"Create {path.name}?",
        )

    entry = parse_entry(read_text(path))
    if entry is None:
        return ChangelogDecision(
            action=Action.INSERT_STUB, path=path, version=target, date=UNRELEASED
        )

    if stub:
        return ChangelogDecision(
            action=Action.SET_STUB,
            path=path,
            version=target,
            date=UNRELEASED,
            entry=entry,
        )

    if previous is not None and entry.version == previous:
        return ChangelogDecision(
            action=Action.INSERT_DATED,
            path=path,
            version=target,
            date=today_str,
            entry=entry,
            warning=(
                f"{path.name} had no entry for v{target}; a stub was created. "
                "Write the release notes before publishing."
            ),
        )

    if entry.version == target:
        action = Action.NOTHING if entry.date == today_str else Action.UPDATE_DATE
        return ChangelogDecision(
            action=action, path=path, version=target, date=today_str, entry=entry
        )

    return ChangelogDecision(
        action=Action.OVERWRITE,
        path=path,
        version=target,
        date=today_str,
        entry=entry,
        question=(
            f"Top entry of {path.name} is for v{entry.version}, "
            f"not v{target}. Overwrite it?"
        ),
    )


def _insert_at(lines: list[str], index: int, header: str) -> None:
    lines[index:index] = [header + "\n", "\n"]


def apply(decision: ChangelogDecision) -> bool:
    """Carry out a decision. Returns True if the changelog was written."""
    if decision.action is Action.NOTHING:
        return False

    header = format_header(decision.version, decision.date)

    if decision.action is Action.CREATE:
        atomic_write_text(decision.path, header + "\n")
        return True

    lines = read_text(decision.path).splitlines(keepends=True)

    if decision.action is Action.INSERT_STUB:
        # Keep file-level keyword lines ("#+title:", "# -*- mode: org -*-") first
        top = 0
        while top < len(lines) and lines[top].startswith("#"):
            top += 1
        _insert_at(lines, top, header)
    elif decision.action is Action.INSERT_DATED:
        _insert_at(lines, decision.entry.line, header)
    else:
        old = lines[decision.entry.line]
        ending = old[len(old.rstrip("\r\n")) :]
        lines[decision.entry.line] = header + ending

    atomic_write_text(decision.path, "".join(lines))
    return True


def reconcile(
    root: Path,
    settings: Settings,
    target: str,
    previous: str | None,
    *,
    stub: bool,
    prompter: Confirmer,
    today: date,
) -> ChangelogDecision:
    """Decide, confirm if needed, and apply a changelog reconciliation.

    Raises:
        ChangelogAbort: If the maintainer refuses a confirmation. The
            changelog is left untouched in that case.
    """
    step("Reconciling changelog")

    decision = decide(root, settings, target, previous, stub=stub, today=today)
    if decision.question and not prompter.confirm(decision.question):
        raise ChangelogAbort(f"Aborted: {decision.path.name} left unchanged")

    if apply(decision):
        header = format_header(decision.version, decision.date)
        print(f"  {decision.path.name}: {header}")
    elif decision.path.exists():
        print(f"  {decision.path.name}: up to date")
    else:
        print("  No changelog and no previous release")
    return decision
