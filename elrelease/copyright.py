"""Copyright year updates.

Extends notices such as ``;; Copyright (C) 2008-2023 The Foo Contributors``
so the range ends in the current year. Ranges are never shrunk.
"""

from __future__ import annotations

import re

from .config import Settings
from .docs import DocsBuilder
from .models import ReleaseFileSet, ReleaseReport
from .propagate import rewrite_file, run_docs_builder
from .shell import step

_COPYRIGHT_RE = re.compile(
    r"(Copyright[ \t]+\(C\)[ \t]+)(\d{4}(?:[ \t]*[-,][ \t]*\d{4})*)", re.IGNORECASE
)
# Last element of a year list; group 1 is set when it is a range
_LAST_YEAR_RE = re.compile(r"([ \t]*-[ \t]*)?(\d{4})$")


def bump_years(text: str, year: int) -> str:
    """Extend every copyright notice in text to include year.

    Only the last element of a year list is touched: a trailing range is
    extended, a trailing single year becomes a range.

    Examples:
        "Copyright (C) 2020 Foo" → "Copyright (C) 2020-2026 Foo"
        "Copyright (C) 2020-2024 Foo" → "Copyright (C) 2020-2026 Foo"
        "Copyright (C) 2015, 2017-2024 Foo" → "Copyright (C) 2015, 2017-2026 Foo"
        "Copyright (C) 2026 Foo" → unchanged
    """

    def bump(match: re.Match[str]) -> str:
        years = match.group(2)
        last = _LAST_YEAR_RE.search(years)
        if int(last.group(2)) >= year:
            return match.group(0)
        if last.group(1):
            years = years[: last.start(2)] + str(year)
        else:
            years = f"{years}-{year}"
        return match.group(1) + years

    return _COPYRIGHT_RE.sub(bump, text)



def bump_copyright_years(
    file_set: ReleaseFileSet,
    settings: Settings,
    *,
    year: int,
    docs_builder: DocsBuilder | None = None,
) -> ReleaseReport:
    """Bump the copyright notices of every library.

    If Texinfo sources exist the documentation is fully rebuilt, since the
    manuals carry the notice too.
    """
    step(f"Bumping copyright years to {year}")

    report = ReleaseReport()
    for path in file_set.libraries:
        rewrite_file(path, lambda text: bump_years(text, year), report, settings)

    run_docs_builder(file_set, docs_builder, report, full=True)
    return report
