"""Propagation of a version into every release file.

Each file is rewritten on its own: its new content is computed in memory
and written atomically only once every substitution succeeded. A file that
fails is skipped and reported; the pass carries on with the others.
"""

from __future__ import annotations

import re
import subprocess
from collections.abc import Callable, Mapping
from datetime import date
from pathlib import Path

from . import versions
from .config import Settings
from .deps import (
    parse_descriptor,
    render_descriptor,
    update_dependencies,
    update_requires_header,
)
from .discover import module_name
from .docs import DocsBuilder
from .errors import MissingDescriptor, ReleaseError
from .files import atomic_write_text, read_text
from .models import ReleaseFileSet, ReleaseReport, RewriteFailure
from .shell import step
from .versions import Comparison

_VERSION_HEADER_RE = re.compile(r"^(;+[ \t]*Version:[ \t]*)(\S+)", re.MULTILINE)
_PACKAGE_VERSION_HEADER_RE = re.compile(
    r"^(;+[ \t]*Package-Version:[ \t]*)(\S+)", re.MULTILINE
)
_PACKAGE_VERSION_ANNOTATION_RE = re.compile(
    r"(:package-version\s+'\(\s*[^\s.()]+\s+\.\s+\")([^\"]+)(\")"
)
_SUBTITLE_RE = re.compile(
    r"^(#\+subtitle:[ \t]*for version[ \t]+)(\S+)", re.MULTILINE | re.IGNORECASE
)
_MANUAL_SENTENCE_RE = re.compile(
    r"(This manual is for\b[^.]*?\bversion\s+)(\d[\w.-]*?)(\.)(?=\s|$)"
)


def _constant_re(name: str) -> re.Pattern[str]:
    """Match the ``(defconst NAME-version "...")`` declaration of a module."""
    return re.compile(
        r"(\(def(?:const|var|custom)\s+" + re.escape(name) + r"-version\s+\")"
        r"([^\"]*)(\")"
    )


def _replace_value(pattern: re.Pattern[str], text: str, value: str) -> str:
    """Replace the value group of the first match of pattern, if any."""

    def sub(match: re.Match[str]) -> str:
        return match.group(1) + value + match.string[match.end(2) : match.end()]

    return pattern.sub(sub, text, count=1)


def dependency_updates(
    names: list[str], version: str, today: date
) -> dict[str, str]:
    """Compute the constraints written into descriptor dependency lists.

    A development snapshot is not a usable constraint, so snapshot builds
    depend on each other by date ("20240131") instead.
    """
    value = today.strftime("%Y%m%d") if versions.is_snapshot(version) else version
    return {name: value for name in names}


def rewrite_descriptor(
    text: str, version: str, updates: Mapping[str, str], settings: Settings
) -> str:
    """Set the version and dependency constraints of a package descriptor."""
    descriptor = parse_descriptor(text)
    descriptor.version = version
    descriptor.dependencies = update_dependencies(
        descriptor.dependencies,
        updates,
        core=settings.core_dependency,
        compat=settings.compat_dependency,
    )
    return render_descriptor(descriptor)


def _bump_annotations(text: str, version: str, previous: str) -> str:
    """Move ``:package-version`` annotations in (previous, version) to version."""

    def bump(match: re.Match[str]) -> str:
        value = match.group(2)
        if not versions.is_valid(value):
            return match.group(0)
        after_previous = versions.compare(value, previous) is Comparison.GREATER
        before_new = versions.compare(value, version) is Comparison.LESS
        if after_previous and before_new:
            return match.group(1) + version + match.group(3)
        return match.group(0)

    return _PACKAGE_VERSION_ANNOTATION_RE.sub(bump, text)


def rewrite_library(
    text: str,
    name: str,
    version: str,
    previous: str | None,
    updates: Mapping[str, str],
    settings: Settings,
) -> str:
    """Write version into the headers and version constant of a library.

    For release versions, ``:package-version`` annotations and the
    Package-Requires header are synchronized as well.
    """
    text = _replace_value(_VERSION_HEADER_RE, text, version)
    text = _replace_value(_PACKAGE_VERSION_HEADER_RE, text, version)
    text = _replace_value(_constant_re(name), text, version)

    if not versions.is_snapshot(version):
        if previous is not None:
            text = _bump_annotations(text, version, previous)
        text = update_requires_header(
            text,
            updates,
            core=settings.core_dependency,
            compat=settings.compat_dependency,
        )
    return text


def rewrite_doc(text: str, version: str) -> str:
    """Write version into the subtitle and "This manual is for" sentence."""
    text = _replace_value(_SUBTITLE_RE, text, version)
    return _replace_value(_MANUAL_SENTENCE_RE, text, version)


def rewrite_file(
    path: Path,
    transform: Callable[[str], str],
    report: ReleaseReport,
    settings: Settings,
) -> None:
    """Rewrite one file all-or-nothing, recording the outcome on report."""
    try:
        original = read_text(path)
        updated = transform(original)
    except MissingDescriptor as exc:
        if not settings.skip_missing_descriptors:
            report.failures.append(RewriteFailure(path=path, message=str(exc)))
            print(f"  {path.name}: skipped ({exc})")
        return
    except (ReleaseError, OSError, UnicodeDecodeError) as exc:
        report.failures.append(RewriteFailure(path=path, message=str(exc)))
        print(f"  {path.name}: failed ({exc})")
        return

    if updated == original:
        return

    try:
        atomic_write_text(path, updated)
    except OSError as exc:
        report.failures.append(RewriteFailure(path=path, message=str(exc)))
        print(f"  {path.name}: failed ({exc})")
        return

    report.rewritten.append(path)
    print(f"  {path.name}: updated")


def run_docs_builder(
    file_set: ReleaseFileSet,
    docs_builder: DocsBuilder | None,
    report: ReleaseReport,
    *,
    full: bool,
) -> None:
    """Trigger the documentation build when Texinfo sources exist."""
    if not file_set.texinfo or docs_builder is None:
        return
    try:
        docs_builder.build(full=full)
    except (subprocess.CalledProcessError, OSError) as exc:
        report.failures.append(
            RewriteFailure(path=file_set.texinfo[0].parent, message=str(exc))
        )
        print(f"  Documentation build failed ({exc})")


def propagate(
    file_set: ReleaseFileSet,
    version: str,
    previous: str | None,
    settings: Settings,
    *,
    today: date,
    docs_builder: DocsBuilder | None = None,
) -> ReleaseReport:
    """Rewrite version into every descriptor, library and doc.

    A project with a single library carries its version in the descriptor
    only, so that library is left alone.

    Args:
        file_set: Discovered release files.
        version: Version to write (release or development snapshot).
        previous: Last release version, bounds annotation bumping.
        settings: Project settings.
        today: Date used for snapshot dependency constraints.
        docs_builder: Called when Texinfo sources exist.

    Returns:
        Report listing rewritten and failed files.
    """
    step(f"Propagating version {version}")

    report = ReleaseReport()
    libraries = file_set.libraries if len(file_set.libraries) > 1 else []
    names = [module_name(p) for p in libraries]
    library_updates = {name: version for name in names}
    descriptor_updates = dependency_updates(names, version, today)

    for path in file_set.descriptors:
        rewrite_file(
            path,
            lambda text: rewrite_descriptor(
                text, version, descriptor_updates, settings
            ),
            report,
            settings,
        )

    for path in libraries:
        name = module_name(path)
        rewrite_file(
            path,
            lambda text, name=name: rewrite_library(
                text, name, version, previous, library_updates, settings
            ),
            report,
            settings,
        )

    for path in file_set.docs:
        rewrite_file(path, lambda text: rewrite_doc(text, version), report, settings)

    run_docs_builder(file_set, docs_builder, report, full=False)
    return report
