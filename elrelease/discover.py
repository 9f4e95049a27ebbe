"""Discovery of the files that take part in a release."""

from __future__ import annotations

from pathlib import Path

from .config import Settings
from .models import ReleaseFileSet
from .shell import step

DESCRIPTOR_SUFFIX = "-pkg.el"
AUTOLOADS_SUFFIX = "-autoloads.el"


def is_descriptor(path: Path) -> bool:
    return path.name.endswith(DESCRIPTOR_SUFFIX)


def module_name(path: Path) -> str:
    """Return the feature name of a library ("lisp/magit-diff.el" → "magit-diff")."""
    return path.stem


def _subdir_or_root(root: Path, name: str) -> Path:
    candidate = root / name
    return candidate if candidate.is_dir() else root


def discover(root: Path, settings: Settings) -> ReleaseFileSet:
    """Scan the project tree for release-bumpable files.

    Libraries and descriptors are looked up in the source directory
    (``lisp/`` by default, else the root); documentation in the docs
    directory (``docs/`` by default, else the root). The changelog and the
    readme are never treated as documentation. Nothing is modified.

    Args:
        root: Project root.
        settings: Layout conventions.

    Returns:
        The discovered ReleaseFileSet, each list sorted by path.
    """
    step("Discovering release files")

    source_dir = _subdir_or_root(root, settings.source_dir)
    docs_dir = _subdir_or_root(root, settings.docs_dir)

    lisp_files = sorted(p for p in source_dir.glob("*.el") if p.is_file())
    descriptors = [p for p in lisp_files if is_descriptor(p)]
    libraries = [
        p
        for p in lisp_files
        if not is_descriptor(p) and not p.name.endswith(AUTOLOADS_SUFFIX)
    ]

    excluded = set(settings.changelog_names) | set(settings.readme_names)
    docs = sorted(
        p for p in docs_dir.glob("*.org") if p.is_file() and p.name not in excluded
    )
    texinfo = sorted(p for p in docs_dir.glob("*.texi") if p.is_file())

    file_set = ReleaseFileSet(
        libraries=libraries, descriptors=descriptors, docs=docs, texinfo=texinfo
    )

    # Print discovered files for user feedback
    for kind in ("libraries", "descriptors", "docs", "texinfo"):
        paths = getattr(file_set, kind)
        names = ", ".join(p.name for p in paths) if paths else "<none>"
        print(f"  {kind}: {names}")

    return file_set
