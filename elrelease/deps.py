"""Dependency handling utilities.

Provides the canonical ordering and updating of dependency lists, and the
reading and writing of the two places dependencies are declared:

- package descriptors (``NAME-pkg.el``) containing a
  ``(define-package NAME VERSION DOCSTRING DEPENDENCIES PROPERTIES...)`` form
- ``Package-Requires`` headers of library files
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from . import sexp
from .errors import MissingDescriptor, SexpError
from .models import DependencyEntry

CORE_DEPENDENCY = "emacs"
COMPAT_DEPENDENCY = "compat"

_REQUIRES_RE = re.compile(r"^(;+[ \t]*Package-Requires:[ \t]*)(.*)$", re.MULTILINE)
_CONTINUATION_RE = re.compile(r"^;+[ \t]?")
_INDENT_RE = re.compile(r";+[ \t]*")
_PADDED_RE = re.compile(r"\([^\s()]+[ \t]{2,}\"")


def canonical_sort(
    entries: Iterable[DependencyEntry],
    *,
    core: str = CORE_DEPENDENCY,
    compat: str = COMPAT_DEPENDENCY,
) -> list[DependencyEntry]:
    """Sort dependencies: core runtime first, compat shim second, then by name."""

    def key(entry: DependencyEntry) -> tuple[int, str]:
        if entry.name == core:
            return (0, entry.name)
        if entry.name == compat:
            return (1, entry.name)
        return (2, entry.name)

    return sorted(entries, key=key)


def update_dependencies(
    entries: Iterable[DependencyEntry],
    updates: Mapping[str, str],
    *,
    core: str = CORE_DEPENDENCY,
    compat: str = COMPAT_DEPENDENCY,
) -> list[DependencyEntry]:
    """Replace the constraints of the dependencies named in updates.

    Entries not mentioned in updates keep their constraint. The result is
    re-sorted under the canonical ordering, so applying the same updates
    twice gives the same list as applying them once.

    Example:
        [(foo "1.0") (emacs "27.1")] with {"foo": "2.0"}
        → [(emacs "27.1") (foo "2.0")]
    """
    updated = [
        DependencyEntry(name=e.name, constraint=updates.get(e.name, e.constraint))
        for e in entries
    ]
    return canonical_sort(updated, core=core, compat=compat)


def _entries_from_form(form: sexp.Node) -> list[DependencyEntry]:
    """Convert a read dependency list into entries."""
    if isinstance(form, sexp.Atom) and form.name == "nil":
        return []
    if not isinstance(form, sexp.Form):
        raise SexpError("Dependency list is not a list")

    entries: list[DependencyEntry] = []
    for item in form.items:
        if (
            not isinstance(item, sexp.Form)
            or len(item.items) != 2
            or not isinstance(item.items[0], sexp.Atom)
            or not isinstance(item.items[1], sexp.String)
        ):
            raise SexpError("Malformed dependency; expected (NAME \"VERSION\")")
        entries.append(
            DependencyEntry(name=item.items[0].name, constraint=item.items[1].value)
        )
    return entries


def _aligned_entries(entries: list[DependencyEntry]) -> list[str]:
    """Render one (NAME "VERSION") per entry with names padded to one width."""
    width = max((len(e.name) for e in entries), default=0)
    return [
        f"({e.name.ljust(width)} {sexp.quote_string(e.constraint)})" for e in entries
    ]


class Descriptor(BaseModel):
    """A parsed ``define-package`` form.

    Attributes:
        name: Package name.
        version: Declared package version.
        docstring: One-line package summary.
        dependencies: Declared dependencies.
        properties: Source text following the dependency list (keyword
                    properties), kept verbatim.
        prefix: Source text before the form (e.g. a file-local line).
        suffix: Source text after the form.
    """

    name: str
    version: str
    docstring: str
    dependencies: list[DependencyEntry] = Field(default_factory=list)
    properties: str = ""
    prefix: str = ""
    suffix: str = "\n"


def parse_descriptor(text: str) -> Descriptor:
    """Parse the contents of a ``NAME-pkg.el`` file.

    Raises:
        MissingDescriptor: If there is no define-package form, or it has
            fewer than five elements.
        SexpError: If the file cannot be read or the form is malformed.
    """
    form = next(
        (
            node
            for node in sexp.read_all(text)
            if isinstance(node, sexp.Form) and node.head() == "define-package"
        ),
        None,
    )
    if form is None:
        raise MissingDescriptor("No define-package form found")
    if len(form.items) < 5:
        raise MissingDescriptor("define-package form has no dependency list")

    _, name, version, docstring, deps = form.items[:5]
    for label, node in (("name", name), ("version", version), ("docstring", docstring)):
        if not isinstance(node, sexp.String):
            raise SexpError(f"define-package {label} must be a string")

    return Descriptor(
        name=name.value,
        version=version.value,
        docstring=docstring.value,
        dependencies=_entries_from_form(deps),
        # The form's closing paren is its last character
        properties=text[deps.end : form.end - 1].rstrip(),
        prefix=text[: form.start],
        suffix=text[form.end :],
    )


def render_descriptor(descriptor: Descriptor) -> str:
    """Serialize a descriptor deterministically.

    One dependency per line, names left-aligned to the longest name, and
    the keyword properties appended verbatim after the dependency list.
    """
    lines = [
        f"(define-package {sexp.quote_string(descriptor.name)} "
        f"{sexp.quote_string(descriptor.version)}",
        f"  {sexp.quote_string(descriptor.docstring)}",
    ]
    rendered = _aligned_entries(descriptor.dependencies)
    if not rendered:
        lines.append("  nil")
    else:
        lines.append(f"  '({rendered[0]}")
        lines.extend(f"    {dep}" for dep in rendered[1:])
        lines[-1] += ")"
    body = "\n".join(lines)
    return f"{descriptor.prefix}{body}{descriptor.properties}){descriptor.suffix}"


class RequiresHeader(BaseModel):
    """A ``Package-Requires`` header located in a library.

    Attributes:
        start: Offset of the first header line.
        end: Offset just past the last header line (before its newline).
        label: The header text up to and including "Package-Requires: ".
        dependencies: Declared dependencies.
        multiline: Whether the value continued over several comment lines.
        inline_first: Whether the first entry shares the label line, as in
            ``;; Package-Requires: ((emacs "26.1")``.
        continuation: Text preceding the entries on continuation lines,
            comment characters and indentation included.
        aligned: Whether entry names were padded to a common width.
    """

    start: int
    end: int
    label: str
    dependencies: list[DependencyEntry]
    multiline: bool = False
    inline_first: bool = False
    continuation: str = ""
    aligned: bool = False


def find_requires_header(text: str) -> RequiresHeader | None:
    """Locate and parse the Package-Requires header of a library.

    The value may continue over following comment lines, as long as its
    parentheses are unbalanced. The layout of such a value is recorded so
    it can be rendered back the same way.

    Raises:
        SexpError: If the value never closes or is malformed.
    """
    match = _REQUIRES_RE.search(text)
    if match is None:
        return None

    value = match.group(2)
    end = match.end()
    continuation = ""
    while True:
        try:
            form = sexp.read(value)
            break
        except SexpError:
            # Value continues on the next comment line
            if end >= len(text):
                raise
            newline = text.find("\n", end + 1)
            next_end = len(text) if newline == -1 else newline
            line = text[end + 1 : next_end]
            prefix = _CONTINUATION_RE.match(line)
            if prefix is None:
                raise
            if not continuation:
                continuation = _INDENT_RE.match(line).group(0)
            value += "\n" + line[prefix.end() :]
            end = next_end

    return RequiresHeader(
        start=match.start(),
        end=end,
        label=match.group(1),
        dependencies=_entries_from_form(form),
        multiline=bool(continuation),
        inline_first=match.group(2).strip() != "(",
        continuation=continuation,
        aligned=_PADDED_RE.search(value) is not None,
    )


def render_requires_header(header: RequiresHeader) -> str:
    """Render a Package-Requires header in its original layout."""
    if not header.multiline:
        inner = " ".join(
            f"({e.name} {sexp.quote_string(e.constraint)})"
            for e in header.dependencies
        )
        return f"{header.label}({inner})"

    if header.aligned:
        entries = _aligned_entries(header.dependencies)
    else:
        entries = [
            f"({e.name} {sexp.quote_string(e.constraint)})"
            for e in header.dependencies
        ]
    if not entries:
        return f"{header.label}()"

    if header.inline_first:
        lines = [f"{header.label}({entries[0]}"]
        entries = entries[1:]
    else:
        lines = [f"{header.label}("]
    lines.extend(header.continuation + entry for entry in entries)
    lines[-1] += ")"
    return "\n".join(lines)


def update_requires_header(
    text: str,
    updates: Mapping[str, str],
    *,
    core: str = CORE_DEPENDENCY,
    compat: str = COMPAT_DEPENDENCY,
) -> str:
    """Apply dependency updates to the Package-Requires header of a library.

    Returns text unchanged when the library has no such header.
    """
    header = find_requires_header(text)
    if header is None:
        return text
    header.dependencies = update_dependencies(
        header.dependencies, updates, core=core, compat=compat
    )
    return text[: header.start] + render_requires_header(header) + text[header.end :]
