"""Minimal Emacs Lisp reader.

Reads just enough of the Lisp syntax to handle package descriptors and
``Package-Requires`` headers: lists, vectors, strings, symbols/numbers,
quote prefixes and ``;`` comments. Every node records the span of source
text it was read from, so callers can rewrite selected forms and keep
everything else verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import SexpError

_DELIMITERS = set("()[]\";'`,") | set(" \t\r\n\f")
_CLOSERS = {"(": ")", "[": "]"}


@dataclass
class Atom:
    """A symbol, number or keyword."""

    name: str
    start: int
    end: int


@dataclass
class String:
    value: str
    start: int
    end: int


@dataclass
class Form:
    """A list or vector. ``quoted`` is set for a leading quote prefix."""

    items: list[Atom | String | Form] = field(default_factory=list)
    start: int = 0
    end: int = 0
    quoted: bool = False
    vector: bool = False

    def head(self) -> str | None:
        """Return the name of the first element if it is a symbol."""
        if self.items and isinstance(self.items[0], Atom):
            return self.items[0].name
        return None


Node = Atom | String | Form


def quote_string(value: str) -> str:
    """Render a Lisp string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class _Reader:
    def __init__(self, text: str, pos: int = 0) -> None:
        self.text = text
        self.pos = pos

    def skip_blank(self) -> None:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == ";":
                newline = text.find("\n", self.pos)
                self.pos = len(text) if newline == -1 else newline + 1
            elif ch.isspace():
                self.pos += 1
            else:
                break

    def read(self) -> Node:
        self.skip_blank()
        if self.pos >= len(self.text):
            raise SexpError("Unexpected end of input")

        start = self.pos
        ch = self.text[start]
        if ch in "'`":
            self.pos += 1
            node = self.read()
            if isinstance(node, Form):
                node.quoted = True
                node.start = start
            return node
        if ch == ",":
            self.pos += 1
            return self.read()
        if ch in _CLOSERS:
            return self._read_form(ch)
        if ch in ")]":
            raise SexpError(f"Unbalanced {ch!r} at offset {start}")
        if ch == '"':
            return self._read_string()
        return self._read_atom()

    def _read_form(self, opener: str) -> Form:
        start = self.pos
        closer = _CLOSERS[opener]
        self.pos += 1
        form = Form(start=start, vector=opener == "[")
        while True:
            self.skip_blank()
            if self.pos >= len(self.text):
                raise SexpError(f"Unterminated {opener!r} starting at offset {start}")
            if self.text[self.pos] == closer:
                self.pos += 1
                form.end = self.pos
                return form
            form.items.append(self.read())

    def _read_string(self) -> String:
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\" and self.pos + 1 < len(text):
                chars.append(text[self.pos + 1])
                self.pos += 2
            elif ch == '"':
                self.pos += 1
                return String("".join(chars), start, self.pos)
            else:
                chars.append(ch)
                self.pos += 1
        raise SexpError(f"Unterminated string starting at offset {start}")

    def _read_atom(self) -> Atom:
        start = self.pos
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\" and self.pos + 1 < len(text):
                self.pos += 2
            elif ch in _DELIMITERS:
                break
            else:
                self.pos += 1
        return Atom(text[start : self.pos], start, self.pos)


def read(text: str, pos: int = 0) -> Node:
    """Read the first form of text starting at offset pos."""
    return _Reader(text, pos).read()


def read_all(text: str) -> list[Node]:
    """Read every top-level form of text."""
    reader = _Reader(text)
    nodes: list[Node] = []
    while True:
        reader.skip_blank()
        if reader.pos >= len(text):
            return nodes
        nodes.append(reader.read())
