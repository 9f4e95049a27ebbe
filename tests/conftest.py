"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from elrelease.config import Settings
from elrelease.versions import Comparison, compare

FOO_EL = """\
;;; foo.el --- Frobnicate things  -*- lexical-binding:t -*-

;; Copyright (C) 2019-2024 The Foo Contributors

;; Author: Jane Doe <jane@example.com>
;; Homepage: https://example.com/foo
;; Keywords: tools

;; Package-Version: 1.9.0
;; Package-Requires: ((emacs "27.1") (compat "29.1") (foo-extra "1.9.0"))

;;; Code:

(defconst foo-version "1.9.0"
  "The version of Foo.")

(defcustom foo-level 2
  "How much to frobnicate."
  :package-version '(foo . "1.9.5")
  :type 'integer)

(defcustom foo-style 'plain
  "Frobnication style."
  :package-version '(foo . "1.2.0")
  :type 'symbol)

(provide 'foo)
;;; foo.el ends here
"""

FOO_EXTRA_EL = """\
;;; foo-extra.el --- Extra frobnication  -*- lexical-binding:t -*-

;; Copyright (C) 2021 The Foo Contributors

;; Version: 1.9.0

;;; Code:

(defconst foo-extra-version "1.9.0")

(provide 'foo-extra)
;;; foo-extra.el ends here
"""

FOO_PKG_EL = """\
(define-package "foo" "1.9.0"
  "Frobnicate things."
  '((foo-extra "1.9.0")
    (emacs "27.1")
    (compat "29.1"))
  :homepage "https://example.com/foo"
  :keywords '("tools"))
"""

FOO_ORG = """\
#+title: Foo User Manual
#+subtitle: for version 1.9.0
#+author: Jane Doe

This manual is for Foo version 1.9.0.

* Introduction
"""

CHANGELOG = """\
# -*- mode: org -*-
* v2.0.0   UNRELEASED

- Frobnicate harder.

* v1.9.0   2025-03-01

- Frobnicate.
"""


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create a small Emacs package repository."""
    (tmp_path / ".git").mkdir()
    lisp = tmp_path / "lisp"
    lisp.mkdir()
    (lisp / "foo.el").write_text(FOO_EL)
    (lisp / "foo-extra.el").write_text(FOO_EXTRA_EL)
    (lisp / "foo-pkg.el").write_text(FOO_PKG_EL)
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "foo.org").write_text(FOO_ORG)
    (tmp_path / "README.org").write_text("* Foo\nVersion 1.9.0.\n")
    (tmp_path / "CHANGELOG").write_text(CHANGELOG)
    return tmp_path


class FakeVCS:
    """Records commits instead of running git."""

    def __init__(self, releases: list[str] | None = None) -> None:
        self.releases = releases or []
        self.staged = False
        self.commits: list[tuple[str, str | None, bool]] = []

    def stage_all(self) -> None:
        self.staged = True

    def commit(
        self, message: str, *, gpg_key: str | None = None, allow_empty: bool = False
    ) -> None:
        self.commits.append((message, gpg_key, allow_empty))

    def list_releases(self) -> list[str]:
        return list(self.releases)

    def compare(self, a: str, b: str) -> Comparison:
        return compare(a, b)


class FakePrompter:
    """Answers prompts from canned values and records the questions."""

    def __init__(self, confirm: bool = True, answer: str | None = None) -> None:
        self.answer_confirm = confirm
        self.answer = answer
        self.questions: list[str] = []
        self.defaults: list[str | None] = []

    def confirm(self, message: str) -> bool:
        self.questions.append(message)
        return self.answer_confirm

    def ask(self, message: str, default: str | None = None) -> str:
        self.questions.append(message)
        self.defaults.append(default)
        return self.answer if self.answer is not None else (default or "")


class FakeDocsBuilder:
    def __init__(self) -> None:
        self.builds: list[bool] = []

    def build(self, *, full: bool = False) -> None:
        self.builds.append(full)
