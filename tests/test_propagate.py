"""Tests for elrelease.propagate."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from elrelease.config import Settings
from elrelease.discover import discover
from elrelease.propagate import (
    dependency_updates,
    propagate,
    rewrite_doc,
    rewrite_library,
)

from .conftest import FakeDocsBuilder

TODAY = date(2026, 10, 19)


class TestDependencyUpdates:
    def test_release_uses_version(self) -> None:
        assert dependency_updates(["a", "b"], "2.0.0", TODAY) == {
            "a": "2.0.0",
            "b": "2.0.0",
        }

    def test_snapshot_uses_date(self) -> None:
        assert dependency_updates(["a"], "1.1.0.50-git", TODAY) == {"a": "20261019"}


class TestRewriteLibrary:
    def test_headers_and_constant(self, settings: Settings) -> None:
        text = (
            ";; Version: 1.0\n"
            ";; Package-Version: 1.0\n"
            '(defconst bar-version "1.0")\n'
            '(defconst other-version "1.0")\n'
        )
        result = rewrite_library(text, "bar", "1.1", "1.0", {}, settings)
        assert result == (
            ";; Version: 1.1\n"
            ";; Package-Version: 1.1\n"
            '(defconst bar-version "1.1")\n'
            '(defconst other-version "1.0")\n'
        )

    def test_annotations_bumped_only_inside_interval(self, settings: Settings) -> None:
        text = (
            ":package-version '(bar . \"1.0.5\")\n"
            ":package-version '(bar . \"1.0\")\n"
            ":package-version '(bar . \"0.9\")\n"
            ":package-version '(bar . \"2.5\")\n"
        )
        result = rewrite_library(text, "bar", "2.0", "1.0", {}, settings)
        assert result == (
            ":package-version '(bar . \"2.0\")\n"
            ":package-version '(bar . \"1.0\")\n"
            ":package-version '(bar . \"0.9\")\n"
            ":package-version '(bar . \"2.5\")\n"
        )

    def test_snapshot_leaves_annotations_and_requirements(
        self, settings: Settings
    ) -> None:
        text = (
            ';; Package-Requires: ((emacs "27.1") (baz "1.0"))\n'
            ":package-version '(bar . \"1.0.5\")\n"
        )
        result = rewrite_library(
            text, "bar", "1.0.50-git", "1.0", {"baz": "1.0.50-git"}, settings
        )
        assert result == text


class TestRewriteDoc:
    def test_subtitle_and_sentence(self) -> None:
        text = (
            "#+subtitle: for version 1.0\n"
            "This manual is for Bar\nversion 1.0.\n"
        )
        assert rewrite_doc(text, "1.1.0.50-git") == (
            "#+subtitle: for version 1.1.0.50-git\n"
            "This manual is for Bar\nversion 1.1.0.50-git.\n"
        )

    def test_without_fields(self) -> None:
        assert rewrite_doc("* Intro\n", "2.0") == "* Intro\n"


class TestPropagate:
    def test_release(self, project: Path, settings: Settings) -> None:
        file_set = discover(project, settings)

        report = propagate(file_set, "2.0.0", "1.9.0", settings, today=TODAY)

        assert report.failures == []
        assert sorted(p.name for p in report.rewritten) == [
            "foo-extra.el",
            "foo-pkg.el",
            "foo.el",
            "foo.org",
        ]

        foo = (project / "lisp" / "foo.el").read_text()
        assert ";; Package-Version: 2.0.0\n" in foo
        assert (
            ';; Package-Requires: ((emacs "27.1") (compat "29.1") (foo-extra "2.0.0"))'
            in foo
        )
        assert '(defconst foo-version "2.0.0"' in foo
        assert ":package-version '(foo . \"2.0.0\")" in foo
        assert ":package-version '(foo . \"1.2.0\")" in foo

        extra = (project / "lisp" / "foo-extra.el").read_text()
        assert ";; Version: 2.0.0\n" in extra
        assert '(defconst foo-extra-version "2.0.0")' in extra

        assert (project / "lisp" / "foo-pkg.el").read_text() == (
            '(define-package "foo" "2.0.0"\n'
            '  "Frobnicate things."\n'
            "  '((emacs     \"27.1\")\n"
            '    (compat    "29.1")\n'
            '    (foo-extra "2.0.0"))\n'
            '  :homepage "https://example.com/foo"\n'
            "  :keywords '(\"tools\"))\n"
        )

        doc = (project / "docs" / "foo.org").read_text()
        assert "#+subtitle: for version 2.0.0\n" in doc
        assert "This manual is for Foo version 2.0.0.\n" in doc

        assert "1.9.0" in (project / "README.org").read_text()

    def test_release_is_idempotent(self, project: Path, settings: Settings) -> None:
        file_set = discover(project, settings)
        propagate(file_set, "2.0.0", "1.9.0", settings, today=TODAY)

        report = propagate(file_set, "2.0.0", "1.9.0", settings, today=TODAY)

        assert report.rewritten == []
        assert report.failures == []

    def test_snapshot_uses_date_constraints(
        self, project: Path, settings: Settings
    ) -> None:
        file_set = discover(project, settings)

        propagate(file_set, "2.0.0.50-git", "2.0.0", settings, today=TODAY)

        pkg = (project / "lisp" / "foo-pkg.el").read_text()
        assert '(define-package "foo" "2.0.0.50-git"' in pkg
        assert '(foo-extra "20261019")' in pkg
        assert "2.0.0.50-git\")" not in pkg

        foo = (project / "lisp" / "foo.el").read_text()
        assert ";; Package-Version: 2.0.0.50-git\n" in foo
        assert '(foo-extra "1.9.0")' in foo

    def test_single_library_left_alone(self, tmp_path: Path, settings: Settings) -> None:
        (tmp_path / "bar.el").write_text(';; Version: 1.0\n(defconst bar-version "1.0")\n')
        (tmp_path / "bar-pkg.el").write_text(
            '(define-package "bar" "1.0" "Bar." \'((emacs "27.1")))\n'
        )
        file_set = discover(tmp_path, settings)

        report = propagate(file_set, "1.1", "1.0", settings, today=TODAY)

        assert [p.name for p in report.rewritten] == ["bar-pkg.el"]
        assert (tmp_path / "bar.el").read_text().startswith(";; Version: 1.0\n")

    def test_failures_are_collected(self, project: Path, settings: Settings) -> None:
        broken = '(define-package "foo" "1.9.0" "Doc." \'((emacs "27.1")\n'
        (project / "lisp" / "foo-pkg.el").write_text(broken)
        file_set = discover(project, settings)

        report = propagate(file_set, "2.0.0", "1.9.0", settings, today=TODAY)

        assert [f.path.name for f in report.failures] == ["foo-pkg.el"]
        assert (project / "lisp" / "foo-pkg.el").read_text() == broken
        assert "foo.el" in [p.name for p in report.rewritten]

    def test_missing_descriptor_reported(self, project: Path, settings: Settings) -> None:
        (project / "lisp" / "foo-pkg.el").write_text(";; empty\n")
        file_set = discover(project, settings)

        report = propagate(file_set, "2.0.0", "1.9.0", settings, today=TODAY)

        assert [f.path.name for f in report.failures] == ["foo-pkg.el"]

    def test_missing_descriptor_skipped_when_configured(self, project: Path) -> None:
        settings = Settings(skip_missing_descriptors=True)
        (project / "lisp" / "foo-pkg.el").write_text(";; empty\n")
        file_set = discover(project, settings)

        report = propagate(file_set, "2.0.0", "1.9.0", settings, today=TODAY)

        assert report.failures == []

    def test_docs_builder_runs_with_texinfo(
        self, project: Path, settings: Settings
    ) -> None:
        (project / "docs" / "foo.texi").write_text("\\input texinfo\n")
        builder = FakeDocsBuilder()
        file_set = discover(project, settings)

        propagate(file_set, "2.0.0", "1.9.0", settings, today=TODAY, docs_builder=builder)

        assert builder.builds == [False]

    def test_docs_builder_skipped_without_texinfo(
        self, project: Path, settings: Settings
    ) -> None:
        builder = FakeDocsBuilder()
        file_set = discover(project, settings)

        propagate(file_set, "2.0.0", "1.9.0", settings, today=TODAY, docs_builder=builder)

        assert builder.builds == []
