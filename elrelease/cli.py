"""CLI entry point for elrelease."""

from __future__ import annotations

from pathlib import Path

import click

from .config import load_settings
from .docs import MakeDocsBuilder
from .errors import ReleaseError
from .models import ReleaseReport
from .pipeline import Releaser
from .vcs import GitVCS


class ClickPrompter:
    """Asks the maintainer on the terminal."""

    def confirm(self, message: str) -> bool:
        return click.confirm(message, default=False)

    def ask(self, message: str, default: str | None = None) -> str:
        return click.prompt(message, default=default, type=str)


def _releaser(root: str) -> Releaser:
    path = Path(root).resolve()
    if not (path / ".git").exists():
        raise click.ClickException("Not a git repository. Run from the repo root.")
    try:
        settings = load_settings(path)
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc
    return Releaser(
        path,
        settings,
        GitVCS(path),
        ClickPrompter(),
        docs_builder=MakeDocsBuilder(path, settings),
    )


def _report(report: ReleaseReport) -> None:
    """Print collected warnings and skipped files to stderr."""
    for warning in report.warnings:
        click.echo(f"Warning: {warning}", err=True)
    for failure in report.failures:
        click.echo(
            f"Warning: {failure.path.name} was not updated: {failure.message}",
            err=True,
        )


def _root_option(func):
    return click.option(
        "--root",
        type=click.Path(exists=True, file_okay=False),
        default=".",
        show_default=True,
        help="Project root.",
    )(func)


def _no_commit_option(func):
    return click.option(
        "--no-commit", is_flag=True, help="Update the files but do not commit."
    )(func)


@click.group()
@click.version_option(package_name="elrelease")
def cli() -> None:
    """Release bookkeeping for Emacs Lisp packages."""


@cli.command()
@click.argument("version", required=False)
@_root_option
@_no_commit_option
def release(version: str | None, root: str, no_commit: bool) -> None:
    """Prepare and commit the release of VERSION."""
    releaser = _releaser(root)
    try:
        _report(releaser.create_release(version, commit=not no_commit))
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("version", required=False)
@_root_option
@_no_commit_option
def resume(version: str | None, root: str, no_commit: bool) -> None:
    """Resume development after a release; VERSION is the next release."""
    releaser = _releaser(root)
    try:
        _report(releaser.bump_post_release(version, commit=not no_commit))
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@_root_option
@_no_commit_option
def copyright(root: str, no_commit: bool) -> None:
    """Extend copyright notices to the current year."""
    releaser = _releaser(root)
    try:
        _report(releaser.bump_copyright(commit=not no_commit))
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc
