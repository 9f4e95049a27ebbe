"""Exceptions raised during release bookkeeping.

Fatal errors (InvalidVersion, ChangelogAbort) stop an operation before
anything is committed. Per-file errors (MissingDescriptor, SexpError) are
caught by the propagator and collected so the remaining files still get
rewritten.
"""

from __future__ import annotations


class ReleaseError(Exception):
    """Base class for all elrelease errors."""


class InvalidVersion(ReleaseError):
    """The proposed version is malformed or not newer than the last release."""


class ChangelogAbort(ReleaseError):
    """The maintainer declined a changelog confirmation."""


class MissingDescriptor(ReleaseError):
    """A structural element requested by a rewrite could not be located."""


class SexpError(ReleaseError):
    """An s-expression could not be read."""


class StubChangelogWarning(UserWarning):
    """A changelog entry was created without a body and must be filled in."""
