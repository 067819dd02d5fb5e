"""Exception hierarchy for the Udger local parser."""

from __future__ import annotations


class UdgerError(Exception):
    """Base class for all parser errors."""


class DatabaseUnavailableError(UdgerError):
    """The reference database cannot be opened or lacks required tables.

    Raised when the parser is opened, never deferred to the first
    classification call.
    """


class PatternCompileError(UdgerError, ValueError):
    """A regex stored in the reference database does not compile.

    Parameters
    ----------
    pattern:
        The raw vendor pattern text.
    source:
        Where the pattern came from (e.g. ``"udger_client_regex rowid 12"``).
    """

    def __init__(self, pattern: str, source: str = "", reason: str = "") -> None:
        self.pattern = pattern
        self.source = source
        self.reason = reason
        where = f" ({source})" if source else ""
        super().__init__(f"Cannot compile pattern {pattern!r}{where}: {reason}")
