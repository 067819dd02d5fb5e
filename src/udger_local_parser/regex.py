"""Conversion of the vendor's slash-delimited regex dialect to ``re`` patterns.

Patterns are stored in the reference database as Perl-style literals, for
example ``/mozilla\\/5\\.0 \\(compatible; googlebot\\/([0-9.]+)/si``. Every
compiled pattern is case-insensitive and lets ``.`` match newlines,
regardless of the trailing flag letters.
"""

from __future__ import annotations

import functools
import re

from udger_local_parser.errors import PatternCompileError

BASE_FLAGS = re.IGNORECASE | re.DOTALL

_DELIMITED = re.compile(r"^/(?P<body>.*)/(?P<flags>[a-zA-Z]*)$", re.DOTALL)

# Perl named groups "(?<name>" -> Python "(?P<name>"; lookbehinds are left alone
_PERL_NAMED_GROUP = re.compile(r"(?<!\\)\(\?<(?![=!])")

_FLAG_LETTERS: dict[str, re.RegexFlag] = {
    "m": re.MULTILINE,
    "x": re.VERBOSE,
}


def split_pattern(text: str) -> tuple[str, str]:
    """Split a vendor pattern into ``(body, flag_letters)``.

    Text without surrounding slashes is returned unchanged with no flags.
    """
    match = _DELIMITED.match(text.strip())
    if match is None:
        return text, ""
    return match.group("body"), match.group("flags")


@functools.lru_cache(maxsize=4096)
def compile_pattern(text: str, source: str = "") -> re.Pattern[str]:
    """Compile a vendor pattern into a case-insensitive, dot-all ``re.Pattern``.

    Parameters
    ----------
    text:
        The pattern as stored in the database.
    source:
        Optional description of the pattern origin, used in error messages.

    Raises
    ------
    PatternCompileError:
        If the converted pattern is not a valid Python regular expression.
    """
    body, letters = split_pattern(text)
    flags = BASE_FLAGS
    for letter in letters:
        flags |= _FLAG_LETTERS.get(letter, 0)
    body = _PERL_NAMED_GROUP.sub("(?P<", body)
    try:
        return re.compile(body, flags)
    except re.error as exc:
        raise PatternCompileError(text, source, str(exc)) from exc
