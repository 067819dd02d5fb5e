"""Signature store for the client, OS and device-class axes.

Each axis holds its regex signatures in evaluation order together with a
:class:`~udger_local_parser.words.WordDetector` built from the keywords
those signatures reference. The regexes of the brand and Client Hints
tables are compiled alongside them, so a malformed pattern anywhere in the
database fails the load. The store is loaded once from the reference
database and is read-only afterwards.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

import aiosqlite

from udger_local_parser.db import queries
from udger_local_parser.db.schema import SIGNATURE_TABLES
from udger_local_parser.regex import compile_pattern
from udger_local_parser.words import WordDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignatureEntry:
    """One regex signature.

    Parameters
    ----------
    id:
        Row id of the signature in its regex table.
    word_id_1, word_id_2:
        Keyword ids the input must contain for the pattern to be worth
        evaluating; 0 means no requirement.
    pattern:
        The compiled pattern.
    """

    id: int
    word_id_1: int
    word_id_2: int
    pattern: re.Pattern[str]

    def words_present(self, found_words: frozenset[int] | set[int]) -> bool:
        return (self.word_id_1 == 0 or self.word_id_1 in found_words) and (
            self.word_id_2 == 0 or self.word_id_2 in found_words
        )


def find_id(
    text: str,
    found_words: frozenset[int] | set[int],
    entries: Iterable[SignatureEntry],
) -> int | None:
    """Return the id of the first entry whose pattern matches *text*.

    Entries whose keyword requirements are not met by *found_words* are
    skipped without evaluating their pattern.
    """
    for entry in entries:
        if entry.words_present(found_words) and entry.pattern.search(text):
            return entry.id
    return None


@dataclass(frozen=True)
class AxisSignatures:
    """Ordered signatures and keyword index of one classification axis."""

    name: str
    entries: tuple[SignatureEntry, ...]
    words: WordDetector
    _by_id: dict[int, SignatureEntry] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self._by_id.update((entry.id, entry) for entry in self.entries)

    def get(self, entry_id: int) -> SignatureEntry | None:
        return self._by_id.get(entry_id)

    def match(self, text: str) -> int | None:
        """Run the keyword prefilter and the ordered matcher over *text*."""
        return find_id(text, self.words.find_words(text), self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def build_entries(rows: Iterable[dict], table: str) -> tuple[SignatureEntry, ...]:
    """Compile signature rows; a pattern that does not compile aborts the build."""
    return tuple(
        SignatureEntry(
            id=int(row["id"]),
            word_id_1=int(row["word_id"] or 0),
            word_id_2=int(row["word2_id"] or 0),
            pattern=compile_pattern(row["regstring"] or "", f"{table} rowid {row['id']}"),
        )
        for row in rows
    )


async def load_axis(
    db: aiosqlite.Connection, name: str, regex_table: str, words_table: str
) -> AxisSignatures:
    """Load one axis: its ordered signatures and the keywords they use."""
    rows = await queries.list_signature_rows(db, regex_table)
    entries = build_entries(rows, regex_table)

    used_ids = {entry.word_id_1 for entry in entries} | {entry.word_id_2 for entry in entries}
    word_rows = await queries.list_words(db, words_table)
    words = WordDetector.from_rows(
        ((int(row["id"]), row["word"] or "") for row in word_rows), used_ids
    )
    return AxisSignatures(name=name, entries=entries, words=words)


@dataclass(frozen=True)
class LookupPattern:
    """A compiled regex of a direct lookup table.

    ``target_id`` is the row the match resolves to: the device-name regex
    itself, the client or the OS. ``scope`` narrows the entry inside its
    group (the OS code for brand regexes).
    """

    id: int
    target_id: int
    scope: str
    pattern: re.Pattern[str]


def group_lookup_patterns(
    rows: Iterable[dict],
    table: str,
    *,
    key: str,
    target: str,
    scope: str | None = None,
) -> dict[str, tuple[LookupPattern, ...]]:
    """Compile lookup rows grouped by the *key* column, keeping row order.

    A pattern that does not compile aborts the build.
    """
    groups: dict[str, list[LookupPattern]] = {}
    for row in rows:
        entry = LookupPattern(
            id=int(row["id"]),
            target_id=int(row[target] or 0),
            scope=str(row[scope] or "") if scope else "",
            pattern=compile_pattern(row["regstring"] or "", f"{table} id {row['id']}"),
        )
        groups.setdefault(str(row[key] or ""), []).append(entry)
    return {name: tuple(entries) for name, entries in groups.items()}


@dataclass(frozen=True)
class LookupSignatures:
    """Regexes of the brand and Client Hints tables.

    ``brands`` is keyed by OS family code, ``clients`` by the normalized
    mobile flag and ``platforms`` by platform version.
    """

    brands: dict[str, tuple[LookupPattern, ...]] = field(default_factory=dict)
    clients: dict[str, tuple[LookupPattern, ...]] = field(default_factory=dict)
    platforms: dict[str, tuple[LookupPattern, ...]] = field(default_factory=dict)

    def brands_for(self, os_family_code: str, os_code: str) -> tuple[LookupPattern, ...]:
        """Brand regexes for the whole OS family or for exactly *os_code*."""
        return tuple(
            entry
            for entry in self.brands.get(os_family_code, ())
            if entry.scope in ("-all-", os_code)
        )

    def clients_for(self, mobile: str) -> tuple[LookupPattern, ...]:
        return self.clients.get(mobile, ())

    def platforms_for(self, platform_version: str) -> tuple[LookupPattern, ...]:
        return self.platforms.get(platform_version, ())

    def __len__(self) -> int:
        return sum(
            len(entries)
            for groups in (self.brands, self.clients, self.platforms)
            for entries in groups.values()
        )

    @classmethod
    async def load(cls, db: aiosqlite.Connection) -> LookupSignatures:
        brands = group_lookup_patterns(
            await queries.list_devicename_signatures(db),
            "udger_devicename_regex",
            key="os_family_code",
            target="id",
            scope="os_code",
        )
        clients = group_lookup_patterns(
            await queries.list_client_ch_signatures(db),
            "udger_client_ch_regex",
            key="mobile",
            target="client_id",
        )
        platforms = group_lookup_patterns(
            await queries.list_os_ch_signatures(db),
            "udger_os_ch_regex",
            key="version",
            target="os_id",
        )
        return cls(brands=brands, clients=clients, platforms=platforms)


@dataclass(frozen=True)
class PatternStore:
    """Every compiled regex of the reference database, shared read-only by every parser."""

    client: AxisSignatures
    os: AxisSignatures
    device: AxisSignatures
    lookups: LookupSignatures = field(default_factory=LookupSignatures)

    @classmethod
    async def load(cls, db: aiosqlite.Connection) -> PatternStore:
        """Load every axis and lookup table from the reference database.

        Raises
        ------
        PatternCompileError:
            If any stored regex is not a valid pattern.
        """
        axes = {}
        for name, regex_table, words_table in SIGNATURE_TABLES:
            axes[name] = await load_axis(db, name, regex_table, words_table)
            logger.info(
                "Loaded %d %s signatures (%d keywords)",
                len(axes[name]), name, len(axes[name].words),
            )
        lookups = await LookupSignatures.load(db)
        logger.info("Loaded %d brand and Client Hints patterns", len(lookups))
        return cls(**axes, lookups=lookups)


class PatternStoreLoader:
    """Loads a :class:`PatternStore` exactly once.

    Concurrent first callers wait on the same lock; all of them receive the
    single, fully built store. The lock is an :class:`asyncio.Lock`, so a
    loader belongs to one event loop. Parsers running in other threads or
    loops share the store by building their own loader around it with
    ``PatternStoreLoader(store)``; the store itself is immutable.
    """

    def __init__(self, store: PatternStore | None = None) -> None:
        self._store = store
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._store is not None

    async def get(self, db: aiosqlite.Connection) -> PatternStore:
        if self._store is not None:
            return self._store
        async with self._lock:
            if self._store is None:
                self._store = await PatternStore.load(db)
        return self._store
