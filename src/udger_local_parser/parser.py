"""Parser facade combining the user-agent, Client Hints and IP paths.

Typical use::

    async with await UdgerParser.open(settings) as parser:
        result = await parser.classify(user_agent=ua, ip="66.249.64.1")

Each input is independent: the user-agent path runs when a UA string is
available (explicitly or via the ``User-Agent`` header), the Client Hints
path when any ``Sec-Ch-Ua*`` header is set, and the IP path when an IP is
given.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import aiosqlite

from udger_local_parser.cache import LRUCache
from udger_local_parser.client_hints import ClientHintsResolver
from udger_local_parser.config import Settings
from udger_local_parser.db import queries
from udger_local_parser.db.connection import check_database, open_database
from udger_local_parser.ip import IpClassifier
from udger_local_parser.models import ClassificationResult, ClientHints, UserAgent
from udger_local_parser.patterns import PatternStore, PatternStoreLoader
from udger_local_parser.pipeline import UserAgentPipeline

logger = logging.getLogger(__name__)


class UdgerParser:
    """Classifies user agents, Client Hints headers and IP addresses.

    Parameters
    ----------
    db:
        Open connection to the reference database. Closed by :meth:`close`.
    patterns:
        The signature store, shared read-only with other parsers.
    settings:
        Parser settings; defaults when ``None``.
    """

    def __init__(
        self,
        db: aiosqlite.Connection,
        patterns: PatternStore,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or Settings()
        self._db = db
        self._patterns = patterns
        self._settings = settings

        base = settings.parser.info_url_base
        self._pipeline = UserAgentPipeline(
            db,
            patterns,
            info_url_base=base,
            crawler_device_class_id=settings.parser.crawler_device_class_id,
            default_device_class_id=settings.parser.default_device_class_id,
        )
        self._hints = ClientHintsResolver(db, patterns.lookups, info_url_base=base)
        self._ip = IpClassifier(db, info_url_base=base)

        self._ua_cache: LRUCache[str, UserAgent] | None = None
        self._header_cache: LRUCache[str, UserAgent] | None = None
        if settings.cache.enabled:
            self._ua_cache = LRUCache(settings.cache.capacity)
            self._header_cache = LRUCache(settings.cache.capacity)

    @classmethod
    async def open(
        cls,
        settings: Settings | None = None,
        loader: PatternStoreLoader | None = None,
    ) -> UdgerParser:
        """Open the configured database and return a ready parser.

        Parameters
        ----------
        settings:
            Parser settings; ``settings.database.path`` locates the file.
        loader:
            Shared loader, so several parsers reuse one pattern store.

        Raises
        ------
        DatabaseUnavailableError:
            If the database cannot be opened.
        PatternCompileError:
            If a stored signature does not compile.
        """
        settings = settings or Settings()
        db = await open_database(settings.database.path)
        try:
            return await cls.from_connection(db, settings, loader)
        except Exception:
            await db.close()
            raise

    @classmethod
    async def from_connection(
        cls,
        db: aiosqlite.Connection,
        settings: Settings | None = None,
        loader: PatternStoreLoader | None = None,
    ) -> UdgerParser:
        """Build a parser over an already open connection."""
        await check_database(db)
        loader = loader or PatternStoreLoader()
        patterns = await loader.get(db)
        parser = cls(db, patterns, settings)
        info = await parser.database_version()
        if info is not None:
            logger.info("Reference database version %s", info.get("version"))
        return parser

    async def close(self) -> None:
        await self._db.close()

    async def __aenter__(self) -> UdgerParser:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def patterns(self) -> PatternStore:
        return self._patterns

    async def database_version(self) -> dict[str, Any] | None:
        """Return the vendor's version row, or ``None`` when absent."""
        try:
            return await queries.get_db_info(self._db)
        except aiosqlite.OperationalError:
            return None

    # -----------------------------------------------------------------------
    # Classification
    # -----------------------------------------------------------------------

    async def classify(
        self,
        user_agent: str | None = None,
        headers: ClientHints | Mapping[str, str] | None = None,
        ip: str | None = None,
    ) -> ClassificationResult:
        """Classify any combination of UA string, request headers and IP.

        Supplying nothing returns an empty result.
        """
        if headers is not None and not isinstance(headers, ClientHints):
            headers = ClientHints.from_mapping(headers)

        ua_string = user_agent or (headers.user_agent if headers is not None else "")
        ua_result: UserAgent | None = None
        if ua_string:
            ua_result = await self.parse_user_agent(ua_string)
        if headers is not None and headers.is_set:
            ua_result = await self.parse_headers(headers, ua_result, ua_string)

        ip_result = await self._ip.classify(ip) if ip else None
        return ClassificationResult(user_agent=ua_result, ip_address=ip_result)

    async def parse_user_agent(self, ua_string: str) -> UserAgent:
        """Classify a UA string, serving repeated strings from the cache."""
        if self._ua_cache is not None:
            cached = self._ua_cache.get(ua_string)
            if cached is not None:
                logger.debug("UA cache hit")
                return cached

        result = await self._pipeline.classify(ua_string)
        if self._ua_cache is not None:
            result = self._ua_cache.setdefault(ua_string, result)
        return result

    async def parse_headers(
        self,
        headers: ClientHints,
        base: UserAgent | None = None,
        ua_string: str = "",
    ) -> UserAgent:
        """Apply Client Hints on top of *base*, caching by header fingerprint.

        The fingerprint includes the effective UA: *ua_string*, else the UA
        of *base*, else the header set's own ``User-Agent``.
        """
        if not ua_string and base is not None:
            ua_string = base.ua_string
        key = headers.cache_key(ua_string)
        if self._header_cache is not None:
            cached = self._header_cache.get(key)
            if cached is not None:
                logger.debug("Client Hints cache hit")
                return cached

        result = await self._hints.resolve(headers, base)
        if self._header_cache is not None:
            result = self._header_cache.setdefault(key, result)
        return result
