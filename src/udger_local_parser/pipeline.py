"""User-agent string classification pipeline.

Stages run in a fixed order, each a function of the input string and the
outcomes of the stages before it:

1. Crawler check (exact UA lookup). A crawler skips stages 3 and 4.
2. Client resolution over the client signatures.
3. OS resolution, falling back to the OS implied by the client.
4. Device-class resolution, falling back to the client class's device
   class and finally to the default device class.
5. Device-brand resolution, only when an OS family is known.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

import aiosqlite

from udger_local_parser import rows
from udger_local_parser.db import queries
from udger_local_parser.models import UserAgent
from udger_local_parser.patterns import PatternStore

logger = logging.getLogger(__name__)

CRAWLER_CLASS_ID = 99
CRAWLER_CLIENT_ID = -1
UNRECOGNIZED_CLASS_ID = -1
DEFAULT_DEVICE_CLASS_ID = 1


# ---------------------------------------------------------------------------
# Stage outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClientOutcome:
    fields: Mapping[str, str] = field(default_factory=dict)
    client_id: int = 0
    class_id: int = UNRECOGNIZED_CLASS_ID

    @property
    def is_crawler(self) -> bool:
        return self.class_id == CRAWLER_CLASS_ID


@dataclass(frozen=True)
class OsOutcome:
    fields: Mapping[str, str] = field(default_factory=dict)

    @property
    def family_code(self) -> str:
        return self.fields.get("os_family_code", "")

    @property
    def os_code(self) -> str:
        return self.fields.get("os_code", "")


@dataclass(frozen=True)
class DeviceOutcome:
    fields: Mapping[str, str] = field(default_factory=dict)


def extract_version(pattern: re.Pattern[str], text: str) -> str:
    """Return the first capturing group of *pattern* in *text*, or ``""``."""
    if pattern.groups < 1:
        return ""
    match = pattern.search(text)
    if match is None:
        return ""
    return match.group(1) or ""


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class UserAgentPipeline:
    """Resolves client, OS, device class and device brand from a UA string.

    Parameters
    ----------
    db:
        Open connection to the reference database.
    patterns:
        The loaded signature store.
    info_url_base:
        Prefix of the vendor resource URLs in the result.
    crawler_device_class_id:
        Device class attached to every crawler.
    default_device_class_id:
        Device class used when nothing else determines one.
    """

    def __init__(
        self,
        db: aiosqlite.Connection,
        patterns: PatternStore,
        *,
        info_url_base: str = rows.DEFAULT_INFO_URL_BASE,
        crawler_device_class_id: int = DEFAULT_DEVICE_CLASS_ID,
        default_device_class_id: int = DEFAULT_DEVICE_CLASS_ID,
    ) -> None:
        self._db = db
        self._patterns = patterns
        self._base = info_url_base
        self._crawler_device_class_id = crawler_device_class_id
        self._default_device_class_id = default_device_class_id

    async def classify(self, ua_string: str) -> UserAgent:
        """Run every stage over *ua_string* and return the combined result."""
        client = await self.resolve_client(ua_string)
        if client.is_crawler:
            os_outcome = OsOutcome()
            device = await self.resolve_crawler_device()
        else:
            os_outcome = await self.resolve_os(ua_string, client)
            device = await self.resolve_device(ua_string, client)
        brand = await self.resolve_device_brand(ua_string, os_outcome)

        fields: dict[str, str | int] = {"ua_string": ua_string}
        fields.update(client.fields)
        fields.update(os_outcome.fields)
        fields.update(device.fields)
        fields.update(brand)
        fields["client_id"] = client.client_id
        fields["class_id"] = client.class_id
        return UserAgent(**fields)

    async def resolve_client(self, ua_string: str) -> ClientOutcome:
        crawler = await queries.get_crawler_by_ua(self._db, ua_string)
        if crawler is not None:
            return ClientOutcome(
                fields=rows.crawler_fields(crawler, self._base),
                client_id=CRAWLER_CLIENT_ID,
                class_id=CRAWLER_CLASS_ID,
            )

        unrecognized = ClientOutcome(
            fields={"ua_class": "Unrecognized", "ua_class_code": "unrecognized"}
        )
        regex_id = self._patterns.client.match(ua_string)
        if regex_id is None:
            return unrecognized

        row = await queries.get_client_by_regex_id(self._db, regex_id)
        if row is None:
            logger.warning("Client signature %d has no client row", regex_id)
            return unrecognized

        fields = rows.client_fields(row, self._base)
        entry = self._patterns.client.get(regex_id)
        version = extract_version(entry.pattern, ua_string) if entry is not None else ""
        if version:
            fields["ua"] = f"{fields['ua_family']} {version}"
            fields["ua_version"] = version
            fields["ua_version_major"] = version.split(".", 1)[0]

        return ClientOutcome(
            fields=fields,
            client_id=int(row["client_id"] or 0),
            class_id=int(row["class_id"] if row["class_id"] is not None else UNRECOGNIZED_CLASS_ID),
        )

    async def resolve_os(self, ua_string: str, client: ClientOutcome) -> OsOutcome:
        regex_id = self._patterns.os.match(ua_string)
        if regex_id is not None:
            row = await queries.get_os_by_regex_id(self._db, regex_id)
        elif client.client_id != 0:
            logger.debug("No OS signature matched; using OS of client %d", client.client_id)
            row = await queries.get_os_by_client_id(self._db, client.client_id)
        else:
            row = None

        if row is None:
            return OsOutcome()
        return OsOutcome(fields=rows.os_fields(row, self._base))

    async def resolve_device(self, ua_string: str, client: ClientOutcome) -> DeviceOutcome:
        regex_id = self._patterns.device.match(ua_string)
        if regex_id is not None:
            row = await queries.get_deviceclass_by_regex_id(self._db, regex_id)
        elif client.class_id != UNRECOGNIZED_CLASS_ID:
            logger.debug("No device signature matched; using device of class %d", client.class_id)
            row = await queries.get_deviceclass_by_client_class(self._db, client.class_id)
        else:
            row = await queries.get_deviceclass(self._db, self._default_device_class_id)

        if row is None:
            return DeviceOutcome()
        return DeviceOutcome(fields=rows.device_class_fields(row, self._base))

    async def resolve_crawler_device(self) -> DeviceOutcome:
        row = await queries.get_deviceclass(self._db, self._crawler_device_class_id)
        if row is None:
            return DeviceOutcome()
        return DeviceOutcome(fields=rows.device_class_fields(row, self._base))

    async def resolve_device_brand(self, ua_string: str, os_outcome: OsOutcome) -> dict[str, str]:
        """Find marketname and brand via the brand regexes of the resolved OS."""
        if not os_outcome.family_code:
            return {}

        candidates = self._patterns.lookups.brands_for(
            os_outcome.family_code, os_outcome.os_code
        )
        for candidate in candidates:
            if candidate.pattern.search(ua_string) is None:
                continue
            token = extract_version(candidate.pattern, ua_string)
            row = await queries.get_devicename(self._db, candidate.target_id, token)
            if row is not None:
                return rows.brand_fields(row, self._base)
        return {}
