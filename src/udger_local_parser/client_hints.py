"""Client Hints resolver.

Resolves client, OS and device from the ``Sec-Ch-Ua-*`` request headers.
Header values are short, so every candidate regex of the relevant table is
evaluated directly without the keyword prefilter. The candidates come
precompiled from the pattern store. The resolver works on top of a
user-agent result and its header-derived fields take precedence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import aiosqlite

from udger_local_parser import rows
from udger_local_parser.db import queries
from udger_local_parser.models import ClientHints, UserAgent
from udger_local_parser.patterns import LookupSignatures
from udger_local_parser.pipeline import extract_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MobileFlag:
    """``Sec-Ch-Ua-Mobile`` in its two normalized forms.

    ``reported`` is what the result exposes: ``""`` when the header was
    absent, ``"0"`` for ``?0`` and ``"1"`` otherwise. ``lookup`` is the
    value used to query the reference tables, where an absent header counts
    as ``"0"``.
    """

    reported: str
    lookup: str


def normalize_mobile(value: str) -> MobileFlag:
    if not value:
        return MobileFlag(reported="", lookup="0")
    if value == "?0":
        return MobileFlag(reported="0", lookup="0")
    return MobileFlag(reported="1", lookup="1")


def _unquote(value: str) -> str:
    return value.strip().strip('"')


class ClientHintsResolver:
    """Applies Client Hints headers to a user-agent result.

    Parameters
    ----------
    db:
        Open connection to the reference database.
    lookups:
        Compiled Client Hints and brand regexes from the pattern store.
    info_url_base:
        Prefix of the vendor resource URLs in the result.
    """

    def __init__(
        self,
        db: aiosqlite.Connection,
        lookups: LookupSignatures,
        *,
        info_url_base: str = rows.DEFAULT_INFO_URL_BASE,
    ) -> None:
        self._db = db
        self._lookups = lookups
        self._base = info_url_base

    async def resolve(self, headers: ClientHints, base: UserAgent | None = None) -> UserAgent:
        """Return *base* updated with everything the headers resolve.

        A crawler verdict in *base* is returned unchanged.
        """
        base = base if base is not None else UserAgent()
        if base.ua_class_code == "crawler":
            return base

        mobile = normalize_mobile(headers.sec_ch_ua_mobile)
        fields: dict[str, str | int] = {
            "ua_string": base.ua_string or headers.user_agent,
            "sec_ch_ua": headers.sec_ch_ua,
            "sec_ch_ua_full_version": _unquote(headers.sec_ch_ua_full_version),
            "sec_ch_ua_full_version_list": headers.sec_ch_ua_full_version_list,
            "sec_ch_ua_model": headers.sec_ch_ua_model,
            "sec_ch_ua_platform": _unquote(headers.sec_ch_ua_platform),
            "sec_ch_ua_platform_version": _unquote(headers.sec_ch_ua_platform_version),
            "sec_ch_ua_mobile": mobile.reported,
        }

        fields.update(await self.resolve_client(headers, mobile))
        fields.update(await self.resolve_os(headers))

        os_family_code = str(fields.get("os_family_code", base.os_family_code))
        os_code = str(fields.get("os_code", base.os_code))
        fields.update(await self.resolve_device(headers, os_family_code, os_code))

        device_class = fields.get("device_class", base.device_class)
        ua_class_code = fields.get("ua_class_code", base.ua_class_code)
        if not device_class and ua_class_code:
            fields.update(await self.resolve_default_device(mobile))

        return base.model_copy(update=fields)

    async def resolve_client(self, headers: ClientHints, mobile: MobileFlag) -> dict[str, str | int]:
        full_version_list = headers.sec_ch_ua_full_version_list
        search = full_version_list or headers.sec_ch_ua
        if not search:
            return {}

        for entry in self._lookups.clients_for(mobile.lookup):
            if entry.pattern.search(search) is None:
                continue
            row = await queries.get_client(self._db, entry.target_id)
            if row is None:
                continue

            version = extract_version(entry.pattern, search)
            version_major = version.split(".", 1)[0]
            if not full_version_list and headers.sec_ch_ua_full_version:
                version = _unquote(headers.sec_ch_ua_full_version)

            fields: dict[str, str | int] = rows.client_fields(row, self._base)
            fields["ua"] = f"{fields['ua_family']} {version}"
            fields["ua_version"] = version
            fields["ua_version_major"] = version_major
            fields["client_id"] = int(row["client_id"] or 0)
            fields["class_id"] = int(row["class_id"] or 0)
            return fields

        logger.debug("No Client Hints brand regex matched %r", search)
        return {}

    async def resolve_os(self, headers: ClientHints) -> dict[str, str]:
        platform = headers.sec_ch_ua_platform
        if not platform:
            return {}

        platform_version = _unquote(headers.sec_ch_ua_platform_version)
        for entry in self._lookups.platforms_for(platform_version):
            if entry.pattern.search(platform) is None:
                continue
            row = await queries.get_os(self._db, entry.target_id)
            if row is not None:
                return rows.os_fields(row, self._base)
        return {}

    async def resolve_device(
        self, headers: ClientHints, os_family_code: str, os_code: str
    ) -> dict[str, str]:
        """Resolve brand, marketname and device class from ``Sec-Ch-Ua-Model``."""
        model = _unquote(headers.sec_ch_ua_model)
        if not model or not os_family_code:
            return {}

        candidates = await queries.list_devicename_ch_rows(self._db, os_family_code, os_code)
        if len(candidates) != 1:
            logger.debug(
                "Skipping model lookup: %d device-name rows for %s/%s",
                len(candidates), os_family_code, os_code,
            )
            return {}

        name_row = await queries.get_devicename(self._db, candidates[0]["id"], model)
        if name_row is None:
            return {}

        fields = rows.brand_fields(name_row, self._base)
        class_row = await queries.get_deviceclass(self._db, int(name_row["deviceclass_id"] or 0))
        if class_row is not None:
            fields.update(rows.device_class_fields(class_row, self._base))
        return fields

    async def resolve_default_device(self, mobile: MobileFlag) -> dict[str, str]:
        row = await queries.get_deviceclass_for_mobile(self._db, mobile.lookup)
        if row is None:
            return {}
        return rows.device_class_fields(row, self._base)
