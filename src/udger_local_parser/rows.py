"""Conversion of reference-table rows into result fields.

Query helpers alias their columns to result field names; these functions
turn NULLs into empty strings, drop the id columns that are not result
fields, and add the vendor info URLs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

DEFAULT_INFO_URL_BASE = "https://udger.com/resources/ua-list/"

# Row columns used for joins and fallbacks only
_ID_COLUMNS = frozenset(
    {"client_id", "class_id", "os_id", "deviceclass_id", "crawler_id", "regstring"}
)


def as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def text_fields(row: Mapping[str, Any]) -> dict[str, str]:
    """Return the non-id columns of *row* as strings."""
    return {key: as_text(value) for key, value in row.items() if key not in _ID_COLUMNS}


def info_url(base: str, page: str, name: str) -> str:
    """Build a vendor resource URL, e.g. ``<base>os-detail?os=Windows%2010``."""
    return f"{base}{page}{name.replace(' ', '%20')}"


def client_fields(row: Mapping[str, Any], base: str) -> dict[str, str]:
    fields = text_fields(row)
    fields["ua"] = fields.get("ua_family", "")
    fields["ua_family_info_url"] = info_url(base, "browser-detail?browser=", fields["ua"])
    return fields


def crawler_fields(row: Mapping[str, Any], base: str) -> dict[str, str]:
    fields = text_fields(row)
    fields["ua_class"] = "Crawler"
    fields["ua_class_code"] = "crawler"
    fields["ua_family_info_url"] = (
        info_url(base, "bot-detail?bot=", fields.get("ua_family", ""))
        + f"#id{as_text(row.get('crawler_id'))}"
    )
    return fields


def os_fields(row: Mapping[str, Any], base: str) -> dict[str, str]:
    fields = text_fields(row)
    fields["os_info_url"] = info_url(base, "os-detail?os=", fields.get("os", ""))
    return fields


def device_class_fields(row: Mapping[str, Any], base: str) -> dict[str, str]:
    fields = text_fields(row)
    fields["device_class_info_url"] = info_url(
        base, "device-detail?device=", fields.get("device_class", "")
    )
    return fields


def brand_fields(row: Mapping[str, Any], base: str) -> dict[str, str]:
    fields = text_fields(row)
    fields["device_brand_info_url"] = info_url(
        base, "devices-brand-detail?brand=", fields.get("device_brand_code", "")
    )
    return fields
