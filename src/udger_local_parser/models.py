"""Pydantic models for classification inputs and results.

``UserAgent`` and ``IpAddress`` are frozen: once a classification has been
returned (and possibly cached) it is never modified. Enrichment steps build
a new instance with ``model_copy(update=...)``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class UserAgent(BaseModel):
    model_config = ConfigDict(frozen=True)

    ua_string: str = ""
    ua_class: str = ""
    ua_class_code: str = ""
    ua: str = ""
    ua_version: str = ""
    ua_version_major: str = ""
    ua_uptodate_current_version: str = ""
    ua_family: str = ""
    ua_family_code: str = ""
    ua_family_homepage: str = ""
    ua_family_vendor: str = ""
    ua_family_vendor_code: str = ""
    ua_family_vendor_homepage: str = ""
    ua_family_icon: str = ""
    ua_family_icon_big: str = ""
    ua_family_info_url: str = ""
    ua_engine: str = ""

    os: str = ""
    os_code: str = ""
    os_homepage: str = ""
    os_icon: str = ""
    os_icon_big: str = ""
    os_info_url: str = ""
    os_family: str = ""
    os_family_code: str = ""
    os_family_vendor: str = ""
    os_family_vendor_code: str = ""
    os_family_vendor_homepage: str = ""

    device_class: str = ""
    device_class_code: str = ""
    device_class_icon: str = ""
    device_class_icon_big: str = ""
    device_class_info_url: str = ""

    device_marketname: str = ""
    device_brand: str = ""
    device_brand_code: str = ""
    device_brand_homepage: str = ""
    device_brand_icon: str = ""
    device_brand_icon_big: str = ""
    device_brand_info_url: str = ""

    crawler_last_seen: str = ""
    crawler_category: str = ""
    crawler_category_code: str = ""
    crawler_respect_robotstxt: str = ""

    sec_ch_ua: str = ""
    sec_ch_ua_full_version_list: str = ""
    sec_ch_ua_mobile: str = ""
    sec_ch_ua_full_version: str = ""
    sec_ch_ua_platform: str = ""
    sec_ch_ua_platform_version: str = ""
    sec_ch_ua_model: str = ""

    client_id: int = 0
    class_id: int = -1


class IpAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    ip: str = ""
    ip_ver: str = ""
    ip_classification: str = ""
    ip_classification_code: str = ""
    ip_last_seen: str = ""
    ip_hostname: str = ""
    ip_country: str = ""
    ip_country_code: str = ""
    ip_city: str = ""

    crawler_name: str = ""
    crawler_ver: str = ""
    crawler_ver_major: str = ""
    crawler_family: str = ""
    crawler_family_code: str = ""
    crawler_family_homepage: str = ""
    crawler_family_vendor: str = ""
    crawler_family_vendor_code: str = ""
    crawler_family_vendor_homepage: str = ""
    crawler_family_icon: str = ""
    crawler_family_info_url: str = ""
    crawler_last_seen: str = ""
    crawler_category: str = ""
    crawler_category_code: str = ""
    crawler_respect_robotstxt: str = ""

    datacenter_name: str = ""
    datacenter_name_code: str = ""
    datacenter_homepage: str = ""


class ClassificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_agent: UserAgent | None = None
    ip_address: IpAddress | None = None


# ---------------------------------------------------------------------------
# Client Hints input
# ---------------------------------------------------------------------------

# Lower-cased header name -> ClientHints field
HEADER_FIELDS: dict[str, str] = {
    "user-agent": "user_agent",
    "sec-ch-ua": "sec_ch_ua",
    "sec-ch-ua-full-version-list": "sec_ch_ua_full_version_list",
    "sec-ch-ua-mobile": "sec_ch_ua_mobile",
    "sec-ch-ua-full-version": "sec_ch_ua_full_version",
    "sec-ch-ua-platform": "sec_ch_ua_platform",
    "sec-ch-ua-platform-version": "sec_ch_ua_platform_version",
    "sec-ch-ua-model": "sec_ch_ua_model",
}


class ClientHints(BaseModel):
    """The request headers the Client Hints resolver understands."""

    model_config = ConfigDict(frozen=True)

    user_agent: str = ""
    sec_ch_ua: str = ""
    sec_ch_ua_full_version_list: str = ""
    sec_ch_ua_mobile: str = ""
    sec_ch_ua_full_version: str = ""
    sec_ch_ua_platform: str = ""
    sec_ch_ua_platform_version: str = ""
    sec_ch_ua_model: str = ""

    @classmethod
    def from_mapping(cls, headers: Mapping[str, Any]) -> ClientHints:
        """Build from a header mapping; names match case-insensitively, unknown names are ignored."""
        values: dict[str, str] = {}
        for name, value in headers.items():
            field = HEADER_FIELDS.get(str(name).strip().lower())
            if field is not None and value is not None:
                values[field] = str(value).strip()
        return cls(**values)

    @classmethod
    def from_text(cls, raw: str) -> ClientHints:
        """Build from raw header text with one ``Name: value`` pair per line."""
        headers: dict[str, str] = {}
        for line in raw.splitlines():
            name, sep, value = line.partition(":")
            if sep and name.strip():
                headers[name] = value
        return cls.from_mapping(headers)

    @property
    def is_set(self) -> bool:
        """True when at least one ``Sec-Ch-Ua*`` header carries a value."""
        return any(
            (
                self.sec_ch_ua,
                self.sec_ch_ua_full_version_list,
                self.sec_ch_ua_mobile,
                self.sec_ch_ua_full_version,
                self.sec_ch_ua_platform,
                self.sec_ch_ua_platform_version,
                self.sec_ch_ua_model,
            )
        )

    def cache_key(self, ua_string: str = "") -> str:
        """Canonical fingerprint of the header set and the effective UA string."""
        fields = self.model_dump()
        fields["user_agent"] = ua_string or self.user_agent
        return json.dumps(fields, sort_keys=True, separators=(",", ":"))
