"""IP address classification: IP intelligence list and datacenter ranges."""

from __future__ import annotations

import ipaddress
import logging

import aiosqlite

from udger_local_parser import rows
from udger_local_parser.db import queries
from udger_local_parser.models import IpAddress

logger = logging.getLogger(__name__)


def parse_ip(ip: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    """Parse an IP literal, returning ``None`` when it is not a valid address."""
    try:
        return ipaddress.ip_address(ip.strip())
    except ValueError:
        return None


class IpClassifier:
    """Looks up an IP in the intelligence list and, for IPv4, the datacenter ranges.

    Parameters
    ----------
    db:
        Open connection to the reference database.
    info_url_base:
        Prefix of the vendor resource URLs in the result.
    """

    def __init__(
        self,
        db: aiosqlite.Connection,
        *,
        info_url_base: str = rows.DEFAULT_INFO_URL_BASE,
    ) -> None:
        self._db = db
        self._base = info_url_base

    async def classify(self, ip: str) -> IpAddress:
        addr = parse_ip(ip)
        if addr is None:
            logger.debug("Not an IP address: %r", ip)
            return IpAddress(ip=ip)

        canonical = str(addr)
        fields: dict[str, str] = {"ip": ip, "ip_ver": str(addr.version)}

        row = await queries.get_ip(self._db, canonical)
        if row is not None:
            fields.update(rows.text_fields(row))
            if fields.get("ip_classification_code") == "crawler":
                fields["crawler_family_info_url"] = (
                    rows.info_url(self._base, "bot-detail?bot=", fields.get("crawler_family", ""))
                    + f"#id{rows.as_text(row.get('crawler_id'))}"
                )

        if addr.version == 4:
            datacenter = await queries.get_datacenter_for_ipv4(self._db, int(addr))
            if datacenter is not None:
                fields.update(rows.text_fields(datacenter))

        return IpAddress(**fields)
