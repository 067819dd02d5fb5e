"""Typed async query helpers for the Udger reference tables.

Every function takes an ``aiosqlite.Connection`` as its first argument and
returns plain dicts or scalar values. Column aliases follow the field names
of :class:`udger_local_parser.models.UserAgent` and
:class:`udger_local_parser.models.IpAddress` wherever a row feeds them
directly.
"""

from __future__ import annotations

from typing import Any

import aiosqlite

from udger_local_parser.db.schema import SIGNATURE_TABLES

_SIGNATURE_TABLE_NAMES = frozenset(
    name for _, regex, words in SIGNATURE_TABLES for name in (regex, words)
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _fetchone(
    db: aiosqlite.Connection, sql: str, params: tuple = ()
) -> dict[str, Any] | None:
    cursor = await db.execute(sql, params)
    row = await cursor.fetchone()
    if row is None:
        return None
    columns = [desc[0] for desc in cursor.description]
    return dict(zip(columns, row))


async def _fetchall(
    db: aiosqlite.Connection, sql: str, params: tuple = ()
) -> list[dict[str, Any]]:
    cursor = await db.execute(sql, params)
    rows = await cursor.fetchall()
    if not rows:
        return []
    columns = [desc[0] for desc in cursor.description]
    return [dict(zip(columns, row)) for row in rows]


def _check_signature_table(table: str) -> None:
    if table not in _SIGNATURE_TABLE_NAMES:
        raise ValueError(f"Not a signature table: {table!r}")


# ---------------------------------------------------------------------------
# Database metadata
# ---------------------------------------------------------------------------

async def list_tables(db: aiosqlite.Connection) -> set[str]:
    """Return the names of all tables present in the database."""
    rows = await _fetchall(db, "SELECT name FROM sqlite_master WHERE type='table'")
    return {row["name"] for row in rows}


async def get_db_info(db: aiosqlite.Connection) -> dict[str, Any] | None:
    """Return the database version row, if the vendor shipped one."""
    return await _fetchone(
        db, "SELECT key, version, information, lastupdate FROM udger_db_info LIMIT 1"
    )


# ---------------------------------------------------------------------------
# Signature lists and keywords
# ---------------------------------------------------------------------------

async def list_signature_rows(
    db: aiosqlite.Connection, table: str
) -> list[dict[str, Any]]:
    """List ``(id, regstring, word_id, word2_id)`` rows of a regex table.

    Rows come back in evaluation order (``sequence`` ascending).
    """
    _check_signature_table(table)
    return await _fetchall(
        db,
        f"SELECT rowid AS id, regstring, word_id, word2_id FROM {table} ORDER BY sequence",
    )


async def list_words(db: aiosqlite.Connection, table: str) -> list[dict[str, Any]]:
    """List all ``(id, word)`` keyword rows of a keyword table."""
    _check_signature_table(table)
    return await _fetchall(db, f"SELECT id, word FROM {table}")


# ---------------------------------------------------------------------------
# User-agent lookups
# ---------------------------------------------------------------------------

async def get_crawler_by_ua(
    db: aiosqlite.Connection, ua_string: str
) -> dict[str, Any] | None:
    """Look up a crawler by its exact user-agent string."""
    return await _fetchone(
        db,
        """SELECT udger_crawler_list.id AS crawler_id,
                  name AS ua,
                  ver AS ua_version,
                  ver_major AS ua_version_major,
                  last_seen AS crawler_last_seen,
                  respect_robotstxt AS crawler_respect_robotstxt,
                  crawler_classification AS crawler_category,
                  crawler_classification_code AS crawler_category_code,
                  family AS ua_family,
                  family_code AS ua_family_code,
                  family_homepage AS ua_family_homepage,
                  family_icon AS ua_family_icon,
                  vendor AS ua_family_vendor,
                  vendor_code AS ua_family_vendor_code,
                  vendor_homepage AS ua_family_vendor_homepage
           FROM udger_crawler_list
           LEFT JOIN udger_crawler_class
                  ON udger_crawler_class.id = udger_crawler_list.class_id
           WHERE ua_string = ?""",
        (ua_string,),
    )


_CLIENT_COLUMNS = """udger_client_list.id AS client_id,
                  udger_client_list.class_id AS class_id,
                  client_classification AS ua_class,
                  client_classification_code AS ua_class_code,
                  name AS ua_family,
                  name_code AS ua_family_code,
                  homepage AS ua_family_homepage,
                  icon AS ua_family_icon,
                  icon_big AS ua_family_icon_big,
                  engine AS ua_engine,
                  vendor AS ua_family_vendor,
                  vendor_code AS ua_family_vendor_code,
                  vendor_homepage AS ua_family_vendor_homepage,
                  uptodate_current_version AS ua_uptodate_current_version"""


async def get_client_by_regex_id(
    db: aiosqlite.Connection, regex_id: int
) -> dict[str, Any] | None:
    """Return the client described by a matched ``udger_client_regex`` row."""
    return await _fetchone(
        db,
        f"""SELECT {_CLIENT_COLUMNS}
           FROM udger_client_regex
           JOIN udger_client_list ON udger_client_list.id = udger_client_regex.client_id
           JOIN udger_client_class ON udger_client_class.id = udger_client_list.class_id
           WHERE udger_client_regex.rowid = ?""",
        (regex_id,),
    )


async def get_client(db: aiosqlite.Connection, client_id: int) -> dict[str, Any] | None:
    """Return a client and its class by client id."""
    return await _fetchone(
        db,
        f"""SELECT {_CLIENT_COLUMNS}
           FROM udger_client_list
           JOIN udger_client_class ON udger_client_class.id = udger_client_list.class_id
           WHERE udger_client_list.id = ?""",
        (client_id,),
    )


_OS_COLUMNS = """udger_os_list.id AS os_id,
                  family AS os_family,
                  family_code AS os_family_code,
                  name AS os,
                  name_code AS os_code,
                  homepage AS os_homepage,
                  icon AS os_icon,
                  icon_big AS os_icon_big,
                  vendor AS os_family_vendor,
                  vendor_code AS os_family_vendor_code,
                  vendor_homepage AS os_family_vendor_homepage"""


async def get_os_by_regex_id(
    db: aiosqlite.Connection, regex_id: int
) -> dict[str, Any] | None:
    """Return the OS described by a matched ``udger_os_regex`` row."""
    return await _fetchone(
        db,
        f"""SELECT {_OS_COLUMNS}
           FROM udger_os_regex
           JOIN udger_os_list ON udger_os_list.id = udger_os_regex.os_id
           WHERE udger_os_regex.rowid = ?""",
        (regex_id,),
    )


async def get_os_by_client_id(
    db: aiosqlite.Connection, client_id: int
) -> dict[str, Any] | None:
    """Return the OS a client always runs on, if the client implies one."""
    return await _fetchone(
        db,
        f"""SELECT {_OS_COLUMNS}
           FROM udger_client_os_relation
           JOIN udger_os_list ON udger_os_list.id = udger_client_os_relation.os_id
           WHERE udger_client_os_relation.client_id = ?""",
        (client_id,),
    )


async def get_os(db: aiosqlite.Connection, os_id: int) -> dict[str, Any] | None:
    """Return an OS by id."""
    return await _fetchone(
        db, f"SELECT {_OS_COLUMNS} FROM udger_os_list WHERE id = ?", (os_id,)
    )


_DEVICECLASS_COLUMNS = """udger_deviceclass_list.id AS deviceclass_id,
                  name AS device_class,
                  name_code AS device_class_code,
                  icon AS device_class_icon,
                  icon_big AS device_class_icon_big"""


async def get_deviceclass_by_regex_id(
    db: aiosqlite.Connection, regex_id: int
) -> dict[str, Any] | None:
    """Return the device class described by a matched ``udger_deviceclass_regex`` row."""
    return await _fetchone(
        db,
        f"""SELECT {_DEVICECLASS_COLUMNS}
           FROM udger_deviceclass_regex
           JOIN udger_deviceclass_list
             ON udger_deviceclass_list.id = udger_deviceclass_regex.deviceclass_id
           WHERE udger_deviceclass_regex.rowid = ?""",
        (regex_id,),
    )


async def get_deviceclass_by_client_class(
    db: aiosqlite.Connection, class_id: int
) -> dict[str, Any] | None:
    """Return the default device class of a client class."""
    return await _fetchone(
        db,
        f"""SELECT {_DEVICECLASS_COLUMNS}
           FROM udger_deviceclass_list
           JOIN udger_client_class
             ON udger_client_class.deviceclass_id = udger_deviceclass_list.id
           WHERE udger_client_class.id = ?""",
        (class_id,),
    )


async def get_deviceclass(
    db: aiosqlite.Connection, deviceclass_id: int
) -> dict[str, Any] | None:
    """Return a device class by id."""
    return await _fetchone(
        db,
        f"SELECT {_DEVICECLASS_COLUMNS} FROM udger_deviceclass_list WHERE id = ?",
        (deviceclass_id,),
    )


async def list_devicename_signatures(db: aiosqlite.Connection) -> list[dict[str, Any]]:
    """List every brand-detection regex in evaluation order.

    Rows without a regex are the model lookup rows used for Client Hints
    and are left out.
    """
    return await _fetchall(
        db,
        """SELECT id, os_family_code, os_code, regstring FROM udger_devicename_regex
           WHERE regstring IS NOT NULL AND regstring != ''
           ORDER BY sequence""",
    )


async def get_devicename(
    db: aiosqlite.Connection, regex_id: int, code: str
) -> dict[str, Any] | None:
    """Return marketname and brand for a model token found by a brand regex."""
    return await _fetchone(
        db,
        """SELECT marketname AS device_marketname,
                  brand_code AS device_brand_code,
                  brand AS device_brand,
                  brand_url AS device_brand_homepage,
                  icon AS device_brand_icon,
                  icon_big AS device_brand_icon_big,
                  deviceclass_id
           FROM udger_devicename_list
           JOIN udger_devicename_brand
             ON udger_devicename_brand.id = udger_devicename_list.brand_id
           WHERE regex_id = ? AND code = ?""",
        (regex_id, code),
    )


# ---------------------------------------------------------------------------
# Client Hints lookups
# ---------------------------------------------------------------------------

async def list_client_ch_signatures(db: aiosqlite.Connection) -> list[dict[str, Any]]:
    """List every Client Hints brand regex in evaluation order."""
    return await _fetchall(
        db,
        """SELECT rowid AS id, client_id, mobile, regstring FROM udger_client_ch_regex
           ORDER BY sequence""",
    )


async def list_os_ch_signatures(db: aiosqlite.Connection) -> list[dict[str, Any]]:
    """List every Client Hints platform regex in evaluation order."""
    return await _fetchall(
        db,
        """SELECT rowid AS id, os_id, version, regstring FROM udger_os_ch_regex
           ORDER BY sequence""",
    )


async def list_devicename_ch_rows(
    db: aiosqlite.Connection, os_family_code: str, os_code: str
) -> list[dict[str, Any]]:
    """List the model lookup rows used for ``Sec-Ch-Ua-Model``.

    These are the device-name rows of the OS that carry no regex: the
    model header already holds the token the regex would extract.
    """
    return await _fetchall(
        db,
        """SELECT id FROM udger_devicename_regex
           WHERE ((os_family_code = ? AND os_code = '-all-')
                  OR (os_family_code = ? AND os_code = ?))
             AND (regstring IS NULL OR regstring = '')
           ORDER BY sequence""",
        (os_family_code, os_family_code, os_code),
    )


async def get_deviceclass_for_mobile(
    db: aiosqlite.Connection, mobile: str
) -> dict[str, Any] | None:
    """Return the default device class for a normalized mobile flag."""
    return await _fetchone(
        db,
        f"""SELECT {_DEVICECLASS_COLUMNS}
           FROM udger_deviceclass_list
           JOIN udger_deviceclass_ch
             ON udger_deviceclass_ch.deviceclass_id = udger_deviceclass_list.id
           WHERE udger_deviceclass_ch.mobile = ?""",
        (mobile,),
    )


# ---------------------------------------------------------------------------
# IP lookups
# ---------------------------------------------------------------------------

async def get_ip(db: aiosqlite.Connection, ip: str) -> dict[str, Any] | None:
    """Return the highest-priority intelligence row for an exact IP."""
    return await _fetchone(
        db,
        """SELECT udger_crawler_list.id AS crawler_id,
                  ip_last_seen, ip_hostname, ip_country, ip_city, ip_country_code,
                  ip_classification, ip_classification_code,
                  name AS crawler_name,
                  ver AS crawler_ver,
                  ver_major AS crawler_ver_major,
                  last_seen AS crawler_last_seen,
                  respect_robotstxt AS crawler_respect_robotstxt,
                  family AS crawler_family,
                  family_code AS crawler_family_code,
                  family_homepage AS crawler_family_homepage,
                  family_icon AS crawler_family_icon,
                  vendor AS crawler_family_vendor,
                  vendor_code AS crawler_family_vendor_code,
                  vendor_homepage AS crawler_family_vendor_homepage,
                  crawler_classification AS crawler_category,
                  crawler_classification_code AS crawler_category_code
           FROM udger_ip_list
           JOIN udger_ip_class ON udger_ip_class.id = udger_ip_list.class_id
           LEFT JOIN udger_crawler_list ON udger_crawler_list.id = udger_ip_list.crawler_id
           LEFT JOIN udger_crawler_class ON udger_crawler_class.id = udger_crawler_list.class_id
           WHERE ip = ?
           ORDER BY udger_ip_class.sequence""",
        (ip,),
    )


async def get_datacenter_for_ipv4(
    db: aiosqlite.Connection, ip_long: int
) -> dict[str, Any] | None:
    """Return the datacenter whose IPv4 range contains *ip_long*."""
    return await _fetchone(
        db,
        """SELECT name AS datacenter_name,
                  name_code AS datacenter_name_code,
                  homepage AS datacenter_homepage
           FROM udger_datacenter_range
           JOIN udger_datacenter_list
             ON udger_datacenter_range.datacenter_id = udger_datacenter_list.id
           WHERE iplong_from <= ? AND iplong_to >= ?""",
        (ip_long, ip_long),
    )
