"""SQLite schema of the Udger v4 reference tables read by the parser.

The production database is downloaded from the vendor and opened read-only;
this DDL mirrors the columns the parser queries so that tests and local
tooling can build small databases with the same shape.
"""

from __future__ import annotations

# Signature axes: (axis name, regex table, keyword table)
SIGNATURE_TABLES: list[tuple[str, str, str]] = [
    ("client", "udger_client_regex", "udger_client_regex_words"),
    ("os", "udger_os_regex", "udger_os_regex_words"),
    ("device", "udger_deviceclass_regex", "udger_deviceclass_regex_words"),
]

# All table names the parser reads
_TABLE_NAMES: list[str] = [
    "udger_db_info",
    "udger_crawler_list",
    "udger_crawler_class",
    "udger_client_regex",
    "udger_client_regex_words",
    "udger_client_list",
    "udger_client_class",
    "udger_client_os_relation",
    "udger_os_regex",
    "udger_os_regex_words",
    "udger_os_list",
    "udger_deviceclass_regex",
    "udger_deviceclass_regex_words",
    "udger_deviceclass_list",
    "udger_devicename_regex",
    "udger_devicename_list",
    "udger_devicename_brand",
    "udger_client_ch_regex",
    "udger_os_ch_regex",
    "udger_deviceclass_ch",
    "udger_ip_list",
    "udger_ip_class",
    "udger_datacenter_list",
    "udger_datacenter_range",
]

# Tables without which no classification can run
REQUIRED_TABLES: list[str] = [regex for _, regex, _ in SIGNATURE_TABLES] + [
    words for _, _, words in SIGNATURE_TABLES
]


def get_all_table_names() -> list[str]:
    """Return the list of all table names read by the parser."""
    return list(_TABLE_NAMES)


async def create_all_tables(db) -> None:
    """Create every reference table on an empty database."""
    await db.executescript(SCHEMA_SQL)
    await db.commit()


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS udger_db_info (
    key INTEGER PRIMARY KEY,
    version TEXT,
    information TEXT,
    lastupdate TEXT
);

-- Crawlers (exact UA string match)
CREATE TABLE IF NOT EXISTS udger_crawler_class (
    id INTEGER PRIMARY KEY,
    crawler_classification TEXT,
    crawler_classification_code TEXT
);

CREATE TABLE IF NOT EXISTS udger_crawler_list (
    id INTEGER PRIMARY KEY,
    ua_string TEXT,
    name TEXT,
    ver TEXT,
    ver_major TEXT,
    last_seen TEXT,
    respect_robotstxt TEXT,
    family TEXT,
    family_code TEXT,
    family_homepage TEXT,
    family_icon TEXT,
    vendor TEXT,
    vendor_code TEXT,
    vendor_homepage TEXT,
    class_id INTEGER
);
CREATE INDEX IF NOT EXISTS idx_crawler_ua ON udger_crawler_list(ua_string);

-- Clients
CREATE TABLE IF NOT EXISTS udger_client_class (
    id INTEGER PRIMARY KEY,
    client_classification TEXT,
    client_classification_code TEXT,
    deviceclass_id INTEGER
);

CREATE TABLE IF NOT EXISTS udger_client_list (
    id INTEGER PRIMARY KEY,
    class_id INTEGER,
    name TEXT,
    name_code TEXT,
    homepage TEXT,
    icon TEXT,
    icon_big TEXT,
    engine TEXT,
    vendor TEXT,
    vendor_code TEXT,
    vendor_homepage TEXT,
    uptodate_current_version TEXT
);

CREATE TABLE IF NOT EXISTS udger_client_regex (
    client_id INTEGER,
    regstring TEXT,
    word_id INTEGER,
    word2_id INTEGER,
    sequence INTEGER
);

CREATE TABLE IF NOT EXISTS udger_client_regex_words (
    id INTEGER PRIMARY KEY,
    word TEXT
);

CREATE TABLE IF NOT EXISTS udger_client_os_relation (
    client_id INTEGER,
    os_id INTEGER
);

-- Operating systems
CREATE TABLE IF NOT EXISTS udger_os_list (
    id INTEGER PRIMARY KEY,
    family TEXT,
    family_code TEXT,
    name TEXT,
    name_code TEXT,
    homepage TEXT,
    icon TEXT,
    icon_big TEXT,
    vendor TEXT,
    vendor_code TEXT,
    vendor_homepage TEXT
);

CREATE TABLE IF NOT EXISTS udger_os_regex (
    os_id INTEGER,
    regstring TEXT,
    word_id INTEGER,
    word2_id INTEGER,
    sequence INTEGER
);

CREATE TABLE IF NOT EXISTS udger_os_regex_words (
    id INTEGER PRIMARY KEY,
    word TEXT
);

-- Device classes
CREATE TABLE IF NOT EXISTS udger_deviceclass_list (
    id INTEGER PRIMARY KEY,
    name TEXT,
    name_code TEXT,
    icon TEXT,
    icon_big TEXT
);

CREATE TABLE IF NOT EXISTS udger_deviceclass_regex (
    deviceclass_id INTEGER,
    regstring TEXT,
    word_id INTEGER,
    word2_id INTEGER,
    sequence INTEGER
);

CREATE TABLE IF NOT EXISTS udger_deviceclass_regex_words (
    id INTEGER PRIMARY KEY,
    word TEXT
);

-- Device brands and market names
CREATE TABLE IF NOT EXISTS udger_devicename_regex (
    id INTEGER PRIMARY KEY,
    os_family_code TEXT,
    os_code TEXT,
    regstring TEXT,
    sequence INTEGER
);

CREATE TABLE IF NOT EXISTS udger_devicename_brand (
    id INTEGER PRIMARY KEY,
    brand_code TEXT,
    brand TEXT,
    brand_url TEXT,
    icon TEXT,
    icon_big TEXT
);

CREATE TABLE IF NOT EXISTS udger_devicename_list (
    regex_id INTEGER,
    code TEXT,
    marketname TEXT,
    brand_id INTEGER,
    deviceclass_id INTEGER
);
CREATE INDEX IF NOT EXISTS idx_devicename_code ON udger_devicename_list(regex_id, code);

-- Client Hints
CREATE TABLE IF NOT EXISTS udger_client_ch_regex (
    client_id INTEGER,
    regstring TEXT,
    mobile TEXT,
    sequence INTEGER
);

CREATE TABLE IF NOT EXISTS udger_os_ch_regex (
    os_id INTEGER,
    regstring TEXT,
    version TEXT,
    sequence INTEGER
);

CREATE TABLE IF NOT EXISTS udger_deviceclass_ch (
    deviceclass_id INTEGER,
    mobile TEXT
);

-- IP intelligence
CREATE TABLE IF NOT EXISTS udger_ip_class (
    id INTEGER PRIMARY KEY,
    ip_classification TEXT,
    ip_classification_code TEXT,
    sequence INTEGER
);

CREATE TABLE IF NOT EXISTS udger_ip_list (
    ip TEXT,
    class_id INTEGER,
    crawler_id INTEGER,
    ip_last_seen TEXT,
    ip_hostname TEXT,
    ip_country TEXT,
    ip_city TEXT,
    ip_country_code TEXT
);
CREATE INDEX IF NOT EXISTS idx_ip_list_ip ON udger_ip_list(ip);

CREATE TABLE IF NOT EXISTS udger_datacenter_list (
    id INTEGER PRIMARY KEY,
    name TEXT,
    name_code TEXT,
    homepage TEXT
);

CREATE TABLE IF NOT EXISTS udger_datacenter_range (
    datacenter_id INTEGER,
    ip_from TEXT,
    ip_to TEXT,
    iplong_from INTEGER,
    iplong_to INTEGER
);
CREATE INDEX IF NOT EXISTS idx_datacenter_range ON udger_datacenter_range(iplong_from, iplong_to);
"""
