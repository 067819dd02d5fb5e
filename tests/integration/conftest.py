# tests/integration/conftest.py
import pathlib
import sqlite3

import aiosqlite
import pytest
import pytest_asyncio

from udger_local_parser.db.schema import SCHEMA_SQL, create_all_tables
from udger_local_parser.parser import UdgerParser
from udger_local_parser.patterns import PatternStore

# Regex table rowids are not in sequence order.
SEED_SQL = """
INSERT INTO udger_db_info (key, version, information, lastupdate)
VALUES (1, '20260101-01', 'test fixture', '2026-01-01 00:00:00');

INSERT INTO udger_crawler_class (id, crawler_classification, crawler_classification_code)
VALUES (1, 'Search engine bot', 'search_engine_bot');

INSERT INTO udger_crawler_list
    (id, ua_string, name, ver, ver_major, last_seen, respect_robotstxt,
     family, family_code, family_homepage, family_icon,
     vendor, vendor_code, vendor_homepage, class_id)
VALUES
    (1357, 'Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)',
     'Googlebot/2.1', '2.1', '2', '2026-01-01 10:00:00', 'yes',
     'Googlebot', 'googlebot', 'http://www.google.com/bot.html', 'bot_googlebot.png',
     'Google Inc.', 'google_inc', 'https://about.google/', 1);

INSERT INTO udger_deviceclass_list (id, name, name_code, icon, icon_big) VALUES
    (1, 'Personal computer', 'desktop', 'desktop.png', 'desktop_big.png'),
    (3, 'Smartphone', 'smartphone', 'phone.png', 'phone_big.png'),
    (4, 'Tablet', 'tablet', 'tablet.png', 'tablet_big.png');

INSERT INTO udger_client_class (id, client_classification, client_classification_code, deviceclass_id) VALUES
    (1, 'Browser', 'browser', 1),
    (3, 'Mobile browser', 'mobile_browser', 3),
    (5, 'Mobile app', 'mobile_app', 3);

INSERT INTO udger_client_list
    (id, class_id, name, name_code, homepage, icon, icon_big, engine,
     vendor, vendor_code, vendor_homepage, uptodate_current_version)
VALUES
    (10, 1, 'Firefox', 'firefox', 'https://www.mozilla.org/', 'firefox.png', 'firefox_big.png',
     'Gecko', 'Mozilla Foundation', 'mozilla_foundation', 'https://www.mozilla.org/', '121'),
    (11, 1, 'Chrome', 'chrome', 'https://www.google.com/chrome/', 'chrome.png', 'chrome_big.png',
     'WebKit/Blink', 'Google Inc.', 'google_inc', 'https://www.google.com/about/company/', '121'),
    (12, 3, 'Chrome Mobile', 'chrome_mobile', 'https://www.google.com/chrome/', 'chrome.png',
     'chrome_big.png', 'WebKit/Blink', 'Google Inc.', 'google_inc',
     'https://www.google.com/about/company/', '121'),
    (13, 5, 'AcmeApp', 'acmeapp', 'https://acme.example/', 'acme.png', '',
     '', 'Acme Corp', 'acme_corp', 'https://acme.example/', '');

INSERT INTO udger_client_regex_words (id, word) VALUES
    (1, 'Firefox'),
    (2, 'chrome'),
    (3, 'mobile'),
    (4, 'neverused');

INSERT INTO udger_client_regex (rowid, client_id, regstring, word_id, word2_id, sequence) VALUES
    (1, 10, '/mozilla.*firefox\\/([0-9a-z\\+\\-\\.]+).*/si', 1, 0, 1),
    (2, 11, '/chrome\\/([0-9.]+)/si', 2, 0, 3),
    (3, 12, '/chrome\\/([0-9.]+) mobile/si', 2, 3, 2),
    (4, 13, '/acmeapp/si', 0, 0, 4);

INSERT INTO udger_os_list
    (id, family, family_code, name, name_code, homepage, icon, icon_big,
     vendor, vendor_code, vendor_homepage)
VALUES
    (1, 'Windows', 'windows', 'Windows 10', 'windows_10', 'https://www.microsoft.com/windows/',
     'windows10.png', 'windows10_big.png', 'Microsoft Corporation.', 'microsoft_corporation',
     'https://www.microsoft.com/about/'),
    (2, 'Android', 'android', 'Android', 'android', 'https://www.android.com/',
     'android.png', 'android_big.png', 'Google, Inc.', 'google_inc', 'https://www.google.com/'),
    (3, 'iOS', 'ios', 'iOS', 'ios', 'https://www.apple.com/ios/',
     'ios.png', 'ios_big.png', 'Apple Inc.', 'apple_inc', 'https://www.apple.com/');

INSERT INTO udger_os_regex_words (id, word) VALUES
    (1, 'windows nt'),
    (2, 'android');

INSERT INTO udger_os_regex (rowid, os_id, regstring, word_id, word2_id, sequence) VALUES
    (1, 1, '/windows nt 10\\.0/si', 1, 0, 1),
    (2, 2, '/android/si', 2, 0, 2);

INSERT INTO udger_client_os_relation (client_id, os_id) VALUES (13, 3);

INSERT INTO udger_deviceclass_regex_words (id, word) VALUES
    (1, 'mobile'),
    (2, 'tablet');

INSERT INTO udger_deviceclass_regex (rowid, deviceclass_id, regstring, word_id, word2_id, sequence) VALUES
    (1, 3, '/mobile/si', 1, 0, 2),
    (2, 4, '/tablet/si', 2, 0, 1);

INSERT INTO udger_devicename_brand (id, brand_code, brand, brand_url, icon, icon_big) VALUES
    (1, 'google', 'Google', 'https://store.google.com/', 'google.png', 'google_big.png');

INSERT INTO udger_devicename_regex (id, os_family_code, os_code, regstring, sequence) VALUES
    (1, 'android', '-all-', '/; ?([^;]+?) Build/si', 1),
    (2, 'android', '-all-', '', 2);

INSERT INTO udger_devicename_list (regex_id, code, marketname, brand_id, deviceclass_id) VALUES
    (1, 'Pixel 7', 'Pixel 7', 1, 3),
    (2, 'Pixel 7', 'Pixel 7', 1, 3),
    (2, 'Pixel Tablet', 'Pixel Tablet', 1, 4);

INSERT INTO udger_client_ch_regex (client_id, regstring, mobile, sequence) VALUES
    (11, '/"Google Chrome";v="([0-9.]+)"/si', '0', 1),
    (12, '/"Google Chrome";v="([0-9.]+)"/si', '1', 1);

INSERT INTO udger_os_ch_regex (os_id, regstring, version, sequence) VALUES
    (1, '/^"?Windows"?$/si', '', 1),
    (2, '/^"?Android"?$/si', '', 1),
    (2, '/^"?Android"?$/si', '14.0.0', 1);

INSERT INTO udger_deviceclass_ch (deviceclass_id, mobile) VALUES
    (1, '0'),
    (3, '1');

INSERT INTO udger_ip_class (id, ip_classification, ip_classification_code, sequence) VALUES
    (1, 'Crawler', 'crawler', 1),
    (2, 'Unrecognized', 'unrecognized', 2);

INSERT INTO udger_ip_list
    (ip, class_id, crawler_id, ip_last_seen, ip_hostname, ip_country, ip_city, ip_country_code)
VALUES
    ('66.249.66.1', 1, 1357, '2026-01-01 09:00:00', 'crawl-66-249-66-1.googlebot.com',
     'United States', 'Mountain View', 'US'),
    ('66.249.66.1', 2, NULL, '2025-06-01 09:00:00', 'stale.example', 'Unknown', '', ''),
    ('2001:db8::1', 2, NULL, '2026-01-01 09:00:00', 'v6.example', 'Germany', 'Berlin', 'DE');

INSERT INTO udger_datacenter_list (id, name, name_code, homepage) VALUES
    (1, 'Example DC', 'example_dc', 'https://dc.example/');

INSERT INTO udger_datacenter_range (datacenter_id, ip_from, ip_to, iplong_from, iplong_to) VALUES
    (1, '8.8.8.0', '8.8.8.255', 134744064, 134744319);
"""


async def seed_reference_data(conn: aiosqlite.Connection) -> None:
    """Create the schema and load the test reference data."""
    await create_all_tables(conn)
    await conn.executescript(SEED_SQL)
    await conn.commit()


@pytest_asyncio.fixture
async def db():
    """Create an in-memory reference database with the test signatures."""
    conn = await aiosqlite.connect(":memory:")
    await seed_reference_data(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def patterns(db) -> PatternStore:
    return await PatternStore.load(db)


@pytest_asyncio.fixture
async def parser(db) -> UdgerParser:
    """A parser over the shared in-memory database (closed with the db fixture)."""
    return await UdgerParser.from_connection(db)


@pytest.fixture
def db_file(tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the test reference data to a database file and return its path."""
    path = tmp_path / "udgerdb_v4.dat"
    conn = sqlite3.connect(path)
    conn.executescript(SCHEMA_SQL)
    conn.executescript(SEED_SQL)
    conn.commit()
    conn.close()
    return path
