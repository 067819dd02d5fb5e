"""Opening the reference database."""

from __future__ import annotations

import logging
import pathlib

import aiosqlite

from udger_local_parser.db.queries import list_tables
from udger_local_parser.db.schema import REQUIRED_TABLES
from udger_local_parser.errors import DatabaseUnavailableError

logger = logging.getLogger(__name__)


async def open_database(db_path: pathlib.Path) -> aiosqlite.Connection:
    """Open the Udger SQLite database read-only.

    Raises
    ------
    DatabaseUnavailableError:
        If the file does not exist, cannot be opened as SQLite, or lacks
        the signature tables.
    """
    if not db_path.is_file():
        raise DatabaseUnavailableError(f"Data file {db_path} not found")

    try:
        db = await aiosqlite.connect(f"{db_path.resolve().as_uri()}?mode=ro", uri=True)
    except aiosqlite.Error as exc:
        raise DatabaseUnavailableError(f"Cannot open {db_path}: {exc}") from exc

    try:
        await check_database(db)
    except DatabaseUnavailableError:
        await db.close()
        raise

    logger.info("Opened reference database %s", db_path)
    return db


async def check_database(db: aiosqlite.Connection) -> None:
    """Verify that *db* holds the tables the parser cannot run without."""
    try:
        tables = await list_tables(db)
    except aiosqlite.Error as exc:
        raise DatabaseUnavailableError(f"Not a readable SQLite database: {exc}") from exc

    missing = [name for name in REQUIRED_TABLES if name not in tables]
    if missing:
        raise DatabaseUnavailableError(
            f"Reference database is missing tables: {', '.join(missing)}"
        )
