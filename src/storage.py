"""
Storage Module

SQLite store of development applications keyed by application number.
Rows are only ever inserted: an application already present is left as it
was first recorded.
"""

import logging
import sqlite3
from pathlib import Path

from parse_record import ParsedRecord

logger = logging.getLogger(__name__)


def connect_database(db_path: str | Path) -> sqlite3.Connection:
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), timeout=5.0)
    conn.row_factory = sqlite3.Row
    ensure_schema(conn)
    return conn


def ensure_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS data (
          council_reference TEXT PRIMARY KEY,
          address TEXT,
          description TEXT,
          info_url TEXT,
          comment_url TEXT,
          date_scraped TEXT,
          date_received TEXT
        );
        """
    )
    conn.commit()


def insert_record(conn: sqlite3.Connection, record: ParsedRecord) -> bool:
    """
    Insert an application unless its number is already stored.

    Returns:
        True if a row was inserted, False if it was already present
    """
    cursor = conn.execute(
        "INSERT OR IGNORE INTO data VALUES (?, ?, ?, ?, ?, ?, ?)",
        (
            record.application_number,
            record.address,
            record.description,
            record.information_url,
            record.comment_url,
            record.scrape_date,
            record.received_date,
        ),
    )
    conn.commit()

    inserted = cursor.rowcount > 0
    if inserted:
        logger.info(
            f"Inserted: application \"{record.application_number}\" with address \"{record.address}\", "
            f"description \"{record.description}\" and received date \"{record.received_date}\""
        )
    else:
        logger.info(
            f"Skipped: application \"{record.application_number}\" with address \"{record.address}\" "
            "because it was already present in the database"
        )
    return inserted


def insert_records(conn: sqlite3.Connection, records: list[ParsedRecord]) -> dict:
    """Insert several applications; returns inserted/skipped counts."""
    counts = {"inserted": 0, "skipped": 0}
    for record in records:
        if insert_record(conn, record):
            counts["inserted"] += 1
        else:
            counts["skipped"] += 1
    return counts
