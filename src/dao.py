from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path
from typing import List, Tuple


logger = logging.getLogger(__name__)

TestRow = Tuple[int, str, str]  # (id, text1, text2)

CREATE_TABLE_SQL = """CREATE TABLE testdata (
    "id" integer NOT NULL PRIMARY KEY AUTOINCREMENT,
    "text1" TEXT,
    "text2" TEXT
)"""
DROP_TABLE_SQL = "DROP TABLE testdata"
INSERT_SQL = "INSERT INTO testdata(text1, text2) VALUES (?, ?)"
SAMPLE_SQL = "SELECT id, text1, text2 FROM testdata LIMIT ?"


def get_connection(db_path: str, timeout: float = 5.0) -> sqlite3.Connection:
    """Open a connection that may be shared by the insert worker threads.

    Autocommit mode (isolation_level=None) so every insert is its own
    transaction and no thread has to coordinate commits.
    """
    return sqlite3.connect(
        db_path,
        timeout=timeout,
        isolation_level=None,
        check_same_thread=False,
    )


def remove_db_file(db_path: str) -> bool:
    """Delete the database file. Returns False when nothing was deleted.

    Removal errors are logged and ignored; an unusable path surfaces later
    when the file is recreated.
    """
    try:
        os.remove(db_path)
    except FileNotFoundError:
        logger.info("no database file present.")
        return False
    except OSError as e:
        logger.warning("could not remove database file %s: %s", db_path, e)
        return False
    return True


def create_db_file(db_path: str) -> str:
    """Create (or truncate) an empty database file."""
    logger.info("Creating %s...", db_path)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    with open(db_path, "wb"):
        pass
    logger.info("%s created", db_path)
    return db_path


def create_table(conn: sqlite3.Connection) -> None:
    logger.info("Create test table...")
    conn.execute(CREATE_TABLE_SQL)
    logger.info("test table created")


def drop_table(conn: sqlite3.Connection) -> None:
    logger.info("drop test table...")
    conn.execute(DROP_TABLE_SQL)
    logger.info("test table dropped.")


def insert_test_row(conn: sqlite3.Connection, text1: str, text2: str) -> int:
    cur = conn.execute(INSERT_SQL, (text1, text2))
    return cur.lastrowid


def fetch_sample(conn: sqlite3.Connection, limit: int = 10) -> List[TestRow]:
    cur = conn.execute(SAMPLE_SQL, (limit,))
    try:
        return [(int(r[0]), r[1], r[2]) for r in cur.fetchall()]
    finally:
        cur.close()
