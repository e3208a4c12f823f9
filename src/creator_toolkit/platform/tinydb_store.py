"""Shared TinyDB handle and lock.

Jobs and credits live in one JSON file and TinyDB rewrites the whole file on
every write, so every storage module serializes through the same lock.
"""

import threading

from tinydb import TinyDB

from creator_toolkit.platform.config import get_settings

db_lock = threading.Lock()


def open_db(db: TinyDB | None = None) -> TinyDB:
    """Return ``db`` or the database at the configured path."""
    if db is not None:
        return db
    return TinyDB(get_settings().tinydb_path)
