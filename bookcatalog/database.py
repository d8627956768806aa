"""Opening, closing and migrating the SQLite database."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from .errors import CatalogError

CREATE_BOOKS_TABLE = """
    CREATE TABLE IF NOT EXISTS books (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        publication_year INTEGER,
        isbn TEXT UNIQUE,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
"""

CREATE_AUTHORS_TABLE = """
    CREATE TABLE IF NOT EXISTS authors (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        biography TEXT,
        country TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
"""

CREATE_AUTHOR_BOOKS_TABLE = """
    CREATE TABLE IF NOT EXISTS author_books (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        author_id INTEGER NOT NULL,
        book_id INTEGER NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,

        FOREIGN KEY (author_id) REFERENCES authors(id) ON DELETE CASCADE,
        FOREIGN KEY (book_id) REFERENCES books(id) ON DELETE CASCADE,

        UNIQUE (author_id, book_id)
    )
"""

MIGRATIONS = (CREATE_BOOKS_TABLE, CREATE_AUTHORS_TABLE, CREATE_AUTHOR_BOOKS_TABLE)


@dataclass(frozen=True)
class Config:
    """Where the database lives."""

    database_path: str = "./books.db"


def connect(config: Config) -> sqlite3.Connection:
    """Open the database in autocommit mode and check that it answers."""
    try:
        connection = sqlite3.connect(
            config.database_path, isolation_level=None, check_same_thread=False
        )
    except sqlite3.Error as exc:
        raise CatalogError(f"error abriendo base de datos: {exc}") from exc
    try:
        connection.execute("SELECT 1").fetchone()
    except sqlite3.Error as exc:
        connection.close()
        raise CatalogError(f"error conectando a la base de datos: {exc}") from exc
    return connection


def close(connection: sqlite3.Connection) -> None:
    """Close the database; closing twice is harmless."""
    try:
        connection.close()
    except sqlite3.Error as exc:
        raise CatalogError(f"error cerrando base de datos: {exc}") from exc


def run_migrations(connection: sqlite3.Connection) -> None:
    """Create the catalog tables if they do not exist yet."""
    for number, migration in enumerate(MIGRATIONS, start=1):
        try:
            connection.execute(migration)
        except sqlite3.Error as exc:
            raise CatalogError(f"error ejecutando migración {number}: {exc}") from exc