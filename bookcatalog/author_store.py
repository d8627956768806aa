"""Persistence of authors."""

from __future__ import annotations

import sqlite3
from dataclasses import replace

from .book_store import _author_from_row, _book_from_row, _database_errors
from .errors import NotFoundError
from .models import ZERO_TIME, Author, _parse_timestamp

_SELECT_AUTHORS = "SELECT id, name, biography, country, created_at FROM authors"

_SELECT_AUTHOR_BOOKS = """
    SELECT b.id, b.title, b.publication_year, b.isbn, b.created_at
    FROM books b
    JOIN author_books ab ON b.id = ab.book_id
    WHERE ab.author_id = ?
"""


class AuthorStore:
    """Reads and writes authors in the ``authors`` table."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def get_all(self) -> list[Author]:
        """Every author, without books."""
        with _database_errors():
            rows = self._connection.execute(_SELECT_AUTHORS).fetchall()
        return [_author_from_row(row) for row in rows]

    def get_by_id(self, author_id: int) -> Author:
        """One author with their books; raises NotFoundError if absent."""
        with _database_errors("error consultando autor"):
            row = self._connection.execute(
                f"{_SELECT_AUTHORS} WHERE id = ?", (author_id,)
            ).fetchone()
        if row is None:
            raise NotFoundError()
        author = _author_from_row(row)
        with _database_errors("error consultando libros del autor"):
            book_rows = self._connection.execute(
                _SELECT_AUTHOR_BOOKS, (author_id,)
            ).fetchall()
        author.books = [_book_from_row(book_row) for book_row in book_rows]
        return author

    def create(self, author: Author) -> Author:
        """Insert an author and return it with its id and creation time."""
        with _database_errors("error insertando autor"):
            cursor = self._connection.execute(
                "INSERT INTO authors (name, biography, country) VALUES (?, ?, ?)",
                (author.name, author.biography, author.country),
            )
        new_id = cursor.lastrowid
        with _database_errors("error obteniendo created_at del autor insertado"):
            row = self._connection.execute(
                "SELECT created_at FROM authors WHERE id = ?", (new_id,)
            ).fetchone()
        if row is None:
            raise NotFoundError()
        (created_at,) = row
        return replace(
            author,
            id=new_id,
            created_at=ZERO_TIME if created_at is None else _parse_timestamp(created_at),
        )

    def update(self, author_id: int, author: Author) -> Author:
        """Overwrite an author's fields and return it as stored."""
        with _database_errors("error actualizando autor"):
            self._connection.execute(
                "UPDATE authors SET name = ?, biography = ?, country = ? WHERE id = ?",
                (author.name, author.biography, author.country, author_id),
            )
        return self.get_by_id(author_id)

    def delete(self, author_id: int) -> None:
        """Remove an author; raises NotFoundError if nothing was deleted."""
        with _database_errors("error eliminando autor"):
            cursor = self._connection.execute(
                "DELETE FROM authors WHERE id = ?", (author_id,)
            )
        if cursor.rowcount == 0:
            raise NotFoundError()