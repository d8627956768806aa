"""Persistence of author–book links."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from .errors import CatalogError, NotFoundError
from .models import ZERO_TIME, AuthorBook, _parse_timestamp


@contextmanager
def _database_errors(context: str | None = None) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        message = f"{context}: {exc}" if context else str(exc)
        raise CatalogError(message) from exc


class AuthorBookStore:
    """Reads and writes rows of the ``author_books`` table."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def _exists(self, table: str, row_id: int) -> bool:
        with _database_errors():
            (found,) = self._connection.execute(
                f"SELECT EXISTS(SELECT 1 FROM {table} WHERE id = ?)", (row_id,)
            ).fetchone()
        return bool(found)

    def create(self, book_id: int, author_id: int) -> AuthorBook:
        """Link an existing author to an existing book."""
        if not self._exists("books", book_id):
            raise NotFoundError("book not found")
        if not self._exists("authors", author_id):
            raise NotFoundError("author not found")
        with _database_errors():
            cursor = self._connection.execute(
                "INSERT INTO author_books (book_id, author_id) VALUES (?, ?)",
                (book_id, author_id),
            )
            row = self._connection.execute(
                "SELECT id, author_id, book_id, created_at FROM author_books WHERE id = ?",
                (cursor.lastrowid,),
            ).fetchone()
        if row is None:
            raise NotFoundError()
        link_id, stored_author_id, stored_book_id, created_at = row
        return AuthorBook(
            id=link_id,
            author_id=stored_author_id,
            book_id=stored_book_id,
            created_at=ZERO_TIME if created_at is None else _parse_timestamp(created_at),
        )

    def delete(self, book_id: int, author_id: int) -> None:
        """Remove a link; raises NotFoundError if there was none."""
        with _database_errors("error eliminando asociación"):
            cursor = self._connection.execute(
                "DELETE FROM author_books WHERE book_id = ? AND author_id = ?",
                (book_id, author_id),
            )
        if cursor.rowcount == 0:
            raise NotFoundError()