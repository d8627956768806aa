"""Persistence of books."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .errors import CatalogError, NotFoundError
from .models import ZERO_TIME, Author, Book, _parse_timestamp

_SELECT_BOOKS = "SELECT id, title, publication_year, isbn, created_at FROM books"

_SELECT_BOOK_AUTHORS = """
    SELECT a.id, a.name, a.biography, a.country, a.created_at
    FROM authors a
    INNER JOIN author_books ab ON a.id = ab.author_id
    WHERE ab.book_id = ?
"""


@contextmanager
def _database_errors(context: str | None = None) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        message = f"{context}: {exc}" if context else str(exc)
        raise CatalogError(message) from exc


def _timestamp(value: Any):
    return ZERO_TIME if value is None else _parse_timestamp(value)


def _book_from_row(row: tuple) -> Book:
    book_id, title, publication_year, isbn, created_at = row
    return Book(
        id=book_id,
        title=title,
        publication_year=publication_year,
        isbn=isbn,
        created_at=_timestamp(created_at),
    )


def _author_from_row(row: tuple) -> Author:
    author_id, name, biography, country, created_at = row
    return Author(
        id=author_id,
        name=name,
        biography=biography,
        country=country,
        created_at=_timestamp(created_at),
    )


class BookStore:
    """Reads and writes books in the ``books`` table."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def get_all(self) -> list[Book]:
        """Every book, without authors."""
        with _database_errors():
            rows = self._connection.execute(_SELECT_BOOKS).fetchall()
        return [_book_from_row(row) for row in rows]

    def get_by_id(self, book_id: int) -> Book:
        """One book with its authors; raises NotFoundError if absent."""
        with _database_errors("error consultando libro"):
            row = self._connection.execute(
                f"{_SELECT_BOOKS} WHERE id = ?", (book_id,)
            ).fetchone()
        if row is None:
            raise NotFoundError()
        book = _book_from_row(row)
        with _database_errors("error consultando autores del libro"):
            author_rows = self._connection.execute(_SELECT_BOOK_AUTHORS, (book_id,)).fetchall()
        book.authors = [_author_from_row(author_row) for author_row in author_rows]
        return book

    def create(self, book: Book) -> Book:
        """Insert a book and return it as stored."""
        with _database_errors("error creando libro"):
            cursor = self._connection.execute(
                "INSERT INTO books (title, publication_year, isbn) VALUES (?, ?, ?)",
                (book.title, book.publication_year, book.isbn),
            )
        return self.get_by_id(cursor.lastrowid)

    def update(self, book_id: int, book: Book) -> Book:
        """Overwrite a book's fields and return it as stored."""
        with _database_errors("error actualizando libro"):
            self._connection.execute(
                "UPDATE books SET title = ?, publication_year = ?, isbn = ? WHERE id = ?",
                (book.title, book.publication_year, book.isbn, book_id),
            )
        return self.get_by_id(book_id)

    def delete(self, book_id: int) -> None:
        """Remove a book; raises NotFoundError if nothing was deleted."""
        with _database_errors("error eliminando libro"):
            cursor = self._connection.execute("DELETE FROM books WHERE id = ?", (book_id,))
        if cursor.rowcount == 0:
            raise NotFoundError()