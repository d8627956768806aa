"""Business rules in front of the stores."""

from __future__ import annotations

from .author_book_store import AuthorBookStore
from .author_store import AuthorStore
from .book_store import BookStore
from .errors import ValidationError
from .models import Author, AuthorBook, Book


class BookService:
    """Operations on books."""

    def __init__(self, store: BookStore) -> None:
        self.store = store

    def get_all_books(self) -> list[Book]:
        return self.store.get_all()

    def get_book_by_id(self, book_id: int) -> Book:
        return self.store.get_by_id(book_id)

    def create_book(self, book: Book) -> Book:
        """Create a book; the title must not be empty."""
        if book.title == "":
            raise ValidationError("error: the title cannot be empty")
        return self.store.create(book)

    def update_book(self, book_id: int, book: Book) -> Book:
        return self.store.update(book_id, book)

    def delete_book(self, book_id: int) -> None:
        self.store.delete(book_id)


class AuthorService:
    """Operations on authors."""

    def __init__(self, store: AuthorStore) -> None:
        self.store = store

    def get_all_authors(self) -> list[Author]:
        return self.store.get_all()

    def get_author_by_id(self, author_id: int) -> Author:
        return self.store.get_by_id(author_id)

    def create_author(self, author: Author) -> Author:
        """Create an author; the name must not be empty."""
        if author.name == "":
            raise ValidationError("error: the name cannot be empty")
        return self.store.create(author)

    def update_author(self, author_id: int, author: Author) -> Author:
        return self.store.update(author_id, author)

    def delete_author(self, author_id: int) -> None:
        self.store.delete(author_id)


def _check_ids(book_id: int, author_id: int) -> None:
    if book_id <= 0:
        raise ValidationError("bookId inválido")
    if author_id <= 0:
        raise ValidationError("authorId inválido")


class AuthorBookService:
    """Linking and unlinking authors and books."""

    def __init__(self, store: AuthorBookStore) -> None:
        self._store = store

    def associate(self, book_id: int, author_id: int) -> AuthorBook:
        """Link an author to a book; both ids must be positive."""
        _check_ids(book_id, author_id)
        return self._store.create(book_id, author_id)

    def dissociate(self, book_id: int, author_id: int) -> None:
        """Remove a link; both ids must be positive."""
        _check_ids(book_id, author_id)
        self._store.delete(book_id, author_id)