"""HTTP handlers for books, authors and the links between them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from http import HTTPStatus
from json import JSONDecoder, dumps
from typing import Any
from urllib.parse import parse_qs

from .errors import CatalogError, NotFoundError, ValidationError
from .models import Author, Book
from .services import AuthorBookService, AuthorService, BookService

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_JSON_WHITESPACE = " \t\n\r"
_DECODER = JSONDecoder()
_HTML_SAFE = str.maketrans(
    {
        "<": "\\u003c",
        ">": "\\u003e",
        "&": "\\u0026",
        "\u2028": "\\u2028",
        "\u2029": "\\u2029",
    }
)


@dataclass
class Request:
    """An incoming HTTP request, reduced to what the handlers read."""

    method: str
    path: str
    query_string: str = ""
    body: bytes = b""

    def query_param(self, name: str) -> str:
        """First value of a query parameter, or an empty string."""
        values = parse_qs(self.query_string, keep_blank_values=True).get(name)
        return values[0] if values else ""


@dataclass
class Response:
    """An HTTP response ready to be sent."""

    status: int = int(HTTPStatus.OK)
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def json(cls, payload: Any, status: int = HTTPStatus.OK) -> Response:
        """A JSON body followed by a newline, with HTML-sensitive characters escaped."""
        text = dumps(payload, ensure_ascii=False, separators=(",", ":")).translate(_HTML_SAFE)
        return cls(
            status=int(status),
            body=(text + "\n").encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def error(cls, message: str, status: int) -> Response:
        """A plain-text error message followed by a newline."""
        return cls(
            status=int(status),
            body=(message + "\n").encode("utf-8"),
            headers={
                "Content-Type": "text/plain; charset=utf-8",
                "X-Content-Type-Options": "nosniff",
            },
        )

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


def _parse_int(text: str) -> int | None:
    if not _INTEGER.fullmatch(text):
        return None
    value = int(text)
    if value < _INT64_MIN or value > _INT64_MAX:
        return None
    return value


def _decode_json(body: bytes) -> Any:
    """Decode the first JSON value of a body; raises ValueError when malformed."""
    text = body.decode("utf-8").lstrip(_JSON_WHITESPACE)
    if not text:
        raise ValueError("EOF")
    value, _ = _DECODER.raw_decode(text)
    return value


def _decode_book(body: bytes) -> Book:
    data = _decode_json(body)
    return Book() if data is None else Book.from_dict(data)


def _decode_author(body: bytes) -> Author:
    data = _decode_json(body)
    return Author() if data is None else Author.from_dict(data)


def _lookup_failure(exc: CatalogError, not_found_message: str) -> Response:
    if isinstance(exc, NotFoundError):
        return Response.error(not_found_message, HTTPStatus.NOT_FOUND)
    return Response.error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)


def _method_not_available() -> Response:
    return Response.error("Método no disponible", HTTPStatus.METHOD_NOT_ALLOWED)


class BookHandler:
    """Serves ``/books`` and ``/books/<id>``."""

    def __init__(self, service: BookService) -> None:
        self._service = service

    def handle_books(self, request: Request) -> Response:
        match request.method:
            case "GET":
                try:
                    books = self._service.get_all_books()
                except CatalogError as exc:
                    return Response.error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)
                return Response.json([book.to_dict() for book in books])
            case "POST":
                try:
                    book = _decode_book(request.body)
                except (ValueError, ValidationError) as exc:
                    return Response.error(str(exc), HTTPStatus.BAD_REQUEST)
                try:
                    created = self._service.create_book(book)
                except CatalogError as exc:
                    return Response.error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)
                return Response.json(created.to_dict(), HTTPStatus.CREATED)
            case _:
                return _method_not_available()

    def handle_book_by_id(self, request: Request) -> Response:
        book_id = _parse_int(request.path.removeprefix("/books/"))
        if book_id is None:
            return Response.error("ID inválido", HTTPStatus.BAD_REQUEST)

        match request.method:
            case "GET":
                try:
                    book = self._service.get_book_by_id(book_id)
                except CatalogError as exc:
                    return _lookup_failure(exc, "Libro no encontrado")
                return Response.json(book.to_dict())
            case "PUT":
                try:
                    book = _decode_book(request.body)
                except (ValueError, ValidationError):
                    return Response.error("input inválido", HTTPStatus.BAD_REQUEST)
                try:
                    updated = self._service.update_book(book_id, book)
                except CatalogError as exc:
                    return Response.error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)
                return Response.json(updated.to_dict())
            case "DELETE":
                try:
                    self._service.delete_book(book_id)
                except CatalogError as exc:
                    return _lookup_failure(exc, "Libro no encontrado")
                return Response(status=int(HTTPStatus.NO_CONTENT))
            case _:
                return _method_not_available()


class AuthorHandler:
    """Serves ``/authors`` and ``/authors/<id>``."""

    def __init__(self, service: AuthorService) -> None:
        self._service = service

    def handle_authors(self, request: Request) -> Response:
        match request.method:
            case "GET":
                try:
                    authors = self._service.get_all_authors()
                except CatalogError as exc:
                    return Response.error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)
                return Response.json([author.to_dict() for author in authors])
            case "POST":
                try:
                    author = _decode_author(request.body)
                except (ValueError, ValidationError) as exc:
                    return Response.error(str(exc), HTTPStatus.BAD_REQUEST)
                try:
                    created = self._service.create_author(author)
                except CatalogError as exc:
                    return Response.error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)
                return Response.json(created.to_dict(), HTTPStatus.CREATED)
            case _:
                return _method_not_available()

    def handle_author_by_id(self, request: Request) -> Response:
        author_id = _parse_int(request.path.removeprefix("/authors/"))
        if author_id is None:
            return Response.error("ID inválido", HTTPStatus.BAD_REQUEST)

        match request.method:
            case "GET":
                try:
                    author = self._service.get_author_by_id(author_id)
                except CatalogError as exc:
                    return _lookup_failure(exc, "Autor no encontrado")
                return Response.json(author.to_dict())
            case "PUT":
                try:
                    author = _decode_author(request.body)
                except (ValueError, ValidationError) as exc:
                    return Response.error(str(exc), HTTPStatus.BAD_REQUEST)
                try:
                    updated = self._service.update_author(author_id, author)
                except CatalogError as exc:
                    return Response.error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)
                return Response.json(updated.to_dict())
            case "DELETE":
                try:
                    self._service.delete_author(author_id)
                except CatalogError as exc:
                    return _lookup_failure(exc, "Autor no encontrado")
                return Response(status=int(HTTPStatus.NO_CONTENT))
            case _:
                return _method_not_available()


def _association_ids(data: Any) -> tuple[int, int]:
    """Read bookId and authorId, matching key names without regard to case."""
    if data is None:
        return 0, 0
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    ids = {"bookid": 0, "authorid": 0}
    for key, value in data.items():
        slot = key.lower()
        if slot not in ids or value is None:
            continue
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"field {key!r} must be an integer")
        if value < _INT64_MIN or value > _INT64_MAX:
            raise ValueError(f"field {key!r} is out of range")
        ids[slot] = value
    return ids["bookid"], ids["authorid"]


class AuthorBookHandler:
    """Serves ``/author-books``."""

    def __init__(self, service: AuthorBookService) -> None:
        self._service = service

    def handle_associations(self, request: Request) -> Response:
        match request.method:
            case "POST":
                return self._create(request)
            case "DELETE":
                return self._delete(request)
            case _:
                return Response.error("Método no permitido", HTTPStatus.METHOD_NOT_ALLOWED)

    def _create(self, request: Request) -> Response:
        try:
            book_id, author_id = _association_ids(_decode_json(request.body))
        except ValueError:
            return Response.error("JSON inválido", HTTPStatus.BAD_REQUEST)
        try:
            association = self._service.associate(book_id, author_id)
        except CatalogError as exc:
            message = str(exc)
            if "no encontrado" in message:
                status = HTTPStatus.NOT_FOUND
            elif "ya existe" in message:
                status = HTTPStatus.CONFLICT
            else:
                status = HTTPStatus.BAD_REQUEST
            return Response.error(message, status)
        return Response.json(association.to_dict(), HTTPStatus.CREATED)

    def _delete(self, request: Request) -> Response:
        book_text = request.query_param("bookId")
        author_text = request.query_param("authorId")
        if not book_text or not author_text:
            return Response.error(
                "Faltan parámetros bookId o authorId", HTTPStatus.BAD_REQUEST
            )
        book_id = _parse_int(book_text)
        if book_id is None:
            return Response.error("bookId inválido", HTTPStatus.BAD_REQUEST)
        author_id = _parse_int(author_text)
        if author_id is None:
            return Response.error("authorId inválido", HTTPStatus.BAD_REQUEST)
        try:
            self._service.dissociate(book_id, author_id)
        except CatalogError as exc:
            message = str(exc)
            if "no encontrado" in message or "no encontrada" in message:
                return Response.error("Asociación no encontrada", HTTPStatus.NOT_FOUND)
            return Response.error(message, HTTPStatus.INTERNAL_SERVER_ERROR)
        return Response(status=int(HTTPStatus.NO_CONTENT))