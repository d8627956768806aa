"""Wiring of the catalog and its WSGI entry point."""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any
from wsgiref.simple_server import make_server

from . import database
from .author_book_store import AuthorBookStore
from .author_store import AuthorStore
from .book_store import BookStore
from .errors import CatalogError
from .handlers import AuthorBookHandler, AuthorHandler, BookHandler, Request, Response
from .services import AuthorBookService, AuthorService, BookService

DEFAULT_PORT = 8080


@dataclass
class Container:
    """Every store, service and handler of the application."""

    book_store: BookStore
    author_store: AuthorStore
    author_book_store: AuthorBookStore
    book_service: BookService
    author_service: AuthorService
    author_book_service: AuthorBookService
    book_handler: BookHandler
    author_handler: AuthorHandler
    author_book_handler: AuthorBookHandler


def build_container(connection) -> Container:
    """Build every dependency on top of one database connection."""
    book_store = BookStore(connection)
    author_store = AuthorStore(connection)
    author_book_store = AuthorBookStore(connection)

    book_service = BookService(book_store)
    author_service = AuthorService(author_store)
    author_book_service = AuthorBookService(author_book_store)

    return Container(
        book_store=book_store,
        author_store=author_store,
        author_book_store=author_book_store,
        book_service=book_service,
        author_service=author_service,
        author_book_service=author_book_service,
        book_handler=BookHandler(book_service),
        author_handler=AuthorHandler(author_service),
        author_book_handler=AuthorBookHandler(author_book_service),
    )


def health_check(request: Request) -> Response:
    """Report that the server is up."""
    if request.method != "GET":
        return Response.error("Method Not Allowed", HTTPStatus.METHOD_NOT_ALLOWED)
    return Response(
        status=int(HTTPStatus.OK),
        body=b'{"status":"ok"}',
        headers={"Content-Type": "application/json"},
    )


def _wsgi_text(value: str) -> str:
    """Undo the latin-1 decoding that WSGI applies to request strings."""
    try:
        return value.encode("latin-1").decode("utf-8", "replace")
    except UnicodeEncodeError:
        return value


def _request_from_environ(environ: dict[str, Any]) -> Request:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    body = environ["wsgi.input"].read(length) if length > 0 else b""
    return Request(
        method=environ.get("REQUEST_METHOD", "GET").upper(),
        path=_wsgi_text(environ.get("PATH_INFO", "")) or "/",
        query_string=environ.get("QUERY_STRING", ""),
        body=body,
    )


class Application:
    """Routes requests to the handlers; usable as a WSGI application."""

    def __init__(self, container: Container) -> None:
        self.container = container
        self._exact: dict[str, Callable[[Request], Response]] = {
            "/books": container.book_handler.handle_books,
            "/authors": container.author_handler.handle_authors,
            "/author-books": container.author_book_handler.handle_associations,
        }
        self._prefixes: tuple[tuple[str, Callable[[Request], Response]], ...] = (
            ("/books/", container.book_handler.handle_book_by_id),
            ("/authors/", container.author_handler.handle_author_by_id),
        )

    def dispatch(self, request: Request) -> Response:
        handler = self._exact.get(request.path)
        if handler is None:
            handler = next(
                (found for prefix, found in self._prefixes if request.path.startswith(prefix)),
                None,
            )
        if handler is None:
            return Response.error("404 page not found", HTTPStatus.NOT_FOUND)
        return handler(request)

    def __call__(self, environ: dict[str, Any], start_response: Callable) -> Iterable[bytes]:
        response = self.dispatch(_request_from_environ(environ))
        status = HTTPStatus(response.status)
        headers = list(response.headers.items())
        if status != HTTPStatus.NO_CONTENT:
            headers.append(("Content-Length", str(len(response.body))))
        start_response(f"{status.value} {status.phrase}", headers)
        return [response.body]


class _Shutdown(Exception):
    """Raised from a signal handler to stop the server."""


_SIGNAL_NAMES = {signal.SIGINT: "interrupt", signal.SIGTERM: "terminated"}


@contextmanager
def _shutdown_signals() -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _raise(signum, _frame):
        raise _Shutdown(_SIGNAL_NAMES.get(signum, str(signum)))

    previous = {signum: signal.signal(signum, _raise) for signum in _SIGNAL_NAMES}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def _close(connection) -> None:
    try:
        database.close(connection)
    except CatalogError as exc:
        print(f"Error cerrando DB: {exc}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Open the database, migrate it and serve the catalog over HTTP."""
    parser = argparse.ArgumentParser(prog="bookcatalog", description="Serve the book catalog.")
    parser.add_argument("--database", default=database.Config().database_path)
    parser.add_argument("--host", default="")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    try:
        connection = database.connect(database.Config(args.database))
    except CatalogError as exc:
        print(f"Error conectando a la base de datos: {exc}", file=sys.stderr)
        return 1

    try:
        try:
            database.run_migrations(connection)
        except CatalogError as exc:
            print(f"Error ejecutando migraciones: {exc}", file=sys.stderr)
            return 1

        application = Application(build_container(connection))
        try:
            server = make_server(args.host, args.port, application)
        except OSError as exc:
            print(f"Error iniciando el servidor: {exc}", file=sys.stderr)
            return 1

        with server, _shutdown_signals():
            print(f"🚀 Servidor escuchando en http://localhost:{args.port}", flush=True)
            try:
                server.serve_forever()
            except _Shutdown as received:
                print(f"\n🛑 Señal recibida: {received}")
                print("🧹 Cerrando conexiones y limpiando recursos...")
                _close(connection)
                print("Servidor detenido correctamente")
    finally:
        _close(connection)
    return 0