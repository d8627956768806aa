import json
from http import HTTPStatus

import pytest

from bookcatalog.author_book_store import AuthorBookStore
from bookcatalog.author_store import AuthorStore
from bookcatalog.book_store import BookStore
from bookcatalog.database import Config, close, connect, run_migrations
from bookcatalog.handlers import (
    AuthorBookHandler,
    AuthorHandler,
    BookHandler,
    Request,
    Response,
)
from bookcatalog.services import AuthorBookService, AuthorService, BookService


@pytest.fixture
def connection():
    conn = connect(Config(":memory:"))
    run_migrations(conn)
    yield conn
    close(conn)


@pytest.fixture
def books(connection):
    return BookHandler(BookService(BookStore(connection)))


@pytest.fixture
def authors(connection):
    return AuthorHandler(AuthorService(AuthorStore(connection)))


@pytest.fixture
def links(connection):
    return AuthorBookHandler(AuthorBookService(AuthorBookStore(connection)))


def _json_request(method, path, payload):
    return Request(method, path, body=json.dumps(payload).encode("utf-8"))


def _decoded(response):
    return json.loads(response.body)


def _create_book(books, title="Rayuela"):
    response = books.handle_books(_json_request("POST", "/books", {"title": title}))
    assert response.status == HTTPStatus.CREATED
    return _decoded(response)["id"]


def _create_author(authors, name="Julio"):
    response = authors.handle_authors(_json_request("POST", "/authors", {"name": name}))
    assert response.status == HTTPStatus.CREATED
    return _decoded(response)["id"]


def test_list_books_starts_empty(books):
    response = books.handle_books(Request("GET", "/books"))
    assert response.status == HTTPStatus.OK
    assert _decoded(response) == []


def test_create_book_returns_stored_record(books):
    payload = {"title": "Cien años", "publicationYear": 1967, "isbn": "isbn-1"}
    response = books.handle_books(_json_request("POST", "/books", payload))
    assert response.status == HTTPStatus.CREATED
    data = _decoded(response)
    assert data["title"] == payload["title"]
    assert data["publicationYear"] == payload["publicationYear"]
    assert data["isbn"] == payload["isbn"]
    assert data["id"] >= 1
    assert data["createdAt"].endswith("Z")


def test_created_book_round_trips_through_get(books):
    created = _decoded(books.handle_books(_json_request("POST", "/books", {"title": "Ficciones"})))
    fetched = books.handle_book_by_id(Request("GET", f"/books/{created['id']}"))
    assert fetched.status == HTTPStatus.OK
    assert _decoded(fetched) == created


def test_list_contains_created_books(books):
    titles = ["Uno", "Dos"]
    for title in titles:
        _create_book(books, title)
    listed = _decoded(books.handle_books(Request("GET", "/books")))
    assert [item["title"] for item in listed] == titles


def test_create_book_without_title_is_server_error(books):
    response = books.handle_books(_json_request("POST", "/books", {"isbn": "x"}))
    assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.text == "error: the title cannot be empty\n"


@pytest.mark.parametrize("body", [b"", b"{not json", b'{"title": 5}'])
def test_create_book_with_bad_body_is_bad_request(books, body):
    response = books.handle_books(Request("POST", "/books", body=body))
    assert response.status == HTTPStatus.BAD_REQUEST


@pytest.mark.parametrize("path", ["/books/abc", "/books/", "/books/1/2"])
def test_book_by_id_rejects_invalid_id(books, path):
    response = books.handle_book_by_id(Request("GET", path))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.text == "ID inválido\n"


def test_get_missing_book_is_not_found(books):
    response = books.handle_book_by_id(Request("GET", "/books/42"))
    assert response.status == HTTPStatus.NOT_FOUND
    assert response.text == "Libro no encontrado\n"


def test_put_book_with_invalid_input(books):
    book_id = _create_book(books)
    response = books.handle_book_by_id(Request("PUT", f"/books/{book_id}", body=b"[1,"))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.text == "input inválido\n"


def test_put_book_updates_fields(books):
    book_id = _create_book(books)
    payload = {"title": "Nuevo", "publicationYear": 2001}
    response = books.handle_book_by_id(_json_request("PUT", f"/books/{book_id}", payload))
    assert response.status == HTTPStatus.OK
    data = _decoded(response)
    assert (data["id"], data["title"], data["publicationYear"]) == (
        book_id,
        payload["title"],
        payload["publicationYear"],
    )
    assert "isbn" not in data


def test_put_missing_book_is_server_error(books):
    response = books.handle_book_by_id(_json_request("PUT", "/books/7", {"title": "t"}))
    assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.text == "resource not found\n"


def test_delete_book_then_not_found(books):
    book_id = _create_book(books)
    first = books.handle_book_by_id(Request("DELETE", f"/books/{book_id}"))
    assert first.status == HTTPStatus.NO_CONTENT
    assert first.body == b""
    second = books.handle_book_by_id(Request("DELETE", f"/books/{book_id}"))
    assert second.status == HTTPStatus.NOT_FOUND
    assert second.text == "Libro no encontrado\n"


@pytest.mark.parametrize("method", ["PATCH", "DELETE"])
def test_books_collection_rejects_other_methods(books, method):
    response = books.handle_books(Request(method, "/books"))
    assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
    assert response.text == "Método no disponible\n"


def test_author_lifecycle(authors):
    payload = {"name": "Borges", "country": "Argentina"}
    created = authors.handle_authors(_json_request("POST", "/authors", payload))
    assert created.status == HTTPStatus.CREATED
    author_id = _decoded(created)["id"]
    fetched = _decoded(authors.handle_author_by_id(Request("GET", f"/authors/{author_id}")))
    assert fetched["name"] == payload["name"]
    assert fetched["country"] == payload["country"]
    assert "biography" not in fetched
    listed = _decoded(authors.handle_authors(Request("GET", "/authors")))
    assert [item["id"] for item in listed] == [author_id]
    deleted = authors.handle_author_by_id(Request("DELETE", f"/authors/{author_id}"))
    assert deleted.status == HTTPStatus.NO_CONTENT


def test_author_without_name_is_server_error(authors):
    response = authors.handle_authors(_json_request("POST", "/authors", {"country": "Perú"}))
    assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.text == "error: the name cannot be empty\n"


def test_missing_author_is_not_found(authors):
    for method in ("GET", "DELETE"):
        response = authors.handle_author_by_id(Request(method, "/authors/99"))
        assert response.status == HTTPStatus.NOT_FOUND
        assert response.text == "Autor no encontrado\n"


def test_put_author_updates_and_rejects_bad_json(authors):
    author_id = _create_author(authors)
    bad = authors.handle_author_by_id(Request("PUT", f"/authors/{author_id}", body=b"{"))
    assert bad.status == HTTPStatus.BAD_REQUEST
    payload = {"name": "Cortázar", "biography": "Escritor"}
    good = authors.handle_author_by_id(_json_request("PUT", f"/authors/{author_id}", payload))
    assert good.status == HTTPStatus.OK
    assert _decoded(good)["biography"] == payload["biography"]


def test_author_routes_reject_bad_id_and_method(authors):
    assert authors.handle_author_by_id(Request("GET", "/authors/x")).text == "ID inválido\n"
    response = authors.handle_authors(Request("PUT", "/authors"))
    assert response.status == HTTPStatus.METHOD_NOT_ALLOWED


def test_association_links_book_and_author(books, authors, links):
    book_id = _create_book(books, "Rayuela")
    author_id = _create_author(authors, "Julio")
    response = links.handle_associations(
        _json_request("POST", "/author-books", {"bookId": book_id, "authorId": author_id})
    )
    assert response.status == HTTPStatus.CREATED
    data = _decoded(response)
    assert (data["bookId"], data["authorId"]) == (book_id, author_id)

    book = _decoded(books.handle_book_by_id(Request("GET", f"/books/{book_id}")))
    assert [author["name"] for author in book["authors"]] == ["Julio"]
    author = _decoded(authors.handle_author_by_id(Request("GET", f"/authors/{author_id}")))
    assert [item["title"] for item in author["books"]] == ["Rayuela"]


def test_association_keys_ignore_case(books, authors, links):
    book_id = _create_book(books)
    author_id = _create_author(authors)
    response = links.handle_associations(
        _json_request("POST", "/author-books", {"BOOKID": book_id, "AuthorID": author_id})
    )
    assert response.status == HTTPStatus.CREATED
    assert _decoded(response)["bookId"] == book_id


@pytest.mark.parametrize(
    ("payload", "message"),
    [({}, "bookId inválido\n"), ({"bookId": 1}, "authorId inválido\n")],
)
def test_association_requires_positive_ids(links, payload, message):
    response = links.handle_associations(_json_request("POST", "/author-books", payload))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.text == message


@pytest.mark.parametrize("body", [b"", b"[", b'{"bookId": "1"}', b'{"bookId": 1.5}'])
def test_association_rejects_invalid_json(links, body):
    response = links.handle_associations(Request("POST", "/author-books", body=body))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.text == "JSON inválido\n"


def test_association_with_unknown_book_or_duplicate(books, authors, links):
    author_id = _create_author(authors)
    missing = links.handle_associations(
        _json_request("POST", "/author-books", {"bookId": 50, "authorId": author_id})
    )
    assert missing.status == HTTPStatus.BAD_REQUEST
    book_id = _create_book(books)
    payload = {"bookId": book_id, "authorId": author_id}
    assert links.handle_associations(_json_request("POST", "/author-books", payload)).status == HTTPStatus.CREATED
    duplicate = links.handle_associations(_json_request("POST", "/author-books", payload))
    assert duplicate.status == HTTPStatus.BAD_REQUEST


def test_dissociate_requires_both_parameters(links):
    response = links.handle_associations(Request("DELETE", "/author-books", "bookId=1"))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.text == "Faltan parámetros bookId o authorId\n"


@pytest.mark.parametrize(
    ("query", "message"),
    [("bookId=x&authorId=1", "bookId inválido\n"), ("bookId=1&authorId=1.0", "authorId inválido\n")],
)
def test_dissociate_rejects_non_integers(links, query, message):
    response = links.handle_associations(Request("DELETE", "/author-books", query))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.text == message


def test_dissociate_removes_link_once(books, authors, links):
    book_id = _create_book(books)
    author_id = _create_author(authors)
    links.handle_associations(
        _json_request("POST", "/author-books", {"bookId": book_id, "authorId": author_id})
    )
    query = f"bookId={book_id}&authorId={author_id}"
    first = links.handle_associations(Request("DELETE", "/author-books", query))
    assert first.status == HTTPStatus.NO_CONTENT
    second = links.handle_associations(Request("DELETE", "/author-books", query))
    assert second.status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert second.text == "resource not found\n"


def test_dissociate_with_non_positive_id_is_server_error(links):
    response = links.handle_associations(Request("DELETE", "/author-books", "bookId=0&authorId=3"))
    assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.text == "bookId inválido\n"


def test_associations_reject_other_methods(links):
    response = links.handle_associations(Request("GET", "/author-books"))
    assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
    assert response.text == "Método no permitido\n"


def test_response_json_escapes_html_and_round_trips():
    payload = {"text": "<a & b>", "word": "año"}
    response = Response.json(payload)
    assert response.status == HTTPStatus.OK
    assert b"<" not in response.body and b"&" not in response.body
    assert response.body.endswith(b"\n")
    assert json.loads(response.body) == payload


def test_response_error_is_plain_text():
    response = Response.error("ID inválido", HTTPStatus.BAD_REQUEST)
    assert response.text == "ID inválido\n"
    assert response.headers["Content-Type"] == "text/plain; charset=utf-8"


def test_request_query_param_takes_first_value():
    request = Request("DELETE", "/author-books", "bookId=3&bookId=4&empty=")
    assert request.query_param("bookId") == "3"
    assert request.query_param("empty") == ""
    assert request.query_param("missing") == ""