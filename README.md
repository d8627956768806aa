# bookcatalog

A small JSON API for a catalogue of books and authors. The data lives in
SQLite, and the API is a WSGI application. The package uses only the Python
standard library.

## Installation

```
pip install .
```

## Running the server

```
bookcatalog
```

The command opens `./books.db`, or creates it if it does not exist. It creates
the `books`, `authors` and `author_books` tables when they are missing and
serves the API on port 8080 with the standard library's `wsgiref` server.

| Option       | Default      | Meaning                               |
|--------------|--------------|---------------------------------------|
| `--database` | `./books.db` | Path of the SQLite database file      |
| `--host`     | all (`""`)   | Address to bind to                    |
| `--port`     | `8080`       | Port to listen on                     |

Stop the server with Ctrl+C or SIGTERM. The database connection is closed
before the command returns. The command exits with status 1 if the database
cannot be opened or migrated, or if the server cannot bind its port.

## Endpoints

Books

| Method | Path          | Description                              |
|--------|---------------|------------------------------------------|
| GET    | `/books`      | List all books, without their authors    |
| POST   | `/books`      | Create a book; `title` must not be empty |
| GET    | `/books/<id>` | Fetch one book with its authors          |
| PUT    | `/books/<id>` | Overwrite title, year and ISBN           |
| DELETE | `/books/<id>` | Delete a book                            |

Authors

| Method | Path            | Description                              |
|--------|-----------------|------------------------------------------|
| GET    | `/authors`      | List all authors, without their books    |
| POST   | `/authors`      | Create an author; `name` must not be empty |
| GET    | `/authors/<id>` | Fetch one author with their books        |
| PUT    | `/authors/<id>` | Overwrite name, biography and country    |
| DELETE | `/authors/<id>` | Delete an author                         |

Associations

| Method | Path                                | Description               |
|--------|-------------------------------------|---------------------------|
| POST   | `/author-books`                     | Link a book and an author |
| DELETE | `/author-books?bookId=1&authorId=2` | Remove a link             |

Example bodies:

```json
{"title": "Rayuela", "publicationYear": 1963, "isbn": "978-0000000000"}
{"name": "Julio Cortázar", "country": "Argentina"}
{"bookId": 1, "authorId": 1}
```

PUT overwrites every field. Any optional field left out of the body is stored
as empty. Responses leave out optional fields that are empty
(`publicationYear`, `isbn`, `biography`, `country`), and they also leave out
empty `authors` and `books` lists. `createdAt` is an RFC 3339 timestamp in UTC.

JSON responses end with a newline. Errors are plain-text messages in Spanish.

| Status | When                                                             |
|--------|------------------------------------------------------------------|
| 404    | A `GET` or `DELETE` on a missing book or author                  |
| 404    | Any path the API does not serve                                  |
| 400    | A malformed id or body                                           |
| 400    | A missing or non-positive `bookId`/`authorId`                    |
| 400    | A link that cannot be created, for a missing row or a duplicate  |
| 405    | An unsupported method                                            |
| 500    | Other failures, including an empty title or name on creation     |
| 500    | Removing a link that does not exist                              |

## Using it as a library

```python
from bookcatalog.database import Config, connect, run_migrations
from bookcatalog.app import build_container, Application
from bookcatalog.handlers import Request
from bookcatalog.models import Book

connection = connect(Config(database_path=":memory:"))
run_migrations(connection)
container = build_container(connection)

book = container.book_service.create_book(Book(title="Ficciones"))
print(book.to_dict())

app = Application(container)          # a WSGI callable
response = app.dispatch(Request(method="GET", path="/books"))
print(response.status, response.text)
```

The layers are:

- `bookcatalog.models` holds the `Book`, `Author` and `AuthorBook` dataclasses. Each has `to_dict`. `Book` and `Author` also have `from_dict`.
- `bookcatalog.database` provides `Config`, `connect`, `close` and `run_migrations`.
- `bookcatalog.book_store`, `bookcatalog.author_store` and `bookcatalog.author_book_store` provide SQL access.
- `bookcatalog.services` provides `BookService`, `AuthorService` and `AuthorBookService`, which apply the validation rules.
- `bookcatalog.handlers` provides `Request`, `Response` and the HTTP handlers.
- `bookcatalog.app` provides `Container`, `build_container`, `Application`, `health_check` and `main`.

Failures are raised as `bookcatalog.errors.CatalogError` and its subclasses
`NotFoundError` and `ValidationError`.

## Limitations

- There is no authentication, pagination or search.
- `health_check` is available as a function, but `Application` does not route any path to it.
- SQLite foreign-key enforcement is not turned on, so deleting a book or an author does not remove its links.
- The server is the single-threaded `wsgiref` development server.

## Running the tests

```
pip install .[test]
pytest
```