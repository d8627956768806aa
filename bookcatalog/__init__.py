"""A SQLite-backed WSGI JSON API for books, authors and their associations."""

__version__ = "0.1.0"