"""Catalog records and their JSON representation."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .errors import ValidationError

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_FRACTION = re.compile(r"\.(\d+)")


def _parse_timestamp(value: Any) -> datetime:
    """Parse an RFC 3339 or SQLite timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str):
            raise ValidationError(f"invalid timestamp: {value!r}")
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(f"invalid timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _check(value: Any, kind: type, key: str) -> Any:
    if kind is int:
        valid = isinstance(value, int) and not isinstance(value, bool)
    else:
        valid = isinstance(value, kind)
    if not valid:
        expected = "an integer" if kind is int else "a string"
        raise ValidationError(f"field {key!r} must be {expected}")
    return value


def _required(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    return _check(value, kind, key)


def _optional(data: Mapping[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return None
    return _check(value, kind, key)


def _created_at(data: Mapping[str, Any]) -> datetime:
    value = data.get("createdAt")
    return ZERO_TIME if value is None else _parse_timestamp(value)


def _nested(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"field {key!r} must be a list")
    return value


def _require_mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError("expected a JSON object")
    return data


@dataclass
class Book:
    """A book; ``authors`` is filled only when a single book is fetched."""

    id: int = 0
    title: str = ""
    publication_year: int | None = None
    isbn: str | None = None
    created_at: datetime = ZERO_TIME
    authors: list[Author] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.publication_year is not None:
            result["publicationYear"] = self.publication_year
        if self.isbn is not None:
            result["isbn"] = self.isbn
        result["createdAt"] = _format_timestamp(self.created_at)
        if self.authors:
            result["authors"] = [author.to_dict() for author in self.authors]
        return result

    @classmethod
    def from_dict(cls, data: Any) -> Book:
        data = _require_mapping(data)
        return cls(
            id=_required(data, "id", int, 0),
            title=_required(data, "title", str, ""),
            publication_year=_optional(data, "publicationYear", int),
            isbn=_optional(data, "isbn", str),
            created_at=_created_at(data),
            authors=[Author.from_dict(item) for item in _nested(data, "authors")],
        )


@dataclass
class Author:
    """An author; ``books`` is filled only when a single author is fetched."""

    id: int = 0
    name: str = ""
    biography: str | None = None
    country: str | None = None
    created_at: datetime = ZERO_TIME
    books: list[Book] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.biography is not None:
            result["biography"] = self.biography
        if self.country is not None:
            result["country"] = self.country
        result["createdAt"] = _format_timestamp(self.created_at)
        if self.books:
            result["books"] = [book.to_dict() for book in self.books]
        return result

    @classmethod
    def from_dict(cls, data: Any) -> Author:
        data = _require_mapping(data)
        return cls(
            id=_required(data, "id", int, 0),
            name=_required(data, "name", str, ""),
            biography=_optional(data, "biography", str),
            country=_optional(data, "country", str),
            created_at=_created_at(data),
            books=[Book.from_dict(item) for item in _nested(data, "books")],
        )


@dataclass
class AuthorBook:
    """A link between an author and a book."""

    id: int = 0
    author_id: int = 0
    book_id: int = 0
    created_at: datetime = ZERO_TIME

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "authorId": self.author_id,
            "bookId": self.book_id,
            "createdAt": _format_timestamp(self.created_at),
        }