"""Exceptions raised by the catalog."""


class CatalogError(Exception):
    """Base class for every error the catalog raises."""


class NotFoundError(CatalogError):
    """The requested resource does not exist."""

    def __init__(self, message: str = "resource not found") -> None:
        super().__init__(message)


class ValidationError(CatalogError):
    """Input was rejected before reaching the database."""