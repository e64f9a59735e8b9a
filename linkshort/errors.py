"""Exception taxonomy for the link shortener.

Every error carries the HTTP status code and the message rendered as
``{"error": message}`` by the application's exception handler.
"""

__all__ = [
    "LinkShortError",
    "InvalidRequestError",
    "AuthorizationError",
    "LinkNotFoundError",
    "StorageError",
    "DuplicateShortPathError",
    "GenerationError",
    "RandomSourceError",
]


class LinkShortError(Exception):
    status_code: int = 500
    message: str = "internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidRequestError(LinkShortError):
    status_code = 400
    message = "error decoding json"


class AuthorizationError(LinkShortError):
    status_code = 401
    message = "Must specify correct secret"


class LinkNotFoundError(LinkShortError):
    status_code = 404
    message = "link not found"


class StorageError(LinkShortError):
    """Unclassified failure reported by the database."""


class DuplicateShortPathError(StorageError):
    """The short path is already taken by another link."""


class GenerationError(LinkShortError):
    message = "could not generate link"


class RandomSourceError(GenerationError):
    message = "random error"
