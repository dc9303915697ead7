"""Error taxonomy shared by the API client and repositories."""


class BlobbyError(Exception):
    """Base exception for task store errors."""

    pass


class UnauthenticatedError(BlobbyError):
    """No identity present, or the store rejected it (HTTP 401)."""

    pass


class NotFoundError(BlobbyError):
    """Board or task missing or not owned by the caller (HTTP 404)."""

    pass


class BadRequestError(BlobbyError):
    """A required field was missing (HTTP 400)."""

    pass


class ServerError(BlobbyError):
    """The store failed (HTTP 5xx or another unexpected status)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportError(BlobbyError):
    """The request never produced a usable response."""

    pass


class StoreUnavailableError(BlobbyError):
    """The store accepted a create but persisted nothing (no database configured)."""

    pass


class LocalStoreError(BlobbyError):
    """The local board file could not be read or written."""

    pass
