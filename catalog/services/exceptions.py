"""
Service Exceptions

Errors raised by the service layer. Routers let them propagate and the
handlers registered in `catalog.main.create_app()` turn them into HTTP
responses.

Hierarchy:
    CatalogError
    ├── BookNotFoundError             -> 404
    ├── AccountConflictError          -> 409
    ├── VoteError
    │   └── DuplicateVoteError        -> 400 (not retried)
    ├── StorageError
    │   ├── TransactionConflictError  -> retried by the unit of work, then 500
    │   └── StorageUnavailableError   -> 500 (logged, not retried)
    ├── InvalidUploadError            -> 400
    │   └── UploadTooLargeError       -> 413
    ├── RecommendationServiceError    -> 502
    └── ChatbotBackendError           (handled inside the chatbot service)
"""


class CatalogError(Exception):
    """
    Base class for all service-layer errors.

    Attributes:
        message: Human-readable error description, safe to show to clients.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class BookNotFoundError(CatalogError):
    """Raised when an operation targets a book that does not exist."""

    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with id {book_id} not found")
        self.book_id = book_id


class AccountConflictError(CatalogError):
    """The username or email is already used by another account."""


class VoteError(CatalogError):
    """Base class for errors raised while casting a vote."""


class DuplicateVoteError(VoteError):
    """
    The user already holds the requested vote on this book.

    Repeating a vote is rejected rather than treated as a no-op.
    """

    def __init__(self, action: str) -> None:
        super().__init__(f"You have already {action}d this book")
        self.action = action


class StorageError(CatalogError):
    """Base class for failures reported by the storage layer."""


class TransactionConflictError(StorageError):
    """
    A concurrent transaction touched the same rows.

    Raised for uniqueness violations on the vote ledger and for lock,
    deadlock or serialization failures reported by the database.
    """

    def __init__(
        self,
        message: str = "The request conflicted with a concurrent update. Please retry.",
    ) -> None:
        super().__init__(message)


class StorageUnavailableError(StorageError):
    """The database could not be reached or failed mid-transaction."""

    def __init__(
        self,
        message: str = "The catalog storage is unavailable. Please try again later.",
    ) -> None:
        super().__init__(message)


class RecommendationServiceError(CatalogError):
    """The external recommendation service failed or timed out."""


class ChatbotBackendError(CatalogError):
    """The AI fallback backend failed or returned an unusable answer."""


class InvalidUploadError(CatalogError):
    """An uploaded file has a disallowed type or an unusable name."""


class UploadTooLargeError(InvalidUploadError):
    """An uploaded file exceeds settings.max_upload_size."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"File too large. Maximum size is {limit // 1_000_000} MB")
        self.limit = limit
