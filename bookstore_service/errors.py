"""Error kinds raised by the order service."""

from collections.abc import Iterable
from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of order error kinds.

    The value is the stable name exposed to callers, so it can be matched
    across process boundaries (e.g. in an HTTP error body).
    """

    EMPTY_ORDER = "EmptyOrder"
    INVALID_BOOK_ID = "InvalidBookID"
    INVALID_QUANTITY = "InvalidQuantity"
    DUPLICATE_BOOK_IN_ORDER = "DuplicateBookInOrder"
    BOOK_LOOKUP_FAILED = "BookLookupFailed"
    ORDER_PERSISTENCE_FAILED = "OrderPersistenceFailed"


VALIDATION_KINDS = frozenset(
    {
        ErrorKind.EMPTY_ORDER,
        ErrorKind.INVALID_BOOK_ID,
        ErrorKind.INVALID_QUANTITY,
        ErrorKind.DUPLICATE_BOOK_IN_ORDER,
    }
)


class OrderError(Exception):
    """An order operation failed.

    Attributes:
        kind (ErrorKind): What went wrong.
        message (str): Human readable description.
    """

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"OrderError(kind={self.kind.value!r}, message={self.message!r})"

    @property
    def is_validation(self) -> bool:
        """True when the caller can fix the request and resubmit it."""
        return self.kind in VALIDATION_KINDS

    @classmethod
    def empty_order(cls) -> "OrderError":
        return cls(ErrorKind.EMPTY_ORDER, "invalid empty books")

    @classmethod
    def invalid_book_id(cls, book_id: int) -> "OrderError":
        return cls(ErrorKind.INVALID_BOOK_ID, f"invalid book ID: {book_id}")

    @classmethod
    def invalid_quantity(cls, book_id: int, quantity: int) -> "OrderError":
        return cls(ErrorKind.INVALID_QUANTITY, f"invalid book quantity {quantity} for book {book_id}")

    @classmethod
    def duplicate_book(cls, book_id: int) -> "OrderError":
        return cls(
            ErrorKind.DUPLICATE_BOOK_IN_ORDER,
            f"duplicate book ID {book_id}, use quantity instead",
        )

    @classmethod
    def book_lookup_failed(cls, missing: Iterable[int] = ()) -> "OrderError":
        missing = sorted(missing)
        if missing:
            return cls(ErrorKind.BOOK_LOOKUP_FAILED, f"book lookup failed, unknown book IDs: {missing}")
        return cls(ErrorKind.BOOK_LOOKUP_FAILED, "book lookup failed")

    @classmethod
    def persistence_failed(cls, action: str) -> "OrderError":
        return cls(ErrorKind.ORDER_PERSISTENCE_FAILED, f"order {action} failed")


class BookNotFoundError(LookupError):
    """One or more requested books are not in the catalog."""

    def __init__(self, book_ids: Iterable[int]):
        self.book_ids = sorted(book_ids)
        super().__init__(f"books not found: {self.book_ids}")
