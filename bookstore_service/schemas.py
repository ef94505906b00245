"""Pydantic models for books and orders."""

from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .errors import OrderError


def calculate_total(items: Iterable["OrderItem"]) -> float:
    """Sum of price times quantity over the given items.

    Plain float arithmetic; no currency rounding is applied.

    Args:
        items: Order items carrying snapshot prices.

    Returns:
        float: The order total, 0.0 for no items.
    """
    return sum((item.price * item.quantity for item in items), 0.0)


class Book(BaseModel):
    """A catalog entry."""

    id: int
    title: str
    author: str
    price: float = Field(..., ge=0)

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {"id": 1, "title": "Dune", "author": "Frank Herbert", "price": 9.99},
        },
    )


class BookInfo(BaseModel):
    """Price and title of a book as known at lookup time."""

    price: float = Field(..., ge=0)
    title: str


class BookInfoMap(Mapping[int, BookInfo]):
    """Result of a batched book lookup.

    Absent identifiers never default to an empty entry: ``require`` turns
    them into a ``BookLookupFailed`` error.
    """

    def __init__(self, books: Mapping[int, BookInfo] | None = None):
        self._books = dict(books or {})

    def __getitem__(self, book_id: int) -> BookInfo:
        return self._books[book_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._books)

    def __len__(self) -> int:
        return len(self._books)

    def __repr__(self) -> str:
        return f"BookInfoMap({self._books!r})"

    def require(self, book_ids: Iterable[int]) -> None:
        """Raise ``BookLookupFailed`` unless every id is present."""
        missing = set(book_ids) - self._books.keys()
        if missing:
            raise OrderError.book_lookup_failed(missing)


class OrderRequestItem(BaseModel):
    """A book and quantity requested by the customer.

    Values are range-checked by the order service, not here, so that bad
    input yields an order error kind rather than a schema error.
    """

    book_id: int
    quantity: int

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"book_id": 1, "quantity": 2},
        }
    )


class OrderItem(BaseModel):
    """A persisted order line.

    Attributes:
        book_id (int): The ordered book.
        quantity (int): Number of copies, always positive.
        price (float): Unit price snapshotted when the order was created.
        book_title (str): Title of the book, as currently named in the catalog.
    """

    book_id: int
    quantity: int = Field(..., gt=0)
    price: float = Field(..., ge=0)
    book_title: str = ""


class Order(BaseModel):
    """A customer order.

    ``total`` is derived from ``items`` every time it is read; it is never
    stored or accepted as input.
    """

    id: int
    customer_id: int
    order_date: datetime
    items: list[OrderItem] = Field(..., min_length=1, description="At least one item required")

    @computed_field
    @property
    def total(self) -> float:
        return calculate_total(self.items)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 12,
                "customer_id": 3,
                "order_date": "2024-01-05T10:00:00Z",
                "items": [
                    {"book_id": 1, "quantity": 2, "price": 10.0, "book_title": "Dune"},
                    {"book_id": 2, "quantity": 1, "price": 20.0, "book_title": "Emma"},
                ],
            }
        }
    )
