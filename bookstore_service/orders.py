"""Order placement and order history."""

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Protocol

from .errors import BookNotFoundError, OrderError
from .logger import logger
from .schemas import BookInfo, BookInfoMap, Order, OrderItem, OrderRequestItem, calculate_total

__all__ = [
    "BookInfoProvider",
    "OrderRepository",
    "OrderService",
    "calculate_total",
]


class BookInfoProvider(Protocol):
    """Source of current book prices and titles."""

    def get_books_information(self, book_ids: set[int]) -> Mapping[int, BookInfo]:
        """Look up every requested book in one call.

        Args:
            book_ids: Distinct book identifiers.

        Returns:
            Mapping[int, BookInfo]: An entry for each requested id.

        Raises:
            Exception: If any id is unknown or the source is unavailable.
        """
        ...


class OrderRepository(Protocol):
    """Durable, transactional order storage."""

    def save_order(self, customer_id: int, order_date: datetime, items: Sequence[OrderItem]) -> int:
        """Store an order and all of its items atomically.

        Returns:
            int: The identifier assigned to the new order.
        """
        ...

    def get_orders_by_customer(self, customer_id: int) -> list[Order]:
        """Every order of a customer, items titled from the catalog."""
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:
    """Validates purchases, prices them and reads back order history.

    Attributes:
        repository: Where orders are stored.
        books: Where prices and titles come from.
    """

    def __init__(
        self,
        repository: OrderRepository,
        books: BookInfoProvider,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.books = books
        self._clock = clock

    def make_order(self, customer_id: int, items: Sequence[OrderRequestItem]) -> Order:
        """Create an order for a customer.

        Prices and titles are copied from the catalog at this moment; later
        catalog changes never alter the stored order.

        Args:
            customer_id: Owner of the order.
            items: Requested books, one entry per distinct book.

        Returns:
            Order: The stored order with its assigned id.

        Raises:
            OrderError: EmptyOrder, InvalidBookID, InvalidQuantity or
                DuplicateBookInOrder for bad input; BookLookupFailed when
                prices cannot be resolved; OrderPersistenceFailed when the
                order could not be stored.
        """
        book_ids = self._validate(items)

        book_info = self._lookup(book_ids)

        order_items = [
            OrderItem(
                book_id=item.book_id,
                quantity=item.quantity,
                price=book_info[item.book_id].price,
                book_title=book_info[item.book_id].title,
            )
            for item in items
        ]

        order_date = self._clock()
        try:
            order_id = self.repository.save_order(customer_id, order_date, order_items)
        except Exception as e:
            raise OrderError.persistence_failed("creation") from e

        order = Order(id=order_id, customer_id=customer_id, order_date=order_date, items=order_items)
        logger.info(
            f"Order {order.id} created for customer {customer_id}: "
            f"{len(order_items)} item(s), total={order.total:.2f}"
        )
        return order

    def get_orders_by_customer(self, customer_id: int) -> list[Order]:
        """Order history of a customer, most recent first.

        Raises:
            OrderError: OrderPersistenceFailed when storage cannot be read;
                BookLookupFailed when missing titles cannot be filled in.
        """
        try:
            orders = self.repository.get_orders_by_customer(customer_id)
        except Exception as e:
            raise OrderError.persistence_failed("retrieval") from e

        untitled = {item.book_id for order in orders for item in order.items if not item.book_title}
        if untitled:
            book_info = self._lookup(untitled)
            for order in orders:
                for item in order.items:
                    if not item.book_title:
                        item.book_title = book_info[item.book_id].title

        return sorted(orders, key=lambda o: o.id, reverse=True)

    def _validate(self, items: Sequence[OrderRequestItem]) -> set[int]:
        """Check the request and return its distinct book ids."""
        if not items:
            raise OrderError.empty_order()

        for item in items:
            if item.book_id <= 0:
                raise OrderError.invalid_book_id(item.book_id)

        for item in items:
            if item.quantity <= 0:
                raise OrderError.invalid_quantity(item.book_id, item.quantity)

        seen: set[int] = set()
        for item in items:
            if item.book_id in seen:
                raise OrderError.duplicate_book(item.book_id)
            seen.add(item.book_id)

        return seen

    def _lookup(self, book_ids: set[int]) -> BookInfoMap:
        """One batched provider call; any failure is BookLookupFailed."""
        try:
            found = BookInfoMap(self.books.get_books_information(set(book_ids)))
        except OrderError:
            raise
        except BookNotFoundError as e:
            raise OrderError.book_lookup_failed(e.book_ids) from e
        except Exception as e:
            raise OrderError.book_lookup_failed() from e

        found.require(book_ids)
        return found
