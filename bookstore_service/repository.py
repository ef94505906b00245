"""SQL implementations of the order repository and book info provider."""

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from .errors import BookNotFoundError
from .logger import logger
from .models import BookRecord, OrderItemRecord, OrderRecord
from .schemas import Book, BookInfo, Order, OrderItem


def _as_utc(value: datetime) -> datetime:
    # naive timestamps are UTC; SQLite returns them without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlOrderRepository:
    """Orders stored in the ``orders`` and ``orderitems`` tables."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def save_order(self, customer_id: int, order_date: datetime, items: Sequence[OrderItem]) -> int:
        """Insert the order row and all item rows in one transaction.

        Any failure rolls the whole transaction back, so no partial order is
        ever visible.

        Returns:
            int: The generated order id.
        """
        with self._session_factory() as session, session.begin():
            created_at = _as_utc(order_date).astimezone(timezone.utc)
            record = OrderRecord(customer_id=customer_id, created_at=created_at)
            session.add(record)
            session.flush()
            order_id = record.id

            session.add_all(
                OrderItemRecord(
                    order_id=order_id,
                    book_id=item.book_id,
                    quantity=item.quantity,
                    price=item.price,
                )
                for item in items
            )

        logger.debug(f"Stored order {order_id} with {len(items)} item(s) for customer {customer_id}")
        return order_id

    def get_orders_by_customer(self, customer_id: int) -> list[Order]:
        """Orders of a customer, newest first, items titled from ``books``.

        Items whose book is no longer in the catalog come back with an empty
        title.
        """
        stmt = (
            select(
                OrderRecord.id,
                OrderRecord.customer_id,
                OrderRecord.created_at,
                OrderItemRecord.book_id,
                BookRecord.title,
                OrderItemRecord.quantity,
                OrderItemRecord.price,
            )
            .join(OrderItemRecord, OrderItemRecord.order_id == OrderRecord.id)
            .outerjoin(BookRecord, BookRecord.id == OrderItemRecord.book_id)
            .where(OrderRecord.customer_id == customer_id)
            .order_by(OrderRecord.id.desc(), OrderItemRecord.id)
        )

        with self._session_factory() as session:
            rows = session.execute(stmt).all()

        grouped: dict[int, dict] = {}
        for row in rows:
            order = grouped.setdefault(
                row.id,
                {
                    "id": row.id,
                    "customer_id": row.customer_id,
                    "order_date": _as_utc(row.created_at),
                    "items": [],
                },
            )
            order["items"].append(
                OrderItem(
                    book_id=row.book_id,
                    quantity=row.quantity,
                    price=row.price,
                    book_title=row.title or "",
                )
            )

        orders = [Order(**data) for data in grouped.values()]
        orders.sort(key=lambda o: o.id, reverse=True)
        return orders


class SqlBookRepository:
    """The book catalog in the ``books`` table."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get_all_books(self) -> list[Book]:
        with self._session_factory() as session:
            records = session.scalars(select(BookRecord).order_by(BookRecord.id)).all()
            return [Book.model_validate(record) for record in records]

    def get_books_information(self, book_ids: Iterable[int]) -> dict[int, BookInfo]:
        """Fetch price and title of all requested books in one query.

        Raises:
            BookNotFoundError: If any requested id is not in the catalog.
        """
        requested = set(book_ids)
        if not requested:
            return {}

        stmt = select(BookRecord.id, BookRecord.title, BookRecord.price).where(BookRecord.id.in_(requested))
        with self._session_factory() as session:
            rows = session.execute(stmt).all()

        found = {row.id: BookInfo(price=row.price, title=row.title) for row in rows}
        missing = requested - found.keys()
        if missing:
            logger.warning(f"Unknown book ids requested: {sorted(missing)}")
            raise BookNotFoundError(missing)
        return found

    def add_book(self, title: str, author: str, price: float) -> Book:
        with self._session_factory() as session, session.begin():
            record = BookRecord(title=title, author=author, price=price)
            session.add(record)
            session.flush()
            book = Book.model_validate(record)

        logger.info(f"Added book {book.id}: '{book.title}'")
        return book
