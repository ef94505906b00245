"""Test fixtures for the bookstore service tests."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from bookstore_service.database import create_db_engine, create_session_factory, create_tables
from bookstore_service.producer import OrderProducer
from bookstore_service.repository import SqlBookRepository, SqlOrderRepository
from bookstore_service.schemas import BookInfo, Order, OrderItem

ORDER_DATE = datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_order():
    """Create a test order fixture.

    Returns:
        Order: A stored order with one item for customer 3.
    """
    return Order(
        id=7,
        customer_id=3,
        order_date=ORDER_DATE,
        items=[OrderItem(book_id=1, quantity=2, price=10.0, book_title="Dune")],
    )


@pytest.fixture
def test_producer():
    """Create a test Kafka producer fixture.

    Returns:
        OrderProducer: A configured producer instance pointing to localhost.
    """
    return OrderProducer("localhost:9092")


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_db_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def book_repository(session_factory):
    return SqlBookRepository(session_factory)


@pytest.fixture
def order_repository(session_factory):
    return SqlOrderRepository(session_factory)


@pytest.fixture
def catalog(book_repository):
    """Three books with ids 1, 2 and 3."""
    return [
        book_repository.add_book("Dune", "Frank Herbert", 10.0),
        book_repository.add_book("Emma", "Jane Austen", 20.0),
        book_repository.add_book("Ulysses", "James Joyce", 35.5),
    ]


@pytest.fixture
def book_provider():
    """Book info provider mock knowing books 1 and 2."""
    provider = Mock()
    provider.get_books_information.return_value = {
        1: BookInfo(price=10.0, title="Book1"),
        2: BookInfo(price=20.0, title="Book2"),
    }
    return provider


@pytest.fixture
def order_store():
    """Order repository mock assigning id 42 to every saved order."""
    repository = Mock()
    repository.save_order.return_value = 42
    repository.get_orders_by_customer.return_value = []
    return repository
