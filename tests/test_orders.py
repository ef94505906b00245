"""Tests for order placement and order history."""

from datetime import datetime, timedelta

import pytest

from bookstore_service.errors import BookNotFoundError, ErrorKind, OrderError
from bookstore_service.orders import OrderService
from bookstore_service.schemas import BookInfo, Order, OrderItem, OrderRequestItem, calculate_total

from .conftest import ORDER_DATE


def _items(*pairs):
    return [OrderRequestItem(book_id=book_id, quantity=quantity) for book_id, quantity in pairs]


@pytest.fixture
def service(order_store, book_provider):
    return OrderService(order_store, book_provider, clock=lambda: ORDER_DATE)


@pytest.mark.parametrize(
    "items, expected_total",
    [
        ([OrderItem(book_id=1, quantity=2, price=10.0)], 20.0),
        ([OrderItem(book_id=1, quantity=2, price=10.0), OrderItem(book_id=2, quantity=1, price=20.0)], 40.0),
        ([], 0.0),
        ([OrderItem(book_id=1, quantity=1000, price=0.1)], 100.0),
        ([OrderItem(book_id=1, quantity=3, price=0.0)], 0.0),
    ],
)
def test_calculate_total(items, expected_total):
    assert calculate_total(items) == expected_total


class TestMakeOrder:
    def test_valid_order(self, service, order_store):
        order = service.make_order(5, _items((1, 2), (2, 1)))

        assert order.id == 42
        assert order.customer_id == 5
        assert order.order_date == ORDER_DATE
        assert order.total == 40.0
        assert [(i.book_id, i.quantity, i.price, i.book_title) for i in order.items] == [
            (1, 2, 10.0, "Book1"),
            (2, 1, 20.0, "Book2"),
        ]
        order_store.save_order.assert_called_once_with(5, ORDER_DATE, order.items)
        order_store.get_orders_by_customer.assert_not_called()

    def test_single_batched_lookup(self, service, book_provider):
        service.make_order(5, _items((2, 1), (1, 4)))

        book_provider.get_books_information.assert_called_once_with({1, 2})

    def test_total_uses_provider_prices(self, order_store, book_provider):
        book_provider.get_books_information.return_value = {
            3: BookInfo(price=7.25, title="C"),
            4: BookInfo(price=0.0, title="Free"),
            5: BookInfo(price=12.5, title="E"),
        }
        service = OrderService(order_store, book_provider)

        order = service.make_order(1, _items((3, 4), (4, 10), (5, 2)))

        assert order.total == 7.25 * 4 + 12.5 * 2

    def test_prices_are_snapshots(self, service, book_provider):
        first = service.make_order(5, _items((1, 1)))

        book_provider.get_books_information.return_value = {1: BookInfo(price=99.0, title="Book1, 2nd ed.")}
        second = service.make_order(5, _items((1, 1)))

        assert first.items[0].price == 10.0
        assert first.items[0].book_title == "Book1"
        assert second.items[0].price == 99.0

    def test_default_clock_is_utc_now(self, order_store, book_provider):
        service = OrderService(order_store, book_provider)
        before = datetime.now(ORDER_DATE.tzinfo)

        order = service.make_order(5, _items((1, 1)))

        assert before - timedelta(seconds=1) <= order.order_date <= datetime.now(ORDER_DATE.tzinfo)

    @pytest.mark.parametrize(
        "items, kind",
        [
            ([], ErrorKind.EMPTY_ORDER),
            (_items((0, 1)), ErrorKind.INVALID_BOOK_ID),
            (_items((-3, 1)), ErrorKind.INVALID_BOOK_ID),
            (_items((1, 0)), ErrorKind.INVALID_QUANTITY),
            (_items((1, -2)), ErrorKind.INVALID_QUANTITY),
            (_items((1, 1), (1, 2)), ErrorKind.DUPLICATE_BOOK_IN_ORDER),
            # every book id is checked before any quantity
            (_items((1, 0), (0, 1)), ErrorKind.INVALID_BOOK_ID),
            # range checks come before duplicate detection
            (_items((1, 1), (1, 0)), ErrorKind.INVALID_QUANTITY),
        ],
    )
    def test_invalid_requests(self, service, order_store, book_provider, items, kind):
        with pytest.raises(OrderError) as exc_info:
            service.make_order(5, items)

        assert exc_info.value.kind == kind
        assert exc_info.value.is_validation
        book_provider.get_books_information.assert_not_called()
        order_store.save_order.assert_not_called()

    def test_provider_failure(self, service, order_store, book_provider):
        cause = ConnectionError("catalog unavailable")
        book_provider.get_books_information.side_effect = cause

        with pytest.raises(OrderError) as exc_info:
            service.make_order(5, _items((1, 2)))

        assert exc_info.value.kind == ErrorKind.BOOK_LOOKUP_FAILED
        assert not exc_info.value.is_validation
        assert exc_info.value.__cause__ is cause
        order_store.save_order.assert_not_called()

    def test_unknown_book_reported_by_provider(self, service, book_provider):
        book_provider.get_books_information.side_effect = BookNotFoundError({9, 8})

        with pytest.raises(OrderError) as exc_info:
            service.make_order(5, _items((8, 1), (9, 1)))

        assert exc_info.value.kind == ErrorKind.BOOK_LOOKUP_FAILED
        assert "[8, 9]" in exc_info.value.message

    def test_provider_result_missing_a_book(self, service, order_store):
        with pytest.raises(OrderError) as exc_info:
            service.make_order(5, _items((1, 1), (3, 1)))

        assert exc_info.value.kind == ErrorKind.BOOK_LOOKUP_FAILED
        assert "[3]" in exc_info.value.message
        order_store.save_order.assert_not_called()

    def test_save_failure(self, service, order_store):
        cause = RuntimeError("failed to save")
        order_store.save_order.side_effect = cause

        with pytest.raises(OrderError) as exc_info:
            service.make_order(5, _items((1, 2), (2, 1)))

        assert exc_info.value.kind == ErrorKind.ORDER_PERSISTENCE_FAILED
        assert exc_info.value.message == "order creation failed"
        assert exc_info.value.__cause__ is cause


def _stored(order_id, *items):
    return Order(
        id=order_id,
        customer_id=5,
        order_date=ORDER_DATE,
        items=[OrderItem(book_id=b, quantity=q, price=p, book_title=t) for b, q, p, t in items],
    )


class TestGetOrdersByCustomer:
    def test_totals_and_order(self, service, order_store, book_provider):
        order_store.get_orders_by_customer.return_value = [
            _stored(1, (1, 2, 10.0, "A"), (2, 1, 20.0, "B")),
            _stored(2, (3, 5, 20.0, "C")),
        ]

        orders = service.get_orders_by_customer(5)

        assert [o.id for o in orders] == [2, 1]
        assert [o.total for o in orders] == [100.0, 40.0]
        order_store.get_orders_by_customer.assert_called_once_with(5)
        book_provider.get_books_information.assert_not_called()

    def test_no_orders(self, service, book_provider):
        assert service.get_orders_by_customer(5) == []
        book_provider.get_books_information.assert_not_called()

    def test_repeated_reads_are_identical(self, service, order_store):
        order_store.get_orders_by_customer.side_effect = lambda customer_id: [
            _stored(4, (1, 1, 10.0, "A")),
            _stored(9, (2, 3, 20.0, "B")),
        ]

        assert service.get_orders_by_customer(5) == service.get_orders_by_customer(5)

    def test_missing_titles_are_backfilled(self, service, order_store, book_provider):
        order_store.get_orders_by_customer.return_value = [
            _stored(1, (1, 1, 10.0, ""), (2, 1, 20.0, "Kept")),
            _stored(2, (1, 3, 8.0, "")),
        ]

        orders = service.get_orders_by_customer(5)

        book_provider.get_books_information.assert_called_once_with({1})
        titles = [[i.book_title for i in o.items] for o in orders]
        assert titles == [["Book1"], ["Book1", "Kept"]]
        # the snapshot price is never replaced by the catalog price
        assert orders[0].items[0].price == 8.0

    def test_backfill_lookup_failure(self, service, order_store, book_provider):
        order_store.get_orders_by_customer.return_value = [_stored(1, (7, 1, 10.0, ""))]

        with pytest.raises(OrderError) as exc_info:
            service.get_orders_by_customer(5)

        assert exc_info.value.kind == ErrorKind.BOOK_LOOKUP_FAILED

    def test_repository_failure(self, service, order_store):
        cause = RuntimeError("database is gone")
        order_store.get_orders_by_customer.side_effect = cause

        with pytest.raises(OrderError) as exc_info:
            service.get_orders_by_customer(5)

        assert exc_info.value.kind == ErrorKind.ORDER_PERSISTENCE_FAILED
        assert exc_info.value.message == "order retrieval failed"
        assert exc_info.value.__cause__ is cause
