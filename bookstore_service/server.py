"""FastAPI server for the bookstore order service."""

from contextlib import asynccontextmanager
from typing import Optional

from confluent_kafka.admin import AdminClient
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, status
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from . import __version__, config
from .database import check_connection, create_db_engine, create_session_factory, create_tables
from .errors import ErrorKind, OrderError
from .logger import logger
from .orders import OrderService
from .producer import OrderProducer
from .repository import SqlBookRepository, SqlOrderRepository
from .schemas import Book, Order, OrderRequestItem

ERROR_STATUS = {
    ErrorKind.EMPTY_ORDER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_BOOK_ID: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_QUANTITY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_BOOK_IN_ORDER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.BOOK_LOOKUP_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.ORDER_PERSISTENCE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ServiceState:
    """Resources shared by all requests, created in the lifespan."""

    def __init__(self) -> None:
        self.engine: Optional[Engine] = None
        self.session_factory: Optional[sessionmaker[Session]] = None
        self.producer: Optional[OrderProducer] = None


state = ServiceState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the lifecycle of the FastAPI application."""
    logger.info("Bookstore service starting up...")
    state.engine = create_db_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO)
    create_tables(state.engine)
    state.session_factory = create_session_factory(state.engine)

    if config.KAFKA_ENABLED:
        state.producer = OrderProducer(config.KAFKA_BOOTSTRAP_SERVERS)
        logger.info(f"Publishing created orders to '{state.producer.topic}'")
    else:
        logger.info("Kafka disabled, created orders will not be published")

    yield

    logger.info("Shutting down bookstore service...")
    if state.producer:
        state.producer.close()
        state.producer = None
    state.engine.dispose()
    state.engine = None
    state.session_factory = None
    logger.info("Shutdown complete")


app = FastAPI(
    title="Bookstore Service",
    description="Book catalog, order placement and order history.",
    version=__version__,
    lifespan=lifespan,
)
router = APIRouter(prefix="/api")


def get_session_factory() -> sessionmaker[Session]:
    if state.session_factory is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database not initialised")
    return state.session_factory


def get_book_repository(session_factory: sessionmaker[Session] = Depends(get_session_factory)) -> SqlBookRepository:
    return SqlBookRepository(session_factory)


def get_order_service(session_factory: sessionmaker[Session] = Depends(get_session_factory)) -> OrderService:
    return OrderService(SqlOrderRepository(session_factory), SqlBookRepository(session_factory))


def get_customer_id(x_customer_id: Optional[str] = Header(None)) -> int:
    """Customer identity forwarded by the authentication gateway."""
    try:
        customer_id = int(x_customer_id)
    except (TypeError, ValueError):
        customer_id = 0
    if customer_id <= 0:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return customer_id


def _to_http_error(error: OrderError, customer_id: int) -> HTTPException:
    if error.is_validation:
        logger.info(f"Rejected order request from customer {customer_id}: {error.message}")
    else:
        logger.error(f"{error.message} for customer {customer_id}: {error.__cause__!r}")
    return HTTPException(
        status_code=ERROR_STATUS[error.kind],
        detail={"kind": error.kind.value, "message": error.message},
    )


@app.get("/health")
def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/ready")
def readiness_check():
    """Check if the service is ready to accept traffic.

    Returns:
        dict: Readiness status with database and Kafka connection status.
    """
    database_ok = state.engine is not None and check_connection(state.engine)
    kafka_ok = _check_kafka_connection() if config.KAFKA_ENABLED else None
    ready = database_ok and kafka_ok is not False
    return {"status": "ready" if ready else "not_ready", "database": database_ok, "kafka": kafka_ok}


@router.get("/books", response_model=list[Book], tags=["Books"])
def list_books(books: SqlBookRepository = Depends(get_book_repository)):
    """List the whole catalog."""
    try:
        return books.get_all_books()
    except Exception as e:
        logger.error(f"Failed to list books: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal server error")


@router.get("/orders", response_model=list[Order], tags=["Orders"])
def list_orders(
    customer_id: int = Depends(get_customer_id),
    service: OrderService = Depends(get_order_service),
):
    """Order history of the calling customer, most recent first."""
    try:
        return service.get_orders_by_customer(customer_id)
    except OrderError as e:
        raise _to_http_error(e, customer_id) from e


@router.post("/orders", response_model=Order, tags=["Orders"])
def create_order(
    items: list[OrderRequestItem],
    customer_id: int = Depends(get_customer_id),
    service: OrderService = Depends(get_order_service),
):
    """Create an order from a list of books and quantities.

    The created order is published to Kafka on a best-effort basis; it is
    already stored when publishing is attempted.
    """
    logger.info(f"Received order request from customer {customer_id} with {len(items)} item(s)")
    try:
        order = service.make_order(customer_id, items)
    except OrderError as e:
        raise _to_http_error(e, customer_id) from e

    if state.producer:
        try:
            state.producer.publish_order(order)
        except Exception as e:
            logger.error(f"Failed to publish order {order.id}: {e}")
    return order


def _check_kafka_connection() -> bool:
    """Check if Kafka connection is available.

    Returns:
        bool: True if Kafka is accessible, False otherwise.
    """
    try:
        admin = AdminClient({"bootstrap.servers": config.KAFKA_BOOTSTRAP_SERVERS})
        return bool(admin.list_topics(timeout=5))
    except Exception as e:
        logger.error(f"Kafka connection failed: {e}")
        return False


app.include_router(router)
