import os

from dotenv import load_dotenv

load_dotenv()  # Load .env from the working directory when running locally


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


SERVICE_NAME = os.getenv("SERVICE_NAME", "bookstore-service")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bookstore.db")
DATABASE_ECHO = _flag("DATABASE_ECHO", "false")

KAFKA_ENABLED = _flag("KAFKA_ENABLED", "true")
KAFKA_BOOTSTRAP_SERVERS = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "kafka:9092")
ORDERS_CREATED_TOPIC = os.getenv("ORDERS_CREATED_TOPIC", "orders.created")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE") or None
LOG_JSON = _flag("LOG_JSON", "false")

# For Uvicorn binding inside container
APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("APP_PORT", "8000"))
