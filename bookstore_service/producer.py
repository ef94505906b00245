"""Kafka producer for publishing created orders."""

from confluent_kafka import Producer
from logging_utils.config import get_kafka_logger

from . import config
from .schemas import Order

logger = get_kafka_logger(config.SERVICE_NAME)


class OrderProducer:
    """Kafka producer for publishing order events.

    Orders are keyed by id, so every event about one order lands on the same
    partition.

    Attributes:
        _producer: The underlying Kafka producer instance.
        topic: Topic created orders are published to.
    """

    def __init__(self, bootstrap_servers: str, topic: str = config.ORDERS_CREATED_TOPIC):
        """Initialize the Kafka producer with the given bootstrap servers.

        Args:
            bootstrap_servers (str): Comma-separated list of Kafka broker addresses.
            topic (str): Topic created orders are published to.
        """
        self._producer = Producer(
            {
                "bootstrap.servers": bootstrap_servers,
                "client.id": config.SERVICE_NAME,
                "message.timeout.ms": 5000,
                "partitioner": "consistent_random",  # Same key → same partition
            }
        )
        self.topic = topic

    @property
    def producer(self):
        """Get the underlying Kafka producer instance.

        Returns:
            Producer: The Kafka producer instance.
        """
        return self._producer

    def _delivery_callback(self, err, msg):
        """Log the delivery report of a message.

        Args:
            err: Error that occurred during message delivery, if any.
            msg: Message that was delivered or failed.
        """
        if err:
            logger.error(f"Order event failed delivery to {msg.topic()}: {err}")
        else:
            logger.debug(f"Order event delivered to {msg.topic()} [p:{msg.partition()}] at offset {msg.offset()}")

    def publish_order(self, order: Order) -> None:
        """Publish a created order.

        Args:
            order (Order): The stored order, total included.

        Raises:
            BufferError: If the producer's internal buffer is full.
        """
        try:
            self._producer.produce(
                topic=self.topic,
                key=str(order.id).encode("utf-8"),
                value=order.model_dump_json(),
                on_delivery=self._delivery_callback,
            )
            self._producer.poll(0)  # Trigger delivery callbacks
        except BufferError:
            logger.warning("Producer buffer full, flushing...")
            self._producer.flush()
            raise

    def close(self, timeout: float = 5.0) -> None:
        """Flush outstanding messages before shutdown."""
        remaining = self._producer.flush(timeout)
        if remaining:
            logger.warning(f"{remaining} order event(s) still undelivered at shutdown")
