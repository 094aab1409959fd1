# carrymatch/infra/event_bus.py
"""
RabbitMQ event bus.
Publishes domain events to a topic exchange keyed by event_type.
"""

from __future__ import annotations

from datetime import datetime, timezone

import aio_pika
from aio_pika import ExchangeType, Message
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractExchange

from carrymatch.common.constants import TypeMsg
from carrymatch.common.logger import get_logger, log_error, log_info
from carrymatch.shared.events.base import DomainEvent

logger = get_logger("event_bus")


class EventBus:
    """
    RabbitMQ event bus.

    Publishing is best-effort: a missing connection or a broker error is
    logged and never propagates to the caller.
    """

    _instance: EventBus | None = None
    _connection: AbstractConnection | None = None
    _channel: AbstractChannel | None = None
    _exchange: AbstractExchange | None = None

    def __new__(cls) -> EventBus:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._connection = None
        self._channel = None
        self._exchange = None
        self._exchange_name = "carrymatch.events"

    @property
    def is_connected(self) -> bool:
        """True while the broker connection is open."""
        return self._connection is not None and not self._connection.is_closed

    async def connect(
        self,
        url: str | None = None,
        exchange_name: str | None = None,
    ) -> None:
        """
        Connects to RabbitMQ and declares the topic exchange.

        Args:
            url: AMQP URL (taken from settings when None)
            exchange_name: Exchange name
        """
        if self.is_connected:
            return

        if url is None:
            from carrymatch.config import settings
            url = settings.rabbitmq.url
            exchange_name = settings.rabbitmq.RABBITMQ_EXCHANGE

        if exchange_name:
            self._exchange_name = exchange_name

        await log_info("Connecting to RabbitMQ...", type_msg=TypeMsg.INFO)

        self._connection = await aio_pika.connect_robust(url)
        self._channel = await self._connection.channel()

        self._exchange = await self._channel.declare_exchange(
            self._exchange_name,
            ExchangeType.TOPIC,
            durable=True,
        )

        await log_info("RabbitMQ connection established", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Closes the broker connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            self._channel = None
            self._exchange = None
            await log_info("RabbitMQ connection closed", type_msg=TypeMsg.INFO)

    async def publish(self, event: DomainEvent) -> bool:
        """
        Publishes an event with its event_type as routing key.

        Args:
            event: Domain event

        Returns:
            True if the broker accepted the message
        """
        if not self.is_connected or self._exchange is None:
            await log_error(f"Cannot publish {event.event_type}: no RabbitMQ connection")
            return False

        try:
            message = Message(
                body=event.to_json().encode(),
                content_type="application/json",
                message_id=event.event_id,
                timestamp=datetime.now(timezone.utc),
            )

            await self._exchange.publish(message, routing_key=event.event_type)

            await log_info(f"Event published: {event.event_type}", type_msg=TypeMsg.DEBUG)
            return True
        except Exception as e:
            await log_error(f"Failed to publish {event.event_type}: {e}")
            return False

    async def health_check(self) -> bool:
        """True when the connection is open."""
        return self.is_connected


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Returns the global EventBus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


async def init_event_bus() -> None:
    """Connects the global EventBus using settings."""
    from carrymatch.config import settings

    event_bus = get_event_bus()
    await event_bus.connect(
        url=settings.rabbitmq.url,
        exchange_name=settings.rabbitmq.RABBITMQ_EXCHANGE,
    )
    await log_info(
        f"RabbitMQ connected: {settings.rabbitmq.RABBITMQ_HOST}:{settings.rabbitmq.RABBITMQ_PORT}",
        type_msg=TypeMsg.INFO,
    )


async def close_event_bus() -> None:
    """Closes the global EventBus."""
    event_bus = get_event_bus()
    await event_bus.disconnect()
