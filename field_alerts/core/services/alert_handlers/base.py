"""
Base classes shared by the measurement alert handlers.
"""

from abc import abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from ...domain.context import CorrelationContext
from ...domain.events import DomainEventType, MeasurementCreated
from ...domain.measurement import FieldMeasurement, utc_now
from ...domain.notification import AlertMetadata, NotificationPriority, NotificationRequest
from ...ports.logger import Logger
from ...ports.measurement_repository import MeasurementRepository
from ...ports.message_publisher import NOTIFICATIONS_QUEUE, PublisherRegistry, Transport
from ...config.config import logger as default_logger
from ..event_dispatcher import DomainEventHandler


DISPLAY_TIME_FORMAT = "%d/%m/%Y %H:%M:%S"


def format_decimal(value: float) -> str:
    """One-decimal rendering used for every physical quantity in alerts."""
    return f"{value:.1f}"


def format_display_time(value: datetime, timezone_name: str) -> str:
    return value.astimezone(ZoneInfo(timezone_name)).strftime(DISPLAY_TIME_FORMAT)


class AlertHandler(DomainEventHandler):
    """
    Reacts to MeasurementCreated, evaluates one risk and publishes a notification.

    Subclasses implement evaluate(); publishing, logging and correlation
    properties are handled here. Publish failures are logged and re-raised.
    """

    event_type = DomainEventType.MEASUREMENT_CREATED
    alert_type: str = None
    destination: str = NOTIFICATIONS_QUEUE

    def __init__(
        self,
        publishers: PublisherRegistry,
        transport: Transport,
        logger: Optional[Logger] = None,
        display_timezone: str = "America/Sao_Paulo",
        clock: Callable[[], datetime] = utc_now
    ):
        self.publishers = publishers
        self.transport = transport
        self.logger = logger or default_logger
        self.display_timezone = display_timezone
        self.clock = clock

    async def handle(self, event: MeasurementCreated, context: CorrelationContext) -> None:
        measurement = event.measurement
        notification = await self.evaluate(measurement, context)
        if notification is None:
            return
        await self.publish(notification, measurement, context)

    @abstractmethod
    async def evaluate(
        self,
        measurement: FieldMeasurement,
        context: CorrelationContext
    ) -> Optional[NotificationRequest]:
        """Return the notification to send, or None when the condition does not hold."""
        pass

    def build_metadata(
        self,
        measurement: FieldMeasurement,
        priority: NotificationPriority,
        context: CorrelationContext,
        detected_at: datetime
    ) -> AlertMetadata:
        return AlertMetadata(
            alert_type=self.alert_type,
            field_id=measurement.field_id,
            detected_at=detected_at,
            severity=priority.severity,
            correlation_id=context.correlation_id
        )

    def common_parameters(
        self,
        measurement: FieldMeasurement,
        context: CorrelationContext,
        detected_at: datetime
    ) -> Dict[str, str]:
        return {
            "{fieldId}": measurement.field_id,
            "{detectedAt}": f"{format_display_time(detected_at, self.display_timezone)} ({self.display_timezone})",
            "{correlationId}": context.correlation_id
        }

    async def publish(
        self,
        notification: NotificationRequest,
        measurement: FieldMeasurement,
        context: CorrelationContext
    ) -> None:
        properties = dict(notification.to_properties())
        properties.update(context.to_properties())

        try:
            publisher = self.publishers.get(self.transport)
            await publisher.publish(self.destination, notification.to_payload(), properties)
        except Exception as e:
            self.logger.error(
                f"Failed to send {self.alert_type} alert",
                field_id=measurement.field_id,
                measurement_id=measurement.id,
                destination=self.destination,
                error=str(e)
            )
            raise

        self.logger.warn(
            f"{self.alert_type} alert sent",
            field_id=measurement.field_id,
            measurement_id=measurement.id,
            priority=notification.priority.label,
            transport=self.transport.value,
            correlation_id=context.correlation_id
        )


class HistoryAlertHandler(AlertHandler):
    """Alert handler whose analysis needs a window of past measurements."""

    def __init__(self, repository: MeasurementRepository, publishers: PublisherRegistry, transport: Transport, **kwargs):
        super().__init__(publishers, transport, **kwargs)
        self.repository = repository

    @abstractmethod
    def history_window(self) -> timedelta:
        pass

    async def fetch_history(self, measurement: FieldMeasurement) -> List[FieldMeasurement]:
        """Load [collected_at - window, collected_at] for the measurement's field."""
        start_time = measurement.collected_at - self.history_window()
        try:
            history = await self.repository.get_by_field_and_range(
                measurement.field_id, start_time, measurement.collected_at
            )
        except Exception as e:
            self.logger.error(
                f"Failed to load history for {self.alert_type} analysis",
                field_id=measurement.field_id,
                measurement_id=measurement.id,
                error=str(e)
            )
            raise

        history = [m for m in history if m.field_id == measurement.field_id]
        # The triggering reading must be the most recent point of the window
        if not any(m.id == measurement.id for m in history):
            history.append(measurement)
        history.sort(key=lambda m: m.collected_at)
        return history
