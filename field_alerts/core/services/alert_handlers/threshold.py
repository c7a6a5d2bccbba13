"""
Single-reading alerts: excessive rainfall, extreme heat and freezing.
None of them needs the measurement history.
"""

from abc import abstractmethod
from typing import Optional

from ...config.config import ExcessiveRainfallSettings, ExtremeHeatSettings, FreezingSettings
from ...domain.context import CorrelationContext
from ...domain.measurement import FieldMeasurement
from ...domain.notification import NotificationPriority, NotificationRequest
from ...ports.message_publisher import ALERT_REQUIRED_QUEUE
from ..analysis_calculations import AnalysisCalculations
from .alert_messages import render_extreme_heat, render_freezing
from .base import AlertHandler, format_decimal, format_display_time


class ExcessiveRainfallAlertHandler(AlertHandler):
    alert_type = "ExcessiveRainfall"
    template_id = "ExcessiveRainfall"

    def __init__(self, publishers, transport, settings: ExcessiveRainfallSettings = None, **kwargs):
        super().__init__(publishers, transport, **kwargs)
        self.settings = settings or ExcessiveRainfallSettings()

    async def evaluate(
        self,
        measurement: FieldMeasurement,
        context: CorrelationContext
    ) -> Optional[NotificationRequest]:
        breach = AnalysisCalculations.check_excessive_rainfall(measurement, self.settings.threshold)
        if breach is None:
            return None

        detected_at = self.clock()
        priority = NotificationPriority.HIGH
        parameters = self.common_parameters(measurement, context, detected_at)
        parameters.update({
            "{precipitation}": format_decimal(breach.value),
            "{threshold}": format_decimal(breach.threshold),
            "{excess}": format_decimal(breach.excess)
        })
        if breach.percent_above is not None:
            parameters["{percentAbove}"] = format_decimal(breach.percent_above)

        return NotificationRequest(
            email_to=measurement.recipients,
            metadata=self.build_metadata(measurement, priority, context, detected_at),
            priority=priority,
            template_id=self.template_id,
            parameters=parameters
        )


class _RenderedAlertHandler(AlertHandler):
    """Alert published with a pre-rendered subject and body on the alert queue."""

    destination = ALERT_REQUIRED_QUEUE

    @abstractmethod
    def render(self, measurement, breach, context, detected_at) -> tuple:
        """Return the (subject, body) pair for a breach."""
        pass

    @abstractmethod
    def check(self, measurement: FieldMeasurement):
        pass

    async def evaluate(
        self,
        measurement: FieldMeasurement,
        context: CorrelationContext
    ) -> Optional[NotificationRequest]:
        breach = self.check(measurement)
        if breach is None:
            return None

        detected_at = self.clock()
        priority = NotificationPriority.HIGH
        subject, body = self.render(measurement, breach, context, detected_at)
        return NotificationRequest(
            email_to=measurement.recipients,
            metadata=self.build_metadata(measurement, priority, context, detected_at),
            priority=priority,
            subject=subject,
            body=body
        )

    def _values(self, measurement, breach, context, detected_at) -> dict:
        return {
            "field_id": measurement.field_id,
            "temperature": format_decimal(breach.value),
            "threshold": format_decimal(breach.threshold),
            "excess": format_decimal(breach.excess),
            "detected_at": f"{format_display_time(detected_at, self.display_timezone)} ({self.display_timezone})",
            "correlation_id": context.correlation_id
        }


class ExtremeHeatAlertHandler(_RenderedAlertHandler):
    alert_type = "ExtremeHeat"

    def __init__(self, publishers, transport, settings: ExtremeHeatSettings = None, **kwargs):
        super().__init__(publishers, transport, **kwargs)
        self.settings = settings or ExtremeHeatSettings()

    def check(self, measurement: FieldMeasurement):
        return AnalysisCalculations.check_extreme_heat(measurement, self.settings.threshold)

    def render(self, measurement, breach, context, detected_at) -> tuple:
        return render_extreme_heat(**self._values(measurement, breach, context, detected_at))


class FreezingAlertHandler(_RenderedAlertHandler):
    alert_type = "FreezingTemperature"

    def __init__(self, publishers, transport, settings: FreezingSettings = None, **kwargs):
        super().__init__(publishers, transport, **kwargs)
        self.settings = settings or FreezingSettings()

    def check(self, measurement: FieldMeasurement):
        return AnalysisCalculations.check_freezing(measurement, self.settings.threshold)

    def render(self, measurement, breach, context, detected_at) -> tuple:
        return render_freezing(**self._values(measurement, breach, context, detected_at))
