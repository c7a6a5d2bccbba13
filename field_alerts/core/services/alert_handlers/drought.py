from datetime import timedelta
from typing import Optional

from ...config.config import DroughtSettings
from ...domain.context import CorrelationContext
from ...domain.measurement import FieldMeasurement
from ...domain.notification import NotificationPriority, NotificationRequest
from ..analysis_calculations import AnalysisCalculations
from .base import HistoryAlertHandler, format_decimal, format_display_time


class DroughtAlertHandler(HistoryAlertHandler):
    """Notifies when soil moisture has stayed below the drought threshold long enough."""

    alert_type = "DroughtCondition"
    template_id = "Drought"

    def __init__(self, repository, publishers, transport, settings: DroughtSettings = None, **kwargs):
        super().__init__(repository, publishers, transport, **kwargs)
        self.settings = settings or DroughtSettings()

    def history_window(self) -> timedelta:
        return timedelta(days=self.settings.history_days)

    async def evaluate(
        self,
        measurement: FieldMeasurement,
        context: CorrelationContext
    ) -> Optional[NotificationRequest]:
        history = await self.fetch_history(measurement)
        drought = AnalysisCalculations.detect_drought(
            history,
            self.settings.threshold,
            self.settings.minimum_duration_hours
        )
        if drought is None:
            return None

        detected_at = self.clock()
        priority = NotificationPriority.HIGH
        parameters = self.common_parameters(measurement, context, detected_at)
        parameters.update({
            "{soilMoisture}": format_decimal(measurement.soil_moisture),
            "{threshold}": format_decimal(self.settings.threshold),
            "{moistureDeficit}": format_decimal(self.settings.threshold - measurement.soil_moisture),
            "{durationHours}": format_decimal(drought.duration_hours),
            "{durationDays}": format_decimal(drought.duration_hours / 24),
            "{firstLowMoistureDetected}": format_display_time(drought.start_time, self.display_timezone),
            "{historyDays}": str(self.settings.history_days),
            "{minimumDurationHours}": str(self.settings.minimum_duration_hours)
        })

        return NotificationRequest(
            email_to=measurement.recipients,
            metadata=self.build_metadata(measurement, priority, context, detected_at),
            priority=priority,
            template_id=self.template_id,
            parameters=parameters
        )
