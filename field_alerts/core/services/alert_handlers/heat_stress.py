from datetime import timedelta
from typing import Optional

from ...config.config import HeatStressSettings
from ...domain.conditions import HeatStressLevel
from ...domain.context import CorrelationContext
from ...domain.measurement import FieldMeasurement
from ...domain.notification import NotificationPriority, NotificationRequest
from ..analysis_calculations import AnalysisCalculations
from .base import HistoryAlertHandler, format_decimal


LEVEL_PRIORITIES = {
    HeatStressLevel.SEVERE: NotificationPriority.CRITICAL,
    HeatStressLevel.HIGH: NotificationPriority.HIGH,
    HeatStressLevel.MODERATE: NotificationPriority.MEDIUM,
    HeatStressLevel.NONE: NotificationPriority.LOW
}


class HeatStressAlertHandler(HistoryAlertHandler):
    """Notifies when air temperature stays above the critical value for several hours."""

    alert_type = "HeatStress"
    template_id = "HeatStress"

    def __init__(self, repository, publishers, transport, settings: HeatStressSettings = None, **kwargs):
        super().__init__(repository, publishers, transport, **kwargs)
        self.settings = settings or HeatStressSettings()

    def history_window(self) -> timedelta:
        return timedelta(hours=self.settings.history_hours)

    async def evaluate(
        self,
        measurement: FieldMeasurement,
        context: CorrelationContext
    ) -> Optional[NotificationRequest]:
        history = await self.fetch_history(measurement)
        heat_stress = AnalysisCalculations.analyze_heat_stress(
            history,
            self.settings.critical_temperature,
            self.settings.minimum_duration_hours
        )
        if heat_stress is None:
            return None

        detected_at = self.clock()
        priority = LEVEL_PRIORITIES[heat_stress.level]
        parameters = self.common_parameters(measurement, context, detected_at)
        parameters.update({
            "{stressLevel}": heat_stress.level.value,
            "{durationHours}": format_decimal(heat_stress.duration_hours),
            "{averageTemperature}": format_decimal(heat_stress.average_temperature),
            "{peakTemperature}": format_decimal(heat_stress.peak_temperature),
            "{criticalTemperature}": format_decimal(self.settings.critical_temperature),
            "{historyHours}": str(self.settings.history_hours),
            "{minimumDurationHours}": str(self.settings.minimum_duration_hours)
        })

        return NotificationRequest(
            email_to=measurement.recipients,
            metadata=self.build_metadata(measurement, priority, context, detected_at),
            priority=priority,
            template_id=self.template_id,
            parameters=parameters
        )
