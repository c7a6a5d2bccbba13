from datetime import timedelta
from typing import Optional

from ...config.config import IrrigationSettings
from ...domain.conditions import IrrigationUrgency
from ...domain.context import CorrelationContext
from ...domain.measurement import FieldMeasurement
from ...domain.notification import NotificationPriority, NotificationRequest
from ..analysis_calculations import AnalysisCalculations
from .base import HistoryAlertHandler, format_decimal


URGENCY_PRIORITIES = {
    IrrigationUrgency.LOW: NotificationPriority.LOW,
    IrrigationUrgency.MEDIUM: NotificationPriority.MEDIUM,
    IrrigationUrgency.HIGH: NotificationPriority.HIGH,
    IrrigationUrgency.CRITICAL: NotificationPriority.CRITICAL
}

URGENCY_ACTIONS = {
    IrrigationUrgency.LOW: "Consider irrigating within the next 2-3 days",
    IrrigationUrgency.MEDIUM: "Plan irrigation for the next 24-48 hours",
    IrrigationUrgency.HIGH: "Start irrigating within the next 12-24 hours",
    IrrigationUrgency.CRITICAL: "Start irrigating IMMEDIATELY"
}


class IrrigationAlertHandler(HistoryAlertHandler):
    """Recommends irrigation from the moisture deficit and its recent trend."""

    alert_type = "IrrigationRecommendation"
    template_id = "Irrigation"

    def __init__(self, repository, publishers, transport, settings: IrrigationSettings = None, **kwargs):
        super().__init__(repository, publishers, transport, **kwargs)
        self.settings = settings or IrrigationSettings()

    def history_window(self) -> timedelta:
        return timedelta(days=self.settings.history_days)

    async def evaluate(
        self,
        measurement: FieldMeasurement,
        context: CorrelationContext
    ) -> Optional[NotificationRequest]:
        history = await self.fetch_history(measurement)
        recommendation = AnalysisCalculations.recommend_irrigation(
            history,
            self.settings.optimal_moisture,
            self.settings.critical_moisture,
            self.settings.soil_water_capacity
        )
        if recommendation is None:
            return None

        detected_at = self.clock()
        priority = URGENCY_PRIORITIES[recommendation.urgency]
        parameters = self.common_parameters(measurement, context, detected_at)
        parameters.update({
            "{urgency}": recommendation.urgency.label,
            "{urgencyAction}": URGENCY_ACTIONS[recommendation.urgency],
            "{reason}": recommendation.reason,
            "{currentMoisture}": format_decimal(recommendation.current_moisture),
            "{optimalMoisture}": format_decimal(self.settings.optimal_moisture),
            "{criticalMoisture}": format_decimal(self.settings.critical_moisture),
            "{moistureDeficit}": format_decimal(recommendation.moisture_deficit),
            "{waterAmountMM}": format_decimal(recommendation.water_amount_mm),
            "{estimatedDurationMinutes}": f"{recommendation.estimated_duration.total_seconds() / 60:.0f}",
            "{soilWaterCapacity}": format_decimal(self.settings.soil_water_capacity),
            "{historyDays}": str(self.settings.history_days)
        })

        return NotificationRequest(
            email_to=measurement.recipients,
            metadata=self.build_metadata(measurement, priority, context, detected_at),
            priority=priority,
            template_id=self.template_id,
            parameters=parameters
        )
