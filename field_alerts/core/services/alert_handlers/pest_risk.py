from datetime import timedelta
from typing import Optional

from ...config.config import PestRiskSettings
from ...domain.conditions import PestRiskLevel
from ...domain.context import CorrelationContext
from ...domain.measurement import FieldMeasurement
from ...domain.notification import NotificationPriority, NotificationRequest
from ..analysis_calculations import AnalysisCalculations
from .base import HistoryAlertHandler, format_decimal


RISK_PRIORITIES = {
    PestRiskLevel.MEDIUM: NotificationPriority.MEDIUM,
    PestRiskLevel.HIGH: NotificationPriority.HIGH,
    PestRiskLevel.CRITICAL: NotificationPriority.CRITICAL
}


class PestRiskAlertHandler(HistoryAlertHandler):
    """
    Notifies when consecutive days favour pest proliferation.
    Assessments below MEDIUM are logged but not published.
    """

    alert_type = "PestRisk"
    template_id = "PestRisk"
    minimum_level = PestRiskLevel.MEDIUM

    def __init__(self, repository, publishers, transport, settings: PestRiskSettings = None, **kwargs):
        super().__init__(repository, publishers, transport, **kwargs)
        self.settings = settings or PestRiskSettings()

    def history_window(self) -> timedelta:
        return timedelta(days=self.settings.history_days)

    async def evaluate(
        self,
        measurement: FieldMeasurement,
        context: CorrelationContext
    ) -> Optional[NotificationRequest]:
        history = await self.fetch_history(measurement)
        assessment = AnalysisCalculations.analyze_pest_risk(
            history,
            self.settings.min_temperature,
            self.settings.max_temperature,
            self.settings.min_moisture,
            self.settings.minimum_favorable_days
        )
        if assessment is None:
            return None
        if assessment.risk_level < self.minimum_level:
            self.logger.debug(
                "Pest risk below notification level",
                field_id=measurement.field_id,
                risk_level=assessment.risk_level.label,
                favorable_days=assessment.favorable_days_count
            )
            return None

        detected_at = self.clock()
        priority = RISK_PRIORITIES[assessment.risk_level]
        parameters = self.common_parameters(measurement, context, detected_at)
        parameters.update({
            "{riskLevel}": assessment.risk_level.label,
            "{favorableDaysCount}": str(assessment.favorable_days_count),
            "{averageTemperature}": format_decimal(assessment.average_temperature),
            "{averageMoisture}": format_decimal(assessment.average_moisture),
            "{riskFactors}": assessment.risk_factors_text,
            "{minTemperature}": format_decimal(self.settings.min_temperature),
            "{maxTemperature}": format_decimal(self.settings.max_temperature),
            "{minMoisture}": format_decimal(self.settings.min_moisture),
            "{minimumFavorableDays}": str(self.settings.minimum_favorable_days),
            "{historyDays}": str(self.settings.history_days)
        })

        return NotificationRequest(
            email_to=measurement.recipients,
            metadata=self.build_metadata(measurement, priority, context, detected_at),
            priority=priority,
            template_id=self.template_id,
            parameters=parameters
        )
