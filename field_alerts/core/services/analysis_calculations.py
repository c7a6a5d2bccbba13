"""
Analysis calculations module containing the agronomic risk detectors.
Each function is pure: an ordered measurement history plus thresholds in, an optional condition out.
"""

from datetime import datetime
from typing import List, Optional, Sequence
import pandas as pd

from ..domain.measurement import FieldMeasurement
from ..domain.conditions import (
    DroughtCondition,
    HeatStressCondition,
    HeatStressLevel,
    PestRiskAssessment,
    PestRiskLevel,
    IrrigationRecommendation,
    IrrigationUrgency,
    ThresholdBreach
)


MINIMUM_HISTORY_POINTS = 2
TREND_WINDOW_CAP = 10


class AnalysisCalculations:
    """
    Static class containing all field risk analyses.
    History-based analyses need at least two measurements; with less they report nothing.
    """

    @staticmethod
    def _ordered(history: Sequence[FieldMeasurement]) -> List[FieldMeasurement]:
        return sorted(history, key=lambda m: m.collected_at)

    @staticmethod
    def detect_drought(
        history: Sequence[FieldMeasurement],
        moisture_threshold: float,
        minimum_duration_hours: float
    ) -> Optional[DroughtCondition]:
        """
        Detect a drought: soil moisture continuously below the threshold up to the latest reading.

        A single reading at or above the threshold resets the candidate run.

        Args:
            history: Measurements of one field, including the triggering one
            moisture_threshold: Soil moisture threshold in percent (0-100)
            minimum_duration_hours: Minimum length of the low-moisture run

        Returns:
            DroughtCondition or None when no drought is detected
        """
        if moisture_threshold < 0 or moisture_threshold > 100:
            raise ValueError("moisture_threshold must be between 0 and 100")
        if minimum_duration_hours <= 0:
            raise ValueError("minimum_duration_hours must be greater than 0")

        ordered = AnalysisCalculations._ordered(history)
        if len(ordered) < MINIMUM_HISTORY_POINTS:
            return None

        current = ordered[-1]
        if current.soil_moisture >= moisture_threshold:
            return None

        drought_start: Optional[datetime] = None
        for measurement in ordered:
            if measurement.soil_moisture < moisture_threshold:
                if drought_start is None:
                    drought_start = measurement.collected_at
            else:
                drought_start = None

        if drought_start is None:
            return None

        duration = current.collected_at - drought_start
        if duration.total_seconds() / 3600 >= minimum_duration_hours:
            return DroughtCondition(start_time=drought_start, duration=duration)
        return None

    @staticmethod
    def classify_heat_stress(average_temperature: float) -> HeatStressLevel:
        """Map an average streak temperature to a heat stress level."""
        if average_temperature >= 40:
            return HeatStressLevel.SEVERE
        if average_temperature >= 37:
            return HeatStressLevel.HIGH
        if average_temperature >= 35:
            return HeatStressLevel.MODERATE
        return HeatStressLevel.NONE

    @staticmethod
    def analyze_heat_stress(
        history: Sequence[FieldMeasurement],
        critical_temperature: float,
        minimum_hours: float
    ) -> Optional[HeatStressCondition]:
        """
        Detect sustained heat: the streak of readings at or above the critical
        temperature that is still open at the latest reading.

        Averages and peaks are computed over that streak only.
        """
        ordered = AnalysisCalculations._ordered(history)
        if len(ordered) < MINIMUM_HISTORY_POINTS:
            return None

        current = ordered[-1]
        if current.air_temperature < critical_temperature:
            return None

        streak_start: Optional[datetime] = None
        peak: Optional[float] = None
        total = 0.0
        count = 0

        for measurement in ordered:
            temperature = measurement.air_temperature
            if temperature >= critical_temperature:
                if streak_start is None:
                    streak_start = measurement.collected_at
                peak = temperature if peak is None else max(peak, temperature)
                total += temperature
                count += 1
            else:
                streak_start = None
                peak = None
                total = 0.0
                count = 0

        if streak_start is None or count == 0:
            return None

        duration = current.collected_at - streak_start
        if duration.total_seconds() / 3600 < minimum_hours:
            return None

        average = total / count
        return HeatStressCondition(
            level=AnalysisCalculations.classify_heat_stress(average),
            average_temperature=average,
            peak_temperature=peak,
            duration=duration,
            start_time=streak_start
        )

    @staticmethod
    def _daily_conditions(history: List[FieldMeasurement]) -> pd.DataFrame:
        """Average temperature and soil moisture per calendar day (UTC), sorted by day."""
        frame = pd.DataFrame(
            [
                {
                    "day": m.collected_at.date(),
                    "temperature": m.air_temperature,
                    "moisture": m.soil_moisture
                }
                for m in history
            ]
        )
        return frame.groupby("day", sort=True).mean()

    @staticmethod
    def _longest_run(flags: Sequence[bool]) -> int:
        longest = 0
        current = 0
        for flag in flags:
            if flag:
                current += 1
                longest = max(longest, current)
            else:
                current = 0
        return longest

    @staticmethod
    def score_pest_risk(
        consecutive_days: int,
        average_temperature: float,
        average_moisture: float,
        min_moisture: float
    ) -> PestRiskLevel:
        """
        Weighted rubric: run length weighs most, then closeness to the
        25-28°C optimum, then moisture.
        """
        score = 0

        if consecutive_days >= 10:
            score += 4
        elif consecutive_days >= 7:
            score += 3
        elif consecutive_days >= 5:
            score += 2

        if 25 <= average_temperature <= 28:
            score += 3
        elif 22 <= average_temperature <= 32:
            score += 2
        elif 20 <= average_temperature <= 35:
            score += 1

        if average_moisture >= 70:
            score += 3
        elif average_moisture >= min_moisture:
            score += 2

        if score >= 9:
            return PestRiskLevel.CRITICAL
        if score >= 7:
            return PestRiskLevel.HIGH
        if score >= 5:
            return PestRiskLevel.MEDIUM
        if score >= 3:
            return PestRiskLevel.LOW
        return PestRiskLevel.MINIMAL

    @staticmethod
    def identify_pest_risk_factors(
        consecutive_days: int,
        average_temperature: float,
        average_moisture: float,
        min_temperature: float,
        max_temperature: float
    ) -> tuple:
        factors = []

        if consecutive_days >= 7:
            factors.append(f"{consecutive_days} consecutive days with favorable conditions")

        if 25 <= average_temperature <= 28:
            factors.append(f"ideal temperature for pests ({average_temperature:.1f}°C)")
        elif min_temperature <= average_temperature <= max_temperature:
            factors.append(f"favorable temperature ({average_temperature:.1f}°C)")

        if average_moisture >= 70:
            factors.append(f"very high moisture ({average_moisture:.1f}%)")
        elif average_moisture >= 60:
            factors.append(f"high moisture ({average_moisture:.1f}%)")

        return tuple(factors)

    @staticmethod
    def analyze_pest_risk(
        history: Sequence[FieldMeasurement],
        min_temperature: float,
        max_temperature: float,
        min_moisture: float,
        minimum_favorable_days: int
    ) -> Optional[PestRiskAssessment]:
        """
        Assess pest risk from runs of consecutive favourable days.

        A day is favourable when its mean temperature lies within
        [min_temperature, max_temperature] and its mean soil moisture is at
        least min_moisture. Runs shorter than the minimum but of two days or
        more still yield a LOW assessment.
        """
        ordered = AnalysisCalculations._ordered(history)
        if len(ordered) < MINIMUM_HISTORY_POINTS:
            return None

        daily = AnalysisCalculations._daily_conditions(ordered)
        favorable = (
            daily["temperature"].between(min_temperature, max_temperature)
            & (daily["moisture"] >= min_moisture)
        )
        longest_run = AnalysisCalculations._longest_run(favorable.tolist())

        average_temperature = float(daily["temperature"].mean())
        average_moisture = float(daily["moisture"].mean())

        if longest_run < minimum_favorable_days:
            if longest_run >= 2:
                return PestRiskAssessment(
                    risk_level=PestRiskLevel.LOW,
                    favorable_days_count=longest_run,
                    average_temperature=average_temperature,
                    average_moisture=average_moisture,
                    risk_factors=(f"only {longest_run} consecutive days with favorable conditions",)
                )
            return None

        return PestRiskAssessment(
            risk_level=AnalysisCalculations.score_pest_risk(
                longest_run, average_temperature, average_moisture, min_moisture
            ),
            favorable_days_count=longest_run,
            average_temperature=average_temperature,
            average_moisture=average_moisture,
            risk_factors=AnalysisCalculations.identify_pest_risk_factors(
                longest_run, average_temperature, average_moisture, min_temperature, max_temperature
            )
        )

    @staticmethod
    def calculate_moisture_trend(history: List[FieldMeasurement]) -> float:
        """
        Compare the mean of the most recent readings with the mean of the oldest ones.

        Negative means the soil is drying, positive means it is recovering.
        """
        if len(history) < MINIMUM_HISTORY_POINTS:
            return 0.0

        window = min(TREND_WINDOW_CAP, len(history) // 2)
        recent = [m.soil_moisture for m in history[-window:]]
        older = [m.soil_moisture for m in history[:window]]
        return sum(recent) / len(recent) - sum(older) / len(older)

    @staticmethod
    def determine_irrigation_urgency(
        current_moisture: float,
        critical_moisture: float,
        deficit: float,
        trend: float
    ) -> IrrigationUrgency:
        if current_moisture <= critical_moisture:
            return IrrigationUrgency.CRITICAL
        if deficit > 20 or (deficit > 10 and trend < -3):
            return IrrigationUrgency.HIGH
        if deficit > 10 or (deficit > 5 and trend < -2):
            return IrrigationUrgency.MEDIUM
        if deficit > 5:
            return IrrigationUrgency.LOW
        return IrrigationUrgency.NONE

    @staticmethod
    def describe_trend(trend: float) -> str:
        if trend < -3:
            return "declining sharply"
        if trend < -1:
            return "declining"
        if trend > 1:
            return "recovering"
        return "steady"

    @staticmethod
    def irrigation_reason(deficit: float, trend: float, urgency: IrrigationUrgency) -> str:
        trend_text = AnalysisCalculations.describe_trend(trend)
        if urgency == IrrigationUrgency.CRITICAL:
            return f"Critical moisture with a deficit of {deficit:.1f}%, trend {trend_text}"
        if urgency == IrrigationUrgency.HIGH:
            return f"High water deficit ({deficit:.1f}%), trend {trend_text}"
        if urgency == IrrigationUrgency.MEDIUM:
            return f"Moderate deficit ({deficit:.1f}%), trend {trend_text}"
        if urgency == IrrigationUrgency.LOW:
            return f"Slight deficit ({deficit:.1f}%), trend {trend_text}, monitor the next 48h"
        return ""

    @staticmethod
    def recommend_irrigation(
        history: Sequence[FieldMeasurement],
        optimal_moisture: float,
        critical_moisture: float,
        soil_capacity: float
    ) -> Optional[IrrigationRecommendation]:
        """
        Recommend irrigation from the current moisture deficit and the recent trend.

        Args:
            history: Measurements of one field, including the triggering one
            optimal_moisture: Target soil moisture in percent
            critical_moisture: Moisture at or below which irrigation is always critical
            soil_capacity: Soil water holding capacity in mm

        Returns:
            IrrigationRecommendation or None when no irrigation is needed
        """
        ordered = AnalysisCalculations._ordered(history)
        if len(ordered) < MINIMUM_HISTORY_POINTS:
            return None

        current = ordered[-1]
        if current.soil_moisture >= optimal_moisture:
            return None

        deficit = optimal_moisture - current.soil_moisture
        trend = AnalysisCalculations.calculate_moisture_trend(ordered)
        urgency = AnalysisCalculations.determine_irrigation_urgency(
            current.soil_moisture, critical_moisture, deficit, trend
        )
        if urgency == IrrigationUrgency.NONE:
            return None

        return IrrigationRecommendation(
            urgency=urgency,
            water_amount_mm=(deficit / 100) * soil_capacity,
            current_moisture=current.soil_moisture,
            target_moisture=optimal_moisture,
            reason=AnalysisCalculations.irrigation_reason(deficit, trend, urgency)
        )

    @staticmethod
    def check_excessive_rainfall(
        measurement: FieldMeasurement, threshold: float
    ) -> Optional[ThresholdBreach]:
        """Precipitation strictly above the threshold."""
        if measurement.precipitation > threshold:
            return ThresholdBreach(value=measurement.precipitation, threshold=threshold)
        return None

    @staticmethod
    def check_extreme_heat(
        measurement: FieldMeasurement, threshold: float
    ) -> Optional[ThresholdBreach]:
        """Air temperature strictly above the threshold."""
        if measurement.air_temperature > threshold:
            return ThresholdBreach(value=measurement.air_temperature, threshold=threshold)
        return None

    @staticmethod
    def check_freezing(
        measurement: FieldMeasurement, threshold: float
    ) -> Optional[ThresholdBreach]:
        """Air temperature strictly below the threshold."""
        if measurement.air_temperature < threshold:
            return ThresholdBreach(value=measurement.air_temperature, threshold=threshold)
        return None
