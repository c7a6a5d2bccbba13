"""
Configuration settings for the Field Alerts Service.
Loads configuration from environment variables with sensible defaults.
"""

import logging
import os
from dataclasses import dataclass
from typing import List

from ...adapters.logger.standard_logger import StandardLogger
from ..ports.logger import Logger


# Configure logging using our custom logger
logger: Logger = StandardLogger(
    "field_alerts",
    level=getattr(logging, os.getenv("LOG_LEVEL", "info").upper(), logging.INFO)
)


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass(frozen=True)
class DroughtSettings:
    threshold: float = 30.0
    minimum_duration_hours: int = 24
    history_days: int = 7


@dataclass(frozen=True)
class HeatStressSettings:
    critical_temperature: float = 35.0
    minimum_duration_hours: int = 6
    history_hours: int = 24


@dataclass(frozen=True)
class PestRiskSettings:
    min_temperature: float = 22.0
    max_temperature: float = 32.0
    min_moisture: float = 60.0
    minimum_favorable_days: int = 5
    history_days: int = 14


@dataclass(frozen=True)
class IrrigationSettings:
    optimal_moisture: float = 60.0
    critical_moisture: float = 30.0
    soil_water_capacity: float = 150.0
    history_days: int = 7


@dataclass(frozen=True)
class ExcessiveRainfallSettings:
    threshold: float = 60.0


@dataclass(frozen=True)
class ExtremeHeatSettings:
    threshold: float = 40.0


@dataclass(frozen=True)
class FreezingSettings:
    threshold: float = 0.0


# Configuration from environment variables
class Config:
    """Application configuration loaded from environment variables."""

    # InfluxDB configuration
    INFLUXDB_URL: str = os.getenv("INFLUXDB_URL", "http://localhost:8086")
    INFLUXDB_TOKEN: str = os.getenv("INFLUXDB_TOKEN", "your-influxdb-token-here")
    INFLUXDB_BUCKET: str = os.getenv("INFLUXDB_BUCKET", "field-measurements")
    INFLUXDB_ORG: str = os.getenv("INFLUXDB_ORG", "field-alerts")

    # Redis configuration (stream transport and measurement mirror)
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD") or None
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_STREAM_MAX_LEN: int = int(os.getenv("REDIS_STREAM_MAX_LEN", "10000"))
    MIRROR_ENABLED: bool = os.getenv("MIRROR_ENABLED", "true").lower() == "true"
    MIRROR_TTL: int = int(os.getenv("MIRROR_TTL", "86400"))

    # MQTT configuration
    MQTT_ENABLED: bool = os.getenv("MQTT_ENABLED", "false").lower() == "true"
    MQTT_HOST: str = os.getenv("MQTT_HOST", "localhost")
    MQTT_PORT: int = int(os.getenv("MQTT_PORT", "1883"))
    MQTT_USERNAME: str = os.getenv("MQTT_USERNAME") or None
    MQTT_PASSWORD: str = os.getenv("MQTT_PASSWORD") or None
    MQTT_TOPIC_PREFIX: str = os.getenv("MQTT_TOPIC_PREFIX", "field-alerts")

    # Transport used by the alert handlers
    ALERT_TRANSPORT: str = os.getenv("ALERT_TRANSPORT", "redis_streams")
    ALERT_DISPLAY_TIMEZONE: str = os.getenv("ALERT_DISPLAY_TIMEZONE", "America/Sao_Paulo")

    # Analysis thresholds
    DROUGHT = DroughtSettings(
        threshold=_env_float("DROUGHT_THRESHOLD", 30.0),
        minimum_duration_hours=_env_int("DROUGHT_MINIMUM_DURATION_HOURS", 24),
        history_days=_env_int("DROUGHT_HISTORY_DAYS", 7)
    )
    HEAT_STRESS = HeatStressSettings(
        critical_temperature=_env_float("HEAT_STRESS_CRITICAL_TEMPERATURE", 35.0),
        minimum_duration_hours=_env_int("HEAT_STRESS_MINIMUM_DURATION_HOURS", 6),
        history_hours=_env_int("HEAT_STRESS_HISTORY_HOURS", 24)
    )
    PEST_RISK = PestRiskSettings(
        min_temperature=_env_float("PEST_RISK_MIN_TEMPERATURE", 22.0),
        max_temperature=_env_float("PEST_RISK_MAX_TEMPERATURE", 32.0),
        min_moisture=_env_float("PEST_RISK_MIN_MOISTURE", 60.0),
        minimum_favorable_days=_env_int("PEST_RISK_MINIMUM_FAVORABLE_DAYS", 5),
        history_days=_env_int("PEST_RISK_HISTORY_DAYS", 14)
    )
    IRRIGATION = IrrigationSettings(
        optimal_moisture=_env_float("IRRIGATION_OPTIMAL_MOISTURE", 60.0),
        critical_moisture=_env_float("IRRIGATION_CRITICAL_MOISTURE", 30.0),
        soil_water_capacity=_env_float("IRRIGATION_SOIL_WATER_CAPACITY", 150.0),
        history_days=_env_int("IRRIGATION_HISTORY_DAYS", 7)
    )
    EXCESSIVE_RAINFALL = ExcessiveRainfallSettings(threshold=_env_float("EXCESSIVE_RAINFALL_THRESHOLD", 60.0))
    EXTREME_HEAT = ExtremeHeatSettings(threshold=_env_float("EXTREME_HEAT_THRESHOLD", 40.0))
    FREEZING = FreezingSettings(threshold=_env_float("FREEZING_THRESHOLD", 0.0))

    # CORS configuration
    CORS_ORIGINS: List[str] = ["*"]

    # Application configuration
    APP_TITLE: str = "Field Alerts Service"
    APP_DESCRIPTION: str = "Environmental risk detection and alerting for field sensor measurements"
    APP_VERSION: str = "1.0.0"
    DOCS_URL: str = "/docs"
    REDOC_URL: str = "/redoc"

    # Server configuration
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    RELOAD: bool = os.getenv("RELOAD", "true").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")


# Global configuration instance
config = Config()
