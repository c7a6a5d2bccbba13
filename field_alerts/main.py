"""
Main application entry point for the Field Alerts Service.
Sets up FastAPI app with dependency injection and error handling.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from .core.services.measurement_service import MeasurementService
from .core.services.event_dispatcher import DomainEventDispatcher, HandlerRegistry
from .core.services.alert_handlers.drought import DroughtAlertHandler
from .core.services.alert_handlers.heat_stress import HeatStressAlertHandler
from .core.services.alert_handlers.pest_risk import PestRiskAlertHandler
from .core.services.alert_handlers.irrigation import IrrigationAlertHandler
from .core.services.alert_handlers.threshold import (
    ExcessiveRainfallAlertHandler,
    ExtremeHeatAlertHandler,
    FreezingAlertHandler
)
from .core.services.alert_handlers.measurement_mirror import MeasurementMirrorHandler
from .core.ports.cache_service import CacheService
from .core.ports.exceptions import ConfigurationError, UnknownTransportError
from .core.ports.measurement_repository import MeasurementRepository
from .core.ports.message_publisher import PublisherRegistry, Transport
from .adapters.repositories.influx_repository import InfluxMeasurementRepository
from .adapters.handlers.measurement_handlers import MeasurementHandlers
from .adapters.models import HealthResponse
from .adapters.publishers.redis_stream_publisher import RedisStreamPublisher
from .adapters.publishers.mqtt_publisher import MqttPublisher
from .adapters.cache.redis_cache import RedisCache

# Import configuration
from .core.config.config import Config, config, logger

# Import error handlers
from .core.util.errorhandling import register_error_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Field Alerts Service...")

    # Unknown transport names fail here, before any request is served
    transport = Transport.from_name(config.ALERT_TRANSPORT)

    logger.info(f"Connecting to InfluxDB at: {config.INFLUXDB_URL}")
    repository = get_influx_repository()
    publishers = get_publisher_registry()
    try:
        publishers.get(transport)
    except UnknownTransportError as e:
        raise ConfigurationError(
            f"ALERT_TRANSPORT={config.ALERT_TRANSPORT} has no configured publisher", e.message
        )
    cache_service = await get_cache_service()

    registry = build_handler_registry(repository, publishers, transport, config, cache_service)
    dispatcher = DomainEventDispatcher(registry, logger)
    measurement_service = MeasurementService(repository, dispatcher, logger)

    app.state.repository = repository
    app.state.publishers = publishers
    app.state.cache_service = cache_service
    app.state.measurement_service = measurement_service

    measurement_handlers = MeasurementHandlers(measurement_service)
    app.include_router(measurement_handlers.router)
    logger.info("REST API router configured", handlers=len(registry), transport=transport.value)

    yield

    # Shutdown
    logger.info("Shutting down Field Alerts Service...")
    await publishers.close()
    if cache_service:
        await cache_service.disconnect()
    repository.close()


# Create FastAPI application
app = FastAPI(
    title=config.APP_TITLE,
    description=config.APP_DESCRIPTION,
    version=config.APP_VERSION,
    docs_url=config.DOCS_URL,
    redoc_url=config.REDOC_URL,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependency injection setup
def get_influx_repository() -> InfluxMeasurementRepository:
    """Get InfluxDB repository instance."""
    return InfluxMeasurementRepository(
        url=config.INFLUXDB_URL,
        token=config.INFLUXDB_TOKEN,
        bucket=config.INFLUXDB_BUCKET,
        org=config.INFLUXDB_ORG
    )


def get_publisher_registry() -> PublisherRegistry:
    """Build the transport map once at startup."""
    publishers = {
        Transport.REDIS_STREAMS: RedisStreamPublisher.from_settings(
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            password=config.REDIS_PASSWORD,
            db=config.REDIS_DB,
            max_len=config.REDIS_STREAM_MAX_LEN
        )
    }
    if config.MQTT_ENABLED:
        publishers[Transport.MQTT] = MqttPublisher(
            broker_host=config.MQTT_HOST,
            broker_port=config.MQTT_PORT,
            username=config.MQTT_USERNAME,
            password=config.MQTT_PASSWORD,
            topic_prefix=config.MQTT_TOPIC_PREFIX
        )
    return PublisherRegistry(publishers)


async def get_cache_service() -> Optional[RedisCache]:
    """Get the cache backing the measurement mirror."""
    if not config.MIRROR_ENABLED:
        logger.info("Measurement mirror is disabled")
        return None

    redis_cache = RedisCache(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        password=config.REDIS_PASSWORD,
        db=config.REDIS_DB,
        default_ttl=config.MIRROR_TTL
    )
    if await redis_cache.connect():
        logger.info("Measurement mirror connected")
    else:
        logger.warn("Measurement mirror unavailable, writes will be retried per measurement")
    return redis_cache


def build_handler_registry(
    repository: MeasurementRepository,
    publishers: PublisherRegistry,
    transport: Transport,
    settings: Config = config,
    cache_service: Optional[CacheService] = None
) -> HandlerRegistry:
    """Register every MeasurementCreated handler, in execution-report order."""
    common = {"logger": logger, "display_timezone": settings.ALERT_DISPLAY_TIMEZONE}

    registry = HandlerRegistry()
    registry.register(DroughtAlertHandler(repository, publishers, transport, settings=settings.DROUGHT, **common))
    registry.register(HeatStressAlertHandler(repository, publishers, transport, settings=settings.HEAT_STRESS, **common))
    registry.register(PestRiskAlertHandler(repository, publishers, transport, settings=settings.PEST_RISK, **common))
    registry.register(IrrigationAlertHandler(repository, publishers, transport, settings=settings.IRRIGATION, **common))
    registry.register(ExcessiveRainfallAlertHandler(publishers, transport, settings=settings.EXCESSIVE_RAINFALL, **common))
    registry.register(ExtremeHeatAlertHandler(publishers, transport, settings=settings.EXTREME_HEAT, **common))
    registry.register(FreezingAlertHandler(publishers, transport, settings=settings.FREEZING, **common))
    if cache_service is not None:
        registry.register(MeasurementMirrorHandler(cache_service, ttl=settings.MIRROR_TTL, logger=logger))
    return registry


# Register error handlers
register_error_handlers(app)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": config.APP_TITLE,
        "version": config.APP_VERSION,
        "description": config.APP_DESCRIPTION,
        "endpoints": {
            "docs": config.DOCS_URL,
            "redoc": config.REDOC_URL,
            "health": "/health",
            "measurements": "/api/v1/measurements"
        }
    }


# Health check endpoint
@app.get("/health")
async def health_check(request: Request):
    """Service health check."""
    try:
        influxdb_healthy = await request.app.state.measurement_service.health_check()

        return HealthResponse(
            status="healthy" if influxdb_healthy else "degraded",
            service="field-alerts",
            timestamp=datetime.now(),
            details={
                "influxdb": "healthy" if influxdb_healthy else "unhealthy",
                "influxdb_url": config.INFLUXDB_URL,
                "transport": config.ALERT_TRANSPORT
            }
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "service": "field-alerts",
                "error": str(e),
                "timestamp": str(datetime.now().isoformat())
            }
        )


if __name__ == "__main__":
    import uvicorn

    # Run the application
    uvicorn.run(
        "field_alerts.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.RELOAD,
        log_level=config.LOG_LEVEL
    )
