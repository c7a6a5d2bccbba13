"""
Error handling utilities for the Field Alerts Service.
Provides centralized exception handlers for FastAPI application.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..ports.exceptions import (
    FieldAlertsError,
    RepositoryError,
    PublishError,
    DispatchError,
    UnknownTransportError
)


async def dispatch_error_handler(request: Request, exc: DispatchError):
    """Handle alert handler failures. The measurement itself is already stored."""
    return JSONResponse(
        status_code=502,
        content={
            "error": "Alert dispatch error",
            "message": exc.message,
            "details": {
                "event_type": exc.event_type,
                "handler": exc.handler_name,
                "cause": exc.details
            },
            "timestamp": str(exc.__class__.__name__)
        }
    )


async def publish_error_handler(request: Request, exc: PublishError):
    """Handle broker errors."""
    return JSONResponse(
        status_code=502,
        content={
            "error": "Broker error",
            "message": exc.message,
            "details": {
                "transport": exc.transport,
                "destination": exc.destination,
                "cause": exc.details
            },
            "timestamp": str(exc.__class__.__name__)
        }
    )


async def repository_error_handler(request: Request, exc: RepositoryError):
    """Handle repository errors."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Data access error",
            "message": exc.message,
            "details": {"cause": exc.details},
            "timestamp": str(exc.__class__.__name__)
        }
    )


async def unknown_transport_handler(request: Request, exc: UnknownTransportError):
    """Handle a transport that is not registered."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Unknown transport",
            "message": exc.message,
            "details": {"supported_transports": exc.supported_transports},
            "timestamp": str(exc.__class__.__name__)
        }
    )


async def field_alerts_error_handler(request: Request, exc: FieldAlertsError):
    """Handle general service errors."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Field alerts service error",
            "message": exc.message,
            "details": {"cause": exc.details} if exc.details else None,
            "timestamp": str(exc.__class__.__name__)
        }
    )


def register_error_handlers(app: FastAPI):
    """
    Register all exception handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(DispatchError, dispatch_error_handler)
    app.add_exception_handler(PublishError, publish_error_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
    app.add_exception_handler(UnknownTransportError, unknown_transport_handler)
    app.add_exception_handler(FieldAlertsError, field_alerts_error_handler)
