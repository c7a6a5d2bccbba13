"""
Custom exceptions for the field alerts service.
These exceptions represent domain-specific errors and are part of the core business logic.
"""


class FieldAlertsError(Exception):
    """Base exception for field alerts service errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(message)


class RepositoryError(FieldAlertsError):
    """Raised when measurement store operations fail."""

    def __init__(self, message: str, source_error: Exception = None):
        self.source_error = source_error
        details = str(source_error) if source_error else None
        super().__init__(message, details)


class PublishError(FieldAlertsError):
    """Raised when a broker refuses or fails to accept a message."""

    def __init__(self, transport: str, destination: str, source_error: Exception = None):
        self.transport = transport
        self.destination = destination
        self.source_error = source_error
        message = f"Failed to publish to '{destination}' via {transport}"
        details = str(source_error) if source_error else None
        super().__init__(message, details)


class UnknownTransportError(FieldAlertsError):
    """Raised when a transport name or key is outside the supported set."""

    def __init__(self, transport_name: str, supported_transports: list = None):
        self.transport_name = transport_name
        self.supported_transports = supported_transports
        message = f"Transport '{transport_name}' is not supported"
        if supported_transports:
            message += f". Supported transports: {', '.join(supported_transports)}"
        super().__init__(message)


class DispatchError(FieldAlertsError):
    """Raised when at least one handler failed while processing a domain event."""

    def __init__(self, event_type: str, handler_name: str, source_error: Exception):
        self.event_type = event_type
        self.handler_name = handler_name
        self.source_error = source_error
        message = f"Handler '{handler_name}' failed while processing {event_type}"
        super().__init__(message, str(source_error))


class ConfigurationError(FieldAlertsError):
    """Raised when service configuration is invalid."""
    pass
