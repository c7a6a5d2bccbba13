"""
Logger port.
Abstracts the logging backend so core services and adapters can be tested with a mock.
"""

from abc import ABC, abstractmethod


class Logger(ABC):
    """Port (interface) for structured application logging."""

    @abstractmethod
    def info(self, message: str, **kwargs) -> None:
        """Log an informational message with optional key-value context."""
        pass

    @abstractmethod
    def warn(self, message: str, **kwargs) -> None:
        """Log a warning with optional key-value context."""
        pass

    @abstractmethod
    def error(self, message: str, **kwargs) -> None:
        """Log an error with optional key-value context."""
        pass

    @abstractmethod
    def debug(self, message: str, **kwargs) -> None:
        """Log a debug message with optional key-value context."""
        pass
