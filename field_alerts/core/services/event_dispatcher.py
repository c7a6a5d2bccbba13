"""
Domain event dispatching.
Fans each occurrence out to every handler registered for its event type.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional
import asyncio

from ..domain.context import CorrelationContext
from ..domain.events import DomainEvent, DomainEventType
from ..ports.exceptions import DispatchError
from ..ports.logger import Logger
from ..config.config import logger as default_logger


class DomainEventHandler(ABC):
    """Unit of logic reacting to exactly one event type."""

    event_type: DomainEventType = None

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def handle(self, event: DomainEvent, context: CorrelationContext) -> None:
        """
        Process a single occurrence.

        Args:
            event: The occurrence, already persisted
            context: Correlation data of the originating request
        """
        pass


class HandlerRegistry:
    """Ordered handler lists keyed by event type, populated at startup."""

    def __init__(self, handlers: Optional[Iterable[DomainEventHandler]] = None):
        self._handlers: Dict[DomainEventType, List[DomainEventHandler]] = {}
        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: DomainEventHandler) -> "HandlerRegistry":
        if not isinstance(handler.event_type, DomainEventType):
            raise ValueError(f"{type(handler).__name__} does not declare an event_type")
        self._handlers.setdefault(handler.event_type, []).append(handler)
        return self

    def handlers_for(self, event_type: DomainEventType) -> List[DomainEventHandler]:
        return list(self._handlers.get(event_type, []))

    def __len__(self) -> int:
        return sum(len(handlers) for handlers in self._handlers.values())


class DomainEventDispatcher:
    """
    Dispatches domain events to their registered handlers.

    Handlers of the same event run concurrently. The dispatcher waits for all
    of them, then raises a DispatchError wrapping the first failure in
    registration order. There is no retry.
    """

    def __init__(self, registry: HandlerRegistry, logger: Optional[Logger] = None):
        self.registry = registry
        self.logger = logger or default_logger

    async def dispatch(self, events: Iterable[DomainEvent], context: CorrelationContext) -> None:
        events = list(events)
        if not events:
            self.logger.debug("No domain events to process")
            return

        self.logger.info(
            "Processing domain events",
            count=len(events),
            correlation_id=context.correlation_id
        )
        for event in events:
            await self._dispatch_event(event, context)

    async def _dispatch_event(self, event: DomainEvent, context: CorrelationContext) -> None:
        event_type = event.event_type
        handlers = self.registry.handlers_for(event_type)
        if not handlers:
            self.logger.warn("No handlers registered, event skipped", event_type=event_type.value)
            return

        self.logger.debug("Running handlers", event_type=event_type.value, handlers=len(handlers))
        results = await asyncio.gather(
            *(handler.handle(event, context) for handler in handlers),
            return_exceptions=True
        )

        first_failure = None
        for handler, result in zip(handlers, results):
            if isinstance(result, BaseException):
                self.logger.error(
                    "Handler failed",
                    handler=handler.name,
                    event_type=event_type.value,
                    error=repr(result),
                    correlation_id=context.correlation_id
                )
                if first_failure is None:
                    first_failure = (handler, result)

        if first_failure is not None:
            handler, error = first_failure
            raise DispatchError(event_type.value, handler.name, error) from error
