"""
Unit tests for the domain event dispatcher and handler registry.
"""

import asyncio
import pytest

from field_alerts.core.domain.events import DomainEvent, DomainEventType, MeasurementCreated
from field_alerts.core.ports.exceptions import DispatchError
from field_alerts.core.services.event_dispatcher import (
    DomainEventDispatcher,
    DomainEventHandler,
    HandlerRegistry
)

from conftest import BASE_TIME, make_measurement


class RecordingHandler(DomainEventHandler):
    """Handler that records every call and optionally fails."""

    event_type = DomainEventType.MEASUREMENT_CREATED

    def __init__(self, error: Exception = None, delay: float = 0.0):
        self.calls = []
        self.error = error
        self.delay = delay

    async def handle(self, event, context):
        if self.delay:
            await asyncio.sleep(self.delay)
        self.calls.append((event, context))
        if self.error:
            raise self.error


class UntypedHandler(DomainEventHandler):
    async def handle(self, event, context):
        pass


@pytest.fixture
def event():
    return MeasurementCreated(measurement=make_measurement(BASE_TIME))


class TestHandlerRegistry:
    """Test cases for HandlerRegistry."""

    def test_register_keeps_order(self):
        first, second = RecordingHandler(), RecordingHandler()
        registry = HandlerRegistry([first, second])

        assert registry.handlers_for(DomainEventType.MEASUREMENT_CREATED) == [first, second]
        assert len(registry) == 2

    def test_register_without_event_type(self):
        """Test that a handler must declare the event type it reacts to."""
        with pytest.raises(ValueError):
            HandlerRegistry().register(UntypedHandler())

    def test_handlers_for_returns_copy(self):
        registry = HandlerRegistry([RecordingHandler()])
        registry.handlers_for(DomainEventType.MEASUREMENT_CREATED).clear()
        assert len(registry.handlers_for(DomainEventType.MEASUREMENT_CREATED)) == 1


class TestDomainEventDispatcher:
    """Test cases for DomainEventDispatcher."""

    @pytest.mark.asyncio
    async def test_every_handler_runs_exactly_once(self, event, correlation_context, mock_logger):
        handlers = [RecordingHandler() for _ in range(7)]
        dispatcher = DomainEventDispatcher(HandlerRegistry(handlers), mock_logger)

        await dispatcher.dispatch([event], correlation_context)

        for handler in handlers:
            assert handler.calls == [(event, correlation_context)]

    @pytest.mark.asyncio
    async def test_failure_is_wrapped_after_all_handlers_ran(self, event, correlation_context, mock_logger):
        """Test that a failing handler does not stop its siblings."""
        error = RuntimeError("broker down")
        failing = RecordingHandler(error=error)
        slow = RecordingHandler(delay=0.01)
        dispatcher = DomainEventDispatcher(HandlerRegistry([failing, slow]), mock_logger)

        with pytest.raises(DispatchError) as exc_info:
            await dispatcher.dispatch([event], correlation_context)

        assert exc_info.value.source_error is error
        assert exc_info.value.handler_name == "RecordingHandler"
        assert exc_info.value.event_type == "measurement_created"
        assert exc_info.value.__cause__ is error
        assert len(slow.calls) == 1
        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_first_failure_in_registration_order(self, event, correlation_context, mock_logger):
        first_error = ValueError("first")
        second_error = RuntimeError("second")
        handlers = [
            RecordingHandler(),
            RecordingHandler(error=first_error, delay=0.02),
            RecordingHandler(error=second_error)
        ]
        dispatcher = DomainEventDispatcher(HandlerRegistry(handlers), mock_logger)

        with pytest.raises(DispatchError) as exc_info:
            await dispatcher.dispatch([event], correlation_context)

        assert exc_info.value.source_error is first_error
        assert mock_logger.error.call_count == 2

    @pytest.mark.asyncio
    async def test_no_events_is_noop(self, correlation_context, mock_logger):
        handler = RecordingHandler()
        dispatcher = DomainEventDispatcher(HandlerRegistry([handler]), mock_logger)

        await dispatcher.dispatch([], correlation_context)

        assert handler.calls == []
        mock_logger.debug.assert_called_once()

    @pytest.mark.asyncio
    async def test_no_handlers_is_noop(self, event, correlation_context, mock_logger):
        dispatcher = DomainEventDispatcher(HandlerRegistry(), mock_logger)

        await dispatcher.dispatch([event], correlation_context)

        mock_logger.warn.assert_called_once()

    @pytest.mark.asyncio
    async def test_multiple_events_dispatched_in_order(self, correlation_context, mock_logger):
        handler = RecordingHandler()
        dispatcher = DomainEventDispatcher(HandlerRegistry([handler]), mock_logger)
        events = [
            MeasurementCreated(measurement=make_measurement(BASE_TIME)),
            MeasurementCreated(measurement=make_measurement(BASE_TIME))
        ]

        await dispatcher.dispatch(events, correlation_context)

        assert [call[0] for call in handler.calls] == events

    @pytest.mark.asyncio
    async def test_cancelled_handler_counts_as_failure(self, event, correlation_context, mock_logger):
        """Test that a handler cancelling itself does not pass as a success."""
        cancelled = RecordingHandler(error=asyncio.CancelledError())
        sibling = RecordingHandler()
        dispatcher = DomainEventDispatcher(HandlerRegistry([cancelled, sibling]), mock_logger)

        with pytest.raises(DispatchError) as exc_info:
            await dispatcher.dispatch([event], correlation_context)

        assert isinstance(exc_info.value.source_error, asyncio.CancelledError)
        assert len(sibling.calls) == 1


class TestDomainEvent:
    """Test cases for the occurrence base class."""

    def test_base_event_is_abstract(self):
        with pytest.raises(TypeError):
            DomainEvent()

    def test_measurement_created_tag(self, event):
        assert event.event_type == DomainEventType.MEASUREMENT_CREATED
