from dataclasses import dataclass
from typing import Dict, Optional
import uuid


@dataclass(frozen=True)
class CorrelationContext:
    """
    Request-scoped correlation data passed explicitly from ingestion down to publishing.
    """
    correlation_id: str
    trace_parent: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def create(
        cls,
        correlation_id: Optional[str] = None,
        trace_parent: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> "CorrelationContext":
        """Build a context, generating a correlation id when the caller has none."""
        return cls(
            correlation_id=correlation_id or str(uuid.uuid4()),
            trace_parent=trace_parent,
            user_id=user_id
        )

    def to_properties(self) -> Dict[str, str]:
        """Transport message properties used to stitch a message back to its request."""
        properties = {"correlation_id": self.correlation_id}
        if self.trace_parent:
            properties["traceparent"] = self.trace_parent
        return properties
