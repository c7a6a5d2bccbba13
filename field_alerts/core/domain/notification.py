from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional


class NotificationPriority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def severity(self) -> str:
        """Coarse severity string carried in alert metadata."""
        return "High" if self >= NotificationPriority.HIGH else "Medium"


@dataclass(frozen=True)
class AlertMetadata:
    """Metadata describing which alert fired, where and when."""
    alert_type: str
    field_id: str
    detected_at: datetime
    severity: str
    correlation_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert_type": self.alert_type,
            "field_id": self.field_id,
            "detected_at": self.detected_at.isoformat(),
            "severity": self.severity,
            "correlation_id": self.correlation_id
        }


@dataclass(frozen=True)
class NotificationRequest:
    """
    Alert envelope handed to the publisher.
    Carries either a template id with placeholder parameters or a pre-rendered subject/body.
    """
    email_to: List[str]
    metadata: AlertMetadata
    priority: NotificationPriority = NotificationPriority.MEDIUM
    template_id: Optional[str] = None
    parameters: Dict[str, str] = field(default_factory=dict)
    subject: Optional[str] = None
    body: Optional[str] = None
    email_cc: List[str] = field(default_factory=list)
    email_bcc: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.template_id is None and (self.subject is None or self.body is None):
            raise ValueError("either template_id or subject and body are required")

    @property
    def is_templated(self) -> bool:
        return self.template_id is not None

    def to_payload(self) -> Dict[str, Any]:
        """Serialisable wire shape of the notification."""
        payload = {
            "email_to": list(self.email_to),
            "email_cc": list(self.email_cc),
            "email_bcc": list(self.email_bcc),
            "priority": self.priority.label,
            "metadata": self.metadata.to_dict()
        }
        if self.is_templated:
            payload["template_id"] = self.template_id
            payload["parameters"] = dict(self.parameters)
        else:
            payload["subject"] = self.subject
            payload["body"] = self.body
        return payload

    def to_properties(self) -> Dict[str, str]:
        """Routing properties that travel alongside the payload."""
        return {
            "alert_type": self.metadata.alert_type,
            "field_id": self.metadata.field_id,
            "severity": self.metadata.severity
        }
