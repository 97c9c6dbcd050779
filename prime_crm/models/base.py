"""Base models shared across the CRM core."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Event:
    """Standard event envelope for domain events."""

    event_id: str
    event_type: str  # entity.action (e.g., document.approved)
    event_time: datetime
    source: str  # Component that emitted the event
    subject: str  # Process ID affected
    data: dict
    metadata: dict = field(default_factory=dict)
