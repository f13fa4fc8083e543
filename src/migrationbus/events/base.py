"""
Base class for integration events.

Integration events (ETOs, event transfer objects) cross service boundaries
over the distributed event bus. They are immutable records with one
exception: the ``properties`` bag, a string-to-string mapping that carries
delivery metadata such as the retry count and is mutated in place by the
retry machinery before the same event object is republished.

Field names serialize in PascalCase (``TenantId``, ``Properties``) so the
payload matches what the rest of the fleet publishes; both spellings are
accepted when parsing.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Self
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_pascal

logger = logging.getLogger(__name__)


class IntegrationEvent(BaseModel):
    """
    Base class for all integration events.

    The event_type field is set to the class name when not provided, so
    subclasses only declare their payload.

    Attributes:
        event_id: Unique identifier for this event instance
        event_type: Type name of the event (defaults to the class name)
        occurred_at: When the event was created (UTC timestamp)
        properties: Mutable string metadata bag travelling with the event

    Example:
        >>> class ProductUpdated(IntegrationEvent):
        ...     product_id: UUID
        ...
        >>> event = ProductUpdated(product_id=uuid4())
        >>> assert event.event_type == "ProductUpdated"
        >>> event.properties["Source"] = "catalog"
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_pascal,
        populate_by_name=True,
    )

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier",
    )
    event_type: str = Field(
        default="",
        description="Type of event (defaults to the class name)",
    )
    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When event occurred (UTC)",
    )
    properties: dict[str, str] = Field(
        default_factory=dict,
        description="Delivery metadata; the only mutable part of the event",
    )

    @model_validator(mode="before")
    @classmethod
    def _ensure_event_type(cls, data: Any) -> Any:
        """Fill event_type with the class name when it is missing or empty."""
        if isinstance(data, dict):
            if not data.get("event_type") and not data.get("EventType"):
                data = dict(data)
                data["event_type"] = cls.__name__
        return data

    def __str__(self) -> str:
        return f"{self.event_type}(event_id={self.event_id})"

    def to_dict(self) -> dict[str, Any]:
        """
        Convert event to a JSON-compatible dictionary using wire (PascalCase) names.

        Returns:
            Dictionary with all values JSON-serializable
        """
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        """Serialize the event to its JSON wire format."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Create event from dictionary.

        Raises:
            ValidationError: If data doesn't match event schema
        """
        return cls.model_validate(data)


__all__ = ["IntegrationEvent"]
