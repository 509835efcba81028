"""Minimal request context for tracking request IDs."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RequestContext:
    """Request context holding the request ID and basic metadata."""

    request_id: str
    method: str = ""
    path: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, **kwargs: Any) -> None:
        """Merge keyword arguments into the context metadata."""
        self.metadata.update(kwargs)
