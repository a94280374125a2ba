from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .errors import ResolutionFailure

RESOLVED_KINDS = ("users", "members", "roles", "channels", "attachments", "messages")


def _partition(raw: Mapping[str, Any], kind: str) -> dict[str, dict[str, Any]]:
    section = raw.get(kind)
    if not isinstance(section, dict):
        return {}
    return {
        str(entity_id): entity
        for entity_id, entity in section.items()
        if isinstance(entity, dict)
    }


@dataclass(frozen=True)
class ResolvedEntityMap:
    """Entities the platform pre-fetched for an interaction, keyed by id."""

    users: dict[str, dict[str, Any]] = field(default_factory=dict)
    members: dict[str, dict[str, Any]] = field(default_factory=dict)
    roles: dict[str, dict[str, Any]] = field(default_factory=dict)
    channels: dict[str, dict[str, Any]] = field(default_factory=dict)
    attachments: dict[str, dict[str, Any]] = field(default_factory=dict)
    messages: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, raw: Optional[Mapping[str, Any]]) -> "ResolvedEntityMap":
        if not isinstance(raw, Mapping):
            return cls()
        return cls(**{kind: _partition(raw, kind) for kind in RESOLVED_KINDS})

    def find(self, kind: str, entity_id: str) -> Optional[dict[str, Any]]:
        if kind not in RESOLVED_KINDS:
            raise ValueError(f"unknown resolved kind: {kind}")
        partition: dict[str, dict[str, Any]] = getattr(self, kind)
        return partition.get(str(entity_id))

    def require(self, kind: str, entity_id: str) -> dict[str, Any]:
        entity = self.find(kind, entity_id)
        if entity is None:
            raise ResolutionFailure(kind, str(entity_id))
        return entity
