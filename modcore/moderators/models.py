"""Moderator privilege models."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from modcore.errors import InvalidArgument


@dataclass
class Capabilities:
    """Fixed set of boolean capability flags.  Everything defaults to off."""

    approve_content: bool = False
    reject_content: bool = False
    edit_content: bool = False
    delete_content: bool = False
    ban_users: bool = False
    manage_rules: bool = False
    assign_moderators: bool = False
    access_dashboard: bool = False

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Capabilities:
        return cls().merged(data or {})

    def merged(self, changes: Mapping[str, Any]) -> Capabilities:
        """Return a copy with *changes* applied; keys not in *changes* keep their value."""
        known = set(self.names())
        unknown = sorted(set(changes) - known)
        if unknown:
            raise InvalidArgument(f"unknown capability: {', '.join(unknown)}")
        values = self.to_dict()
        for name, value in changes.items():
            if not isinstance(value, bool):
                raise InvalidArgument(f"capability '{name}' must be true or false")
            values[name] = value
        return Capabilities(**values)

    def to_dict(self) -> dict[str, bool]:
        return {name: getattr(self, name) for name in self.names()}


@dataclass
class ModeratorPrivilege:
    """One row per user; only an active row confers authority."""

    id: int
    user_id: int
    capabilities: Capabilities = field(default_factory=Capabilities)
    is_active: bool = True
    assigned_by: int = 0
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.capabilities, Mapping):
            self.capabilities = Capabilities.from_dict(self.capabilities)
