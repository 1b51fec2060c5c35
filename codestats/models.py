"""Models for pulse events and the pulse wire format."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class PulseEvent(str, Enum):
    """Events consumed by the debounce scheduler."""

    UPDATE = "update"
    FORCE_SEND = "force_send"
    CANCEL = "cancel"


class PulseXP(BaseModel):
    """XP gained in one language."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    language: str = Field(min_length=1)
    xp: int = Field(ge=0)


class PulsePayload(BaseModel):
    """One pulse sent to ``api/my/pulses``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    coded_at: datetime
    xps: Tuple[PulseXP, ...] = ()

    @field_validator("coded_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        # Naive timestamps are taken to be local time
        if value.tzinfo is None:
            return value.astimezone()
        return value

    @field_serializer("coded_at")
    def _serialize_coded_at(self, value: datetime) -> str:
        return value.isoformat()

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, int], coded_at: datetime) -> PulsePayload:
        """Build a payload from an accumulator snapshot, keeping its order."""
        return cls(
            coded_at=coded_at,
            xps=tuple(PulseXP(language=language, xp=xp) for language, xp in snapshot.items()),
        )

    def to_wire(self) -> Dict[str, Any]:
        """Return the JSON-ready request body."""
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        return self.model_dump_json()
