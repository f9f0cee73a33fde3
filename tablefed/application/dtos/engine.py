"""DTOs exchanged with the managed engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineSchemaStatus:
    """Status of the last schema submission as reported by the engine."""

    status: str
    details: str | None = None


@dataclass(frozen=True)
class RenderedMapping:
    """Engine-specific request/response mapping text for one resolver."""

    request: str
    response: str
