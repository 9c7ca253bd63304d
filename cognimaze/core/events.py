"""Telemetry observations emitted by a game session, and sinks that receive them."""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from .models import CamelModel, Point, SessionMetrics

logger = logging.getLogger(__name__)


class BaseEvent(CamelModel):
    timestamp: float = Field(..., description="Wall-clock seconds when observed")

    def payload(self) -> dict:
        """Event data without the type tag, as sent to the events API."""
        return self.model_dump(mode="json", by_alias=True, exclude={"type"})


class GameStartEvent(BaseEvent):
    type: Literal["game_start"] = "game_start"
    start_time: float
    maze_size: str


class MoveEvent(BaseEvent):
    type: Literal["move"] = "move"
    direction: str
    from_: Point = Field(..., alias="from")
    to: Point


class InvalidMoveEvent(BaseEvent):
    type: Literal["invalid_move"] = "invalid_move"
    direction: str
    attempted: Point


class HesitationEvent(BaseEvent):
    type: Literal["hesitation"] = "hesitation"
    duration_ms: int


class GameCompleteEvent(BaseEvent):
    type: Literal["game_complete"] = "game_complete"
    metrics: SessionMetrics


class GameResetEvent(BaseEvent):
    type: Literal["game_reset"] = "game_reset"


GameEvent = Annotated[
    Union[
        GameStartEvent,
        MoveEvent,
        InvalidMoveEvent,
        HesitationEvent,
        GameCompleteEvent,
        GameResetEvent,
    ],
    Field(discriminator="type"),
]

_event_adapter = TypeAdapter(GameEvent)


def parse_event(data: dict) -> BaseEvent:
    """Rebuild a typed event from its JSON form; raises pydantic.ValidationError on unknown types."""
    return _event_adapter.validate_python(data)


class TelemetrySink(ABC):
    """Receives session observations. Delivery is best effort."""

    @abstractmethod
    def emit(self, event: GameEvent) -> None:
        raise NotImplementedError


class NullSink(TelemetrySink):
    def emit(self, event: GameEvent) -> None:
        return None


class LoggingSink(TelemetrySink):
    """Writes every observation to the log."""

    def __init__(self, session_id: Optional[str] = None, level: int = logging.DEBUG):
        self.session_id = session_id
        self.level = level

    def emit(self, event: GameEvent) -> None:
        logger.log(self.level, "Game event [%s] %s: %s", self.session_id or "-", event.type, event.payload())


class MemorySink(TelemetrySink):
    """Keeps the most recent observations in memory."""

    def __init__(self, maxlen: Optional[int] = None):
        self.events: deque = deque(maxlen=maxlen)

    def emit(self, event: GameEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [event.type for event in self.events]


class CompositeSink(TelemetrySink):
    """Fans out to several sinks; one failing sink does not starve the rest."""

    def __init__(self, *sinks: TelemetrySink):
        self.sinks = list(sinks)

    def emit(self, event: GameEvent) -> None:
        for sink in self.sinks:
            try:
                sink.emit(event)
            except Exception as exc:
                logger.warning("Telemetry sink %s failed: %s", type(sink).__name__, exc)
