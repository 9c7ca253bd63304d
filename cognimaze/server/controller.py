"""Game backend controller.

Owns the in-memory session registry, drives server-side game sessions and
routes finished games to the analysis provider. Nothing is persisted.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..ai.provider_base import AnalysisProvider
from ..core.events import CompositeSink, LoggingSink, MemorySink
from ..core.models import AnalysisRequest, Profile
from ..core.state import GameSession, Settings
from . import mock_data

logger = logging.getLogger(__name__)

SERVICE_NAME = "Cognitive Puzzle API"
SERVICE_VERSION = "1.0.0"
DEFAULT_PUZZLE_TYPE = "ego_labyrinth"
EVENT_HISTORY = 200


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SessionRecord:
    session_id: str
    user_id: str
    puzzle_type: str
    start_time: str
    game: GameSession
    events: MemorySink
    status: str = "active"
    profile: Optional[Profile] = None
    # bumped on reset so a late analysis is not attached to a newer run
    run: int = 0

    def to_payload(self) -> dict:
        return {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "puzzleType": self.puzzle_type,
            "startTime": self.start_time,
            "status": self.status,
        }


class GameController:
    """Wrap session flow and provide data to the web layer."""

    def __init__(
        self,
        *,
        settings: Settings,
        ai_provider: AnalysisProvider,
    ) -> None:
        self.settings = settings
        self.ai_provider = ai_provider
        self._lock = threading.Lock()
        # least recently used first
        self._sessions: "OrderedDict[str, SessionRecord]" = OrderedDict()
        self._started = time.monotonic()

    # ------------------------------------------------------------------
    # Reference API
    # ------------------------------------------------------------------
    def health(self) -> dict:
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "timestamp": _now_iso(),
            "uptime": time.monotonic() - self._started,
            "aiProvider": self.ai_provider.name,
        }

    def start_session(self, user_id: Optional[str] = None, puzzle_type: Optional[str] = None) -> dict:
        """Register a session and give it a fresh maze."""
        stamp = int(time.time() * 1000)
        session_id = f"session_{stamp}_{uuid.uuid4().hex[:9]}"
        events = MemorySink(maxlen=EVENT_HISTORY)
        game = self.settings.new_session(sink=CompositeSink(LoggingSink(session_id), events))
        record = SessionRecord(
            session_id=session_id,
            user_id=user_id or f"anonymous_{stamp}",
            puzzle_type=puzzle_type or DEFAULT_PUZZLE_TYPE,
            start_time=_now_iso(),
            game=game,
            events=events,
        )
        with self._lock:
            self._evict(max(1, self.settings.max_sessions) - 1)
            self._sessions[session_id] = record
        logger.info("New session started: %s", session_id)
        return record.to_payload()

    def _evict(self, keep: int) -> None:
        """Drop records until at most ``keep`` remain; finished games go first, then the stalest."""
        while len(self._sessions) > keep:
            victim = next(
                (sid for sid, rec in self._sessions.items() if rec.status == "complete"),
                next(iter(self._sessions)),
            )
            del self._sessions[victim]
            logger.info("Session evicted: %s", victim)

    def track_event(self, session_id: str, event_type: str, data: Optional[dict] = None) -> dict:
        """Acknowledge an externally reported event. Unknown sessions are accepted too."""
        if not session_id or not event_type:
            raise ValueError("Missing required fields: sessionId and eventType")
        logger.info("Event tracked: session=%s type=%s", session_id, event_type)
        logger.debug("Event data: %s", data or {})
        return {
            "sessionId": session_id,
            "eventType": event_type,
            "timestamp": _now_iso(),
            "processed": True,
        }

    def analyze_game(self, request: AnalysisRequest) -> Profile:
        if not request.session_id:
            raise ValueError("Session ID is required")
        profile = self.ai_provider.analyze(request)
        with self._lock:
            record = self._sessions.get(request.session_id)
            if record is not None:
                record.profile = profile
        return profile

    def leaderboard(self) -> List[dict]:
        return mock_data.leaderboard()

    def stats(self) -> dict:
        return mock_data.stats()

    # ------------------------------------------------------------------
    # Server-side play
    # ------------------------------------------------------------------
    def get_session_state(self, session_id: str) -> dict:
        with self._lock:
            record = self._get(session_id)
            return self._state_payload(record)

    def get_session_events(self, session_id: str) -> List[dict]:
        with self._lock:
            record = self._get(session_id)
            return [
                {"type": event.type, "data": event.payload()}
                for event in record.events.events
            ]

    def move(self, session_id: str, direction: str) -> dict:
        """Apply one move intent; a completing move also returns the profile.

        The analysis provider may do network I/O, so it is called with the
        registry lock released.
        """
        with self._lock:
            record = self._get(session_id)
            result = record.game.attempt_move(direction)
            run = record.run
            metrics = None
            if result.completed:
                record.status = "complete"
                metrics = record.game.final_metrics()

        if metrics is not None:
            profile = self.ai_provider.analyze(
                AnalysisRequest.from_metrics(metrics, session_id=session_id)
            )
            with self._lock:
                if record.run == run:
                    record.profile = profile

        payload = {
            "accepted": result.accepted,
            "completed": result.completed,
            "reason": result.reason,
            "position": {"x": result.position[0], "y": result.position[1]},
        }
        with self._lock:
            payload.update(self._state_payload(record))
        return payload

    def reset_session(self, session_id: str) -> dict:
        with self._lock:
            record = self._get(session_id)
            record.game.reset()
            record.run += 1
            record.status = "active"
            record.profile = None
            return self._state_payload(record)

    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _get(self, session_id: str) -> SessionRecord:
        record = self._sessions.get(session_id)
        if record is None:
            raise KeyError(session_id)
        self._sessions.move_to_end(session_id)
        return record

    def _state_payload(self, record: SessionRecord) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "session": record.to_payload(),
            "state": record.game.snapshot().model_dump(mode="json", by_alias=True),
        }
        if record.profile is not None:
            payload["profile"] = record.profile.model_dump(mode="json", by_alias=True)
        return payload


def build_controller(
    *,
    settings: Settings,
    ai_provider: AnalysisProvider,
) -> GameController:
    """Factory to build GameController."""
    return GameController(settings=settings, ai_provider=ai_provider)
