"""HTTP client for the cognitive puzzle API.

Used by front ends and by HttpTelemetrySink. Session start falls back to a
local session id when the server cannot be reached; event tracking never
raises.
"""

import logging
import queue
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

import requests

from ..core.events import GameEvent, TelemetrySink

logger = logging.getLogger(__name__)


class CognitiveClient:
    def __init__(self, base_url: str = "http://localhost:3000", timeout: float = 5.0, user_id: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_id = user_id or f"user_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
        self.session_id: Optional[str] = None

    def start_session(self, puzzle_type: str = "ego_labyrinth") -> dict:
        try:
            resp = requests.post(
                f"{self.base_url}/api/session/start",
                json={"userId": self.user_id, "puzzleType": puzzle_type},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            session = resp.json()["session"]
            self.session_id = session["sessionId"]
            logger.info("Session started: %s", self.session_id)
            return session
        except (requests.RequestException, KeyError, ValueError) as exc:
            logger.warning("Session start failed (%s), using local session", exc)
            self.session_id = f"local_{int(time.time() * 1000)}"
            return {
                "sessionId": self.session_id,
                "userId": self.user_id,
                "puzzleType": puzzle_type,
                "startTime": datetime.now(timezone.utc).isoformat(),
                "status": "local",
            }

    def track_event(self, event_type: str, data: Optional[dict] = None) -> bool:
        """Report one event; returns False instead of raising on failure."""
        if not self.session_id:
            return False
        body = {
            "sessionId": self.session_id,
            "eventType": event_type,
            "data": {
                **(data or {}),
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "userId": self.user_id,
            },
        }
        try:
            resp = requests.post(f"{self.base_url}/api/events/track", json=body, timeout=self.timeout)
            return resp.ok
        except requests.RequestException as exc:
            logger.debug("Event tracking failed: %s", exc)
            return False

    def check_health(self) -> dict:
        try:
            resp = requests.get(f"{self.base_url}/api/health", timeout=self.timeout)
            resp.raise_for_status()
            return {"healthy": True, **resp.json()}
        except (requests.RequestException, ValueError) as exc:
            logger.debug("Health check failed: %s", exc)
            return {"healthy": False, "message": "Cannot connect to server", "error": str(exc)}


class HttpTelemetrySink(TelemetrySink):
    """Hands observations to one daemon worker that posts them in emit order."""

    def __init__(self, client: CognitiveClient, background: bool = True):
        self.client = client
        self.background = background
        self._queue: "queue.Queue[tuple[str, dict]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._worker_lock = threading.Lock()

    def emit(self, event: GameEvent) -> None:
        if not self.background:
            self._deliver(event.type, event.payload())
            return
        self._queue.put((event.type, event.payload()))
        self._ensure_worker()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until queued events have been handed to the client."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while self._queue.unfinished_tasks:
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def _ensure_worker(self) -> None:
        with self._worker_lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._run, name="telemetry-sender", daemon=True)
                self._worker.start()

    def _run(self) -> None:
        while True:
            event_type, payload = self._queue.get()
            try:
                self._deliver(event_type, payload)
            finally:
                self._queue.task_done()

    def _deliver(self, event_type: str, payload: dict) -> None:
        try:
            if not self.client.track_event(event_type, payload):
                logger.debug("Telemetry event %s was not accepted", event_type)
        except Exception as exc:
            logger.warning("Telemetry delivery failed for %s: %s", event_type, exc)
