"""Game session state machine and settings."""

import logging
import math
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .events import (
    GameCompleteEvent,
    GameEvent,
    GameResetEvent,
    GameStartEvent,
    HesitationEvent,
    InvalidMoveEvent,
    MoveEvent,
    NullSink,
    TelemetrySink,
)
from .maze import DIRECTION_DELTAS, Maze, generate_maze, parse_direction
from .models import Point, SessionMetrics, SessionSnapshot, SessionStatus
from .rules import (
    HESITATING_THRESHOLD_MS,
    HESITATION_THRESHOLD_MS,
    analyze_decision_timing,
    compute_confidence,
    compute_efficiency,
    path_efficiency,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveResult:
    accepted: bool
    completed: bool = False
    reason: Optional[str] = None
    position: tuple[int, int] = (1, 1)


class GameSession:
    """One player's run through one maze.

    idle -> active on start() or the first move, active -> complete when the
    player steps onto the exit. reset() regenerates the maze and returns to
    idle from any state.
    """

    def __init__(
        self,
        width: int = 15,
        height: int = 15,
        *,
        seed: Optional[int] = None,
        sink: Optional[TelemetrySink] = None,
        clock: Callable[[], float] = time.time,
        hesitation_threshold_ms: int = HESITATION_THRESHOLD_MS,
        hesitating_threshold_ms: int = HESITATING_THRESHOLD_MS,
    ):
        self.width = width
        self.height = height
        self.sink = sink or NullSink()
        self.clock = clock
        self.hesitation_threshold_ms = hesitation_threshold_ms
        self.hesitating_threshold_ms = hesitating_threshold_ms
        self._init_run(generate_maze(width, height, seed))

    def _init_run(self, maze: Maze) -> None:
        self.maze = maze
        self.status: SessionStatus = "idle"
        self.position: tuple[int, int] = maze.start_pos
        self.path: list[tuple[int, int]] = [maze.start_pos]
        self.moves = 0
        self.decisions = 0
        self.hesitations = 0
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.last_move_time: Optional[float] = None
        self.move_times: list[float] = []
        self._final_metrics: Optional[SessionMetrics] = None
        self.optimal_moves = max(0, len(maze.shortest_path(maze.start_pos, maze.exit_pos)) - 1)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self.status != "idle":
            return
        now = self.clock()
        self.status = "active"
        self.start_time = now
        self.last_move_time = now
        self._emit(
            GameStartEvent(
                timestamp=now,
                start_time=now,
                maze_size=f"{self.maze.width}x{self.maze.height}",
            )
        )
        logger.info("Game started on %dx%d maze (seed=%s)", self.maze.width, self.maze.height, self.maze.seed)

    def attempt_move(self, direction) -> MoveResult:
        """Apply one direction intent.

        Blocked moves are rejected without touching any state. Raises
        ValueError for an unknown direction.
        """
        direction = parse_direction(direction)

        if self.status == "complete":
            return MoveResult(accepted=False, reason="complete", position=self.position)
        if self.status == "idle":
            self.start()

        dx, dy = DIRECTION_DELTAS[direction]
        x, y = self.position
        target = (x + dx, y + dy)
        now = self.clock()

        if not self.maze.is_walkable(*target):
            self._emit(
                InvalidMoveEvent(timestamp=now, direction=direction.value, attempted=Point.of(target))
            )
            return MoveResult(accepted=False, reason="blocked", position=self.position)

        # 犹豫计数挂在结束停顿的那一步上
        if self.last_move_time is not None:
            gap_ms = (now - self.last_move_time) * 1000
            if gap_ms > self.hesitation_threshold_ms:
                self.hesitations += 1
                self._emit(HesitationEvent(timestamp=now, duration_ms=int(gap_ms)))

        origin = self.position
        self.position = target
        self.moves += 1
        self.decisions += 1
        if self.path[-1] != target:
            self.path.append(target)
        self.last_move_time = now
        self.move_times.append(now)

        self._emit(
            MoveEvent(
                timestamp=now,
                direction=direction.value,
                from_=Point.of(origin),
                to=Point.of(target),
            )
        )

        if target == self.maze.exit_pos:
            self._complete(now)
            return MoveResult(accepted=True, completed=True, position=target)
        return MoveResult(accepted=True, position=target)

    def _complete(self, now: float) -> None:
        self.status = "complete"
        self.end_time = now
        self._final_metrics = self._build_metrics()
        self._emit(GameCompleteEvent(timestamp=now, metrics=self._final_metrics))
        logger.info(
            "Game complete: %d moves, %d hesitations, %ss",
            self.moves,
            self.hesitations,
            self._final_metrics.time_taken,
        )

    def reset(self) -> None:
        self._init_run(generate_maze(self.width, self.height))
        self._emit(GameResetEvent(timestamp=self.clock()))
        logger.info("Game reset, new maze seed=%s", self.maze.seed)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    def is_hesitating(self, now: Optional[float] = None) -> bool:
        """Presentation hint only; never touches the hesitation counter."""
        if self.status != "active" or self.last_move_time is None:
            return False
        now = self.clock() if now is None else now
        return (now - self.last_move_time) * 1000 > self.hesitating_threshold_ms

    @property
    def is_complete(self) -> bool:
        return self.status == "complete"

    def final_metrics(self) -> Optional[SessionMetrics]:
        return self._final_metrics

    def current_metrics(self) -> SessionMetrics:
        if self._final_metrics is not None:
            return self._final_metrics
        return self._build_metrics()

    def _build_metrics(self) -> SessionMetrics:
        time_taken = 0
        if self.start_time is not None:
            end = self.end_time if self.end_time is not None else self.clock()
            time_taken = max(0, math.floor(end - self.start_time))
        return SessionMetrics(
            moves=self.moves,
            decisions=self.decisions,
            hesitations=self.hesitations,
            start_time=self.start_time,
            end_time=self.end_time,
            time_taken=time_taken,
            efficiency=compute_efficiency(self.moves),
            confidence=compute_confidence(self.hesitations),
            path_length=len(self.path),
            path_efficiency=path_efficiency(self.path),
            optimal_moves=self.optimal_moves,
            decision_pattern=analyze_decision_timing([t * 1000 for t in self.move_times]),
        )

    def snapshot(self, now: Optional[float] = None) -> SessionSnapshot:
        return SessionSnapshot(
            status=self.status,
            grid=[[int(cell) for cell in row] for row in self.maze.grid],
            position=Point.of(self.position),
            exit=Point.of(self.maze.exit_pos),
            path=[Point.of(pos) for pos in self.path],
            hesitating=self.is_hesitating(now),
            metrics=self.current_metrics(),
        )

    def _emit(self, event: GameEvent) -> None:
        try:
            self.sink.emit(event)
        except Exception as exc:
            logger.warning("Telemetry delivery failed for %s: %s", event.type, exc)


class Settings:
    """Game settings."""

    def __init__(self):
        # Maze
        self.maze_width = 15
        self.maze_height = 15
        self.maze_seed: Optional[int] = None

        # Session
        self.hesitation_threshold_ms = HESITATION_THRESHOLD_MS
        self.hesitating_threshold_ms = HESITATING_THRESHOLD_MS

        # Analysis
        self.ai_provider = "local"
        self.analysis_url: Optional[str] = None
        self.analysis_timeout = 5.0

        # Web server
        self.server_host = "127.0.0.1"
        self.server_port = 3000
        self.static_root = "./public"
        self.max_sessions = 1000

        # Logging
        self.log_level = "INFO"

    def load_from_dict(self, config: dict) -> None:
        if "maze" in config:
            m = config["maze"] or {}
            self.maze_width = m.get("width", self.maze_width)
            self.maze_height = m.get("height", self.maze_height)
            self.maze_seed = m.get("seed", self.maze_seed)

        if "session" in config:
            s = config["session"] or {}
            self.hesitation_threshold_ms = s.get("hesitation_threshold_ms", self.hesitation_threshold_ms)
            self.hesitating_threshold_ms = s.get("hesitating_threshold_ms", self.hesitating_threshold_ms)

        if "ai" in config:
            ai = config["ai"] or {}
            self.ai_provider = ai.get("provider", self.ai_provider)
            self.analysis_url = ai.get("url", self.analysis_url)
            self.analysis_timeout = ai.get("timeout", self.analysis_timeout)

        if "server" in config:
            srv = config["server"] or {}
            self.server_host = srv.get("host", self.server_host)
            self.server_port = srv.get("port", self.server_port)
            self.static_root = srv.get("static_root", self.static_root)
            self.max_sessions = srv.get("max_sessions", self.max_sessions)

        if "logging" in config:
            self.log_level = (config["logging"] or {}).get("level", self.log_level)

    def load_from_env(self, environ=None) -> None:
        """Environment overrides (PORT, COGNIMAZE_ANALYSIS_URL)."""
        env = os.environ if environ is None else environ
        if env.get("PORT"):
            self.server_port = int(env["PORT"])
        if env.get("COGNIMAZE_ANALYSIS_URL"):
            self.analysis_url = env["COGNIMAZE_ANALYSIS_URL"]
            if self.ai_provider == "local":
                self.ai_provider = "auto"

    def new_session(self, sink: Optional[TelemetrySink] = None) -> GameSession:
        return GameSession(
            self.maze_width,
            self.maze_height,
            seed=self.maze_seed,
            sink=sink,
            hesitation_threshold_ms=self.hesitation_threshold_ms,
            hesitating_threshold_ms=self.hesitating_threshold_ms,
        )
