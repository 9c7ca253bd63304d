import random
import unittest

import pydantic

from cognimaze.core.events import MemorySink, MoveEvent, TelemetrySink, parse_event
from cognimaze.core.maze import DIRECTION_DELTAS
from cognimaze.core.state import GameSession


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BrokenSink(TelemetrySink):
    def emit(self, event):
        raise RuntimeError("telemetry down")


def route_to_exit(session: GameSession) -> list[str]:
    """Directions along the shortest route from the current position to the exit."""
    maze = session.maze
    path = maze.shortest_path(session.position, maze.exit_pos)
    by_delta = {delta: direction.value for direction, delta in DIRECTION_DELTAS.items()}
    return [by_delta[(bx - ax, by - ay)] for (ax, ay), (bx, by) in zip(path, path[1:])]


def blocked_direction(session: GameSession) -> str:
    x, y = session.position
    for direction, (dx, dy) in DIRECTION_DELTAS.items():
        if not session.maze.is_walkable(x + dx, y + dy):
            return direction.value
    raise AssertionError("start cell has no wall around it")


class GameSessionTestCase(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.sink = MemorySink()
        self.session = GameSession(15, 15, seed=42, sink=self.sink, clock=self.clock)

    def test_new_session_is_idle_at_start(self):
        self.assertEqual("idle", self.session.status)
        self.assertEqual((1, 1), self.session.position)
        self.assertEqual([(1, 1)], self.session.path)
        self.assertEqual(0, self.session.moves)
        self.assertIsNone(self.session.final_metrics())

    def test_start_is_idempotent(self):
        self.session.start()
        started = self.session.start_time
        self.clock.advance(5)
        self.session.start()
        self.assertEqual("active", self.session.status)
        self.assertEqual(started, self.session.start_time)
        self.assertEqual(["game_start"], self.sink.types())

    def test_move_into_wall_changes_nothing(self):
        direction = blocked_direction(self.session)
        result = self.session.attempt_move(direction)
        self.assertFalse(result.accepted)
        self.assertEqual("blocked", result.reason)
        self.assertEqual((1, 1), self.session.position)
        self.assertEqual(0, self.session.moves)
        self.assertEqual(0, self.session.decisions)
        self.assertEqual([(1, 1)], self.session.path)
        self.assertEqual(["game_start", "invalid_move"], self.sink.types())

    def test_accepted_move_updates_position_counters_and_path(self):
        first = route_to_exit(self.session)[0]
        result = self.session.attempt_move(first)
        self.assertTrue(result.accepted)
        self.assertFalse(result.completed)
        self.assertEqual("active", self.session.status)
        self.assertEqual(1, self.session.moves)
        self.assertEqual(1, self.session.decisions)
        self.assertEqual([(1, 1), self.session.position], self.session.path)
        move = self.sink.events[-1]
        self.assertEqual("move", move.type)
        self.assertEqual({"x": 1, "y": 1}, move.payload()["from"])

    def test_pause_longer_than_threshold_counts_one_hesitation(self):
        route = route_to_exit(self.session)
        self.session.attempt_move(route[0])
        self.clock.advance(1.5)
        self.session.attempt_move(route[1])
        self.assertEqual(1, self.session.hesitations)
        self.assertEqual(["hesitation", "move"], self.sink.types()[-2:])
        self.assertEqual(1500, self.sink.events[-2].duration_ms)

        self.clock.advance(0.5)
        self.session.attempt_move(route[2])
        self.assertEqual(1, self.session.hesitations)

    def test_pause_before_first_move_counts_after_explicit_start(self):
        self.session.start()
        self.clock.advance(1.2)
        self.session.attempt_move(route_to_exit(self.session)[0])
        self.assertEqual(1, self.session.hesitations)

    def test_blocked_move_after_pause_is_not_a_hesitation(self):
        self.session.start()
        self.clock.advance(3)
        self.session.attempt_move(blocked_direction(self.session))
        self.assertEqual(0, self.session.hesitations)

    def test_hesitating_signal_is_read_only(self):
        self.assertFalse(self.session.is_hesitating())
        self.session.attempt_move(route_to_exit(self.session)[0])
        self.clock.advance(1.5)
        self.assertFalse(self.session.is_hesitating())
        self.clock.advance(1.0)
        self.assertTrue(self.session.is_hesitating())
        self.assertTrue(self.session.snapshot().hesitating)
        self.assertEqual(0, self.session.hesitations)

    def test_unknown_direction_fails_fast(self):
        with self.assertRaises(ValueError):
            self.session.attempt_move("sideways")
        self.assertEqual("idle", self.session.status)
        self.assertEqual([], self.sink.types())

    def test_counters_are_monotonic_and_change_only_on_accepted_moves(self):
        rng = random.Random(9)
        previous = 0
        for _ in range(300):
            if self.session.is_complete:
                break
            result = self.session.attempt_move(rng.choice(["up", "down", "left", "right"]))
            if result.accepted:
                self.assertEqual(previous + 1, self.session.moves)
            else:
                self.assertEqual(previous, self.session.moves)
            self.assertEqual(self.session.moves, self.session.decisions)
            previous = self.session.moves

    def test_path_drops_consecutive_duplicates_only(self):
        route = route_to_exit(self.session)
        opposite = {"up": "down", "down": "up", "left": "right", "right": "left"}
        self.session.attempt_move(route[0])
        self.session.attempt_move(opposite[route[0]])
        self.assertEqual(3, len(self.session.path))
        self.assertEqual((1, 1), self.session.path[-1])

    def test_sink_failures_do_not_affect_state(self):
        session = GameSession(15, 15, seed=42, sink=BrokenSink(), clock=self.clock)
        result = session.attempt_move(route_to_exit(session)[0])
        self.assertTrue(result.accepted)
        self.assertEqual(1, session.moves)


class CompletionTestCase(unittest.TestCase):
    def test_reaching_exit_completes_once_and_locks_the_session(self):
        clock = FakeClock()
        sink = MemorySink()
        session = GameSession(15, 15, seed=2024, sink=sink, clock=clock)
        route = route_to_exit(session)

        results = []
        for direction in route:
            clock.advance(0.5)
            results.append(session.attempt_move(direction))

        self.assertTrue(all(r.accepted for r in results))
        self.assertEqual([False] * (len(route) - 1) + [True], [r.completed for r in results])
        self.assertEqual("complete", session.status)
        self.assertEqual(session.maze.exit_pos, session.position)
        self.assertEqual(1, sink.types().count("game_complete"))

        metrics = session.final_metrics()
        self.assertEqual(len(route), metrics.moves)
        self.assertEqual(len(route), metrics.optimal_moves)
        # clock starts on the first move
        self.assertEqual((len(route) - 1) // 2, metrics.time_taken)
        self.assertEqual(0, metrics.hesitations)
        self.assertEqual(len(route) + 1, metrics.path_length)
        self.assertEqual(metrics, sink.events[-1].metrics)

        after = session.attempt_move(route[-1])
        self.assertFalse(after.accepted)
        self.assertEqual("complete", after.reason)
        self.assertEqual(len(route), session.moves)
        self.assertEqual(1, sink.types().count("game_complete"))
        self.assertFalse(session.is_hesitating())

    def test_reset_returns_to_idle_with_fresh_valid_mazes(self):
        sink = MemorySink()
        session = GameSession(15, 15, seed=7, sink=sink, clock=FakeClock())
        for direction in route_to_exit(session):
            session.attempt_move(direction)
        self.assertTrue(session.is_complete)

        for _ in range(2):
            session.reset()
            maze = session.maze
            self.assertEqual("idle", session.status)
            self.assertEqual((1, 1), session.position)
            self.assertEqual([(1, 1)], session.path)
            self.assertEqual((0, 0, 0), (session.moves, session.decisions, session.hesitations))
            self.assertIsNone(session.start_time)
            self.assertEqual(set(maze.open_cells()), maze.reachable_from(maze.start_pos))
            self.assertIn(maze.exit_pos, maze.reachable_from(maze.start_pos))
        self.assertEqual("game_reset", sink.types()[-1])

        result = session.attempt_move(route_to_exit(session)[0])
        self.assertTrue(result.accepted)

    def test_snapshot_exposes_renderer_view(self):
        session = GameSession(9, 9, seed=5, clock=FakeClock())
        snapshot = session.snapshot()
        data = snapshot.model_dump(by_alias=True)
        self.assertEqual("idle", data["status"])
        self.assertEqual({"x": 1, "y": 1}, data["position"])
        self.assertEqual(
            {"x": session.maze.exit_pos[0], "y": session.maze.exit_pos[1]},
            data["exit"],
        )
        self.assertEqual(9, len(data["grid"]))
        self.assertIn("pathEfficiency", data["metrics"])

    def test_recorded_events_rebuild_from_json(self):
        sink = MemorySink()
        session = GameSession(9, 9, seed=2, sink=sink, clock=FakeClock())
        session.attempt_move(route_to_exit(session)[0])
        for event in sink.events:
            dumped = event.model_dump(mode="json", by_alias=True)
            self.assertEqual(event, parse_event(dumped))
        self.assertIsInstance(parse_event(sink.events[-1].model_dump(by_alias=True)), MoveEvent)
        with self.assertRaises(pydantic.ValidationError):
            parse_event({"type": "teleport", "timestamp": 1.0})


if __name__ == "__main__":
    unittest.main()
