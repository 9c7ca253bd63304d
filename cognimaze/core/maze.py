"""迷宫生成算法

Recursive backtracking on an odd-sized grid. Interior cells live on odd
coordinates, the cells between them are carved to connect neighbours.
"""

import random
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional


class CellType(IntEnum):
    """Grid cell state (encoded as 0/1/2 for the front end)."""
    OPEN = 0
    WALL = 1
    EXIT = 2


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


DIRECTION_DELTAS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

# 隔一格的邻居（跳过中间的墙）
CARVE_STEPS = [(0, -2), (2, 0), (0, 2), (-2, 0)]

START_POS = (1, 1)
MIN_MAZE_SIZE = 3


def parse_direction(value) -> Direction:
    """Normalize a direction intent, failing fast on unknown values."""
    if isinstance(value, Direction):
        return value
    try:
        return Direction(str(value).lower())
    except ValueError:
        raise ValueError(
            f"Unknown direction {value!r}, expected one of: up, down, left, right"
        ) from None


@dataclass
class Maze:
    """迷宫数据结构"""
    width: int
    height: int
    seed: int
    grid: list[list[CellType]] = field(default_factory=list)
    start_pos: tuple[int, int] = START_POS
    exit_pos: tuple[int, int] = START_POS

    def get_cell(self, x: int, y: int) -> Optional[CellType]:
        """获取指定位置的格子"""
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.grid[y][x]
        return None

    def is_walkable(self, x: int, y: int) -> bool:
        cell = self.get_cell(x, y)
        return cell is not None and cell != CellType.WALL

    def open_cells(self) -> list[tuple[int, int]]:
        return [
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if self.grid[y][x] != CellType.WALL
        ]

    def walkable_neighbors(self, x: int, y: int) -> list[tuple[int, int]]:
        """4-directional neighbours that are not walls."""
        return [
            (x + dx, y + dy)
            for dx, dy in DIRECTION_DELTAS.values()
            if self.is_walkable(x + dx, y + dy)
        ]

    def reachable_from(self, start: tuple[int, int]) -> set[tuple[int, int]]:
        """Flood fill over walkable cells."""
        if not self.is_walkable(*start):
            return set()
        seen = {start}
        queue = deque([start])
        while queue:
            x, y = queue.popleft()
            for nxt in self.walkable_neighbors(x, y):
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return seen

    def shortest_path(self, start: tuple[int, int], goal: tuple[int, int]) -> list[tuple[int, int]]:
        """BFS 最短路径（含起点和终点），不可达时返回空列表"""
        if not self.is_walkable(*start):
            return []
        parents: dict[tuple[int, int], Optional[tuple[int, int]]] = {start: None}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            if current == goal:
                path = []
                while current is not None:
                    path.append(current)
                    current = parents[current]
                return path[::-1]
            for nxt in self.walkable_neighbors(*current):
                if nxt not in parents:
                    parents[nxt] = current
                    queue.append(nxt)
        return []

    def to_payload(self) -> dict:
        """Serialized maze for the renderer."""
        return {
            "width": self.width,
            "height": self.height,
            "seed": self.seed,
            "grid": [[int(cell) for cell in row] for row in self.grid],
            "start": {"x": self.start_pos[0], "y": self.start_pos[1]},
            "exit": {"x": self.exit_pos[0], "y": self.exit_pos[1]},
        }


def _normalize_size(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Maze {label} must be an integer, got {value!r}")
    if value < MIN_MAZE_SIZE:
        raise ValueError(f"Maze {label} must be at least {MIN_MAZE_SIZE}, got {value}")
    # 偶数尺寸向下取奇数
    return value if value % 2 == 1 else value - 1


def generate_maze(width: int, height: int, seed: Optional[int] = None) -> Maze:
    """使用 DFS 回溯算法生成迷宫

    Args:
        width: 迷宫宽度（格子数），偶数会减一
        height: 迷宫高度（格子数），偶数会减一
        seed: 随机种子（None 则随机）

    Returns:
        生成的迷宫对象，出口位于最右侧内列
    """
    width = _normalize_size(width, "width")
    height = _normalize_size(height, "height")

    if seed is None:
        seed = random.randint(1, 999999)
    rng = random.Random(seed)

    # 初始化网格
    maze = Maze(width=width, height=height, seed=seed)
    maze.grid = [[CellType.WALL for _ in range(width)] for _ in range(height)]

    start_x, start_y = START_POS
    maze.grid[start_y][start_x] = CellType.OPEN
    stack = [START_POS]

    while stack:
        x, y = stack[-1]

        candidates = []
        for dx, dy in CARVE_STEPS:
            nx, ny = x + dx, y + dy
            if 0 < nx < width - 1 and 0 < ny < height - 1 and maze.grid[ny][nx] == CellType.WALL:
                candidates.append((nx, ny, dx, dy))

        if candidates:
            nx, ny, dx, dy = rng.choice(candidates)
            # 打通中间的墙和目标格
            maze.grid[y + dy // 2][x + dx // 2] = CellType.OPEN
            maze.grid[ny][nx] = CellType.OPEN
            stack.append((nx, ny))
        else:
            # 回溯
            stack.pop()

    # 出口：最右侧内列中已打通的格子，保证可达且不会死循环
    exit_x = width - 2
    exit_rows = [row for row in range(1, height - 1) if maze.grid[row][exit_x] == CellType.OPEN]
    exit_y = rng.choice(exit_rows)
    maze.grid[exit_y][exit_x] = CellType.EXIT

    maze.start_pos = START_POS
    maze.exit_pos = (exit_x, exit_y)
    return maze
