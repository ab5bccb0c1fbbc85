import importlib
import json
from collections import deque
from pathlib import Path
from typing import Any

import pytest


def import_required(module_name: str):
    """
    Import a project module with a clearer failure message than ModuleNotFoundError.
    """
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        pytest.fail(f"Required module '{module_name}.py' could not be imported. Original error: {e}")


@pytest.fixture
def maze_module():
    return import_required("maze")


@pytest.fixture
def main_module():
    return import_required("main")


@pytest.fixture
def db_module():
    return import_required("db")


class FixedIndex:
    """
    Random source that always picks the same index (clamped to the choice count).
    With index 0 and UP, RIGHT, DOWN, LEFT neighbour order, the carve runs along
    the top row, then down the right column.
    """

    def __init__(self, index: int = 0):
        self.index = index

    def randrange(self, stop: int) -> int:
        return min(self.index, stop - 1)


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fixed_index():
    return FixedIndex(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_controller(main_module, clock):
    def _make(rows: int = 4, cols: int = 4, **kwargs):
        kwargs.setdefault("rng", FixedIndex(0))
        kwargs.setdefault("clock", clock)
        return main_module.GameController(rows, cols, **kwargs)

    return _make


@pytest.fixture
def repo_path(tmp_path) -> Path:
    return tmp_path / "runs.json"


def reachable_from_origin(maze_mod, grid) -> set:
    """Flood fill over open walls, using only the grid's wall flags."""
    Position = maze_mod.Position
    start = Position(0, 0)
    seen = {start}
    q = deque([start])
    while q:
        cur = q.popleft()
        cell = grid.cell(cur)
        for d in maze_mod.Direction:
            if cell.has_wall(d):
                continue
            nxt = cur.step(d)
            if not grid.in_bounds(nxt) or nxt in seen:
                continue
            seen.add(nxt)
            q.append(nxt)
    return seen


def read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))
