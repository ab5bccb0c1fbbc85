from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Protocol

logger = logging.getLogger(__name__)


class InvalidOperation(ValueError):
    """Raised on a precondition violation: a bug, never a user-reachable condition."""


class Direction(Enum):
    UP = (-1, 0)
    RIGHT = (0, 1)
    DOWN = (1, 0)
    LEFT = (0, -1)

    @property
    def delta(self) -> tuple[int, int]:
        return self.value

    @property
    def opposite(self) -> "Direction":
        return {
            Direction.UP: Direction.DOWN,
            Direction.DOWN: Direction.UP,
            Direction.RIGHT: Direction.LEFT,
            Direction.LEFT: Direction.RIGHT,
        }[self]

    @property
    def wall(self) -> str:
        """Name of the Cell wall flag facing this direction."""
        return {
            Direction.UP: "top",
            Direction.RIGHT: "right",
            Direction.DOWN: "bottom",
            Direction.LEFT: "left",
        }[self]


@dataclass(frozen=True)
class Position:
    row: int
    col: int

    def step(self, direction: Direction) -> "Position":
        dr, dc = direction.delta
        return Position(row=self.row + dr, col=self.col + dc)


@dataclass
class Cell:
    row: int
    col: int
    top: bool = True
    right: bool = True
    bottom: bool = True
    left: bool = True
    visited: bool = False

    @property
    def pos(self) -> Position:
        return Position(self.row, self.col)

    def has_wall(self, direction: Direction) -> bool:
        return getattr(self, direction.wall)


@dataclass(frozen=True)
class CellView:
    row: int
    col: int
    top: bool
    right: bool
    bottom: bool
    left: bool

    @property
    def pos(self) -> Position:
        return Position(self.row, self.col)

    def has_wall(self, direction: Direction) -> bool:
        return getattr(self, direction.wall)


@dataclass(frozen=True)
class GridView:
    """
    Read-only snapshot of a Grid for renderers. Detached from the live grid.
    """

    rows: int
    cols: int
    grid: tuple[tuple[CellView, ...], ...]

    @property
    def goal(self) -> Position:
        return Position(self.rows - 1, self.cols - 1)

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.row < self.rows and 0 <= pos.col < self.cols

    def cell(self, pos: Position) -> CellView:
        if not self.in_bounds(pos):
            raise InvalidOperation(f"Out of bounds position: {pos}")
        return self.grid[pos.row][pos.col]

    def cells(self) -> Iterator[CellView]:
        for line in self.grid:
            yield from line

    def has_wall(self, pos: Position, direction: Direction) -> bool:
        return self.cell(pos).has_wall(direction)


class Grid:
    def __init__(self, rows: int, cols: int):
        if rows < 1 or cols < 1:
            raise InvalidOperation(f"Grid dimensions must be positive, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        self._cells = [[Cell(row=r, col=c) for c in range(cols)] for r in range(rows)]

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.row < self.rows and 0 <= pos.col < self.cols

    def cell(self, pos: Position) -> Cell:
        if not self.in_bounds(pos):
            raise InvalidOperation(f"Out of bounds position: {pos}")
        return self._cells[pos.row][pos.col]

    def cells(self) -> Iterator[Cell]:
        for line in self._cells:
            yield from line

    def neighbors_of(self, cell: Cell) -> list[Cell]:
        """In-bounds orthogonal neighbours, always in UP, RIGHT, DOWN, LEFT order."""
        neighbors: list[Cell] = []
        for d in Direction:
            nxt = cell.pos.step(d)
            if self.in_bounds(nxt):
                neighbors.append(self.cell(nxt))
        return neighbors

    def direction_between(self, a: Cell, b: Cell) -> Direction:
        dr, dc = b.row - a.row, b.col - a.col
        for d in Direction:
            if d.delta == (dr, dc):
                return d
        raise InvalidOperation(f"Cells {a.pos} and {b.pos} are not adjacent")

    def remove_wall_between(self, a: Cell, b: Cell) -> None:
        d = self.direction_between(a, b)
        setattr(a, d.wall, False)
        setattr(b, d.opposite.wall, False)

    def passage_count(self) -> int:
        # Count each open interior wall once, from its RIGHT/DOWN side.
        count = 0
        for cell in self.cells():
            if cell.col < self.cols - 1 and not cell.right:
                count += 1
            if cell.row < self.rows - 1 and not cell.bottom:
                count += 1
        return count

    def view(self) -> GridView:
        return GridView(
            rows=self.rows,
            cols=self.cols,
            grid=tuple(
                tuple(
                    CellView(
                        row=c.row,
                        col=c.col,
                        top=c.top,
                        right=c.right,
                        bottom=c.bottom,
                        left=c.left,
                    )
                    for c in line
                )
                for line in self._cells
            ),
        )


class RandomIndex(Protocol):
    def randrange(self, stop: int) -> int: ...


class MazeGenerator:
    """
    Carves a perfect maze with a seeded recursive backtracker.

    The backtracker is iterative (explicit stack of positions), so large grids
    do not hit RecursionError. Any object with ``randrange(stop)`` can stand in
    for the random source.
    """

    def __init__(self, rng: RandomIndex | None = None, *, seed: int | None = None):
        self.rng = rng if rng is not None else random.Random(seed)

    def generate(self, grid: Grid) -> list[tuple[Position, Position]]:
        for cell in grid.cells():
            cell.visited = False

        carved: list[tuple[Position, Position]] = []
        start = grid.cell(Position(0, 0))
        start.visited = True
        stack: list[Position] = [start.pos]
        while stack:
            current = grid.cell(stack[-1])
            unvisited = [n for n in grid.neighbors_of(current) if not n.visited]
            if unvisited:
                nxt = unvisited[self.rng.randrange(len(unvisited))]
                grid.remove_wall_between(current, nxt)
                nxt.visited = True
                stack.append(nxt.pos)
                carved.append((current.pos, nxt.pos))
            else:
                stack.pop()

        for cell in grid.cells():
            cell.visited = False

        logger.debug("Carved %d passages in %dx%d grid", len(carved), grid.rows, grid.cols)
        return carved


def build_maze(
    rows: int,
    cols: int,
    *,
    seed: int | None = None,
    rng: RandomIndex | None = None,
) -> Grid:
    grid = Grid(rows, cols)
    MazeGenerator(rng, seed=seed).generate(grid)
    return grid
