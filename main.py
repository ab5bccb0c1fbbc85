from __future__ import annotations

import argparse
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from config import (
    DEFAULT_COLS,
    DEFAULT_PLAYER,
    DEFAULT_ROWS,
    DEFAULT_RUNS_PATH,
    GameConfig,
)
from db import open_repo
from maze import Direction, Grid, GridView, InvalidOperation, MazeGenerator, Position, RandomIndex
from timing import TimingSession
from traversal import Signal, TraversalState, TraversalStatus

logger = logging.getLogger(__name__)


class MoveOutcome(Enum):
    BLOCKED = "blocked"
    MOVED = "moved"
    MOVED_AND_STARTED = "moved_and_started"
    MOVED_AND_COMPLETED = "moved_and_completed"


@dataclass(frozen=True)
class MoveResult:
    outcome: MoveOutcome
    elapsed_seconds: float | None = None

    @property
    def moved(self) -> bool:
        return self.outcome is not MoveOutcome.BLOCKED


@dataclass(frozen=True)
class CompletionEvent:
    """
    Emitted once per session when the actor reaches the goal cell.
    """

    elapsed_seconds: float
    moves: int
    rows: int
    cols: int


CompletionListener = Callable[[CompletionEvent], None]


_DIRECTION_TOKENS = {
    "UP": Direction.UP,
    "U": Direction.UP,
    "W": Direction.UP,
    "N": Direction.UP,
    "NORTH": Direction.UP,
    "ARROWUP": Direction.UP,
    "DOWN": Direction.DOWN,
    "S": Direction.DOWN,
    "SOUTH": Direction.DOWN,
    "ARROWDOWN": Direction.DOWN,
    "LEFT": Direction.LEFT,
    "L": Direction.LEFT,
    "A": Direction.LEFT,
    "WEST": Direction.LEFT,
    "ARROWLEFT": Direction.LEFT,
    "RIGHT": Direction.RIGHT,
    "R": Direction.RIGHT,
    "D": Direction.RIGHT,
    "E": Direction.RIGHT,
    "EAST": Direction.RIGHT,
    "ARROWRIGHT": Direction.RIGHT,
}


def _direction_from_token(token: str | None) -> Direction | None:
    if token is None:
        return None
    return _DIRECTION_TOKENS.get(token.strip().upper())


class GameController:
    """
    Sole owner of the grid, the traversal state and the timing session.

    Two independent surfaces for the UI: ``current_elapsed()`` is safe to poll on
    a timer tick, while completion is pushed to subscribed listeners.
    """

    def __init__(
        self,
        rows: int = DEFAULT_ROWS,
        cols: int = DEFAULT_COLS,
        *,
        seed: int | None = None,
        rng: RandomIndex | None = None,
        clock: Callable[[], float] | None = None,
    ):
        GameConfig(rows=rows, cols=cols, seed=seed).validate()
        self.rows = rows
        self.cols = cols
        self._generator = MazeGenerator(rng if rng is not None else random.Random(seed))
        self._clock = clock
        self._listeners: list[CompletionListener] = []
        self.reset()

    @classmethod
    def from_config(cls, config: GameConfig, **kwargs) -> "GameController":
        config.validate()
        return cls(config.rows, config.cols, seed=config.seed, **kwargs)

    def subscribe(self, listener: CompletionListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: CompletionListener) -> None:
        self._listeners.remove(listener)

    def reset(self) -> None:
        grid = Grid(self.rows, self.cols)
        self._generator.generate(grid)
        self._grid = grid
        self._traversal = TraversalState(grid)
        self._timer = TimingSession(self._clock)
        logger.info("New %dx%d maze ready", self.rows, self.cols)

    @property
    def status(self) -> TraversalStatus:
        return self._traversal.status

    @property
    def move_count(self) -> int:
        return self._traversal.move_count

    def request_move(self, direction: Direction | str) -> MoveResult:
        if not isinstance(direction, Direction):
            parsed = _direction_from_token(direction)
            if parsed is None:
                raise InvalidOperation(f"Unknown direction: {direction!r}")
            direction = parsed

        step = self._traversal.attempt_move(direction)
        if not step.moved:
            return MoveResult(MoveOutcome.BLOCKED)

        if Signal.TRAVERSAL_STARTED in step.signals:
            self._timer.start()
        if Signal.TRAVERSAL_COMPLETED in step.signals:
            self._timer.stop()
            elapsed = self._timer.elapsed()
            self._emit(
                CompletionEvent(
                    elapsed_seconds=elapsed,
                    moves=self._traversal.move_count,
                    rows=self.rows,
                    cols=self.cols,
                )
            )
            return MoveResult(MoveOutcome.MOVED_AND_COMPLETED, elapsed_seconds=elapsed)
        if Signal.TRAVERSAL_STARTED in step.signals:
            return MoveResult(MoveOutcome.MOVED_AND_STARTED)
        return MoveResult(MoveOutcome.MOVED)

    def _emit(self, event: CompletionEvent) -> None:
        logger.info("Maze completed in %.1fs after %d moves", event.elapsed_seconds, event.moves)
        for listener in list(self._listeners):
            listener(event)

    def current_elapsed(self) -> float:
        return self._timer.elapsed()

    def snapshot_grid(self) -> GridView:
        return self._grid.view()

    def current_position(self) -> Position:
        return self._traversal.position


def _render_map(view: GridView, pos: Position) -> str:
    lines: list[str] = []
    for r in range(view.rows):
        top = "+"
        mid = ""
        for c in range(view.cols):
            cell = view.cell(Position(r, c))
            top += ("---" if cell.top else "   ") + "+"
            if c == 0:
                mid += "|" if cell.left else " "
            if cell.pos == pos:
                mark = " @ "
            elif cell.pos == view.goal:
                mark = " X "
            else:
                mark = "   "
            mid += mark + ("|" if cell.right else " ")
        lines.append(top)
        lines.append(mid)
    bottom = "+"
    for c in range(view.cols):
        cell = view.cell(Position(view.rows - 1, c))
        bottom += ("---" if cell.bottom else "   ") + "+"
    lines.append(bottom)
    return "\n".join(lines)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Walk a random perfect maze from the top-left to the bottom-right cell.")
    parser.add_argument("--rows", type=int, default=DEFAULT_ROWS, help="Maze height in cells.")
    parser.add_argument("--cols", type=int, default=DEFAULT_COLS, help="Maze width in cells.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for maze generation (default: random).")
    parser.add_argument("--db", type=str, default=DEFAULT_RUNS_PATH, help="Run records file (.db for SQLite, JSON otherwise).")
    parser.add_argument("--player", type=str, default=DEFAULT_PLAYER, help="Name stored with completed runs.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(
    argv: list[str] | None = None,
    *,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    config = GameConfig(rows=args.rows, cols=args.cols, seed=args.seed).validate()
    repo = open_repo(args.db)
    controller = GameController.from_config(config)

    def on_complete(event: CompletionEvent) -> None:
        repo.record_run(
            player=args.player,
            rows=event.rows,
            cols=event.cols,
            elapsed_seconds=event.elapsed_seconds,
            moves=event.moves,
        )
        write(f"Congratulations! You finished the maze in {event.elapsed_seconds:.1f} seconds.")

    controller.subscribe(on_complete)
    write(_render_map(controller.snapshot_grid(), controller.current_position()))
    try:
        while True:
            try:
                line = read("> ")
            except EOFError:
                break
            verb = line.strip().lower()
            if not verb:
                continue
            if verb in {"quit", "exit", "q"}:
                break
            if verb == "restart":
                controller.reset()
            elif verb == "time":
                write(f"{controller.current_elapsed():.1f}")
                continue
            elif verb == "best":
                for i, run in enumerate(repo.best_runs(rows=config.rows, cols=config.cols), start=1):
                    write(f"{i}. {run['player']}  {run['elapsed_seconds']:.1f}s  {run['moves']} moves")
                continue
            elif _direction_from_token(verb) is None:
                write("Unknown command.")
                continue
            else:
                result = controller.request_move(verb)
                if not result.moved:
                    write("Blocked path.")
                    continue
            write(_render_map(controller.snapshot_grid(), controller.current_position()))
    finally:
        repo.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
