from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from maze import Direction, Grid, Position

logger = logging.getLogger(__name__)


class TraversalStatus(Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Signal(Enum):
    TRAVERSAL_STARTED = "traversal_started"
    TRAVERSAL_COMPLETED = "traversal_completed"


@dataclass(frozen=True)
class StepResult:
    moved: bool
    signals: tuple[Signal, ...] = ()


BLOCKED = StepResult(moved=False)


class TraversalState:
    """
    Actor position plus the IDLE -> IN_PROGRESS -> COMPLETED state machine.

    Knows nothing about timing or drawing; accepted moves report signals and the
    owner decides what to do with them.
    """

    def __init__(self, grid: Grid):
        self.grid = grid
        self.goal = Position(grid.rows - 1, grid.cols - 1)
        self._pos = Position(0, 0)
        self._status = TraversalStatus.IDLE
        self._move_count = 0

    @property
    def position(self) -> Position:
        return self._pos

    @property
    def status(self) -> TraversalStatus:
        return self._status

    @property
    def move_count(self) -> int:
        return self._move_count

    def can_move(self, direction: Direction) -> bool:
        if self._status is TraversalStatus.COMPLETED:
            return False
        if self.grid.cell(self._pos).has_wall(direction):
            return False
        # An open boundary wall is a generation bug, not a way out of the grid.
        return self.grid.in_bounds(self._pos.step(direction))

    def attempt_move(self, direction: Direction) -> StepResult:
        if not self.can_move(direction):
            logger.debug("Blocked move %s at %s", direction.name, self._pos)
            return BLOCKED

        self._pos = self._pos.step(direction)
        self._move_count += 1

        signals: list[Signal] = []
        if self._status is TraversalStatus.IDLE:
            self._status = TraversalStatus.IN_PROGRESS
            signals.append(Signal.TRAVERSAL_STARTED)
        if self._pos == self.goal:
            self._status = TraversalStatus.COMPLETED
            signals.append(Signal.TRAVERSAL_COMPLETED)
        return StepResult(moved=True, signals=tuple(signals))
