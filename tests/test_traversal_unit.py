import pytest

from conftest import FixedIndex
from maze import Direction, Grid, MazeGenerator, Position
from traversal import Signal, TraversalState, TraversalStatus


def _carved_grid(rows: int = 4, cols: int = 4) -> Grid:
    grid = Grid(rows, cols)
    MazeGenerator(FixedIndex(0)).generate(grid)
    return grid


def test_new_state_is_idle_at_origin():
    state = TraversalState(_carved_grid())
    assert state.position == Position(0, 0)
    assert state.status is TraversalStatus.IDLE
    assert state.goal == Position(3, 3)
    assert state.move_count == 0


def test_first_move_signals_start():
    state = TraversalState(_carved_grid())
    step = state.attempt_move(Direction.RIGHT)
    assert step.moved
    assert step.signals == (Signal.TRAVERSAL_STARTED,)
    assert state.status is TraversalStatus.IN_PROGRESS
    assert state.position == Position(0, 1)

    step = state.attempt_move(Direction.RIGHT)
    assert step.moved
    assert step.signals == ()


@pytest.mark.parametrize("direction", [Direction.UP, Direction.LEFT])
def test_boundary_moves_are_blocked_repeatedly(direction):
    state = TraversalState(_carved_grid())
    for _ in range(3):
        step = state.attempt_move(direction)
        assert not step.moved
        assert step.signals == ()
    assert state.position == Position(0, 0)
    assert state.status is TraversalStatus.IDLE
    assert state.move_count == 0


def test_wall_blocks_move():
    grid = _carved_grid()
    state = TraversalState(grid)
    # (0,0) -> (1,0) is never carved first by the fixed-index source.
    assert grid.cell(Position(0, 0)).bottom
    assert not state.attempt_move(Direction.DOWN).moved


def test_open_boundary_wall_is_not_a_way_out():
    grid = Grid(2, 2)
    grid.cell(Position(0, 0)).top = False
    state = TraversalState(grid)
    assert not state.can_move(Direction.UP)
    assert not state.attempt_move(Direction.UP).moved
    assert state.position == Position(0, 0)


def test_reaching_goal_completes_and_freezes_state():
    state = TraversalState(_carved_grid())
    for d in [Direction.RIGHT] * 3 + [Direction.DOWN] * 2:
        assert state.attempt_move(d).moved
    step = state.attempt_move(Direction.DOWN)
    assert step.moved
    assert step.signals == (Signal.TRAVERSAL_COMPLETED,)
    assert state.status is TraversalStatus.COMPLETED
    assert state.move_count == 6

    # (3,3) has an open passage to (3,2) but completed sessions take no moves.
    assert not state.grid.cell(Position(3, 3)).left
    step = state.attempt_move(Direction.LEFT)
    assert not step.moved
    assert state.position == Position(3, 3)
    assert state.move_count == 6


def test_single_move_can_start_and_complete():
    grid = Grid(1, 2)
    MazeGenerator(FixedIndex(0)).generate(grid)
    state = TraversalState(grid)
    step = state.attempt_move(Direction.RIGHT)
    assert step.signals == (Signal.TRAVERSAL_STARTED, Signal.TRAVERSAL_COMPLETED)
    assert state.status is TraversalStatus.COMPLETED


def test_moves_never_touch_walls():
    grid = _carved_grid()
    before = grid.view()
    state = TraversalState(grid)
    for d in [Direction.RIGHT, Direction.DOWN, Direction.LEFT, Direction.UP] * 4:
        state.attempt_move(d)
    assert grid.view() == before
