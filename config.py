# config.py

from __future__ import annotations

from dataclasses import dataclass

from maze import InvalidOperation

# -------------------------------------------------------------------------
# GLOBAL CONFIG
# -------------------------------------------------------------------------
DEFAULT_ROWS = 20
DEFAULT_COLS = 20

TICK_INTERVAL = 0.1  # seconds between elapsed-time polls in the front-end

DEFAULT_RUNS_PATH = "runs.json"
DEFAULT_PLAYER = "player"


@dataclass(frozen=True)
class GameConfig:
    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    seed: int | None = None

    def validate(self) -> "GameConfig":
        if self.rows < 1 or self.cols < 1:
            raise InvalidOperation(f"Grid dimensions must be positive, got {self.rows}x{self.cols}")
        return self
