from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from sqlmodel import Field, Session, SQLModel, create_engine, select


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass
class RunRecord:
    id: str
    player: str
    rows: int
    cols: int
    elapsed_seconds: float
    moves: int
    created_at: str


def _new_record(player: str, rows: int, cols: int, elapsed_seconds: float, moves: int) -> dict[str, Any]:
    return asdict(
        RunRecord(
            id=str(uuid4()),
            player=player,
            rows=rows,
            cols=cols,
            elapsed_seconds=float(elapsed_seconds),
            moves=int(moves),
            created_at=_utc_now_iso(),
        )
    )


def _rank(runs: list[dict[str, Any]], rows: int | None, cols: int | None, limit: int) -> list[dict[str, Any]]:
    if rows is not None:
        runs = [r for r in runs if r.get("rows") == rows]
    if cols is not None:
        runs = [r for r in runs if r.get("cols") == cols]
    runs.sort(key=lambda r: (r.get("elapsed_seconds", float("inf")), r.get("moves", float("inf"))))
    return runs[:limit]


class JsonRunRepository:
    def __init__(self, path: str | Path, schema_version: int = 1):
        self.path = Path(path)
        self.schema_version = schema_version
        self._ensure_store()

    def _empty_doc(self) -> dict[str, Any]:
        return {"schema_version": self.schema_version, "runs": {}}

    def _ensure_store(self) -> None:
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write_doc(self._empty_doc())

    def _read_doc(self) -> dict[str, Any]:
        if not self.path.exists():
            return self._empty_doc()
        raw = self.path.read_text(encoding="utf-8").strip()
        if not raw:
            return self._empty_doc()
        doc = json.loads(raw)
        doc.setdefault("schema_version", self.schema_version)
        doc.setdefault("runs", {})
        return doc

    def _write_doc(self, doc: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(doc, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)

    def record_run(
        self,
        player: str,
        rows: int,
        cols: int,
        elapsed_seconds: float,
        moves: int,
    ) -> dict[str, Any]:
        doc = self._read_doc()
        record = _new_record(player, rows, cols, elapsed_seconds, moves)
        doc["runs"][record["id"]] = record
        doc["schema_version"] = self.schema_version
        self._write_doc(doc)
        return record

    def get_run(self, run_id: str) -> dict[str, Any]:
        doc = self._read_doc()
        run = doc["runs"].get(run_id)
        if run is None:
            raise KeyError(f"Unknown run_id: {run_id}")
        return run

    def best_runs(self, rows: int | None = None, cols: int | None = None, limit: int = 10) -> list[dict[str, Any]]:
        doc = self._read_doc()
        return _rank(list(doc["runs"].values()), rows, cols, limit)

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# SQLModel table for SqliteRunRepository
# ---------------------------------------------------------------------------


class RunModel(SQLModel, table=True):
    __tablename__ = "runs"
    id: str = Field(primary_key=True)
    player: str
    grid_rows: int
    grid_cols: int
    elapsed_seconds: float
    moves: int
    created_at: str


class SqliteRunRepository:
    """SQLite-backed repository using SQLModel. Same interface as JsonRunRepository."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        url = f"sqlite:///{self.path}"
        self.engine = create_engine(url, connect_args={"check_same_thread": False})
        SQLModel.metadata.create_all(self.engine)

    @staticmethod
    def _as_dict(row: RunModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "player": row.player,
            "rows": row.grid_rows,
            "cols": row.grid_cols,
            "elapsed_seconds": row.elapsed_seconds,
            "moves": row.moves,
            "created_at": row.created_at,
        }

    def record_run(
        self,
        player: str,
        rows: int,
        cols: int,
        elapsed_seconds: float,
        moves: int,
    ) -> dict[str, Any]:
        record = _new_record(player, rows, cols, elapsed_seconds, moves)
        with Session(self.engine) as session:
            session.add(
                RunModel(
                    id=record["id"],
                    player=player,
                    grid_rows=rows,
                    grid_cols=cols,
                    elapsed_seconds=record["elapsed_seconds"],
                    moves=record["moves"],
                    created_at=record["created_at"],
                )
            )
            session.commit()
        return record

    def get_run(self, run_id: str) -> dict[str, Any]:
        with Session(self.engine) as session:
            row = session.get(RunModel, run_id)
            if row is None:
                raise KeyError(f"Unknown run_id: {run_id}")
            return self._as_dict(row)

    def best_runs(self, rows: int | None = None, cols: int | None = None, limit: int = 10) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            stmt = select(RunModel)
            if rows is not None:
                stmt = stmt.where(RunModel.grid_rows == rows)
            if cols is not None:
                stmt = stmt.where(RunModel.grid_cols == cols)
            stmt = stmt.order_by(RunModel.elapsed_seconds, RunModel.moves).limit(limit)
            return [self._as_dict(row) for row in session.exec(stmt).all()]

    def close(self) -> None:
        self.engine.dispose()


def open_repo(path: str | Path):
    """Return SqliteRunRepository for .db paths, JsonRunRepository otherwise."""
    path = Path(path)
    if path.suffix == ".db":
        return SqliteRunRepository(path)
    return JsonRunRepository(path)
