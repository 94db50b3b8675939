"""File-based JSON storage shared by all moderation components.

Each table is a JSON file holding a list of row dicts under the data
directory (``~/.modcore/data`` by default).  Append-only logs are
newline-delimited JSON.  A single re-entrant lock serialises writers and
``Storage.transaction()`` journals every file it touches so a failing
block leaves the store exactly as it found it.

Two sidecar files live next to the tables: ``_sequences.json`` holds the
highest id ever handed out per table or log, so a deleted row's id is
never reused, and ``_generations.json`` holds the cache generation
counters.  Both are read from disk on every call, so a write made through
another ``Storage`` on the same directory (the CLI while the API is
running, say) invalidates this one's caches too.
"""

from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from loguru import logger

Predicate = Callable[[dict], bool]


class Storage:
    """Owns the data directory, the writer lock and the cache generations."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".modcore" / "data"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._journal: Optional[dict[Path, Optional[bytes]]] = None
        self._bumped: Optional[set[str]] = None
        self._generations_path = self._base / "_generations.json"
        self._sequences_path = self._base / "_sequences.json"
        self._tables: dict[str, JsonTable] = {}
        self._logs: dict[str, JsonlLog] = {}

    @property
    def base_dir(self) -> Path:
        return self._base

    def table(self, name: str) -> JsonTable:
        with self._lock:
            if name not in self._tables:
                self._tables[name] = JsonTable(self, self._base / f"{name}.json")
            return self._tables[name]

    def log(self, name: str) -> JsonlLog:
        with self._lock:
            if name not in self._logs:
                self._logs[name] = JsonlLog(self, self._base / f"{name}.jsonl")
            return self._logs[name]

    # -- generations ---------------------------------------------------------

    def generation(self, name: str) -> int:
        return self._read_counters(self._generations_path).get(name, 0)

    def bump(self, name: str) -> int:
        """Advance the persisted generation of *name*.

        Not journaled: a rolled-back transaction bumps again instead of
        restoring, so a snapshot built inside it is never mistaken for a
        current one.
        """
        with self._lock:
            counters = self._read_counters(self._generations_path)
            counters[name] = counters.get(name, 0) + 1
            self._write_counters(self._generations_path, counters)
            if self._bumped is not None:
                self._bumped.add(name)
            return counters[name]

    # -- id sequences --------------------------------------------------------

    def next_id(self, key: str, floor: int = 0) -> int:
        """Allocate the next id for *key*, above *floor* and every id issued before."""
        with self._lock:
            self._record(self._sequences_path)
            counters = self._read_counters(self._sequences_path)
            next_id = max(counters.get(key, 0), floor) + 1
            counters[key] = next_id
            self._write_counters(self._sequences_path, counters)
            return next_id

    def _read_counters(self, path: Path) -> dict[str, int]:
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            logger.error(f"Unreadable counter file {path.name}: {exc}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Counter file {path.name} is not an object; ignoring contents")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, int)}

    def _write_counters(self, path: Path, counters: dict[str, int]) -> None:
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(counters, indent=2, sort_keys=True))
        tmp.replace(path)

    # -- transactions --------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Storage]:
        """Run a block atomically: on any exception every touched file is restored."""
        with self._lock:
            outermost = self._journal is None
            if outermost:
                self._journal = {}
                self._bumped = set()
            try:
                yield self
            except BaseException:
                if outermost:
                    self._rollback()
                raise
            finally:
                if outermost:
                    self._journal = None
                    self._bumped = None

    def _record(self, path: Path) -> None:
        if self._journal is None or path in self._journal:
            return
        self._journal[path] = path.read_bytes() if path.exists() else None

    def _rollback(self) -> None:
        assert self._journal is not None
        for path, original in self._journal.items():
            try:
                if original is None:
                    path.unlink(missing_ok=True)
                else:
                    path.write_bytes(original)
            except OSError:
                logger.exception(f"Failed to restore {path} during rollback")
        for name in sorted(self._bumped or ()):
            self.bump(name)
        logger.warning(f"Rolled back transaction touching {len(self._journal)} file(s)")


class JsonTable:
    """A list of row dicts with integer ids, persisted as one JSON file."""

    def __init__(self, storage: Storage, path: Path) -> None:
        self._storage = storage
        self._path = path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self) -> list[dict]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            logger.error(f"Unreadable table {self._path.name}: {exc}")
            return []
        if not isinstance(data, list):
            logger.error(f"Table {self._path.name} is not a list; ignoring contents")
            return []
        return [row for row in data if isinstance(row, dict)]

    def _write_json(self, rows: list[dict]) -> None:
        self._storage._record(self._path)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(rows, indent=2, default=str))
        tmp.replace(self._path)

    # ------------------------------------------------------------------
    # Row operations
    # ------------------------------------------------------------------

    def all(self) -> list[dict]:
        return self._read_json()

    def get(self, row_id: int) -> Optional[dict]:
        for row in self._read_json():
            if row.get("id") == row_id:
                return row
        return None

    def find(self, predicate: Predicate) -> list[dict]:
        return [row for row in self._read_json() if predicate(row)]

    def find_one(self, predicate: Predicate) -> Optional[dict]:
        for row in self._read_json():
            if predicate(row):
                return row
        return None

    def count(self, predicate: Optional[Predicate] = None) -> int:
        rows = self._read_json()
        if predicate is None:
            return len(rows)
        return sum(1 for row in rows if predicate(row))

    def insert(self, row: dict) -> dict:
        """Assign the next integer id to *row*, persist it and return it."""
        with self._storage._lock:
            rows = self._read_json()
            row = dict(row)
            row["id"] = self._storage.next_id(self._path.name, max((r.get("id", 0) for r in rows), default=0))
            rows.append(row)
            self._write_json(rows)
            return row

    def update(self, row_id: int, changes: dict) -> Optional[dict]:
        with self._storage._lock:
            rows = self._read_json()
            for row in rows:
                if row.get("id") == row_id:
                    row.update(changes)
                    self._write_json(rows)
                    return row
            return None

    def delete(self, row_id: int) -> bool:
        with self._storage._lock:
            rows = self._read_json()
            kept = [r for r in rows if r.get("id") != row_id]
            if len(kept) < len(rows):
                self._write_json(kept)
                return True
            return False


class JsonlLog:
    """Append-only newline-delimited JSON log."""

    def __init__(self, storage: Storage, path: Path) -> None:
        self._storage = storage
        self._path = path

    def append(self, entry: dict) -> dict:
        with self._storage._lock:
            entries = self.read()
            entry = dict(entry)
            entry["id"] = self._storage.next_id(self._path.name, max((e.get("id", 0) for e in entries), default=0))
            self._storage._record(self._path)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry, default=str) + "\n")
            return entry

    def read(self) -> list[dict]:
        if not self._path.exists():
            return []
        entries: list[dict] = []
        for lineno, line in enumerate(self._path.read_text(encoding="utf-8").splitlines(), 1):
            if not line.strip():
                continue
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning(f"Skipping malformed line {lineno} in {self._path.name}")
        return entries
