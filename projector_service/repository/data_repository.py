"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, List, Optional

from projector_service.domain.models import AllocatedTimeSlot, TimeSlotRequest
from projector_service.repository.base import PersistenceError
from projector_service.utils.config import Settings, get_settings
from projector_service.utils.logger import get_logger


logger = get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLISECOND = timedelta(milliseconds=1)

_ALLOCATION_COLUMNS = """
    allocations.id AS allocation_id,
    allocations.projector_id,
    allocations.time_slot_id,
    allocations.team_id,
    time_slots.start,
    time_slots.duration,
    time_slots.recur_every,
    time_slots."end"
"""


def to_epoch_millis(value: datetime) -> int:
    return (value - _EPOCH) // _ONE_MILLISECOND


def from_epoch_millis(value: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=value)


def _row_to_allocation(row: sqlite3.Row) -> AllocatedTimeSlot:
    return AllocatedTimeSlot(
        start=from_epoch_millis(int(row["start"])),
        duration=timedelta(milliseconds=int(row["duration"])),
        recur_interval=timedelta(milliseconds=int(row["recur_every"])),
        recur_end=from_epoch_millis(int(row["end"])),
        team_id=int(row["team_id"]),
        allocation_id=int(row["allocation_id"]),
        projector_id=int(row["projector_id"]),
        time_slot_id=int(row["time_slot_id"]),
    )


class DataRepository:
    """SQLite store for time slots and projector allocations.

    Instants are stored as epoch milliseconds and durations as milliseconds.
    A recurring booking is a single ``time_slots`` row for its first
    occurrence.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.persistence_timeout_seconds,
        )
        connection.row_factory = sqlite3.Row
        return connection

    @contextmanager
    def _cursor(self, action: str) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor inside a committed transaction.

        Any sqlite failure, including a busy timeout, surfaces as
        PersistenceError.
        """
        connection: sqlite3.Connection | None = None
        try:
            connection = self._connect()
            with connection:
                yield connection.cursor()
        except sqlite3.Error as exc:
            logger.error("Database %s failed: %s", action, exc)
            raise PersistenceError(f"Database {action} failed: {exc}") from exc
        finally:
            if connection is not None:
                connection.close()

    def initialize_database(self) -> None:
        """Create tables and seed the projector rows. Safe to re-run."""
        with self._cursor("initialization") as cursor:
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS projectors (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL
                );
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS time_slots (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    start INTEGER NOT NULL,
                    duration INTEGER NOT NULL CHECK (duration > 0),
                    recur_every INTEGER NOT NULL DEFAULT 0 CHECK (recur_every >= 0),
                    "end" INTEGER NOT NULL
                );
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS allocations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    projector_id INTEGER NOT NULL,
                    time_slot_id INTEGER NOT NULL,
                    team_id INTEGER NOT NULL
                );
                """
            )
            cursor.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_allocations_time_slot
                ON allocations(time_slot_id);
                """
            )
            cursor.executemany(
                "INSERT OR IGNORE INTO projectors (id, name) VALUES (?, ?);",
                [
                    (projector_id, f"Projector {projector_id + 1}")
                    for projector_id in range(self._settings.projector_count)
                ],
            )
        logger.info("Database initialized at %s", self._db_path)

    def load_allocations(
        self,
        year_start: datetime,
        year_end: datetime,
    ) -> List[AllocatedTimeSlot]:
        """Allocations starting inside the window plus every recurring one."""
        with self._cursor("load") as cursor:
            cursor.execute(
                f"""
                SELECT {_ALLOCATION_COLUMNS}
                FROM allocations
                INNER JOIN time_slots ON time_slots.id = allocations.time_slot_id
                WHERE (time_slots.start >= ? AND time_slots.start <= ?)
                   OR time_slots.recur_every > 0
                ORDER BY allocations.id ASC;
                """,
                (to_epoch_millis(year_start), to_epoch_millis(year_end)),
            )
            return [_row_to_allocation(row) for row in cursor.fetchall()]

    def insert_time_slot(self, request: TimeSlotRequest) -> int:
        recur_end = request.recur_end if request.recur_end is not None else request.start
        with self._cursor("time slot insert") as cursor:
            cursor.execute(
                """
                INSERT INTO time_slots (start, duration, recur_every, "end")
                VALUES (?, ?, ?, ?);
                """,
                (
                    to_epoch_millis(request.start),
                    request.duration // _ONE_MILLISECOND,
                    request.recur_interval // _ONE_MILLISECOND,
                    to_epoch_millis(recur_end),
                ),
            )
            return int(cursor.lastrowid)

    def insert_allocation(self, projector_id: int, time_slot_id: int, team_id: int) -> int:
        with self._cursor("allocation insert") as cursor:
            cursor.execute(
                """
                INSERT INTO allocations (projector_id, time_slot_id, team_id)
                VALUES (?, ?, ?);
                """,
                (projector_id, time_slot_id, team_id),
            )
            return int(cursor.lastrowid)

    def delete_allocation(self, allocation_id: int) -> None:
        with self._cursor("allocation delete") as cursor:
            cursor.execute("DELETE FROM allocations WHERE id = ?;", (allocation_id,))

    def delete_time_slot(self, time_slot_id: int) -> None:
        with self._cursor("time slot delete") as cursor:
            cursor.execute("DELETE FROM time_slots WHERE id = ?;", (time_slot_id,))

    def find_allocation(self, allocation_id: int) -> Optional[AllocatedTimeSlot]:
        with self._cursor("allocation lookup") as cursor:
            cursor.execute(
                f"""
                SELECT {_ALLOCATION_COLUMNS}
                FROM allocations
                INNER JOIN time_slots ON time_slots.id = allocations.time_slot_id
                WHERE allocations.id = ?;
                """,
                (allocation_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_allocation(row)

    def count_allocations(self) -> int:
        """Return persisted allocation count for diagnostics and tests."""
        with self._cursor("count") as cursor:
            cursor.execute("SELECT COUNT(*) AS count FROM allocations;")
            return int(cursor.fetchone()["count"])

    def count_time_slots(self) -> int:
        with self._cursor("count") as cursor:
            cursor.execute("SELECT COUNT(*) AS count FROM time_slots;")
            return int(cursor.fetchone()["count"])
