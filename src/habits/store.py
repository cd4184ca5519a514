"""SQLite persistence for users, habits, logs and tags."""

import json
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path

import structlog

from db import transaction

from .models import FrequencyUnit, Habit, HabitLog, Tag, User, Weekday
from .writes import HabitCompleted, NewHabit, NewHabitTag, NewLog, PendingWrite

logger = structlog.get_logger()

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT,
        name TEXT,
        timezone TEXT,
        created_at TIMESTAMP NOT NULL
    );
    CREATE TABLE IF NOT EXISTS habits (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        parent_id TEXT REFERENCES habits(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        description TEXT,
        frequency_unit TEXT,
        frequency_quantity INTEGER,
        days TEXT NOT NULL DEFAULT '[]',
        is_bad_habit INTEGER NOT NULL DEFAULT 0,
        due_date TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        is_completed INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMP NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_habits_user ON habits(user_id, is_active);
    CREATE INDEX IF NOT EXISTS idx_habits_parent ON habits(parent_id);
    CREATE TABLE IF NOT EXISTS habit_logs (
        id TEXT PRIMARY KEY,
        habit_id TEXT NOT NULL REFERENCES habits(id) ON DELETE CASCADE,
        date TEXT NOT NULL,
        note TEXT,
        created_at TIMESTAMP NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_logs_habit ON habit_logs(habit_id, date);
    CREATE TABLE IF NOT EXISTS tags (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        color TEXT NOT NULL,
        created_at TIMESTAMP NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_tags_user ON tags(user_id);
    CREATE TABLE IF NOT EXISTS habit_tags (
        habit_id TEXT NOT NULL REFERENCES habits(id) ON DELETE CASCADE,
        tag_id TEXT NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
        PRIMARY KEY (habit_id, tag_id)
    );
"""


class HabitStore:
    """Reads habits/tags/users and applies batches of pending writes."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with transaction(self.db_path) as conn:
            conn.executescript(_SCHEMA)

    # --- Users ---

    def ensure_user(self, user_id: str, email: str | None = None, name: str | None = None) -> User:
        """Upsert a user row. Returns the stored user."""
        with transaction(self.db_path) as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            if row is None:
                conn.execute(
                    "INSERT INTO users (id, email, name, created_at) VALUES (?, ?, ?, ?)",
                    (user_id, email, name, datetime.now(timezone.utc).isoformat()),
                )
                logger.info("habit_store.user_created", user_id=user_id)
            elif email or name:
                conn.execute(
                    "UPDATE users SET email = COALESCE(?, email), name = COALESCE(?, name) WHERE id = ?",
                    (email, name, user_id),
                )
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return self._row_to_user(row)

    def get_user(self, user_id: str) -> User | None:
        with transaction(self.db_path) as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return self._row_to_user(row) if row else None

    def set_timezone(self, user_id: str, timezone_name: str) -> None:
        with transaction(self.db_path) as conn:
            conn.execute("UPDATE users SET timezone = ? WHERE id = ?", (timezone_name, user_id))

    # --- Habits ---

    def find_active_habits(self, user_id: str) -> list[Habit]:
        """Top-level active habits for a user, each with its active children attached."""
        with transaction(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM habits WHERE user_id = ? AND is_active = 1 ORDER BY created_at",
                (user_id,),
            ).fetchall()
            habits = [self._row_to_habit(r) for r in rows]
            self._attach_tag_ids(conn, habits)

        by_id = {h.id: h for h in habits}
        top_level = []
        for habit in habits:
            parent = by_id.get(habit.parent_id) if habit.parent_id else None
            if parent:
                parent.children.append(habit)
            elif not habit.parent_id:
                top_level.append(habit)
        return top_level

    def find_habits(self, user_id: str) -> list[Habit]:
        """All habits of a user, active or not, flat."""
        with transaction(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM habits WHERE user_id = ? ORDER BY created_at", (user_id,)
            ).fetchall()
            return [self._row_to_habit(r) for r in rows]

    def get_habit(self, habit_id: str) -> Habit | None:
        """Load one habit with its logged dates and tag ids."""
        with transaction(self.db_path) as conn:
            row = conn.execute("SELECT * FROM habits WHERE id = ?", (habit_id,)).fetchone()
            if not row:
                return None
            habit = self._row_to_habit(row)
            logged = conn.execute(
                "SELECT date FROM habit_logs WHERE habit_id = ?", (habit_id,)
            ).fetchall()
            habit.logged_dates = {date.fromisoformat(r["date"]) for r in logged}
            self._attach_tag_ids(conn, [habit])
            return habit

    def delete_habit(self, habit_id: str) -> None:
        """Soft delete: deactivate the habit and its sub-habits."""
        with transaction(self.db_path) as conn:
            conn.execute(
                "UPDATE habits SET is_active = 0 WHERE id = ? OR parent_id = ?",
                (habit_id, habit_id),
            )

    def find_logs(self, user_id: str, since: datetime) -> list[HabitLog]:
        """Logs of a user's habits created at or after `since` (UTC)."""
        with transaction(self.db_path) as conn:
            rows = conn.execute(
                """SELECT l.* FROM habit_logs l
                   JOIN habits h ON h.id = l.habit_id
                   WHERE h.user_id = ? AND l.created_at >= ?
                   ORDER BY l.created_at""",
                (user_id, since.astimezone(timezone.utc).isoformat()),
            ).fetchall()
            return [self._row_to_log(r) for r in rows]

    def get_logs(self, habit_id: str) -> list[HabitLog]:
        with transaction(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM habit_logs WHERE habit_id = ? ORDER BY date DESC, created_at DESC",
                (habit_id,),
            ).fetchall()
            return [self._row_to_log(r) for r in rows]

    # --- Tags ---

    def find_tags(self, user_id: str) -> list[Tag]:
        with transaction(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM tags WHERE user_id = ? ORDER BY name", (user_id,)
            ).fetchall()
            return [self._row_to_tag(r) for r in rows]

    def get_tags(self, tag_ids: list[str]) -> list[Tag]:
        if not tag_ids:
            return []
        placeholders = ",".join("?" for _ in tag_ids)
        with transaction(self.db_path) as conn:
            rows = conn.execute(
                f"SELECT * FROM tags WHERE id IN ({placeholders})", list(tag_ids)
            ).fetchall()
            return [self._row_to_tag(r) for r in rows]

    def create_tag(self, tag: Tag) -> Tag:
        with transaction(self.db_path) as conn:
            conn.execute(
                "INSERT INTO tags (id, user_id, name, color, created_at) VALUES (?, ?, ?, ?, ?)",
                (tag.id, tag.user_id, tag.name, tag.color, tag.created_at.isoformat()),
            )
        return tag

    def delete_tag(self, user_id: str, tag_id: str) -> bool:
        with transaction(self.db_path) as conn:
            cur = conn.execute("DELETE FROM tags WHERE id = ? AND user_id = ?", (tag_id, user_id))
            return cur.rowcount > 0

    def unassign_tag(self, habit_id: str, tag_id: str) -> bool:
        with transaction(self.db_path) as conn:
            cur = conn.execute(
                "DELETE FROM habit_tags WHERE habit_id = ? AND tag_id = ?", (habit_id, tag_id)
            )
            return cur.rowcount > 0

    # --- Batch commit ---

    def commit(self, writes: list[PendingWrite]) -> int:
        """Apply all pending writes in a single transaction. Returns rows written."""
        if not writes:
            return 0
        written = 0
        with transaction(self.db_path) as conn:
            for write in writes:
                if isinstance(write, NewHabit):
                    self._insert_habit(conn, write.habit)
                elif isinstance(write, NewLog):
                    self._insert_log(conn, write.log)
                elif isinstance(write, NewHabitTag):
                    conn.execute(
                        "INSERT OR IGNORE INTO habit_tags (habit_id, tag_id) VALUES (?, ?)",
                        (write.habit_id, write.tag_id),
                    )
                elif isinstance(write, HabitCompleted):
                    conn.execute("UPDATE habits SET is_completed = 1 WHERE id = ?", (write.habit_id,))
                else:
                    raise TypeError(f"Unsupported pending write: {write!r}")
                written += 1
        logger.info("habit_store.committed", writes=written)
        return written

    @staticmethod
    def _insert_habit(conn: sqlite3.Connection, habit: Habit) -> None:
        conn.execute(
            """INSERT INTO habits
               (id, user_id, parent_id, title, description, frequency_unit, frequency_quantity,
                days, is_bad_habit, due_date, is_active, is_completed, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                habit.id,
                habit.user_id,
                habit.parent_id,
                habit.title,
                habit.description,
                habit.frequency_unit.value if habit.frequency_unit else None,
                habit.frequency_quantity,
                json.dumps([d.value for d in habit.days]),
                int(habit.is_bad_habit),
                habit.due_date.isoformat(),
                int(habit.is_active),
                int(habit.is_completed),
                habit.created_at.isoformat(),
            ),
        )

    @staticmethod
    def _insert_log(conn: sqlite3.Connection, log: HabitLog) -> None:
        conn.execute(
            "INSERT INTO habit_logs (id, habit_id, date, note, created_at) VALUES (?, ?, ?, ?, ?)",
            (log.id, log.habit_id, log.date.isoformat(), log.note, log.created_at.isoformat()),
        )

    @staticmethod
    def _attach_tag_ids(conn: sqlite3.Connection, habits: list[Habit]) -> None:
        if not habits:
            return
        by_id = {h.id: h for h in habits}
        placeholders = ",".join("?" for _ in by_id)
        rows = conn.execute(
            f"SELECT habit_id, tag_id FROM habit_tags WHERE habit_id IN ({placeholders})",
            list(by_id),
        ).fetchall()
        for row in rows:
            by_id[row["habit_id"]].tag_ids.add(row["tag_id"])

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            timezone=row["timezone"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_habit(row: sqlite3.Row) -> Habit:
        unit = row["frequency_unit"]
        return Habit(
            id=row["id"],
            user_id=row["user_id"],
            parent_id=row["parent_id"],
            title=row["title"],
            description=row["description"],
            frequency_unit=FrequencyUnit(unit) if unit else None,
            frequency_quantity=row["frequency_quantity"],
            days=[Weekday(d) for d in json.loads(row["days"] or "[]")],
            is_bad_habit=bool(row["is_bad_habit"]),
            due_date=date.fromisoformat(row["due_date"]),
            is_active=bool(row["is_active"]),
            is_completed=bool(row["is_completed"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_log(row: sqlite3.Row) -> HabitLog:
        return HabitLog(
            id=row["id"],
            habit_id=row["habit_id"],
            date=date.fromisoformat(row["date"]),
            note=row["note"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_tag(row: sqlite3.Row) -> Tag:
        return Tag(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            color=row["color"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
