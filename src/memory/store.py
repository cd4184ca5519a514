"""Persistent storage for learned user facts (sqlite, soft delete)."""

import sqlite3
from datetime import datetime
from pathlib import Path

import structlog

from db import transaction
from habits.models import UserFact

logger = structlog.get_logger()


class FactStore:
    """User-scoped fact records. Deleted facts are kept with `is_deleted` set."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with transaction(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_facts (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    text TEXT NOT NULL,
                    category TEXT,
                    extracted_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP,
                    is_deleted INTEGER NOT NULL DEFAULT 0,
                    deleted_at TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_user_facts_active
                ON user_facts(user_id, is_deleted)
            """)

    def add(self, fact: UserFact) -> UserFact:
        self.add_many([fact])
        return fact

    def add_many(self, facts: list[UserFact]) -> int:
        """Insert facts in one transaction. Returns number inserted."""
        if not facts:
            return 0
        with transaction(self.db_path) as conn:
            conn.executemany(
                """INSERT INTO user_facts
                   (id, user_id, text, category, extracted_at, updated_at, is_deleted, deleted_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        f.id,
                        f.user_id,
                        f.text,
                        f.category,
                        f.extracted_at.isoformat(),
                        f.updated_at.isoformat() if f.updated_at else None,
                        int(f.is_deleted),
                        f.deleted_at.isoformat() if f.deleted_at else None,
                    )
                    for f in facts
                ],
            )
        logger.info("fact_store.added", count=len(facts))
        return len(facts)

    def find_active(self, user_id: str) -> list[UserFact]:
        """Non-deleted facts for a user, oldest first."""
        with transaction(self.db_path) as conn:
            rows = conn.execute(
                """SELECT * FROM user_facts
                   WHERE user_id = ? AND is_deleted = 0
                   ORDER BY extracted_at""",
                (user_id,),
            ).fetchall()
            return [self._row_to_fact(r) for r in rows]

    def get(self, user_id: str, fact_id: str) -> UserFact | None:
        """Get a non-deleted fact owned by the user."""
        with transaction(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM user_facts WHERE id = ? AND user_id = ? AND is_deleted = 0",
                (fact_id, user_id),
            ).fetchone()
            return self._row_to_fact(row) if row else None

    def update(self, fact: UserFact) -> None:
        with transaction(self.db_path) as conn:
            conn.execute(
                "UPDATE user_facts SET text = ?, category = ?, updated_at = ? WHERE id = ?",
                (
                    fact.text,
                    fact.category,
                    fact.updated_at.isoformat() if fact.updated_at else None,
                    fact.id,
                ),
            )

    def soft_delete(self, user_id: str, fact_id: str) -> bool:
        """Mark a fact deleted. Returns False when the user has no such fact."""
        fact = self.get(user_id, fact_id)
        if not fact:
            return False
        fact.soft_delete()
        with transaction(self.db_path) as conn:
            conn.execute(
                "UPDATE user_facts SET is_deleted = 1, deleted_at = ? WHERE id = ?",
                (fact.deleted_at.isoformat(), fact.id),
            )
        return True

    def get_stats(self, user_id: str) -> dict:
        """Active fact counts by category."""
        with transaction(self.db_path) as conn:
            rows = conn.execute(
                """SELECT COALESCE(category, 'uncategorized') AS category, COUNT(*) AS cnt
                   FROM user_facts WHERE user_id = ? AND is_deleted = 0
                   GROUP BY category""",
                (user_id,),
            ).fetchall()
        by_category = {r["category"]: r["cnt"] for r in rows}
        return {"total_active": sum(by_category.values()), "by_category": by_category}

    @staticmethod
    def _row_to_fact(row: sqlite3.Row) -> UserFact:
        d = dict(row)
        return UserFact(
            id=d["id"],
            user_id=d["user_id"],
            text=d["text"],
            category=d["category"],
            extracted_at=datetime.fromisoformat(d["extracted_at"]),
            updated_at=datetime.fromisoformat(d["updated_at"]) if d["updated_at"] else None,
            is_deleted=bool(d["is_deleted"]),
            deleted_at=datetime.fromisoformat(d["deleted_at"]) if d["deleted_at"] else None,
        )
