"""SQLite-backed store for sectors and newsletters."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from tweetletter.models import CanonicalPost, FilterSpec, Newsletter, Sector

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sectors (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     INTEGER NOT NULL,
    name        TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    handles     TEXT NOT NULL DEFAULT '[]'
);
CREATE TABLE IF NOT EXISTS newsletters (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id            INTEGER NOT NULL,
    template_id        INTEGER,
    keywords           TEXT NOT NULL DEFAULT '[]',
    tweet_filters      TEXT NOT NULL DEFAULT '{}',
    narrative_settings TEXT NOT NULL DEFAULT '{}',
    tweet_content      TEXT NOT NULL DEFAULT '[]',
    status             TEXT NOT NULL DEFAULT 'draft',
    created_at         TEXT NOT NULL
);
"""


class DigestStore:
    """Sector and newsletter records keyed by owning user."""

    def __init__(self, db_path: Path) -> None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._init_db()

    # ── sectors ─────────────────────────────────────────────────────────

    def create_sector(self, sector: Sector) -> Sector:
        """Insert *sector* (its ``user_id`` must be set) and return the stored copy."""
        if sector.user_id is None:
            raise ValueError("Sector needs an owning user_id")
        con = self._connect()
        try:
            cur = con.execute(
                "INSERT INTO sectors (user_id, name, description, handles) VALUES (?, ?, ?, ?)",
                (sector.user_id, sector.name, sector.description, json.dumps(sector.handles)),
            )
            con.commit()
            sector_id = cur.lastrowid
        finally:
            con.close()
        logger.info("Created sector %d (%s) for user %d", sector_id, sector.name, sector.user_id)
        return sector.model_copy(update={"id": sector_id})

    def get_sector(self, sector_id: int, user_id: int | None = None) -> Sector | None:
        """Return the sector, or None when it is missing or owned by someone else."""
        con = self._connect()
        try:
            row = con.execute("SELECT * FROM sectors WHERE id = ?", (sector_id,)).fetchone()
        finally:
            con.close()
        if row is None:
            return None
        if user_id is not None and row["user_id"] != user_id:
            return None
        return self._sector_from_row(row)

    def list_sectors(self, user_id: int) -> list[Sector]:
        con = self._connect()
        try:
            rows = con.execute(
                "SELECT * FROM sectors WHERE user_id = ? ORDER BY id", (user_id,)
            ).fetchall()
        finally:
            con.close()
        return [self._sector_from_row(row) for row in rows]

    def delete_sector(self, sector_id: int, user_id: int) -> bool:
        """Delete a user's sector; return True if a row was removed."""
        con = self._connect()
        try:
            cur = con.execute(
                "DELETE FROM sectors WHERE id = ? AND user_id = ?", (sector_id, user_id)
            )
            con.commit()
            return cur.rowcount > 0
        finally:
            con.close()

    # ── newsletters ─────────────────────────────────────────────────────

    def create_newsletter(self, newsletter: Newsletter) -> Newsletter:
        created_at = newsletter.created_at or datetime.now(UTC)
        con = self._connect()
        try:
            cur = con.execute(
                """
                INSERT INTO newsletters
                    (user_id, template_id, keywords, tweet_filters, narrative_settings,
                     tweet_content, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    newsletter.user_id,
                    newsletter.template_id,
                    json.dumps(newsletter.keywords),
                    newsletter.tweet_filters.model_dump_json(by_alias=True),
                    newsletter.narrative_settings.model_dump_json(by_alias=True),
                    _posts_json(newsletter.tweet_content),
                    newsletter.status,
                    created_at.isoformat(),
                ),
            )
            con.commit()
            newsletter_id = cur.lastrowid
        finally:
            con.close()
        return newsletter.model_copy(update={"id": newsletter_id, "created_at": created_at})

    def get_newsletter(self, newsletter_id: int) -> Newsletter | None:
        con = self._connect()
        try:
            row = con.execute(
                "SELECT * FROM newsletters WHERE id = ?", (newsletter_id,)
            ).fetchone()
        finally:
            con.close()
        return self._newsletter_from_row(row) if row is not None else None

    def list_newsletters(self, user_id: int) -> list[Newsletter]:
        con = self._connect()
        try:
            rows = con.execute(
                "SELECT * FROM newsletters WHERE user_id = ? ORDER BY id", (user_id,)
            ).fetchall()
        finally:
            con.close()
        return [self._newsletter_from_row(row) for row in rows]

    def update_newsletter(
        self,
        newsletter_id: int,
        *,
        tweet_content: list[CanonicalPost] | None = None,
        tweet_filters: FilterSpec | None = None,
    ) -> Newsletter:
        """Overwrite the newsletter's post collection and/or filters."""
        assignments: list[str] = []
        values: list[Any] = []
        if tweet_content is not None:
            assignments.append("tweet_content = ?")
            values.append(_posts_json(tweet_content))
        if tweet_filters is not None:
            assignments.append("tweet_filters = ?")
            values.append(tweet_filters.model_dump_json(by_alias=True))

        con = self._connect()
        try:
            if assignments:
                cur = con.execute(
                    f"UPDATE newsletters SET {', '.join(assignments)} WHERE id = ?",
                    (*values, newsletter_id),
                )
                con.commit()
                if cur.rowcount == 0:
                    raise KeyError(f"Newsletter {newsletter_id} not found")
            row = con.execute(
                "SELECT * FROM newsletters WHERE id = ?", (newsletter_id,)
            ).fetchone()
        finally:
            con.close()
        if row is None:
            raise KeyError(f"Newsletter {newsletter_id} not found")
        return self._newsletter_from_row(row)

    # ── private ─────────────────────────────────────────────────────────

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(str(self._db_path))
        con.row_factory = sqlite3.Row
        return con

    def _init_db(self) -> None:
        con = self._connect()
        con.executescript(_SCHEMA)
        con.close()

    @staticmethod
    def _sector_from_row(row: sqlite3.Row) -> Sector:
        return Sector(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            description=row["description"],
            handles=json.loads(row["handles"]),
        )

    @staticmethod
    def _newsletter_from_row(row: sqlite3.Row) -> Newsletter:
        # Older rows may hold the legacy filter shape; FilterSpec migrates it.
        return Newsletter(
            id=row["id"],
            user_id=row["user_id"],
            template_id=row["template_id"],
            keywords=json.loads(row["keywords"]),
            tweet_filters=FilterSpec.model_validate(json.loads(row["tweet_filters"])),
            narrative_settings=json.loads(row["narrative_settings"]),
            tweet_content=json.loads(row["tweet_content"]),
            status=row["status"],
            created_at=row["created_at"],
        )


def _posts_json(posts: list[CanonicalPost]) -> str:
    return json.dumps([p.model_dump(mode="json") for p in posts])
