"""SQLite result store for cached analyses and per-job match results."""

import json
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path

from workability.core.schemas import AnalysisResult, CandidateMatch, MatchResult

_ANALYSES_TABLE = """
CREATE TABLE IF NOT EXISTS analyses (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    username        TEXT    NOT NULL,
    signals_json    TEXT    NOT NULL,
    profile_json    TEXT    NOT NULL,
    is_mock         INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL
);
"""

_ANALYSES_INDEX = """
CREATE INDEX IF NOT EXISTS idx_analyses_username_created
    ON analyses (username, created_at);
"""

_JOB_RESULTS_TABLE = """
CREATE TABLE IF NOT EXISTS job_results (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id          TEXT    NOT NULL,
    username        TEXT    NOT NULL,
    score           REAL    NOT NULL,
    fit             TEXT    NOT NULL,
    match_json      TEXT    NOT NULL,
    analysis_json   TEXT,
    created_at      TEXT    NOT NULL,
    UNIQUE(job_id, username)
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_ANALYSES_TABLE)
    conn.execute(_ANALYSES_INDEX)
    conn.execute(_JOB_RESULTS_TABLE)
    conn.commit()
    return conn


def _utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def save_analysis(conn: sqlite3.Connection, analysis: AnalysisResult) -> int:
    """Store a freshly computed analysis. Returns the row ID."""
    cursor = conn.execute(
        """
        INSERT INTO analyses (username, signals_json, profile_json, is_mock, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            analysis.username,
            analysis.signals.model_dump_json(),
            analysis.profile.model_dump_json(),
            int(analysis.is_mock),
            _utc_iso(analysis.created_at),
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def find_recent_analysis(
    conn: sqlite3.Connection,
    username: str,
    max_age: timedelta,
    now: datetime | None = None,
) -> AnalysisResult | None:
    """Return the newest analysis for ``username`` younger than ``max_age``."""
    now = now or datetime.now(timezone.utc)
    cutoff = _utc_iso(now - max_age)
    row = conn.execute(
        """
        SELECT username, signals_json, profile_json, is_mock, created_at
        FROM analyses
        WHERE username = ? AND created_at >= ?
        ORDER BY created_at DESC
        LIMIT 1
        """,
        (username, cutoff),
    ).fetchone()
    if row is None:
        return None
    return AnalysisResult.model_validate({
        "username": row["username"],
        "cached": True,
        "signals": json.loads(row["signals_json"]),
        "profile": json.loads(row["profile_json"]),
        "is_mock": bool(row["is_mock"]),
        "created_at": row["created_at"],
    })


def save_match(
    conn: sqlite3.Connection,
    job_id: str,
    candidate: CandidateMatch,
    now: datetime | None = None,
) -> None:
    """Insert or replace the match result for (job_id, username)."""
    conn.execute(
        """
        INSERT INTO job_results
            (job_id, username, score, fit, match_json, analysis_json, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(job_id, username)
        DO UPDATE SET
            score = excluded.score,
            fit = excluded.fit,
            match_json = excluded.match_json,
            analysis_json = excluded.analysis_json,
            created_at = excluded.created_at
        """,
        (
            job_id,
            candidate.username,
            candidate.match.score,
            candidate.match.fit,
            candidate.match.model_dump_json(),
            candidate.analysis.model_dump_json() if candidate.analysis else None,
            _utc_iso(now or datetime.now(timezone.utc)),
        ),
    )
    conn.commit()


def get_job_matches(conn: sqlite3.Connection, job_id: str) -> list[CandidateMatch]:
    """Return stored matches for a job, best score first."""
    rows = conn.execute(
        """
        SELECT username, match_json, analysis_json
        FROM job_results
        WHERE job_id = ?
        ORDER BY score DESC, username ASC
        """,
        (job_id,),
    ).fetchall()
    return [
        CandidateMatch(
            username=row["username"],
            match=MatchResult.model_validate_json(row["match_json"]),
            analysis=(
                AnalysisResult.model_validate_json(row["analysis_json"])
                if row["analysis_json"]
                else None
            ),
        )
        for row in rows
    ]


class ResultStore:
    """Store contract used by the orchestrator: find_recent / save.

    Usage::

        store = ResultStore(init_db("data/workability.db"))
        cached = store.find_recent("octocat", timedelta(hours=6))
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def find_recent(self, username: str, max_age: timedelta) -> AnalysisResult | None:
        return find_recent_analysis(self._conn, username, max_age)

    def save(self, analysis: AnalysisResult) -> None:
        save_analysis(self._conn, analysis)

    def save_match(self, job_id: str, candidate: CandidateMatch) -> None:
        save_match(self._conn, job_id, candidate)

    def job_matches(self, job_id: str) -> list[CandidateMatch]:
        return get_job_matches(self._conn, job_id)

    def close(self) -> None:
        self._conn.close()
