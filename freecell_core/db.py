from __future__ import annotations

import logging
import math
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _fallback_dirs(db_path: str) -> List[str]:
    """Requested directory first, then FREECELL_DB_DIR, ./data and /tmp."""
    dirs = [os.path.dirname(db_path), os.getenv('FREECELL_DB_DIR') or '',
            os.path.join(os.getcwd(), 'data'), '/tmp']
    return [d for i, d in enumerate(dirs) if i == 0 or d]


def _resolve_db_path(db_path: str) -> str:
    """Returns the first usable location for the stats DB, creating its directory."""
    name = os.path.basename(db_path) or 'freecell.db'
    for i, directory in enumerate(_fallback_dirs(db_path)):
        if not directory:
            return db_path  # bare file name in the working directory
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            logger.debug('cannot use %s for the stats DB: %s', directory, e)
            continue
        if i == 0:
            return db_path
        logger.warning('stats DB directory for %s unusable, falling back to %s', db_path, directory)
        return os.path.join(directory, name)
    return name


def _connect(db_path: str) -> sqlite3.Connection:
    resolved = _resolve_db_path(db_path)
    conn = sqlite3.connect(resolved)
    _ensure_db(conn)
    return conn


def _ensure_db(conn: sqlite3.Connection) -> None:
    """Ensures the game session table exists."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS game_sessions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            moves INTEGER NOT NULL,
            time_seconds INTEGER NOT NULL,
            won INTEGER NOT NULL,
            completed_at TEXT NOT NULL
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_user ON game_sessions (user_id, id)")
    conn.commit()


def _validate(moves: Any, time_seconds: Any, won: Any) -> None:
    for name, val in (('moves', moves), ('time_seconds', time_seconds)):
        if isinstance(val, bool) or not isinstance(val, int) or val < 0:
            raise ValueError(f'{name} must be a non-negative integer')
    if not isinstance(won, bool):
        raise ValueError('won must be a boolean')


def db_record_session(db_path: str, user_id: str, moves: int, time_seconds: int, won: bool) -> None:
    """Stores one finished or abandoned game."""
    _validate(moves, time_seconds, won)
    conn = _connect(db_path)
    try:
        conn.execute(
            "INSERT INTO game_sessions (user_id, moves, time_seconds, won, completed_at) VALUES (?, ?, ?, ?, ?)",
            (
                str(user_id),
                moves,
                time_seconds,
                1 if won else 0,
                datetime.now(timezone.utc).isoformat(timespec='seconds').replace('+00:00', 'Z'),
            ),
        )
        conn.commit()
    finally:
        conn.close()


def _round_half_up(x: float) -> int:
    """Rounds .5 away from zero for positive values, unlike round() which rounds to even."""
    return math.floor(x + 0.5)


def db_user_stats(db_path: str, user_id: str) -> Dict[str, Any]:
    """Aggregates a user's sessions into the dashboard figures."""
    conn = _connect(db_path)
    try:
        rows = conn.execute(
            "SELECT moves, time_seconds, won FROM game_sessions WHERE user_id = ? ORDER BY id",
            (str(user_id),),
        ).fetchall()
    finally:
        conn.close()

    played = len(rows)
    won = sum(1 for _, _, w in rows if w)
    total_moves = sum(m for m, _, _ in rows)
    win_times = [t for _, t, w in rows if w]
    best_time: Optional[int] = min(win_times) if win_times else None

    current = longest = 0
    for _, _, w in rows:
        if w:
            current += 1
            longest = max(longest, current)
        else:
            current = 0

    return {
        'gamesPlayed': played,
        'gamesWon': won,
        'winPercentage': _round_half_up(won / played * 100 * 10) / 10 if played else 0,
        'averageMoves': _round_half_up(total_moves / played) if played else 0,
        'bestTime': best_time,
        'currentStreak': current,
        'longestStreak': longest,
    }


def db_recent_sessions(db_path: str, user_id: str, limit: int = 5) -> List[Dict[str, Any]]:
    """Most recent sessions first."""
    limit = max(1, int(limit))
    conn = _connect(db_path)
    try:
        rows = conn.execute(
            "SELECT moves, time_seconds, won, completed_at FROM game_sessions WHERE user_id = ? ORDER BY id DESC LIMIT ?",
            (str(user_id), limit),
        ).fetchall()
    finally:
        conn.close()
    return [
        {'moves': m, 'timeSeconds': t, 'won': bool(w), 'completedAt': at}
        for (m, t, w, at) in rows
    ]
