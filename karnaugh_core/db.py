from __future__ import annotations

import json
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List

from .errors import NotFoundError
from .records import from_record, to_record
from .state import GameModel


def _ensure_db_dir(db_path: str) -> None:
    """Ensures the directory for the SQLite DB exists before connecting."""
    directory = os.path.dirname(db_path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def _resolve_db_path(db_path: str) -> str:
    """Resolves a potentially unwritable DB path to a writable one, creating the directory if needed."""
    try:
        _ensure_db_dir(db_path)
        return db_path
    except PermissionError:
        pass
    candidates = [
        os.getenv('KMAP_DB_DIR'),
        os.path.join(os.getcwd(), 'data'),
        '/tmp',
    ]
    base = os.path.basename(db_path) or 'kmap_games.db'
    for d in candidates:
        if not d:
            continue
        try:
            os.makedirs(d, exist_ok=True)
            return os.path.join(d, base)
        except OSError:
            continue
    return base


def _ensure_db(conn: sqlite3.Connection) -> None:
    """Ensures the games table exists."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS games (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            game_type TEXT NOT NULL DEFAULT 'local',
            num_vars INTEGER NOT NULL,
            player1 TEXT,
            player2 TEXT,
            phase TEXT NOT NULL DEFAULT 'Place',
            current_turn INTEGER NOT NULL,
            move_counter INTEGER NOT NULL,
            board TEXT NOT NULL,
            scoring_groups TEXT,
            updated_at TEXT NOT NULL
        )
        """
    )
    conn.commit()


def _connect(db_path: str) -> sqlite3.Connection:
    resolved = _resolve_db_path(db_path)
    _ensure_db_dir(resolved)
    conn = sqlite3.connect(resolved)
    conn.row_factory = sqlite3.Row
    _ensure_db(conn)
    return conn


def _row_to_record(row: sqlite3.Row) -> Dict[str, Any]:
    rec = dict(row)
    rec["board"] = json.loads(rec["board"])
    rec["scoring_groups"] = json.loads(rec["scoring_groups"]) if rec["scoring_groups"] else None
    rec.pop("updated_at", None)
    return rec


def db_get_game(db_path: str, game_id: int) -> GameModel:
    """Loads one game. Raises NotFoundError for an unknown id."""
    conn = _connect(db_path)
    try:
        row = conn.execute("SELECT * FROM games WHERE id = ?", (int(game_id),)).fetchone()
        if row is None:
            raise NotFoundError("game not found", game_id=game_id)
        return from_record(_row_to_record(row))
    finally:
        conn.close()


def db_list_games(db_path: str) -> List[GameModel]:
    conn = _connect(db_path)
    try:
        rows = conn.execute("SELECT * FROM games ORDER BY id").fetchall()
        return [from_record(_row_to_record(r)) for r in rows]
    finally:
        conn.close()


def db_save_game(db_path: str, game: GameModel) -> GameModel:
    """Inserts or replaces a game. A game without an id gets one assigned; the saved model is returned."""
    rec = to_record(game)
    values = (
        rec["game_type"],
        rec["num_vars"],
        rec["player1"],
        rec["player2"],
        rec["phase"],
        rec["current_turn"],
        rec["move_counter"],
        json.dumps(rec["board"]),
        json.dumps(rec["scoring_groups"]),
        datetime.now(timezone.utc).isoformat(timespec='seconds'),
    )
    conn = _connect(db_path)
    try:
        if game.id is None:
            cur = conn.execute(
                """
                INSERT INTO games
                (game_type, num_vars, player1, player2, phase, current_turn, move_counter,
                 board, scoring_groups, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                values,
            )
            conn.commit()
            return game.with_id(int(cur.lastrowid))
        conn.execute(
            """
            INSERT OR REPLACE INTO games
            (id, game_type, num_vars, player1, player2, phase, current_turn, move_counter,
             board, scoring_groups, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (int(game.id),) + values,
        )
        conn.commit()
        return game
    finally:
        conn.close()


def db_delete_game(db_path: str, game_id: int) -> None:
    """Deletes a game. Raises NotFoundError if nothing was deleted."""
    conn = _connect(db_path)
    try:
        cur = conn.execute("DELETE FROM games WHERE id = ?", (int(game_id),))
        conn.commit()
        if cur.rowcount == 0:
            raise NotFoundError("game not found", game_id=game_id)
    finally:
        conn.close()
