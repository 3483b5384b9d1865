"""sqlite persistence for saved Brainfuck scripts and their run history."""

import os
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_DB_PATH = Path(__file__).parent / 'brainfuck.db'


def db_path() -> Path:
    """Database file location; `BRAINFUCK_DB_PATH` overrides the default.

    Read on every call so tests can point the store at a temporary file.
    """
    return Path(os.environ.get('BRAINFUCK_DB_PATH') or DEFAULT_DB_PATH)


def get_conn():
    """Return a new sqlite3 connection whose rows behave like dicts.

    Each call opens its own connection; callers close it.
    """
    conn = sqlite3.connect(str(db_path()))
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Create the database file and tables if they do not exist yet."""
    db_path().parent.mkdir(parents=True, exist_ok=True)
    conn = get_conn()
    cur = conn.cursor()
    cur.execute('''
    CREATE TABLE IF NOT EXISTS Scripts (
      script_id INTEGER PRIMARY KEY,
      title TEXT NOT NULL,
      code_text TEXT NOT NULL,
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''')
    cur.execute('''
    CREATE TABLE IF NOT EXISTS Runs (
      run_id INTEGER PRIMARY KEY,
      script_id INTEGER NULL,
      steps INTEGER,
      output_bytes INTEGER,
      duration_ms INTEGER,
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''')
    conn.commit()
    conn.close()


def save_script(title: str, code_text: str) -> int:
    """Persist a script and return its new script_id."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        'INSERT INTO Scripts (title, code_text) VALUES (?, ?)',
        (title, code_text),
    )
    script_id = cur.lastrowid
    conn.commit()
    conn.close()
    return script_id


def list_scripts() -> List[Dict[str, Any]]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        'SELECT script_id, title, created_at FROM Scripts '
        'ORDER BY created_at DESC, script_id DESC'
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_script(script_id: int) -> Optional[Dict[str, Any]]:
    """Fetch a single script by id, or None if there is no such script."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        'SELECT script_id, title, code_text, created_at FROM Scripts '
        'WHERE script_id = ?',
        (script_id,),
    )
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def save_run(
    script_id: Optional[int],
    steps: int,
    output_bytes: int,
    duration_ms: int,
) -> int:
    """Record a completed run and return its run_id."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        'INSERT INTO Runs (script_id, steps, output_bytes, duration_ms) '
        'VALUES (?, ?, ?, ?)',
        (script_id, steps, output_bytes, duration_ms),
    )
    run_id = cur.lastrowid
    conn.commit()
    conn.close()
    return run_id


def list_runs(script_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """List recorded runs, newest first, optionally only for one script."""
    conn = get_conn()
    cur = conn.cursor()
    query = 'SELECT run_id, script_id, steps, output_bytes, duration_ms, created_at FROM Runs'
    params: tuple = ()
    if script_id:
        query += ' WHERE script_id = ?'
        params = (script_id,)
    cur.execute(query + ' ORDER BY created_at DESC, run_id DESC', params)
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]
