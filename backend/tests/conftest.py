import pytest

from backend import db


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Point the script/run store at a throwaway sqlite file for every test."""
    path = tmp_path / "brainfuck_test.db"
    monkeypatch.setenv("BRAINFUCK_DB_PATH", str(path))
    db.init_db()
    yield path
