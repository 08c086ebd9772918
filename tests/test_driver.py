import sqlite3

import pytest

from execscript.config import ScriptConfig
from execscript.driver import ConnectError, ExecutionError, mysql_dsn, resolve
from execscript.runner import ExitCode, ScriptRunner


def test_mysql_dsn_from_url():
    assert mysql_dsn("mysql://db.local:3307/app?charset=utf8mb4") == {
        "host": "db.local",
        "port": 3307,
        "database": "app",
        "charset": "utf8mb4",
    }


def test_mysql_dsn_without_scheme_uses_defaults():
    assert mysql_dsn("db.local") == {"host": "db.local", "port": 3306}


def test_resolve_sqlite_aliases():
    for alias in ("sqlite", "SQLite3"):
        db = resolve(alias)
        assert db.module is sqlite3
        assert db.error is sqlite3.Error


def test_resolve_unknown_driver():
    with pytest.raises(ConnectError, match="not found"):
        resolve("definitely_not_a_driver")


def test_resolve_module_without_connect():
    with pytest.raises(ConnectError, match="no connect"):
        resolve("textwrap")


def test_resolve_empty_driver():
    with pytest.raises(ConnectError):
        resolve("")


def test_sqlite_open_failure_is_connect_error(tmp_path):
    db = resolve("sqlite")
    with pytest.raises(ConnectError):
        db.open(str(tmp_path / "missing" / "x.db"), "", "")


def test_execution_error_keeps_statement_and_chain():
    try:
        try:
            raise KeyError("inner")
        except KeyError:
            raise sqlite3.OperationalError("outer")
    except sqlite3.OperationalError as err:
        exc = ExecutionError(err, "SELECT 1 ")

    assert str(exc) == "outer"
    assert exc.statement == "SELECT 1 "
    assert isinstance(exc.next_error, KeyError)


def test_sqlite_end_to_end(tmp_path, capsys):
    path = tmp_path / "app.db"
    cfg = ScriptConfig(
        None,
        {"driver": "sqlite", "conn": str(path), "user": "", "password": "", "separator": ";"},
    )
    script = [
        "-- schema",
        "CREATE TABLE person (",
        "  id INTEGER PRIMARY KEY,",
        "  name TEXT NOT NULL",
        ");",
        "INSERT INTO person (name) VALUES ('ada');",
        "INSERT INTO person (name) VALUES (NULL);",
        "INSERT INTO person (name) VALUES ('grace');",
    ]

    assert ScriptRunner(cfg).run(script) is ExitCode.EXECUTION
    assert "NOT NULL constraint failed" in capsys.readouterr().err

    # statements before the failure were committed, the rest never ran
    with sqlite3.connect(path) as conn:
        assert conn.execute("SELECT name FROM person").fetchall() == [("ada",)]


def test_resolve_mysql_uses_buffered_cursors():
    import mysql.connector

    db = resolve("mariadb")
    assert db.module is mysql.connector
    assert db.cursor_options == {"buffered": True}
    assert db.error is mysql.connector.Error


def test_mysql_dsn_rejects_bad_port():
    with pytest.raises(ConnectError, match="Invalid connection string"):
        mysql_dsn("mysql://h:abc/db")
