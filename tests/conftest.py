import types

import pytest

from execscript.config import ScriptConfig
from execscript.driver import Database


class FakeError(Exception):
    pass


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.closed = 0

    def execute(self, sql):
        if sql in self.conn.failing:
            raise self.conn.failing[sql]
        self.conn.executed.append(sql)

    def close(self):
        self.closed += 1
        if self.conn.fail_cursor_close:
            raise FakeError("cursor close failed")


class FakeConnection:
    def __init__(self, failing=None, fail_close=False, fail_cursor_close=False, fail_cursor=False):
        self.failing = failing or {}
        self.fail_close = fail_close
        self.fail_cursor_close = fail_cursor_close
        self.fail_cursor = fail_cursor
        self.executed = []
        self.cursors = []
        self.closed = 0

    def cursor(self, **kwargs):
        if self.fail_cursor:
            raise FakeError("out of cursors")
        cur = FakeCursor(self)
        self.cursors.append(cur)
        return cur

    def close(self):
        self.closed += 1
        if self.fail_close:
            raise FakeError("connection close failed")


@pytest.fixture
def config():
    return ScriptConfig(
        "test",
        {"driver": "fake", "conn": "fake://db", "user": "u", "password": "p", "separator": ";"},
    )


@pytest.fixture
def make_database():
    """Build a Database around a fake DB‑API module; ``opened`` records connections."""

    def factory(conn=None, refuse=False):
        opened = []

        def connect(_module, conn_str, user, password):
            if refuse:
                raise FakeError("access denied")
            opened.append((conn_str, user, password))
            return conn

        module = types.SimpleNamespace(Error=FakeError, connect=None)
        db = Database("fake", module, connect)
        db.opened = opened
        return db

    return factory
