"""
Driver registry – resolves the configured driver id to a DB‑API 2.0 module
and knows how to open a connection with it.
"""
from __future__ import annotations
import importlib
import types
import typing as t
import urllib.parse


class ConnectError(RuntimeError):
    """The driver could not be loaded or the database refused the connection."""


class ExecutionError(RuntimeError):
    """
    A statement was rejected by the database.

    ``next_error`` is the error the driver chained to the primary one, if
    any; it is reported alongside the primary message.
    """

    def __init__(self, error: BaseException, statement: str) -> None:
        super().__init__(str(error))
        self.statement: str = statement
        self.next_error: BaseException | None = error.__cause__ or error.__context__


class _NoDriverError(Exception):
    """Stand‑in for a missing PEP 249 ``Error``; never raised."""


Connector = t.Callable[[types.ModuleType, str, str, str], t.Any]


class Database:
    """
    One resolved driver.  ``open`` hands back a plain DB‑API connection; the
    caller owns it and must close it.
    """

    def __init__(
        self,
        name: str,
        module: types.ModuleType,
        connect: Connector,
        cursor_options: dict[str, t.Any] | None = None,
    ) -> None:
        self.name = name
        self.module = module
        self._connect = connect
        self.cursor_options: dict[str, t.Any] = cursor_options or {}

    @property
    def error(self) -> type[BaseException]:
        """Base class of every error the driver raises (PEP 249 ``Error``)."""
        return getattr(self.module, "Error", _NoDriverError)

    def open(self, conn: str, user: str, password: str):
        try:
            return self._connect(self.module, conn, user, password)
        except self.error as err:
            raise ConnectError(f"Cannot connect with {self.name!r}: {err}") from err


# --------------------------------------------------------------------- #
# Connectors
# --------------------------------------------------------------------- #
def mysql_dsn(conn: str) -> dict[str, t.Any]:
    """
    Translate ``mysql://host[:port][/database][?opt=val]`` into kwargs that
    mysql‑connector understands.  The scheme is optional.
    """
    if "://" not in conn:
        conn = "//" + conn
    try:
        parts = urllib.parse.urlsplit(conn)
        port = parts.port
    except ValueError as exc:
        raise ConnectError(f"Invalid connection string {conn!r}: {exc}") from exc

    dsn: dict[str, t.Any] = {"host": parts.hostname or "127.0.0.1", "port": port or 3306}
    database = parts.path.lstrip("/")
    if database:
        dsn["database"] = database
    dsn.update(urllib.parse.parse_qsl(parts.query))
    return dsn


def _connect_mysql(module, conn, user, password):
    return module.connect(**mysql_dsn(conn), user=user, password=password, autocommit=True)


def _connect_sqlite(module, conn, _user, _password):
    # isolation_level=None: no implicit transactions, every statement commits
    return module.connect(conn, isolation_level=None)


def _connect_generic(module, conn, user, password):
    return module.connect(conn, user=user, password=password)


# alias -> (module, connector, cursor kwargs)
_BUILTIN: dict[str, tuple[str, Connector, dict[str, t.Any]]] = {
    "mysql": ("mysql.connector", _connect_mysql, {"buffered": True}),
    "mariadb": ("mysql.connector", _connect_mysql, {"buffered": True}),
    "mysql.connector": ("mysql.connector", _connect_mysql, {"buffered": True}),
    "sqlite": ("sqlite3", _connect_sqlite, {}),
    "sqlite3": ("sqlite3", _connect_sqlite, {}),
}


def resolve(driver: str) -> Database:
    """
    Return the :class:`Database` for *driver*.  Unknown ids are imported as
    a DB‑API module and called as ``module.connect(conn, user=, password=)``.
    """
    if not driver:
        raise ConnectError("No driver configured")

    module_name, connect, cursor_options = _BUILTIN.get(
        driver.lower(), (driver, _connect_generic, {})
    )
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConnectError(f"Driver {driver!r} not found: {exc}") from exc

    if not callable(getattr(module, "connect", None)):
        raise ConnectError(f"Driver {driver!r} ({module_name}) has no connect()")
    return Database(driver, module, connect, dict(cursor_options))
