from __future__ import annotations
import enum
import pathlib
import traceback
import typing as t

import click

from execscript.config import ScriptConfig
from execscript.driver import ConnectError, Database, ExecutionError, resolve
from execscript.splitter import split


class State(enum.Enum):
    INIT = "init"
    CONNECTED = "connected"
    EXECUTING = "executing"
    ABORTED = "aborted"
    COMPLETED = "completed"
    CLOSED = "closed"


class ExitCode(enum.IntEnum):
    OK = 0
    CONFIG = 1
    CONNECTION = 2
    EXECUTION = 3
    IO = 4
    UNEXPECTED = 5


class ScriptRunner:
    """
    Executes the statements of **one script** over **one connection**,
    strictly in order.  The first failing statement aborts the run; the
    cursor and connection are closed on every path.

    ``run`` never raises: every failure is reported on stderr and turned
    into an :class:`ExitCode`.
    """

    def __init__(
        self,
        config: ScriptConfig,
        *,
        database: Database | None = None,
        dry_run: bool = False,
    ) -> None:
        self.config: ScriptConfig = config
        self.database: Database | None = database
        self.dry_run: bool = dry_run
        self.state: State = State.INIT
        self.executed: int = 0

    def run_file(self, path: pathlib.Path | str) -> ExitCode:
        """Open *path* with the configured encoding and :meth:`run` it."""
        # opened before the connection
        try:
            fh = open(path, encoding=self.config.encoding)
        except (OSError, LookupError) as exc:
            click.echo(f"[ERROR] Cannot read script: {exc}", err=True)
            self.state = State.CLOSED
            return ExitCode.IO

        with fh:
            return self.run(fh)

    def run(self, lines: t.Iterable[str]) -> ExitCode:
        conn = cur = None
        status = ExitCode.OK
        try:
            if not self.dry_run:
                conn = self._connect()
                self.state = State.CONNECTED
                cur = self._cursor(conn)

            self._process(cur, lines)
            self.state = State.COMPLETED
            click.echo(f"{'(DRY) ' if self.dry_run else ''}Executed {self.executed} statement(s).")

        except ConnectError as exc:
            status = ExitCode.CONNECTION
            click.echo(f"[ERROR] {exc}", err=True)
        except ExecutionError as exc:
            status = ExitCode.EXECUTION
            click.echo(f"[ERROR] {exc}", err=True)
            if exc.next_error is not None:
                click.echo(f"[ERROR] {exc.next_error}", err=True)
        except (OSError, UnicodeDecodeError) as exc:
            status = ExitCode.IO
            click.echo(f"[ERROR] Cannot read script: {exc}", err=True)
        except Exception:
            status = ExitCode.UNEXPECTED
            click.echo(traceback.format_exc(), err=True)

        finally:
            if status is not ExitCode.OK and self.state is not State.INIT:
                self.state = State.ABORTED
            self._release(cur, conn)
            self.state = State.CLOSED

        return status

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #
    def _connect(self):
        if self.database is None:
            self.database = resolve(self.config.driver)
        return self.database.open(self.config.conn, self.config.user, self.config.password)

    def _cursor(self, conn):
        try:
            return conn.cursor(**self.database.cursor_options)
        except self.database.error as err:
            raise ConnectError(f"Cannot create cursor: {err}") from err

    def _process(self, cur, lines: t.Iterable[str]) -> None:
        statements = split(
            lines,
            self.config.separator,
            strict_comments=self.config.strict_comments,
        )
        for stmt in statements:
            self.state = State.EXECUTING
            if self.dry_run:
                click.echo(f"(DRY) {stmt}")
                self.executed += 1
                continue

            click.echo(stmt)
            try:
                cur.execute(stmt)
            except self.database.error as err:
                raise ExecutionError(err, stmt) from err
            self.executed += 1

    def _release(self, cur, conn) -> None:
        for label, handle in (("cursor", cur), ("connection", conn)):
            if handle is None:
                continue
            try:
                handle.close()
            except Exception:
                click.echo(
                    f"[WARN] Failed to close {label}:\n{traceback.format_exc()}",
                    err=True,
                )
