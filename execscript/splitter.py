"""
Turn the raw lines of a SQL script into executable statements.

The rules are line based and deliberately simple: a statement ends on the
first line whose trimmed text ends with the separator character.  Nothing
here understands SQL literals or block comments.
"""
from __future__ import annotations
import typing as t

import click

COMMENT_PREFIX = "--"


def _echo_comment(line: str) -> None:
    click.echo(line)


def _warn_unterminated(residual: str) -> None:
    click.echo(
        "[WARN] Script ended inside an unterminated statement – not executed:\n"
        f"{residual}",
        err=True,
    )


def split(
    lines: t.Iterable[str],
    separator: str,
    *,
    on_comment: t.Callable[[str], None] | None = _echo_comment,
    on_unterminated: t.Callable[[str], None] | None = _warn_unterminated,
    strict_comments: bool = False,
) -> t.Iterator[str]:
    """
    Lazily yield the statements found in *lines*.

    Comment lines (``--`` after trimming) go to *on_comment* and never into a
    statement.  With *strict_comments* a ``--`` line that continues an open
    statement is kept as part of it instead.  A trailing statement without
    *separator* is dropped and handed to *on_unterminated*.
    """
    if len(separator) != 1:
        raise ValueError(f"separator must be a single character, got {separator!r}")

    buf: list[str] = []
    for raw in lines:
        line = raw.strip()
        if not line:
            continue

        if line.startswith(COMMENT_PREFIX) and not (strict_comments and buf):
            if on_comment is not None:
                on_comment(line)
            continue

        buf.append(line)
        if line.endswith(separator):
            yield "".join(buf).replace(separator, " ")
            buf.clear()
        else:
            buf.append("\n")

    if buf and on_unterminated is not None:
        on_unterminated("".join(buf).rstrip("\n"))
