#!/usr/bin/env python3
"""
execscript – run a SQL script file statement by statement.

• Connection settings and the statement separator come from a config file
  (YAML, or a flat ``key=value`` .properties file).
• Lines starting with ``--`` are printed, never executed.
• The first failing statement aborts the run; the exit status tells which
  kind of failure stopped it.
"""
from __future__ import annotations

import pathlib
import sys

import click

from execscript import __version__
from execscript.config import ConfigError, load
from execscript.runner import ExitCode, ScriptRunner


@click.group()
@click.option(
    "-c", "--config", "config_path", type=click.Path(), help="connection config (YAML or .properties)"
)
@click.option("-e", "--env", help="environment name inside a YAML config")
@click.pass_context
def main(ctx, config_path, env):
    ctx.obj = {
        "config_path": pathlib.Path(config_path) if config_path else None,
        "env": env,
    }


@main.command()
def version():
    click.echo(__version__)


@main.command("run")
@click.argument("script", type=click.Path(dir_okay=False))
@click.option("--separator", help="override the configured statement separator")
@click.option(
    "--strict-comments", is_flag=True,
    help="keep `--` lines that continue an open statement",
)
@click.option("--dry-run", is_flag=True, help="print the statements, do not connect")
@click.pass_context
def run_cmd(ctx, script, separator, strict_comments, dry_run):
    try:
        cfg = load(
            ctx.obj["config_path"],
            ctx.obj["env"],
            separator=separator,
            strict_comments=strict_comments or None,
        )
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(ExitCode.CONFIG)

    status = ScriptRunner(cfg, dry_run=dry_run).run_file(script)
    sys.exit(int(status))


if __name__ == "__main__":
    main()
