from __future__ import annotations
import configparser
import os
import pathlib
import typing as t
import yaml

_DEFAULT_PATH = pathlib.Path("execscript.config.yml")
_PROPERTIES_SUFFIXES = {".properties", ".ini", ".cfg"}
_PROPERTIES_SECTION = "execscript"

REQUIRED_KEYS = ("driver", "conn", "user", "password", "separator")


class ConfigError(RuntimeError):
    """Raised for any user‑visible configuration problem."""


class ScriptConfig:
    """
    A thin value‑object holding what a script run needs: how to reach the
    database and how the script delimits its statements.  Nothing here
    talks to the database.
    """

    def __init__(self, name: str | None, d: dict[str, t.Any]) -> None:
        missing = [key for key in REQUIRED_KEYS if key not in d]
        if missing:
            raise ConfigError(f"Missing required key(s): {', '.join(missing)}")

        self.name: str | None = name
        self.driver: str = _text(d["driver"])
        self.conn: str = _text(d["conn"])
        self.user: str = _text(d["user"])

        # Allow `${ENV_VAR}` syntax for secrets
        raw_pwd: str = _text(d["password"])
        if raw_pwd.startswith("${") and raw_pwd.endswith("}"):
            var = raw_pwd[2:-1]
            if var not in os.environ:
                raise ConfigError(f"Environment variable {var!r} for password is not set")
            raw_pwd = os.environ[var]
        self.password: str = raw_pwd

        # Only the first character is significant
        separator = _text(d["separator"])
        if not separator:
            raise ConfigError("`separator` must not be empty")
        self.separator: str = separator[0]

        self.encoding: str = _text(d.get("encoding")) or "utf-8"
        self.strict_comments: bool = _flag(d.get("strict_comments", False))

    def __repr__(self) -> str:
        return (
            f"ScriptConfig(driver={self.driver!r}, conn={self.conn!r}, "
            f"user={self.user!r}, separator={self.separator!r})"
        )


# --------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------- #
def _text(value: t.Any) -> str:
    return "" if value is None else str(value)


def _flag(value: t.Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _read_properties(cfg_file: pathlib.Path) -> dict[str, str]:
    """Parse a flat ``key=value`` file (no sections, no interpolation)."""
    parser = configparser.ConfigParser(interpolation=None)
    parser.read_string(
        f"[{_PROPERTIES_SECTION}]\n" + cfg_file.read_text(encoding="utf-8"),
        source=str(cfg_file),
    )
    return dict(parser[_PROPERTIES_SECTION])


def _read_yaml(cfg_file: pathlib.Path, env: str | None) -> tuple[str | None, dict]:
    with cfg_file.open(encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{cfg_file} must contain a mapping")

    if "environments" not in raw:
        return env, raw

    env_name = env or raw.get("default_env")
    if not env_name:
        raise ConfigError("No environment specified and no default_env in config")
    try:
        entry = raw["environments"][env_name]
    except (KeyError, TypeError) as exc:
        raise ConfigError(f"Environment {env_name!r} not found in config") from exc
    if not isinstance(entry, dict):
        raise ConfigError(f"Environment {env_name!r} must be a mapping")
    return env_name, dict(entry)


def load(
    path: pathlib.Path | str | None = None,
    env: str | None = None,
    **overrides: t.Any,
) -> ScriptConfig:
    """
    Parse *path* (or the default YAML) and return a :class:`ScriptConfig`.

    ``.properties`` / ``.ini`` / ``.cfg`` files are read as flat key‑value
    lists, everything else as YAML.  Keyword *overrides* whose value is not
    ``None`` replace the corresponding keys before validation.
    """
    cfg_file = pathlib.Path(path) if path else _DEFAULT_PATH
    if not cfg_file.exists():
        raise ConfigError(f"Config file {cfg_file} not found.")

    try:
        if cfg_file.suffix.lower() in _PROPERTIES_SUFFIXES:
            name, raw = env, _read_properties(cfg_file)
        else:
            name, raw = _read_yaml(cfg_file, env)
    except (configparser.Error, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot parse {cfg_file}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read {cfg_file}: {exc}") from exc

    raw.update({k: v for k, v in overrides.items() if v is not None})
    return ScriptConfig(name, raw)
