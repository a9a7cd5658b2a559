"""Logging setup for hosts and CLIs embedding the relay.

Everything under the ``toolrelay`` namespace logs through module-level
loggers; this module only decides where those records go. Records land in a
rotating ``toolrelay.log`` file and, optionally, on stderr.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:  # pragma: no cover
    from ..services.settings import Settings

LOG_DIR_ENV = "TOOLRELAY_LOG_DIR"
LOG_FILE_NAME = "toolrelay.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that flood DEBUG output with transport chatter.
_CHATTY_LOGGERS = ("asyncio", "httpx", "httpcore")


@dataclass(slots=True)
class _LoggingState:
    path: Path | None = None
    level: int | None = None


_STATE = _LoggingState()


def setup_logging(
    level: int | str = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Route root logging to ``<log_dir>/toolrelay.log`` and return that path.

    ``log_dir`` falls back to ``$TOOLRELAY_LOG_DIR`` and then to
    ``~/.toolrelay/logs``. A second call is a no-op unless ``force`` is set,
    so libraries can call this defensively without stacking handlers.
    """

    if _STATE.path is not None and not force:
        return _STATE.path

    resolved_level = _coerce_level(level)
    directory = log_dir_for(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / LOG_FILE_NAME

    logging.basicConfig(
        level=resolved_level,
        handlers=_build_handlers(log_path, resolved_level, console, max_bytes, backup_count),
        force=True,
    )
    logging.captureWarnings(True)

    floor = max(resolved_level, logging.WARNING)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(floor)

    _STATE.path = log_path
    _STATE.level = resolved_level
    logging.getLogger(__name__).debug("Logging to %s at %s", log_path, logging.getLevelName(resolved_level))
    return log_path


def configure_logging(settings: "Settings", **kwargs) -> Path:
    """Apply ``settings.debug_logging``: DEBUG when enabled, INFO otherwise."""

    level = logging.DEBUG if settings.debug_logging else logging.INFO
    kwargs.setdefault("force", True)
    return setup_logging(level, **kwargs)


def get_log_path() -> Path | None:
    return _STATE.path


def get_log_level() -> int | None:
    return _STATE.level


def log_dir_for(log_dir: Path | str | None = None) -> Path:
    chosen = log_dir or os.environ.get(LOG_DIR_ENV) or Path.home() / ".toolrelay" / "logs"
    return Path(chosen).expanduser()


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _build_handlers(
    log_path: Path,
    level: int,
    console: bool,
    max_bytes: int,
    backup_count: int,
) -> List[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: List[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


__all__ = [
    "LOG_DIR_ENV",
    "configure_logging",
    "get_log_level",
    "get_log_path",
    "log_dir_for",
    "setup_logging",
]
