# Copyright 2025-2026 Dimensional Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from collections.abc import Mapping
from datetime import datetime
import inspect
import logging
import logging.handlers
import os
from pathlib import Path
import sys
import tempfile
import traceback
from types import TracebackType
from typing import Any

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder

from reachgrasp.constants import REACHGRASP_LOG_DIR, REACHGRASP_PROJECT_ROOT

# reactivex reports disposed-subscriber noise at WARNING
logging.getLogger("Rx").setLevel(logging.ERROR)

_LOG_FILE_PATH: Path | None = None


def _get_log_directory() -> Path:
    if os.getenv("REACHGRASP_LOG_DIR") or (REACHGRASP_PROJECT_ROOT / ".git").exists():
        log_dir = REACHGRASP_LOG_DIR
    else:
        xdg_state_home = os.getenv("XDG_STATE_HOME")
        base = Path(xdg_state_home) if xdg_state_home else Path.home() / ".local" / "state"
        log_dir = base / "reachgrasp" / "logs"

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except (PermissionError, OSError):
        log_dir = Path(tempfile.gettempdir()) / "reachgrasp" / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

    return log_dir


def get_log_file_path() -> Path:
    """Path of the JSON-lines log file shared by every logger of this process."""
    return _configure_structlog()


def _configure_structlog() -> Path:
    global _LOG_FILE_PATH

    if _LOG_FILE_PATH:
        return _LOG_FILE_PATH

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    _LOG_FILE_PATH = _get_log_directory() / f"reachgrasp_{timestamp}_{os.getpid()}.jsonl"

    shared_processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.FUNC_NAME,
                CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return _LOG_FILE_PATH


_CONSOLE_PATH_WIDTH = 34
_CONSOLE_USE_COLORS = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()

_CONSOLE_LEVEL_COLORS = {
    "dbg": "\033[1;36m",  # bold cyan
    "inf": "\033[1;32m",  # bold green
    "war": "\033[1;33m",  # bold yellow
    "err": "\033[1;31m",  # bold red
    "cri": "\033[1;31m",  # bold red
}
_CONSOLE_RESET = "\033[0m"
_CONSOLE_DIM = "\033[2m"
_CONSOLE_KEY = "\033[0;36m"

_INTERNAL_KEYS = (
    "func_name",
    "lineno",
    "exception",
    "exc_info",
    "exception_type",
    "exception_message",
    "traceback_lines",
    "_record",
    "_from_structlog",
)


def _compact_console_processor(logger: Any, method_name: str, event_dict: Mapping[str, Any]) -> str:
    """Format log lines as: HH:MM:SS.mmm [lvl][module path] Event key=value ..."""
    event_dict = dict(event_dict)

    timestamp = event_dict.pop("timestamp", "")
    try:
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00")) if timestamp else None
    except (ValueError, AttributeError):
        dt = None
    dt = dt or datetime.now()
    time_str = dt.strftime("%H:%M:%S") + f".{dt.microsecond // 1000:03d}"

    level_short = event_dict.pop("level", "???")[:3].lower()

    file_path = event_dict.pop("logger", "")[-_CONSOLE_PATH_WIDTH:]
    file_path = f"{file_path:<{_CONSOLE_PATH_WIDTH}s}"

    event = event_dict.pop("event", "")
    for key in _INTERNAL_KEYS:
        event_dict.pop(key, None)

    if _CONSOLE_USE_COLORS:
        color = _CONSOLE_LEVEL_COLORS.get(level_short, "")
        line = (
            f"{_CONSOLE_DIM}{time_str}{_CONSOLE_RESET} "
            f"{color}[{level_short}]{_CONSOLE_RESET}"
            f"{_CONSOLE_DIM}[{file_path}]{_CONSOLE_RESET} {event}"
        )
        kv = " ".join(
            f"{_CONSOLE_KEY}{k}{_CONSOLE_RESET}={v}" for k, v in sorted(event_dict.items())
        )
    else:
        line = f"{time_str} [{level_short}][{file_path}] {event}"
        kv = " ".join(f"{k}={v}" for k, v in sorted(event_dict.items()))

    return f"{line} {kv}" if kv else line


def setup_logger(*, level: int | None = None) -> Any:
    """Set up a structured logger named after the calling module's file.

    Console output goes to stdout in the compact format, and every record is
    also appended as JSON to the process log file.

    Args:
        level: The logging level. Defaults to $REACHGRASP_LOG_LEVEL or INFO.

    Returns:
        A configured structlog logger instance.
    """
    name = inspect.stack()[1].filename
    try:
        name = str(Path(name).relative_to(REACHGRASP_PROJECT_ROOT))
    except (ValueError, TypeError):
        pass

    log_file_path = _configure_structlog()

    if level is None:
        level = getattr(logging, os.getenv("REACHGRASP_LOG_LEVEL", "INFO").upper(), logging.INFO)

    stdlib_logger = logging.getLogger(name)
    if stdlib_logger.hasHandlers():
        stdlib_logger.handlers.clear()
    stdlib_logger.setLevel(level)
    stdlib_logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=_compact_console_processor)
    )
    stdlib_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        mode="a",
        maxBytes=10 * 1024 * 1024,  # 10MiB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer())
    )
    stdlib_logger.addHandler(file_handler)

    return structlog.get_logger(name)


def setup_exception_handler() -> None:
    """Log uncaught exceptions to the JSON log and pretty-print them with rich."""

    def handle_exception(
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_traceback: TracebackType | None,
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger = setup_logger()
        logger.error(
            "Uncaught exception occurred",
            exc_info=(exc_type, exc_value, exc_traceback),
            exception_type=exc_type.__name__,
            exception_message=str(exc_value),
            traceback_lines=traceback.format_exception(exc_type, exc_value, exc_traceback),
        )

        from rich.console import Console
        from rich.traceback import Traceback

        Console(stderr=True).print(Traceback.from_exception(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception
