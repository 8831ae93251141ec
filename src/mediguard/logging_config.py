"""Logging setup for the mediguard CLI.

Records go to stderr (and optionally a file) so reports written to stdout
can be piped straight into other tools.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Client libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "playwright")

# Marks handlers installed here so a repeat call only replaces its own
_OWNED = "_mediguard_owned"


def resolve_level(name: Optional[str]) -> int:
    """Numeric level for a level name; unknown or empty names give INFO."""
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    quiet: bool = False,
) -> List[logging.Handler]:
    """Configure the root logger for one CLI run.

    Handlers installed by an earlier call are removed first; handlers added
    by anything else are left alone.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file that also receives every record at ``level``
        quiet: Show only warnings and errors on the console

    Returns:
        The installed handlers, console first
    """
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    if quiet:
        console.setLevel(logging.WARNING)
    handlers: List[logging.Handler] = [console]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _OWNED, True)
        root.addHandler(handler)
    root.setLevel(resolve_level(level))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handlers
