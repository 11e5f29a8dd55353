import logging
import os
from datetime import datetime
from pathlib import Path

LOG_DIR = Path(os.getenv("WANWATCH_LOG_DIR", "logs"))

_LOGGERS = {}
_CONSOLE_HANDLERS = []
_VERBOSE = False


def _console_level() -> int:
    return logging.DEBUG if _VERBOSE else logging.INFO


def set_verbose(verbose: bool) -> None:
    """
    Switch every console handler between INFO and DEBUG.

    File handlers always record DEBUG so a quiet console still leaves a
    complete trail on disk.
    """
    global _VERBOSE
    _VERBOSE = bool(verbose)

    for handler in _CONSOLE_HANDLERS:
        handler.setLevel(_console_level())


def get_logger(
    name: str,
    *,
    runtime: str = "wanwatch",
) -> logging.Logger:
    """
    Create or retrieve a named logger.

    Parameters:
    - name: logger namespace (e.g. core.live_checker, discord.client)
    - runtime: log file prefix (wanwatch | discord)
    """
    cache_key = f"{runtime}:{name}"
    if cache_key in _LOGGERS:
        return _LOGGERS[cache_key]

    logger = logging.getLogger(cache_key)
    logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # ------------------------------
    # Console handler
    # ------------------------------
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    console.setLevel(_console_level())
    logger.addHandler(console)
    _CONSOLE_HANDLERS.append(console)

    # ------------------------------
    # File handler (one per run)
    # ------------------------------
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        logfile = LOG_DIR / f"{runtime}-{timestamp}.log"

        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"File logging disabled for {cache_key}: {e}")

    logger.propagate = False
    _LOGGERS[cache_key] = logger

    return logger
