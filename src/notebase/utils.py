"""Utility functions for notebase."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str | Path] = None,
    console: bool = True,
) -> None:  # pragma: no cover
    """
    Configure loguru sinks.

    Args:
        log_level: Minimum level for all sinks
        log_file: Optional path of a rotating log file
        console: Whether to log to stderr
    """
    logger.remove()

    if console:
        logger.add(sys.stderr, level=log_level, backtrace=True, diagnose=False, colorize=True)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(path),
            level=log_level,
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    logger.debug(f"Logging configured at {log_level}")


def normalize_folder(folder: str) -> str:
    """Normalize a folder path to forward slashes, no leading slash, trailing slash.

    The vault root normalizes to an empty string.
    """
    folder = folder.replace("\\", "/").strip()
    folder = folder.lstrip("/")
    if not folder:
        return ""
    return folder if folder.endswith("/") else folder + "/"


def strip_link_brackets(target: str) -> str:
    """Strip wiki-link ``[[ ]]`` syntax from a link target."""
    target = target.strip()
    if target.startswith("[["):
        target = target[2:]
    if target.endswith("]]"):
        target = target[:-2]
    return target


def normalize_tag(tag: str) -> str:
    """Normalize a tag for comparison: no leading '#', lowercase."""
    return tag.strip().lstrip("#").lower()
