"""
Logging configuration for RMM processes.

The API service and the helper scripts share one line format so that
service logs and scenario output can be read side by side.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Libraries that are chatty at INFO
NOISY_LOGGERS = ("sqlalchemy.engine", "urllib3", "uvicorn.access")


def resolve_level(level: Union[int, str, None], default: int = logging.INFO) -> int:
    """Accept a level number or name ('debug', 'INFO'); unknown names fall back to default."""
    if isinstance(level, int):
        return level
    if not level:
        return default
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else default


def setup_logging(
    component_name: str,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
):
    """
    Configure logging for an RMM component.

    Args:
        component_name: Component identifier (e.g., 'rmm', 'scenario')
        level: Level number or name for the root logger
        log_file: Optional file path for log output
        format_string: Custom format string (default provided)
        quiet: Logger names capped at WARNING
    """
    level = resolve_level(level)
    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s %(name)s - %(message)s'

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(level=level, format=format_string, datefmt=DATE_FORMAT, handlers=handlers, force=True)

    for name in quiet:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger = logging.getLogger(component_name)
    logger.info(f"{component_name.upper()} logging initialized (level={logging.getLevelName(level)})")
    return logger
