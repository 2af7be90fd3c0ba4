"""
Logging utilities for the minority-window harness.

Kept separate from cli.py so library modules can log stages without
importing the command line layer.
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def default_console_level() -> int:
    """Console level from MINORITY_WINDOW_DEBUG / _VERBOSE / _QUIET, WARNING otherwise."""
    def _flag(name):
        return os.getenv(name, "").lower() in ("1", "true", "yes")

    if _flag("MINORITY_WINDOW_DEBUG"):
        return logging.DEBUG
    if _flag("MINORITY_WINDOW_VERBOSE"):
        return logging.INFO
    if _flag("MINORITY_WINDOW_QUIET"):
        return logging.ERROR
    return logging.WARNING


def setup_logging(log_file: Optional[str] = None, debug: bool = False, verbose: bool = False):
    """
    Configure the root logger: everything to ``log_file`` (when given),
    and a console handler at a level chosen by flags or environment.
    """
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    handlers = []
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    if debug:
        console_handler.setLevel(logging.DEBUG)
    elif verbose:
        console_handler.setLevel(logging.INFO)
    else:
        console_handler.setLevel(default_console_level())
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handlers.append(console_handler)

    logging.basicConfig(level=logging.DEBUG, handlers=handlers)

    # Suppress noisy third-party loggers
    for name in ('sklearn', 'joblib', 'imblearn'):
        logging.getLogger(name).setLevel(logging.WARNING)

    if debug:
        logger.info("Debug mode enabled - showing all debug information")
    elif verbose:
        logger.info("Verbose mode enabled - showing detailed information")


def log_iteration_stage(stage_name: str, index: Optional[int] = None, details: Optional[str] = None,
                        level: int = logging.DEBUG):
    """
    Log an iteration stage with consistent formatting.

    Parameters
    ----------
    stage_name : str
        Name of the stage (PARTITION, BALANCE, FIT, ...)
    index : int, optional
        1-based iteration index
    details : str, optional
        Additional details about the stage
    """
    if index is not None and details:
        message = f"[{stage_name}] iteration {index} | {details}"
    elif index is not None:
        message = f"[{stage_name}] iteration {index}"
    else:
        message = f"[{stage_name}] {details}" if details else f"[{stage_name}]"
    logger.log(level, message)


def log_timing_summary(summary: dict):
    """Log the per-stage timing table produced by StageTimer.summary()."""
    if not summary:
        return
    logger.info("[TIMING] stage summary")
    for stage, stats in summary.items():
        logger.info(
            f"[TIMING] {stage:<10s} n={stats['count']:<4d} total={stats['total_seconds']:.2f}s "
            f"mean={stats['mean_seconds']:.3f}s"
        )
