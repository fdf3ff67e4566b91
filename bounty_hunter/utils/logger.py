import logging
from pathlib import Path
from typing import Optional

# Centralized logger name
LOGGER_NAME = "android_bounty_hunter"
DEFAULT_RUN_NAME = "run"


def init_logging(
    verbose: bool = False,
    log_path: Optional[Path] = None,
    log_to_console: Optional[bool] = None,
    run_name: Optional[str] = None
) -> logging.Logger:
    """
    Creates a logger scoped to a single run and attaches its handlers.

    Each run name maps to one child of the project logger; re-initializing a
    name replaces its handlers, so repeated runs do not accumulate loggers.
    Runs that overlap in time (and tests) pass distinct run names.
    Call close_logging() once the run ends.

    Args:
        verbose (bool): Enable DEBUG logging and echo records to the console.
        log_path (Optional[Path]): Log file path (e.g. <output>/hunter.log).
        log_to_console (Optional[bool]): Force console output on or off.
            Defaults to `verbose`, mirroring the file-only default of the CLI.
        run_name (Optional[str]): Suffix for the logger name (default: "run").

    Returns:
        logging.Logger: Configured logger instance.
    """
    name = f"{LOGGER_NAME}.{run_name or DEFAULT_RUN_NAME}"
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Avoid duplicate logs when a run name is reused
    if logger.hasHandlers():
        close_logging(logger)

    formatter = _create_formatter()

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if verbose if log_to_console is None else log_to_console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    return logger


def close_logging(logger: logging.Logger) -> None:
    """Detach and close every handler owned by a run logger."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _create_formatter() -> logging.Formatter:
    """
    Create a default log formatter.

    Returns:
        logging.Formatter
    """
    return logging.Formatter("[%(levelname)s] %(asctime)s - %(message)s")


def get_logger() -> logging.Logger:
    """
    Retrieve the main project logger.

    Returns:
        logging.Logger
    """
    return logging.getLogger(LOGGER_NAME)
