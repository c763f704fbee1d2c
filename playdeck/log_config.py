"""Logging for the player: a DEBUG log file users can attach to bug reports, plus stderr."""

import logging
import os
import sys

# Where the current log file is; the CLI prints it when the MIDI output cannot be opened.
LOG_FILE_PATH: str | None = None

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def log_dir() -> str:
    return os.path.join(os.environ.get("TEMP", os.path.expanduser("~")), "playdeck")


def setup_logging(verbose: bool = False) -> str | None:
    """Route the "playdeck" logger to log_dir()/app.log and stderr.

    The file always gets DEBUG (engine transitions, skipped tracks); stderr
    gets INFO, or DEBUG with verbose. Calling it again replaces the handlers.
    Returns the log file path, or None when the directory is not writable.
    """
    global LOG_FILE_PATH
    logger = logging.getLogger("playdeck")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    LOG_FILE_PATH = None
    try:
        directory = log_dir()
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, "app.log")
        fh = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        pass
    else:
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        logger.addHandler(fh)
        LOG_FILE_PATH = path

    eh = logging.StreamHandler(sys.stderr)
    eh.setLevel(logging.DEBUG if verbose else logging.INFO)
    eh.setFormatter(fmt)
    logger.addHandler(eh)

    logger.debug("Logging started; file: %s", LOG_FILE_PATH or "(none)")
    return LOG_FILE_PATH
