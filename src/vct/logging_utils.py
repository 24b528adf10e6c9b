from __future__ import annotations
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_HANDLER = "vct-console"
FILE_HANDLER = "vct-file"


def _own_handlers(logger: logging.Logger) -> List[logging.Handler]:
    return [h for h in logger.handlers if h.get_name() in (CONSOLE_HANDLER, FILE_HANDLER)]


def setup_logger(logs_dir: Optional[str] = "./logs", name: str = "vct", verbose: bool = False) -> logging.Logger:
    """Configure the package logger for a run.

    Logs go to the console and, when logs_dir is set, to a rotating
    <logs_dir>/<name>.log (2 MB x 3). Handlers from an earlier call are
    replaced, so every CLI run in a process logs to its own streams.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for h in _own_handlers(logger):
        logger.removeHandler(h)
        h.close()

    handlers: List[logging.Handler] = []
    console = logging.StreamHandler()
    console.set_name(CONSOLE_HANDLER)
    handlers.append(console)
    if logs_dir:
        os.makedirs(logs_dir, exist_ok=True)
        fh = RotatingFileHandler(os.path.join(logs_dir, f"{name}.log"), maxBytes=2_000_000, backupCount=3)
        fh.set_name(FILE_HANDLER)
        handlers.append(fh)

    fmt = logging.Formatter(LOG_FORMAT)
    for h in handlers:
        h.setFormatter(fmt)
        logger.addHandler(h)
    return logger
