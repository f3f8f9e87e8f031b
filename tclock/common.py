# tclock/common.py
# Shared logger and logging setup.
#
# The terminal is owned by Textual while the clock runs, so log records go to
# a file under logs/ instead of stderr.

import logging
from pathlib import Path

APP_NAME = "tclock"
APP_VERSION = "0.3.0"

logger = logging.getLogger(APP_NAME)


def setup_logging(log_dir: Path | str = "logs", verbosity: int = 0) -> Path:
    """Configure file logging for a run and return the log file path.

    verbosity 0 keeps the package logger at INFO, 1 or more enables DEBUG.
    Third-party loggers (textual, asyncio) stay at the root INFO level.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{APP_NAME}.log"

    logging.basicConfig(
        filename=str(log_file),
        level=logging.INFO,
        format='%(asctime)s %(levelname)s [CLOCK] %(message)s',
        filemode='w',
        force=True
    )
    logger.setLevel(logging.DEBUG if verbosity > 0 else logging.INFO)
    logger.debug("Logging configured at %s", log_file)
    return log_file
