import logging
import os
import sys
from pathlib import Path
from datetime import datetime

LOG_DIR_ENV = "SWAPCOOL_LOG_DIR"


def setup_logger(name="swapcool", level=logging.INFO, log_dir=None):
    if log_dir is None:
        log_dir = os.environ.get(LOG_DIR_ENV)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Avoid duplicate handlers on reload
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] %(message)s"
    )

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    # File handler
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        logfile = Path(log_dir) / f"{name}_{timestamp}.log"
        fh = logging.FileHandler(logfile, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
        logger.debug("Logging to: %s", logfile)

    return logger
