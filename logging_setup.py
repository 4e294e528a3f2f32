import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import config


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# everything under this logger also lands in bulk-upload.log
BULK_LOGGER = 'bulk_upload'

_configured = False


def _file_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(str(path), maxBytes=2_000_000, backupCount=3, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(log_dir: Optional[Path] = None, level: Optional[str] = None) -> None:
    """Configure console output plus the general, error and bulk-upload log files.

    Safe to call more than once; handlers are only attached the first time.
    """
    global _configured
    if _configured:
        return
    root = logging.getLogger()

    log_dir = Path(log_dir or config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    root.setLevel(level or config.LOG_LEVEL)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console)
    root.addHandler(_file_handler(log_dir / 'general.log', logging.INFO))
    root.addHandler(_file_handler(log_dir / 'error.log', logging.ERROR))

    logging.getLogger(BULK_LOGGER).addHandler(_file_handler(log_dir / 'bulk-upload.log', logging.INFO))

    _configured = True
