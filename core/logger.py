import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from .config import LoggingConfig

_configured = False


def setup_logging(config: LoggingConfig, force: bool = False) -> None:
    global _configured
    if _configured and not force:
        return

    level = getattr(logging, config.level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )

    if force:
        for handler in list(root.handlers):
            root.removeHandler(handler)

    # Avoid duplicate handlers
    if not root.handlers:
        if config.to_stdout:
            ch = logging.StreamHandler(sys.stdout)
            ch.setLevel(level)
            ch.setFormatter(formatter)
            root.addHandler(ch)

        if config.to_file:
            try:
                log_dir = os.path.dirname(config.file)
                if log_dir:
                    os.makedirs(log_dir, exist_ok=True)
                fh = RotatingFileHandler(
                    config.file,
                    maxBytes=config.max_bytes,
                    backupCount=config.backups,
                )
                fh.setLevel(level)
                fh.setFormatter(formatter)
                root.addHandler(fh)
            except OSError as e:
                root.warning("Failed to initialize file logging: %s", e)

    # Third-party chatter stays at WARNING unless we are debugging.
    if level > logging.DEBUG:
        for noisy in ("urllib3", "asyncio"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
