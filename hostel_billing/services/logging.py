"""Log routing for the billing batch jobs.

Every record goes to stdout and to the configured log file at the configured
level; both come from BillingConfig so load_config owns the settings.
"""

import logging
import sys
from pathlib import Path

from hostel_billing.services.config import BillingConfig

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

PACKAGE_LOGGER = "hostel_billing"


def _handlers(log_path: Path) -> list[logging.Handler]:
    return [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_path, encoding="utf-8"),
    ]


def setup_logging(config: BillingConfig | None = None) -> logging.Logger:
    """Route log records to stdout and config.log_file.

    Replaces whatever handlers the root logger had, so calling it twice does
    not duplicate output. SQL statement logging stays at WARNING unless the
    configured level is DEBUG.

    Args:
        config: Loaded configuration (defaults to BillingConfig())

    Returns:
        The package logger
    """
    config = config or BillingConfig()
    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(config.log_level)

    for handler in _handlers(log_path):
        handler.setLevel(config.log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    sql_level = logging.DEBUG if config.log_level <= logging.DEBUG else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)

    return logging.getLogger(PACKAGE_LOGGER)


__all__ = ["setup_logging"]
