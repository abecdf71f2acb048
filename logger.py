import logging
import sys
from typing import Iterable

# botocore and urllib3 log every request at DEBUG
NOISY_LOGGERS = ("boto3", "botocore", "urllib3")


class LoggerSetup:
    def __init__(
        self,
        log_format: str,
        level: str = "INFO",
        quiet_loggers: Iterable[str] = NOISY_LOGGERS,
    ):
        self.log_format = log_format
        self.level = logging.getLevelName(level.upper())
        self.quiet_loggers = tuple(quiet_loggers)
        self.setup_logging()

    def setup_logging(self) -> None:
        """Configure the root logger once and keep AWS SDK logs at WARNING."""
        root_logger = logging.getLogger()
        root_logger.setLevel(self.level)
        if not root_logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(self.log_format))
            root_logger.addHandler(handler)

        for name in self.quiet_loggers:
            logging.getLogger(name).setLevel(max(self.level, logging.WARNING))

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)
