# mintverify/logging_config.py
"""
Logging configuration for mintverify.

JSON output carries the signature of the transaction being processed, so
every line logged inside one atomic unit can be grouped together.
"""

import json
import logging
import sys
import time
from contextvars import ContextVar
from typing import Optional

transaction_var: ContextVar[str] = ContextVar("transaction", default="")


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        transaction = transaction_var.get()
        if transaction:
            log_data["transaction"] = transaction

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: emit StructuredFormatter JSON lines instead of plain text
        log_file: optional extra file destination
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # stderr keeps stdout free for command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_transaction(signature: str):
    """Bind signature to the current context; returns the reset token."""
    return transaction_var.set(signature)


def reset_transaction(token) -> None:
    transaction_var.reset(token)
