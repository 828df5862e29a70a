"""Setting up the file logger shared by the services.

Returns a lazily initialized logger that writes to `{logging_dir}/{filename}`.
"""
import os
from logging import FileHandler, Formatter, getLogger, INFO
from supplier_eval.app.core.config import settings


def get_logs_writer_logger(name="supplier_eval", logging_dir=settings.LOG_PATH, filename='logs.log'):
    os.makedirs(logging_dir, exist_ok=True)
    log_path = os.path.join(logging_dir, filename)

    logger = getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(INFO)
    logger.propagate = False

    handler = FileHandler(log_path, mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)

    return logger
