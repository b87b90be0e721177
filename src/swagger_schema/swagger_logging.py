import logging
import os, sys
from swagger_schema.swagger_env import SwaggerSchemaEnv

# Load environment variables
SwaggerSchemaEnv.load_env()

LOG_FORMAT = '%(asctime)s - %(levelname)-5s: %(name)s - %(message)s (file: %(filename)s, line: %(lineno)d)'


class CustomFormatter(logging.Formatter):
    LEVELNAME_MAP = {
        'WARNING': 'WARN',
        'CRITICAL': 'CRIT',
    }

    def format(self, record):
        record.levelname = self.LEVELNAME_MAP.get(record.levelname, record.levelname)
        return super().format(record)


def env_log_level(name: str, default: int = logging.INFO) -> int:
    """Level from LOGGER_LEVEL.<name>, then LOGGER_LEVEL, then the default."""
    level_name = os.getenv(f'LOGGER_LEVEL.{name}') or os.getenv('LOGGER_LEVEL')
    if not level_name:
        return default
    return getattr(logging, level_name.upper(), default)


def create_logger(name: str, level: int = None, propagate: bool = False) -> logging.Logger:
    """Get the named logger with the library's stdout handler attached once.

    The logger is a regular `logging` logger, so applications can still
    reconfigure it by name.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else env_log_level(name))
    if not any(getattr(h, '_swagger_schema_handler', False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(CustomFormatter(LOG_FORMAT))
        handler._swagger_schema_handler = True
        logger.addHandler(handler)
    logger.propagate = propagate
    return logger

