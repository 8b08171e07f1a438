# logging_config.py
import logging
import logging.config
from pathlib import Path
from typing import Optional

# Third-party loggers that are noisy at DEBUG
QUIET_LOGGERS = ("pymongo", "apscheduler", "asyncio")


def build_logging_config(log_level: str = "INFO", log_file: Optional[str] = None) -> dict:
    """Build a dictConfig mapping for the storefront service."""
    handlers = ['console']
    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'detailed': {
                'format': '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            }
        },
        'handlers': {
            'console': {
                'level': log_level,
                'class': 'logging.StreamHandler',
                'formatter': 'standard',
                'stream': 'ext://sys.stdout'
            }
        },
        'loggers': {
            '': {  # root logger
                'handlers': handlers,
                'level': log_level,
                'propagate': False
            },
            'uvicorn': {'handlers': handlers, 'level': 'INFO', 'propagate': False},
            'uvicorn.error': {'handlers': handlers, 'level': 'INFO', 'propagate': False},
            'uvicorn.access': {'handlers': handlers, 'level': 'INFO', 'propagate': False},
        }
    }

    for name in QUIET_LOGGERS:
        config['loggers'][name] = {'handlers': handlers, 'level': 'WARNING', 'propagate': False}

    if log_file:
        config['handlers']['file'] = {
            'level': log_level,
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'detailed',
            'filename': log_file,
            'maxBytes': 10485760,  # 10MB
            'backupCount': 5
        }
        # handlers list is shared by every logger entry
        handlers.append('file')

    return config


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Setup logging configuration for the application

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path, rotated at 10MB
    """
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(log_level, log_file))

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {log_level}")
    if log_file:
        logger.info(f"Log file: {log_file}")
