"""
Central logging configuration.
One stdout handler on the root logger; module loggers propagate to it.
"""

import logging
from logging.config import dictConfig

from config import LOG_LEVEL


def _dict_config(level):
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {
                'format': '%(asctime)s %(levelname)s:%(name)s:%(message)s',
            }
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': level,
                'formatter': 'default',
                'stream': 'ext://sys.stdout',
            }
        },
        'root': {'level': level, 'handlers': ['console']},
        'loggers': {
            'werkzeug': {'level': level, 'handlers': ['console'], 'propagate': False},
        },
    }


def configure_logging(level=LOG_LEVEL):
    """
    Configure application-wide logging once.
    Returns early if the root logger already has handlers (reloader runs).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(_dict_config(level))
