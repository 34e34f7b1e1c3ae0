"""structlog setup for applications embedding php_unserialize."""

import logging
import logging.config
from collections import OrderedDict
from enum import IntEnum, auto
from typing import Any

import structlog


class LoggingOutput(IntEnum):
    NULL = auto()
    PRETTY = auto()
    JSON = auto()


def setup_logging(output: LoggingOutput = LoggingOutput.PRETTY, *, debug: bool = False) -> None:
    """Route structlog events through the stdlib logging module.

    Call once, early, from the application; the library itself never configures logging.
    """
    timestamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S")

    # processors for foreign (stdlib) loggers
    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]

    handler = {
        LoggingOutput.NULL: 'null',
        LoggingOutput.PRETTY: 'pretty',
        LoggingOutput.JSON: 'json',
    }[output]

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'colored': {
                '()': structlog.stdlib.ProcessorFormatter,
                'processor': structlog.dev.ConsoleRenderer(colors=True),
                'foreign_pre_chain': pre_chain,
            },
            'json': {
                '()': structlog.stdlib.ProcessorFormatter,
                'processor': structlog.processors.JSONRenderer(),
                'foreign_pre_chain': pre_chain,
            },
        },
        'handlers': {
            'pretty': {
                'level': 'DEBUG',
                'class': 'logging.StreamHandler',
                'formatter': 'colored',
            },
            'json': {
                'level': 'DEBUG',
                'class': 'logging.StreamHandler',
                'formatter': 'json',
            },
            'null': {
                'class': 'logging.NullHandler',
            },
        },
        'loggers': {
            # py4j is chatty whenever a spark session is around
            'py4j': {
                'handlers': [handler],
                'level': 'INFO' if debug else 'WARN',
                'propagate': False,
            },
            '': {
                'handlers': [handler],
                'level': 'DEBUG' if debug else 'INFO',
            },
        },
    })

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        context_class=OrderedDict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
