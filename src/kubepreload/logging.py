#!/usr/bin/env python
# -*- encoding: utf-8 -*-
import logging
import logging.config
import os
import string
import sys
import threading
import warnings
from datetime import datetime
from io import StringIO
from typing import Dict, Optional, Union

import colorama
import structlog
from structlog._frames import _find_first_app_frame_and_name

from kubepreload.exception import UsageError

FORMATTERS = ('console-plain', 'console-colored', 'legacy', 'json')


def _sl_processor_add_source_context(_, __, event_dict: Dict) -> Dict:
    frame, name = _find_first_app_frame_and_name([__name__, 'logging'])
    event_dict['file'] = frame.f_code.co_filename
    event_dict['line'] = frame.f_lineno
    event_dict['function'] = frame.f_code.co_name
    return event_dict


def _sl_processor_add_process_context(_, __, event_dict: Dict) -> Dict:
    event_dict['process'] = os.getpid()
    event_dict['thread_name'] = threading.current_thread().name
    return event_dict


_sl_processor_timestamper = structlog.processors.TimeStamper(utc=True)

_sl_foreign_pre_chain = [
    structlog.stdlib.add_log_level,
    _sl_processor_timestamper,
    _sl_processor_add_source_context,
    _sl_processor_add_process_context,
]

_sl_processors = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    _sl_processor_timestamper,
    _sl_processor_add_source_context,
    _sl_processor_add_process_context,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]

_LEVEL_COLORS = {
    'critical': colorama.Fore.RED,
    'exception': colorama.Fore.RED,
    'error': colorama.Fore.RED,
    'warn': colorama.Fore.YELLOW,
    'warning': colorama.Fore.YELLOW,
    'info': colorama.Fore.GREEN,
    'debug': colorama.Fore.WHITE,
    'notset': colorama.Back.RED,
}

# Keys which are rendered by the format string itself or are internal to structlog
_RESERVED_KEYS = {
    'event', 'level', 'level_uc', 'log_color', 'log_color_reset', 'timestamp', 'timestamp_local_ctime', 'file', 'line',
    'function', 'process', 'thread_name', 'logger', 'stack', 'exception', '_record', '_from_structlog'
}


class _FormatRenderer:
    """Renders an event dictionary through a str.format style template.

    Any key/value pairs bound to the event which are not part of the template are appended as ``key=value``.
    """

    def __init__(self, fmt: str, colors: bool = True) -> None:
        if colors:
            colorama.init()
            self._level_to_color = _LEVEL_COLORS
            self._reset = colorama.Style.RESET_ALL
        else:
            self._level_to_color = {}
            self._reset = ''

        self._vformat = string.Formatter().vformat
        self._fmt = fmt

    def __call__(self, _, __, event_dict):
        message = StringIO()

        event_dict['log_color_reset'] = self._reset
        level = event_dict.get('level', '')
        event_dict['log_color'] = self._level_to_color.get(level, '')
        event_dict['level_uc'] = level.upper()

        if 'timestamp' in event_dict:
            timestamp = event_dict['timestamp']
            if isinstance(timestamp, str):
                timestamp = datetime.fromisoformat(timestamp.replace('Z', '+00:00')).timestamp()
            event_dict['timestamp_local_ctime'] = datetime.fromtimestamp(timestamp).ctime()

        message.write(self._vformat(self._fmt, [], event_dict))

        extra = ['{}={}'.format(key, value) for key, value in event_dict.items() if key not in _RESERVED_KEYS]
        if extra:
            message.write(' ' + ' '.join(extra))

        stack = event_dict.pop('stack', None)
        exception = event_dict.pop('exception', None)

        if stack is not None:
            message.write('\n' + stack)
        if exception is not None:
            message.write('\n' + exception)

        message.write(self._reset)

        return message.getvalue()


def init_logging(*,
                 logfile: Optional[str] = None,
                 console_level: Union[str, int] = 'INFO',
                 console_formatter: str = 'console-plain',
                 logfile_formatter: str = 'legacy') -> None:

    if console_formatter not in FORMATTERS:
        raise UsageError('Event formatter {} is unknown.'.format(console_formatter))

    if logfile_formatter not in FORMATTERS:
        raise UsageError('Event formatter {} is unknown.'.format(logfile_formatter))

    logging_config: Dict = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'console-plain': {
                '()': structlog.stdlib.ProcessorFormatter,
                'processor': _FormatRenderer(colors=False, fmt='{log_color}{level_uc:>8s}: {event:s}'),
                'foreign_pre_chain': _sl_foreign_pre_chain,
            },
            'console-colored': {
                '()': structlog.stdlib.ProcessorFormatter,
                'processor': _FormatRenderer(colors=True, fmt='{log_color}{level_uc:>8s}: {event:s}'),
                'foreign_pre_chain': _sl_foreign_pre_chain,
            },
            'legacy': {
                '()':
                    structlog.stdlib.ProcessorFormatter,
                'processor':
                    _FormatRenderer(colors=False,
                                    fmt='{timestamp_local_ctime} {process:d}/{thread_name:s} {file:s}:{line:d} '
                                    '{level_uc:s} {event:s}'),
                'foreign_pre_chain':
                    _sl_foreign_pre_chain,
            },
            'json': {
                '()': structlog.stdlib.ProcessorFormatter,
                'processor': structlog.processors.JSONRenderer(),
                'foreign_pre_chain': _sl_foreign_pre_chain,
            },
        },
        'handlers': {
            'console': {
                'level': console_level,
                'class': 'logging.StreamHandler',
                'formatter': console_formatter,
                'stream': 'ext://sys.stderr',
            },
        },
        'loggers': {
            '': {
                'handlers': ['console'],
                'level': 'DEBUG',
                'propagate': True,
            },
        }
    }

    if logfile is not None:
        if isinstance(console_level, int):
            console_level_no = console_level
        else:
            console_level_no = logging.getLevelName(console_level)
        logging_config['handlers']['file'] = {
            'level': min(console_level_no, logging.INFO),
            'class': 'logging.handlers.WatchedFileHandler',
            'filename': logfile,
            'formatter': logfile_formatter,
        }
        logging_config['loggers']['']['handlers'].append('file')

    logging.config.dictConfig(logging_config)


def _handle_exception(exc_type, exc_value, exc_traceback):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    structlog.get_logger().error('Uncaught exception', exc_info=(exc_type, exc_value, exc_traceback))


sys.excepthook = _handle_exception

structlog.configure(
    processors=_sl_processors,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

init_logging()

# silence the HTTP stack underneath pykube
logging.getLogger('urllib3').setLevel(logging.WARN)
logging.getLogger('requests').setLevel(logging.WARN)
# Sessions held by pykube's HTTPClient are never closed explicitly
warnings.filterwarnings('ignore', category=ResourceWarning, message=r'unclosed.*<(?:ssl.SSLSocket|socket\.socket).*>')

if os.getenv('KUBEPRELOAD_DEBUG_HTTP') == '1':
    logging.getLogger('urllib3').setLevel(logging.DEBUG)

logger = structlog.get_logger()
