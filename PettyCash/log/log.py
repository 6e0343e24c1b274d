"""Logging setup for PettyCash.

Records go to stdout and to an in-memory :class:`TankHandler` the log viewer reads from.
Qt's own diagnostics are routed through the same root logger.
"""
import logging
import sys

from PySide6.QtCore import QtMsgType, qInstallMessageHandler

from ..ui.actions import signals

LOG_LEVEL = logging.DEBUG
LOG_FORMAT = '[%(asctime)s] <%(module)s> %(levelname)s:  %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

#: Oldest records are dropped once the tank holds this many
TANK_SIZE = 5000

LEVELS = (
    logging.DEBUG,
    logging.INFO,
    logging.WARNING,
    logging.ERROR,
    logging.CRITICAL,
)

QT_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}

#: Third-party loggers that flood DEBUG with connection chatter
QUIET_LOGGERS = ('urllib3', 'requests')


def set_logging_level(level):
    """Applies ``level`` to the root logger and all of its handlers.

    Raises:
        ValueError: If ``level`` is not one of the standard integer levels.
    """
    if not isinstance(level, int) or level not in LEVELS:
        raise ValueError(f'Invalid logging level: {level!r}. Use one of the standard levels, e.g. logging.INFO.')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def qt_message_handler(mode, context, message):
    """Forwards a Qt message to the ``Qt`` logger. A fatal message exits the process."""
    level = QT_LEVELS.get(mode, logging.INFO)
    logging.getLogger('Qt').log(level, message.strip())

    if mode == QtMsgType.QtFatalMsg:
        sys.exit(1)


def setup_logging(enable_stream_handler=True, enable_qt_handler=True, log_level=LOG_LEVEL):
    """Installs the PettyCash handlers on the root logger.

    Previously installed root handlers are removed first, so calling this again is safe.

    Args:
        enable_stream_handler (bool): Echo records to stdout.
        enable_qt_handler (bool): Install :func:`qt_message_handler`.
        log_level (int): Level of the root logger and of every handler.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    handlers = [TankHandler()]
    if enable_stream_handler:
        handlers.insert(0, logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    if enable_qt_handler:
        qInstallMessageHandler(qt_message_handler)


def get_handler():
    """Returns the TankHandler installed on the root logger, or None."""
    for handler in logging.getLogger().handlers:
        if isinstance(handler, TankHandler):
            return handler
    return None


class TankHandler(logging.Handler):
    """Keeps formatted records in memory for the log viewer.

    ``tank`` holds ``(levelno, message)`` tuples, oldest first, and never grows past
    ``max_size``. An ERROR or CRITICAL record also emits ``signals.showLogs``.
    """

    def __init__(self, max_size=TANK_SIZE):
        super().__init__()
        self.max_size = max_size
        self.tank = []

    def emit(self, record):
        try:
            self.tank.append((record.levelno, self.format(record)))
            overflow = len(self.tank) - self.max_size
            if overflow > 0:
                del self.tank[:overflow]

            if record.levelno >= logging.ERROR:
                signals.showLogs.emit()
        except (Exception, KeyboardInterrupt):
            self.handleError(record)

    def get_logs(self, level=logging.NOTSET):
        """Returns the stored messages at or above ``level``."""
        return [msg for lvl, msg in self.tank if lvl >= level]

    def clear_logs(self):
        self.tank.clear()
