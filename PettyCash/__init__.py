"""
PettyCash: desktop application for recording and reviewing petty-cash expenses kept in a
Google spreadsheet.

This package provides:

- :mod:`PettyCash.core` – Spreadsheet reads and writes, login and the persisted session.
- :mod:`PettyCash.data` – Dashboard statistics, reports and Qt table models.
- :mod:`PettyCash.ui` – A PySide6-based UI with login, entry form, dashboard and reports.
- :mod:`PettyCash.settings` – Settings management, schema validation and locale formatting.
- :mod:`PettyCash.log` – In-app logging with a log viewer.

Use :func:`PettyCash.exec_` to launch the application.
"""

import sys

from PySide6 import QtCore

# Fail on Python < 3.11
if not (sys.version_info.major == 3 and sys.version_info.minor >= 11):
    raise RuntimeError('PettyCash requires Python 3.11 or higher.')

__version__ = '0.1.0'
__description__ = 'PettyCash: desktop application for recording petty-cash expenses in Google Sheets.'

from .log import log

log.setup_logging()


def exec_() -> None:
    """Launch the PettyCash GUI application and enter its event loop.

    Initializes the QApplication, restores the session or asks for a login, shows the main
    window and starts the Qt event loop.
    """
    from .ui import app
    from .ui import main
    from .ui.actions import signals
    app = app.Application(sys.argv)

    if main.show() is None:
        sys.exit(0)

    QtCore.QTimer.singleShot(100, signals.initializationRequested)

    sys.exit(app.exec())


if __name__ == '__main__':
    exec_()
