"""Application-wide Qt signals for PettyCash.

:data:`signals` is the one place widgets and the core modules meet. The core modules emit on it
after a fetch or a write, and widgets listen. Writes never update cached data in place. They
request a fresh read instead.
"""
import logging

import pandas
from PySide6 import QtCore, QtGui

SPREADSHEET_URL = 'https://docs.google.com/spreadsheets/d/{id}/edit'


def spreadsheet_url() -> str:
    """Returns the browser URL of the configured spreadsheet.

    Raises:
        status.ConfigInvalidError: If no spreadsheet id is configured.
    """
    from ..settings import lib
    from ..status import status

    spreadsheet_id = (lib.settings.get_section('spreadsheet').get('id') or '').strip()
    if not spreadsheet_id:
        raise status.ConfigInvalidError('No spreadsheet id is configured.')
    return SPREADSHEET_URL.format(id=spreadsheet_id)


@QtCore.Slot()
def open_spreadsheet() -> None:
    url = spreadsheet_url()
    logging.debug(f'Opening spreadsheet: {url}')
    QtGui.QDesktopServices.openUrl(QtCore.QUrl(url))


class Signals(QtCore.QObject):
    initializationRequested = QtCore.Signal()

    configSectionChanged = QtCore.Signal(str)
    metadataChanged = QtCore.Signal(str, object)

    # The new Session, or None after logout
    sessionChanged = QtCore.Signal(object)

    optionsFetchRequested = QtCore.Signal()
    optionsFetched = QtCore.Signal(object)
    optionsInvalidated = QtCore.Signal()

    transactionsFetchRequested = QtCore.Signal()
    transactionsFetched = QtCore.Signal(pandas.DataFrame)
    transactionSubmitted = QtCore.Signal(list)

    openSpreadsheet = QtCore.Signal()
    showLogs = QtCore.Signal()

    error = QtCore.Signal(str)

    def __init__(self):
        super().__init__()

        self.openSpreadsheet.connect(open_spreadsheet)
        self.metadataChanged.connect(self.on_metadata_changed)

        self.optionsInvalidated.connect(self.optionsFetchRequested)
        self.transactionSubmitted.connect(self.on_transaction_submitted)

    @QtCore.Slot(list)
    def on_transaction_submitted(self, row: list) -> None:
        self.transactionsFetchRequested.emit()

    @QtCore.Slot(str, object)
    def on_metadata_changed(self, key: str, value: object) -> None:
        if key != 'theme':
            return

        from . import ui
        ui.apply_theme()


signals = Signals()
