"""The PettyCash QApplication.

:class:`Application` names the process after the configured ledger, applies the theme and
closes the shared HTTP session when the event loop ends.
"""
import ctypes
import logging
import sys
import uuid
from typing import Optional, Sequence

from PySide6 import QtCore, QtWidgets

from .. import __version__


def set_model_id() -> None:
    """Gives the process its own AppUserModelID so Windows groups its windows under one icon.

    No-op on other platforms.
    """
    if QtCore.QSysInfo().productType() not in ('windows', 'winrt'):
        return

    model_id = f'PettyCash-{uuid.uuid4()}'
    hresult = ctypes.windll.shell32.SetCurrentProcessExplicitAppUserModelID(model_id)
    if hresult != 0:
        raise RuntimeError(f'SetCurrentProcessExplicitAppUserModelID failed with code {hresult}')


class Application(QtWidgets.QApplication):

    def __init__(self, argv: Optional[Sequence[str]] = None) -> None:
        super().__init__(list(sys.argv if argv is None else argv))
        set_model_id()

        from ..settings import lib
        self.setApplicationName(lib.app_name)
        self.setApplicationDisplayName(lib.settings['name'] or lib.app_name)
        self.setOrganizationName('')
        self.setApplicationVersion(__version__)
        self.setQuitOnLastWindowClosed(True)

        from . import ui
        ui.apply_theme()

        self._connect_signals()

    def _connect_signals(self) -> None:
        from .actions import signals
        signals.metadataChanged.connect(self.on_metadata_changed)
        self.aboutToQuit.connect(self.on_about_to_quit)

    @QtCore.Slot(str, object)
    def on_metadata_changed(self, key: str, value: object) -> None:
        if key != 'name':
            return

        from ..settings import lib
        self.setApplicationDisplayName(str(value or '') or lib.app_name)

    @QtCore.Slot()
    def on_about_to_quit(self) -> None:
        from ..core import service
        service.clear_session()
        logging.debug('Application quitting, HTTP session closed.')
