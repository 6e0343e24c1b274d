"""Main window composition.

The window shows one tab per page the session may access. Startup restores the persisted
session, or asks for a login when there is none.
"""
import logging
from typing import Dict, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from . import ui
from .actions import signals
from .dashboard import DashboardWidget
from .form import TransactionForm
from .login import LoginDialog
from .reports import ReportsWidget
from ..core import auth
from ..log.view import LogDialog
from ..settings.lib import app_name

widget: Optional['MainWindow'] = None

PAGE_WIDGETS = [
    (auth.Page.Dashboard, 'Dashboard', DashboardWidget),
    (auth.Page.Form, 'Add Entry', TransactionForm),
    (auth.Page.Reports, 'Reports', ReportsWidget),
]


def show() -> Optional['MainWindow']:
    """Shows the main window for the persisted session, or the login dialog first.

    Returns:
        The main window, or None if the login was cancelled.
    """
    global widget

    session = auth.load_session()
    if session is None:
        dialog = LoginDialog()
        if dialog.exec() != QtWidgets.QDialog.Accepted:
            logging.debug('Login cancelled.')
            return None
        session = dialog.session

    if widget is None:
        widget = MainWindow(session)
    else:
        widget.set_session(session)

    widget.show()
    return widget


class MainWindow(QtWidgets.QMainWindow):
    """Tabbed main window for a signed-in session."""

    def __init__(self, session: auth.Session, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('PettyCashMainWindow')
        self.setContextMenuPolicy(QtCore.Qt.ActionsContextMenu)

        self.session: auth.Session = session

        self.toolbar: Optional[QtWidgets.QToolBar] = None
        self.tabs: Optional[QtWidgets.QTabWidget] = None
        self.user_label: Optional[QtWidgets.QLabel] = None
        self.log_dialog: Optional[LogDialog] = None
        self.pages: Dict[auth.Page, QtWidgets.QWidget] = {}

        self._create_ui()
        self._init_actions()
        self._connect_signals()
        self.load_window_settings()

        self.set_session(session)

    def _create_ui(self) -> None:
        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QVBoxLayout(central)
        margin = ui.Size.Margin(0.5)
        layout.setContentsMargins(margin, 0, margin, margin)
        self.setCentralWidget(central)

        self.toolbar = QtWidgets.QToolBar(self)
        self.toolbar.setObjectName('PettyCashActionToolBar')
        self.toolbar.setMovable(False)
        self.addToolBar(self.toolbar)

        self.tabs = QtWidgets.QTabWidget(central)
        layout.addWidget(self.tabs, 1)

        self.user_label = QtWidgets.QLabel(self)
        self.log_dialog = LogDialog(parent=self)

    def _init_actions(self) -> None:
        def _spacer() -> QtWidgets.QWidget:
            w = QtWidgets.QWidget(self)
            w.setSizePolicy(QtWidgets.QSizePolicy.Expanding, QtWidgets.QSizePolicy.Maximum)
            return w

        action_configs = [
            {
                'label': 'Open Spreadsheet',
                'trigger': signals.openSpreadsheet,
                'shortcut': 'Ctrl+Shift+O'
            },
            {
                'label': 'Refresh Data',
                'trigger': self.refresh,
                'shortcut': 'F5'
            },
            {'widget_action': lambda: self.toolbar.addWidget(_spacer())},
            {'widget_action': lambda: self.toolbar.addWidget(self.user_label)},
            {
                'label': 'Logs',
                'trigger': signals.showLogs,
                'shortcut': 'Ctrl+L'
            },
            {
                'label': 'Logout',
                'trigger': self.logout,
            },
        ]

        for cfg in action_configs:
            if 'widget_action' in cfg:
                cfg['widget_action']()
                continue

            action = QtGui.QAction(cfg['label'], self)
            action.triggered.connect(cfg['trigger'])
            if 'shortcut' in cfg:
                action.setShortcut(cfg['shortcut'])
                action.setShortcutContext(QtCore.Qt.ApplicationShortcut)

            self.toolbar.addAction(action)
            self.addAction(action)
            logging.debug(f'Added action: {cfg["label"]}')

    def _connect_signals(self) -> None:
        signals.initializationRequested.connect(self.refresh)
        signals.showLogs.connect(self.show_logs)
        signals.sessionChanged.connect(self.on_session_changed)
        signals.metadataChanged.connect(self.on_metadata_changed)

    @QtCore.Slot()
    def show_logs(self) -> None:
        self.log_dialog.show()
        self.log_dialog.raise_()

    def update_title(self) -> None:
        from ..settings import lib
        self.setWindowTitle(lib.settings['name'] or app_name)

    def set_session(self, session: auth.Session) -> None:
        """Rebuilds the tabs for the pages the session may access."""
        self.session = session
        self.user_label.setText(f'{session.name} ({session.role})')
        self.update_title()

        while self.tabs.count():
            w = self.tabs.widget(0)
            self.tabs.removeTab(0)
            w.deleteLater()
        self.pages.clear()

        for page, label, cls in PAGE_WIDGETS:
            if not session.can_access(page):
                continue
            w = cls(session, parent=self.tabs)
            self.pages[page] = w
            self.tabs.addTab(w, label)

        if not self.pages:
            label = QtWidgets.QLabel('No pages are available for this account.', self.tabs)
            label.setAlignment(QtCore.Qt.AlignCenter)
            self.tabs.addTab(label, 'Home')

    @QtCore.Slot()
    def refresh(self) -> None:
        if auth.Page.Form in self.pages:
            signals.optionsFetchRequested.emit()
        if auth.Page.Dashboard in self.pages or auth.Page.Reports in self.pages:
            signals.transactionsFetchRequested.emit()

    @QtCore.Slot()
    def logout(self) -> None:
        auth.logout()

    @QtCore.Slot(object)
    def on_session_changed(self, session: Optional[auth.Session]) -> None:
        if session is not None:
            return

        self.hide()
        dialog = LoginDialog()
        if dialog.exec() != QtWidgets.QDialog.Accepted:
            self.close()
            return
        self.set_session(dialog.session)
        self.show()
        self.refresh()

    @QtCore.Slot(str, object)
    def on_metadata_changed(self, key: str, value: object) -> None:
        if key == 'name':
            self.update_title()

    def sizeHint(self) -> QtCore.QSize:
        return QtCore.QSize(
            ui.Size.DefaultWidth(1.5),
            ui.Size.DefaultHeight(1.5)
        )

    def closeEvent(self, event) -> None:
        """Persist window geometry on close."""
        settings = QtCore.QSettings(app_name, app_name)
        settings.setValue('MainWindow/geometry', self.saveGeometry())
        super().closeEvent(event)

    def load_window_settings(self) -> None:
        settings = QtCore.QSettings(app_name, app_name)
        geom_data = settings.value('MainWindow/geometry')
        if isinstance(geom_data, QtCore.QByteArray):
            self.restoreGeometry(geom_data)
            return

        self.resize(self.sizeHint())
        primary = QtGui.QGuiApplication.primaryScreen()
        if primary is None:
            return
        avail = primary.availableGeometry()
        self.move(avail.x() + (avail.width() - self.width()) // 2,
                  avail.y() + (avail.height() - self.height()) // 2)
