"""Log viewer dialog listing the messages held by the in-memory TankHandler.

This module provides:
    - LogDialog: dialog with a level filter, clear action and periodic refresh
"""
import logging
from typing import Optional

from PySide6 import QtCore, QtWidgets

from . import log
from ..ui import ui

LEVELS = [
    ('Debug', logging.DEBUG),
    ('Info', logging.INFO),
    ('Warning', logging.WARNING),
    ('Error', logging.ERROR),
    ('Critical', logging.CRITICAL),
]


class LogDialog(QtWidgets.QDialog):
    """Dialog for viewing app logs."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setWindowTitle('Logs')
        self.setObjectName('PettyCashLogDialog')

        self.level_combo: Optional[QtWidgets.QComboBox] = None
        self.text: Optional[QtWidgets.QPlainTextEdit] = None
        self.clear_button: Optional[QtWidgets.QPushButton] = None

        self._count = -1

        self._refresh_timer = QtCore.QTimer(self)
        self._refresh_timer.setInterval(500)

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Indicator(2.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(o)

        row = QtWidgets.QHBoxLayout()
        row.addWidget(QtWidgets.QLabel('Show', self))

        self.level_combo = QtWidgets.QComboBox(self)
        for name, level in LEVELS:
            self.level_combo.addItem(name, userData=level)
        row.addWidget(self.level_combo)
        row.addStretch(1)

        self.clear_button = QtWidgets.QPushButton('Clear Logs', self)
        row.addWidget(self.clear_button)
        self.layout().addLayout(row)

        self.text = QtWidgets.QPlainTextEdit(self)
        self.text.setReadOnly(True)
        self.text.setLineWrapMode(QtWidgets.QPlainTextEdit.NoWrap)
        self.layout().addWidget(self.text, 1)

    def _connect_signals(self) -> None:
        self.level_combo.currentIndexChanged.connect(self.reload)
        self.clear_button.clicked.connect(self.clear_logs)
        self._refresh_timer.timeout.connect(self.refresh)

    def level(self) -> int:
        return self.level_combo.currentData()

    @QtCore.Slot()
    def reload(self) -> None:
        """Reloads every message at or above the selected level."""
        handler = log.get_handler()
        if handler is None:
            self.text.setPlainText('')
            return

        self._count = len(handler.tank)
        self.text.setPlainText('\n'.join(handler.get_logs(self.level())))
        self.text.verticalScrollBar().setValue(self.text.verticalScrollBar().maximum())

    @QtCore.Slot()
    def refresh(self) -> None:
        """Reloads only when new records arrived."""
        handler = log.get_handler()
        if handler is not None and len(handler.tank) != self._count:
            self.reload()

    @QtCore.Slot()
    def clear_logs(self) -> None:
        handler = log.get_handler()
        if handler is None:
            logging.warning('TankHandler not found; cannot clear logs.')
            return
        handler.clear_logs()
        self.reload()

    def showEvent(self, event) -> None:
        self.reload()
        self._refresh_timer.start()
        super().showEvent(event)

    def hideEvent(self, event) -> None:
        self._refresh_timer.stop()
        super().hideEvent(event)

    def sizeHint(self) -> QtCore.QSize:
        return QtCore.QSize(ui.Size.DefaultWidth(1.5), ui.Size.DefaultHeight(1.0))
