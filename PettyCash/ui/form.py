"""Transaction entry form.

This module provides:
    - AddValueDialog: asks for a new dropdown value and saves it to the master sheet
    - TransactionForm: the entry form backed by the dropdown option sets
"""
import logging
from typing import Callable, Dict, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from . import ui
from .actions import signals
from ..core import auth, service, writer
from ..core.tabular import DropdownOptions
from ..status import status


class AddValueDialog(QtWidgets.QDialog):
    """Dialog for adding a new value to a dropdown.

    Args:
        title (str): The name of the dropdown, e.g. 'Group Head'.
        add_func (callable): Called with the entered value. It performs the write.
        parent: Parent widget.
    """

    def __init__(self, title: str, add_func: Callable[[str], object],
                 parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setWindowTitle(f'Add {title}')
        self.setModal(True)

        self._add_func = add_func
        self.value: str = ''

        self.editor: Optional[QtWidgets.QLineEdit] = None
        self.error_label: Optional[QtWidgets.QLabel] = None
        self.button_box: Optional[QtWidgets.QDialogButtonBox] = None

        self._create_ui(title)
        self._connect_signals()

    def _create_ui(self, title: str) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(1.0)
        self.layout().setContentsMargins(o, o, o, o)

        self.editor = QtWidgets.QLineEdit(self)
        self.editor.setPlaceholderText(f'New {title.lower()}')
        self.layout().addWidget(self.editor)

        self.error_label = QtWidgets.QLabel(self)
        self.error_label.setObjectName('ErrorLabel')
        self.error_label.setWordWrap(True)
        self.error_label.setHidden(True)
        self.layout().addWidget(self.error_label)

        self.button_box = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.Save | QtWidgets.QDialogButtonBox.Cancel, parent=self)
        self.layout().addWidget(self.button_box)

    def _connect_signals(self) -> None:
        self.button_box.accepted.connect(self.save)
        self.button_box.rejected.connect(self.reject)

    @QtCore.Slot()
    def save(self) -> None:
        value = self.editor.text()
        try:
            self._add_func(value)
        except status.BaseStatusException as ex:
            self.error_label.setText(ex.message)
            self.error_label.setHidden(False)
            return

        self.value = value.strip()
        self.accept()


class TransactionForm(QtWidgets.QWidget):
    """The transaction entry form.

    A user's own name is pre-filled and locked. Administrators choose from the person names and
    may add new ones.

    Args:
        session: The signed-in session.
        parent: Parent widget.
    """

    def __init__(self, session: auth.Session, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.session = session
        self.options: Optional[DropdownOptions] = None

        self.person_combo: Optional[QtWidgets.QComboBox] = None
        self.date_editor: Optional[QtWidgets.QDateEdit] = None
        self.incoming_editor: Optional[QtWidgets.QLineEdit] = None
        self.outgoing_editor: Optional[QtWidgets.QLineEdit] = None
        self.mode_combo: Optional[QtWidgets.QComboBox] = None
        self.group_head_combo: Optional[QtWidgets.QComboBox] = None
        self.reason_combo: Optional[QtWidgets.QComboBox] = None
        self.attachment_editor: Optional[QtWidgets.QLineEdit] = None
        self.message_label: Optional[QtWidgets.QLabel] = None
        self.browse_button: Optional[QtWidgets.QPushButton] = None
        self.submit_button: Optional[QtWidgets.QPushButton] = None

        self.add_buttons: Dict[str, QtWidgets.QPushButton] = {}

        self._create_ui()
        self._connect_signals()
        self.reset()

    def _add_button(self, key: str) -> QtWidgets.QPushButton:
        button = QtWidgets.QPushButton('+', self)
        button.setFixedWidth(ui.Size.RowHeight(1.0))
        self.add_buttons[key] = button
        return button

    def _combo_row(self, combo: QtWidgets.QComboBox, key: Optional[str] = None) -> QtWidgets.QWidget:
        widget = QtWidgets.QWidget(self)
        QtWidgets.QHBoxLayout(widget)
        widget.layout().setContentsMargins(0, 0, 0, 0)
        widget.layout().addWidget(combo, 1)
        if key:
            widget.layout().addWidget(self._add_button(key))
        return widget

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(1.0)
        self.layout().setContentsMargins(o, o, o, o)

        form = QtWidgets.QFormLayout()

        self.person_combo = QtWidgets.QComboBox(self)
        form.addRow('Person Name', self._combo_row(self.person_combo, 'person_name'))

        self.date_editor = QtWidgets.QDateEdit(self)
        self.date_editor.setCalendarPopup(True)
        self.date_editor.setDisplayFormat('dd/MM/yyyy')
        form.addRow('Date', self.date_editor)

        self.incoming_editor = QtWidgets.QLineEdit(self)
        self.incoming_editor.setValidator(amount_validator(self))
        self.incoming_editor.setPlaceholderText('0')
        form.addRow('Incoming', self.incoming_editor)

        self.outgoing_editor = QtWidgets.QLineEdit(self)
        self.outgoing_editor.setValidator(amount_validator(self))
        self.outgoing_editor.setPlaceholderText('0')
        form.addRow('Outgoing', self.outgoing_editor)

        self.mode_combo = QtWidgets.QComboBox(self)
        form.addRow('Mode', self._combo_row(self.mode_combo))

        self.group_head_combo = QtWidgets.QComboBox(self)
        form.addRow('Group Head', self._combo_row(self.group_head_combo, 'group_head'))

        self.reason_combo = QtWidgets.QComboBox(self)
        form.addRow('Reason', self._combo_row(self.reason_combo, 'reason'))

        widget = QtWidgets.QWidget(self)
        QtWidgets.QHBoxLayout(widget)
        widget.layout().setContentsMargins(0, 0, 0, 0)
        self.attachment_editor = QtWidgets.QLineEdit(self)
        self.attachment_editor.setPlaceholderText('Optional photo or receipt')
        widget.layout().addWidget(self.attachment_editor, 1)
        self.browse_button = QtWidgets.QPushButton('Browse', self)
        widget.layout().addWidget(self.browse_button)
        form.addRow('Attachment', widget)

        self.layout().addLayout(form)

        self.message_label = QtWidgets.QLabel(self)
        self.message_label.setWordWrap(True)
        self.layout().addWidget(self.message_label)

        self.submit_button = QtWidgets.QPushButton('Submit', self)
        self.layout().addWidget(self.submit_button)
        self.layout().addStretch(1)

        # Only administrators may choose or add person names
        self.person_combo.setEnabled(self.session.is_admin)
        self.add_buttons['person_name'].setHidden(not self.session.is_admin)

    def _connect_signals(self) -> None:
        signals.optionsFetchRequested.connect(self.fetch_options)
        signals.optionsFetched.connect(self.set_options)

        self.add_buttons['person_name'].clicked.connect(
            lambda: self.add_value('Person Name', lambda v: writer.add_person_name(v, self.session)))
        self.add_buttons['group_head'].clicked.connect(
            lambda: self.add_value('Group Head', writer.add_group_head))
        self.add_buttons['reason'].clicked.connect(
            lambda: self.add_value('Reason', writer.add_reason))

        self.browse_button.clicked.connect(self.browse_attachment)
        self.submit_button.clicked.connect(self.submit)

    def set_message(self, message: str, error: bool = False) -> None:
        self.message_label.setStyleSheet(
            f'color: {(ui.Color.Negative if error else ui.Color.Positive)(qss=True)};')
        self.message_label.setText(message)

    @QtCore.Slot()
    def fetch_options(self) -> None:
        """Re-reads the option sets. The form is updated through ``signals.optionsFetched``."""
        try:
            service.fetch_options()
        except status.BaseStatusException as ex:
            self.set_message(ex.message, error=True)

    @staticmethod
    def _fill(combo: QtWidgets.QComboBox, values, placeholder: str) -> None:
        current = combo.currentText()
        combo.blockSignals(True)
        combo.clear()
        combo.addItem(placeholder, userData='')
        for v in values:
            combo.addItem(v, userData=v)
        idx = combo.findData(current)
        combo.setCurrentIndex(max(idx, 0))
        combo.blockSignals(False)

    @QtCore.Slot(object)
    def set_options(self, options: DropdownOptions) -> None:
        """Fills the dropdowns from the option sets."""
        self.options = options

        if self.session.is_admin:
            self._fill(self.person_combo, options.person_name, 'Select Person')
        else:
            self.person_combo.clear()
            self.person_combo.addItem(self.session.name, userData=self.session.name)

        self._fill(self.mode_combo, options.mode, 'Select Mode')
        self._fill(self.group_head_combo, options.group_head, 'Select Group Head')
        self._fill(self.reason_combo, options.reason, 'Select Reason')

    def add_value(self, title: str, add_func: Callable[[str], object]) -> None:
        dialog = AddValueDialog(title, add_func, parent=self)
        if dialog.exec() != QtWidgets.QDialog.Accepted:
            return
        self.set_message(f'Added "{dialog.value}".')

    @QtCore.Slot()
    def browse_attachment(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, 'Select Attachment', '', 'Images and documents (*.png *.jpg *.jpeg *.pdf);;All files (*)')
        if path:
            self.attachment_editor.setText(path)

    def entry(self) -> writer.TransactionEntry:
        """Returns the entry currently filled in."""
        return writer.TransactionEntry(
            person_name=self.person_combo.currentData() or '',
            date=self.date_editor.date().toPython(),
            incoming=self.incoming_editor.text(),
            outgoing=self.outgoing_editor.text(),
            mode=self.mode_combo.currentData() or '',
            group_head=self.group_head_combo.currentData() or '',
            reason=self.reason_combo.currentData() or '',
            attachment=self.attachment_editor.text().strip() or None,
        )

    @QtCore.Slot()
    def submit(self) -> None:
        try:
            row = writer.submit_transaction(self.entry(), self.session)
        except status.BaseStatusException as ex:
            self.set_message(ex.message, error=True)
            return

        logging.debug(f'Submitted row: {row}')
        self.reset()
        self.set_message('Entry submitted successfully.')

    def reset(self) -> None:
        """Clears the entered values."""
        self.date_editor.setDate(QtCore.QDate.currentDate())
        self.incoming_editor.clear()
        self.outgoing_editor.clear()
        self.attachment_editor.clear()
        for combo in (self.mode_combo, self.group_head_combo, self.reason_combo):
            combo.setCurrentIndex(0)
        if self.session.is_admin:
            self.person_combo.setCurrentIndex(0)
        elif self.person_combo.count() == 0:
            self.person_combo.addItem(self.session.name, userData=self.session.name)


def amount_validator(parent: QtCore.QObject) -> QtGui.QDoubleValidator:
    """Returns a validator accepting non-negative amounts with two decimals."""
    validator = QtGui.QDoubleValidator(0.0, 1e12, 2, parent)
    validator.setNotation(QtGui.QDoubleValidator.StandardNotation)
    return validator
