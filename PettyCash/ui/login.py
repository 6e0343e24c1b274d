"""Login dialog.

The user records are fetched when the dialog opens and the credentials are checked locally.
"""
from typing import List, Optional

from PySide6 import QtCore, QtWidgets

from . import ui
from ..core import auth, service
from ..status import status


class LoginDialog(QtWidgets.QDialog):
    """Dialog asking for a user id and password.

    On success the session is persisted, ``signals.sessionChanged`` is emitted and the dialog is
    accepted. The resulting session is available as :attr:`session`.
    """

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setWindowTitle('Sign in')
        self.setModal(True)

        self.users: Optional[List[auth.UserRecord]] = None
        self.session: Optional[auth.Session] = None

        self.user_id_editor: Optional[QtWidgets.QLineEdit] = None
        self.password_editor: Optional[QtWidgets.QLineEdit] = None
        self.error_label: Optional[QtWidgets.QLabel] = None
        self.login_button: Optional[QtWidgets.QPushButton] = None

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(1.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(ui.Size.Indicator(2.0))

        from ..settings import lib
        title = QtWidgets.QLabel(lib.settings['name'] or lib.app_name, self)
        title.setObjectName('StatValue')
        self.layout().addWidget(title)

        form = QtWidgets.QFormLayout()
        self.user_id_editor = QtWidgets.QLineEdit(self)
        self.user_id_editor.setPlaceholderText('Username')
        form.addRow('Username', self.user_id_editor)

        self.password_editor = QtWidgets.QLineEdit(self)
        self.password_editor.setPlaceholderText('Password')
        self.password_editor.setEchoMode(QtWidgets.QLineEdit.Password)
        form.addRow('Password', self.password_editor)
        self.layout().addLayout(form)

        self.error_label = QtWidgets.QLabel(self)
        self.error_label.setObjectName('ErrorLabel')
        self.error_label.setWordWrap(True)
        self.error_label.setHidden(True)
        self.layout().addWidget(self.error_label)

        self.login_button = QtWidgets.QPushButton('Login', self)
        self.login_button.setDefault(True)
        self.layout().addWidget(self.login_button)

    def _connect_signals(self) -> None:
        self.login_button.clicked.connect(self.login)
        self.password_editor.returnPressed.connect(self.login)

    def set_error(self, message: str) -> None:
        self.error_label.setText(message)
        self.error_label.setHidden(not message)

    @QtCore.Slot()
    def load_users(self) -> None:
        """Fetches the user records."""
        try:
            self.users = service.fetch_users()
        except status.BaseStatusException as ex:
            self.users = None
            self.set_error(ex.message)

    @QtCore.Slot()
    def login(self) -> None:
        """Checks the entered credentials and accepts the dialog on success."""
        self.set_error('')

        if self.users is None:
            self.load_users()
            if self.users is None:
                return

        try:
            session = auth.login(self.user_id_editor.text(), self.password_editor.text(), users=self.users)
        except (status.ValidationError, status.AuthenticationError) as ex:
            self.set_error(ex.message)
            self.password_editor.clear()
            return

        self.session = session
        self.accept()

    def showEvent(self, event) -> None:
        super().showEvent(event)
        if self.users is None:
            QtCore.QTimer.singleShot(0, self.load_users)
