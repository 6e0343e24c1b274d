"""UI styling utilities and the progress dialog for PettyCash.

This module provides:
    - Theme: supported UI themes (light, dark)
    - Size: standardized size constants
    - Color: standardized color palette for widgets and themes
    - init_stylesheet / apply_theme: expand and apply the stylesheet template
    - ProgressDialog: modal dialog shown while a network call runs
"""
import enum
import logging
import os
import re
from typing import Optional

from PySide6 import QtWidgets, QtGui, QtCore


class Theme(enum.StrEnum):
    Light = 'light'
    Dark = 'dark'


class Size(enum.Enum):
    """Enumeration of size values used for UI scaling."""
    SmallText = 11.0
    MediumText = 12.0
    LargeText = 16.0
    Indicator = 4.0
    Separator = 1.0
    Margin = 18.0
    RowHeight = 34.0
    DefaultWidth = 640.0
    DefaultHeight = 480.0

    def __call__(self, multiplier: float = 1.0) -> int:
        """Returns the size multiplied and rounded to whole pixels."""
        return round(self.value * float(multiplier))


class Color(enum.Enum):
    """Theme-aware palette. ``Positive`` and ``Negative`` tint money coming in and going out."""

    Window = {
        Theme.Light.value: (248, 247, 244),
        Theme.Dark.value: (28, 29, 31),
    }
    Surface = {
        Theme.Light.value: (236, 234, 228),
        Theme.Dark.value: (42, 44, 47),
    }
    Border = {
        Theme.Light.value: (200, 197, 189),
        Theme.Dark.value: (70, 73, 78),
    }
    Muted = {
        Theme.Light.value: (130, 128, 122),
        Theme.Dark.value: (128, 131, 136),
    }
    SecondaryText = {
        Theme.Light.value: (82, 80, 76),
        Theme.Dark.value: (176, 179, 184),
    }
    Text = {
        Theme.Light.value: (30, 30, 30),
        Theme.Dark.value: (225, 225, 225),
    }
    Accent = {
        Theme.Light.value: (38, 92, 150),
        Theme.Dark.value: (104, 156, 210),
    }
    Negative = {
        Theme.Light.value: (176, 58, 46),
        Theme.Dark.value: (232, 112, 98),
    }
    Positive = {
        Theme.Light.value: (34, 128, 74),
        Theme.Dark.value: (96, 196, 134),
    }

    @classmethod
    def _get_theme(cls) -> str:
        from ..settings import lib
        theme = lib.settings['theme']
        if theme not in Theme.__members__.values():
            return Theme.Light.value
        return theme

    def __call__(self, qss: bool = False):
        """Returns the color for the current theme, as a QColor or as a QSS ``rgba()`` string."""
        color = QtGui.QColor(*self.value[self._get_theme()])
        if not qss:
            return color
        return self.rgb(color)

    @staticmethod
    def rgb(color: QtGui.QColor) -> str:
        return f'rgba({",".join(str(f) for f in color.getRgb())})'


def init_stylesheet() -> str:
    """Loads the stylesheet template and expands its ``<token>`` placeholders.

    Tokens are color names (``<Text>``) and sizes with a multiplier (``<Margin@0.5>``).

    Returns:
        str: The style sheet.

    Raises:
        FileNotFoundError: If the stylesheet template is missing.
        KeyError: If the template references an unknown token.
    """
    from ..settings import lib
    if not lib.settings.stylesheet_path.is_file():
        raise FileNotFoundError(f'Style sheet file not found: {lib.settings.stylesheet_path}')

    with open(lib.settings.stylesheet_path, 'r', encoding='utf-8') as f:
        qss = f.read()

    kwargs = {}
    for c in Color:
        kwargs[c.name] = Color.rgb(c())

    def _expand(match: re.Match) -> str:
        key = match.group(1)
        if '@' in key:
            name, multiplier = key.split('@', 1)
            if name not in Size.__members__:
                raise KeyError(f'Key {key} not found!')
            return str(Size[name](float(multiplier)))
        if key not in kwargs:
            raise KeyError(f'Key {key} not found!')
        return kwargs[key]

    return re.sub(r'<(.*?)>', _expand, qss)


def apply_theme() -> None:
    """Set the style sheet for the entire app.

    This function should be called after the QApplication is created.
    """
    if not QtWidgets.QApplication.instance():
        raise RuntimeError('apply_theme() must be called after a QApplication is initiated.')

    if os.environ.get('PETTYCASH_DISABLE_STYLESHEET', '').lower() in ['1', 'true', 'yes']:
        logging.warning('Stylesheet disabled by environment variable.')
        return

    qss = init_stylesheet()
    QtWidgets.QApplication.instance().setStyleSheet(qss)


class ProgressDialog(QtWidgets.QDialog):
    """
    Modal dialog shown while an asynchronous operation runs.

    There is no cancel button: the operation finishes, fails or times out.

    Args:
        total_timeout (int): Seconds before the operation is given up.
        status_text (str): Label describing the operation.
        parent: Parent widget.
    """

    def __init__(self, total_timeout: int, status_text: str = 'Loading data.',
                 parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)

        self.setWindowTitle('Please wait')
        self.setModal(True)
        self.setWindowFlag(QtCore.Qt.WindowCloseButtonHint, False)

        self._total_timeout = total_timeout
        self._elapsed = 0

        self.status_label: Optional[QtWidgets.QLabel] = None
        self.time_label: Optional[QtWidgets.QLabel] = None
        self.progress_bar: Optional[QtWidgets.QProgressBar] = None

        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(1000)

        self._create_ui()
        self._connect_signals()

        self.set_status(status_text)

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = Size.Margin(1.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(Size.Indicator(2.0))

        self.status_label = QtWidgets.QLabel(self)
        self.status_label.setWordWrap(True)
        self.layout().addWidget(self.status_label)

        self.progress_bar = QtWidgets.QProgressBar(self)
        self.progress_bar.setRange(0, 0)
        self.progress_bar.setTextVisible(False)
        self.layout().addWidget(self.progress_bar)

        self.time_label = QtWidgets.QLabel(self)
        self.time_label.setStyleSheet(f'color: {Color.SecondaryText(qss=True)};')
        self.layout().addWidget(self.time_label)

    def _connect_signals(self) -> None:
        self._timer.timeout.connect(self._tick)

    def set_status(self, text: str) -> None:
        self.status_label.setText(text)

    @QtCore.Slot()
    def _tick(self) -> None:
        self._elapsed += 1
        remaining = max(self._total_timeout - self._elapsed, 0)
        self.time_label.setText(f'Timing out in {remaining}s')

    def open(self) -> None:
        self._elapsed = 0
        self.time_label.setText('')
        self._timer.start()
        super().open()

    def done(self, result: int) -> None:
        self._timer.stop()
        super().done(result)

    def keyPressEvent(self, event: QtGui.QKeyEvent) -> None:
        # The dialog cannot be dismissed while the operation runs
        if event.key() == QtCore.Qt.Key_Escape:
            event.ignore()
            return
        super().keyPressEvent(event)

    def sizeHint(self) -> QtCore.QSize:
        return QtCore.QSize(Size.DefaultWidth(0.5), Size.RowHeight(3.0))
