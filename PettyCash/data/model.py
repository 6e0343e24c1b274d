"""Qt table model displaying a pandas DataFrame."""
import logging
from typing import Any, List, Optional, Sequence, Tuple

import pandas as pd
from PySide6 import QtCore, QtGui

from ..settings import lib
from ..settings import locale
from ..ui import ui

TINTED_COLUMNS = {
    'incoming': ui.Color.Positive,
    'outgoing': ui.Color.Negative,
}


class DataFrameModel(QtCore.QAbstractTableModel):
    """
    Read-only table model over a DataFrame.

    Args:
        columns: (key, title) pairs of the frame columns to show, in display order.
        amount_columns: Keys formatted as currency.
        ratio_columns: Keys formatted as percentages.
        parent: Parent object.
    """

    def __init__(self, columns: Sequence[Tuple[str, str]], amount_columns: Sequence[str] = (),
                 ratio_columns: Sequence[str] = (), parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent=parent)

        self._columns: List[Tuple[str, str]] = list(columns)
        self._amount_columns = set(amount_columns)
        self._ratio_columns = set(ratio_columns)
        self._df: pd.DataFrame = pd.DataFrame(columns=[k for k, _ in self._columns])

    @property
    def frame(self) -> pd.DataFrame:
        return self._df

    @QtCore.Slot(pd.DataFrame)
    def set_frame(self, df: pd.DataFrame) -> None:
        """Replaces the displayed data."""
        self.beginResetModel()
        try:
            missing = [k for k, _ in self._columns if k not in df.columns]
            if missing:
                logging.error(f'Frame is missing columns: {missing}')
                self._df = pd.DataFrame(columns=[k for k, _ in self._columns])
                return
            self._df = df.reset_index(drop=True)
        finally:
            self.endResetModel()

    @QtCore.Slot()
    def clear_data(self) -> None:
        self.set_frame(pd.DataFrame(columns=[k for k, _ in self._columns]))

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._df)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._columns)

    def format_value(self, key: str, value: Any) -> str:
        """Returns the display text of a value."""
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return ''
        if isinstance(value, pd.Timestamp):
            return value.strftime('%d/%m/%Y')
        if key in self._amount_columns:
            return locale.format_currency_value(float(value), lib.settings['locale'] or 'en_IN')
        if key in self._ratio_columns:
            return f'{float(value):.1%}'
        return f'{value}'

    def tint(self, key: str, value: Any) -> Optional[QtGui.QColor]:
        """Returns the color of a non-zero incoming or outgoing amount, or None."""
        if key not in TINTED_COLUMNS or key not in self._amount_columns:
            return None
        if value is None or pd.isna(value) or float(value) == 0:
            return None
        return TINTED_COLUMNS[key]()

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if not index.isValid() or index.row() >= len(self._df):
            return None

        key = self._columns[index.column()][0]
        value = self._df.iloc[index.row()][key]

        if role in (QtCore.Qt.DisplayRole, QtCore.Qt.ToolTipRole):
            return self.format_value(key, value)
        if role == QtCore.Qt.EditRole:
            return value
        if role == QtCore.Qt.ForegroundRole:
            return self.tint(key, value)
        if role == QtCore.Qt.TextAlignmentRole:
            if key in self._amount_columns or key in self._ratio_columns:
                return QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter
            return QtCore.Qt.AlignLeft | QtCore.Qt.AlignVCenter
        return None

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation,
                   role: int = QtCore.Qt.DisplayRole) -> Any:
        if role != QtCore.Qt.DisplayRole:
            return None
        if orientation == QtCore.Qt.Horizontal:
            if 0 <= section < len(self._columns):
                return self._columns[section][1]
            return None
        return f'{section + 1}'
