"""Reports: filtered group-head breakdown and trend tables with CSV export."""
import datetime
import logging
from typing import Optional

import pandas as pd
from PySide6 import QtCore, QtWidgets

from . import ui
from .actions import signals
from ..core import auth
from ..data import data
from ..data.model import DataFrameModel

BREAKDOWN_VIEW_COLUMNS = [
    ('group_head', 'Group Head'),
    ('total', 'Total'),
    ('transactions', 'Transactions'),
    ('weight', 'Share'),
]

TREND_VIEW_COLUMNS = [
    ('period', 'Period'),
    ('incoming', 'Incoming'),
    ('outgoing', 'Outgoing'),
    ('balance', 'Balance'),
]


def _table_view(model: QtCore.QAbstractItemModel, parent: QtWidgets.QWidget) -> QtWidgets.QTableView:
    view = QtWidgets.QTableView(parent)
    view.setModel(model)
    view.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
    view.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
    view.verticalHeader().setHidden(True)
    view.verticalHeader().setDefaultSectionSize(ui.Size.RowHeight(1.0))
    view.horizontalHeader().setStretchLastSection(True)
    return view


class ReportsWidget(QtWidgets.QWidget):
    """Filters the transaction log and shows where the money went."""

    def __init__(self, session: auth.Session, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.session = session
        self.transactions: pd.DataFrame = pd.DataFrame(columns=data.TRANSACTION_COLUMNS)
        self.filtered: pd.DataFrame = self.transactions

        self.date_from_editor: Optional[QtWidgets.QDateEdit] = None
        self.date_to_editor: Optional[QtWidgets.QDateEdit] = None
        self.group_head_combo: Optional[QtWidgets.QComboBox] = None
        self.period_combo: Optional[QtWidgets.QComboBox] = None
        self.export_button: Optional[QtWidgets.QPushButton] = None

        self.breakdown_model: Optional[DataFrameModel] = None
        self.trend_model: Optional[DataFrameModel] = None

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(1.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(ui.Size.Indicator(2.0))

        row = QtWidgets.QHBoxLayout()

        today = QtCore.QDate.currentDate()
        self.date_from_editor = QtWidgets.QDateEdit(QtCore.QDate(today.year(), today.month(), 1), self)
        self.date_to_editor = QtWidgets.QDateEdit(today, self)
        for editor in (self.date_from_editor, self.date_to_editor):
            editor.setCalendarPopup(True)
            editor.setDisplayFormat('dd/MM/yyyy')

        row.addWidget(QtWidgets.QLabel('From', self))
        row.addWidget(self.date_from_editor)
        row.addWidget(QtWidgets.QLabel('To', self))
        row.addWidget(self.date_to_editor)

        self.group_head_combo = QtWidgets.QComboBox(self)
        self.group_head_combo.addItem('All Group Heads', userData='all')
        row.addWidget(self.group_head_combo)

        self.period_combo = QtWidgets.QComboBox(self)
        for p in data.TrendPeriod:
            self.period_combo.addItem(p.value.title(), userData=p.value)
        row.addWidget(self.period_combo)

        row.addStretch(1)
        self.export_button = QtWidgets.QPushButton('Export CSV', self)
        row.addWidget(self.export_button)
        self.layout().addLayout(row)

        self.breakdown_model = DataFrameModel(
            BREAKDOWN_VIEW_COLUMNS, amount_columns=['total'], ratio_columns=['weight'], parent=self)
        self.trend_model = DataFrameModel(
            TREND_VIEW_COLUMNS, amount_columns=['incoming', 'outgoing', 'balance'], parent=self)

        splitter = QtWidgets.QSplitter(QtCore.Qt.Horizontal, self)
        splitter.addWidget(_table_view(self.breakdown_model, splitter))
        splitter.addWidget(_table_view(self.trend_model, splitter))
        self.layout().addWidget(splitter, 1)

    def _connect_signals(self) -> None:
        signals.transactionsFetched.connect(self.set_transactions)

        self.date_from_editor.dateChanged.connect(self.update_reports)
        self.date_to_editor.dateChanged.connect(self.update_reports)
        self.group_head_combo.currentIndexChanged.connect(self.update_reports)
        self.period_combo.currentIndexChanged.connect(self.update_reports)
        self.export_button.clicked.connect(self.export)

    @QtCore.Slot(pd.DataFrame)
    def set_transactions(self, df: pd.DataFrame) -> None:
        self.transactions = data.scope_transactions(df, self.session)

        current = self.group_head_combo.currentData()
        self.group_head_combo.blockSignals(True)
        self.group_head_combo.clear()
        self.group_head_combo.addItem('All Group Heads', userData='all')
        for v in sorted(v for v in self.transactions['group_head'].unique() if v):
            self.group_head_combo.addItem(v, userData=v)
        self.group_head_combo.setCurrentIndex(max(self.group_head_combo.findData(current), 0))
        self.group_head_combo.blockSignals(False)

        self.update_reports()

    def date_range(self) -> tuple[datetime.date, datetime.date]:
        return self.date_from_editor.date().toPython(), self.date_to_editor.date().toPython()

    @QtCore.Slot()
    def update_reports(self) -> None:
        date_from, date_to = self.date_range()
        self.filtered = data.filter_transactions(
            self.transactions,
            date_from=date_from,
            date_to=date_to,
            group_head=self.group_head_combo.currentData(),
        )
        self.breakdown_model.set_frame(data.get_breakdown(self.filtered))
        self.trend_model.set_frame(data.get_trend(self.filtered, period=self.period_combo.currentData()))

    @QtCore.Slot()
    def export(self) -> None:
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, 'Export Transactions', 'transactions.csv', 'CSV files (*.csv)')
        if not path:
            return
        try:
            data.export_csv(self.filtered, path)
        except OSError as ex:
            logging.error(f'Failed to export transactions: {ex}')
            QtWidgets.QMessageBox.critical(self, 'Error', f'Could not write {path}')
