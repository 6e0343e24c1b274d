"""Dashboard: summary tiles and the transaction table."""
import logging
from typing import Dict, Optional

import pandas as pd
from PySide6 import QtCore, QtWidgets

from . import ui
from .actions import signals
from ..core import auth, service
from ..data import data
from ..data.model import DataFrameModel
from ..settings import lib
from ..settings import locale
from ..status import status

STAT_TILES = [
    ('opening_balance', 'Opening Balance'),
    ('total_outgoing', 'Total Expenses'),
    ('closing_balance', 'Closing Balance'),
    ('monthly_budget', 'Monthly Budget'),
    ('transactions', 'Transactions'),
    ('average_expense', 'Average Expense'),
]

TRANSACTION_VIEW_COLUMNS = [
    ('date', 'Date'),
    ('person_name', 'Person'),
    ('incoming', 'Incoming'),
    ('outgoing', 'Outgoing'),
    ('mode', 'Mode'),
    ('group_head', 'Group Head'),
    ('reason', 'Reason'),
]


class StatTile(QtWidgets.QFrame):
    """A titled value label."""

    def __init__(self, title: str, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('StatTile')

        QtWidgets.QVBoxLayout(self)
        self.title_label = QtWidgets.QLabel(title, self)
        self.title_label.setObjectName('StatTitle')
        self.value_label = QtWidgets.QLabel('-', self)
        self.value_label.setObjectName('StatValue')
        self.layout().addWidget(self.title_label)
        self.layout().addWidget(self.value_label)

    def set_value(self, text: str) -> None:
        self.value_label.setText(text)


class DashboardWidget(QtWidgets.QWidget):
    """Summary statistics and the transactions visible to the session."""

    def __init__(self, session: auth.Session, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.session = session
        self.stats: Dict[str, object] = {}
        self.transactions: pd.DataFrame = pd.DataFrame(columns=data.TRANSACTION_COLUMNS)

        self.tiles: Dict[str, StatTile] = {}
        self.view: Optional[QtWidgets.QTableView] = None
        self.model: Optional[DataFrameModel] = None
        self.refresh_button: Optional[QtWidgets.QPushButton] = None

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(1.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(ui.Size.Indicator(2.0))

        grid = QtWidgets.QGridLayout()
        for i, (key, title) in enumerate(STAT_TILES):
            tile = StatTile(title, self)
            self.tiles[key] = tile
            grid.addWidget(tile, i // 3, i % 3)
        self.layout().addLayout(grid)

        row = QtWidgets.QHBoxLayout()
        row.addWidget(QtWidgets.QLabel('Recent Transactions', self))
        row.addStretch(1)
        self.refresh_button = QtWidgets.QPushButton('Refresh', self)
        row.addWidget(self.refresh_button)
        self.layout().addLayout(row)

        self.model = DataFrameModel(TRANSACTION_VIEW_COLUMNS, amount_columns=data.AMOUNT_COLUMNS, parent=self)
        self.view = QtWidgets.QTableView(self)
        self.view.setModel(self.model)
        self.view.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.view.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.view.verticalHeader().setHidden(True)
        self.view.verticalHeader().setDefaultSectionSize(ui.Size.RowHeight(1.0))
        self.view.horizontalHeader().setStretchLastSection(True)
        self.layout().addWidget(self.view, 1)

    def _connect_signals(self) -> None:
        signals.transactionsFetchRequested.connect(self.fetch_transactions)
        signals.transactionsFetched.connect(self.set_transactions)
        signals.metadataChanged.connect(self.on_metadata_changed)
        self.refresh_button.clicked.connect(self.fetch_transactions)

    @QtCore.Slot()
    def fetch_transactions(self) -> None:
        try:
            service.fetch_transactions()
        except status.BaseStatusException as ex:
            logging.debug(f'Dashboard not updated: {ex.message}')

    @QtCore.Slot(pd.DataFrame)
    def set_transactions(self, df: pd.DataFrame) -> None:
        """Updates the tiles and the table from the fetched transaction log."""
        self.transactions = df
        df = data.scope_transactions(df, self.session)
        self.stats = data.get_stats(
            df,
            opening_balance=lib.settings['opening_balance'] or 0.0,
            monthly_budget=lib.settings['monthly_budget'] or 0.0,
        )
        self.update_tiles()

        # Newest first
        self.model.set_frame(df.iloc[::-1])

    def update_tiles(self) -> None:
        _locale = lib.settings['locale'] or 'en_IN'
        for key, tile in self.tiles.items():
            value = self.stats.get(key)
            if value is None:
                tile.set_value('-')
            elif key == 'transactions':
                tile.set_value(f'{value}')
            else:
                tile.set_value(locale.format_currency_value(value, _locale))

    @QtCore.Slot(str, object)
    def on_metadata_changed(self, key: str, value: object) -> None:
        if key in ('locale', 'opening_balance', 'monthly_budget'):
            self.set_transactions(self.transactions)
