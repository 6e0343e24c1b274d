"""Data analytics API for the transaction log.

This module turns the data sheet into a typed transaction frame and derives the dashboard
statistics, the group-head breakdown and the daily or monthly trend shown by the reports.
"""
import datetime
import enum
import logging
import re
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from ..core.tabular import TabularResponse

TRANSACTION_COLUMNS: List[str] = [
    'timestamp',
    'person_name',
    'date',
    'incoming',
    'outgoing',
    'mode',
    'group_head',
    'reason',
    'attachment',
    'month',
    'user_id',
]

AMOUNT_COLUMNS: List[str] = ['incoming', 'outgoing']
STRING_COLUMNS: List[str] = [c for c in TRANSACTION_COLUMNS if c not in AMOUNT_COLUMNS + ['date']]

BREAKDOWN_COLUMNS: List[str] = ['total', 'transactions', 'weight']
TREND_COLUMNS: List[str] = ['period', 'incoming', 'outgoing', 'balance']

# Date cells come back from the query endpoint as "Date(2026,9,19)" with a 0-based month
DATE_LITERAL = re.compile(r'^Date\((\d+),(\d+),(\d+)')

DateLike = Union[str, datetime.date, pd.Timestamp, None]


class TrendPeriod(enum.StrEnum):
    Daily = 'daily'
    Monthly = 'monthly'


def parse_date(value: Any) -> Optional[pd.Timestamp]:
    """Parses a date cell.

    Accepts visualization date literals, ISO dates and 'dd/mm/yyyy' text.

    Returns:
        The date, or None when the value cannot be parsed.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    m = DATE_LITERAL.match(text)
    if m:
        year, month, day = (int(g) for g in m.groups())
        try:
            return pd.Timestamp(year=year, month=month + 1, day=day)
        except ValueError:
            return None

    for fmt in ('%Y-%m-%d', '%d/%m/%Y'):
        try:
            return pd.Timestamp(datetime.datetime.strptime(text[:10], fmt))
        except ValueError:
            continue
    return None


def _empty_frame() -> pd.DataFrame:
    df = pd.DataFrame(columns=TRANSACTION_COLUMNS)
    df['date'] = pd.to_datetime(df['date'])
    for col in AMOUNT_COLUMNS:
        df[col] = df[col].astype(float)
    return df


def _conform_date_column(df: pd.DataFrame) -> pd.DataFrame:
    """Convert the 'date' column to datetime, drop unparsable rows and sort by date."""
    df['date'] = pd.to_datetime(df['date'].map(parse_date))
    clean_df = df.dropna(subset=['date'])

    if len(df) != len(clean_df):
        logging.warning(
            f'Unparsable date formats encountered: Dropped {len(df) - len(clean_df)} rows with invalid date format.')

    return clean_df.sort_values(by='date', ascending=True, kind='stable').reset_index(drop=True)


def _conform_amount_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Convert the amount columns to floats. Invalid amounts become 0."""
    for col in AMOUNT_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors='coerce')

        l = int(df[col].isna().sum())
        if l > 0:
            logging.debug(f'{l} rows have empty or invalid {col} values.')

        df[col] = df[col].fillna(0.0).astype(float)
    return df


def _conform_string_columns(df: pd.DataFrame) -> pd.DataFrame:
    for col in STRING_COLUMNS:
        df[col] = df[col].fillna('').astype(str)
    return df


def transactions_from_table(table: TabularResponse) -> pd.DataFrame:
    """Builds the transaction frame from a read of the data sheet.

    The header row is skipped. Columns follow :data:`TRANSACTION_COLUMNS`.

    Args:
        table: The data sheet.

    Returns:
        pd.DataFrame: One row per transaction with a parsed date, float amounts and text
            columns, sorted by date.
    """
    records: List[Dict[str, Any]] = []
    for row_index in table.data_rows():
        records.append({
            col: table.value(row_index, i) for i, col in enumerate(TRANSACTION_COLUMNS)
        })

    if not records:
        return _empty_frame()

    return (
        pd.DataFrame.from_records(records, columns=TRANSACTION_COLUMNS)
        .pipe(_conform_date_column)
        .pipe(_conform_amount_columns)
        .pipe(_conform_string_columns)
    )


def scope_transactions(df: pd.DataFrame, session: Any) -> pd.DataFrame:
    """Returns the rows visible to a session.

    Administrators see every row, users only the rows they submitted.
    """
    if session.is_admin:
        return df
    return df[df['user_id'] == session.id].reset_index(drop=True)


def filter_transactions(df: pd.DataFrame, date_from: DateLike = None, date_to: DateLike = None,
                        group_head: Optional[str] = None) -> pd.DataFrame:
    """Filters transactions by an inclusive date range and a group head.

    Args:
        df: The transaction frame.
        date_from: First date to include, or None for no lower bound.
        date_to: Last date to include, or None for no upper bound.
        group_head: Group head to keep. None or 'all' keeps every group head.
    """
    mask = pd.Series(True, index=df.index)
    if date_from is not None:
        mask &= df['date'] >= pd.Timestamp(date_from).normalize()
    if date_to is not None:
        mask &= df['date'] <= pd.Timestamp(date_to).normalize()
    if group_head and group_head.lower() != 'all':
        mask &= df['group_head'] == group_head
    return df[mask].reset_index(drop=True)


def get_stats(df: pd.DataFrame, opening_balance: float = 0.0, monthly_budget: float = 0.0) -> Dict[str, Any]:
    """Returns the dashboard statistics.

    Returns:
        dict: opening_balance, total_incoming, total_outgoing, closing_balance,
            monthly_budget, transactions and average_expense.
    """
    total_incoming = float(df['incoming'].sum()) if not df.empty else 0.0
    total_outgoing = float(df['outgoing'].sum()) if not df.empty else 0.0

    expenses = df.loc[df['outgoing'] > 0, 'outgoing'] if not df.empty else pd.Series(dtype=float)
    average_expense = float(expenses.mean()) if not expenses.empty else 0.0

    return {
        'opening_balance': float(opening_balance),
        'total_incoming': total_incoming,
        'total_outgoing': total_outgoing,
        'closing_balance': float(opening_balance) + total_incoming - total_outgoing,
        'monthly_budget': float(monthly_budget),
        'transactions': int(len(df)),
        'average_expense': average_expense,
    }


def get_breakdown(df: pd.DataFrame, by: str = 'group_head') -> pd.DataFrame:
    """Returns outgoing totals per group.

    Groups without spending are left out. The weight of a group is its share of the total.

    Returns:
        pd.DataFrame: Columns [by, 'total', 'transactions', 'weight'], sorted by total descending.
    """
    columns = [by] + BREAKDOWN_COLUMNS
    if df.empty:
        return pd.DataFrame(columns=columns)

    out = (
        df.groupby(by, sort=False)
        .agg(total=('outgoing', 'sum'), transactions=('outgoing', 'size'))
        .reset_index()
    )
    out = out[out['total'] > 0]
    if out.empty:
        return pd.DataFrame(columns=columns)

    out['weight'] = out['total'] / out['total'].sum()
    return out.sort_values('total', ascending=False, kind='stable').reset_index(drop=True)[columns]


def get_trend(df: pd.DataFrame, period: str = TrendPeriod.Daily) -> pd.DataFrame:
    """Returns incoming and outgoing totals per day or month with a running balance.

    Args:
        df: The transaction frame.
        period: 'daily' or 'monthly'.

    Returns:
        pd.DataFrame: Columns ['period', 'incoming', 'outgoing', 'balance'].

    Raises:
        ValueError: If the period is not recognised.
    """
    period = TrendPeriod(period)

    if df.empty:
        return pd.DataFrame(columns=TREND_COLUMNS)

    if period == TrendPeriod.Daily:
        key = df['date'].dt.normalize()
    else:
        key = df['date'].dt.to_period('M').dt.to_timestamp()

    out = (
        df.assign(period=key)
        .groupby('period')[AMOUNT_COLUMNS]
        .sum()
        .reset_index()
    )
    out['balance'] = (out['incoming'] - out['outgoing']).cumsum()
    return out[TREND_COLUMNS]


def export_csv(df: pd.DataFrame, path: str) -> None:
    """Writes a frame to a CSV file."""
    df.to_csv(path, index=False)
    logging.info(f'Exported {len(df)} rows to {path}')
