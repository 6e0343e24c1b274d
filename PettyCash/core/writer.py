"""Writes to the spreadsheet: new dropdown values and transaction rows.

New dropdown values are placed in the master sheet by reading the sheet afresh, finding the
first free row below the last non-empty cell of the target column and rewriting that whole
row with only the target cell changed. Sibling columns keep their current text.

The option columns share one row space: a write lands in the first row that is free in the
target column, even when other columns already occupy that row.

Transactions are appended to the data sheet. An attachment, when given, is uploaded first and
its link is stored in the row.
"""
import base64
import dataclasses
import datetime
import logging
import mimetypes
import pathlib
from typing import Any, List, Optional, Sequence

from . import script, service
from .auth import Page, Session, require_page
from .tabular import TabularResponse
from ..settings import locale
from ..status import status


@dataclasses.dataclass(frozen=True)
class PendingRowEdit:
    """A full master-sheet row ready to be written.

    Attributes:
        row_index: 0-based data-row index (the header row is not counted).
        column_index: The column receiving the new value.
        values: The reconstructed row, one text value per column.
        is_new_row: True when the row does not exist in the sheet yet.
    """
    row_index: int
    column_index: int
    values: List[str]
    is_new_row: bool

    @property
    def row_number(self) -> int:
        """The 1-based sheet row number, accounting for the header row."""
        return self.row_index + 2


def plan_row_edit(table: TabularResponse, column_index: int, new_value: str,
                  tracked_columns: Sequence[int]) -> PendingRowEdit:
    """Computes where a new value goes and the full row to write there.

    Args:
        table: A fresh read of the master sheet.
        column_index: The target column.
        new_value: The value to store. It is trimmed before being placed.
        tracked_columns: The reference columns. The row is as wide as the widest of these
            and the target column.

    Returns:
        The pending edit.
    """
    last_row_with_data = -1
    for data_index, table_index in enumerate(table.data_rows()):
        if table.value(table_index, column_index):
            last_row_with_data = data_index

    row_index = last_row_with_data + 1
    width = max(tuple(tracked_columns) + (column_index,)) + 1

    is_new_row = row_index >= table.data_row_count
    if is_new_row:
        values = [''] * width
    else:
        table_index = row_index + 1
        values = []
        for c in range(width):
            cell = table.cell(table_index, c)
            values.append(cell.raw_text if cell is not None else '')

    values[column_index] = new_value.strip()
    logging.debug(f'Planned edit at data row {row_index} (new row: {is_new_row}), column {column_index}.')
    return PendingRowEdit(row_index=row_index, column_index=column_index, values=values, is_new_row=is_new_row)


def reference_columns() -> List[int]:
    """Returns the configured reference column indices."""
    from ..settings import lib

    columns = lib.settings.get_section('columns')
    return [columns[k] for k in lib.REFERENCE_COLUMN_KEYS]


def _add_value(new_value: str, column_index: int) -> PendingRowEdit:
    """
    Adds a value to a reference column of the master sheet.

    Performs exactly one read and one write. Nothing is cached, callers re-fetch the options.

    Raises:
        status.ValidationError: If the trimmed value is empty. No request is made.
        status.FetchError, status.FormatError: If reading the master sheet fails.
        status.WriteError: If the write is rejected.
    """
    from ..settings import lib

    if not new_value or not new_value.strip():
        raise status.ValidationError('Please enter a value.')

    sheet_name: str = lib.settings.get_section('spreadsheet')['master_sheet']
    table = service._fetch_table(sheet_name)

    edit = plan_row_edit(table, column_index, new_value, reference_columns())
    script.update_row(sheet_name, edit.row_number, edit.values)

    logging.info(f'Added "{edit.values[column_index]}" to column {column_index} at row {edit.row_number}.')
    return edit


def add_value(new_value: str, column_index: int,
              total_timeout: int = service.TOTAL_TIMEOUT) -> PendingRowEdit:
    """
    Asynchronously adds a value to a reference column.
    """
    from ..ui.actions import signals

    edit = service.start_asynchronous(_add_value, new_value, column_index, total_timeout=total_timeout,
                                      status_text='Saving new value.')
    signals.optionsInvalidated.emit()
    return edit


def _column(key: str) -> int:
    from ..settings import lib
    return lib.settings.get_section('columns')[key]


def add_person_name(new_value: str, session: Optional[Session]) -> PendingRowEdit:
    """
    Adds a person name. Only administrators may add names.

    Raises:
        status.PermissionDeniedError: If the session is not an administrator's.
    """
    if session is None or not session.is_admin:
        raise status.PermissionDeniedError('Only administrators can add person names.')
    return add_value(new_value, _column('person_name'))


def add_group_head(new_value: str) -> PendingRowEdit:
    """Adds a group head to the configured group-head column."""
    return add_value(new_value, _column('group_head'))


def add_reason(new_value: str) -> PendingRowEdit:
    """Adds a reason to the configured reason column."""
    return add_value(new_value, _column('reason'))


@dataclasses.dataclass
class TransactionEntry:
    """A transaction as entered in the form."""
    person_name: str
    date: Any
    incoming: Any = ''
    outgoing: Any = ''
    mode: str = ''
    group_head: str = ''
    reason: str = ''
    attachment: Optional[str] = None


def parse_amount(value: Any) -> float:
    """Returns the value as a float. Empty or unparsable amounts read as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(str(value).strip().replace(',', ''))
    except ValueError:
        return 0.0


def format_entry_date(value: Any) -> str:
    """Returns the entry date as 'yyyy-MM-dd'. Text is passed through trimmed."""
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.strftime('%Y-%m-%d')
    return str(value or '').strip()


def validate_entry(entry: TransactionEntry, session: Session) -> None:
    """
    Checks the entry before anything is sent.

    Raises:
        status.ValidationError: If the person name or date is empty, or a user submits under
            another person's name.
    """
    person_name = (entry.person_name or '').strip()
    if not person_name:
        raise status.ValidationError('Please select a person name.')
    if not format_entry_date(entry.date):
        raise status.ValidationError('Please select a date.')
    if not session.is_admin and person_name != session.name:
        raise status.ValidationError(f'"{session.id}" can only submit entries as "{session.name}".')


def build_transaction_row(entry: TransactionEntry, session: Session, attachment_url: str = '',
                          now: Optional[datetime.datetime] = None) -> List[Any]:
    """
    Returns the data-sheet row for an entry.

    The month label is taken from the submission time, not the entry date.
    """
    if now is None:
        now = datetime.datetime.now()

    return [
        locale.format_timestamp(now),
        entry.person_name.strip(),
        format_entry_date(entry.date),
        parse_amount(entry.incoming),
        parse_amount(entry.outgoing),
        (entry.mode or '').strip(),
        (entry.group_head or '').strip(),
        (entry.reason or '').strip(),
        attachment_url,
        locale.format_month_label(now),
        session.id,
    ]


def _upload_file(path: str) -> str:
    """
    Uploads a file to the configured folder and returns its link.

    Raises:
        status.ValidationError: If the file does not exist.
        status.WriteError: If the upload fails.
    """
    from ..settings import lib

    p = pathlib.Path(path)
    if not p.is_file():
        raise status.ValidationError(f'File not found: {p}')

    mime_type = mimetypes.guess_type(p.name)[0] or 'application/octet-stream'
    with p.open('rb') as f:
        data = base64.b64encode(f.read()).decode('ascii')

    logging.debug(f'Uploading "{p.name}" ({mime_type})...')
    folder_id: str = lib.settings.get_section('script')['folder_id']
    return script.upload_file(p.name, data, mime_type, folder_id)


def _submit_transaction(entry: TransactionEntry, session: Session) -> List[Any]:
    """
    Validates and appends a transaction to the data sheet.

    A failed upload aborts the submission before anything is appended.

    Returns:
        The appended row.

    Raises:
        status.PermissionDeniedError: If the session cannot access the entry form.
    """
    from ..settings import lib

    require_page(session, Page.Form)
    validate_entry(entry, session)

    attachment_url = ''
    if entry.attachment:
        attachment_url = _upload_file(entry.attachment)

    row = build_transaction_row(entry, session, attachment_url=attachment_url)
    sheet_name: str = lib.settings.get_section('spreadsheet')['data_sheet']
    script.insert_row(sheet_name, row)

    logging.info(f'Submitted transaction for "{row[1]}" dated {row[2]}.')
    return row


def submit_transaction(entry: TransactionEntry, session: Session,
                       total_timeout: int = service.TOTAL_TIMEOUT) -> List[Any]:
    """
    Asynchronously submits a transaction.
    """
    from ..ui.actions import signals

    row = service.start_asynchronous(_submit_transaction, entry, session, total_timeout=total_timeout,
                                     status_text='Submitting entry.')
    signals.transactionSubmitted.emit(row)
    return row
