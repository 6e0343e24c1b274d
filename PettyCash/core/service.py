"""Spreadsheet reads through the public visualization-query endpoint.

Provides methods to fetch the reference (dropdown) data, the user records and the transaction
log, and the asynchronous wrapper the UI uses to run them without freezing.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd
import requests
from PySide6 import QtCore

from .tabular import DropdownOptions, OptionSet, TabularResponse, parse_response
from ..status import status

# Shared HTTP session, reused for every read and write in this process
_cached_session: Optional[requests.Session] = None

TOTAL_TIMEOUT: int = 180
QUERY_URL: str = 'https://docs.google.com/spreadsheets/d/{spreadsheet_id}/gviz/tq'


class AsyncWorker(QtCore.QThread):
    """
    Worker thread running a single blocking call.

    Signals:
        resultReady (object): Emitted with the function's result on success.
        errorOccurred (object): Emitted with the exception on failure.
    """
    resultReady = QtCore.Signal(object)
    errorOccurred = QtCore.Signal(object)

    def __init__(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        super().__init__()
        self.func = func
        self.args = args
        self.kwargs = kwargs

    def run(self) -> None:
        logging.debug(f'[Thread-{threading.get_ident()}] Running {self.func.__name__}')
        try:
            result = self.func(*self.args, **self.kwargs)
        except Exception as ex:
            self.errorOccurred.emit(ex)
            return
        self.resultReady.emit(result)


def clear_session() -> None:
    """
    Closes and clears the cached HTTP session.
    """
    global _cached_session

    if _cached_session is not None:
        _cached_session.close()

    _cached_session = None


def get_session() -> requests.Session:
    """
    Returns the cached HTTP session, creating it on first use.
    """
    global _cached_session
    if _cached_session is None:
        _cached_session = requests.Session()
        logging.debug('HTTP session created.')
    return _cached_session


def get_timeout() -> int:
    """Returns the configured network timeout in seconds."""
    from ..settings import lib
    return lib.settings['timeout'] or 30


def query_url(sheet_name: str) -> Tuple[str, Dict[str, str]]:
    """
    Returns the query endpoint URL and parameters for a named sheet.

    Raises:
        status.ConfigInvalidError: If the spreadsheet id is not configured.
    """
    from ..settings import lib

    spreadsheet_id: Optional[str] = lib.settings.get_section('spreadsheet').get('id')
    if not spreadsheet_id:
        raise status.ConfigInvalidError('Spreadsheet id is not configured.')

    url = QUERY_URL.format(spreadsheet_id=spreadsheet_id)
    return url, {'tqx': 'out:json', 'sheet': sheet_name}


def _fetch_table(sheet_name: str) -> TabularResponse:
    """
    Reads a whole sheet from the query endpoint.

    Every call performs a fresh request: nothing is cached.

    Raises:
        status.FetchError: On a non-success status or a transport failure.
        status.FormatError: If the response lacks the expected structure.
    """
    url, params = query_url(sheet_name)

    logging.debug(f'Fetching sheet "{sheet_name}"...')
    try:
        response = get_session().get(url, params=params, timeout=get_timeout())
    except requests.RequestException as ex:
        raise status.FetchError(f'Failed to fetch "{sheet_name}": {ex}') from ex

    if not response.ok:
        raise status.FetchError(
            f'Failed to fetch "{sheet_name}": {response.status_code} - {response.reason}',
            status_code=response.status_code
        )

    table = parse_response(response.text)
    logging.debug(f'Fetched {table.data_row_count} data rows from "{sheet_name}".')
    return table


def options_from_table(table: TabularResponse) -> DropdownOptions:
    """
    Reduces the master sheet to one option set per reference column.
    """
    from ..settings import lib

    columns: Dict[str, int] = lib.settings.get_section('columns')
    return DropdownOptions(
        person_name=OptionSet(table.column_values(columns['person_name'])),
        mode=OptionSet(table.column_values(columns['mode'])),
        group_head=OptionSet(table.column_values(columns['group_head'])),
        reason=OptionSet(table.column_values(columns['reason'])),
    )


def _fetch_options() -> DropdownOptions:
    """
    Fetches the dropdown option sets from the master sheet.
    """
    from ..settings import lib

    sheet_name: str = lib.settings.get_section('spreadsheet')['master_sheet']
    options = options_from_table(_fetch_table(sheet_name))
    logging.debug(
        f'Found {len(options.person_name)} person names, {len(options.mode)} modes, '
        f'{len(options.group_head)} group heads and {len(options.reason)} reasons.'
    )
    return options


def fetch_options(total_timeout: int = TOTAL_TIMEOUT) -> DropdownOptions:
    """
    Asynchronously fetches the dropdown option sets.
    """
    from ..ui.actions import signals

    options = start_asynchronous(_fetch_options, total_timeout=total_timeout,
                                 status_text='Loading form options.')
    signals.optionsFetched.emit(options)
    return options


def _fetch_users() -> List[Any]:
    """
    Fetches the user records from the login sheet.

    Rows without an id or a name are dropped.
    """
    from ..settings import lib
    from .auth import user_from_row

    sheet_name: str = lib.settings.get_section('spreadsheet')['login_sheet']
    table = _fetch_table(sheet_name)

    users = []
    for row_index in table.data_rows():
        user = user_from_row(table, row_index)
        if user is None:
            logging.debug(f'Skipping row {row_index}: missing id or name.')
            continue
        users.append(user)

    logging.debug(f'Found {len(users)} users.')
    return users


def fetch_users(total_timeout: int = TOTAL_TIMEOUT) -> List[Any]:
    """
    Asynchronously fetches the user records.
    """
    return start_asynchronous(_fetch_users, total_timeout=total_timeout,
                              status_text='Loading users.')


def _fetch_transactions() -> pd.DataFrame:
    """
    Fetches the transaction log from the data sheet as a DataFrame.
    """
    from ..settings import lib
    from ..data.data import transactions_from_table

    sheet_name: str = lib.settings.get_section('spreadsheet')['data_sheet']
    df = transactions_from_table(_fetch_table(sheet_name))
    logging.debug(f'Constructed DataFrame: {df.shape[0]} rows x {df.shape[1]} columns from "{sheet_name}".')
    return df


def fetch_transactions(total_timeout: int = TOTAL_TIMEOUT) -> pd.DataFrame:
    """
    Asynchronously fetches the transaction log.
    """
    from ..ui.actions import signals

    df = start_asynchronous(_fetch_transactions, total_timeout=total_timeout,
                            status_text='Loading transactions.')
    signals.transactionsFetched.emit(df.copy())
    return df


def start_asynchronous(func: Callable[..., Any], *args: Any, total_timeout: int = TOTAL_TIMEOUT,
                       status_text: str = 'Loading data.', **kwargs: Any) -> Any:
    """
    Generic asynchronous operation wrapper.

    Runs the blocking call in an AsyncWorker while a progress dialog is shown, and waits on a
    local event loop until the call completes or fails. There is no cancellation and no retry.

    Args:
        func: The blocking function to run.
        *args, **kwargs: Arguments passed to func.
        total_timeout (int): Maximum time to wait for the worker.
        status_text (str): Label displayed in the progress dialog.

    Returns:
        The result of the function on success.

    Raises:
        status.BaseStatusException: Raised by func, propagated unchanged.
        status.UnknownError: For any other error, or when the wait times out.
    """
    from ..ui.ui import ProgressDialog

    dialog: ProgressDialog = ProgressDialog(total_timeout, status_text=status_text)
    worker: AsyncWorker = AsyncWorker(func, *args, **kwargs)

    result: Dict[str, Any] = {'data': None, 'error': None}
    loop: QtCore.QEventLoop = QtCore.QEventLoop()

    worker.resultReady.connect(lambda d: (result.update({'data': d}), loop.quit()))
    worker.errorOccurred.connect(lambda err: (result.update({'error': err}), loop.quit()))

    timer: QtCore.QTimer = QtCore.QTimer()
    timer.setSingleShot(True)
    timer.setInterval(total_timeout * 1000)
    timer.timeout.connect(loop.quit)

    worker.start()
    dialog.open()
    timer.start()
    loop.exec()
    timer.stop()

    # The request itself is bounded by the network timeout, so the worker always settles
    worker.wait()
    QtCore.QCoreApplication.processEvents()

    dialog.close()
    dialog.deleteLater()
    worker.deleteLater()

    if result['data'] is None and result['error'] is None:
        raise status.UnknownError('Operation timed out.')
    if result['error']:
        err = result['error']
        if isinstance(err, status.BaseStatusException):
            raise err
        raise status.UnknownError(str(err)) from err
    return result['data']
