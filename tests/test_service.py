"""Tests for PettyCash.core.service.

The shared HTTP session is replaced by :class:`tests.base.FakeRemote`, an in-memory spreadsheet.

* ServiceHelpersTest  – session cache and query URL helpers
* FetchTableTest      – transport and format failures of a sheet read
* FetchTest           – options, users and transactions from the fixture sheets
* AsynchronousTest    – the worker thread wrapper and the signals of the public fetches
"""
from unittest.mock import patch

import pandas as pd
import requests
from PySide6 import QtCore, QtWidgets

from PettyCash.core import auth, service
from PettyCash.settings import lib
from PettyCash.status import status
from PettyCash.ui.actions import signals
from PettyCash.ui.ui import ProgressDialog
from tests.base import (
    BaseRemoteTestCase,
    BaseTestCase,
    DATA_SHEET,
    FakeResponse,
    MASTER_SHEET,
    SPREADSHEET_ID,
)


class ServiceHelpersTest(BaseTestCase):

    def test_get_session_is_cached(self):
        s1 = service.get_session()
        s2 = service.get_session()
        self.assertIsInstance(s1, requests.Session)
        self.assertIs(s1, s2)

        service.clear_session()
        self.assertIsNot(service.get_session(), s1)

    def test_query_url_requires_spreadsheet_id(self):
        with self.assertRaises(status.ConfigInvalidError):
            service.query_url(MASTER_SHEET)

    def test_get_timeout(self):
        self.assertEqual(service.get_timeout(), 30)
        lib.settings['timeout'] = 5
        self.assertEqual(service.get_timeout(), 5)


class FetchTableTest(BaseRemoteTestCase):

    def test_query_url(self):
        url, params = service.query_url(MASTER_SHEET)
        self.assertEqual(url, f'https://docs.google.com/spreadsheets/d/{SPREADSHEET_ID}/gviz/tq')
        self.assertEqual(params, {'tqx': 'out:json', 'sheet': MASTER_SHEET})

    def test_every_read_is_fresh(self):
        service._fetch_table(MASTER_SHEET)
        self.remote.sheets[MASTER_SHEET].append(['Meera', '', '', '', '', '', ''])
        table = service._fetch_table(MASTER_SHEET)

        self.assertEqual(self.remote.count('GET'), 2)
        self.assertEqual(table.value(len(table) - 1, 0), 'Meera')

    def test_non_success_status_raises_fetch_error(self):
        with self.assertRaises(status.FetchError) as cm:
            service._fetch_table('Missing')
        self.assertEqual(cm.exception.status_code, 400)

    def test_transport_failure_raises_fetch_error(self):
        with patch.object(self.remote, 'get', side_effect=requests.ConnectionError('offline')):
            with self.assertRaises(status.FetchError) as cm:
                service._fetch_table(MASTER_SHEET)
        self.assertIsNone(cm.exception.status_code)
        self.assertIn('offline', cm.exception.message)

    def test_unexpected_body_raises_format_error(self):
        with patch.object(self.remote, 'get', return_value=FakeResponse(text='<html>Sign in</html>')):
            with self.assertRaises(status.FormatError):
                service._fetch_table(MASTER_SHEET)

    def test_missing_rows_raises_format_error(self):
        body = 'google.visualization.Query.setResponse({"status": "ok", "table": {"cols": []}});'
        with patch.object(self.remote, 'get', return_value=FakeResponse(text=body)):
            with self.assertRaises(status.FormatError):
                service._fetch_table(MASTER_SHEET)


class FetchTest(BaseRemoteTestCase):

    def test_fetch_options(self):
        options = service._fetch_options()

        self.assertEqual(options.person_name, ['Asha', 'Ravi'])
        self.assertEqual(options.mode, ['Cash', 'UPI', 'Card'])
        self.assertEqual(options.group_head, ['Travel', 'Office'])
        self.assertEqual(options.reason, ['Taxi', 'Stationery', 'Snacks'])
        self.assertEqual(options.get('mode'), options.mode)

    def test_fetch_options_follows_column_config(self):
        columns = lib.settings.get_section('columns')
        columns['reason'] = 1
        lib.settings.set_section('columns', columns)

        options = service._fetch_options()
        self.assertEqual(options.reason, ['Cash', 'UPI', 'Card'])

    def test_fetch_options_empty_sheet(self):
        self.remote.sheets[MASTER_SHEET] = [self.remote.sheets[MASTER_SHEET][0]]
        options = service._fetch_options()
        self.assertEqual(len(options.person_name), 0)
        self.assertEqual(len(options.reason), 0)

    def test_fetch_users(self):
        users = service._fetch_users()

        self.assertEqual([u.id for u in users], ['asha', 'admin'])
        asha, admin = users
        self.assertEqual(asha.name, 'Asha')
        self.assertEqual(asha.password, 'secret')
        self.assertEqual(asha.role, auth.Role.User)
        self.assertEqual(asha.pages, (auth.Page.Dashboard, auth.Page.Form))
        self.assertEqual(admin.role, auth.Role.Admin)
        self.assertEqual(admin.pages, auth.ALL_PAGES)

    def test_fetch_transactions(self):
        df = service._fetch_transactions()

        self.assertEqual(len(df), 4)
        self.assertEqual(list(df.columns), [
            'timestamp', 'person_name', 'date', 'incoming', 'outgoing', 'mode', 'group_head',
            'reason', 'attachment', 'month', 'user_id',
        ])
        self.assertTrue(pd.api.types.is_datetime64_any_dtype(df['date']))
        self.assertEqual(df['incoming'].sum(), 5000.0)
        self.assertAlmostEqual(df['outgoing'].sum(), 450.5)

    def test_fetch_transactions_empty_sheet(self):
        self.remote.sheets[DATA_SHEET] = [self.remote.sheets[DATA_SHEET][0]]
        df = service._fetch_transactions()
        self.assertTrue(df.empty)
        self.assertIn('outgoing', df.columns)


class AsynchronousTest(BaseRemoteTestCase):

    def test_start_asynchronous_returns_result(self):
        def _add(a, b=0):
            return a + b

        self.assertEqual(service.start_asynchronous(_add, 2, b=3, total_timeout=5), 5)

    def test_start_asynchronous_propagates_status_exceptions(self):
        def _fail():
            raise status.WriteError('Sheet is protected.')

        with self.assertRaises(status.WriteError):
            service.start_asynchronous(_fail, total_timeout=5)

    def test_start_asynchronous_wraps_other_exceptions(self):
        def _fail():
            raise RuntimeError('boom')

        with self.assertRaises(status.UnknownError) as cm:
            service.start_asynchronous(_fail, total_timeout=5)
        self.assertIn('boom', cm.exception.message)

    def test_start_asynchronous_leaves_no_dialog_behind(self):
        service.start_asynchronous(lambda: 1, total_timeout=5)
        QtCore.QCoreApplication.sendPostedEvents(None, QtCore.QEvent.DeferredDelete)
        QtCore.QCoreApplication.processEvents()

        dialogs = [w for w in QtWidgets.QApplication.topLevelWidgets() if isinstance(w, ProgressDialog)]
        self.assertEqual(dialogs, [])

    def test_fetch_options_emits_signal(self):
        received = []

        def _slot(options):
            received.append(options)

        signals.optionsFetched.connect(_slot)
        try:
            options = service.fetch_options(total_timeout=5)
        finally:
            signals.optionsFetched.disconnect(_slot)

        self.assertEqual(len(received), 1)
        self.assertIs(received[0], options)
        self.assertEqual(options.person_name, ['Asha', 'Ravi'])

    def test_fetch_transactions_emits_signal(self):
        received = []

        def _slot(df):
            received.append(df)

        signals.transactionsFetched.connect(_slot)
        try:
            df = service.fetch_transactions(total_timeout=5)
        finally:
            signals.transactionsFetched.disconnect(_slot)

        self.assertEqual(len(received), 1)
        self.assertEqual(len(received[0]), len(df))

    def test_fetch_users(self):
        users = service.fetch_users(total_timeout=5)
        self.assertEqual(len(users), 2)

    def test_fetch_failure_is_raised(self):
        spreadsheet = lib.settings.get_section('spreadsheet')
        spreadsheet['master_sheet'] = 'Missing'
        lib.settings.set_section('spreadsheet', spreadsheet)

        with self.assertRaises(status.FetchError):
            service.fetch_options(total_timeout=5)
