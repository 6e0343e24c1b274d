"""Tests for PettyCash.core.script, the script-execution endpoint client."""
import json
from unittest.mock import patch

import requests

from PettyCash.core import script
from PettyCash.settings import lib
from PettyCash.status import status
from tests.base import (
    BaseRemoteTestCase,
    BaseTestCase,
    DATA_SHEET,
    FakeResponse,
    FOLDER_ID,
    MASTER_SHEET,
    SCRIPT_URL,
)


class ScriptConfigTest(BaseTestCase):

    def test_script_url_required(self):
        with self.assertRaises(status.ConfigInvalidError):
            script.script_url()

    def test_script_url(self):
        section = lib.settings.get_section('script')
        section['url'] = SCRIPT_URL
        lib.settings.set_section('script', section)
        self.assertEqual(script.script_url(), SCRIPT_URL)


class ScriptActionTest(BaseRemoteTestCase):

    def test_post_action_sends_form_fields(self):
        result = script.post_action('insert', sheetName=DATA_SHEET, rowData='["a"]')

        self.assertTrue(result['success'])
        method, url, data = self.remote.requests[-1]
        self.assertEqual(method, 'POST')
        self.assertEqual(url, SCRIPT_URL)
        self.assertEqual(data, {'action': 'insert', 'sheetName': DATA_SHEET, 'rowData': '["a"]'})

    def test_insert_row_appends(self):
        before = len(self.remote.sheets[DATA_SHEET])
        script.insert_row(DATA_SHEET, ['x', 1.5, ''])

        self.assertEqual(len(self.remote.sheets[DATA_SHEET]), before + 1)
        self.assertEqual(self.remote.sheets[DATA_SHEET][-1], ['x', 1.5, ''])

    def test_update_row_writes_at_row_number(self):
        script.update_row(MASTER_SHEET, 3, ['Ravi', 'NEFT'])

        _, _, data = self.remote.requests[-1]
        self.assertEqual(data['rowIndex'], '3')
        self.assertEqual(json.loads(data['rowData']), ['Ravi', 'NEFT'])
        self.assertEqual(self.remote.sheets[MASTER_SHEET][2][:2], ['Ravi', 'NEFT'])

    def test_update_row_rejects_non_positive_row_numbers(self):
        with self.assertRaises(ValueError):
            script.update_row(MASTER_SHEET, 0, ['x'])
        self.assertEqual(self.remote.count('POST'), 0)

    def test_upload_file_returns_link(self):
        url = script.upload_file('receipt.png', 'aGVsbG8=', 'image/png', FOLDER_ID)

        self.assertEqual(url, 'https://drive.example.com/receipt.png')
        self.assertEqual(self.remote.uploads['receipt.png'], ('aGVsbG8=', 'image/png', FOLDER_ID))

    def test_upload_without_link_raises(self):
        response = FakeResponse(text=json.dumps({'success': True}))
        with patch.object(self.remote, 'post', return_value=response):
            with self.assertRaises(status.WriteError):
                script.upload_file('receipt.png', 'aGVsbG8=', 'image/png', FOLDER_ID)

    def test_unsuccessful_result_raises_with_remote_error(self):
        self.remote.fail_action = 'insert'
        with self.assertRaises(status.WriteError) as cm:
            script.insert_row(DATA_SHEET, ['x'])
        self.assertEqual(cm.exception.message, 'insert failed')

    def test_unsuccessful_result_without_error_text(self):
        response = FakeResponse(text=json.dumps({'success': False}))
        with patch.object(self.remote, 'post', return_value=response):
            with self.assertRaises(status.WriteError) as cm:
                script.insert_row(DATA_SHEET, ['x'])
        self.assertIn('insert', cm.exception.message)

    def test_non_success_status_raises(self):
        with patch.object(self.remote, 'post', return_value=FakeResponse(500, reason='Server Error')):
            with self.assertRaises(status.WriteError) as cm:
                script.insert_row(DATA_SHEET, ['x'])
        self.assertIn('500', cm.exception.message)

    def test_invalid_json_raises(self):
        with patch.object(self.remote, 'post', return_value=FakeResponse(text='<html></html>')):
            with self.assertRaises(status.WriteError):
                script.insert_row(DATA_SHEET, ['x'])

    def test_transport_failure_raises(self):
        with patch.object(self.remote, 'post', side_effect=requests.Timeout('timed out')):
            with self.assertRaises(status.WriteError) as cm:
                script.insert_row(DATA_SHEET, ['x'])
        self.assertIn('timed out', cm.exception.message)
