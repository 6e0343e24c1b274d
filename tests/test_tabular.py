"""
Unit tests for PettyCash.core.tabular
(callback envelope, cell access and option sets).

Run:
    python -m unittest tests.test_tabular
"""
import json

from PettyCash.core.tabular import (
    Cell,
    OptionSet,
    TabularResponse,
    parse_response,
    to_text,
    unwrap_envelope,
)
from PettyCash.status import status
from tests.base import BaseTestCase, FakeRemote


class EnvelopeTests(BaseTestCase):

    def test_unwrap_envelope_returns_payload(self):
        text = 'google.visualization.Query.setResponse({"table": {"rows": []}});'
        self.assertEqual(unwrap_envelope(text), {'table': {'rows': []}})

    def test_unwrap_envelope_uses_first_and_last_parenthesis(self):
        payload = {'table': {'rows': [{'c': [{'v': 'a (b) c'}]}]}}
        text = f'/*O_o*/\ngoogle.visualization.Query.setResponse({json.dumps(payload)});'
        self.assertEqual(unwrap_envelope(text), payload)

    def test_unwrap_envelope_without_parentheses_raises(self):
        with self.assertRaises(status.FormatError):
            unwrap_envelope('{"table": {"rows": []}}')

    def test_unwrap_envelope_invalid_json_raises(self):
        with self.assertRaises(status.FormatError):
            unwrap_envelope('setResponse({not json});')

    def test_unwrap_envelope_non_object_raises(self):
        with self.assertRaises(status.FormatError):
            unwrap_envelope('setResponse([1, 2, 3]);')

    def test_parse_response_missing_rows_raises(self):
        with self.assertRaises(status.FormatError):
            parse_response('setResponse({"table": {}});')
        with self.assertRaises(status.FormatError):
            parse_response('setResponse({"status": "ok"});')

    def test_parse_response_surfaces_query_error(self):
        text = 'setResponse({"status": "error", "errors": [{"detailed_message": "Invalid sheet"}]});'
        with self.assertRaises(status.FormatError) as ctx:
            parse_response(text)
        self.assertIn('Invalid sheet', str(ctx.exception))

    def test_parse_response_round_trips_fake_remote(self):
        rows = [['Header'], ['Value'], [None]]
        table = parse_response(FakeRemote.envelope(rows))
        self.assertEqual(len(table), 3)
        self.assertEqual(table.value(1, 0), 'Value')
        self.assertIsNone(table.cell(2, 0))


class TabularResponseTests(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.table = TabularResponse([
            {'c': [{'v': 'Header'}, {'v': 'Other'}]},
            {'c': [{'v': '  padded  '}, None]},
            {'c': None},
            {},
            {'c': [{'v': None}, {'v': 2.0, 'f': '2'}]},
            {'c': [{'v': 1.5}, {'v': True}]},
        ])

    def test_data_rows_skip_header(self):
        self.assertEqual(self.table.data_row_count, 5)
        self.assertEqual(list(self.table.data_rows()), [1, 2, 3, 4, 5])

    def test_cell_absent_variants(self):
        self.assertIsNone(self.table.cell(1, 1))  # null cell
        self.assertIsNone(self.table.cell(2, 0))  # null c list
        self.assertIsNone(self.table.cell(3, 0))  # missing c
        self.assertIsNone(self.table.cell(4, 0))  # null v
        self.assertIsNone(self.table.cell(1, 5))  # short row
        self.assertIsNone(self.table.cell(99, 0))  # missing row
        self.assertIsNone(self.table.cell(-1, 0))

    def test_cell_keeps_formatted_text(self):
        self.assertEqual(self.table.cell(4, 1), Cell(v=2.0, f='2'))

    def test_value_is_trimmed_text(self):
        self.assertEqual(self.table.value(1, 0), 'padded')
        self.assertEqual(self.table.value(4, 1), '2')
        self.assertEqual(self.table.value(5, 0), '1.5')
        self.assertEqual(self.table.value(5, 1), 'true')

    def test_column_values_skip_header_and_absent_cells(self):
        self.assertEqual(list(self.table.column_values(0)), ['padded', '1.5'])

    def test_from_values(self):
        table = TabularResponse.from_values([['A', None], ['B', 'X']])
        self.assertIsNone(table.cell(0, 1))
        self.assertEqual(table.value(1, 1), 'X')

    def test_to_text(self):
        self.assertEqual(to_text(None), '')
        self.assertEqual(to_text(3.0), '3')
        self.assertEqual(to_text(3.25), '3.25')
        self.assertEqual(to_text(' x '), 'x')


class OptionSetTests(BaseTestCase):

    def test_ignores_empty_and_whitespace(self):
        options = OptionSet([None, '', '   ', 'Cash'])
        self.assertEqual(list(options), ['Cash'])

    def test_collapses_duplicates_in_first_seen_order(self):
        options = OptionSet(['UPI', 'Cash', ' UPI ', 'Card', 'Cash'])
        self.assertEqual(list(options), ['UPI', 'Cash', 'Card'])

    def test_is_case_sensitive(self):
        options = OptionSet(['cash', 'Cash'])
        self.assertEqual(len(options), 2)
        self.assertIn('cash', options)
        self.assertNotIn('CASH', options)

    def test_equality(self):
        self.assertEqual(OptionSet(['a', 'b']), ['a', 'b'])
        self.assertEqual(OptionSet(['a', 'b']), OptionSet(['a', ' b ']))
        self.assertNotEqual(OptionSet(['b', 'a']), ['a', 'b'])
