# tests/test_settings.py
"""
Unit tests for PettyCash.settings.lib
(covers validators, ConfigPaths and SettingsAPI).

Run with:
    python -m unittest tests.test_settings
"""
import json
import unittest
from pathlib import Path
from typing import Any, Dict

from PettyCash.settings import lib
from PettyCash.settings.lib import (
    CONFIG_SCHEMA,
    SettingsAPI,
    _validate_columns,
    _validate_items,
)
from PettyCash.status import status
from PettyCash.ui.actions import signals
from tests.base import BaseTestCase


def minimal_config() -> Dict[str, Any]:
    return {
        'spreadsheet': {
            'id': 'dummy',
            'master_sheet': 'Master',
            'login_sheet': 'Login',
            'data_sheet': 'Data',
        },
        'script': {'url': 'https://example', 'folder_id': 'folder'},
        'columns': {'person_name': 0, 'mode': 1, 'group_head': 2, 'reason': 6},
        'metadata': {
            'name': 'Test Cash',
            'locale': 'en_IN',
            'opening_balance': 1000.0,
            'monthly_budget': 5000,
            'timeout': 30,
            'theme': 'light',
        },
    }


def write_json(p: Path, data: Any) -> None:
    with p.open('w', encoding='utf-8') as f:
        json.dump(data, f, indent=4, ensure_ascii=False)


class ValidatorTests(unittest.TestCase):
    def test_validate_items_good(self):
        _validate_items('script', {'url': 'x', 'folder_id': 'y'}, CONFIG_SCHEMA['script']['item_schema'])

    def test_validate_items_missing_key(self):
        with self.assertRaises(ValueError) as cm:
            _validate_items('script', {'url': 'x'}, CONFIG_SCHEMA['script']['item_schema'])
        self.assertIn('folder_id', str(cm.exception))

    def test_validate_items_wrong_type(self):
        meta = minimal_config()['metadata']
        meta['timeout'] = '30'
        with self.assertRaises(TypeError):
            _validate_items('metadata', meta, CONFIG_SCHEMA['metadata']['item_schema'])

    def test_validate_items_rejects_bool_for_numbers(self):
        meta = minimal_config()['metadata']
        meta['opening_balance'] = True
        with self.assertRaises(TypeError):
            _validate_items('metadata', meta, CONFIG_SCHEMA['metadata']['item_schema'])

    def test_validate_columns_good(self):
        _validate_columns(minimal_config()['columns'], CONFIG_SCHEMA['columns'])

    def test_validate_columns_missing_key(self):
        with self.assertRaises(ValueError):
            _validate_columns({'person_name': 0, 'mode': 1}, CONFIG_SCHEMA['columns'])

    def test_validate_columns_bad_index(self):
        columns = minimal_config()['columns']
        columns['reason'] = -1
        with self.assertRaises(ValueError):
            _validate_columns(columns, CONFIG_SCHEMA['columns'])

        columns['reason'] = '6'
        with self.assertRaises(TypeError):
            _validate_columns(columns, CONFIG_SCHEMA['columns'])


class RealTemplateSmokeTest(BaseTestCase):
    def test_templates_exist(self):
        cp = lib.ConfigPaths()
        self.assertTrue(cp.config_template.exists())
        self.assertTrue(cp.stylesheet_path.exists())

    def test_config_is_seeded_from_template(self):
        cp = lib.ConfigPaths()
        self.assertTrue(cp.config_path.exists())
        self.assertTrue(cp.auth_dir.is_dir())
        self.assertEqual(cp.session_path.parent, cp.auth_dir)

    def test_template_is_valid(self):
        with lib.settings.config_template.open('r', encoding='utf-8') as f:
            data = json.load(f)
        lib.settings.validate_config(data)
        self.assertEqual(data['columns']['reason'], 6)


class SettingsAPIBehaviour(BaseTestCase):
    """Functional coverage for SettingsAPI."""

    def setUp(self) -> None:
        super().setUp()
        write_json(self.config_paths.config_path, minimal_config())

        self.api: SettingsAPI = lib.settings
        self.api.load_config()

    def test_metadata_get(self):
        self.assertEqual(self.api['name'], 'Test Cash')
        self.assertEqual(self.api['monthly_budget'], 5000)
        with self.assertRaises(KeyError):
            _ = self.api['bogus']

    def test_metadata_set_and_coercion(self):
        self.api['timeout'] = '45'
        self.assertEqual(self.api['timeout'], 45)

        self.api['opening_balance'] = '1500'
        self.assertEqual(self.api['opening_balance'], 1500.0)

        # persisted
        with self.api.config_path.open('r', encoding='utf-8') as f:
            data = json.load(f)
        self.assertEqual(data['metadata']['timeout'], 45)

    def test_metadata_wrong_type_conversion_failure(self):
        with self.assertRaises(ValueError):
            self.api['opening_balance'] = 'not-a-float'
        with self.assertRaises(KeyError):
            self.api['bogus'] = 1

    def test_metadata_set_emits_signal(self):
        calls = []

        def _slot(key, value):
            calls.append((key, value))

        signals.metadataChanged.connect(_slot)
        try:
            self.api['name'] = 'Site Office'
            self.api.block_signals(True)
            self.api['name'] = 'Silent'
            self.api.block_signals(False)
        finally:
            signals.metadataChanged.disconnect(_slot)

        self.assertEqual(calls, [('name', 'Site Office')])
        self.assertEqual(self.api['name'], 'Silent')

    def test_set_section_emits_signal(self):
        calls = []

        def _slot(name):
            calls.append(name)

        signals.configSectionChanged.connect(_slot)
        try:
            script = self.api.get_section('script')
            script['folder_id'] = 'other-folder'
            self.api.set_section('script', script)
        finally:
            signals.configSectionChanged.disconnect(_slot)

        self.assertEqual(calls, ['script'])
        self.assertEqual(self.api.get_section('script')['folder_id'], 'other-folder')

    def test_set_section_invalid_value_rollback(self):
        columns = self.api.get_section('columns')
        columns['reason'] = -1

        with self.assertRaises(ValueError):
            self.api.set_section('columns', columns)

        self.assertEqual(self.api.get_section('columns')['reason'], 6)

    def test_set_section_unknown(self):
        with self.assertRaises(ValueError):
            self.api.set_section('does_not_exist', {})

    def test_get_section_returns_copy(self):
        section = self.api.get_section('spreadsheet')
        section['id'] = 'changed'
        self.assertEqual(self.api.get_section('spreadsheet')['id'], 'dummy')

    def test_save_section_unknown(self):
        with self.assertRaises(ValueError):
            self.api.save_section('does_not_exist')

    def test_load_config_invalid_json(self):
        self.api.config_path.write_text('{not json', encoding='utf-8')
        with self.assertRaises(status.ConfigInvalidError):
            self.api.load_config()

    def test_load_config_missing_section(self):
        data = minimal_config()
        del data['script']
        write_json(self.api.config_path, data)
        with self.assertRaises(status.ConfigInvalidError):
            self.api.load_config()

    def test_load_config_missing_file(self):
        self.api.config_path.unlink()
        with self.assertRaises(status.ConfigNotFoundError):
            self.api.load_config()
