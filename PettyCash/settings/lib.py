"""Settings library for the spreadsheet, script endpoint and application configuration.

Provides:
    - Schema validation and enforcement for config.json structure.
    - Loading, validating and saving configuration sections.
    - Application paths, including the persisted login session.
"""

import json
import logging
import pathlib
import shutil
from typing import Dict, Any, List

from PySide6 import QtCore, QtWidgets

from ..status import status

app_name: str = 'PettyCash'

REFERENCE_COLUMN_KEYS: List[str] = ['person_name', 'mode', 'group_head', 'reason']

METADATA_KEYS: List[str] = [
    'name',
    'locale',
    'opening_balance',
    'monthly_budget',
    'timeout',
    'theme',
]

CONFIG_SCHEMA: Dict[str, Any] = {
    'spreadsheet': {
        'type': dict,
        'required': True,
        'item_schema': {
            'id': {'type': str, 'required': True},
            'master_sheet': {'type': str, 'required': True},
            'login_sheet': {'type': str, 'required': True},
            'data_sheet': {'type': str, 'required': True},
        }
    },
    'script': {
        'type': dict,
        'required': True,
        'item_schema': {
            'url': {'type': str, 'required': True},
            'folder_id': {'type': str, 'required': True},
        }
    },
    'columns': {
        'type': dict,
        'required': True,
        'required_keys': REFERENCE_COLUMN_KEYS,
    },
    'metadata': {
        'type': dict,
        'required': True,
        'item_schema': {
            'name': {'type': str, 'required': True},
            'locale': {'type': str, 'required': True},
            'opening_balance': {'type': (int, float), 'required': True},
            'monthly_budget': {'type': (int, float), 'required': True},
            'timeout': {'type': int, 'required': True},
            'theme': {'type': str, 'required': True},
        }
    },
}


def _validate_items(section: str, data: Dict[str, Any], item_schema: Dict[str, Any]) -> None:
    """Validate a flat section against its item schema.

    Args:
        section: Name of the section, used in error messages.
        data: The section data.
        item_schema: Mapping of key to {'type', 'required'} specs.

    Raises:
        ValueError: If a required key is missing.
        TypeError: If a value has the wrong type.
    """
    logging.debug(f'Validating "{section}" section.')
    for key, specs in item_schema.items():
        if specs['required'] and key not in data:
            msg = f'"{section}" is missing "{key}".'
            logging.error(msg)
            raise ValueError(msg)
        if key not in data:
            continue
        # bool is an int subclass, never accept it for numeric fields
        if isinstance(data[key], bool) or not isinstance(data[key], specs['type']):
            msg = f'"{section}.{key}" must be {specs["type"]}, got {type(data[key])}.'
            logging.error(msg)
            raise TypeError(msg)


def _validate_columns(columns_dict: Dict[str, Any], specs: Dict[str, Any]) -> None:
    """Validate the 'columns' section of the configuration.

    Ensures every reference column key is present and maps to a non-negative integer index.

    Args:
        columns_dict: Mapping of reference column keys to 0-based column indices.
        specs: Schema dict containing 'required_keys'.

    Raises:
        ValueError: If a key is missing or an index is negative.
        TypeError: If an index is not an integer.
    """
    logging.debug('Validating "columns" section.')
    missing = [k for k in specs['required_keys'] if k not in columns_dict]
    if missing:
        msg: str = f'columns is missing {missing}.'
        logging.error(msg)
        raise ValueError(msg)
    for key, idx in columns_dict.items():
        if isinstance(idx, bool) or not isinstance(idx, int):
            msg = f'Column index for "{key}" must be an integer, got {type(idx)}.'
            logging.error(msg)
            raise TypeError(msg)
        if idx < 0:
            msg = f'Column index for "{key}" must not be negative, got {idx}.'
            logging.error(msg)
            raise ValueError(msg)


def _coerce_metadata(key: str, value: Any) -> Any:
    """Convert ``value`` to the schema type of metadata ``key``.

    Raises:
        ValueError: If the value cannot be converted.
    """
    _type = CONFIG_SCHEMA['metadata']['item_schema'][key]['type']
    if isinstance(value, _type) and not isinstance(value, bool):
        return value

    logging.warning(f'Metadata key "{key}" is not of type {_type}, got {type(value)}.')
    convert = str if _type is str else int if _type is int else float
    try:
        return convert(value)
    except (TypeError, ValueError) as ex:
        raise ValueError(f'Cannot convert "{value}" for metadata key "{key}".') from ex


class ConfigPaths:
    """Application file paths. The packaged template seeds config.json on first run."""

    def __init__(self) -> None:
        QtWidgets.QApplication.setApplicationName(app_name)
        QtWidgets.QApplication.setOrganizationName('')

        p = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.AppDataLocation)
        app_data_dir = pathlib.Path(p)
        logging.debug(f'Using app data directory: {app_data_dir}')

        self.template_dir: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config'
        self.config_template: pathlib.Path = self.template_dir / 'config.json.template'
        self.stylesheet_path: pathlib.Path = self.template_dir / 'stylesheet.qss'

        self.config_dir: pathlib.Path = app_data_dir / 'config'
        self.auth_dir: pathlib.Path = self.config_dir / 'auth'

        self.config_path: pathlib.Path = self.config_dir / 'config.json'
        self.session_path: pathlib.Path = self.auth_dir / 'session.json'

        self._verify_and_prepare()

    def _verify_and_prepare(self) -> None:
        """Create the config directories and seed config.json from the template.

        Raises:
            FileNotFoundError: If the packaged template is missing.
        """
        if not self.config_template.is_file():
            msg: str = f'Missing config template: {self.config_template}'
            logging.error(msg)
            raise FileNotFoundError(msg)

        for path in (self.config_dir, self.auth_dir):
            if not path.exists():
                logging.debug(f'Creating directory: {path}')
                path.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            logging.debug(f'Copying default config from template to {self.config_path}')
            shutil.copy(self.config_template, self.config_path)


class SettingsAPI(ConfigPaths):
    """Reads and writes the sections of config.json.

    Metadata values are also reachable as items, e.g. ``settings['locale']``.
    """

    def __init__(self) -> None:
        super().__init__()

        self._signals_blocked: bool = False
        self.config_data: Dict[str, Any] = {k: {} for k in CONFIG_SCHEMA}

        self.load_config()

    def _check_section(self, section_name: str, operation: str) -> None:
        if section_name not in self.config_data:
            msg: str = f'Unknown section for {operation}: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

    def _section_changed(self, section_name: str) -> None:
        if self._signals_blocked:
            return

        from ..ui.actions import signals
        signals.configSectionChanged.emit(section_name)

    def __getitem__(self, key: str) -> Any:
        """Returns a metadata value, or None when the stored value has the wrong type.

        Raises:
            KeyError: If key is not in METADATA_KEYS.
        """
        if key not in METADATA_KEYS:
            raise KeyError(f'Invalid metadata key: {key}, must be one of {METADATA_KEYS}')

        _type = CONFIG_SCHEMA['metadata']['item_schema'][key]['type']
        v = self.config_data.get('metadata', {}).get(key)

        if not isinstance(v, _type):
            logging.error(f'Metadata key "{key}" is not of type {_type}, got {type(v)}.')
            return None

        return v

    def __setitem__(self, key: str, value: Any) -> None:
        """Sets and saves a metadata value, converting it to the schema type when needed.

        Raises:
            KeyError: If key is not in METADATA_KEYS.
            ValueError: If the value cannot be converted.
        """
        if key not in METADATA_KEYS:
            raise KeyError(f'Invalid metadata key: {key}, must be one of {METADATA_KEYS}')

        value = _coerce_metadata(key, value)
        self.config_data['metadata'][key] = value
        self.save_section('metadata')

        if self._signals_blocked:
            return

        from ..ui.actions import signals
        signals.metadataChanged.emit(key, value)

    def block_signals(self, v: bool) -> None:
        self._signals_blocked = v

    def load_config(self) -> Dict[str, Any]:
        """Load config.json from disk and validate against schema.

        Returns:
            The loaded configuration dictionary.

        Raises:
            status.ConfigNotFoundError: If config.json is missing.
            status.ConfigInvalidError: If JSON parsing or validation fails.
        """
        logging.debug(f'Loading config from "{self.config_path}"')
        if not self.config_path.exists():
            raise status.ConfigNotFoundError

        try:
            with self.config_path.open('r', encoding='utf-8') as f:
                data: Dict[str, Any] = json.load(f)
            self.validate_config(data=data)
        except status.ConfigInvalidError:
            raise
        except (ValueError, TypeError) as ex:
            raise status.ConfigInvalidError(str(ex)) from ex

        self.config_data = data
        return self.config_data

    def validate_config(self, data: Dict[str, Any] = None) -> None:
        """Validate configuration data against CONFIG_SCHEMA.

        Args:
            data (dict, optional): Data to validate. Defaults to self.config_data.

        Raises:
            status.ConfigInvalidError: If a required section is missing or has the wrong type.
            ValueError, TypeError: If a section's content fails validation.
        """
        if data is None:
            data = self.config_data
        if not data:
            raise status.ConfigInvalidError('Configuration is empty.')

        logging.debug('Validating config data against schema.')
        for field, specs in CONFIG_SCHEMA.items():
            if specs.get('required') and field not in data:
                raise status.ConfigInvalidError(f'Missing required field: {field}')

            if not isinstance(data[field], specs['type']):
                raise status.ConfigInvalidError(
                    f'Field "{field}" must be {specs["type"]}, got {type(data[field])}.')

            if field == 'columns':
                _validate_columns(data[field], specs)
            else:
                _validate_items(field, data[field], specs['item_schema'])

        logging.debug('Config data is valid.')

    def get_section(self, section_name: str) -> Dict[str, Any]:
        """Returns a copy of a configuration section.

        Raises:
            KeyError: If section_name is not a known section.
        """
        return self.config_data[section_name].copy()

    def set_section(self, section_name: str, new_data: Dict[str, Any]) -> None:
        """Replace, validate and persist a configuration section.

        The previous section data is restored when validation fails.

        Raises:
            ValueError: If section_name is unrecognized or the data is invalid.
            TypeError: If the data has values of the wrong type.
        """
        self._check_section(section_name, 'set')

        previous: Dict[str, Any] = self.config_data[section_name]
        self.config_data[section_name] = new_data
        try:
            self.validate_config()
        except (ValueError, TypeError, status.ConfigInvalidError) as e:
            logging.error(f'Invalid "{section_name}" section, keeping the previous one: {e}')
            self.config_data[section_name] = previous
            raise

        self.save_section(section_name)
        self._section_changed(section_name)

    def save_section(self, section_name: str) -> None:
        """Write a single section back to config.json, leaving the others as they are on disk.

        Raises:
            ValueError: If section_name is not recognized.
        """
        self._check_section(section_name, 'save')

        with self.config_path.open('r', encoding='utf-8') as f:
            data: Dict[str, Any] = json.load(f)

        data[section_name] = self.config_data[section_name]

        with self.config_path.open('w', encoding='utf-8') as f:
            json.dump(data, f, indent=4, ensure_ascii=False)


settings: SettingsAPI = SettingsAPI()
