"""
Settings package: configuration schema, persistence and locale helpers.

Modules:

- :mod:`PettyCash.settings.lib` – Application paths and the :class:`SettingsAPI` singleton.
- :mod:`PettyCash.settings.locale` – Babel-based formatting of amounts and dates.
"""
