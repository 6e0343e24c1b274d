"""
PettyCash data package: transaction analytics and Qt models.

This package provides:

- :mod:`PettyCash.data.data` – Transaction frame preparation, dashboard statistics and report tables.
- :mod:`PettyCash.data.model` – Qt table model for displaying a DataFrame.
"""
