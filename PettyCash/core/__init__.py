"""
Core package for PettyCash: spreadsheet reads, writes and the user session.

This package includes:

- :mod:`PettyCash.core.tabular` – Parsing of the visualization-query response and option sets.
- :mod:`PettyCash.core.service` – Sheet reads with asynchronous fetch wrappers.
- :mod:`PettyCash.core.script` – Client for the script-execution endpoint.
- :mod:`PettyCash.core.writer` – Placement of new dropdown values and transaction submission.
- :mod:`PettyCash.core.auth` – User records, login and the persisted session.
"""
