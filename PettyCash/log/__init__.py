"""
Logging subsystem: handlers and views for application logging.

Modules:

- :mod:`PettyCash.log.log` – Log handler integrating with Python logging.
- :mod:`PettyCash.log.view` – Dialog for browsing and filtering in-memory log messages.
"""
