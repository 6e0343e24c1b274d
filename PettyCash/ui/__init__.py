"""
UI package: application actions, application setup, theming, and widgets.

This package provides:

- :mod:`PettyCash.ui.actions` – Application-wide Qt signals and utility slots.
- :mod:`PettyCash.ui.app` – QApplication subclass.
- :mod:`PettyCash.ui.ui` – Sizes, colors, stylesheet and the progress dialog.
- :mod:`PettyCash.ui.login` – Login dialog.
- :mod:`PettyCash.ui.form` – Transaction entry form.
- :mod:`PettyCash.ui.dashboard` – Dashboard tiles and transaction table.
- :mod:`PettyCash.ui.reports` – Filtered breakdown and trend tables with CSV export.
- :mod:`PettyCash.ui.main` – Main window composition.
"""
