"""Test suite for PettyCash.

Application data is redirected to Qt's test location before any PettyCash module is imported.
"""
import os

os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

from PySide6 import QtCore

QtCore.QStandardPaths.setTestModeEnabled(True)
