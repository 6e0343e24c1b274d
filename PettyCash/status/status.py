"""Status definitions and exceptions for PettyCash.

This module provides:
    - Status: enumeration of possible application states
    - STATUS_MESSAGE: user-facing messages for each status
    - get_message: retrieve the message for a status
    - BaseStatusException: base exception carrying a Status
    - Specific exceptions (e.g., FetchError, FormatError) raised by the core services
"""
import enum
import logging
from typing import Dict, Optional


class Status(enum.StrEnum):
    """Enumeration of application status codes."""
    UnknownStatus = enum.auto()
    Okay = enum.auto()

    # Config status
    ConfigNotFound = enum.auto()
    ConfigInvalid = enum.auto()

    # Remote read status
    FetchFailed = enum.auto()
    FormatInvalid = enum.auto()

    # Input and remote write status
    ValidationFailed = enum.auto()
    WriteFailed = enum.auto()

    # Session status
    NotAuthenticated = enum.auto()
    PermissionDenied = enum.auto()


STATUS_MESSAGE: Dict[Status, str] = {
    Status.UnknownStatus: 'Unknown status. Please try again.',
    Status.Okay: 'Everything is okay.',

    Status.ConfigNotFound: 'Could not find the configuration file.',
    Status.ConfigInvalid: 'The configuration seems to be incomplete, or contains invalid values.',

    Status.FetchFailed: 'Could not load data from the spreadsheet. Please check your connection.',
    Status.FormatInvalid: 'The spreadsheet returned data in an unexpected format.',

    Status.ValidationFailed: 'Some required values are missing.',
    Status.WriteFailed: 'Could not save to the spreadsheet.',

    Status.NotAuthenticated: 'Invalid Username or Password.',
    Status.PermissionDenied: 'You do not have access to this page.',
}


def get_message(status: Status) -> str:
    """
    Get the message for a given status.

    Args:
        status (Status): The status enum.

    Returns:
        str: The message associated with the status.
    """
    return STATUS_MESSAGE.get(status, 'Unknown status')


class BaseStatusException(Exception):
    """Base exception for status-based errors in PettyCash.

    Attributes:
        status (Status): Status code associated with this error.
        status_message (str): User-facing message for the status.
        message (str): The specific message, or the status message when none was given.

    Args:
        message (str): Optional additional context for the error.
    """
    status = Status.UnknownStatus

    def __init__(self, message: Optional[str] = None):
        self.status_message = get_message(self.status)
        self.message = message or self.status_message
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        super().__init__(exception_message)

        logging.error(exception_message)

        from ..ui.actions import signals
        signals.error.emit(self.message)


class UnknownError(BaseStatusException):
    """Exception for an unknown error escaping an operation."""
    pass


class ConfigNotFoundError(BaseStatusException):
    """Exception raised when the configuration file cannot be found."""
    status = Status.ConfigNotFound


class ConfigInvalidError(BaseStatusException):
    """Exception raised when the configuration is invalid or malformed."""
    status = Status.ConfigInvalid


class FetchError(BaseStatusException):
    """Exception raised when reading the remote table fails at the transport level.

    Attributes:
        status_code (int): The HTTP status code, or None for connection failures.
    """
    status = Status.FetchFailed

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class FormatError(BaseStatusException):
    """Exception raised when the remote payload lacks the expected structure."""
    status = Status.FormatInvalid


class ValidationError(BaseStatusException):
    """Exception raised when user input is empty or incomplete."""
    status = Status.ValidationFailed


class WriteError(BaseStatusException):
    """Exception raised when the script endpoint rejects or fails a write."""
    status = Status.WriteFailed


class AuthenticationError(BaseStatusException):
    """Exception raised when the user id and password do not match a user record."""
    status = Status.NotAuthenticated


class PermissionDeniedError(BaseStatusException):
    """Exception raised when a session is not allowed to use a page or operation."""
    status = Status.PermissionDenied
