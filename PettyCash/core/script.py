"""Client for the spreadsheet's script-execution endpoint.

The endpoint accepts form-encoded POSTs with an ``action`` field and answers with JSON::

    {"success": true, "fileUrl": "..."}
    {"success": false, "error": "..."}

Recognised actions are ``insert`` (append a row), ``update`` (write a row at a 1-based row
number) and ``uploadFile`` (store a base64 payload in a folder and return its link).
"""
import json
import logging
from typing import Any, Dict, List

import requests

from . import service
from ..status import status


def script_url() -> str:
    """
    Returns the configured script endpoint URL.

    Raises:
        status.ConfigInvalidError: If the URL is not configured.
    """
    from ..settings import lib

    url = lib.settings.get_section('script').get('url')
    if not url:
        raise status.ConfigInvalidError('Script endpoint URL is not configured.')
    return url


def post_action(action: str, **fields: str) -> Dict[str, Any]:
    """
    Posts an action to the script endpoint.

    Args:
        action: The action name.
        **fields: Form fields sent alongside the action.

    Returns:
        The decoded JSON result.

    Raises:
        status.WriteError: On a transport failure, a non-success status, a non-JSON body or a
            result whose ``success`` flag is not set.
    """
    url = script_url()
    data = {'action': action}
    data.update(fields)

    logging.debug(f'Posting "{action}" to the script endpoint.')
    try:
        response = service.get_session().post(url, data=data, timeout=service.get_timeout())
    except requests.RequestException as ex:
        raise status.WriteError(f'Request failed: {ex}') from ex

    if not response.ok:
        raise status.WriteError(f'Script endpoint returned {response.status_code} - {response.reason}')

    try:
        result = response.json()
    except ValueError as ex:
        raise status.WriteError('Script endpoint returned an invalid response.') from ex

    if not isinstance(result, dict) or not result.get('success'):
        message = result.get('error') if isinstance(result, dict) else None
        raise status.WriteError(message or f'Failed to complete "{action}".')

    logging.debug(f'"{action}" completed.')
    return result


def insert_row(sheet_name: str, values: List[Any]) -> Dict[str, Any]:
    """
    Appends a row to the end of a sheet.
    """
    return post_action(
        'insert',
        sheetName=sheet_name,
        rowData=json.dumps(values),
    )


def update_row(sheet_name: str, row_number: int, values: List[Any]) -> Dict[str, Any]:
    """
    Writes a full row at a 1-based sheet row number.
    """
    if row_number < 1:
        raise ValueError(f'Row numbers are 1-based, got {row_number}.')

    return post_action(
        'update',
        sheetName=sheet_name,
        rowIndex=str(row_number),
        rowData=json.dumps(values),
    )


def upload_file(file_name: str, base64_data: str, mime_type: str, folder_id: str) -> str:
    """
    Uploads a base64-encoded file and returns the hosted file link.

    Raises:
        status.WriteError: If the upload fails or no link is returned.
    """
    result = post_action(
        'uploadFile',
        fileName=file_name,
        base64Data=base64_data,
        mimeType=mime_type,
        folderId=folder_id,
    )
    file_url = result.get('fileUrl')
    if not file_url:
        raise status.WriteError('File upload did not return a file link.')
    return file_url
