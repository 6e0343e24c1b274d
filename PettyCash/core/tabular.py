"""Parsing of the spreadsheet visualization-query response.

The query endpoint answers with a JSON payload wrapped in a callback envelope, e.g.::

    /*O_o*/
    google.visualization.Query.setResponse({"table": {"rows": [{"c": [{"v": "Cash"}, null]}]}});

Row 0 of ``table.rows`` is the header row. Any level of a row may be missing: the ``c`` list,
an entry of it, or the entry's ``v`` value. :meth:`TabularResponse.cell` is the single accessor
that turns all of these into ``None``.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from ..status import status

CellValue = Union[str, float, bool]


@dataclass(frozen=True)
class Cell:
    """A present, non-null spreadsheet cell."""
    v: CellValue
    f: Optional[str] = None

    @property
    def text(self) -> str:
        """The cell value as trimmed text."""
        return to_text(self.v)

    @property
    def raw_text(self) -> str:
        """The cell value as text, surrounding whitespace kept."""
        return to_text(self.v, strip=False)


def to_text(value: Any, strip: bool = True) -> str:
    """Convert a raw cell value to text, trimmed unless ``strip`` is False.

    Integral floats are rendered without the fractional part, so ``1.0`` reads as ``'1'``.
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value)
    return text.strip() if strip else text


def unwrap_envelope(text: str) -> Dict[str, Any]:
    """Strip the callback envelope and decode the payload.

    The payload is the substring between the first ``(`` and the last ``)``.

    Raises:
        status.FormatError: If the envelope is missing or the payload is not valid JSON.
    """
    start = text.find('(')
    end = text.rfind(')')
    if start == -1 or end == -1 or end <= start:
        raise status.FormatError('The response is not wrapped in a callback envelope.')

    try:
        payload = json.loads(text[start + 1:end])
    except json.JSONDecodeError as ex:
        raise status.FormatError(f'The response payload is not valid JSON: {ex}') from ex

    if not isinstance(payload, dict):
        raise status.FormatError('The response payload is not an object.')
    return payload


class TabularResponse:
    """Ordered rows of nullable cells, as returned by the query endpoint.

    Args:
        rows: The raw ``table.rows`` list.
    """

    def __init__(self, rows: List[Any]) -> None:
        self.rows: List[Any] = rows

    def __len__(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f'<TabularResponse rows={len(self.rows)}>'

    @classmethod
    def from_values(cls, values: Iterable[Iterable[Any]]) -> 'TabularResponse':
        """Build a response from plain row values, ``None`` marking a null cell."""
        rows = []
        for row in values:
            rows.append({'c': [None if v is None else {'v': v} for v in row]})
        return cls(rows)

    @property
    def data_row_count(self) -> int:
        """Number of rows after the header row."""
        return max(len(self.rows) - 1, 0)

    def data_rows(self) -> Iterator[int]:
        """Yields the table index of every row after the header row."""
        return iter(range(1, len(self.rows)))

    def cell(self, row_index: int, column_index: int) -> Optional[Cell]:
        """Returns the cell at the given table position, or None if it is absent or null."""
        if row_index < 0 or row_index >= len(self.rows) or column_index < 0:
            return None

        row = self.rows[row_index]
        if not isinstance(row, dict):
            return None

        cells = row.get('c')
        if not isinstance(cells, list) or column_index >= len(cells):
            return None

        raw = cells[column_index]
        if not isinstance(raw, dict) or raw.get('v') is None:
            return None
        return Cell(v=raw['v'], f=raw.get('f'))

    def value(self, row_index: int, column_index: int) -> Optional[str]:
        """Returns the trimmed text of a cell, or None if the cell is absent."""
        c = self.cell(row_index, column_index)
        if c is None:
            return None
        return c.text

    def column_values(self, column_index: int) -> Iterator[str]:
        """Yields the trimmed text of every present cell in a column, skipping the header."""
        for row_index in self.data_rows():
            v = self.value(row_index, column_index)
            if v is not None:
                yield v


def parse_response(text: str) -> TabularResponse:
    """Parse a raw query response into a :class:`TabularResponse`.

    Raises:
        status.FormatError: If the envelope is invalid or ``table.rows`` is missing.
    """
    payload = unwrap_envelope(text)

    table = payload.get('table')
    if not isinstance(table, dict) or not isinstance(table.get('rows'), list):
        if payload.get('status') == 'error':
            errors = payload.get('errors') or [{}]
            detail = errors[0].get('detailed_message') or errors[0].get('message')
            if detail:
                raise status.FormatError(f'The query failed: {detail}')
        raise status.FormatError('Data is not in the expected format (no table/rows).')

    response = TabularResponse(table['rows'])
    logging.debug(f'Parsed {len(response)} rows (including header).')
    return response


class OptionSet:
    """Insertion-ordered, case-sensitive set of trimmed, non-empty strings."""

    def __init__(self, values: Iterable[Any] = ()) -> None:
        self._values: Dict[str, None] = {}
        for v in values:
            self.add(v)

    def add(self, value: Any) -> None:
        """Add a value. None, empty and whitespace-only values are ignored."""
        text = to_text(value)
        if not text:
            return
        self._values.setdefault(text, None)

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OptionSet):
            return list(self) == list(other)
        if isinstance(other, (list, tuple)):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f'OptionSet({list(self._values)!r})'


@dataclass
class DropdownOptions:
    """The option sets backing the transaction form's selection controls."""
    person_name: OptionSet
    mode: OptionSet
    group_head: OptionSet
    reason: OptionSet

    def get(self, key: str) -> OptionSet:
        """Returns the option set for a reference column key."""
        return getattr(self, key)
