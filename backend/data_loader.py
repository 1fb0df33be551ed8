"""Delimited text loading and column type inference.

The first non-empty line is the header (unless the caller says there is
none, in which case columns are named ``column_1``, ``column_2``, ...);
fields are comma-delimited by default, with RFC 4180 quoting (quoted fields
may hold delimiters and newlines). Every cell is read as text first, then
each column's type is decided once:

- numeric if every non-empty cell is a numeric literal
- boolean if every non-empty cell is ``true``/``false`` (any case)
- text otherwise, including columns with no non-empty cells

Empty cells become Null and short rows are padded with Null.
"""
from __future__ import annotations

import io
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from config import settings
from errors import InvalidRequestError, ParseError
from models.dataset import Column, ColumnType, Dataset, parse_bool, parse_number
from services.storage import LocalStorage, get_storage

QUOTE_AND_LINE_CHARS = "\"\r\n"


def _infer_column(cells: pd.Series) -> tuple[ColumnType, pd.Series]:
    """Decide a column's type and convert its cells accordingly."""
    blank = cells.str.strip() == ""
    present = cells[~blank]
    if len(present) == 0:
        return ColumnType.TEXT, pd.Series([None] * len(cells), dtype="object")

    numbers = present.map(parse_number)
    if numbers.notna().all():
        converted = pd.Series(np.nan, index=cells.index, dtype="float64")
        converted[present.index] = numbers.astype("float64")
        return ColumnType.NUMERIC, converted

    flags = present.map(parse_bool)
    if flags.notna().all():
        converted = pd.Series([None] * len(cells), index=cells.index, dtype="object")
        converted[present.index] = flags
        return ColumnType.BOOLEAN, converted

    return ColumnType.TEXT, cells.astype("object").where(~blank, None)


def parse_csv(
    content: Union[str, bytes],
    source: str = "<memory>",
    delimiter: str = ",",
    has_header: bool = True,
) -> Dataset:
    """Parse CSV text into a typed Dataset.

    Args:
        content: Raw file content.
        source: Name used in error messages.
        delimiter: Single field separator character.
        has_header: Whether the first non-empty line names the columns.

    Returns:
        Dataset with one row per data line.

    Raises:
        ParseError: On undecodable bytes, malformed quoting, rows wider than
            the header, duplicate header names, or an empty file.
        InvalidRequestError: If the delimiter is not a usable single character.
    """
    if len(delimiter) != 1 or delimiter in QUOTE_AND_LINE_CHARS:
        raise InvalidRequestError(
            f"Invalid delimiter {delimiter!r}: use a single character other than a quote or newline"
        )
    if isinstance(content, bytes):
        try:
            content = content.decode(settings.analysis.encoding)
        except UnicodeDecodeError as e:
            raise ParseError(f"Could not decode {source} as {settings.analysis.encoding}: {e.reason}") from e
    # Byte order mark left by some editors
    content = content.lstrip("\ufeff")

    try:
        raw = pd.read_csv(
            io.StringIO(content),
            header=None,
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise ParseError(f"{source} is empty") from e
    except pd.errors.ParserError as e:
        raise ParseError(f"Malformed CSV in {source}: {e}") from e

    # Padding for short rows arrives as NaN
    raw = raw.fillna("")
    if has_header:
        header = [str(name).strip() for name in raw.iloc[0].tolist()]
        _check_header(header, source)
        body = raw.iloc[1:].reset_index(drop=True)
    else:
        header = [f"column_{position + 1}" for position in range(raw.shape[1])]
        body = raw
    columns: List[Column] = []
    data: Dict[str, pd.Series] = {}
    for position, name in enumerate(header):
        cells = body[body.columns[position]]
        column_type, converted = _infer_column(cells)
        columns.append(Column(name, column_type))
        data[name] = converted.reset_index(drop=True)

    frame = pd.DataFrame(data, columns=header, index=pd.RangeIndex(len(body)))
    return Dataset(columns, frame)


def _check_header(header: List[str], source: str) -> None:
    seen = set()
    duplicates = []
    for name in header:
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)
    if duplicates:
        raise ParseError(
            f"Duplicate column names in {source} header: {', '.join(repr(d) for d in duplicates)}"
        )


async def load_dataset(
    path: str,
    storage: Optional[LocalStorage] = None,
    delimiter: str = ",",
    has_header: bool = True,
) -> Dataset:
    """Load a workspace file into a Dataset.

    The path is resolved against the workspace root before the file is
    touched; the read itself is non-blocking. ``delimiter`` and
    ``has_header`` are passed through to parse_csv.

    Raises:
        PathTraversalError: If the path escapes the workspace root.
        NotFoundError: If the file is missing or unreadable.
        ParseError: If the content is not valid CSV.
    """
    storage = storage or get_storage()
    content = await storage.read_file(path)
    return parse_csv(content, source=path, delimiter=delimiter, has_header=has_header)
