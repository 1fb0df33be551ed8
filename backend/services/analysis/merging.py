"""Joining two datasets on a shared key column."""
from __future__ import annotations

from typing import Dict, List

from errors import DuplicateColumnError, InvalidRequestError
from models.dataset import Column, ColumnType, Dataset, is_null, to_text

MERGE_HOWS = ("inner", "left", "right", "outer")

RIGHT_SUFFIX = "_right"

_KEY = "__merge_key__"
_RIGHT_KEY = "__merge_right_key__"
_LEFT_POSITION = "__merge_left_position__"
_RIGHT_POSITION = "__merge_right_position__"


def _right_names(left: Dataset, right_columns: List[Column]) -> Dict[str, str]:
    """Output names for the right side's non-key columns.

    A name already used on the left (ignoring case) gets the ``_right``
    suffix.
    """
    taken = {name.lower() for name in left.column_names}
    names: Dict[str, str] = {}
    for column in right_columns:
        name = column.name
        if name.lower() in taken:
            name = f"{name}{RIGHT_SUFFIX}"
        if name.lower() in taken:
            raise DuplicateColumnError(f"Column '{name}' already exists")
        taken.add(name.lower())
        names[column.name] = name
    return names


def merge_datasets(left: Dataset, right: Dataset, on: str, how: str = "inner") -> Dataset:
    """Join ``right`` onto ``left`` where the text of their ``on`` cells is equal.

    Rows follow the left side's order, a left row repeating once per matching
    right row; for ``right`` and ``outer`` the unmatched right rows come last
    in their own order. Null keys match each other. The key column appears
    once, under its left name; it stays typed when both sides agree and is
    Text otherwise.

    Raises:
        InvalidRequestError: If ``how`` is not a supported join.
        ColumnNotFoundError: If either side lacks the key column.
        DuplicateColumnError: If a suffixed right column name is still taken.
    """
    how = str(how).strip().lower()
    if how not in MERGE_HOWS:
        raise InvalidRequestError(f"Invalid merge type '{how}'. Use one of: {', '.join(MERGE_HOWS)}")

    left_on = left.resolve_column(on)
    right_on = right.resolve_column(on)
    left_type = left.column(left_on).type
    right_type = right.column(right_on).type
    key_type = left_type if left_type is right_type else ColumnType.TEXT

    right_columns = [c for c in right.columns if c.name != right_on]
    renamed = _right_names(left, right_columns)

    left_frame = left.frame.copy()
    left_frame[_KEY] = left.values(left_on).map(to_text)
    left_frame[_LEFT_POSITION] = range(left.row_count)

    right_frame = right.frame.drop(columns=[right_on]).rename(columns=renamed)
    right_frame[_KEY] = right.values(right_on).map(to_text)
    right_frame[_RIGHT_KEY] = right.values(right_on)
    right_frame[_RIGHT_POSITION] = range(right.row_count)

    merged = left_frame.merge(right_frame, on=_KEY, how=how, sort=False)
    # outer joins sort their keys, so restore left-then-right order
    merged = merged.sort_values([_LEFT_POSITION, _RIGHT_POSITION], kind="stable", na_position="last")

    keys = merged[left_on].where(merged[_LEFT_POSITION].notna(), merged[_RIGHT_KEY])
    if left_type is not right_type:
        keys = keys.map(lambda value: None if is_null(value) else to_text(value))

    columns: List[Column] = [
        Column(c.name, key_type) if c.name == left_on else c for c in left.columns
    ]
    columns += [Column(renamed[c.name], c.type) for c in right_columns]

    frame = merged[[c.name for c in columns]].copy()
    frame[left_on] = keys
    for column in columns:
        if column.type is ColumnType.NUMERIC:
            frame[column.name] = frame[column.name].astype("float64")
        else:
            series = frame[column.name].astype("object")
            frame[column.name] = series.where(series.notna(), None)
    return Dataset(columns, frame)
