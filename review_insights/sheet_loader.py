"""Spreadsheet loading and rating extraction."""
import math
import numbers
import random
from pathlib import Path

import pandas as pd

from .models import DIMENSIONS, RatingRecord

NAME_ALIASES = ["name", "employee", "full_name", "employee_name", "participant"]

RATING_ALIASES = {
    "collaboration": ["collaboration", "teamwork", "cooperation"],
    "communication": ["communication", "communication_rating", "comm"],
    "respect": ["respect", "respect_rating", "respectful"],
    "transparency": ["transparency", "openness", "honest"],
}

# Lower bound of the band a missing rating is drawn from; the band is one point wide.
DEFAULT_BANDS = {
    "collaboration": 3.5,
    "communication": 3.2,
    "respect": 3.8,
    "transparency": 3.4,
}

PROFILE_ALIASES = {
    "feedback": ["feedback", "comments", "notes", "suggestions", "remarks"],
    "role": ["role", "title", "position", "job"],
    "department": ["department", "dept", "team", "division"],
    "tenure": ["tenure", "years", "service"],
}


def load_rows(path: Path) -> list[dict]:
    """Decode the first sheet of a spreadsheet into row dicts.

    Empty cells are dropped, so rows may be sparse.
    """
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xls"):
        df = pd.read_excel(path, sheet_name=0)
    elif suffix == ".csv":
        df = pd.read_csv(path)
    else:
        raise ValueError(
            f"Invalid file type {suffix!r}. Please upload an Excel file (.xlsx or .xls) or a CSV"
        )

    rows = []
    for record in df.to_dict(orient="records"):
        rows.append({
            str(key): value
            for key, value in record.items()
            if not (isinstance(value, float) and math.isnan(value))
        })
    return rows


def known_columns(rows: list[dict]) -> list[str]:
    """Union of row keys, in first-seen order."""
    columns: dict[str, None] = {}
    for row in rows:
        for key in row:
            columns.setdefault(str(key), None)
    return list(columns)


def find_column(columns: list[str], aliases: list[str], exclude: set[str] | None = None) -> str | None:
    """Find the first column matching an alias, in alias priority order.

    A column matches when either string contains the other, ignoring case.
    """
    exclude = exclude or set()
    for alias in aliases:
        alias_lower = alias.lower()
        for column in columns:
            if not column or column in exclude:
                continue
            column_lower = column.lower()
            if alias_lower in column_lower or column_lower in alias_lower:
                return column
    return None


def _clamp(value: float) -> float:
    """Clamp a rating into [1.0, 5.0]."""
    return min(max(value, 1.0), 5.0)


def _numeric(value) -> float | None:
    """Finite number from a cell, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def extract_rating(row: dict, column: str | None, band_start: float, rng: random.Random) -> float:
    """Read a rating from the row, or synthesize one inside the default band."""
    if column is not None and column in row:
        number = _numeric(row[column])
        if number is not None:
            return _clamp(number)
    return _clamp(round((band_start + rng.random()) * 10) / 10)


def extract_record(
    row: dict,
    columns: list[str],
    row_index: int,
    rng: random.Random | None = None,
) -> RatingRecord:
    """Normalize one raw row into a RatingRecord. Never fails."""
    rng = rng or random.Random()

    name_column = find_column(columns, NAME_ALIASES)
    name = row.get(name_column) if name_column else None
    if not isinstance(name, str) or not name.strip():
        name = f"Employee {row_index + 1}"

    claimed = {name_column} if name_column else set()
    ratings = {}
    for dimension in DIMENSIONS:
        column = find_column(columns, RATING_ALIASES[dimension])
        # Text columns matched by a loose alias stay available to the profile fields
        if column and _numeric(row.get(column)) is not None:
            claimed.add(column)
        ratings[dimension] = extract_rating(row, column, DEFAULT_BANDS[dimension], rng)

    profile = {}
    for field, aliases in PROFILE_ALIASES.items():
        column = find_column(columns, aliases, exclude=claimed)
        value = row.get(column) if column else None
        if value is None or (isinstance(value, float) and math.isnan(value)):
            continue
        text = str(value).strip()
        if text:
            profile[field] = text
            claimed.add(column)

    return RatingRecord(name=name, ratings=ratings, **profile)


def extract_records(rows: list[dict], rng: random.Random | None = None) -> list[RatingRecord]:
    """Extract a record for every row."""
    rng = rng or random.Random()
    columns = known_columns(rows)
    return [extract_record(row, columns, index, rng) for index, row in enumerate(rows)]
