"""Birth date validation and the date→mansion mapping.

`resolve` is pure: the same date always yields the same mansion, on every
device and at any time. Only `validate_birth_date` looks at the clock, to
bound the accepted year window.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from datetime import date

from star_destiny.catalog import Mansion, MansionCatalog, get_catalog
from star_destiny.exceptions import InvalidDateError

MIN_BIRTH_YEAR = 1950

_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$", re.ASCII)


def parse_birth_date(value: str) -> date:
    """Parse a canonical ``YYYY-MM-DD`` date string.

    Args:
        value: Date string

    Returns:
        The parsed date

    Raises:
        InvalidDateError: If the string is malformed or names a day that
            does not exist (e.g. 2023-02-29)
    """
    if not isinstance(value, str):
        raise InvalidDateError(value, "expected a YYYY-MM-DD string")

    match = _DATE_PATTERN.match(value.strip())
    if not match:
        raise InvalidDateError(value, "expected format YYYY-MM-DD")

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateError(value, str(e)) from e


def validate_birth_date(value: str | date, today: date | None = None) -> date:
    """Validate a birth date submitted by a visitor.

    Args:
        value: Date string or date
        today: Reference date for the upper year bound (defaults to today)

    Returns:
        The validated date

    Raises:
        InvalidDateError: If the date is malformed or its year falls outside
            [MIN_BIRTH_YEAR, current year]
    """
    birth_date = value if isinstance(value, date) else parse_birth_date(value)
    current_year = (today or date.today()).year
    if not MIN_BIRTH_YEAR <= birth_date.year <= current_year:
        raise InvalidDateError(
            value, f"year must be between {MIN_BIRTH_YEAR} and {current_year}"
        )
    return birth_date


def resolve(value: str | date, catalog: MansionCatalog | None = None) -> Mansion:
    """Map a birth date to its mansion.

    Args:
        value: Date string (``YYYY-MM-DD``) or date
        catalog: Catalog to resolve against (defaults to the packaged one)

    Returns:
        The mansion whose range contains the date's month and day

    Raises:
        InvalidDateError: If the date is malformed
    """
    if catalog is None:
        catalog = get_catalog()
    birth_date = value if isinstance(value, date) else parse_birth_date(value)

    ordered = catalog.by_start
    starts = [m.start for m in ordered]
    # Range starts are inclusive; a date before the first start wraps to the
    # range that begins last in the year. Feb 29 sorts between Feb 28 and
    # Mar 1, so it always lands in the range holding both of them.
    index = bisect_right(starts, (birth_date.month, birth_date.day)) - 1
    return ordered[index]


def resolve_id(value: str | date, catalog: MansionCatalog | None = None) -> int:
    """Map a birth date to its mansion id."""
    return resolve(value, catalog).id
