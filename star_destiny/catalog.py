"""Mansion catalog loader and validator.

The catalog is a static configuration file declaring the 28 lunar mansions
and the birth-date range each one covers. It is loaded once, validated, and
never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date
from enum import Enum
from functools import lru_cache
from pathlib import Path

import structlog
import yaml

from star_destiny.exceptions import CatalogError, UnknownMansionError

logger = structlog.get_logger()

DEFAULT_CATALOG_PATH = Path(__file__).parent / "catalog.yaml"
MANSION_COUNT = 28

# Leap year so that every (month, day) pair, Feb 29 included, is valid
_REFERENCE_YEAR = 2000


class Direction(str, Enum):
    """Guardian group of a mansion. Display attribute only."""

    EAST = "east"  # 青龙
    NORTH = "north"  # 玄武
    WEST = "west"  # 白虎
    SOUTH = "south"  # 朱雀

    @property
    def guardian(self) -> str:
        return _GUARDIANS[self]


_GUARDIANS = {
    Direction.EAST: "东方青龙",
    Direction.NORTH: "北方玄武",
    Direction.WEST: "西方白虎",
    Direction.SOUTH: "南方朱雀",
}


@dataclass(frozen=True)
class Mansion:
    """A single catalog record."""

    id: int
    short_name: str
    full_name: str
    group: Direction
    element: str
    animal: str
    poem: str
    fortune: str
    image_ref: str
    start_month: int
    start_day: int

    @property
    def start(self) -> tuple[int, int]:
        return (self.start_month, self.start_day)


class MansionCatalog:
    """Static catalog of the 28 mansions.

    Example:
        catalog = MansionCatalog.load()
        mansion = catalog.get(10)
        print(mansion.full_name)  # 虚日鼠
    """

    def __init__(self, mansions: list[Mansion]) -> None:
        """Initialize and validate the catalog.

        Args:
            mansions: Catalog records in any order

        Raises:
            CatalogError: If the records do not form a valid catalog
        """
        ordered = tuple(sorted(mansions, key=lambda m: m.id))
        _validate(ordered)
        self._mansions = ordered
        self._by_id = {m.id: m for m in ordered}
        # Calendar order of range starts, used by the resolver
        self._by_start = tuple(sorted(ordered, key=lambda m: m.start))

    @classmethod
    def load(cls, path: Path | str | None = None) -> MansionCatalog:
        """Load the catalog from a YAML file.

        Args:
            path: Catalog file. Defaults to the packaged catalog.yaml.

        Returns:
            MansionCatalog instance

        Raises:
            FileNotFoundError: If the catalog file doesn't exist
            yaml.YAMLError: If the file is not valid YAML
            CatalogError: If the content is not a valid catalog
        """
        path = Path(path) if path is not None else DEFAULT_CATALOG_PATH

        logger.debug("loading_mansion_catalog", path=str(path))

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        mansions: list[Mansion] = []
        for entry in data.get("mansions", []):
            try:
                starts = entry["starts"]
                mansions.append(
                    Mansion(
                        id=int(entry["id"]),
                        short_name=str(entry["short_name"]),
                        full_name=str(entry["full_name"]),
                        group=Direction(entry["group"]),
                        element=str(entry["element"]),
                        animal=str(entry["animal"]),
                        poem=str(entry.get("poem", "")),
                        fortune=str(entry.get("fortune", "")),
                        image_ref=str(entry.get("image_ref", "")),
                        start_month=int(starts["month"]),
                        start_day=int(starts["day"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                raise CatalogError(f"Invalid catalog entry {entry!r}: {e}") from e

        return cls(mansions)

    def get(self, mansion_id: int) -> Mansion:
        """Look up a mansion by id.

        Raises:
            UnknownMansionError: If no mansion has this id
        """
        try:
            return self._by_id[mansion_id]
        except (KeyError, TypeError):
            raise UnknownMansionError(mansion_id) from None

    def __contains__(self, mansion_id: object) -> bool:
        return mansion_id in self._by_id

    def __iter__(self) -> Iterator[Mansion]:
        return iter(self._mansions)

    def __len__(self) -> int:
        return len(self._mansions)

    @property
    def by_start(self) -> tuple[Mansion, ...]:
        """Mansions sorted by the calendar position of their range start."""
        return self._by_start

    def range_end(self, mansion: Mansion) -> tuple[int, int]:
        """Last (month, day) covered by a mansion's range, in a leap year."""
        index = self._by_start.index(mansion)
        following = self._by_start[(index + 1) % len(self._by_start)]
        next_start = date(_REFERENCE_YEAR, *following.start)
        end = date.fromordinal(next_start.toordinal() - 1)
        return (end.month, end.day)


def _validate(mansions: tuple[Mansion, ...]) -> None:
    if len(mansions) != MANSION_COUNT:
        raise CatalogError(
            f"Catalog must declare {MANSION_COUNT} mansions, found {len(mansions)}"
        )

    ids = [m.id for m in mansions]
    if ids != list(range(MANSION_COUNT)):
        raise CatalogError(f"Mansion ids must be 0..{MANSION_COUNT - 1}, got {ids}")

    seen_starts: set[tuple[int, int]] = set()
    for mansion in mansions:
        try:
            date(_REFERENCE_YEAR, mansion.start_month, mansion.start_day)
        except ValueError as e:
            raise CatalogError(
                f"Mansion {mansion.id} has invalid range start {mansion.start}"
            ) from e
        if mansion.start == (2, 29):
            # Would leave the range empty in common years
            raise CatalogError(f"Mansion {mansion.id} cannot start on Feb 29")
        if mansion.start in seen_starts:
            raise CatalogError(f"Duplicate range start {mansion.start}")
        seen_starts.add(mansion.start)


@lru_cache
def get_catalog() -> MansionCatalog:
    """Get the packaged catalog, loaded once per process."""
    return MansionCatalog.load()
