"""Tile addressing and bounding box value types.

Example:
    >>> from tileproxy.geo.models import BBox, TileCoordinate
    >>> coord = TileCoordinate.parse("15", "17704", "11650.png")
    >>> coord.z, coord.x, coord.y
    (15, 17704, 11650)
    >>> BBox.from_points([3.0, 1.0], [4.0, 2.0])
    BBox(min_x=1.0, min_y=2.0, max_x=3.0, max_y=4.0)
"""

from __future__ import annotations

import dataclasses
import math
import re
from typing import TYPE_CHECKING

from tileproxy.core import errors

if TYPE_CHECKING:
    from collections.abc import Iterable

_INTEGER_RE = re.compile(r"[0-9]+")
_IMAGE_SUFFIX_RE = re.compile(r"\.(png|jpg|jpeg)$", re.IGNORECASE)


@dataclasses.dataclass(frozen=True)
class TileCoordinate:
    """XYZ tile address (zoom, column, row)."""

    z: int
    x: int
    y: int

    @classmethod
    def parse(cls, z: str, x: str, y: str) -> TileCoordinate:
        """Parse raw path segments into a tile coordinate.

        The row segment may carry an image extension (``.png``, ``.jpg``,
        ``.jpeg``). Only plain non-negative base-10 integers are accepted.

        Raises:
            InvalidCoordinatesError: If any segment is not such an integer.
        """
        y = _IMAGE_SUFFIX_RE.sub("", y)
        values = []
        for segment in (z, x, y):
            if not _INTEGER_RE.fullmatch(segment):
                raise errors.InvalidCoordinatesError()
            try:
                values.append(int(segment))
            except ValueError as exc:
                # Longer than the interpreter's integer string limit.
                raise errors.InvalidCoordinatesError() from exc

        return cls(z=values[0], x=values[1], y=values[2])

    def __str__(self) -> str:
        return f"{self.z}/{self.x}/{self.y}"


@dataclasses.dataclass(frozen=True)
class BBox:
    """Axis-aligned rectangle with ``min <= max`` on both axes."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_points(
        cls,
        xs: Iterable[float],
        ys: Iterable[float],
    ) -> BBox:
        """Build the smallest box containing all given points."""
        xs = list(xs)
        ys = list(ys)
        return cls(
            min_x=min(xs),
            min_y=min(ys),
            max_x=max(xs),
            max_y=max(ys),
        )

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in self.as_tuple())

    def corners(self) -> list[tuple[float, float]]:
        """Return the four corners, counter-clockwise from bottom-left."""
        return [
            (self.min_x, self.min_y),
            (self.max_x, self.min_y),
            (self.max_x, self.max_y),
            (self.min_x, self.max_y),
        ]

    def intersects(self, other: BBox) -> bool:
        return not (
            self.max_x < other.min_x
            or self.min_x > other.max_x
            or self.max_y < other.min_y
            or self.min_y > other.max_y
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def to_param(self) -> str:
        """Serialise as the ``minx,miny,maxx,maxy`` WMS BBOX value."""
        return ",".join(repr(v) for v in self.as_tuple())
