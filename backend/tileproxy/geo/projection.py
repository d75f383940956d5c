"""Tile math and reprojection between Web Mercator and the Slovene grid.

XYZ tiles address 256x256 pixel squares in Web Mercator (EPSG:3857). The
upstream WMS service only understands the Slovene National Grid
(EPSG:3794, D96/TM), so every tile box is reprojected before it is sent
upstream. The two coordinate systems are fixed; this module is not a
general-purpose projection layer.

Transverse Mercator does not preserve the Web Mercator axes, so a tile's
reprojected extent is computed from all four of its corners. The two
diagonal corners alone under-cover the true extent.

Example:
    >>> from tileproxy.geo import projection
    >>> bbox_3857 = projection.tile_to_projected_bbox(17704, 11650, 15)
    >>> bbox_3794 = projection.reproject(
    ...     bbox_3857, projection.WEB_MERCATOR, projection.SLOVENE_GRID
    ... )
"""

from __future__ import annotations

import functools
import math

import pyproj
from pyproj import exceptions as pyproj_exceptions

from tileproxy.core import errors
from tileproxy.geo import models

WEB_MERCATOR = "EPSG:3857"
SLOVENE_GRID = "EPSG:3794"

TILE_SIZE = 256
EARTH_RADIUS = 6378137.0

_CRS_DEFINITIONS = {
    SLOVENE_GRID: (
        "+proj=tmerc +lat_0=0 +lon_0=15 +k=0.9999 +x_0=500000 +y_0=-5000000 "
        "+ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs +type=crs"
    ),
    WEB_MERCATOR: (
        "+proj=merc +a=6378137 +b=6378137 +lat_ts=0 +lon_0=0 +x_0=0 +y_0=0 "
        "+k=1 +units=m +nadgrids=@null +wktext +no_defs +type=crs"
    ),
}


def tile_to_projected_bbox(x: int, y: int, z: int) -> models.BBox:
    """Return the Web Mercator box covered by tile ``z/x/y``.

    The tile origin is the top-left corner of the world square; columns
    grow eastwards and rows grow southwards.

    Args:
        x: Tile column.
        y: Tile row.
        z: Zoom level.

    Returns:
        Box in EPSG:3857 metres with ``min < max`` on both axes.

    Raises:
        GeometryError: If the computation overflows, produces a non-finite
            coordinate, or collapses to a zero-width box.
    """
    try:
        resolution = (2 * math.pi * EARTH_RADIUS) / math.ldexp(TILE_SIZE, z)
        span = TILE_SIZE * resolution
        origin = math.pi * EARTH_RADIUS
        bbox = models.BBox(
            min_x=-origin + x * span,
            min_y=origin - (y + 1) * span,
            max_x=-origin + (x + 1) * span,
            max_y=origin - y * span,
        )
    except OverflowError as exc:
        raise errors.GeometryError("Invalid bounding box") from exc

    if not bbox.is_finite():
        raise errors.GeometryError("Invalid bounding box")
    if not (bbox.min_x < bbox.max_x and bbox.min_y < bbox.max_y):
        raise errors.GeometryError("Invalid bounding box")

    return bbox


@functools.lru_cache
def _transformer(source_crs: str, dest_crs: str) -> pyproj.Transformer:
    try:
        source = _CRS_DEFINITIONS[source_crs]
        dest = _CRS_DEFINITIONS[dest_crs]
    except KeyError as exc:
        raise errors.ReprojectionError(f"unsupported CRS {exc.args[0]}") from exc

    return pyproj.Transformer.from_crs(
        pyproj.CRS.from_proj4(source),
        pyproj.CRS.from_proj4(dest),
        always_xy=True,
    )


def reproject(
    bbox: models.BBox,
    source_crs: str,
    dest_crs: str,
) -> models.BBox:
    """Reproject a box by projecting its four corners.

    Args:
        bbox: Box in ``source_crs`` coordinates.
        source_crs: Either WEB_MERCATOR or SLOVENE_GRID.
        dest_crs: Either WEB_MERCATOR or SLOVENE_GRID.

    Returns:
        Componentwise min/max of the projected corners.

    Raises:
        ReprojectionError: If a CRS is unsupported, PROJ rejects a corner,
            or any projected coordinate is non-finite.
    """
    transformer = _transformer(source_crs, dest_crs)
    corners = bbox.corners()
    try:
        xs, ys = transformer.transform(
            [corner[0] for corner in corners],
            [corner[1] for corner in corners],
            errcheck=True,
        )
    except pyproj_exceptions.ProjError as exc:
        raise errors.ReprojectionError(str(exc)) from exc

    result = models.BBox.from_points(xs, ys)
    if not result.is_finite():
        raise errors.ReprojectionError("non-finite coordinates")

    return result
