"""Tests for XYZ tile math and Web Mercator -> Slovene grid reprojection.

This module validates that:
    - tile boxes are strictly ordered on both axes for every zoom level,
    - overflowing or degenerate tile math raises GeometryError instead of
      producing NaN or zero-width boxes,
    - reprojection covers all four projected corners,
    - known tiles around Ljubljana land inside the Slovene grid extent,
    - unsupported coordinate systems and non-finite inputs fail with
      ReprojectionError.

See Also:
    - backend/tileproxy/geo/projection.py for the implementation.
"""

from __future__ import annotations

import math

import pytest

from tileproxy.core import errors
from tileproxy.geo import models as geo_models
from tileproxy.geo import projection

WORLD_HALF_WIDTH = math.pi * projection.EARTH_RADIUS


@pytest.mark.parametrize("z", [0, 1, 5, 10, 15, 18, 22, 30])
def test_tile_bbox_is_strictly_ordered(z: int) -> None:
    """Test that min < max on both axes at the first, middle and last tile."""
    last = 2**z - 1
    for x, y in [(0, 0), (last // 2, last // 2), (last, last), (0, last)]:
        bbox = projection.tile_to_projected_bbox(x, y, z)
        assert bbox.min_x < bbox.max_x
        assert bbox.min_y < bbox.max_y


def test_tile_bbox_zoom_zero_covers_world() -> None:
    """Test that tile 0/0/0 spans the whole Web Mercator square."""
    bbox = projection.tile_to_projected_bbox(0, 0, 0)
    assert bbox.min_x == pytest.approx(-WORLD_HALF_WIDTH)
    assert bbox.max_x == pytest.approx(WORLD_HALF_WIDTH)
    assert bbox.min_y == pytest.approx(-WORLD_HALF_WIDTH)
    assert bbox.max_y == pytest.approx(WORLD_HALF_WIDTH)


def test_tile_bbox_rows_grow_southwards() -> None:
    """Test that row 0 is the northernmost row and columns grow eastwards."""
    north = projection.tile_to_projected_bbox(0, 0, 1)
    south = projection.tile_to_projected_bbox(0, 1, 1)
    east = projection.tile_to_projected_bbox(1, 0, 1)
    assert north.min_y == pytest.approx(south.max_y)
    assert north.max_x == pytest.approx(east.min_x)
    assert north.max_y == pytest.approx(WORLD_HALF_WIDTH)


def test_tile_bbox_overflow_raises_geometry_error() -> None:
    """Test that zoom levels beyond float range raise GeometryError."""
    with pytest.raises(errors.GeometryError, match="Invalid bounding box"):
        projection.tile_to_projected_bbox(0, 0, 5000)


def test_tile_bbox_degenerate_raises_geometry_error() -> None:
    """Test that a tile narrower than float precision raises GeometryError."""
    with pytest.raises(errors.GeometryError):
        projection.tile_to_projected_bbox(1, 1, 80)


def test_ljubljana_tile_reprojects_inside_slovene_grid() -> None:
    """Test a known tile in central Ljubljana against the D96/TM extent."""
    bbox_3857 = projection.tile_to_projected_bbox(17704, 11650, 15)
    bbox = projection.reproject(
        bbox_3857,
        projection.WEB_MERCATOR,
        projection.SLOVENE_GRID,
    )
    assert 300000 < bbox.min_x < 700000
    assert 0 < bbox.min_y < 300000
    assert 455000 < bbox.min_x < 470000
    assert 95000 < bbox.min_y < 110000
    assert bbox.min_x < bbox.max_x
    assert bbox.min_y < bbox.max_y


def test_tile_west_of_slovenia_reprojects_west_of_grid_extent() -> None:
    """Test that tile 15/17500/11500 (East Tyrol, lon ~12.26) is west of x=300km."""
    bbox_3857 = projection.tile_to_projected_bbox(17500, 11500, 15)
    bbox = projection.reproject(
        bbox_3857,
        projection.WEB_MERCATOR,
        projection.SLOVENE_GRID,
    )
    assert 280000 < bbox.min_x < bbox.max_x < 300000
    assert 0 < bbox.min_y < 300000


def test_reproject_covers_all_four_corners() -> None:
    """Test that the result contains every individually projected corner."""
    bbox_3857 = projection.tile_to_projected_bbox(17704, 11650, 15)
    bbox = projection.reproject(
        bbox_3857,
        projection.WEB_MERCATOR,
        projection.SLOVENE_GRID,
    )
    for x, y in bbox_3857.corners():
        point = geo_models.BBox(min_x=x, min_y=y, max_x=x, max_y=y)
        corner = projection.reproject(
            point,
            projection.WEB_MERCATOR,
            projection.SLOVENE_GRID,
        )
        assert bbox.min_x <= corner.min_x <= bbox.max_x
        assert bbox.min_y <= corner.min_y <= bbox.max_y


def test_reproject_wider_than_diagonal_corners() -> None:
    """Test that a rotated box is wider than its two diagonal corners alone."""
    # Far from the central meridian the grid is visibly rotated.
    bbox_3857 = projection.tile_to_projected_bbox(17930, 11640, 15)
    diagonal = geo_models.BBox.from_points(
        [bbox_3857.min_x, bbox_3857.max_x],
        [bbox_3857.min_y, bbox_3857.max_y],
    )
    full = projection.reproject(
        bbox_3857,
        projection.WEB_MERCATOR,
        projection.SLOVENE_GRID,
    )
    corners = [
        projection.reproject(
            geo_models.BBox(min_x=x, min_y=y, max_x=x, max_y=y),
            projection.WEB_MERCATOR,
            projection.SLOVENE_GRID,
        )
        for x, y in [
            (diagonal.min_x, diagonal.min_y),
            (diagonal.max_x, diagonal.max_y),
        ]
    ]
    two_corner = geo_models.BBox.from_points(
        [c.min_x for c in corners],
        [c.min_y for c in corners],
    )
    assert full.min_x <= two_corner.min_x
    assert full.max_x >= two_corner.max_x
    assert (
        full.min_x < two_corner.min_x
        or full.max_x > two_corner.max_x
        or full.min_y < two_corner.min_y
        or full.max_y > two_corner.max_y
    )


def test_reproject_round_trip_is_close() -> None:
    """Test that reprojecting back to Web Mercator contains the original box."""
    bbox_3857 = projection.tile_to_projected_bbox(17704, 11650, 15)
    there = projection.reproject(
        bbox_3857,
        projection.WEB_MERCATOR,
        projection.SLOVENE_GRID,
    )
    back = projection.reproject(
        there,
        projection.SLOVENE_GRID,
        projection.WEB_MERCATOR,
    )
    assert back.min_x <= bbox_3857.min_x + 1e-3
    assert back.max_x >= bbox_3857.max_x - 1e-3


def test_reproject_unsupported_crs_raises() -> None:
    """Test that only the two fixed coordinate systems are accepted."""
    bbox = projection.tile_to_projected_bbox(17704, 11650, 15)
    with pytest.raises(errors.ReprojectionError, match="Reprojection failed"):
        projection.reproject(bbox, projection.WEB_MERCATOR, "EPSG:4326")


def test_reproject_non_finite_input_raises() -> None:
    """Test that infinite coordinates fail instead of returning NaN boxes."""
    bbox = geo_models.BBox(
        min_x=-math.inf,
        min_y=0.0,
        max_x=0.0,
        max_y=1.0,
    )
    with pytest.raises(errors.ReprojectionError):
        projection.reproject(
            bbox,
            projection.WEB_MERCATOR,
            projection.SLOVENE_GRID,
        )
