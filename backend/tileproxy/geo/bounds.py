"""Serviceable extent of the upstream WMS service.

The national rectangle is deliberately wider than Slovenia itself so that
tiles straddling the border are still served.
"""

from tileproxy.geo import models

# EPSG:3794 metres.
SLOVENIA_BOUNDS = models.BBox(
    min_x=300000.0,
    min_y=10000.0,
    max_x=700000.0,
    max_y=300000.0,
)


def is_serviceable(
    bbox: models.BBox,
    extent: models.BBox = SLOVENIA_BOUNDS,
) -> bool:
    """Return True unless ``bbox`` lies entirely outside ``extent``."""
    return bbox.intersects(extent)
