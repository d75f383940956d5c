"""Geometry helpers for tile addressing, reprojection and bounds filtering.

Submodules:
    - models: TileCoordinate and BBox value types.
    - projection: XYZ tile math and EPSG:3857 <-> EPSG:3794 reprojection.
    - bounds: national extent check applied before any cache or upstream
      access.
"""
