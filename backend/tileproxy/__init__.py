"""Gozdar tile proxy: XYZ tiles served from a legacy WMS raster service.

The forestry GIS viewer requests standard Web Mercator XYZ tiles. The WMS
service behind it only renders images for boxes in the Slovene National
Grid (EPSG:3794). This package bridges the two:

- Tile boxes are computed in EPSG:3857 and reprojected corner by corner to
  EPSG:3794
- Tiles outside Slovenia are rejected before any cache or upstream access
- Served tiles are cached in an ephemeral response tier and, for overlay
  layers, in a durable object store
- Blank or error tiles (below a minimum size) are served but never cached

See README and module sub-docstrings for details on architecture and usage.
"""
