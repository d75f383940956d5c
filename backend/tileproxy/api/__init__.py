"""API router subpackage for the tile proxy.

Submodules:
    - tiles: XYZ tile endpoint reprojecting requests onto the WMS service.
    - layers: listing of the layers the proxy serves.

Routers are grouped by feature domain and composed in the application's
main FastAPI instance.
"""
