"""Error taxonomy for the tile request pipeline.

Every failure a tile request can run into maps to one exception class
carrying the HTTP status the application exception handlers render it with.
Client input problems are 4xx, geometry problems 500, upstream problems 502.
StoreError never reaches the request boundary: cache tiers are best-effort
and the cache policy layer logs and swallows it.

Example:
    Raise a client error from a route:
        >>> from tileproxy.core import errors
        >>> raise errors.LayerNotFoundError()
        >>> # Rendered as 404 {"error": "Layer not found"}
"""


class TileProxyError(Exception):
    """Base class for errors rendered as ``{"error": message}`` responses."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ClientInputError(TileProxyError):
    """Bad request input; never retried, logged at low severity."""

    status_code = 400


class InvalidCoordinatesError(ClientInputError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid tile coordinates")


class ZoomTooLowError(ClientInputError):
    status_code = 404

    def __init__(self, min_zoom: int) -> None:
        super().__init__(f"Zoom level too low. Minimum zoom: {min_zoom}")
        self.min_zoom = min_zoom


class LayerNotFoundError(ClientInputError):
    status_code = 404

    def __init__(self, slug: str | None = None) -> None:
        super().__init__("Layer not found")
        self.slug = slug


class GeometryError(TileProxyError):
    """A tile box that is non-finite after tile math or reprojection."""

    status_code = 500


class ReprojectionError(GeometryError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Reprojection failed: {reason}")
        self.reason = reason


class UpstreamError(TileProxyError):
    """Non-success status or transport failure from the WMS service.

    Attributes:
        status: Upstream HTTP status, or None for transport failures.
    """

    status_code = 502

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class StoreError(TileProxyError):
    """Read or write failure in one of the cache tiers."""
