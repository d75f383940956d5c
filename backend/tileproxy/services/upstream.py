"""Client for the legacy WMS raster service.

Every tile miss turns into one WMS 1.1.1 GetMap request for a 256x256 image
covering the tile's box in EPSG:3794. Parameters are always emitted in the
same order, so identical tiles produce identical upstream URLs.

Failures are not retried here: a non-success status or a transport error
surfaces as UpstreamError and the route answers 502. The body is read in
full because the cache tiers need its exact length before storing it.

Example:
    >>> from tileproxy.services import upstream
    >>> fetcher = upstream.UpstreamFetcher(user_agent="Gozdar/1.0 (Tile Proxy)")
    >>> tile = await fetcher.fetch(layer, bbox_3794)
    >>> tile.content_type
    'image/png'
"""

from __future__ import annotations

import dataclasses
import logging
import urllib.parse
from typing import TYPE_CHECKING, Any

import httpx

from tileproxy.core import errors
from tileproxy.geo import projection

if TYPE_CHECKING:
    from tileproxy.geo import models as geo_models
    from tileproxy.layers import models as layer_models

logger = logging.getLogger(__name__)

WMS_VERSION = "1.1.1"


@dataclasses.dataclass(frozen=True)
class UpstreamTile:
    """Fully read upstream response body.

    Attributes:
        content: Image bytes.
        content_type: Content-Type reported by the service, if any.
    """

    content: bytes
    content_type: str | None


def build_getmap_url(
    layer: layer_models.LayerConfig,
    bbox: geo_models.BBox,
) -> str:
    """Construct the WMS GetMap URL for one tile.

    Args:
        layer: Layer whose service, name, format and style are requested.
        bbox: Tile box in EPSG:3794.

    Returns:
        ``{base_url}?SERVICE=WMS&VERSION=1.1.1&REQUEST=GetMap&...&BBOX=...``
    """
    params = [
        ("SERVICE", "WMS"),
        ("VERSION", WMS_VERSION),
        ("REQUEST", "GetMap"),
        ("FORMAT", layer.format),
        ("TRANSPARENT", "true" if layer.transparent else "false"),
        ("LAYERS", layer.layer_name),
        ("SRS", projection.SLOVENE_GRID),
        ("STYLES", layer.styles or ""),
        ("WIDTH", str(projection.TILE_SIZE)),
        ("HEIGHT", str(projection.TILE_SIZE)),
        ("BBOX", bbox.to_param()),
    ]
    return f"{layer.base_url}?{urllib.parse.urlencode(params)}"


class UpstreamFetcher:
    """Issues GetMap requests with an identifying User-Agent.

    Args:
        user_agent: Value of the User-Agent header.
        timeout: Request timeout in seconds; None keeps httpx's default.
        transport: Optional httpx transport, used by tests to stub the
            service.
    """

    def __init__(
        self,
        user_agent: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.transport = transport

    def _client_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"headers": {"User-Agent": self.user_agent}}
        if self.timeout is not None:
            options["timeout"] = self.timeout
        if self.transport is not None:
            options["transport"] = self.transport
        return options

    async def fetch(
        self,
        layer: layer_models.LayerConfig,
        bbox: geo_models.BBox,
    ) -> UpstreamTile:
        """Fetch one tile image from the WMS service.

        Args:
            layer: Layer to request.
            bbox: Tile box in EPSG:3794.

        Returns:
            The complete response body and its reported content type.

        Raises:
            UpstreamError: On a non-2xx status (message carries the status,
                reason and response body) or on any transport failure.
        """
        url = build_getmap_url(layer, bbox)
        logger.debug("Fetching %s", url)

        async with httpx.AsyncClient(**self._client_options()) as client:
            try:
                response = await client.get(url)
            except httpx.HTTPError as exc:
                logger.warning("Upstream request failed: %s", exc)
                raise errors.UpstreamError(str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            logger.warning(
                "Upstream failed: %s %s\nBody: %s",
                response.status_code,
                response.reason_phrase,
                response.text,
            )
            raise errors.UpstreamError(
                f"Upstream error: {response.status_code} - "
                f"{response.reason_phrase}\n{response.text}",
                status=response.status_code,
            )

        return UpstreamTile(
            content=response.content,
            content_type=response.headers.get("content-type"),
        )
