"""XYZ tile endpoint reprojecting Web Mercator tiles onto the WMS service.

A request ``/tiles/{layer}/{z}/{x}/{y}[.png|.jpg|.jpeg]`` goes through:

1. coordinate parsing (400 on anything but plain integers),
2. minimum zoom check (404 below zoom 15),
3. layer lookup (404 for unknown slugs),
4. tile math and reprojection to EPSG:3794 (500 on geometry errors),
5. national bounds check (404 outside Slovenia, no cache or upstream access),
6. ephemeral then durable cache lookup,
7. on a miss, a WMS GetMap request (502 on upstream failure),
8. background cache population for tiles above the minimum size.

Cache writes are FastAPI background tasks: the response goes out first and
the tasks run to completion afterwards.

Example:
    Request an overlay tile:
        >>> response = client.get("/tiles/sestoji/15/17704/11650.png")
        >>> response.headers["etag"]
        '"v2-sestoji-15-17704-11650"'

    Use in Leaflet:
        >>> L.tileLayer('https://tiles.example/tiles/sestoji/{z}/{x}/{y}.png',
        ...             {minZoom: 15}).addTo(map);
"""

import logging

import fastapi
from fastapi import concurrency, responses

from tileproxy.cache import models as cache_models
from tileproxy.cache import stores, tiers
from tileproxy.core import config, errors
from tileproxy.geo import bounds, projection
from tileproxy.geo import models as geo_models
from tileproxy.layers import registry as layer_registry
from tileproxy.services import tile_response, upstream

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/tiles", tags=["tiles"])


def get_response_builder(
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> tile_response.TileResponseBuilder:
    """Resolve the tile response builder from settings."""
    return tile_response.TileResponseBuilder(
        cache_version=settings.cache_version,
        max_age_seconds=settings.tile_max_age_seconds,
        min_tile_size_bytes=settings.min_tile_size_bytes,
    )


def get_tier_cache(
    builder: tile_response.TileResponseBuilder = fastapi.Depends(  # noqa: B008
        get_response_builder
    ),
) -> tiers.TierCache:
    """Resolve the cache policy over the process-wide cache stores."""
    return tiers.TierCache(
        stores.get_response_cache(),
        stores.get_object_store(),
        builder,
    )


def get_upstream_fetcher(
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> upstream.UpstreamFetcher:
    """Resolve the WMS client."""
    return upstream.UpstreamFetcher(
        user_agent=settings.upstream_user_agent,
        timeout=settings.upstream_timeout_seconds,
    )


def _reproject_tile(coordinate: geo_models.TileCoordinate) -> geo_models.BBox:
    """Return the EPSG:3794 box of a tile, logging geometry failures."""
    try:
        bbox_3857 = projection.tile_to_projected_bbox(
            coordinate.x,
            coordinate.y,
            coordinate.z,
        )
    except errors.GeometryError:
        logger.error("Invalid bbox for tile %s", coordinate)
        raise

    try:
        return projection.reproject(
            bbox_3857,
            projection.WEB_MERCATOR,
            projection.SLOVENE_GRID,
        )
    except errors.GeometryError as exc:
        logger.error(
            "Reprojection error for tile %s (bbox %s): %s",
            coordinate,
            bbox_3857.as_tuple(),
            exc.message,
        )
        raise


@router.get("/{layer}/{z}/{x}/{y}")
async def get_tile(
    layer: str,
    z: str,
    x: str,
    y: str,
    request: fastapi.Request,
    background_tasks: fastapi.BackgroundTasks,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
    layers: layer_registry.LayerRegistry = fastapi.Depends(  # noqa: B008
        layer_registry.get_layer_registry
    ),
    tier_cache: tiers.TierCache = fastapi.Depends(get_tier_cache),  # noqa: B008
    fetcher: upstream.UpstreamFetcher = fastapi.Depends(  # noqa: B008
        get_upstream_fetcher
    ),
) -> responses.Response:
    """Serve one XYZ tile from cache or from the upstream WMS service.

    Args:
        layer: Layer slug registered in the layer catalog.
        z: Zoom level segment.
        x: Tile column segment.
        y: Tile row segment, optionally with an image extension.
        request: Incoming request; its URL is the ephemeral cache identity.
        background_tasks: Scheduler for post-response cache writes.
        settings: Application settings (injected via FastAPI Depends).
        layers: Layer registry (injected via FastAPI Depends).
        tier_cache: Cache policy (injected via FastAPI Depends).
        fetcher: WMS client (injected via FastAPI Depends).

    Returns:
        Image response with caching headers, or a JSON 404 for tiles
        outside the national extent.

    Raises:
        TileProxyError: Rendered as a JSON error by the application
            exception handlers.
    """
    coordinate = geo_models.TileCoordinate.parse(z, x, y)
    if coordinate.z < settings.min_zoom:
        raise errors.ZoomTooLowError(settings.min_zoom)

    tile = cache_models.TileRequest(
        layer_slug=layer,
        layer=layers.lookup(layer),
        coordinate=coordinate,
    )

    bbox_3794 = _reproject_tile(coordinate)
    if not bounds.is_serviceable(bbox_3794):
        logger.debug("Tile %s/%s outside national bounds", layer, coordinate)
        return responses.JSONResponse(
            {"error": "Tile outside Slovenia bounds"},
            status_code=404,
        )

    identity = None
    if request.url.hostname not in settings.cache_bypass_hosts:
        identity = tier_cache.request_identity(str(request.url))

    hit = await concurrency.run_in_threadpool(tier_cache.lookup, identity, tile)
    if hit is not None:
        if hit.tier == "durable" and identity is not None:
            background_tasks.add_task(tier_cache.repopulate, identity, hit)
        return tier_cache.builder.render(hit.body, hit.headers)

    logger.info("Cache miss for %s/%s, fetching upstream", layer, coordinate)
    upstream_tile = await fetcher.fetch(tile.layer, bbox_3794)

    entry = tier_cache.builder.build_entry(
        tile,
        upstream_tile.content,
        upstream_tile.content_type,
    )
    if tier_cache.builder.is_cacheable(entry):
        background_tasks.add_task(tier_cache.store, identity, tile, entry)
    else:
        logger.info(
            "Skipping cache for small tile %s: %d bytes",
            entry.key,
            entry.size,
        )

    return tier_cache.builder.render(
        entry.body,
        tier_cache.builder.headers_for(entry),
    )
