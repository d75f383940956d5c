"""Response synthesis for served tiles.

The builder turns an upstream body, or a durable store object, into the
header set every tile response carries: content type, length, freshness
dates, cache directives, CORS and the identity tag.

The identity tag is derived from the tile address and the cache version,
``"{version}-{layer}-{z}-{x}-{y}"``, not from the body. It is cheap and
stable, but a changed image at the same address keeps its tag until the
cache version is bumped.

Bodies below the minimum tile size are almost always blank or error tiles
from the WMS service. They are still served, but never cached.

Example:
    >>> builder = TileResponseBuilder(
    ...     cache_version="v2", max_age_seconds=86400, min_tile_size_bytes=1800
    ... )
    >>> entry = builder.build_entry(tile, body, "image/png")
    >>> headers = builder.headers_for(entry)
    >>> headers["ETag"]
    '"v2-sestoji-15-17704-11650"'
"""

from __future__ import annotations

import datetime
import email.utils
from typing import TYPE_CHECKING

from fastapi import responses

from tileproxy.cache import models as cache_models

if TYPE_CHECKING:
    from collections.abc import Mapping

FALLBACK_CONTENT_TYPE = "image/jpeg"


def resolve_content_type(
    upstream_content_type: str | None,
    layer_format: str | None,
) -> str:
    """Pick the upstream type, else the layer format, else a generic image."""
    return upstream_content_type or layer_format or FALLBACK_CONTENT_TYPE


def build_etag(version: str, layer_slug: str, z: int, x: int, y: int) -> str:
    return f'"{version}-{layer_slug}-{z}-{x}-{y}"'


def http_date(value: datetime.datetime) -> str:
    """Format a timezone-aware datetime as an RFC 7231 HTTP date."""
    return email.utils.format_datetime(
        value.astimezone(datetime.UTC),
        usegmt=True,
    )


class TileResponseBuilder:
    """Builds cache entries and response headers for tiles.

    Args:
        cache_version: Version tag embedded in identity tags.
        max_age_seconds: Freshness lifetime advertised to clients.
        min_tile_size_bytes: Smallest body considered a real tile.
    """

    def __init__(
        self,
        cache_version: str,
        max_age_seconds: int,
        min_tile_size_bytes: int,
    ) -> None:
        self.cache_version = cache_version
        self.max_age_seconds = max_age_seconds
        self.min_tile_size_bytes = min_tile_size_bytes

    def build_entry(
        self,
        tile: cache_models.TileRequest,
        body: bytes,
        upstream_content_type: str | None,
        now: datetime.datetime | None = None,
    ) -> cache_models.CacheEntry:
        """Wrap an upstream body as a cache entry for ``tile``."""
        c = tile.coordinate
        return cache_models.CacheEntry(
            key=tile.durable_key,
            body=body,
            content_type=resolve_content_type(
                upstream_content_type,
                tile.layer.format,
            ),
            etag=build_etag(self.cache_version, tile.layer_slug, c.z, c.x, c.y),
            size=len(body),
            stored_at=now or datetime.datetime.now(datetime.UTC),
        )

    def is_cacheable(self, entry: cache_models.CacheEntry) -> bool:
        """Return True if the body is large enough to be a real tile."""
        return entry.size >= self.min_tile_size_bytes

    def _freshness_headers(
        self,
        now: datetime.datetime,
        last_modified: datetime.datetime,
    ) -> dict[str, str]:
        expires = now + datetime.timedelta(seconds=self.max_age_seconds)
        return {
            "Date": http_date(now),
            "Last-Modified": http_date(last_modified),
            "Expires": http_date(expires),
            "Cache-Control": f"public, max-age={self.max_age_seconds}",
            "Access-Control-Allow-Origin": "*",
        }

    def headers_for(self, entry: cache_models.CacheEntry) -> dict[str, str]:
        """Headers for a freshly fetched tile, dated at ``entry.stored_at``."""
        return {
            "Content-Type": entry.content_type,
            "Content-Length": str(entry.size),
            **self._freshness_headers(entry.stored_at, entry.stored_at),
            "ETag": entry.etag,
        }

    def durable_headers(
        self,
        stored: cache_models.StoredObject,
        tile: cache_models.TileRequest,
        now: datetime.datetime | None = None,
    ) -> dict[str, str]:
        """Rebuild HTTP metadata for an object read from the durable tier.

        The durable tier keeps only native object metadata, so Date and
        Expires are generated afresh and Last-Modified is the upload time.
        """
        now = now or datetime.datetime.now(datetime.UTC)
        return {
            "Content-Type": stored.content_type or tile.layer.format,
            "Content-Length": str(stored.size),
            **self._freshness_headers(now, stored.uploaded_at),
            "ETag": stored.etag,
        }

    @staticmethod
    def render(body: bytes, headers: Mapping[str, str]) -> responses.Response:
        return responses.Response(content=body, headers=dict(headers))
