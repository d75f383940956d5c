"""Two-tier tile cache policy.

Tier1 is an ephemeral response cache keyed by the normalized request URL
plus a ``_v=<cache version>`` parameter; bumping the version orphans every
tier1 entry at once. Tier2 is a durable object store keyed
``{layer}/{z}/{x}/{y}.{ext}`` and is only consulted or written for layers
marked as cacheable overlays. Base imagery never touches tier2.

TierCache itself keeps no state between requests. All store failures are
logged and swallowed: caching is best-effort and must never fail a tile
response. Writes are meant to run as background tasks scheduled after the
response has been sent.

Example:
    >>> tier_cache = TierCache(response_cache, object_store, builder)
    >>> identity = tier_cache.request_identity(str(request.url))
    >>> hit = tier_cache.lookup(identity, tile)
    >>> if hit is None:
    ...     tier_cache.store(identity, tile, entry)
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import TYPE_CHECKING

from tileproxy.cache import models as cache_models
from tileproxy.core import errors

if TYPE_CHECKING:
    from tileproxy.cache import stores
    from tileproxy.services import tile_response

logger = logging.getLogger(__name__)

VERSION_PARAM = "_v"


class TierCache:
    """Lookup and store policy over the ephemeral and durable tiers.

    Args:
        response_cache: Tier1 backend.
        object_store: Tier2 backend.
        builder: Response builder used to synthesize headers and apply the
            minimum-size rule.
    """

    def __init__(
        self,
        response_cache: stores.ResponseCacheProtocol,
        object_store: stores.ObjectStoreProtocol,
        builder: tile_response.TileResponseBuilder,
    ) -> None:
        self.response_cache = response_cache
        self.object_store = object_store
        self.builder = builder

    def request_identity(self, url: str) -> str:
        """Return the versioned tier1 key for a request URL.

        Scheme and host are lower-cased, the fragment is dropped, query
        parameters are sorted and any client-supplied version parameter is
        replaced with the configured cache version.
        """
        parts = urllib.parse.urlsplit(url)
        query = sorted(
            (name, value)
            for name, value in urllib.parse.parse_qsl(
                parts.query, keep_blank_values=True
            )
            if name != VERSION_PARAM
        )
        query.append((VERSION_PARAM, self.builder.cache_version))
        return urllib.parse.urlunsplit(
            (
                parts.scheme.lower(),
                parts.netloc.lower(),
                parts.path,
                urllib.parse.urlencode(query),
                "",
            )
        )

    def lookup(
        self,
        identity: str | None,
        tile: cache_models.TileRequest,
    ) -> cache_models.CacheHit | None:
        """Find ``tile`` in tier1, then (overlays only) in tier2.

        Args:
            identity: Tier1 key, or None to skip tier1.
            tile: Resolved tile request.

        Returns:
            CacheHit tagged with the tier it came from, or None on a miss.
        """
        if identity is not None:
            try:
                cached = self.response_cache.match(identity)
            except errors.StoreError as exc:
                logger.warning("Ephemeral cache read failed for %s: %s", identity, exc)
                cached = None
            if cached is not None:
                logger.debug("Ephemeral cache hit for %s", identity)
                return cache_models.CacheHit(
                    body=cached.body,
                    headers=dict(cached.headers),
                    tier="ephemeral",
                )

        if not tile.layer.is_cacheable_overlay:
            return None

        key = tile.durable_key
        try:
            stored = self.object_store.get(key)
        except errors.StoreError as exc:
            logger.warning("Durable store read failed for %s: %s", key, exc)
            return None
        if stored is None:
            return None

        logger.debug("Durable store hit for %s", key)
        return cache_models.CacheHit(
            body=stored.body,
            headers=self.builder.durable_headers(stored, tile),
            tier="durable",
        )

    def repopulate(self, identity: str, hit: cache_models.CacheHit) -> None:
        """Copy a durable hit into tier1 so later requests skip tier2."""
        try:
            self.response_cache.put(
                identity,
                cache_models.CachedResponse(body=hit.body, headers=hit.headers),
            )
        except errors.StoreError as exc:
            logger.warning("Ephemeral cache write failed for %s: %s", identity, exc)

    def store(
        self,
        identity: str | None,
        tile: cache_models.TileRequest,
        entry: cache_models.CacheEntry,
    ) -> None:
        """Write a validated upstream entry to the eligible tiers.

        Entries below the minimum tile size are not written anywhere.
        Tier1 is written when ``identity`` is set; tier2 only for cacheable
        overlay layers.
        """
        if not self.builder.is_cacheable(entry):
            logger.info(
                "Skipping cache for small tile %s: %d bytes",
                entry.key,
                entry.size,
            )
            return

        if identity is not None:
            try:
                self.response_cache.put(
                    identity,
                    cache_models.CachedResponse(
                        body=entry.body,
                        headers=self.builder.headers_for(entry),
                    ),
                )
            except errors.StoreError as exc:
                logger.warning("Ephemeral cache write failed for %s: %s", identity, exc)

        if tile.layer.is_cacheable_overlay:
            try:
                self.object_store.put(
                    entry.key,
                    entry.body,
                    content_type=entry.content_type,
                )
            except errors.StoreError as exc:
                logger.warning("Durable store write failed for %s: %s", entry.key, exc)
