"""Data models shared by the cache tiers and the tile route.

This module defines the value objects that flow between the tile route,
the response builder and the two cache tiers:

- TileRequest: a resolved request (layer slug, config and tile address).
- CacheEntry: a validated upstream body ready to be stored.
- CachedResponse: what the ephemeral tier keeps (body plus headers).
- StoredObject: what the durable tier returns (body plus its native
  metadata; the durable tier does not keep arbitrary headers).
- CacheHit: the result of a successful lookup in either tier.

Example:
    >>> from tileproxy.cache.models import TileRequest
    >>> tile = TileRequest(layer_slug="sestoji", layer=layer, coordinate=coord)
    >>> tile.durable_key
    'sestoji/15/17704/11650.png'
"""

from __future__ import annotations

import dataclasses
import datetime
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from tileproxy.geo import models as geo_models
    from tileproxy.layers import models as layer_models

CacheTier = Literal["ephemeral", "durable"]


@dataclasses.dataclass(frozen=True)
class TileRequest:
    """A tile request resolved against the layer registry.

    Attributes:
        layer_slug: Slug from the request path.
        layer: Config registered for the slug.
        coordinate: Parsed tile address.
    """

    layer_slug: str
    layer: layer_models.LayerConfig
    coordinate: geo_models.TileCoordinate

    @property
    def durable_key(self) -> str:
        """Durable store key ``{layer}/{z}/{x}/{y}.{ext}``."""
        c = self.coordinate
        return f"{self.layer_slug}/{c.z}/{c.x}/{c.y}.{self.layer.extension}"


@dataclasses.dataclass(frozen=True)
class CacheEntry:
    """Upstream tile body together with the metadata stored alongside it.

    Attributes:
        key: Durable store key of the tile.
        body: Complete image bytes.
        content_type: Resolved MIME type of the body.
        etag: Quoted identity tag derived from the tile address.
        size: Body length in bytes.
        stored_at: Time the entry was built.
    """

    key: str
    body: bytes
    content_type: str
    etag: str
    size: int
    stored_at: datetime.datetime


@dataclasses.dataclass(frozen=True)
class CachedResponse:
    body: bytes
    headers: dict[str, str]


@dataclasses.dataclass(frozen=True)
class StoredObject:
    """Object returned by a durable store.

    Attributes:
        body: Stored bytes.
        size: Stored length in bytes.
        content_type: MIME type recorded at upload, if any.
        etag: Quoted store-native entity tag (MD5 of the body).
        uploaded_at: Upload time.
    """

    body: bytes
    size: int
    content_type: str | None
    etag: str
    uploaded_at: datetime.datetime


@dataclasses.dataclass(frozen=True)
class CacheHit:
    body: bytes
    headers: dict[str, str]
    tier: CacheTier
