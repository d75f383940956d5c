"""Tests for tile response headers and cache entry construction.

These tests cover:
    - content type resolution with layer and generic fallbacks,
    - identity tags derived from the cache version and tile address,
    - freshness, CORS and length headers for fresh and durable tiles,
    - the minimum tile size rule.
"""

from __future__ import annotations

import datetime

import pytest

from tileproxy.cache import models as cache_models
from tileproxy.geo import models as geo_models
from tileproxy.layers import models as layer_models
from tileproxy.services import tile_response

NOW = datetime.datetime(2024, 5, 6, 7, 8, 9, tzinfo=datetime.UTC)

SESTOJI = layer_models.LayerConfig(
    base_url="https://prostor.zgs.gov.si/geoserver/wms",
    layer_name="pregledovalnik:sestoji",
    format="image/png",
    transparent=True,
)


@pytest.fixture
def builder() -> tile_response.TileResponseBuilder:
    return tile_response.TileResponseBuilder(
        cache_version="v2",
        max_age_seconds=86400,
        min_tile_size_bytes=1800,
    )


@pytest.fixture
def tile() -> cache_models.TileRequest:
    return cache_models.TileRequest(
        layer_slug="sestoji",
        layer=SESTOJI,
        coordinate=geo_models.TileCoordinate(z=15, x=17704, y=11650),
    )


@pytest.mark.parametrize(
    ("upstream_type", "layer_format", "expected"),
    [
        ("image/png", "image/jpeg", "image/png"),
        (None, "image/png", "image/png"),
        ("", "image/png", "image/png"),
        (None, None, "image/jpeg"),
    ],
)
def test_resolve_content_type(
    upstream_type: str | None,
    layer_format: str | None,
    expected: str,
) -> None:
    """Test upstream type first, then layer format, then a generic image."""
    assert tile_response.resolve_content_type(upstream_type, layer_format) == expected


def test_build_etag() -> None:
    """Test the quoted version-layer-z-x-y tag."""
    assert (
        tile_response.build_etag("v2", "sestoji", 15, 17704, 11650)
        == '"v2-sestoji-15-17704-11650"'
    )


def test_http_date() -> None:
    """Test RFC 7231 formatting in GMT."""
    assert tile_response.http_date(NOW) == "Mon, 06 May 2024 07:08:09 GMT"


def test_build_entry_and_headers(
    builder: tile_response.TileResponseBuilder,
    tile: cache_models.TileRequest,
) -> None:
    """Test the entry fields and the full header set of a fresh tile."""
    body = b"\x89PNG" + b"\x00" * 4996
    entry = builder.build_entry(tile, body, None, now=NOW)

    assert entry.key == "sestoji/15/17704/11650.png"
    assert entry.content_type == "image/png"
    assert entry.size == 5000
    assert entry.etag == '"v2-sestoji-15-17704-11650"'

    assert builder.headers_for(entry) == {
        "Content-Type": "image/png",
        "Content-Length": "5000",
        "Date": "Mon, 06 May 2024 07:08:09 GMT",
        "Last-Modified": "Mon, 06 May 2024 07:08:09 GMT",
        "Expires": "Tue, 07 May 2024 07:08:09 GMT",
        "Cache-Control": "public, max-age=86400",
        "Access-Control-Allow-Origin": "*",
        "ETag": '"v2-sestoji-15-17704-11650"',
    }


@pytest.mark.parametrize(("size", "cacheable"), [(500, False), (1799, False), (1800, True)])
def test_is_cacheable(
    builder: tile_response.TileResponseBuilder,
    tile: cache_models.TileRequest,
    size: int,
    cacheable: bool,
) -> None:
    """Test the minimum tile size boundary."""
    entry = builder.build_entry(tile, b"\x00" * size, "image/png", now=NOW)
    assert builder.is_cacheable(entry) is cacheable


def test_durable_headers(
    builder: tile_response.TileResponseBuilder,
    tile: cache_models.TileRequest,
) -> None:
    """Test headers rebuilt from durable object metadata."""
    uploaded = NOW - datetime.timedelta(days=3)
    stored = cache_models.StoredObject(
        body=b"\x00" * 3000,
        size=3000,
        content_type=None,
        etag='"0123abcd"',
        uploaded_at=uploaded,
    )

    headers = builder.durable_headers(stored, tile, now=NOW)

    assert headers["Content-Type"] == "image/png"
    assert headers["Content-Length"] == "3000"
    assert headers["ETag"] == '"0123abcd"'
    assert headers["Last-Modified"] == "Fri, 03 May 2024 07:08:09 GMT"
    assert headers["Date"] == "Mon, 06 May 2024 07:08:09 GMT"
    assert headers["Expires"] == "Tue, 07 May 2024 07:08:09 GMT"
    assert headers["Cache-Control"] == "public, max-age=86400"
    assert headers["Access-Control-Allow-Origin"] == "*"


def test_render(builder: tile_response.TileResponseBuilder) -> None:
    """Test that render keeps the body and headers."""
    response = builder.render(
        b"\x00" * 10,
        {"Content-Type": "image/png", "Content-Length": "10"},
    )
    assert response.body == b"\x00" * 10
    assert response.headers["content-type"] == "image/png"
    assert response.headers["content-length"] == "10"
