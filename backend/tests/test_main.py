"""Tests for the FastAPI main application factory and health checks.

This module validates that:
    - The FastAPI app is correctly instantiated via main.create_app,
    - OpenAPI metadata (title, version) matches the project contract,
    - The tile, layer and health routes are registered,
    - The /health endpoint returns the expected response,
    - A malformed layer catalog fails app creation,
    - CORS preflight requests for tiles are answered.

See Also:
    - backend/tileproxy/main.py for the application factory.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pydantic
import pytest
from fastapi import testclient

from tileproxy import main
from tileproxy.core import config
from tileproxy.layers import registry as layer_registry

if TYPE_CHECKING:
    import pathlib


def test_create_app() -> None:
    """Test that create_app returns a configured FastAPI instance."""
    app = main.create_app()
    assert app is not None
    assert app.title == "Gozdar Tile Proxy"
    assert app.version == "0.1.0"


def test_health_endpoint() -> None:
    """Test the health check endpoint returns ok status."""
    app = main.create_app()
    client = testclient.TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_app_includes_routers() -> None:
    """Test that all API routers are included in the app."""
    app = main.create_app()
    paths = app.openapi()["paths"]
    assert "/health" in paths
    assert "/layers" in paths
    assert "/tiles/{layer}/{z}/{x}/{y}" in paths
    assert app.url_path_for(
        "get_tile", layer="sestoji", z="15", x="17704", y="11650.png"
    ) == "/tiles/sestoji/15/17704/11650.png"


def test_create_app_rejects_malformed_layers_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: pathlib.Path,
) -> None:
    """Test that a bad layer catalog stops the app from starting."""
    layers_file = tmp_path / "layers.json"
    layers_file.write_text(
        json.dumps(
            {
                "sestoji": {
                    "base_url": "https://prostor.zgs.gov.si/geoserver/wms",
                    "layer_name": "pregledovalnik:sestoji",
                    "format": "image/gif",
                    "transparent": True,
                }
            }
        )
    )
    monkeypatch.setenv("LAYERS_FILE", str(layers_file))
    monkeypatch.setenv("TILE_STORE_DIR", str(tmp_path / "tiles"))
    config.get_settings.cache_clear()
    layer_registry.get_layer_registry.cache_clear()
    try:
        with pytest.raises(pydantic.ValidationError):
            main.create_app()
    finally:
        layer_registry.get_layer_registry.cache_clear()
        config.get_settings.cache_clear()


def test_cors_preflight_allows_get() -> None:
    """Test that browsers may request tiles from any origin."""
    app = main.create_app()
    client = testclient.TestClient(app)
    response = client.options(
        "/tiles/sestoji/15/17704/11650.png",
        headers={
            "Origin": "https://gozdar.example",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
