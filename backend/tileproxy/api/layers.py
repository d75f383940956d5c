"""Layer catalog listing endpoint.

Example:
    List all layers served by the proxy:
        >>> response = client.get("/layers")
        >>> response.json()[0]
        >>> # {"slug": "ortofoto", "layer_name": "pregledovalnik:DOF_2024",
        >>> #  "format": "image/jpeg", "transparent": False,
        >>> #  "cacheable_overlay": False}
"""

from typing import Any

import fastapi

from tileproxy.layers import registry as layer_registry

router = fastapi.APIRouter(prefix="/layers", tags=["layers"])


@router.get("")
async def list_layers(
    layers: layer_registry.LayerRegistry = fastapi.Depends(  # noqa: B008
        layer_registry.get_layer_registry
    ),
) -> list[dict[str, Any]]:
    """List every layer slug with its WMS name, format and cache policy.

    Args:
        layers: Layer registry (injected via FastAPI Depends).

    Returns:
        One dictionary per layer, in catalog order.
    """
    return [
        {
            "slug": slug,
            "layer_name": layer.layer_name,
            "format": layer.format,
            "transparent": layer.transparent,
            "cacheable_overlay": layer.is_cacheable_overlay,
        }
        for slug, layer in layers
    ]
