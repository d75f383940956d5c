"""Layer configuration record.

Every layer served by the proxy is described by one immutable LayerConfig.
Configs are validated when the registry is built, so a typo in the catalog
fails at start-up rather than on the first tile request.

Example:
    >>> from tileproxy.layers.models import LayerConfig
    >>> layer = LayerConfig(
    ...     base_url="https://prostor.zgs.gov.si/geoserver/wms",
    ...     layer_name="pregledovalnik:sestoji",
    ...     format="image/png",
    ...     transparent=True,
    ... )
    >>> layer.extension
    'png'
"""

from __future__ import annotations

from typing import Literal

import pydantic

ImageFormat = Literal["image/png", "image/jpeg"]


class LayerConfig(pydantic.BaseModel):
    """WMS layer served by the proxy.

    Attributes:
        base_url: WMS endpoint of the upstream raster service.
        layer_name: Value of the WMS LAYERS parameter.
        format: Image MIME type requested from the service.
        transparent: Value of the WMS TRANSPARENT parameter.
        styles: Value of the WMS STYLES parameter; None sends an empty style.
        is_cacheable_overlay: Whether tiles of this layer may be written to
            and read from the durable tile store. Base imagery layers are
            not.
    """

    model_config = pydantic.ConfigDict(frozen=True, extra="forbid")

    base_url: pydantic.HttpUrl
    layer_name: str = pydantic.Field(min_length=1)
    format: ImageFormat
    transparent: bool
    styles: str | None = None
    is_cacheable_overlay: bool = True

    @property
    def extension(self) -> str:
        """File extension used for durable store keys."""
        return "jpg" if self.format == "image/jpeg" else "png"
