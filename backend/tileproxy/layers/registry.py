"""Immutable slug -> LayerConfig registry.

The registry is built once per process from the built-in catalog (or a JSON
file named by the ``LAYERS_FILE`` setting) and injected into route handlers
with FastAPI ``Depends``. Unknown slugs are an error, never a default layer.

Example:
    >>> from tileproxy.layers import registry
    >>> layers = registry.load_layer_registry(
    ...     {
    ...         "sestoji": {
    ...             "base_url": "https://prostor.zgs.gov.si/geoserver/wms",
    ...             "layer_name": "pregledovalnik:sestoji",
    ...             "format": "image/png",
    ...             "transparent": True,
    ...         }
    ...     }
    ... )
    >>> layers.lookup("sestoji").layer_name
    'pregledovalnik:sestoji'
"""

from __future__ import annotations

import functools
import json
import types
from typing import TYPE_CHECKING

from tileproxy.core import config, errors
from tileproxy.layers import catalog
from tileproxy.layers import models as layer_models

if TYPE_CHECKING:
    import pathlib
    from collections.abc import Iterator, Mapping


class LayerRegistry:
    """Read-only mapping of layer slugs to validated configs."""

    def __init__(self, layers: Mapping[str, layer_models.LayerConfig]) -> None:
        self._layers = types.MappingProxyType(dict(layers))

    def lookup(self, slug: str) -> layer_models.LayerConfig:
        """Return the config for ``slug``.

        Raises:
            LayerNotFoundError: If the slug is not registered.
        """
        layer = self._layers.get(slug)
        if layer is None:
            raise errors.LayerNotFoundError(slug)

        return layer

    def __contains__(self, slug: object) -> bool:
        return slug in self._layers

    def __iter__(self) -> Iterator[tuple[str, layer_models.LayerConfig]]:
        return iter(self._layers.items())

    def __len__(self) -> int:
        return len(self._layers)


def load_layer_registry(raw: Mapping[str, Mapping[str, object]]) -> LayerRegistry:
    """Validate raw layer records and build a registry.

    Args:
        raw: Mapping of slug to LayerConfig fields.

    Returns:
        LayerRegistry holding one frozen LayerConfig per slug.

    Raises:
        pydantic.ValidationError: If any record is malformed.
    """
    return LayerRegistry(
        {
            slug: layer_models.LayerConfig.model_validate(dict(fields))
            for slug, fields in raw.items()
        }
    )


def _read_layers_file(path: pathlib.Path) -> dict[str, dict[str, object]]:
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


@functools.lru_cache
def get_layer_registry() -> LayerRegistry:
    """Build the process-wide layer registry on first use.

    Returns:
        Registry loaded from ``settings.layers_file`` when set, otherwise from
        the built-in catalog.
    """
    settings = config.get_settings()
    if settings.layers_file is not None:
        return load_layer_registry(_read_layers_file(settings.layers_file))

    return load_layer_registry(catalog.DEFAULT_LAYERS)
