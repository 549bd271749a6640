"""
Property and fulltext extraction driven by node type configuration.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Tuple

from ..content.node_types import NodeTypeRegistry
from .membership import DIMENSIONS_PROPERTY, OWNER_PROPERTY


_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

_SCALAR_TYPES = (str, int, float, bool, type(None))


def strip_markup(value: str) -> str:
    """Remove HTML tags and collapse whitespace."""
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", value)).strip()


def _to_index_value(value: Any) -> Any:
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        return [_to_index_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _to_index_value(v) for k, v in value.items()}
    return str(value)


class PropertyExtractor:
    """
    Turns a node into the property set and fulltext fragments of its entry.

    Properties without a definition on the node type are indexed as-is.
    Properties declared with ``indexing: false`` are skipped. Properties
    declaring a ``fulltext_bucket`` also contribute their text, markup
    stripped, to that bucket.
    """

    def __init__(self, registry: NodeTypeRegistry) -> None:
        self._registry = registry

    def extract(self, node: Any) -> Tuple[Dict[str, Any], Dict[str, str]]:
        definition = self._registry.get(node.type_name)

        properties: Dict[str, Any] = {
            "__identifier": node.identity,
            "__typeName": node.type_name,
            OWNER_PROPERTY: node.workspace,
        }
        dimensions = getattr(node, "dimensions", None)
        if dimensions:
            properties[DIMENSIONS_PROPERTY] = dict(dimensions)

        buckets: Dict[str, list] = {}

        for name, value in node.properties.items():
            property_definition = definition.properties.get(name) if definition else None

            if property_definition is not None and not property_definition.search.indexing:
                continue

            properties[name] = _to_index_value(value)

            if property_definition is None or property_definition.search.fulltext_bucket is None:
                continue

            text = strip_markup(str(value)) if value is not None else ""
            if text:
                buckets.setdefault(property_definition.search.fulltext_bucket, []).append(text)

        fulltext = {bucket: " ".join(parts) for bucket, parts in buckets.items()}
        return properties, fulltext
