"""
Node Type Configuration

Declarative node type definitions and the registry the indexer reads its
search configuration from.

A node type controls two things for indexing:

- which of its properties are written to the index, and into which
  fulltext bucket their text goes
- whether nodes of this type are fulltext roots, i.e. aggregation
  boundaries that collect the fulltext of their descendants
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, Field, ConfigDict, ValidationError

from ..core.errors import NodeTypeConfigError


# ---------------------------------------------------------------------
# Definition Models
# ---------------------------------------------------------------------

class PropertySearchConfig(BaseModel):
    indexing: bool = True
    fulltext_bucket: Optional[str] = Field(
        default=None,
        description="Fulltext bucket this property's text is extracted into.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class PropertyDefinition(BaseModel):
    type: str = "string"
    search: PropertySearchConfig = Field(default_factory=PropertySearchConfig)

    model_config = ConfigDict(extra="forbid", frozen=True)


class FulltextConfig(BaseModel):
    is_root: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)


class NodeTypeSearchConfig(BaseModel):
    fulltext: FulltextConfig = Field(default_factory=FulltextConfig)

    model_config = ConfigDict(extra="forbid", frozen=True)


class NodeTypeDefinition(BaseModel):
    """
    Search-relevant part of a node type definition.
    """

    name: str = Field(..., min_length=1, description="Fully qualified node type name.")

    search: NodeTypeSearchConfig = Field(default_factory=NodeTypeSearchConfig)

    properties: Dict[str, PropertyDefinition] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------
# Fulltext Root Lookup
# ---------------------------------------------------------------------

class FulltextRootTypes:
    """
    Immutable set of node type names flagged as fulltext roots.

    Built once from the registry and handed to the indexer; it is never
    rebuilt during the lifetime of an engine instance.
    """

    __slots__ = ("_names",)

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names: FrozenSet[str] = frozenset(names)

    def is_fulltext_root(self, type_name: str) -> bool:
        return type_name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"FulltextRootTypes({sorted(self._names)!r})"


# ---------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------

class NodeTypeRegistry:
    """
    Registry of all known node types, keyed by name.
    """

    def __init__(self, definitions: Iterable[NodeTypeDefinition] = ()) -> None:
        self._types: Dict[str, NodeTypeDefinition] = {}
        for definition in definitions:
            self._types[definition.name] = definition

    @classmethod
    def from_list(cls, raw: List[dict]) -> "NodeTypeRegistry":
        try:
            return cls(NodeTypeDefinition.model_validate(item) for item in raw)
        except ValidationError as exc:
            raise NodeTypeConfigError(
                f"Invalid node type definition: {exc.error_count()} error(s)"
            ) from exc

    @classmethod
    def from_file(cls, path: str) -> "NodeTypeRegistry":
        try:
            with Path(path).open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as exc:
            raise NodeTypeConfigError(
                f"Failed to read node type definitions: {type(exc).__name__}"
            ) from exc

        if not isinstance(raw, list):
            raise NodeTypeConfigError("Node type definitions must be a JSON list.")

        return cls.from_list(raw)

    def get(self, name: str) -> Optional[NodeTypeDefinition]:
        return self._types.get(name)

    def fulltext_root_types(self) -> FulltextRootTypes:
        return FulltextRootTypes(
            name
            for name, definition in self._types.items()
            if definition.search.fulltext.is_root
        )
