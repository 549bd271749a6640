"""
Content Dimensions

This module models content dimension presets and enumerates the dimension
combinations a node has to be indexed in.

A dimension is a named axis (e.g. ``language``) with an ordered mapping of
presets. Each preset carries a list of values, most specific first, which
the content repository treats as a fallback chain when resolving a node.

Combinations
------------
``calculate_dimension_combinations`` returns the full cartesian product of
presets over all axes that have at least one preset. Output index ``i``
selects, for axis ``a`` with ``n_a`` presets, preset
``(i // stride_a) % n_a`` where ``stride_a`` is the product of the preset
counts of the axes declared before ``a``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ConfigDict, ValidationError

from ..core.errors import DimensionConfigError


DimensionCombination = Dict[str, List[str]]


# ---------------------------------------------------------------------
# Preset Models
# ---------------------------------------------------------------------

class DimensionPreset(BaseModel):
    """A single admissible value set of one dimension."""

    values: List[str] = Field(
        ...,
        min_length=1,
        description="Dimension values, most specific first (fallback chain).",
    )

    label: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class DimensionConfig(BaseModel):
    """Preset configuration of one dimension axis."""

    default_preset: Optional[str] = Field(
        default=None,
        description="Preset used when a context is created without dimensions.",
    )

    presets: Dict[str, DimensionPreset] = Field(
        default_factory=dict,
        description="Ordered mapping of preset name to preset.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class DimensionPresetSource:
    """
    Read-only provider of all configured dimension presets.

    Axis order and preset order are preserved as given.
    """

    def __init__(self, dimensions: Optional[Mapping[str, DimensionConfig]] = None) -> None:
        self._dimensions: Dict[str, DimensionConfig] = dict(dimensions or {})

    @classmethod
    def from_dict(cls, raw: Mapping[str, dict]) -> "DimensionPresetSource":
        try:
            dimensions = {
                name: DimensionConfig.model_validate(config)
                for name, config in raw.items()
            }
        except ValidationError as exc:
            raise DimensionConfigError(
                f"Invalid dimension configuration: {exc.error_count()} error(s)"
            ) from exc

        return cls(dimensions)

    @classmethod
    def from_file(cls, path: str) -> "DimensionPresetSource":
        try:
            with Path(path).open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as exc:
            raise DimensionConfigError(
                f"Failed to read dimension configuration: {type(exc).__name__}"
            ) from exc

        return cls.from_dict(raw)

    def get_all_presets(self) -> Dict[str, DimensionConfig]:
        return dict(self._dimensions)

    def get_default_dimensions(self) -> DimensionCombination:
        """
        Return the default preset values for every axis that declares one.
        """
        defaults: DimensionCombination = {}
        for name, config in self._dimensions.items():
            preset = config.presets.get(config.default_preset or "")
            if preset is not None:
                defaults[name] = list(preset.values)
        return defaults


# ---------------------------------------------------------------------
# Combinator
# ---------------------------------------------------------------------

def calculate_dimension_combinations(
    presets: Mapping[str, DimensionConfig],
) -> List[DimensionCombination]:
    """
    Enumerate every dimension combination a node variant can exist in.

    Parameters
    ----------
    presets : Mapping[str, DimensionConfig]
        All configured dimensions, in declaration order.

    Returns
    -------
    List[DimensionCombination]
        One mapping ``axis -> values`` per combination. Empty when no axis
        has any preset, which means "index without dimensions".
    """
    axes: List[tuple] = [
        (name, list(config.presets.values()))
        for name, config in presets.items()
        if config.presets
    ]

    if not axes:
        return []

    total = 1
    for _, axis_presets in axes:
        total *= len(axis_presets)

    combinations: List[DimensionCombination] = []
    for i in range(total):
        combination: DimensionCombination = {}
        stride = 1
        for name, axis_presets in axes:
            size = len(axis_presets)
            combination[name] = list(axis_presets[(i // stride) % size].values)
            stride *= size
        combinations.append(combination)

    return combinations
