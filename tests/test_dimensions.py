"""
Dimension Combination Tests

Covers the cartesian enumeration of dimension presets, including the
regression case of axes with different preset counts.
"""

from itertools import product

import pytest

from cr_indexer.content.dimensions import (
    DimensionConfig,
    DimensionPresetSource,
    calculate_dimension_combinations,
)
from cr_indexer.core.errors import DimensionConfigError


def _presets(**axes):
    return DimensionPresetSource.from_dict({
        name: {"presets": {value: {"values": [value]} for value in values}}
        for name, values in axes.items()
    }).get_all_presets()


def _as_tuples(combinations, axes):
    return [tuple(c[a][0] for a in axes) for c in combinations]


class TestCartesianProduct:

    def test_two_by_three_yields_all_six_pairs(self):
        presets = _presets(language=["de", "en"], region=["at", "ch", "de"])

        combinations = calculate_dimension_combinations(presets)
        pairs = _as_tuples(combinations, ["language", "region"])

        assert len(pairs) == 6
        assert len(set(pairs)) == 6
        assert set(pairs) == set(product(["de", "en"], ["at", "ch", "de"]))

    def test_cardinality_is_product_of_axis_sizes(self):
        presets = _presets(a=["1", "2"], b=["x", "y", "z"], c=["p", "q", "r", "s"])

        combinations = calculate_dimension_combinations(presets)
        tuples = _as_tuples(combinations, ["a", "b", "c"])

        assert len(tuples) == 2 * 3 * 4
        assert len(set(tuples)) == len(tuples)

    def test_first_axis_varies_fastest(self):
        presets = _presets(language=["de", "en"], region=["at", "ch"])

        combinations = calculate_dimension_combinations(presets)

        assert _as_tuples(combinations, ["language", "region"]) == [
            ("de", "at"),
            ("en", "at"),
            ("de", "ch"),
            ("en", "ch"),
        ]

    def test_enumeration_is_deterministic(self):
        presets = _presets(language=["de", "en", "fr"], region=["at", "ch"])

        assert calculate_dimension_combinations(presets) == calculate_dimension_combinations(presets)

    def test_preset_values_are_fallback_lists(self):
        presets = DimensionPresetSource.from_dict({
            "language": {
                "presets": {
                    "de_CH": {"values": ["de_CH", "de"]},
                    "en": {"values": ["en"]},
                },
            },
        }).get_all_presets()

        combinations = calculate_dimension_combinations(presets)

        assert combinations == [{"language": ["de_CH", "de"]}, {"language": ["en"]}]


class TestEmptyAxes:

    def test_no_dimensions_yields_empty_set(self):
        assert calculate_dimension_combinations({}) == []

    def test_axes_without_presets_yield_empty_set(self):
        presets = {"language": DimensionConfig(), "region": DimensionConfig()}

        assert calculate_dimension_combinations(presets) == []

    def test_axis_without_presets_is_excluded_not_size_one(self):
        presets = _presets(language=["de", "en"])
        presets["region"] = DimensionConfig()

        combinations = calculate_dimension_combinations(presets)

        assert len(combinations) == 2
        assert all(set(c) == {"language"} for c in combinations)


class TestPresetSource:

    def test_default_dimensions(self, language_presets):
        assert language_presets.get_default_dimensions() == {"language": ["de"]}

    def test_invalid_configuration_raises(self):
        with pytest.raises(DimensionConfigError):
            DimensionPresetSource.from_dict({"language": {"presets": {"de": {"values": []}}}})

    def test_from_file(self, tmp_path):
        path = tmp_path / "dimensions.json"
        path.write_text('{"language": {"presets": {"de": {"values": ["de"]}}}}', encoding="utf-8")

        source = DimensionPresetSource.from_file(str(path))

        assert list(source.get_all_presets()) == ["language"]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(DimensionConfigError):
            DimensionPresetSource.from_file(str(tmp_path / "missing.json"))
