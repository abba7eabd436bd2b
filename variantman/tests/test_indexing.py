"""Tests for VariantIndexer (tags, variant strings, hashes, duplicates)."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from variantman.indexing import VariantIndexer
from variantman.protocols import AxisKind, ProductCombination, Variant


class TestAxisKind:
    @pytest.mark.parametrize(
        "variant_id,expected",
        [
            ("size", AxisKind.SIZE),
            ("shoe-size", AxisKind.SIZE),
            ("color-main", AxisKind.COLOR),
            ("material", AxisKind.MATERIAL),
            ("storage-capacity", AxisKind.STORAGE),
            ("ram", AxisKind.RAM),
            ("size-color", AxisKind.SIZE),
            ("finish", AxisKind.OTHER),
        ],
    )
    def test_infer(self, variant_id, expected):
        assert AxisKind.infer(variant_id) == expected

    def test_explicit_axis_wins(self):
        variant = Variant(id="opt1", name="Colour", axis=AxisKind.COLOR)
        assert variant.axis_kind == AxisKind.COLOR
        assert Variant(id="color-note", name="Note").axis_kind == AxisKind.COLOR


class TestSearchableTags:
    """Tests for generate_searchable_tags()."""

    def test_color_tags(self):
        tags = VariantIndexer.generate_searchable_tags({"color-main": "Red"})
        assert tags == ["red", "color-red", "hex-#ff0000"]

    def test_size_tags(self):
        assert VariantIndexer.generate_searchable_tags({"size": "XL"}) == ["xl", "size-xl"]

    def test_unclassified_id_yields_bare_tag(self):
        assert VariantIndexer.generate_searchable_tags({"finish": "Matte"}) == ["matte"]

    def test_no_duplicates(self):
        tags = VariantIndexer.generate_searchable_tags({"color": "red", "color-alt": "Red"})
        assert tags == ["red", "color-red", "hex-#ff0000"]

    def test_color_matched_by_hex(self):
        tags = VariantIndexer.generate_searchable_tags({"color": "#FF0000"})
        assert "hex-#ff0000" in tags

    def test_unknown_color_has_no_hex_tag(self):
        tags = VariantIndexer.generate_searchable_tags({"color": "Sunset Glow"})
        assert tags == ["sunset glow", "color-sunset glow"]

    def test_axis_from_variants(self):
        variants = [Variant(id="opt1", name="Colour", axis=AxisKind.COLOR)]
        tags = VariantIndexer.generate_searchable_tags({"opt1": "Blue"}, variants)
        assert tags == ["blue", "color-blue", "hex-#0000ff"]

    def test_explicit_other_disables_heuristic(self):
        variants = [{"id": "color-note", "name": "Engraving", "axis": "other"}]
        tags = VariantIndexer.generate_searchable_tags({"color-note": "Engraved"}, variants)
        assert tags == ["engraved"]


class TestVariantStrings:
    def test_generate(self):
        result = VariantIndexer.generate_variant_strings({"color-main": "Navy Blue", "size": "XL"})
        assert result == ["color-navyblue", "size-xl"]

    def test_unclassified_id_is_prefix(self):
        assert VariantIndexer.create_simple_variant_string("finish", "Matte!") == "finish-matte"

    def test_other_axis_strips_keyword_prefix(self):
        result = VariantIndexer.create_simple_variant_string("color-note", "Gold", AxisKind.OTHER)
        assert result == "note-gold"

    def test_clean_string(self):
        assert VariantIndexer.clean_string("  Extra__Large--Fit! ") == "extra-large-fit"


class TestSkuSuffix:
    def test_suffix_per_axis(self):
        result = VariantIndexer.generate_sku_suffix(
            {"color": "Red", "size": "X-L", "storage": "128gb", "ram": "8GB"}
        )
        assert result == "RED-XL-128G-8R"

    def test_terabytes(self):
        assert VariantIndexer.generate_sku_suffix({"storage": "1TB"}) == "1T"

    def test_other_axis_uses_first_three(self):
        assert VariantIndexer.generate_sku_suffix({"finish": "Matte"}) == "MAT"

    def test_empty_parts_are_skipped(self):
        assert VariantIndexer.generate_sku_suffix({"finish": "!!!", "size": "M"}) == "M"

    def test_color_keyword_wins_over_size(self):
        assert VariantIndexer.generate_sku_suffix({"size-color": "Navy Blue"}) == "NAV"

    def test_explicit_axis_overrides_keyword(self):
        variants = [{"id": "size-color", "name": "Fit", "axis": "size"}]
        assert VariantIndexer.generate_sku_suffix({"size-color": "Navy Blue"}, variants) == "NAVYBLUE"


class TestVariantHash:
    """Tests for create_variant_hash()."""

    def test_known_value(self):
        # "s-M": ((115 * 31) + 45) * 31 + 77 = 111987 = "2eer" in base 36
        assert VariantIndexer.create_variant_hash({"s": "M"}) == "2eer"

    def test_empty_selection(self):
        assert VariantIndexer.create_variant_hash({}) == "0"

    def test_keys_sort_by_code_point(self):
        # uppercase sorts before lowercase: "Size-M_color-Red"
        mixed = VariantIndexer.create_variant_hash({"color": "Red", "Size": "M"})
        assert mixed == VariantIndexer.create_variant_hash({"Size-M_color": "Red"})

    def test_order_independent(self):
        first = VariantIndexer.create_variant_hash({"size": "M", "color": "Red", "material": "Cotton"})
        second = VariantIndexer.create_variant_hash({"material": "Cotton", "color": "Red", "size": "M"})
        assert first == second

    def test_different_selections_differ(self):
        assert VariantIndexer.create_variant_hash({"size": "M"}) != VariantIndexer.create_variant_hash(
            {"size": "L"}
        )

    def test_stays_within_32_bits(self):
        result = VariantIndexer.create_variant_hash({f"axis{i}": "value" * 20 for i in range(20)})
        assert int(result, 36) <= 2**31


class TestDuplicateCombinations:
    """Tests for find_duplicate_combinations()."""

    def test_same_selection_in_other_order(self):
        first = ProductCombination(id="c1", variant_values={"size": "M", "color": "Red"}, sku="A")
        second = ProductCombination(id="c2", variant_values={"color": "Red", "size": "M"}, sku="B")
        third = ProductCombination(id="c3", variant_values={"size": "L"}, sku="C")

        duplicates = VariantIndexer.find_duplicate_combinations([first, second, third])

        assert duplicates == [(first, second)]

    def test_hash_collision_is_not_a_duplicate(self):
        first = ProductCombination(id="c1", variant_values={"size": "M"}, sku="A")
        second = ProductCombination(id="c2", variant_values={"size": "L"}, sku="B")

        with patch.object(VariantIndexer, "create_variant_hash", return_value="same"):
            duplicates = VariantIndexer.find_duplicate_combinations([first, second])

        assert duplicates == []

    def test_accepts_dicts(self):
        duplicates = VariantIndexer.find_duplicate_combinations(
            [
                {"id": "c1", "variantValues": {"size": "M"}, "sku": "A", "price": 1},
                {"id": "c2", "variantValues": {"size": "M"}, "sku": "B", "price": 2},
            ]
        )
        assert len(duplicates) == 1
        assert duplicates[0][1].price == Decimal("2")


class TestIndexFields:
    def test_build_index_fields(self, combinations, variants):
        fields = VariantIndexer.build_index_fields(combinations, variants)

        assert fields["variantStrings"] == ["size-m", "color-red", "size-l", "color-blue"]
        assert fields["variantSearchTags"] == [
            "m",
            "size-m",
            "red",
            "color-red",
            "hex-#ff0000",
            "l",
            "size-l",
            "blue",
            "color-blue",
            "hex-#0000ff",
        ]

    def test_duplicates_removed_across_combinations(self):
        fields = VariantIndexer.build_index_fields(
            [
                ProductCombination(id="c1", variant_values={"size": "M"}),
                ProductCombination(id="c2", variant_values={"size": "M"}),
            ]
        )
        assert fields["variantStrings"] == ["size-m"]
        assert fields["variantSearchTags"] == ["m", "size-m"]
