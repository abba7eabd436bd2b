"""
Variant indexing.

Derives denormalized search data from variant selections:

    VariantIndexer.generate_searchable_tags(selections)  - ["red", "color-red", "hex-#ff0000"]
    VariantIndexer.generate_variant_strings(selections)  - ["color-red", "size-m"]
    VariantIndexer.create_variant_hash(selections)       - "2eer" (order-independent)
    VariantIndexer.generate_sku_suffix(selections)       - "RED-M"
    VariantIndexer.find_duplicate_combinations(combos)   - [(original, duplicate), ...]
    VariantIndexer.build_index_fields(combos)            - {"variantStrings": [...], "variantSearchTags": [...]}

Axis kinds come from the Variant definitions when given, otherwise they are
inferred from the variant id (see AxisKind.infer).
"""

import logging
import re
import struct
from collections import defaultdict
from typing import Iterable, Mapping

from variantman.conf import get_color_table
from variantman.protocols import AxisKind, Color, ProductCombination, Variant

logger = logging.getLogger(__name__)


VARIANT_STRINGS_FIELD = "variantStrings"
SEARCH_TAGS_FIELD = "variantSearchTags"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_AXIS_PREFIX_RE = re.compile(r"^(size|color|material|storage|ram)-?")
# Keyword precedence for SKU suffixes: color before size.
_SKU_AXIS_ORDER = (AxisKind.COLOR, AxisKind.SIZE, AxisKind.STORAGE, AxisKind.RAM)


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _unique(items: Iterable[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(items))


class VariantIndexer:
    """Search tags, index strings and fingerprints for variant selections."""

    @classmethod
    def _axis_map(cls, variants: Iterable[Variant | dict] | None) -> dict[str, str]:
        if not variants:
            return {}
        axes = {}
        for variant in variants:
            variant = Variant.coerce(variant)
            axes.setdefault(variant.id, variant.axis_kind)
        return axes

    @classmethod
    def axis_for(cls, variant_id: str, axes: Mapping[str, str] | None = None) -> str:
        """Axis kind for a variant id: explicit from ``axes``, else inferred."""
        if axes and variant_id in axes:
            return axes[variant_id]
        return AxisKind.infer(variant_id)

    # ======================================================================
    # COLORS
    # ======================================================================

    @classmethod
    def match_color(cls, color_name: str) -> Color | None:
        """Resolve a color by name or hex using the configured color table."""
        return get_color_table().match(color_name)

    # ======================================================================
    # TAGS
    # ======================================================================

    @classmethod
    def generate_searchable_tags(
        cls,
        variant_values: Mapping[str, str],
        variants: Iterable[Variant | dict] | None = None,
    ) -> list[str]:
        """
        Lowercase search tags for a selection.

        For each (variant_id, value): the value itself, "<axis>-<value>" for
        known axes, and "hex-<hex>" for colors found in the color table.
        """
        axes = cls._axis_map(variants)
        tags = []

        for variant_id, value in variant_values.items():
            lowered = value.lower()
            tags.append(lowered)

            axis = cls.axis_for(variant_id, axes)
            if axis == AxisKind.OTHER:
                continue
            tags.append(f"{str(axis)}-{lowered}")

            if axis == AxisKind.COLOR:
                color = cls.match_color(value)
                if color:
                    tags.append(f"hex-{color.hex.lower()}")

        return _unique(tags)

    # ======================================================================
    # VARIANT STRINGS
    # ======================================================================

    @classmethod
    def clean_string(cls, text: str) -> str:
        text = re.sub(r"[^a-z0-9\-_]", "", text.lower())
        text = re.sub(r"[-_]+", "-", text)
        return text.strip("-")

    @classmethod
    def create_simple_variant_string(
        cls, variant_id: str, value: str, axis: str | None = None
    ) -> str:
        """
        "<axis>-<value>" with the value reduced to [a-z0-9].

        Variants without a known axis use their id, minus any leading axis
        keyword, as prefix.
        """
        if axis is None:
            axis = AxisKind.infer(variant_id)
        if axis != AxisKind.OTHER:
            prefix = str(axis)
        else:
            prefix = _AXIS_PREFIX_RE.sub("", variant_id)
        clean_value = re.sub(r"[^a-z0-9]", "", value.lower())
        return f"{prefix}-{clean_value}"

    @classmethod
    def generate_variant_strings(
        cls,
        variant_values: Mapping[str, str],
        variants: Iterable[Variant | dict] | None = None,
    ) -> list[str]:
        axes = cls._axis_map(variants)
        return [
            cls.create_simple_variant_string(variant_id, value, cls.axis_for(variant_id, axes))
            for variant_id, value in variant_values.items()
        ]

    @classmethod
    def generate_sku_suffix(
        cls,
        variant_values: Mapping[str, str],
        variants: Iterable[Variant | dict] | None = None,
    ) -> str:
        """
        Short uppercase suffix for SKUs, e.g. {"color": "Red", "size": "XL"} -> "RED-XL".
        """
        axes = cls._axis_map(variants)
        suffixes = []

        for variant_id, value in variant_values.items():
            if variant_id in axes:
                axis = axes[variant_id]
            else:
                axis = AxisKind.infer(variant_id, order=_SKU_AXIS_ORDER)
            if axis == AxisKind.SIZE:
                suffix = re.sub(r"[^A-Z0-9]", "", value.upper())
            elif axis == AxisKind.STORAGE:
                suffix = re.sub(r"tb", "T", re.sub(r"gb", "G", value, flags=re.I), flags=re.I).upper()
            elif axis == AxisKind.RAM:
                suffix = re.sub(r"gb", "R", value, flags=re.I).upper()
            else:
                suffix = cls.clean_string(value)[:3].upper()

            if suffix:
                suffixes.append(suffix)

        return "-".join(suffixes)

    # ======================================================================
    # HASH / DEDUPLICATION
    # ======================================================================

    @classmethod
    def create_variant_hash(cls, variant_values: Mapping[str, str]) -> str:
        """
        Short, order-independent fingerprint of a selection.

        32-bit rolling hash (h = h * 31 + c over UTF-16 code units) of the
        key-sorted "k-v" pairs joined by "_", as abs() in base 36.
        Keys sort by code point, so mixed-case keys ("Size", "color") may
        order differently than a locale-aware collation would.
        Collisions are possible; see find_duplicate_combinations().
        """
        entries = sorted(variant_values.items(), key=lambda item: item[0])
        hash_string = "_".join(f"{k}-{v}" for k, v in entries)

        value = 0
        for (code_unit,) in struct.iter_unpack("<H", hash_string.encode("utf-16-le")):
            value = (value * 31 + code_unit) & 0xFFFFFFFF
        if value & 0x80000000:
            value -= 0x100000000

        return _to_base36(abs(value))

    @classmethod
    def find_duplicate_combinations(
        cls, combinations: Iterable[ProductCombination | dict]
    ) -> list[tuple[ProductCombination, ProductCombination]]:
        """
        Find combinations that select the same values.

        Bucketed by create_variant_hash(); a hash match alone is not enough,
        the selection maps must be equal.

        Returns:
            List of (first_seen, duplicate) pairs
        """
        buckets: dict[str, list[ProductCombination]] = defaultdict(list)
        duplicates = []

        for combo in combinations:
            combo = ProductCombination.coerce(combo)
            bucket = buckets[cls.create_variant_hash(combo.variant_values)]
            original = next(
                (seen for seen in bucket if seen.variant_values == combo.variant_values),
                None,
            )
            if original is not None:
                duplicates.append((original, combo))
                continue
            if bucket:
                logger.debug(
                    "Variant hash collision between %r and %r",
                    bucket[0].variant_values,
                    combo.variant_values,
                )
            bucket.append(combo)

        return duplicates

    # ======================================================================
    # DOCUMENT INDEX FIELDS
    # ======================================================================

    @classmethod
    def build_index_fields(
        cls,
        combinations: Iterable[ProductCombination | dict],
        variants: Iterable[Variant | dict] | None = None,
    ) -> dict[str, list[str]]:
        """Denormalized filter arrays for a product's combinations."""
        variants = [Variant.coerce(v) for v in variants or ()]
        variant_strings = []
        search_tags = []

        for combo in combinations:
            combo = ProductCombination.coerce(combo)
            variant_strings.extend(cls.generate_variant_strings(combo.variant_values, variants))
            search_tags.extend(cls.generate_searchable_tags(combo.variant_values, variants))

        return {
            VARIANT_STRINGS_FIELD: _unique(variant_strings),
            SEARCH_TAGS_FIELD: _unique(search_tags),
        }
