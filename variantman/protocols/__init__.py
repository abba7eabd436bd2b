"""Variantman protocols."""

from variantman.protocols.color import Color, ColorTable
from variantman.protocols.variants import (
    AxisKind,
    DecodeResult,
    ProductCombination,
    Variant,
    VariantType,
    VariantValue,
)

__all__ = [
    "AxisKind",
    "Color",
    "ColorTable",
    "DecodeResult",
    "ProductCombination",
    "Variant",
    "VariantType",
    "VariantValue",
]
