"""Variantman adapters."""

from variantman.adapters.color_table import JsonColorTable
from variantman.adapters.database import VariantDatabaseAdapter

__all__ = [
    "JsonColorTable",
    "VariantDatabaseAdapter",
]
