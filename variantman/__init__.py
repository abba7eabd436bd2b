"""
Django Variantman - Product variant serialization.

Usage:
    from variantman import VariantSerializer, VariantDatabaseAdapter, VariantError

    encoded = VariantSerializer.serialize_variant_value("size", value)
    document = VariantDatabaseAdapter.prepare_for_database(product_data)
"""


def __getattr__(name):
    if name == "VariantSerializer":
        from variantman.serializer import VariantSerializer

        return VariantSerializer
    elif name == "VariantIndexer":
        from variantman.indexing import VariantIndexer

        return VariantIndexer
    elif name == "VariantDatabaseAdapter":
        from variantman.adapters.database import VariantDatabaseAdapter

        return VariantDatabaseAdapter
    elif name == "VariantError":
        from variantman.exceptions import VariantError

        return VariantError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["VariantSerializer", "VariantIndexer", "VariantDatabaseAdapter", "VariantError"]
__version__ = "0.1.0"
