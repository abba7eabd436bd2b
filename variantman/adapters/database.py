"""
Document-store adapter for variant data.

Maps between the nested product form representation and the flat fields a
document store holds:

    variants            <-> variantsSerialized       (list of JSON strings)
    productCombinations <-> combinationsSerialized   (list of combination strings)
                         -> variantStrings, variantSearchTags (filter-only, dropped on restore)

Usage:
    document = VariantDatabaseAdapter.prepare_for_database(form_data)
    databases.create_document(..., data=document)

    product = VariantDatabaseAdapter.restore_from_database(stored)
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from variantman.conf import variantman_settings
from variantman.exceptions import VariantError
from variantman.indexing import SEARCH_TAGS_FIELD, VARIANT_STRINGS_FIELD, VariantIndexer
from variantman.protocols import Variant
from variantman.serializer import VariantSerializer
from variantman.signals import variants_prepared
from variantman.validation import validate_combinations, validate_variant

logger = logging.getLogger(__name__)


VARIANTS_FIELD = "variants"
VARIANTS_SERIALIZED_FIELD = "variantsSerialized"
COMBINATIONS_FIELD = "productCombinations"
COMBINATIONS_SERIALIZED_FIELD = "combinationsSerialized"


class VariantDatabaseAdapter:
    """Prepare product documents for storage and restore them after reads."""

    # ======================================================================
    # WRITE
    # ======================================================================

    @classmethod
    def serialize_variant(cls, variant: Variant | dict) -> str:
        """Compact JSON for one variant, with values in the value codec format."""
        variant = Variant.coerce(variant)
        data = {
            "id": variant.id,
            "name": variant.name,
            "type": str(variant.type),
            "required": variant.required,
            "values": [
                VariantSerializer.serialize_variant_value(variant.id, value)
                for value in variant.values
            ],
        }
        if variant.axis:
            data["axis"] = str(variant.axis)
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def prepare_for_database(
        cls, product_data: Mapping[str, Any], validate: bool | None = None
    ) -> dict:
        """
        Flatten variants and combinations of a product document.

        Args:
            product_data: Product form data; not modified
            validate: Check shapes first (default: VALIDATE_ON_PREPARE setting)

        Returns:
            A new dict ready for the document store

        Raises:
            django.core.exceptions.ValidationError: On invalid variants/combinations
        """
        if validate is None:
            validate = variantman_settings.VALIDATE_ON_PREPARE

        prepared = dict(product_data)
        variants = None

        if isinstance(prepared.get(VARIANTS_FIELD), (list, tuple)):
            raw_variants = list(prepared.pop(VARIANTS_FIELD))
            if validate:
                for variant in raw_variants:
                    validate_variant(variant)
            variants = [Variant.coerce(v) for v in raw_variants]
            prepared[VARIANTS_SERIALIZED_FIELD] = [cls.serialize_variant(v) for v in variants]

        if isinstance(prepared.get(COMBINATIONS_FIELD), (list, tuple)):
            combinations = list(prepared.pop(COMBINATIONS_FIELD))
            if validate:
                validate_combinations(combinations, variants)
            prepared[COMBINATIONS_SERIALIZED_FIELD] = VariantSerializer.serialize_product_combinations(
                combinations
            )
            prepared.update(VariantIndexer.build_index_fields(combinations, variants))

        variants_prepared.send(sender=cls, document=prepared)
        return prepared

    # ======================================================================
    # READ
    # ======================================================================

    @classmethod
    def deserialize_variant(cls, serialized: str) -> Variant:
        """
        Inverse of serialize_variant().

        Raises:
            ValueError: If the JSON is invalid or not an object
        """
        data = json.loads(serialized)
        if not isinstance(data, dict):
            raise ValueError("Serialized variant is not a JSON object")
        return Variant.from_dict(
            {
                **data,
                "values": [
                    VariantSerializer.deserialize_variant_value(value)[1]
                    for value in data.get("values") or ()
                ],
            }
        )

    @classmethod
    def restore_from_database(cls, database_data: Mapping[str, Any], strict: bool = False) -> dict:
        """
        Rebuild nested variants and combinations from a stored document.

        Filter-only fields (variantStrings, variantSearchTags) are dropped.

        Args:
            database_data: Document as read from the store; not modified
            strict: Raise on corrupt variant JSON instead of skipping it

        Raises:
            VariantError: CORRUPT_VARIANT (strict mode only)
        """
        restored = dict(database_data)

        if isinstance(restored.get(VARIANTS_SERIALIZED_FIELD), (list, tuple)):
            variants = []
            for index, serialized in enumerate(restored.pop(VARIANTS_SERIALIZED_FIELD)):
                try:
                    variants.append(cls.deserialize_variant(serialized))
                except (AttributeError, TypeError, ValueError) as exc:
                    if strict:
                        raise VariantError("CORRUPT_VARIANT", index=index, reason=str(exc)) from exc
                    logger.warning(
                        "Skipping corrupt variant #%d in document %s: %s",
                        index,
                        restored.get("$id") or restored.get("id"),
                        exc,
                    )
            restored[VARIANTS_FIELD] = variants

        if isinstance(restored.get(COMBINATIONS_SERIALIZED_FIELD), (list, tuple)):
            restored[COMBINATIONS_FIELD] = VariantSerializer.deserialize_product_combinations(
                restored.pop(COMBINATIONS_SERIALIZED_FIELD)
            )

        restored.pop(SEARCH_TAGS_FIELD, None)
        restored.pop(VARIANT_STRINGS_FIELD, None)

        return restored

    # ======================================================================
    # QUERIES
    # ======================================================================

    @classmethod
    def create_variant_queries(cls, filters: Mapping[str, list[str]]) -> list[str]:
        """
        Field-path filters for variant search.

        Args:
            filters: {axis: [values]}, e.g. {"color": ["Red"], "size": ["M"]}

        Returns:
            ["variantStrings.color-red", "variantSearchTags.color-red", ...]
        """
        queries = []
        for axis, values in filters.items():
            for value in values:
                lowered = value.lower()
                queries.append(f"{VARIANT_STRINGS_FIELD}.{axis}-{lowered}")
                queries.append(f"{SEARCH_TAGS_FIELD}.{axis}-{lowered}")
        return queries
