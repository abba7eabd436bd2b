"""
Shape validation for variants and combinations.

Run before encoding so malformed input raises a ValidationError instead of
being written as a silently broken string.
"""

from decimal import Decimal
from typing import Any, Iterable, Mapping

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, RegexValidator

from variantman.conf import variantman_settings
from variantman.protocols import AxisKind, ProductCombination, Variant, VariantType, VariantValue
from variantman.protocols.variants import to_decimal, to_int
from variantman.serializer import MAX_EXPONENT, RESERVED_CHARACTERS

hex_color_validator = RegexValidator(
    regex=r"^#(?:[0-9a-fA-F]{3}){1,2}$",
    message="Color code must be a hex color like #fff or #ff0000.",
    code="invalid_color",
)
non_negative_validator = MinValueValidator(Decimal("0"))

VALUE_DECIMAL_FIELDS = ("additionalPrice",)
COMBINATION_DECIMAL_FIELDS = ("price", "compareAtPrice", "weight")
COMBINATION_INT_FIELDS = ("quantity",)


def _check_text(errors: list, text: str | None, field: str) -> None:
    """Reserved delimiters are only safe when escaping is on."""
    if not text or variantman_settings.ESCAPE_RESERVED:
        return
    found = sorted({char for char in text if char in RESERVED_CHARACTERS})
    if found:
        errors.append(
            ValidationError(
                "%(field)s contains reserved characters: %(chars)s",
                code="reserved_character",
                params={"field": field, "chars": " ".join(found)},
            )
        )


def _run(errors: list, validator, value, field: str) -> None:
    try:
        validator(value)
    except ValidationError as exc:
        errors.append(ValidationError(f"{field}: {'; '.join(exc.messages)}", code=exc.error_list[0].code))


def _is_valid_decimal(raw: Any) -> bool:
    number = to_decimal(raw)
    if isinstance(raw, bool) or number is None or not number.is_finite():
        return False
    return not number or abs(number.adjusted()) <= MAX_EXPONENT


def _collect_number_errors(data: Mapping, decimal_fields=(), int_fields=()) -> list:
    """
    Check numeric fields of raw form data before coercion.

    Coercion falls back to defaults, so "19,99" or "2 units" would
    otherwise be stored as 0.
    """
    errors = []
    for field in (*decimal_fields, *int_fields):
        raw = data.get(field)
        if raw is None or raw == "":
            continue
        if field in int_fields:
            valid = not isinstance(raw, bool) and to_int(raw) is not None
        else:
            valid = _is_valid_decimal(raw)
        if not valid:
            errors.append(
                ValidationError(
                    "%(field)s is not a valid number: %(value)s",
                    code="invalid_number",
                    params={"field": field, "value": str(raw)[:40]},
                )
            )
    return errors


def _collect_value_errors(value: VariantValue, variant_id: str = "") -> list:
    errors = []
    if not value.value:
        errors.append(ValidationError("Variant value cannot be empty", code="required"))
    if value.color_code:
        _run(errors, hex_color_validator, value.color_code, "colorCode")
    if not Decimal(value.additional_price or 0).is_finite():
        errors.append(ValidationError("additionalPrice must be a finite number", code="invalid_number"))
    _check_text(errors, value.value, "value")
    _check_text(errors, value.label, "label")
    _check_text(errors, variant_id, "variant id")
    return errors


def validate_variant_value(value: VariantValue | dict, variant_id: str = "") -> None:
    """Validate one variant value."""
    errors = []
    if isinstance(value, Mapping):
        errors.extend(_collect_number_errors(value, VALUE_DECIMAL_FIELDS))
    errors.extend(_collect_value_errors(VariantValue.coerce(value), variant_id))
    if errors:
        raise ValidationError(errors)


def validate_variant(variant: Variant | dict) -> None:
    """Validate a variant axis and all of its values."""
    errors = []
    if isinstance(variant, Mapping):
        for raw_value in variant.get("values") or ():
            if isinstance(raw_value, Mapping):
                errors.extend(_collect_number_errors(raw_value, VALUE_DECIMAL_FIELDS))
    variant = Variant.coerce(variant)

    if not variant.id:
        errors.append(ValidationError("Variant id cannot be empty", code="required"))
    if not variant.name:
        errors.append(ValidationError("Variant name cannot be empty", code="required"))
    if variant.type not in VariantType.values:
        errors.append(
            ValidationError(
                "Unknown variant type: %(type)s", code="invalid_type", params={"type": variant.type}
            )
        )
    if variant.axis and variant.axis not in AxisKind.values:
        errors.append(
            ValidationError(
                "Unknown axis kind: %(axis)s", code="invalid_axis", params={"axis": variant.axis}
            )
        )

    seen = set()
    for value in variant.values:
        if value.value in seen:
            errors.append(
                ValidationError(
                    "Duplicate value %(value)s in variant %(variant)s",
                    code="duplicate_value",
                    params={"value": value.value, "variant": variant.id},
                )
            )
        seen.add(value.value)
        errors.extend(_collect_value_errors(value, variant.id))

    if sum(1 for value in variant.values if value.is_default) > 1:
        errors.append(ValidationError("Only one value can be the default", code="multiple_defaults"))

    if errors:
        raise ValidationError(errors)


def _collect_raw_combination_errors(data: Mapping) -> list:
    return _collect_number_errors(data, COMBINATION_DECIMAL_FIELDS, COMBINATION_INT_FIELDS)


def _collect_combination_errors(combo: ProductCombination, variant_ids: set[str] | None) -> list:
    errors = []

    if not combo.sku:
        errors.append(ValidationError("SKU cannot be empty", code="required"))
    _run(errors, non_negative_validator, combo.price, "price")
    _run(errors, non_negative_validator, combo.quantity, "quantity")
    if combo.compare_at_price is not None:
        _run(errors, non_negative_validator, combo.compare_at_price, "compareAtPrice")
    if combo.weight is not None:
        _run(errors, non_negative_validator, combo.weight, "weight")

    if variant_ids is not None:
        for variant_id in combo.variant_values:
            if variant_id not in variant_ids:
                errors.append(
                    ValidationError(
                        "Combination %(sku)s references unknown variant %(variant)s",
                        code="unknown_variant",
                        params={"sku": combo.sku, "variant": variant_id},
                    )
                )

    _check_text(errors, combo.id, "id")
    _check_text(errors, combo.sku, "sku")
    _check_text(errors, combo.barcode, "barcode")
    for key, value in combo.variant_values.items():
        _check_text(errors, key, "variant id")
        _check_text(errors, value, "variant value")
    return errors


def validate_combination(
    combo: ProductCombination | dict,
    variants: Iterable[Variant | dict] | None = None,
) -> None:
    """
    Validate one combination.

    When ``variants`` is given, every selection key must name one of them.
    """
    variant_ids = None
    if variants is not None:
        variant_ids = {Variant.coerce(v).id for v in variants}
    errors = []
    if isinstance(combo, Mapping):
        errors.extend(_collect_raw_combination_errors(combo))
    errors.extend(_collect_combination_errors(ProductCombination.coerce(combo), variant_ids))
    if errors:
        raise ValidationError(errors)


def validate_combinations(
    combinations: Iterable[ProductCombination | dict],
    variants: Iterable[Variant | dict] | None = None,
) -> None:
    """Validate every combination of a product; SKUs must be unique."""
    variant_ids = None
    if variants is not None:
        variant_ids = {Variant.coerce(v).id for v in variants}

    errors = []
    skus = set()
    for combo in combinations:
        if isinstance(combo, Mapping):
            errors.extend(_collect_raw_combination_errors(combo))
        combo = ProductCombination.coerce(combo)
        errors.extend(_collect_combination_errors(combo, variant_ids))
        if combo.sku and combo.sku in skus:
            errors.append(
                ValidationError(
                    "Duplicate SKU %(sku)s", code="duplicate_sku", params={"sku": combo.sku}
                )
            )
        skus.add(combo.sku)

    if errors:
        raise ValidationError(errors)
