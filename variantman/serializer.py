"""
Variant serialization.

Flattens variant values and product combinations into delimited strings for
fields that only accept string arrays, and back.

Wire format (must stay stable, stored documents depend on it):

    variant value:        variantId:value:label:additionalPrice:colorCode:isDefault
    variant combination:  <variant value>;<variant value>;...
    product combination:  id:c1|variantValues:size=M,color=Red|sku:SKU1|price:19.99|...

LENIENT (never raise, fill defaults):
    VariantSerializer.serialize_variant_value / deserialize_variant_value
    VariantSerializer.serialize_variant_combination / deserialize_variant_combination
    VariantSerializer.serialize_product_combinations / deserialize_product_combinations

STRICT (typed result):
    VariantSerializer.check_variant_value(text)       -> DecodeResult
    VariantSerializer.check_product_combination(text) -> DecodeResult
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, Mapping

from variantman.conf import variantman_settings
from variantman.protocols import DecodeResult, ProductCombination, Variant, VariantValue
from variantman.protocols.variants import MAX_INT_DIGITS

logger = logging.getLogger(__name__)


FIELD_SEPARATOR = ":"
VARIANT_SEPARATOR = ";"
COMBINATION_SEPARATOR = "|"
PAIR_SEPARATOR = ","
KEY_VALUE_SEPARATOR = "="

RESERVED_CHARACTERS = "%:;|,="
_ESCAPES = {char: f"%{ord(char):02X}" for char in RESERVED_CHARACTERS}
_UNESCAPE_RE = re.compile(r"%(25|3A|3B|7C|2C|3D)", re.IGNORECASE)

COMBINATION_FIELDS = (
    "id",
    "variantValues",
    "sku",
    "price",
    "compareAtPrice",
    "quantity",
    "weight",
    "barcode",
    "isDefault",
)
REQUIRED_COMBINATION_FIELDS = ("id", "variantValues", "sku", "price")

# Leading numeric prefix, as read by JavaScript's parseFloat/parseInt.
_FLOAT_PREFIX_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_FULL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_FULL_RE = re.compile(r"[+-]?\d+")

# Numbers past the range of a double are treated as missing.
MAX_EXPONENT = 308


# ═══════════════════════════════════════════════════════════════════
# Field helpers
# ═══════════════════════════════════════════════════════════════════


def escape(text: str, enabled: bool = True) -> str:
    """Percent-escape reserved delimiter characters."""
    if not enabled or not text:
        return text
    return "".join(_ESCAPES.get(char, char) for char in text)


def unescape(text: str | None) -> str | None:
    """Reverse escape(). Only the reserved sequences are touched."""
    if not text or "%" not in text:
        return text
    return _UNESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)


def format_number(value) -> str:
    """
    Render a number the way stored documents render it.

    Integral values have no decimal point ("5", not "5.0"); others use
    the shortest plain decimal ("19.99"). Non-finite and out-of-range
    values render as "0".
    """
    if value is None or value == "":
        return "0"
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return "0"
    if not number or not number.is_finite() or abs(number.adjusted()) > MAX_EXPONENT:
        return "0"
    if number == number.to_integral_value():
        return format(number.to_integral_value(), "f")
    return format(number.normalize(), "f")


def format_bool(value) -> str:
    return "true" if value else "false"


def parse_decimal(text: str | None) -> Decimal | None:
    """Parse the leading numeric prefix of text, or None when absent or out of range."""
    if not text:
        return None
    match = _FLOAT_PREFIX_RE.match(text)
    if not match:
        return None
    try:
        number = Decimal(match.group(1))
    except InvalidOperation:
        return None
    if not number.is_finite() or (number and abs(number.adjusted()) > MAX_EXPONENT):
        logger.debug("Number %.40s... is out of range; ignoring", text)
        return None
    return number


def parse_int(text: str | None) -> int | None:
    """Parse the leading integer prefix of text, or None when absent or too wide."""
    if not text:
        return None
    match = _INT_PREFIX_RE.match(text)
    if not match:
        return None
    digits = match.group(1).lstrip("+-").lstrip("0")
    if len(digits) > MAX_INT_DIGITS:
        logger.debug("Integer %.40s... is too wide; ignoring", text)
        return None
    return int(match.group(1))


def _is_number(text: str, integer: bool = False) -> bool:
    """Whole-field number that parses within range."""
    if integer:
        return bool(_INT_FULL_RE.fullmatch(text)) and parse_int(text) is not None
    return bool(_FLOAT_FULL_RE.fullmatch(text)) and parse_decimal(text) is not None


def _field(parts: list[str], index: int) -> str | None:
    return parts[index] if index < len(parts) else None


class VariantSerializer:
    """
    Variant codecs.

    Uses @classmethod so projects can subclass and override single steps.
    """

    # ======================================================================
    # VARIANT VALUE
    # ======================================================================

    @classmethod
    def serialize_variant_value(cls, variant_id: str, variant_value: VariantValue | dict) -> str:
        """
        Serialize one (variant_id, value) pair.

        Args:
            variant_id: Id of the owning variant axis
            variant_value: VariantValue (or its dict form)

        Returns:
            "variantId:value:label:additionalPrice:colorCode:isDefault"
        """
        variant_value = VariantValue.coerce(variant_value)
        escaping = variantman_settings.ESCAPE_RESERVED
        parts = [
            escape(variant_id, escaping),
            escape(variant_value.value or "", escaping),
            escape(variant_value.label or "", escaping),
            format_number(variant_value.additional_price or 0),
            escape(variant_value.color_code or "", escaping),
            format_bool(variant_value.is_default),
        ]
        return FIELD_SEPARATOR.join(parts)

    @classmethod
    def deserialize_variant_value(cls, serialized: str) -> tuple[str, VariantValue]:
        """
        Deserialize one variant value. Never raises.

        Returns:
            (variant_id, VariantValue). Missing or malformed fields fall back
            to defaults: empty label/color -> None, bad price -> 0.
        """
        parts = (serialized or "").split(FIELD_SEPARATOR)
        variant_id = unescape(parts[0]) or ""

        price_text = _field(parts, 3)
        additional_price = parse_decimal(price_text)
        if additional_price is None and price_text:
            logger.debug("Non-numeric additional price %r for %s; using 0", price_text, variant_id)

        return variant_id, VariantValue(
            value=unescape(_field(parts, 1)) or "",
            label=unescape(_field(parts, 2)) or None,
            color_code=unescape(_field(parts, 4)) or None,
            additional_price=additional_price or Decimal("0"),
            is_default=_field(parts, 5) == "true",
        )

    # ======================================================================
    # VARIANT COMBINATION
    # ======================================================================

    @classmethod
    def serialize_variant_combination(
        cls,
        variant_values: Mapping[str, str],
        variants: Iterable[Variant | dict],
    ) -> str:
        """
        Serialize a selection map {variant_id: value}.

        Variant ids missing from ``variants`` are skipped. Values missing
        from their variant are written as a minimal placeholder
        (label=value, no extra price, not default).
        """
        by_id = {}
        for variant in variants:
            variant = Variant.coerce(variant)
            by_id.setdefault(variant.id, variant)

        serialized_values = []
        for variant_id, value in variant_values.items():
            variant = by_id.get(variant_id)
            if variant is None:
                logger.debug("Skipping unknown variant %r in combination", variant_id)
                continue

            variant_value = variant.find_value(value)
            if variant_value is None:
                variant_value = VariantValue(value=value, label=value)
            serialized_values.append(cls.serialize_variant_value(variant_id, variant_value))

        return VARIANT_SEPARATOR.join(serialized_values)

    @classmethod
    def deserialize_variant_combination(cls, serialized: str) -> dict[str, VariantValue]:
        """Deserialize a combination string. Empty input -> {}."""
        if not serialized:
            return {}

        result = {}
        for part in serialized.split(VARIANT_SEPARATOR):
            if part.strip():
                variant_id, variant_value = cls.deserialize_variant_value(part)
                result[variant_id] = variant_value
        return result

    # ======================================================================
    # PRODUCT COMBINATIONS
    # ======================================================================

    @classmethod
    def serialize_product_combinations(
        cls, combinations: Iterable[ProductCombination | dict]
    ) -> list[str]:
        """Serialize each combination to a single "key:value|key:value" string."""
        escaping = variantman_settings.ESCAPE_RESERVED
        return [cls._serialize_product_combination(combo, escaping) for combo in combinations]

    @classmethod
    def _serialize_product_combination(cls, combo, escaping: bool) -> str:
        combo = ProductCombination.coerce(combo)
        selections = PAIR_SEPARATOR.join(
            f"{escape(str(k), escaping)}{KEY_VALUE_SEPARATOR}{escape(str(v), escaping)}"
            for k, v in combo.variant_values.items()
        )
        data = {
            "id": escape(combo.id or "", escaping),
            "variantValues": selections,
            "sku": escape(combo.sku or "", escaping),
            "price": format_number(combo.price),
            "compareAtPrice": format_number(combo.compare_at_price or 0),
            "quantity": format_number(combo.quantity or 0),
            "weight": format_number(combo.weight or 0),
            "barcode": escape(combo.barcode or "", escaping),
            "isDefault": format_bool(combo.is_default),
        }
        return COMBINATION_SEPARATOR.join(
            f"{key}{FIELD_SEPARATOR}{value}" for key, value in data.items()
        )

    @classmethod
    def deserialize_product_combinations(cls, serialized_array: Iterable[str]) -> list[ProductCombination]:
        """
        Deserialize combination strings. Never raises.

        Fallbacks: price -> 0, quantity -> 0, compareAtPrice/weight -> None
        when zero or non-numeric, barcode -> None when empty.
        Images are not stored in the string and come back empty.
        """
        return [cls._deserialize_product_combination(s) for s in serialized_array]

    @classmethod
    def _split_combination(cls, serialized: str) -> dict[str, str | None]:
        data: dict[str, str | None] = {}
        for part in (serialized or "").split(COMBINATION_SEPARATOR):
            pieces = part.split(FIELD_SEPARATOR)
            data[pieces[0]] = pieces[1] if len(pieces) > 1 else None
        return data

    @classmethod
    def _split_selections(cls, text: str | None) -> dict[str, str]:
        variant_values = {}
        if text:
            for pair in text.split(PAIR_SEPARATOR):
                pieces = pair.split(KEY_VALUE_SEPARATOR)
                key = pieces[0]
                value = pieces[1] if len(pieces) > 1 else None
                if key and value:
                    variant_values[unescape(key)] = unescape(value)
        return variant_values

    @classmethod
    def _deserialize_product_combination(cls, serialized: str) -> ProductCombination:
        data = cls._split_combination(serialized)

        price = parse_decimal(data.get("price"))
        if price is None and data.get("price"):
            logger.debug("Non-numeric price %r in combination; using 0", data.get("price"))

        return ProductCombination(
            id=unescape(data.get("id")),
            variant_values=cls._split_selections(data.get("variantValues")),
            sku=unescape(data.get("sku")) or "",
            price=price or Decimal("0"),
            compare_at_price=parse_decimal(data.get("compareAtPrice")) or None,
            quantity=parse_int(data.get("quantity")) or 0,
            weight=parse_decimal(data.get("weight")) or None,
            barcode=unescape(data.get("barcode")) or None,
            is_default=data.get("isDefault") == "true",
            images=[],
        )

    # ======================================================================
    # STRICT DECODING
    # ======================================================================

    @classmethod
    def check_variant_value(cls, serialized: str) -> DecodeResult:
        """
        Strictly decode one variant value.

        Returns:
            DecodeResult with value=(variant_id, VariantValue) when valid.
        """
        if not serialized:
            return DecodeResult.fail("EMPTY_INPUT")

        parts = serialized.split(FIELD_SEPARATOR)
        if len(parts) != 6:
            return DecodeResult.fail(
                "FIELD_COUNT", f"Expected 6 fields, got {len(parts)}"
            )
        if not parts[1]:
            return DecodeResult.fail("EMPTY_VALUE", field="value")
        if parts[3] and not _is_number(parts[3]):
            return DecodeResult.fail("INVALID_NUMBER", field="additionalPrice")
        if parts[5] not in ("true", "false"):
            return DecodeResult.fail("INVALID_BOOLEAN", field="isDefault")

        return DecodeResult.ok(cls.deserialize_variant_value(serialized))

    @classmethod
    def check_product_combination(cls, serialized: str) -> DecodeResult:
        """
        Strictly decode one product combination string.

        Returns:
            DecodeResult with value=ProductCombination when valid.
        """
        if not serialized:
            return DecodeResult.fail("EMPTY_INPUT")

        data = {}
        for part in serialized.split(COMBINATION_SEPARATOR):
            key, sep, value = part.partition(FIELD_SEPARATOR)
            if not sep or FIELD_SEPARATOR in value:
                return DecodeResult.fail("MALFORMED_FIELD", field=key)
            if key not in COMBINATION_FIELDS:
                return DecodeResult.fail("UNKNOWN_FIELD", f"Unknown field '{key}'", field=key)
            data[key] = value

        for key in REQUIRED_COMBINATION_FIELDS:
            if key not in data:
                return DecodeResult.fail("MISSING_FIELD", f"Missing field '{key}'", field=key)

        if data["variantValues"]:
            for pair in data["variantValues"].split(PAIR_SEPARATOR):
                pieces = pair.split(KEY_VALUE_SEPARATOR)
                if len(pieces) != 2 or not pieces[0] or not pieces[1]:
                    return DecodeResult.fail("MALFORMED_PAIR", field="variantValues")

        for key in ("price", "compareAtPrice", "weight"):
            if data.get(key) and not _is_number(data[key]):
                return DecodeResult.fail("INVALID_NUMBER", field=key)
        if not data["price"]:
            return DecodeResult.fail("INVALID_NUMBER", field="price")
        if data.get("quantity") and not _is_number(data["quantity"], integer=True):
            return DecodeResult.fail("INVALID_NUMBER", field="quantity")
        if "isDefault" in data and data["isDefault"] not in ("true", "false"):
            return DecodeResult.fail("INVALID_BOOLEAN", field="isDefault")

        return DecodeResult.ok(cls._deserialize_product_combination(serialized))
