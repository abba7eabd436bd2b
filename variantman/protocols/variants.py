"""Variant protocols.

Structured, in-memory shapes of variant data. ``from_dict`` / ``as_dict``
use the camelCase keys of the stored documents and the product form.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from django.db import models
from django.utils.translation import gettext_lazy as _

from variantman.exceptions import ERROR_MESSAGES, VariantError

MAX_INT_DIGITS = 18


class VariantType(models.TextChoices):
    """How a variant axis is presented in the product form."""

    TEXT = "text", _("Texto")
    COLOR = "color", _("Cor")
    SELECT = "select", _("Seleção")
    BOOLEAN = "boolean", _("Sim/Não")
    MULTISELECT = "multiselect", _("Seleção múltipla")


class AxisKind(models.TextChoices):
    """Semantic kind of a variant axis, used for tags and index strings."""

    SIZE = "size", _("Tamanho")
    COLOR = "color", _("Cor")
    MATERIAL = "material", _("Material")
    STORAGE = "storage", _("Armazenamento")
    RAM = "ram", _("Memória RAM")
    OTHER = "other", _("Outro")

    @classmethod
    def infer(cls, variant_id: str, order: tuple | None = None) -> "AxisKind":
        """
        Guess the axis kind from a variant id by substring.

        Legacy fallback for variants stored without an explicit axis.
        The first keyword found wins, checked in declaration order unless
        ``order`` gives another one.
        """
        if order is None:
            order = (cls.SIZE, cls.COLOR, cls.MATERIAL, cls.STORAGE, cls.RAM)
        for kind in order:
            if kind.value in variant_id:
                return kind
        return cls.OTHER


def to_decimal(value: Any, default: Decimal | None = None) -> Decimal | None:
    """Coerce an int/float/str/Decimal to Decimal, or return default."""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def to_int(value: Any, default: int | None = None) -> int | None:
    """Coerce an integral int/float/str/Decimal to int, or return default.

    Fractional, non-finite and values wider than MAX_INT_DIGITS digits give
    the default.
    """
    number = to_decimal(value)
    if number is None or not number.is_finite():
        return default
    if number != number.to_integral_value() or number.adjusted() >= MAX_INT_DIGITS:
        return default
    return int(number)


@dataclass(frozen=True)
class VariantValue:
    """One selectable option of a variant axis (e.g. "Red" for Color)."""

    value: str
    label: str | None = None
    color_code: str | None = None
    additional_price: Decimal = Decimal("0")
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "VariantValue":
        return cls(
            value=data.get("value", ""),
            label=data.get("label") or None,
            color_code=data.get("colorCode") or None,
            additional_price=to_decimal(data.get("additionalPrice"), Decimal("0")),
            is_default=bool(data.get("isDefault", False)),
        )

    @classmethod
    def coerce(cls, obj: "VariantValue | dict") -> "VariantValue":
        return obj if isinstance(obj, cls) else cls.from_dict(obj)

    def as_dict(self) -> dict:
        return {
            "value": self.value,
            "label": self.label,
            "colorCode": self.color_code,
            "additionalPrice": self.additional_price,
            "isDefault": self.is_default,
        }


@dataclass(frozen=True)
class Variant:
    """An axis of product variation (Size, Color, ...)."""

    id: str
    name: str
    type: str = VariantType.SELECT
    values: tuple[VariantValue, ...] = ()
    required: bool = False
    axis: str | None = None

    @property
    def axis_kind(self) -> str:
        """Explicit axis if set, otherwise inferred from the id."""
        if self.axis:
            return self.axis
        return AxisKind.infer(self.id)

    def find_value(self, value: str) -> VariantValue | None:
        for candidate in self.values:
            if candidate.value == value:
                return candidate
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "Variant":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            type=data.get("type", VariantType.SELECT),
            values=tuple(VariantValue.coerce(v) for v in data.get("values") or ()),
            required=bool(data.get("required", False)),
            axis=data.get("axis") or None,
        )

    @classmethod
    def coerce(cls, obj: "Variant | dict") -> "Variant":
        return obj if isinstance(obj, cls) else cls.from_dict(obj)

    def as_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "type": str(self.type),
            "required": self.required,
            "values": [v.as_dict() for v in self.values],
        }
        if self.axis:
            data["axis"] = str(self.axis)
        return data


@dataclass
class ProductCombination:
    """One concrete, purchasable SKU: one selected value per axis."""

    id: str | None
    variant_values: dict[str, str] = field(default_factory=dict)
    sku: str = ""
    price: Decimal = Decimal("0")
    compare_at_price: Decimal | None = None
    quantity: int = 0
    weight: Decimal | None = None
    barcode: str | None = None
    images: list = field(default_factory=list)
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ProductCombination":
        return cls(
            id=data.get("id"),
            variant_values=dict(data.get("variantValues") or {}),
            sku=data.get("sku") or "",
            price=to_decimal(data.get("price"), Decimal("0")),
            compare_at_price=to_decimal(data.get("compareAtPrice")),
            quantity=to_int(data.get("quantity"), 0),
            weight=to_decimal(data.get("weight")),
            barcode=data.get("barcode") or None,
            images=list(data.get("images") or []),
            is_default=bool(data.get("isDefault", False)),
        )

    @classmethod
    def coerce(cls, obj: "ProductCombination | dict") -> "ProductCombination":
        return obj if isinstance(obj, cls) else cls.from_dict(obj)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "variantValues": dict(self.variant_values),
            "sku": self.sku,
            "price": self.price,
            "compareAtPrice": self.compare_at_price,
            "quantity": self.quantity,
            "weight": self.weight,
            "barcode": self.barcode,
            "images": list(self.images),
            "isDefault": self.is_default,
        }


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of a strict decode.

    Either valid with a value, or invalid with an error_code and message.
    """

    valid: bool
    value: Any = None
    error_code: str | None = None
    message: str | None = None
    field: str | None = None

    @classmethod
    def ok(cls, value: Any) -> "DecodeResult":
        return cls(valid=True, value=value)

    @classmethod
    def fail(cls, code: str, message: str = "", field: str | None = None) -> "DecodeResult":
        return cls(
            valid=False,
            error_code=code,
            message=message or ERROR_MESSAGES.get(code, code),
            field=field,
        )

    def unwrap(self) -> Any:
        """Return the decoded value or raise VariantError."""
        if not self.valid:
            raise VariantError(self.error_code, self.message, field=self.field)
        return self.value
