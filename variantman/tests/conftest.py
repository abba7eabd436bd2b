"""Pytest fixtures for Variantman tests."""

from decimal import Decimal

import pytest

from variantman.conf import reset_color_table
from variantman.protocols import ProductCombination, Variant, VariantType, VariantValue


@pytest.fixture(autouse=True)
def fresh_color_table():
    """Each test loads the color table from the current settings."""
    reset_color_table()
    yield
    reset_color_table()


@pytest.fixture
def size_variant():
    """Create a size variant."""
    return Variant(
        id="size",
        name="Size",
        type=VariantType.SELECT,
        required=True,
        values=(
            VariantValue(value="S", label="Small"),
            VariantValue(value="M", label="Medium", is_default=True),
            VariantValue(value="L", label="Large", additional_price=Decimal("2.50")),
        ),
    )


@pytest.fixture
def color_variant():
    """Create a color variant."""
    return Variant(
        id="color",
        name="Color",
        type=VariantType.COLOR,
        required=True,
        values=(
            VariantValue(value="Red", label="Red", color_code="#FF0000"),
            VariantValue(value="Blue", label="Blue", color_code="#0000FF", additional_price=Decimal("1")),
        ),
    )


@pytest.fixture
def variants(size_variant, color_variant):
    return [size_variant, color_variant]


@pytest.fixture
def combinations():
    """Create two combinations of size x color."""
    return [
        ProductCombination(
            id="c1",
            variant_values={"size": "M", "color": "Red"},
            sku="TEE-RED-M",
            price=Decimal("19.99"),
            quantity=5,
            is_default=True,
        ),
        ProductCombination(
            id="c2",
            variant_values={"size": "L", "color": "Blue"},
            sku="TEE-BLU-L",
            price=Decimal("23.49"),
            compare_at_price=Decimal("29.90"),
            quantity=2,
            weight=Decimal("0.3"),
            barcode="7891234567890",
        ),
    ]


@pytest.fixture
def product_data(variants, combinations):
    """Product form data as posted by the catalog UI."""
    return {
        "name": "Basic Tee",
        "storeId": "store-1",
        "variants": variants,
        "productCombinations": combinations,
    }
