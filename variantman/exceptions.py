"""Variantman exceptions."""

from typing import Any


ERROR_MESSAGES = {
    "EMPTY_INPUT": "Serialized input is empty",
    "FIELD_COUNT": "Unexpected number of fields",
    "EMPTY_VALUE": "Variant value is empty",
    "INVALID_NUMBER": "Field is not a valid number",
    "INVALID_BOOLEAN": "Field is not a valid boolean",
    "MALFORMED_FIELD": "Field is not a key:value pair",
    "MALFORMED_PAIR": "Variant selection is not a key=value pair",
    "UNKNOWN_FIELD": "Unknown combination field",
    "MISSING_FIELD": "Required combination field is missing",
    "CORRUPT_VARIANT": "Stored variant could not be decoded",
    "INVALID_COLOR_TABLE": "Color table could not be loaded",
}


class VariantError(Exception):
    """
    Structured exception for variant operations.

    Usage:
        try:
            combo = VariantSerializer.check_product_combination(text).unwrap()
        except VariantError as e:
            if e.code == "INVALID_NUMBER":
                print(f"Bad number in field {e.field}")
    """

    def __init__(self, code: str, message: str = "", **data: Any) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    @property
    def field(self) -> str | None:
        return self.data.get("field")

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }
