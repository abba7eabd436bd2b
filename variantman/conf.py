"""
Variantman configuration.

Usage in settings.py:
    VARIANTMAN = {
        "ESCAPE_RESERVED": True,
        "VALIDATE_ON_PREPARE": True,
        "COLOR_TABLE": "variantman.adapters.color_table.JsonColorTable",
        "COLOR_DATA_FILE": None,  # e.g. BASE_DIR / "data" / "colors.json"
    }
"""

import importlib
import threading
from dataclasses import dataclass
from typing import Any

from django.conf import settings

from variantman.exceptions import VariantError


@dataclass
class VariantmanSettings:
    """Variantman configuration settings."""

    ESCAPE_RESERVED: bool = True
    VALIDATE_ON_PREPARE: bool = True
    COLOR_TABLE: str = "variantman.adapters.color_table.JsonColorTable"
    COLOR_DATA_FILE: str | None = None


def get_variantman_settings() -> VariantmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "VARIANTMAN", {})
    return VariantmanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_variantman_settings(), name)


variantman_settings = _LazySettings()


# ColorTable singleton
_color_table_lock = threading.Lock()
_color_table_instance = None


def get_color_table():
    """
    Return the configured ColorTable instance.

    Loads from VARIANTMAN["COLOR_TABLE"] setting (dotted path).
    If _color_table_instance was set directly (e.g. in tests), returns it as-is.

    Raises:
        VariantError: INVALID_COLOR_TABLE if the class cannot be imported
            or its data cannot be read.
    """
    global _color_table_instance
    if _color_table_instance is not None:
        return _color_table_instance
    table_path = variantman_settings.COLOR_TABLE
    with _color_table_lock:
        if _color_table_instance is None:
            try:
                module_path, cls_name = table_path.rsplit(".", 1)
                module = importlib.import_module(module_path)
                cls = getattr(module, cls_name)
                _color_table_instance = cls()
            except (ImportError, AttributeError, KeyError, TypeError, ValueError, OSError) as exc:
                raise VariantError(
                    "INVALID_COLOR_TABLE", path=table_path, reason=str(exc)
                ) from exc
    return _color_table_instance


def reset_color_table():
    """Reset ColorTable singleton (for tests)."""
    global _color_table_instance
    _color_table_instance = None
