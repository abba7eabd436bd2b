"""
JSON ColorTable -- default color lookup backed by a JSON file.

Reads a list of {"id", "name", "hex"} objects. Without a configured file,
the palette shipped in variantman/data/colors.json is used.

Usage in settings.py:
    VARIANTMAN = {
        "COLOR_TABLE": "variantman.adapters.color_table.JsonColorTable",
        "COLOR_DATA_FILE": "/srv/shop/colors.json",
    }
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path

from variantman.protocols.color import Color, ColorTable

logger = logging.getLogger(__name__)


class JsonColorTable:
    """ColorTable loaded once from JSON and indexed by lowercase name and hex."""

    def __init__(self, path: str | Path | None = None) -> None:
        if path is None:
            from variantman.conf import variantman_settings

            path = variantman_settings.COLOR_DATA_FILE

        if path is None:
            raw = resources.files("variantman").joinpath("data/colors.json").read_text(encoding="utf-8")
        else:
            raw = Path(path).read_text(encoding="utf-8")

        self._colors = [
            Color(id=int(item["id"]), name=item["name"], hex=item["hex"])
            for item in json.loads(raw)
        ]
        self._index: dict[str, Color] = {}
        for color in self._colors:
            # First entry wins on clashing names/hex codes.
            self._index.setdefault(color.name.lower(), color)
            self._index.setdefault(color.hex.lower(), color)
        logger.debug("Loaded %d colors from %s", len(self._colors), path or "package data")

    def match(self, name: str) -> Color | None:
        """Return color by name or hex (case-insensitive)."""
        if not name:
            return None
        return self._index.get(name.strip().lower())

    def all(self) -> list[Color]:
        """Return all colors."""
        return list(self._colors)


# Verify protocol compliance at import time.
if not issubclass(JsonColorTable, ColorTable):
    raise TypeError("JsonColorTable does not implement ColorTable protocol")
