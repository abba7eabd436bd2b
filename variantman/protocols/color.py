"""
ColorTable protocol.

Static reference data used to resolve color names to canonical hex codes.
Projects with their own palette point VARIANTMAN["COLOR_TABLE"] at a class
implementing this protocol:

    class BrandColorTable:
        def match(self, name: str) -> Color | None:
            ...

        def all(self) -> list[Color]:
            ...
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Color:
    """A named color."""

    id: int
    name: str
    hex: str


@runtime_checkable
class ColorTable(Protocol):
    """Interface for color lookups."""

    def match(self, name: str) -> Color | None:
        """
        Return the color whose name or hex equals ``name``.

        Comparison is case-insensitive and ignores surrounding whitespace.
        """
        ...

    def all(self) -> list[Color]:
        """Return every known color."""
        ...
