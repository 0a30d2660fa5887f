"""Deterministic type-to-color assignment.

Colors are handed out from a fixed palette in the order types are first
seen. An assigner lives for exactly one build pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


PALETTE: tuple[str, ...] = (
    "#4285F4",  # Blue
    "#EA4335",  # Red
    "#FBBC05",  # Yellow
    "#34A853",  # Green
    "#673AB7",  # Deep Purple
    "#FF9800",  # Orange
    "#009688",  # Teal
    "#E91E63",  # Pink
    "#9C27B0",  # Purple
    "#CDDC39",  # Lime
    "#00BCD4",  # Cyan
    "#8BC34A",  # Light Green
    "#FFC107",  # Amber
    "#3F51B5",  # Indigo
    "#795548",  # Brown
    "#607D8B",  # Blue Grey
    "#FF5722",  # Deep Orange
    "#2196F3",  # Light Blue
)

DEFAULT_COLOR = "#9E9E9E"  # Grey, for nodes without a type


class TypeColorAssigner:
    """Maps type names to palette colors, first come first served.

    The first encounter of a type takes ``palette[pointer % len(palette)]``
    and advances the pointer; later encounters reuse that color. Types that
    are missing or empty get the neutral default.
    """

    def __init__(
        self,
        palette: Sequence[str] = PALETTE,
        default_color: str = DEFAULT_COLOR,
    ) -> None:
        """Initialize the assigner.

        Args:
            palette: Ordered colors to hand out
            default_color: Color for nodes without a type

        Raises:
            ValueError: If the palette is empty
        """
        if not palette:
            raise ValueError("palette must contain at least one color")
        self.palette = tuple(palette)
        self.default_color = default_color
        self.pointer = 0
        self._assignments: dict[str, str] = {}

    def color_for(self, type_name: str | None) -> str:
        """Return the color for a type, assigning one on first sight.

        Args:
            type_name: Type name, or None when the entity has no type

        Returns:
            Hex color string
        """
        if not type_name:
            return self.default_color

        color = self._assignments.get(type_name)
        if color is None:
            color = self.palette[self.pointer % len(self.palette)]
            self._assignments[type_name] = color
            self.pointer += 1
        return color

    @property
    def assignments(self) -> dict[str, str]:
        """Copy of the type -> color mapping in first-seen order."""
        return dict(self._assignments)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._assignments

    def __iter__(self) -> Iterator[str]:
        return iter(self._assignments)

    def __len__(self) -> int:
        return len(self._assignments)

    def __repr__(self) -> str:
        return f"TypeColorAssigner(types={len(self._assignments)}, pointer={self.pointer})"
