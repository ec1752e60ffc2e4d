"""Node size estimation from label text.

Nodes without an explicit width/height are sized from their label before layout
runs. The estimate uses per-character width factors so that narrow glyphs
(``i``, ``l``, ``.``) and wide glyphs (``m``, ``W``, ``@``) are not treated alike.
"""

from __future__ import annotations

DEFAULT_FONT_SIZE: float = 20.0
PADDING_X: float = 75.0
PADDING_Y: float = 25.0
MIN_WIDTH: float = 100.0
MIN_HEIGHT: float = 70.0

_FONT_MULTIPLIERS: dict[str, float] = {
    "virgil": 0.65,
    "helvetica": 0.55,
    "cascadia": 0.6,
    "code": 0.6,
}
_DEFAULT_MULTIPLIER = 0.6

_NARROW = set("il.!|'`Ijft")
_WIDE = set("wmWM@%#")
_DIGITS_AND_BRACKETS = set("0123456789()[]{}-_=+")


def char_width_factor(ch: str) -> float:
    if ch in _NARROW:
        return 0.4
    if ch in _WIDE:
        return 1.4
    if "A" <= ch <= "Z":
        return 1.15
    if ch == " ":
        return 0.35
    if ch in _DIGITS_AND_BRACKETS:
        return 0.9
    return 1.0


def text_dimensions(label: str, font_size: float = DEFAULT_FONT_SIZE, font: str | None = None) -> tuple[float, float]:
    """Return the (width, height) of a possibly multi-line label."""
    multiplier = _FONT_MULTIPLIERS.get((font or "").lower(), _DEFAULT_MULTIPLIER)
    lines = label.split("\n") if label else [""]
    widest = max(sum(char_width_factor(ch) for ch in line) for line in lines)
    width = widest * font_size * multiplier
    height = font_size * 1.3 * len(lines)
    return (width, height)


def estimate_node_size(
    label: str,
    font_size: float | None = None,
    font: str | None = None,
) -> tuple[float, float]:
    """Estimate a node's box from its label, with padding and minimum size."""
    text_w, text_h = text_dimensions(label, font_size or DEFAULT_FONT_SIZE, font)
    return (max(text_w + PADDING_X, MIN_WIDTH), max(text_h + PADDING_Y, MIN_HEIGHT))
