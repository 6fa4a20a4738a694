from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple, Union

RGB = Tuple[int, int, int]
ColorLike = Union[str, RGB]

WHITE: RGB = (255, 255, 255)
BLACK: RGB = (0, 0, 0)

_HEX_COLOR = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})(?:[0-9a-f]{2})?$", re.IGNORECASE)


def parse_hex_color(value: str) -> RGB:
    """Parse ``#RRGGBB`` (or ``#RRGGBBAA``) into an RGB triple.

    Any alpha component is dropped; output pixels are always written opaque.
    Strings that do not match fall back to black.
    """

    match = _HEX_COLOR.match(value.strip())
    if not match:
        return BLACK
    return (int(match.group(1), 16), int(match.group(2), 16), int(match.group(3), 16))


def to_rgb(color: ColorLike) -> RGB:
    if isinstance(color, str):
        return parse_hex_color(color)
    r, g, b = color[:3]
    return (int(r), int(g), int(b))


def luminance(r: float, g: float, b: float) -> float:
    return 0.299 * r + 0.587 * g + 0.114 * b


@dataclass(frozen=True)
class DitherOptions:
    """Parameters for one dithering run.

    ``primary_color`` paints pixels that quantize light and
    ``secondary_color`` paints pixels that quantize dark. ``threshold`` is the
    luminance cutoff and is deliberately not clamped. ``crunch`` is the
    downscale factor applied before dithering and undone afterwards.
    """

    primary_color: RGB = WHITE
    secondary_color: RGB = BLACK
    threshold: float = 128
    crunch: int = 1

    @classmethod
    def from_hex(
        cls,
        primary: ColorLike = WHITE,
        secondary: ColorLike = BLACK,
        *,
        threshold: float = 128,
        crunch: int = 1,
    ) -> "DitherOptions":
        return cls(
            primary_color=to_rgb(primary),
            secondary_color=to_rgb(secondary),
            threshold=threshold,
            crunch=crunch,
        )

    @classmethod
    def from_settings(cls, settings) -> "DitherOptions":
        return cls.from_hex(
            settings.primary_color,
            settings.secondary_color,
            threshold=settings.threshold,
            crunch=settings.crunch,
        )
