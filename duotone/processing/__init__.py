"""Image processing pipeline components for duotone dithering."""

from .color import BLACK, WHITE, DitherOptions, luminance, parse_hex_color
from .dither import ATKINSON_OFFSETS, ATKINSON_WEIGHT, PixelBuffer, atkinson_dither
from .pipeline import render_dithered, working_size

__all__ = [
    "BLACK",
    "WHITE",
    "DitherOptions",
    "luminance",
    "parse_hex_color",
    "ATKINSON_OFFSETS",
    "ATKINSON_WEIGHT",
    "PixelBuffer",
    "atkinson_dither",
    "render_dithered",
    "working_size",
]
