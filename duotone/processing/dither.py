from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from PIL import Image

from .color import DitherOptions, luminance

# Atkinson pattern, every neighbour receives 1/8 of the error:
#
#        X   1   1
#    1   1   1
#        1
#
# Only 6/8 of the error is pushed forward. Another diffusion kernel would
# replace these two constants.
ATKINSON_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (1, 0),
    (2, 0),
    (-1, 1),
    (0, 1),
    (1, 1),
    (0, 2),
)
ATKINSON_WEIGHT = 1.0 / 8.0


@dataclass
class PixelBuffer:
    """RGBA pixels stored row-major, four bytes per pixel."""

    width: int
    height: int
    data: bytearray

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid buffer size {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(f"Expected {expected} bytes of RGBA data, got {len(self.data)}")

    @classmethod
    def blank(cls, width: int, height: int) -> "PixelBuffer":
        return cls(width, height, bytearray(width * height * 4))

    @classmethod
    def from_image(cls, img: Image.Image) -> "PixelBuffer":
        width, height = img.size
        if width == 0 or height == 0:
            return cls.blank(width, height)
        return cls(width, height, bytearray(img.convert("RGBA").tobytes()))

    def to_image(self) -> Image.Image:
        if self.width == 0 or self.height == 0:
            return Image.new("RGBA", (self.width, self.height))
        return Image.frombytes("RGBA", (self.width, self.height), bytes(self.data))

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        idx = (y * self.width + x) * 4
        return tuple(self.data[idx : idx + 4])  # type: ignore[return-value]


def diffuse_error(gray: List[float], width: int, height: int, x: int, y: int, error: float) -> None:
    """Add ``error / 8`` to each in-bounds Atkinson neighbour of ``(x, y)``."""

    fraction = error * ATKINSON_WEIGHT
    for dx, dy in ATKINSON_OFFSETS:
        nx = x + dx
        ny = y + dy
        if nx < 0 or nx >= width or ny >= height:
            continue
        gray[ny * width + nx] += fraction


def atkinson_dither(buffer: PixelBuffer, options: Optional[DitherOptions] = None) -> PixelBuffer:
    """Quantize ``buffer`` to two colours with Atkinson error diffusion.

    The buffer is rewritten in place and returned. Every output pixel is
    exactly ``options.primary_color`` or ``options.secondary_color`` with full
    opacity; input alpha never influences the result.
    """

    options = options or DitherOptions()
    width, height = buffer.width, buffer.height
    if width == 0 or height == 0:
        return buffer

    data = buffer.data
    threshold = options.threshold
    primary = options.primary_color
    secondary = options.secondary_color

    # Luminance is left unclamped so overshoot keeps propagating.
    gray: List[float] = [
        luminance(data[idx], data[idx + 1], data[idx + 2]) for idx in range(0, width * height * 4, 4)
    ]

    for y in range(height):
        for x in range(width):
            index = y * width + x
            old = gray[index]
            new = 0 if old < threshold else 255
            color = secondary if new == 0 else primary

            offset = index * 4
            data[offset] = color[0]
            data[offset + 1] = color[1]
            data[offset + 2] = color[2]
            data[offset + 3] = 255

            diffuse_error(gray, width, height, x, y, old - new)

    return buffer
