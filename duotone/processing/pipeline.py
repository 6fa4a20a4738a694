from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

from PIL import Image

from .color import DitherOptions
from .dither import PixelBuffer, atkinson_dither
from ..errors import SurfaceError
from ..infrastructure.network import LOADER, SourceLoader, SourceRef

LOGGER = logging.getLogger(__name__)

Source = Union[SourceRef, Image.Image]


def working_size(native: Tuple[int, int], crunch: int) -> Tuple[int, int]:
    factor = max(1, crunch)
    width, height = native
    return width // factor, height // factor


def render_dithered(
    source: Source,
    options: Optional[DitherOptions] = None,
    loader: Optional[SourceLoader] = None,
) -> Image.Image:
    """Load ``source`` and return a duotone, Atkinson-dithered copy.

    The image is shrunk by ``options.crunch`` with nearest-neighbour sampling,
    dithered, then blown back up to its native size the same way so each
    working pixel becomes a crisp block. A new ``RGBA`` image is returned and
    ``source`` is left untouched.

    Raises :class:`~duotone.errors.LoadError` when the source cannot be
    decoded and :class:`~duotone.errors.SurfaceError` when a working surface
    cannot be allocated.
    """

    options = options or DitherOptions()
    if isinstance(source, Image.Image):
        img = source
    else:
        img = (loader or LOADER).load(source)

    native = img.size
    work = working_size(native, options.crunch)
    LOGGER.debug("dithering %sx%s at working size %sx%s", native[0], native[1], work[0], work[1])

    try:
        if work[0] == 0 or work[1] == 0:
            # Nothing survives the downscale; an empty surface scales up blank.
            return Image.new("RGBA", native)

        working = img.convert("RGBA").resize(work, Image.Resampling.NEAREST)
        buffer = atkinson_dither(PixelBuffer.from_image(working), options)
        return buffer.to_image().resize(native, Image.Resampling.NEAREST)
    except MemoryError as exc:
        raise SurfaceError(f"Could not allocate a {work[0]}x{work[1]} drawing surface") from exc
