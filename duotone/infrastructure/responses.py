from __future__ import annotations

import io

from flask import Response, send_file
from PIL import Image


def encode_png(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, "PNG", optimize=True)
    return buffer.getvalue()


def png_response(data: bytes, *, stale: bool = False) -> Response:
    response = send_file(io.BytesIO(data), mimetype="image/png", max_age=0)
    if stale:
        response.headers["X-Duotone-Fallback"] = "last-good"
    return response
