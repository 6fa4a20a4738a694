from __future__ import annotations

import io
import logging
import struct
from pathlib import Path
from typing import Callable, Union
from urllib.parse import unquote, urlsplit

import requests
from PIL import Image

from ..config import SETTINGS
from ..errors import LoadError


SessionFactory = Callable[[], requests.Session]
SourceRef = Union[str, Path]

LOGGER = logging.getLogger(__name__)

# Pillow reports some corrupt files as ValueError, SyntaxError or struct.error;
# a NUL in a local path also surfaces as ValueError.
_LOAD_FAILURES = (
    OSError,
    ValueError,
    SyntaxError,
    EOFError,
    struct.error,
    requests.RequestException,
    Image.DecompressionBombError,
)


def _is_http(ref: str) -> bool:
    return urlsplit(ref).scheme in ("http", "https")


def _local_path(ref: SourceRef) -> Path:
    if isinstance(ref, Path):
        return ref
    parts = urlsplit(ref)
    if parts.scheme == "file":
        return Path(unquote(parts.path))
    return Path(ref)


class SourceLoader:
    """Fetch and fully decode source images.

    HTTP(S) references go through a shared ``requests`` session; anything else
    is treated as a local path or ``file://`` URL. Each call makes a single
    attempt and raises :class:`LoadError` on failure.
    """

    def __init__(self, session_factory: SessionFactory | None = None, timeout: float | None = None) -> None:
        self._session_factory = session_factory or requests.Session
        self._session = self._create_session()
        self._timeout = SETTINGS.timeout if timeout is None else timeout

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": "duotone/1.0"})
        return session

    def _read_bytes(self, ref: SourceRef) -> bytes:
        if isinstance(ref, str) and _is_http(ref):
            response = self._session.get(ref, timeout=self._timeout)
            response.raise_for_status()
            return response.content
        return _local_path(ref).read_bytes()

    def load(self, ref: SourceRef) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(self._read_bytes(ref)))
            img.load()
        except _LOAD_FAILURES as exc:
            raise LoadError(f"Failed to load image: {ref}") from exc
        return img

    def exists(self, ref: SourceRef) -> bool:
        """Best-effort probe: ``True`` when ``ref`` decodes as an image."""

        try:
            self.load(ref)
        except LoadError as exc:
            LOGGER.debug("probe miss for %s: %s", ref, exc.__cause__)
            return False
        return True


LOADER = SourceLoader()
