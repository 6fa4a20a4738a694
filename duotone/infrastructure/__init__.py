"""Infrastructure helpers for loading sources and resolving assets."""

from .assets import CANDIDATE_EXTENSIONS, AssetResolver
from .cache import AssetPathCache, RenderCache
from .network import LOADER, SourceLoader
from .responses import encode_png, png_response

__all__ = [
    "CANDIDATE_EXTENSIONS",
    "AssetResolver",
    "AssetPathCache",
    "RenderCache",
    "LOADER",
    "SourceLoader",
    "encode_png",
    "png_response",
]
