"""Application package exports."""

from .app import APP_VERSION, app, create_app
from .errors import DuotoneError, LoadError, SurfaceError
from . import infrastructure, processing

__version__ = APP_VERSION

__all__ = [
    "APP_VERSION",
    "__version__",
    "app",
    "create_app",
    "DuotoneError",
    "LoadError",
    "SurfaceError",
    "infrastructure",
    "processing",
]
