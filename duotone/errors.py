"""Exception types raised by the dithering pipeline."""


class DuotoneError(Exception):
    """Base class for failures surfaced by this package."""


class LoadError(DuotoneError):
    """The source image could not be fetched or decoded."""


class SurfaceError(DuotoneError):
    """A working or output pixel surface could not be allocated."""
