"""
Paint Errors
============

Error taxonomy shared by the paint pipeline.

Resource and layer-geometry failures are recoverable: the compositor logs
them and omits the single layer they belong to. Surface failures are fatal
for the whole render call.
"""


class PaintError(Exception):
    """Base class for paint pipeline errors."""

    pass


class ResourceResolutionError(PaintError):
    """Exception raised when an image, SVG or mask resource cannot be fetched or decoded."""

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        self.reason = reason
        super().__init__(f"Unable to resolve {reference[:255]}: {reason}")


class LayerGeometryError(PaintError):
    """Exception raised when a background/mask layer size cannot be resolved."""

    pass


class SurfaceError(PaintError):
    """Exception raised when the drawing surface cannot be created or used."""

    pass
