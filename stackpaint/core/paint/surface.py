"""
Drawing Surface
===============

A pycairo ARGB32 image surface with the primitives the compositor draws
with: path fills and strokes, clips, repeat patterns, image blits, blurred
shadows, and pixel access through numpy for mask merging.

Cairo stores premultiplied native-endian ARGB; everything handed out of this
module as an array is straight-alpha RGBA ``uint8`` of shape (h, w, 4).
"""

import math
import sys
from typing import Callable, Optional, Sequence

import cairo
import numpy as np
from PIL import Image, ImageFilter

from stackpaint.config.logging import get_logger
from stackpaint.core.errors import SurfaceError
from stackpaint.core.geometry.path import Path, reverse_path, segment_start
from stackpaint.core.geometry.vector import BezierCurve
from stackpaint.models.schemas import Color

logger = get_logger(__name__)

if sys.byteorder == "little":
    NATIVE_TO_RGBA = [2, 1, 0, 3]
    RGBA_TO_NATIVE = [2, 1, 0, 3]
else:
    NATIVE_TO_RGBA = [1, 2, 3, 0]
    RGBA_TO_NATIVE = [3, 0, 1, 2]

# Half-size of the rectangle an inverted path is cut out of
MASK_EXTENT = 1_000_000

Tracer = Callable[[cairo.Context], None]


def trace_path(ctx: cairo.Context, path: Path, close: bool = True) -> None:
    """Append ``path`` to the context's current path as one sub-path."""
    for index, segment in enumerate(path):
        start = segment_start(segment)
        if index == 0:
            ctx.move_to(start.x, start.y)
        else:
            ctx.line_to(start.x, start.y)
        if isinstance(segment, BezierCurve):
            ctx.curve_to(
                segment.start_control.x,
                segment.start_control.y,
                segment.end_control.x,
                segment.end_control.y,
                segment.end.x,
                segment.end.y,
            )
    if close and path:
        ctx.close_path()


def trace_inverted_path(ctx: cairo.Context, path: Path) -> None:
    """Everything except ``path``: a huge clockwise rectangle with the path as a counter-clockwise hole."""
    ctx.rectangle(-MASK_EXTENT, -MASK_EXTENT, 2 * MASK_EXTENT, 2 * MASK_EXTENT)
    trace_path(ctx, reverse_path(path))


def premultiplied_to_straight(native: np.ndarray) -> np.ndarray:
    rgba = native[..., NATIVE_TO_RGBA].astype(np.float32)
    alpha = rgba[..., 3:4]
    with np.errstate(divide="ignore", invalid="ignore"):
        rgb = np.where(alpha > 0, rgba[..., :3] * 255.0 / alpha, 0.0)
    rgba[..., :3] = np.clip(np.rint(rgb), 0, 255)
    return rgba.astype(np.uint8)


def straight_to_premultiplied(rgba: np.ndarray) -> np.ndarray:
    values = rgba.astype(np.float32)
    values[..., :3] = np.rint(values[..., :3] * values[..., 3:4] / 255.0)
    return values.astype(np.uint8)[..., RGBA_TO_NATIVE]


def merge_mask_alpha(layer: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Replace the alpha of every painted ``layer`` pixel with the ``mask`` alpha.

    RGB is kept. Pixels the layer never painted stay fully transparent so
    the blit leaves whatever lies underneath untouched.
    """
    merged = layer.copy()
    merged[..., 3] = np.where(layer[..., 3] > 0, mask[..., 3], 0)
    return merged


def _pixel_view(image: cairo.ImageSurface) -> np.ndarray:
    """Writable (h, w, 4) view over an ARGB32 surface's native bytes."""
    image.flush()
    height = image.get_height()
    buffer = np.ndarray(
        shape=(height, image.get_stride() // 4, 4), dtype=np.uint8, buffer=image.get_data()
    )
    return buffer[:, : image.get_width()]


def image_surface_from_pil(image: Image.Image) -> cairo.ImageSurface:
    """Convert a decoded Pillow image into a cairo surface."""
    rgba = np.asarray(image.convert("RGBA"), dtype=np.uint8)
    height, width = rgba.shape[:2]
    surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, width, height)
    _pixel_view(surface)[...] = straight_to_premultiplied(rgba)
    surface.mark_dirty()
    return surface


class Surface:
    """An explicit drawing handle: one cairo image surface and its context."""

    def __init__(self, image: cairo.ImageSurface, scale: float = 1.0, smoothing: bool = True):
        self.image = image
        self.ctx = cairo.Context(image)
        self.scale = scale
        self.smoothing = smoothing

    @classmethod
    def create(cls, width: int, height: int, scale: float = 1.0, smoothing: bool = True) -> "Surface":
        """Allocate a transparent surface of ``width`` x ``height`` device pixels.

        Raises:
            SurfaceError: If the size is not positive or cairo refuses it
        """
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Surface size must be positive, got {width}x{height}")
        try:
            image = cairo.ImageSurface(cairo.FORMAT_ARGB32, width, height)
            return cls(image, scale=scale, smoothing=smoothing)
        except (cairo.Error, MemoryError) as e:
            raise SurfaceError(f"Cannot create {width}x{height} surface: {e}") from e

    @property
    def width(self) -> int:
        return self.image.get_width()

    @property
    def height(self) -> int:
        return self.image.get_height()

    # State
    def save(self) -> None:
        self.ctx.save()

    def restore(self) -> None:
        self.ctx.restore()

    def translate(self, x: float, y: float) -> None:
        self.ctx.translate(x, y)

    def scale_by(self, sx: float, sy: float) -> None:
        self.ctx.scale(sx, sy)

    def transform(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        self.ctx.transform(cairo.Matrix(a, b, c, d, e, f))

    def push_group(self) -> None:
        self.ctx.push_group()

    def pop_group(self, opacity: float) -> None:
        self.ctx.pop_group_to_source()
        self.ctx.paint_with_alpha(opacity)

    def device_scale(self) -> float:
        """Length scale of the current user-to-device matrix."""
        m = self.ctx.get_matrix()
        return math.sqrt(abs(m.xx * m.yy - m.xy * m.yx))

    # Paths
    def begin_path(self, path: Path, inverted: bool = False) -> None:
        self.ctx.new_path()
        if inverted:
            trace_inverted_path(self.ctx, path)
        else:
            trace_path(self.ctx, path)

    def clip_path(self, path: Path, inverted: bool = False) -> None:
        self.begin_path(path, inverted)
        self.ctx.clip()

    def fill_path(self, path: Path, color: Color, inverted: bool = False) -> None:
        self.begin_path(path, inverted)
        self.ctx.set_source_rgba(*color.as_rgba())
        self.ctx.fill()

    def fill_rect(self, left: float, top: float, width: float, height: float, color: Color) -> None:
        self.ctx.new_path()
        self.ctx.rectangle(left, top, width, height)
        self.ctx.set_source_rgba(*color.as_rgba())
        self.ctx.fill()

    def fill_circle(self, center_x: float, center_y: float, radius: float, color: Color) -> None:
        self.ctx.new_path()
        self.ctx.arc(center_x, center_y, radius, 0, 2 * math.pi)
        self.ctx.set_source_rgba(*color.as_rgba())
        self.ctx.fill()

    def fill_with_pattern(self, path: Path, pattern: cairo.Pattern) -> None:
        self.begin_path(path)
        self.ctx.set_source(pattern)
        self.ctx.fill()

    def stroke_path(
        self,
        path: Path,
        color: Color,
        width: float,
        dash: Optional[Sequence[float]] = None,
        round_cap: bool = False,
        close: bool = True,
    ) -> None:
        ctx = self.ctx
        ctx.new_path()
        trace_path(ctx, path, close=close)
        ctx.save()
        ctx.set_source_rgba(*color.as_rgba())
        ctx.set_line_width(width)
        ctx.set_line_cap(cairo.LINE_CAP_ROUND if round_cap else cairo.LINE_CAP_BUTT)
        ctx.set_dash(list(dash) if dash else [])
        ctx.stroke()
        ctx.restore()

    def clear(self, color: Color) -> None:
        """Replace every pixel inside the current clip with ``color``."""
        ctx = self.ctx
        ctx.save()
        ctx.identity_matrix()
        ctx.set_operator(cairo.OPERATOR_SOURCE)
        ctx.set_source_rgba(*color.as_rgba())
        ctx.paint()
        ctx.restore()

    # Images
    def _filter(self) -> int:
        return cairo.FILTER_GOOD if self.smoothing else cairo.FILTER_NEAREST

    def fill_repeat(
        self,
        path: Path,
        tile: cairo.ImageSurface,
        offset_x: float,
        offset_y: float,
        width: float,
        height: float,
    ) -> None:
        """Fill ``path`` with ``tile`` scaled to width x height and repeated from (offset_x, offset_y)."""
        if width <= 0 or height <= 0:
            return
        scale_x = tile.get_width() / width
        scale_y = tile.get_height() / height
        pattern = cairo.SurfacePattern(tile)
        pattern.set_extend(cairo.EXTEND_REPEAT)
        pattern.set_filter(self._filter())
        pattern.set_matrix(
            cairo.Matrix(xx=scale_x, yy=scale_y, x0=-offset_x * scale_x, y0=-offset_y * scale_y)
        )
        self.fill_with_pattern(path, pattern)

    def draw_image(
        self, image: cairo.ImageSurface, left: float, top: float, width: float, height: float
    ) -> None:
        """Blit ``image`` stretched into the given rectangle."""
        source_width = image.get_width()
        source_height = image.get_height()
        if width <= 0 or height <= 0 or source_width == 0 or source_height == 0:
            return
        ctx = self.ctx
        ctx.save()
        ctx.translate(left, top)
        ctx.scale(width / source_width, height / source_height)
        ctx.set_source_surface(image, 0, 0)
        ctx.get_source().set_filter(self._filter())
        ctx.new_path()
        ctx.rectangle(0, 0, source_width, source_height)
        ctx.fill()
        ctx.restore()

    def draw_surface(self, other: "Surface", left: float, top: float, width: float, height: float) -> None:
        self.draw_image(other.image, left, top, width, height)

    # Shadows
    def draw_shadow(
        self, trace: Tracer, color: Color, offset_x: float, offset_y: float, blur: float
    ) -> None:
        """Paint the blurred silhouette of a shape, as a shadow, respecting the current clip.

        ``trace`` appends the shape to a context that carries the current
        user transform. The offset is applied in user space and the blur is a
        Gaussian of sigma ``blur / 2`` in user units.
        """
        if color.is_transparent:
            return
        width, height = self.width, self.height
        silhouette = cairo.ImageSurface(cairo.FORMAT_A8, width, height)
        shape = cairo.Context(silhouette)
        shape.set_matrix(self.ctx.get_matrix())
        shape.translate(offset_x, offset_y)
        trace(shape)
        shape.fill()
        silhouette.flush()

        if blur > 0:
            plane = np.ndarray(
                shape=(height, silhouette.get_stride()), dtype=np.uint8, buffer=silhouette.get_data()
            )
            sigma = blur / 2 * self.device_scale()
            blurred = Image.fromarray(plane[:, :width].copy()).filter(ImageFilter.GaussianBlur(sigma))
            plane[:, :width] = np.asarray(blurred, dtype=np.uint8)
            silhouette.mark_dirty()

        ctx = self.ctx
        ctx.save()
        ctx.identity_matrix()
        ctx.set_source_rgba(*color.as_rgba())
        ctx.mask_surface(silhouette, 0, 0)
        ctx.restore()

    # Pixels
    def to_array(self) -> np.ndarray:
        """Straight-alpha RGBA copy of the pixels."""
        return premultiplied_to_straight(_pixel_view(self.image))

    def write_array(self, rgba: np.ndarray) -> None:
        _pixel_view(self.image)[...] = straight_to_premultiplied(rgba)
        self.image.mark_dirty()

    def apply_mask(self, mask: "Surface") -> None:
        """Merge ``mask``'s alpha into this surface in place."""
        self.write_array(merge_mask_alpha(self.to_array(), mask.to_array()))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.to_array())
