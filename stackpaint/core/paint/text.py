"""
Text
====

Font metrics over cairo's toy font API and the text drawing helpers the
compositor uses for text runs, form-control values and list markers.
Text arrives already broken into positioned runs; nothing here shapes or
wraps it.
"""

from typing import Dict, NamedTuple, Tuple

import cairo

from stackpaint.models.schemas import Color, ComputedStyle, TextShadow

from .surface import Surface

BOLD_WEIGHT = 600
NORMAL_LINE_HEIGHT = 1.2


class TextMetrics(NamedTuple):
    """Baseline and x-height middle offsets from the top of a line box.

    ``em_middle`` is the distance from the middle of the em box down to the baseline.
    """

    baseline: float
    middle: float
    em_middle: float = 0.0


FontKey = Tuple[str, float, int, str]


def font_key(styles: ComputedStyle) -> FontKey:
    family = styles.font_family[0] if styles.font_family else "sans-serif"
    return family, styles.font_size, styles.font_weight, styles.font_style


def apply_font(ctx: cairo.Context, styles: ComputedStyle) -> None:
    family, size, weight, style = font_key(styles)
    slant = {
        "italic": cairo.FONT_SLANT_ITALIC,
        "oblique": cairo.FONT_SLANT_OBLIQUE,
    }.get(style, cairo.FONT_SLANT_NORMAL)
    ctx.select_font_face(
        family,
        slant,
        cairo.FONT_WEIGHT_BOLD if weight >= BOLD_WEIGHT else cairo.FONT_WEIGHT_NORMAL,
    )
    ctx.set_font_size(size)


def line_height(styles: ComputedStyle) -> float:
    if styles.line_height is None:
        return styles.font_size * NORMAL_LINE_HEIGHT
    return styles.line_height


class FontMetrics:
    """Caches baseline/middle offsets per font."""

    def __init__(self):
        self._cache: Dict[FontKey, TextMetrics] = {}
        self._ctx = cairo.Context(cairo.ImageSurface(cairo.FORMAT_A8, 1, 1))

    def get_metrics(self, styles: ComputedStyle) -> TextMetrics:
        key = font_key(styles)
        metrics = self._cache.get(key)
        if metrics is None:
            apply_font(self._ctx, styles)
            ascent, descent = self._ctx.font_extents()[:2]
            x_height = self._ctx.text_extents("x").height
            metrics = TextMetrics(
                baseline=ascent, middle=ascent - x_height / 2, em_middle=(ascent - descent) / 2
            )
            self._cache[key] = metrics
        return metrics


def _advance(ctx: cairo.Context, text: str, letter_spacing: float) -> float:
    if letter_spacing == 0:
        return ctx.text_extents(text).x_advance
    return sum(ctx.text_extents(letter).x_advance + letter_spacing for letter in text)


def trace_text(ctx: cairo.Context, text: str, left: float, baseline: float, styles: ComputedStyle) -> None:
    """Append glyph outlines of ``text`` starting at (left, baseline)."""
    apply_font(ctx, styles)
    if styles.letter_spacing == 0:
        ctx.move_to(left, baseline)
        ctx.text_path(text)
        return
    x = left
    for letter in text:
        ctx.move_to(x, baseline)
        ctx.text_path(letter)
        x += ctx.text_extents(letter).x_advance + styles.letter_spacing


def fill_text(
    surface: Surface, text: str, left: float, baseline: float, styles: ComputedStyle, color: Color
) -> None:
    ctx = surface.ctx
    ctx.new_path()
    trace_text(ctx, text, left, baseline, styles)
    ctx.set_source_rgba(*color.as_rgba())
    ctx.fill()


def stroke_text(
    surface: Surface,
    text: str,
    left: float,
    baseline: float,
    styles: ComputedStyle,
    color: Color,
    width: float,
) -> None:
    ctx = surface.ctx
    ctx.save()
    ctx.new_path()
    trace_text(ctx, text, left, baseline, styles)
    ctx.set_source_rgba(*color.as_rgba())
    ctx.set_line_width(width)
    ctx.set_line_join(cairo.LINE_JOIN_ROUND)
    ctx.stroke()
    ctx.restore()


def shadow_text(
    surface: Surface, text: str, left: float, baseline: float, styles: ComputedStyle, shadow: TextShadow
) -> None:
    surface.draw_shadow(
        lambda ctx: trace_text(ctx, text, left, baseline, styles),
        shadow.color,
        shadow.offset_x,
        shadow.offset_y,
        shadow.blur,
    )


def text_width(surface: Surface, text: str, styles: ComputedStyle) -> float:
    apply_font(surface.ctx, styles)
    return _advance(surface.ctx, text, styles.letter_spacing)
