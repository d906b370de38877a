"""
Background and Mask Layers
==========================

Geometry shared by background-image and mask-image layers: reference
boxes, the CSS auto-sizing algorithm, positions and repeat tiles.

Every per-layer property list is read through ``value_for_index``: an index
past the end of a list reads the list's first value.
"""

import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Tuple, TypeVar

from stackpaint.core.errors import LayerGeometryError
from stackpaint.core.geometry.bound_curves import (
    BoundCurves,
    border_box_path,
    content_box_path,
    padding_box_path,
)
from stackpaint.core.geometry.bounds import box_area
from stackpaint.core.geometry.path import Path, translate_path
from stackpaint.core.geometry.vector import Vector
from stackpaint.models.schemas import (
    Bounds,
    BoxArea,
    ComputedStyle,
    ElementNode,
    Length,
    RepeatMode,
    SizeComponent,
    SizeKeyword,
)

T = TypeVar("T")


class Intrinsic(NamedTuple):
    """Intrinsic width, height and ratio of a layer image; ``None`` when unknown."""

    width: Optional[float] = None
    height: Optional[float] = None
    ratio: Optional[float] = None

    @classmethod
    def of_size(cls, width: float, height: float) -> "Intrinsic":
        return cls(width, height, width / height if height else None)


NO_INTRINSIC = Intrinsic()


class LayerProperties(NamedTuple):
    """Per-layer property lists of either the background or the mask."""

    origin: List[BoxArea]
    clip: List[BoxArea]
    size: List[List[SizeComponent]]
    position: List[List[Length]]
    repeat: List[RepeatMode]


def background_layers(styles: ComputedStyle) -> LayerProperties:
    return LayerProperties(
        styles.background_origin,
        styles.background_clip,
        styles.background_size,
        styles.background_position,
        styles.background_repeat,
    )


def mask_layers(styles: ComputedStyle) -> LayerProperties:
    return LayerProperties(
        styles.mask_origin,
        styles.mask_clip,
        styles.mask_size,
        styles.mask_position,
        styles.mask_repeat,
    )


def value_for_index(values: Sequence[T], index: int) -> T:
    """``values[index]``, or ``values[0]`` when ``index`` is out of range."""
    if 0 <= index < len(values):
        return values[index]
    return values[0]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def positioning_area(origin: BoxArea, element: ElementNode) -> Bounds:
    return box_area(origin, element)


def painting_area(clip: BoxArea, element: ElementNode) -> Bounds:
    return box_area(clip, element)


def curved_painting_area(clip: BoxArea, curves: BoundCurves) -> Path:
    if clip == BoxArea.BORDER_BOX:
        return border_box_path(curves)
    if clip == BoxArea.CONTENT_BOX:
        return content_box_path(curves)
    return padding_box_path(curves)


def _is_auto(component: Optional[SizeComponent]) -> bool:
    return component == SizeKeyword.AUTO


def _is_length(component: Optional[SizeComponent]) -> bool:
    return isinstance(component, Length)


def resolve_size(
    size: Sequence[SizeComponent], intrinsic: Intrinsic, area: Bounds
) -> Tuple[float, float]:
    """Resolve a background-size/mask-size entry to (width, height).

    Args:
        size: One or two components; one component means ``<first> auto``
        intrinsic: What is known about the image's own dimensions
        area: The positioning area

    Returns:
        Tuple of resolved width and height

    Raises:
        LayerGeometryError: If no branch of the algorithm resolves both axes
    """
    if not size:
        return 0.0, 0.0

    first = size[0]
    second = size[1] if len(size) > 1 else None
    intrinsic_width, intrinsic_height, ratio = intrinsic

    if _is_length(first) and _is_length(second):
        return first.resolve(area.width), second.resolve(area.height)

    if first in (SizeKeyword.CONTAIN, SizeKeyword.COVER):
        if ratio is not None:
            target_ratio = area.width / area.height if area.height else math.inf
            if (target_ratio < ratio) != (first == SizeKeyword.COVER):
                return area.width, area.width / ratio
            return area.height * ratio, area.height
        return area.width, area.height

    has_width = intrinsic_width is not None
    has_height = intrinsic_height is not None

    if _is_auto(first) and (second is None or _is_auto(second)):
        if has_width and has_height:
            return intrinsic_width, intrinsic_height
        if ratio is None and not (has_width or has_height):
            return area.width, area.height
        if ratio is not None and (has_width or has_height):
            width = intrinsic_width if has_width else intrinsic_height * ratio
            height = intrinsic_height if has_height else intrinsic_width / ratio
            return width, height
        return (
            intrinsic_width if has_width else area.width,
            intrinsic_height if has_height else area.height,
        )

    if ratio is not None:
        width = 0.0
        height = 0.0
        if _is_length(first):
            width = first.resolve(area.width)
        elif _is_length(second):
            height = second.resolve(area.height)

        if _is_auto(first):
            width = height * ratio
        elif second is None or _is_auto(second):
            height = width / ratio
        return width, height

    resolved_width: Optional[float] = None
    resolved_height: Optional[float] = None
    if _is_length(first):
        resolved_width = first.resolve(area.width)
    elif _is_length(second):
        resolved_height = second.resolve(area.height)

    if resolved_width is not None and (second is None or _is_auto(second)):
        if has_width and has_height and intrinsic_width:
            resolved_height = resolved_width / intrinsic_width * intrinsic_height
        else:
            resolved_height = area.height

    if resolved_height is not None and _is_auto(first):
        if has_width and has_height and intrinsic_height:
            resolved_width = resolved_height / intrinsic_height * intrinsic_width
        else:
            resolved_width = area.width

    if resolved_width is not None and resolved_height is not None:
        return resolved_width, resolved_height

    raise LayerGeometryError(f"Unable to resolve layer size {list(size)!r}")


def resolve_position(
    position: Sequence[Length], free_width: float, free_height: float
) -> Tuple[float, float]:
    """Offsets of a layer inside its positioning area; one value applies to both axes."""
    x = position[0].resolve(free_width)
    y = position[-1].resolve(free_height)
    return x, y


def _rect(left: float, top: float, right: float, bottom: float) -> Path:
    left, top = round_half_up(left), round_half_up(top)
    right, bottom = round_half_up(right), round_half_up(bottom)
    return [Vector(left, top), Vector(right, top), Vector(right, bottom), Vector(left, bottom)]


def repeat_path(
    repeat: RepeatMode,
    position: Tuple[float, float],
    size: Tuple[float, float],
    positioning: Bounds,
    painting: Bounds,
) -> Path:
    """The rectangle a layer tiles into, in absolute coordinates rounded to whole pixels.

    ``repeat-x`` spans the positioning area horizontally at the layer's
    vertical offset and ``repeat-y`` does the same vertically.
    ``no-repeat`` is the single placed image. Everything else covers the
    painting area.
    """
    x, y = position
    width, height = size

    if repeat == RepeatMode.REPEAT_X:
        return _rect(
            positioning.left,
            positioning.top + y,
            positioning.left + positioning.width,
            positioning.top + y + height,
        )
    if repeat == RepeatMode.REPEAT_Y:
        return _rect(
            positioning.left + x,
            positioning.top,
            positioning.left + x + width,
            positioning.top + positioning.height,
        )
    if repeat == RepeatMode.NO_REPEAT:
        return _rect(
            positioning.left + x,
            positioning.top + y,
            positioning.left + x + width,
            positioning.top + y + height,
        )
    return _rect(
        painting.left,
        painting.top,
        painting.left + painting.width,
        painting.top + painting.height,
    )


@dataclass(frozen=True)
class LayerRendering:
    """Where and how one layer tiles.

    ``path`` and the offsets are relative to the positioning area's top-left
    corner, which is ``positioning.left``/``positioning.top`` in document space.
    """

    path: Path
    offset_x: int
    offset_y: int
    width: float
    height: float
    positioning: Bounds
    painting: Bounds


def layer_rendering(
    element: ElementNode, layers: LayerProperties, index: int, intrinsic: Intrinsic
) -> LayerRendering:
    """Resolve areas, size, position and tile path for layer ``index``.

    Raises:
        LayerGeometryError: If the layer's size cannot be resolved
    """
    positioning = positioning_area(value_for_index(layers.origin, index), element)
    painting = painting_area(value_for_index(layers.clip, index), element)
    width, height = resolve_size(value_for_index(layers.size, index), intrinsic, positioning)
    position = resolve_position(
        value_for_index(layers.position, index),
        positioning.width - width,
        positioning.height - height,
    )
    path = repeat_path(
        value_for_index(layers.repeat, index), position, (width, height), positioning, painting
    )
    return LayerRendering(
        path=translate_path(path, -positioning.left, -positioning.top),
        offset_x=round_half_up(position[0]),
        offset_y=round_half_up(position[1]),
        width=width,
        height=height,
        positioning=positioning,
        painting=painting,
    )
