"""
Effects
=======

Opacity, transform and clip effects, and the stack that applies them to a
surface. ``EffectStack.scoped`` restores the surface on every exit path.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from enum import IntFlag
from typing import Iterator, List, Sequence, Tuple, Union

from stackpaint.config.logging import get_logger
from stackpaint.core.geometry.path import Path

from .surface import Surface

logger = get_logger(__name__)


class EffectTarget(IntFlag):
    """What a clip applies to."""

    BACKGROUND_BORDERS = 1
    CONTENT = 2


@dataclass(frozen=True)
class OpacityEffect:
    opacity: float
    target: EffectTarget = EffectTarget.BACKGROUND_BORDERS | EffectTarget.CONTENT


@dataclass(frozen=True)
class TransformEffect:
    """A 2D affine matrix applied around (offset_x, offset_y)."""

    offset_x: float
    offset_y: float
    matrix: Tuple[float, float, float, float, float, float]
    target: EffectTarget = EffectTarget.BACKGROUND_BORDERS | EffectTarget.CONTENT


@dataclass(frozen=True)
class ClipEffect:
    path: Path
    target: EffectTarget


Effect = Union[OpacityEffect, TransformEffect, ClipEffect]


def is_clip_effect(effect: Effect) -> bool:
    return isinstance(effect, ClipEffect)


class EffectStack:
    """Applies effects to a surface and keeps track of how to undo them."""

    def __init__(self, surface: Surface):
        self.surface = surface
        self._active: List[Effect] = []
        self.logger = logger.bind(component="effect_stack")

    @property
    def depth(self) -> int:
        return len(self._active)

    def push(self, effect: Effect) -> None:
        surface = self.surface
        if isinstance(effect, OpacityEffect):
            surface.push_group()
        else:
            surface.save()
            if isinstance(effect, TransformEffect):
                a, b, c, d, e, f = effect.matrix
                surface.translate(effect.offset_x, effect.offset_y)
                surface.transform(a, b, c, d, e, f)
                surface.translate(-effect.offset_x, -effect.offset_y)
            else:
                surface.clip_path(effect.path)
        self._active.append(effect)

    def pop(self) -> None:
        effect = self._active.pop()
        if isinstance(effect, OpacityEffect):
            self.surface.pop_group(effect.opacity)
        else:
            self.surface.restore()

    @contextmanager
    def scoped(self, effects: Sequence[Effect]) -> Iterator["EffectStack"]:
        """Push ``effects`` in order and pop them in reverse when the block exits."""
        start = len(self._active)
        try:
            for effect in effects:
                self.push(effect)
            yield self
        finally:
            while len(self._active) > start:
                self.pop()
