"""
Stacking Contexts
=================

Builds the stacking-context tree that fixes CSS painting order
(CSS 2.1 Appendix E) and the per-element paint records it is made of.
"""

from typing import List, Optional

from stackpaint.config.logging import get_logger
from stackpaint.core.geometry.bound_curves import BoundCurves, border_box_path, padding_box_path
from stackpaint.core.geometry.path import equal_path
from stackpaint.models.schemas import ElementNode, ListStyleType, Position

from .effects import ClipEffect, Effect, EffectTarget, OpacityEffect, TransformEffect, is_clip_effect

logger = get_logger(__name__)

BOTH_TARGETS = EffectTarget.BACKGROUND_BORDERS | EffectTarget.CONTENT
OUT_OF_FLOW = (Position.ABSOLUTE, Position.FIXED)


class ElementPaint:
    """One element ready to paint: its curves, its own effects and a link to its parent."""

    def __init__(self, element: ElementNode, parent: Optional["ElementPaint"]):
        self.element = element
        self.parent = parent
        self.curves = BoundCurves.from_element(element)
        self.effects: List[Effect] = []
        self.list_value: Optional[str] = None

        styles = element.styles
        bounds = element.bounds
        if styles.opacity < 1:
            self.effects.append(OpacityEffect(styles.opacity))

        if styles.transform is not None:
            origin_x, origin_y = styles.transform_origin
            self.effects.append(
                TransformEffect(
                    bounds.left + origin_x.resolve(bounds.width),
                    bounds.top + origin_y.resolve(bounds.height),
                    styles.transform,
                )
            )

        if styles.clips_overflow():
            border_box = border_box_path(self.curves)
            padding_box = padding_box_path(self.curves)
            if equal_path(border_box, padding_box):
                self.effects.append(ClipEffect(border_box, BOTH_TARGETS))
            else:
                self.effects.append(ClipEffect(border_box, EffectTarget.BACKGROUND_BORDERS))
                self.effects.append(ClipEffect(padding_box, EffectTarget.CONTENT))

    def get_effects(self, target: EffectTarget) -> List[Effect]:
        """Effects to apply, outermost first, when painting ``target`` of this element.

        Ancestor opacity and transforms always apply. An ancestor's overflow
        clip applies only while the element stays in flow relative to it:
        an absolutely positioned element escapes the clips of static
        ancestors, except the root's.
        """
        in_flow = self.element.styles.position not in OUT_OF_FLOW
        parent = self.parent
        effects = list(self.effects)

        while parent is not None:
            parent_styles = parent.element.styles
            inherited = [effect for effect in parent.effects if not is_clip_effect(effect)]
            if in_flow or parent_styles.position != Position.STATIC or parent.parent is None:
                if parent_styles.clips_overflow():
                    inherited.append(ClipEffect(padding_box_path(parent.curves), BOTH_TARGETS))
                in_flow = parent_styles.position not in OUT_OF_FLOW
            effects = inherited + effects
            parent = parent.parent

        return [effect for effect in effects if effect.target & target]


class StackingContext:
    """An element paint plus its seven ordered paint buckets."""

    def __init__(self, element: ElementPaint):
        self.element = element
        self.negative_z_index: List["StackingContext"] = []
        self.zero_or_auto_z_index_or_transformed_or_opacity: List["StackingContext"] = []
        self.positive_z_index: List["StackingContext"] = []
        self.non_positioned_floats: List["StackingContext"] = []
        self.non_positioned_inline_level: List["StackingContext"] = []
        self.inline_level: List[ElementPaint] = []
        self.non_inline_level: List[ElementPaint] = []

    def __repr__(self) -> str:
        return f"StackingContext({self.element.element.name or 'element'})"


def creates_real_stacking_context(element: ElementNode) -> bool:
    styles = element.styles
    return styles.is_positioned_with_z_index() or styles.opacity < 1 or styles.is_transformed()


def creates_stacking_context(element: ElementNode) -> bool:
    styles = element.styles
    return styles.is_positioned() or styles.is_floating()


def _insert_by_z_order(contexts: List[StackingContext], stack: StackingContext) -> None:
    """Insert after every context with the same or a lower z-index, keeping tree order for ties."""
    order = stack.element.element.styles.z_order
    index = len(contexts)
    while index > 0 and contexts[index - 1].element.element.styles.z_order > order:
        index -= 1
    contexts.insert(index, stack)


def _parse_stack_tree(
    parent: ElementPaint,
    stacking_context: StackingContext,
    real_stacking_context: StackingContext,
    list_items: List[ElementPaint],
) -> None:
    for child in parent.element.children:
        treat_as_real = creates_real_stacking_context(child)
        paint = ElementPaint(child, parent)
        styles = child.styles
        if styles.is_list_item():
            list_items.append(paint)
        owner_items: List[ElementPaint] = [] if child.list_owner else list_items

        if treat_as_real or creates_stacking_context(child):
            parent_stack = (
                real_stacking_context if treat_as_real or styles.is_positioned() else stacking_context
            )
            stack = StackingContext(paint)
            if styles.is_positioned() or styles.opacity < 1 or styles.is_transformed():
                order = styles.z_order
                if order < 0:
                    _insert_by_z_order(parent_stack.negative_z_index, stack)
                elif order > 0:
                    _insert_by_z_order(parent_stack.positive_z_index, stack)
                else:
                    parent_stack.zero_or_auto_z_index_or_transformed_or_opacity.append(stack)
            elif styles.is_floating():
                parent_stack.non_positioned_floats.append(stack)
            else:
                parent_stack.non_positioned_inline_level.append(stack)

            _parse_stack_tree(paint, stack, stack if treat_as_real else real_stacking_context, owner_items)
        else:
            if styles.is_inline_level():
                stacking_context.inline_level.append(paint)
            else:
                stacking_context.non_inline_level.append(paint)
            _parse_stack_tree(paint, stacking_context, real_stacking_context, owner_items)

        if child.list_owner:
            process_list_items(child, owner_items)


def build_stacking_context(root: ElementNode) -> StackingContext:
    """Build the stacking-context tree for ``root`` and number its list items."""
    paint = ElementPaint(root, None)
    stack = StackingContext(paint)
    list_items: List[ElementPaint] = []
    _parse_stack_tree(paint, stack, stack, list_items)
    process_list_items(root, list_items)
    logger.debug("Stacking contexts built", root=root.name, list_items=len(list_items))
    return stack


def process_list_items(owner: ElementNode, items: List[ElementPaint]) -> None:
    """Assign marker text to the list items of one list owner."""
    numbering = owner.list_start if owner.list_owner else 1
    step = -1 if owner.list_reversed else 1
    for item in items:
        value = item.element.list_value
        if value is not None and value != 0:
            numbering = value
        item.list_value = counter_text(numbering, item.element.styles.list_style_type)
        numbering += step


# Counters
_ROMAN = (
    (1000, "M"),
    (900, "CM"),
    (500, "D"),
    (400, "CD"),
    (100, "C"),
    (90, "XC"),
    (50, "L"),
    (40, "XL"),
    (10, "X"),
    (9, "IX"),
    (5, "V"),
    (4, "IV"),
    (1, "I"),
)


def _roman(value: int) -> str:
    if not 0 < value < 4000:
        return str(value)
    digits = []
    for amount, numeral in _ROMAN:
        while value >= amount:
            digits.append(numeral)
            value -= amount
    return "".join(digits)


def _alphabetic(value: int) -> str:
    if value < 1:
        return str(value)
    letters = []
    while value > 0:
        value, remainder = divmod(value - 1, 26)
        letters.append(chr(ord("a") + remainder))
    return "".join(reversed(letters))


def counter_text(value: int, style: ListStyleType, append_suffix: bool = True) -> str:
    """Marker text for ``value`` in list style ``style``."""
    default_suffix = ". " if append_suffix else ""
    space_suffix = " " if append_suffix else ""

    if style == ListStyleType.NONE:
        return ""
    if style == ListStyleType.DISC:
        return "•" + space_suffix
    if style == ListStyleType.CIRCLE:
        return "◦" + space_suffix
    if style == ListStyleType.SQUARE:
        return "◾" + space_suffix
    if style == ListStyleType.DECIMAL_LEADING_ZERO:
        text = str(abs(value)).zfill(2)
        return ("-" if value < 0 else "") + text + default_suffix
    if style in (ListStyleType.LOWER_ALPHA, ListStyleType.LOWER_LATIN):
        return _alphabetic(value) + default_suffix
    if style in (ListStyleType.UPPER_ALPHA, ListStyleType.UPPER_LATIN):
        return _alphabetic(value).upper() + default_suffix
    if style == ListStyleType.LOWER_ROMAN:
        return _roman(value).lower() + default_suffix
    if style == ListStyleType.UPPER_ROMAN:
        return _roman(value) + default_suffix
    return str(value) + default_suffix
