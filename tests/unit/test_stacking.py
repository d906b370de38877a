"""
Unit Tests for Stacking Contexts
================================

Tests for stacking-context partitioning, z-order, effects and list numbering.
"""

from typing import Iterator, List

import pytest

from stackpaint.core.paint.effects import ClipEffect, EffectTarget, OpacityEffect, TransformEffect
from stackpaint.core.paint.stacking import (
    ElementPaint,
    StackingContext,
    build_stacking_context,
    counter_text,
    creates_real_stacking_context,
    creates_stacking_context,
)
from stackpaint.models.schemas import ElementNode, ListStyleType, percent, px

from tests.utils.builders import node

STACK_LISTS = (
    "negative_z_index",
    "zero_or_auto_z_index_or_transformed_or_opacity",
    "positive_z_index",
    "non_positioned_floats",
    "non_positioned_inline_level",
)


def iter_placed(stack: StackingContext) -> Iterator[str]:
    """Names of every element placed below ``stack``, one per placement."""
    for attribute in STACK_LISTS:
        for child in getattr(stack, attribute):
            yield child.element.element.name
            yield from iter_placed(child)
    for paint in stack.inline_level + stack.non_inline_level:
        yield paint.element.name


def iter_tree(element: ElementNode) -> Iterator[str]:
    for child in element.children:
        yield child.name
        yield from iter_tree(child)


def names(contexts: List[StackingContext]) -> List[str]:
    return [context.element.element.name for context in contexts]


def find_paint(stack: StackingContext, name: str) -> ElementPaint:
    for paint in stack.inline_level + stack.non_inline_level:
        if paint.element.name == name:
            return paint
    for attribute in STACK_LISTS:
        for child in getattr(stack, attribute):
            if child.element.element.name == name:
                return child.element
            try:
                return find_paint(child, name)
            except LookupError:
                continue
    raise LookupError(name)


@pytest.fixture
def mixed_tree() -> ElementNode:
    """A tree exercising every kind of placement."""
    return node(
        name="root",
        children=[
            node(name="block", children=[node(name="block-inline", display="inline")]),
            node(name="inline", display="inline"),
            node(name="inline-block", display="inline-block"),
            node(name="float", float_="left", children=[node(name="in-float")]),
            node(
                name="relative",
                position="relative",
                children=[
                    node(name="relative-child"),
                    node(name="relative-abs-z", position="absolute", z_index=5),
                ],
            ),
            node(name="neg", position="absolute", z_index=-1),
            node(
                name="pos",
                position="absolute",
                z_index=2,
                children=[node(name="pos-auto", position="relative")],
            ),
            node(name="faded", opacity=0.5, children=[node(name="faded-child")]),
            node(name="turned", transform=(1, 0, 0, 1, 5, 0)),
        ],
    )


class TestStackingPredicates:
    """Test which elements start stacking contexts."""

    def test_positioned_with_z_index_is_real(self):
        assert creates_real_stacking_context(node(position="relative", z_index=0))

    def test_positioned_auto_is_not_real(self):
        element = node(position="relative")
        assert not creates_real_stacking_context(element)
        assert creates_stacking_context(element)

    def test_opacity_and_transform_are_real(self):
        assert creates_real_stacking_context(node(opacity=0.99))
        assert creates_real_stacking_context(node(transform=(2, 0, 0, 2, 0, 0)))

    def test_identity_transform_is_not_real(self):
        assert not creates_real_stacking_context(node(transform=(1, 0, 0, 1, 0, 0)))

    def test_z_index_without_position_is_ignored(self):
        element = node(z_index=4)
        assert not creates_real_stacking_context(element)
        assert not creates_stacking_context(element)

    def test_float_creates_pseudo_context(self):
        assert creates_stacking_context(node(float_="right"))


class TestPartition:
    """Test that every element lands in exactly one bucket."""

    def test_every_descendant_placed_once(self, mixed_tree):
        stack = build_stacking_context(mixed_tree)
        assert sorted(iter_placed(stack)) == sorted(iter_tree(mixed_tree))

    def test_root_is_not_placed_in_own_lists(self, mixed_tree):
        stack = build_stacking_context(mixed_tree)
        assert "root" not in list(iter_placed(stack))
        assert stack.element.element.name == "root"

    def test_bucket_membership(self, mixed_tree):
        stack = build_stacking_context(mixed_tree)
        assert [p.element.name for p in stack.non_inline_level] == ["block"]
        assert [p.element.name for p in stack.inline_level] == ["block-inline", "inline", "inline-block"]
        assert names(stack.non_positioned_floats) == ["float"]
        assert names(stack.negative_z_index) == ["neg"]
        assert names(stack.positive_z_index) == ["pos", "relative-abs-z"]
        assert names(stack.zero_or_auto_z_index_or_transformed_or_opacity) == [
            "relative",
            "faded",
            "turned",
        ]

    def test_pseudo_contexts_own_their_in_flow_children(self, mixed_tree):
        stack = build_stacking_context(mixed_tree)
        floated = stack.non_positioned_floats[0]
        relative = stack.zero_or_auto_z_index_or_transformed_or_opacity[0]
        assert [p.element.name for p in floated.non_inline_level] == ["in-float"]
        assert [p.element.name for p in relative.non_inline_level] == ["relative-child"]
        assert relative.positive_z_index == []

    def test_real_context_owns_its_positioned_descendants(self, mixed_tree):
        stack = build_stacking_context(mixed_tree)
        pos = stack.positive_z_index[0]
        assert names(pos.zero_or_auto_z_index_or_transformed_or_opacity) == ["pos-auto"]

    def test_opacity_context_owns_in_flow_children(self, mixed_tree):
        stack = build_stacking_context(mixed_tree)
        faded = stack.zero_or_auto_z_index_or_transformed_or_opacity[1]
        assert [p.element.name for p in faded.non_inline_level] == ["faded-child"]


class TestZOrder:
    """Test z-index ordering within a stacking context."""

    def test_positive_z_index_sorted_stably(self):
        root = node(
            name="root",
            children=[
                node(name="a", position="absolute", z_index=2),
                node(name="b", position="absolute", z_index=1),
                node(name="c", position="absolute", z_index=2),
                node(name="d", position="absolute", z_index=1),
            ],
        )
        stack = build_stacking_context(root)
        assert names(stack.positive_z_index) == ["b", "d", "a", "c"]

    def test_negative_z_index_most_negative_first(self):
        root = node(
            name="root",
            children=[
                node(name="e", position="relative", z_index=-1),
                node(name="f", position="relative", z_index=-3),
                node(name="g", position="relative", z_index=-1),
            ],
        )
        stack = build_stacking_context(root)
        assert names(stack.negative_z_index) == ["f", "e", "g"]

    def test_zero_and_auto_keep_tree_order(self):
        root = node(
            name="root",
            children=[
                node(name="z0", position="relative", z_index=0),
                node(name="auto", position="absolute"),
                node(name="op", opacity=0.3),
            ],
        )
        stack = build_stacking_context(root)
        assert names(stack.zero_or_auto_z_index_or_transformed_or_opacity) == ["z0", "auto", "op"]


class TestElementEffects:
    """Test effects collected for an element paint."""

    def test_opacity_effect(self):
        paint = ElementPaint(node(opacity=0.4), None)
        assert paint.effects == [OpacityEffect(0.4)]

    def test_transform_origin_resolved_against_bounds(self):
        paint = ElementPaint(node(10, 20, 100, 50, transform=(1, 0, 0, 1, 5, 0)), None)
        assert paint.effects == [TransformEffect(60, 45, (1, 0, 0, 1, 5, 0))]

    def test_transform_origin_pixels(self):
        element = node(10, 20, 100, 50, transform=(2, 0, 0, 2, 0, 0), transform_origin=(px(0), percent(100)))
        effect = ElementPaint(element, None).effects[0]
        assert (effect.offset_x, effect.offset_y) == (10, 70)

    def test_overflow_clip_without_border_targets_both(self):
        paint = ElementPaint(node(overflow_x="hidden"), None)
        assert len(paint.effects) == 1
        assert paint.effects[0].target == EffectTarget.BACKGROUND_BORDERS | EffectTarget.CONTENT

    def test_overflow_clip_with_border_splits_targets(self):
        element = node(overflow_x="hidden", border_left_width=4)
        paint = ElementPaint(element, None)
        assert [effect.target for effect in paint.effects] == [
            EffectTarget.BACKGROUND_BORDERS,
            EffectTarget.CONTENT,
        ]
        assert len(paint.get_effects(EffectTarget.CONTENT)) == 1

    def test_in_flow_child_inherits_ancestor_clip(self):
        child = node(5, 5, 10, 10, name="child")
        clipper = node(0, 0, 20, 20, name="clipper", overflow_x="hidden", children=[child])
        root = node(name="root", children=[clipper])
        stack = build_stacking_context(root)
        paint = find_paint(stack, "child")
        effects = paint.get_effects(EffectTarget.CONTENT)
        assert len(effects) == 1
        assert isinstance(effects[0], ClipEffect)

    def test_absolute_child_escapes_static_ancestor_clip(self):
        child = node(5, 5, 10, 10, name="child", position="absolute")
        clipper = node(0, 0, 20, 20, name="clipper", overflow_x="hidden", children=[child])
        root = node(name="root", children=[clipper])
        stack = build_stacking_context(root)
        paint = find_paint(stack, "child")
        assert paint.get_effects(EffectTarget.CONTENT) == []

    def test_absolute_child_keeps_positioned_ancestor_clip(self):
        child = node(5, 5, 10, 10, name="child", position="absolute")
        clipper = node(
            0, 0, 20, 20, name="clipper", overflow_x="hidden", position="relative", children=[child]
        )
        root = node(name="root", children=[clipper])
        stack = build_stacking_context(root)
        paint = find_paint(stack, "child")
        assert len(paint.get_effects(EffectTarget.CONTENT)) == 1

    def test_ancestor_opacity_not_repeated_for_descendants(self):
        child = node(name="child")
        root = node(name="root", children=[node(name="faded", opacity=0.5, children=[child])])
        stack = build_stacking_context(root)
        paint = find_paint(stack, "child")
        assert paint.get_effects(EffectTarget.CONTENT) == [OpacityEffect(0.5)]


class TestListNumbering:
    """Test list item marker assignment."""

    @staticmethod
    def list_tree(count: int, **owner: object) -> ElementNode:
        items = [
            node(name=f"li{i}", display="list-item", list_style_type="decimal") for i in range(count)
        ]
        ordered = node(name="ol", children=items)
        ordered = ordered.model_copy(update={"list_owner": True, **owner})
        return node(name="root", children=[ordered])

    def markers(self, root: ElementNode, count: int) -> List[str]:
        stack = build_stacking_context(root)
        return [find_paint(stack, f"li{i}").list_value for i in range(count)]

    def test_sequential_numbering(self):
        assert self.markers(self.list_tree(3), 3) == ["1. ", "2. ", "3. "]

    def test_start_value(self):
        assert self.markers(self.list_tree(2, list_start=4), 2) == ["4. ", "5. "]

    def test_reversed_list(self):
        assert self.markers(self.list_tree(3, list_start=3, list_reversed=True), 3) == [
            "3. ",
            "2. ",
            "1. ",
        ]

    def test_explicit_value_resets_numbering(self):
        root = self.list_tree(3)
        ordered = root.children[0]
        items = list(ordered.children)
        items[1] = items[1].model_copy(update={"list_value": 10})
        root = root.model_copy(update={"children": [ordered.model_copy(update={"children": items})]})
        assert self.markers(root, 3) == ["1. ", "10. ", "11. "]

    def test_nested_list_numbers_independently(self):
        inner_items = [node(name=f"inner{i}", display="list-item", list_style_type="decimal") for i in range(2)]
        inner = node(name="inner", children=inner_items).model_copy(update={"list_owner": True})
        outer_item = node(name="li0", display="list-item", list_style_type="decimal", children=[inner])
        outer = node(
            name="ol", children=[outer_item, node(name="li1", display="list-item", list_style_type="decimal")]
        ).model_copy(update={"list_owner": True})
        stack = build_stacking_context(node(name="root", children=[outer]))
        assert find_paint(stack, "li1").list_value == "2. "
        assert find_paint(stack, "inner1").list_value == "2. "


class TestCounterText:
    """Test marker text for list styles."""

    @pytest.mark.parametrize(
        "value,style,expected",
        [
            (3, ListStyleType.DECIMAL, "3. "),
            (5, ListStyleType.DECIMAL_LEADING_ZERO, "05. "),
            (4, ListStyleType.UPPER_ROMAN, "IV. "),
            (1994, ListStyleType.LOWER_ROMAN, "mcmxciv. "),
            (27, ListStyleType.LOWER_ALPHA, "aa. "),
            (2, ListStyleType.UPPER_LATIN, "B. "),
            (1, ListStyleType.DISC, "• "),
            (1, ListStyleType.CIRCLE, "◦ "),
            (1, ListStyleType.NONE, ""),
        ],
    )
    def test_counter_text(self, value, style, expected):
        assert counter_text(value, style) == expected

    def test_without_suffix(self):
        assert counter_text(7, ListStyleType.DECIMAL, append_suffix=False) == "7"

    def test_roman_out_of_range_falls_back_to_decimal(self):
        assert counter_text(5000, ListStyleType.UPPER_ROMAN) == "5000. "
