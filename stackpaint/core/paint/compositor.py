"""
Compositor
==========

Walks a stacking-context tree in CSS painting order and draws every element
onto a ``Surface``: backgrounds and masks, box shadows, borders, text,
replaced content, form controls and list markers.

Failures to resolve or size a single image layer are logged and that layer
is skipped; surface failures propagate and end the render.
"""

import math
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Union

from PIL import Image

from stackpaint.config.logging import get_logger
from stackpaint.config.settings import Settings, get_settings
from stackpaint.core.errors import LayerGeometryError, ResourceResolutionError
from stackpaint.core.geometry.bound_curves import border_box_path, padding_box_path
from stackpaint.core.geometry.bounds import content_box
from stackpaint.core.geometry.path import Path, rectangle_path, segment_end, segment_start, transform_path
from stackpaint.core.geometry.vector import BezierCurve, Vector
from stackpaint.core.resources import ResourceBridge
from stackpaint.models.schemas import (
    BLACK,
    Bounds,
    BorderStyle,
    BoxShadow,
    CanvasContent,
    Color,
    ComputedStyle,
    ElementNode,
    FormControlContent,
    FormControlType,
    IFrameContent,
    ImageContent,
    ImageValue,
    LinearGradient,
    ListStyleType,
    PaintOrderLayer,
    RadialGradient,
    SvgContent,
    TextAlign,
    TextDecorationLine,
    TextNode,
    UrlImage,
    Viewport,
)

from .border import (
    DOUBLE_BORDER_MIN_WIDTH,
    BorderSide,
    border_path,
    border_sides,
    border_stroke_path,
    dash_pattern,
    double_border_inner_path,
    double_border_outer_path,
    side_length,
)
from .effects import EffectStack, EffectTarget
from .gradient import calculate_radius, linear_gradient_tile, radial_center, radial_gradient_pattern
from .layers import (
    NO_INTRINSIC,
    Intrinsic,
    LayerProperties,
    LayerRendering,
    background_layers,
    curved_painting_area,
    layer_rendering,
    mask_layers,
    value_for_index,
)
from .stacking import ElementPaint, StackingContext, build_stacking_context
from .surface import Surface, image_surface_from_pil, trace_inverted_path, trace_path
from .text import FontMetrics, fill_text, line_height, shadow_text, stroke_text, text_width

logger = get_logger(__name__)

# Shadow casters are drawn this far to the left so only their shadow lands on the surface
MASK_OFFSET = 10000

INPUT_COLOR = Color(r=42, g=42, b=42)

CHECKBOX_TICK = (
    (0.39363, 0.79),
    (0.16, 0.5549),
    (0.27347, 0.44071),
    (0.39694, 0.5649),
    (0.72983, 0.23),
    (0.84, 0.34085),
    (0.39363, 0.79),
)

DASHED_STROKE_EXTRA = 1.1
LIST_IMAGE_GAP = 10

TEXT_INPUT_CONTROLS = frozenset(
    {FormControlType.TEXT, FormControlType.PASSWORD, FormControlType.TEXTAREA, FormControlType.SELECT}
)


class Compositor:
    """Paints one element tree onto one surface."""

    def __init__(
        self,
        surface: Surface,
        bridge: ResourceBridge,
        viewport: Viewport,
        depth: int = 0,
        settings: Optional[Settings] = None,
        font_metrics: Optional[FontMetrics] = None,
    ):
        self.surface = surface
        self.bridge = bridge
        self.viewport = viewport
        self.depth = depth
        self.settings = settings or get_settings()
        self.font_metrics = font_metrics or FontMetrics()
        self.effects = EffectStack(surface)
        self.logger: Any = logger.bind(component="compositor", depth=depth)

        self._replaced_painters: Dict[str, Callable[[ElementPaint, Any], Awaitable[None]]] = {
            "image": self._paint_image_content,
            "canvas": self._paint_image_content,
            "svg": self._paint_svg_content,
            "iframe": self._paint_iframe_content,
            "form-control": self._paint_form_control,
        }

    @classmethod
    def for_viewport(
        cls,
        viewport: Viewport,
        bridge: ResourceBridge,
        background_color: Optional[Color] = None,
        depth: int = 0,
        settings: Optional[Settings] = None,
        font_metrics: Optional[FontMetrics] = None,
    ) -> "Compositor":
        """Create a compositor over a fresh surface mapped to ``viewport``.

        Raises:
            SurfaceError: If the surface cannot be allocated
        """
        settings = settings or get_settings()
        width = int(math.floor(viewport.width * viewport.scale))
        height = int(math.floor(viewport.height * viewport.scale))
        surface = Surface.create(width, height, scale=viewport.scale, smoothing=settings.image_smoothing)
        if background_color is not None and not background_color.is_transparent:
            surface.clear(background_color)
        surface.scale_by(viewport.scale, viewport.scale)
        surface.translate(-viewport.x, -viewport.y)
        return cls(surface, bridge, viewport, depth=depth, settings=settings, font_metrics=font_metrics)

    async def render(self, root: ElementNode) -> Surface:
        """Paint ``root`` and everything below it, then return the surface."""
        stack = build_stacking_context(root)
        self.logger.debug(
            "Rendering element tree",
            root=root.name,
            width=self.surface.width,
            height=self.surface.height,
        )
        await self.render_stack(stack)
        return self.surface

    # Traversal
    async def render_stack(self, stack: StackingContext) -> None:
        if stack.element.element.styles.is_visible():
            await self.render_stack_content(stack)

    async def render_node(self, paint: ElementPaint) -> None:
        if paint.element.styles.is_visible():
            await self.render_node_background_and_borders(paint)
            await self.render_node_content(paint)

    async def render_stack_content(self, stack: StackingContext) -> None:
        # 1. background and borders of the element forming the context
        await self.render_node_background_and_borders(stack.element)
        # 2. negative z-index contexts, most negative first
        for child in stack.negative_z_index:
            await self.render_stack(child)
        # 3. own content, then in-flow block-level descendants
        await self.render_node_content(stack.element)
        for paint in stack.non_inline_level:
            await self.render_node(paint)
        # 4. non-positioned floats
        for child in stack.non_positioned_floats:
            await self.render_stack(child)
        # 5. inline-level contexts, then inline-level leaves
        for child in stack.non_positioned_inline_level:
            await self.render_stack(child)
        for paint in stack.inline_level:
            await self.render_node(paint)
        # 6. z-index auto/0, opacity and transformed contexts
        for child in stack.zero_or_auto_z_index_or_transformed_or_opacity:
            await self.render_stack(child)
        # 7. positive z-index contexts
        for child in stack.positive_z_index:
            await self.render_stack(child)

    # Backgrounds, shadows and borders
    async def render_node_background_and_borders(self, paint: ElementPaint) -> None:
        styles = paint.element.styles
        with self.effects.scoped(paint.get_effects(EffectTarget.BACKGROUND_BORDERS)):
            has_background = not styles.background_color.is_transparent or bool(styles.background_image)

            if has_background:
                painting_path = curved_painting_area(
                    value_for_index(styles.background_clip, 0), paint.curves
                )
                self.surface.save()
                try:
                    self.surface.clip_path(painting_path)
                    await self._paint_background(paint.element)
                finally:
                    self.surface.restore()

            for shadow in reversed(styles.box_shadow):
                self._paint_box_shadow(paint, shadow)

            for side, border in enumerate(border_sides(styles)):
                if border.is_painted():
                    self._paint_border(paint, side, border)

    async def _paint_background(self, element: ElementNode) -> None:
        """Paint colour, image layers and mask into an offscreen layer, then blit it at the border box."""
        bounds = element.bounds
        styles = element.styles
        if bounds.width <= 0 or bounds.height <= 0:
            return

        layer = self._create_layer(bounds)
        if not styles.background_color.is_transparent:
            layer.fill_rect(0, 0, bounds.width, bounds.height, styles.background_color)
        await self._paint_layers(
            layer, element, styles.background_image, background_layers(styles), "background-image"
        )

        if styles.mask_image:
            mask = self._create_layer(bounds)
            await self._paint_layers(mask, element, styles.mask_image, mask_layers(styles), "mask-image")
            layer.apply_mask(mask)

        self.surface.draw_surface(layer, bounds.left, bounds.top, bounds.width, bounds.height)

    def _create_layer(self, bounds: Bounds) -> Surface:
        device_scale = self.surface.device_scale() or 1.0
        layer = Surface.create(
            max(1, int(math.ceil(bounds.width * device_scale))),
            max(1, int(math.ceil(bounds.height * device_scale))),
            scale=device_scale,
            smoothing=self.settings.image_smoothing,
        )
        layer.scale_by(layer.width / bounds.width, layer.height / bounds.height)
        return layer

    async def _paint_layers(
        self,
        target: Surface,
        element: ElementNode,
        images: List[ImageValue],
        layers: LayerProperties,
        kind: str,
    ) -> None:
        # Back to front: index 0 ends up on top
        for index in range(len(images) - 1, -1, -1):
            try:
                await self._paint_layer(target, element, images[index], layers, index)
            except (ResourceResolutionError, LayerGeometryError) as e:
                self.logger.error(f"Error loading {kind}", index=index, element=element.name, error=str(e))

    async def _paint_layer(
        self,
        target: Surface,
        element: ElementNode,
        image: ImageValue,
        layers: LayerProperties,
        index: int,
    ) -> None:
        if isinstance(image, UrlImage):
            bitmap = await self.bridge.resolve(image.url)
            rendering = layer_rendering(
                element, layers, index, Intrinsic.of_size(bitmap.width, bitmap.height)
            )
            if rendering.width <= 0 or rendering.height <= 0 or bitmap.width == 0 or bitmap.height == 0:
                return
            tile = image_surface_from_pil(bitmap)
            with self._layer_origin(target, element, rendering):
                target.fill_repeat(
                    rendering.path,
                    tile,
                    rendering.offset_x,
                    rendering.offset_y,
                    rendering.width,
                    rendering.height,
                )

        elif isinstance(image, LinearGradient):
            rendering = layer_rendering(element, layers, index, NO_INTRINSIC)
            if rendering.width <= 0 or rendering.height <= 0:
                return
            tile = linear_gradient_tile(image, rendering.width, rendering.height, target.scale)
            with self._layer_origin(target, element, rendering):
                target.fill_repeat(
                    rendering.path,
                    tile,
                    rendering.offset_x,
                    rendering.offset_y,
                    rendering.width,
                    rendering.height,
                )

        elif isinstance(image, RadialGradient):
            rendering = layer_rendering(element, layers, index, NO_INTRINSIC)
            x, y = radial_center(image, rendering.width, rendering.height)
            rx, ry = calculate_radius(image, x, y, rendering.width, rendering.height)
            if rx <= 0 or ry <= 0:
                return
            pattern = radial_gradient_pattern(
                image, rendering.offset_x + x, rendering.offset_y + y, rx, ry
            )
            with self._layer_origin(target, element, rendering):
                target.fill_with_pattern(rendering.path, pattern)

    @contextmanager
    def _layer_origin(
        self, target: Surface, element: ElementNode, rendering: LayerRendering
    ) -> Iterator[None]:
        """Move the layer's origin to the positioning area's top-left corner."""
        target.save()
        try:
            target.translate(
                rendering.positioning.left - element.bounds.left,
                rendering.positioning.top - element.bounds.top,
            )
            yield
        finally:
            target.restore()

    def _paint_box_shadow(self, paint: ElementPaint, shadow: BoxShadow) -> None:
        border_box = border_box_path(paint.curves)
        mask_offset = 0 if shadow.inset else MASK_OFFSET
        sign = 1 if shadow.inset else -1
        spread = shadow.spread
        shadow_area = transform_path(
            border_box,
            -mask_offset + sign * spread,
            sign * spread,
            spread * (-2 if shadow.inset else 2),
            spread * (-2 if shadow.inset else 2),
        )

        surface = self.surface
        surface.save()
        try:
            if shadow.inset:
                surface.clip_path(border_box)
            else:
                surface.clip_path(border_box, inverted=True)

            def trace(ctx: Any) -> None:
                if shadow.inset:
                    trace_inverted_path(ctx, shadow_area)
                else:
                    trace_path(ctx, shadow_area)

            surface.draw_shadow(
                trace, shadow.color, shadow.offset_x + mask_offset, shadow.offset_y, shadow.blur
            )
            surface.fill_path(shadow_area, shadow.color if shadow.inset else BLACK, inverted=shadow.inset)
        finally:
            surface.restore()

    def _paint_border(self, paint: ElementPaint, side: int, border: BorderSide) -> None:
        curves = paint.curves
        if border.style in (BorderStyle.DASHED, BorderStyle.DOTTED):
            self._paint_dashed_dotted_border(paint, side, border)
        elif border.style == BorderStyle.DOUBLE and border.width >= DOUBLE_BORDER_MIN_WIDTH:
            self.surface.fill_path(double_border_outer_path(curves, side), border.color)
            self.surface.fill_path(double_border_inner_path(curves, side), border.color)
        else:
            self.surface.fill_path(border_path(curves, side), border.color)

    def _paint_dashed_dotted_border(self, paint: ElementPaint, side: int, border: BorderSide) -> None:
        surface = self.surface
        box_paths = border_path(paint.curves, side)
        dotted = border.style == BorderStyle.DOTTED
        pattern = dash_pattern(side_length(box_paths, side), border.width, border.style)

        surface.save()
        try:
            if dotted:
                dash = [0, pattern.dash + pattern.gap] if pattern.enabled else None
                surface.stroke_path(
                    border_stroke_path(paint.curves, side),
                    border.color,
                    border.width,
                    dash=dash,
                    round_cap=True,
                    close=False,
                )
                return

            surface.clip_path(box_paths)
            stroke_width = border.width * 2 + DASHED_STROKE_EXTRA
            dash = [pattern.dash, pattern.gap] if pattern.enabled else None
            surface.stroke_path(box_paths[:2], border.color, stroke_width, dash=dash, close=False)

            # Close the gaps the dash pattern leaves across rounded corners
            connectors = []
            if isinstance(box_paths[0], BezierCurve):
                connectors.append((segment_end(box_paths[3]), segment_start(box_paths[0])))
            if isinstance(box_paths[1], BezierCurve):
                connectors.append((segment_end(box_paths[1]), segment_start(box_paths[2])))
            for start, end in connectors:
                surface.stroke_path(
                    [Vector(start.x, start.y), Vector(end.x, end.y)],
                    border.color,
                    stroke_width,
                    close=False,
                )
        finally:
            surface.restore()

    # Content
    async def render_node_content(self, paint: ElementPaint) -> None:
        element = paint.element
        styles = element.styles
        with self.effects.scoped(paint.get_effects(EffectTarget.CONTENT)):
            for text_node in element.text_nodes:
                self._paint_text_node(text_node, styles)

            if element.replaced is not None:
                painter = self._replaced_painters[element.replaced.kind]
                await painter(paint, element.replaced)

            if styles.is_list_item():
                await self._paint_list_marker(paint)

    def _paint_text_node(self, text_node: TextNode, styles: ComputedStyle) -> None:
        surface = self.surface
        metrics = self.font_metrics.get_metrics(styles)

        for run in text_node.runs:
            bounds = run.bounds
            baseline = bounds.top + metrics.baseline
            has_glyphs = bool(run.text.strip())

            for layer in styles.paint_order:
                if layer == PaintOrderLayer.FILL:
                    if has_glyphs:
                        for shadow in reversed(styles.text_shadow):
                            shadow_text(surface, run.text, bounds.left, baseline, styles, shadow)
                    fill_text(surface, run.text, bounds.left, baseline, styles, styles.color)
                    self._paint_text_decorations(bounds, styles, metrics.baseline, metrics.middle)

                elif layer == PaintOrderLayer.STROKE:
                    if styles.webkit_text_stroke_width and has_glyphs:
                        stroke_text(
                            surface,
                            run.text,
                            bounds.left,
                            baseline,
                            styles,
                            styles.webkit_text_stroke_color,
                            styles.webkit_text_stroke_width,
                        )

    def _paint_text_decorations(
        self, bounds: Bounds, styles: ComputedStyle, baseline: float, middle: float
    ) -> None:
        color = styles.text_decoration_color or styles.color
        for line in styles.text_decoration_line:
            if line == TextDecorationLine.UNDERLINE:
                top = round(bounds.top + baseline)
            elif line == TextDecorationLine.OVERLINE:
                top = round(bounds.top)
            else:
                top = math.ceil(bounds.top + middle)
            self.surface.fill_rect(bounds.left, top, bounds.width, 1, color)

    def _draw_replaced(self, paint: ElementPaint, image: Image.Image) -> None:
        """Stretch a bitmap into the content box, clipped to the padding box."""
        if image.width <= 0 or image.height <= 0:
            return
        box = content_box(paint.element)
        surface = self.surface
        surface.save()
        try:
            surface.clip_path(padding_box_path(paint.curves))
            surface.draw_image(image_surface_from_pil(image), box.left, box.top, box.width, box.height)
        finally:
            surface.restore()

    async def _resolve_or_log(self, reference: str, kind: str) -> Optional[Image.Image]:
        try:
            return await self.bridge.resolve(reference)
        except ResourceResolutionError as e:
            self.logger.error(f"Error loading {kind}", reference=reference[:255], error=str(e))
            return None

    async def _paint_image_content(
        self, paint: ElementPaint, content: Union[ImageContent, CanvasContent]
    ) -> None:
        image = await self._resolve_or_log(content.src, content.kind)
        if image is not None:
            self._draw_replaced(paint, image)

    async def _paint_svg_content(self, paint: ElementPaint, content: SvgContent) -> None:
        image = await self._resolve_or_log(content.svg, "svg")
        if image is not None:
            self._draw_replaced(paint, image)

    async def _paint_iframe_content(self, paint: ElementPaint, content: IFrameContent) -> None:
        if content.tree is None or not content.width or not content.height:
            return
        if self.depth + 1 > self.settings.max_iframe_depth:
            self.logger.warning(
                "Iframe nesting limit reached, skipping", max_depth=self.settings.max_iframe_depth
            )
            return

        viewport = Viewport(x=0, y=0, width=content.width, height=content.height, scale=self.viewport.scale)
        nested = Compositor.for_viewport(
            viewport,
            self.bridge,
            background_color=content.background_color,
            depth=self.depth + 1,
            settings=self.settings,
            font_metrics=self.font_metrics,
        )
        sub_surface = await nested.render(content.tree)
        bounds = paint.element.bounds
        self.surface.draw_surface(sub_surface, bounds.left, bounds.top, bounds.width, bounds.height)

    async def _paint_form_control(self, paint: ElementPaint, content: FormControlContent) -> None:
        bounds = paint.element.bounds
        size = min(bounds.width, bounds.height)

        if content.control == FormControlType.CHECKBOX:
            if content.checked:
                tick: Path = [
                    Vector(bounds.left + size * x, bounds.top + size * y) for x, y in CHECKBOX_TICK
                ]
                self.surface.fill_path(tick, INPUT_COLOR)
        elif content.control == FormControlType.RADIO:
            if content.checked:
                self.surface.fill_circle(
                    bounds.left + size / 2, bounds.top + size / 2, size / 4, INPUT_COLOR
                )
        elif content.control in TEXT_INPUT_CONTROLS and content.value:
            value = content.value
            if content.control == FormControlType.PASSWORD:
                value = "•" * len(value)
            self._paint_text_input(paint.element, value)

    def _paint_text_input(self, element: ElementNode, value: str) -> None:
        styles = element.styles
        metrics = self.font_metrics.get_metrics(styles)
        box = content_box(element)
        surface = self.surface

        width = text_width(surface, value, styles)
        if styles.text_align == TextAlign.CENTER:
            left = box.left + box.width / 2 - width / 2
        elif styles.text_align == TextAlign.RIGHT:
            left = box.left + box.width - width
        else:
            left = box.left

        surface.save()
        try:
            surface.clip_path(rectangle_path(box.left, box.top, box.width, box.height))
            fill_text(surface, value, left, box.top + metrics.baseline, styles, styles.color)
        finally:
            surface.restore()

    async def _paint_list_marker(self, paint: ElementPaint) -> None:
        element = paint.element
        styles = element.styles
        bounds = element.bounds

        if styles.list_style_image is not None:
            image = await self._resolve_or_log(styles.list_style_image, "list-style-image")
            if image is not None and image.width > 0 and image.height > 0:
                self.surface.draw_image(
                    image_surface_from_pil(image),
                    bounds.left - (image.width + LIST_IMAGE_GAP),
                    bounds.top,
                    image.width,
                    image.height,
                )
        elif paint.list_value and styles.list_style_type != ListStyleType.NONE:
            metrics = self.font_metrics.get_metrics(styles)
            middle = bounds.top + styles.padding_top.resolve(bounds.width) + line_height(styles) / 2 + 2
            width = text_width(self.surface, paint.list_value, styles)
            fill_text(
                self.surface,
                paint.list_value,
                bounds.left - width,
                middle + metrics.em_middle,
                styles,
                styles.color,
            )


async def render(
    root: ElementNode,
    viewport: Viewport,
    bridge: ResourceBridge,
    background_color: Optional[Color] = None,
    settings: Optional[Settings] = None,
) -> Surface:
    """Render ``root`` onto a new surface of floor(width*scale) x floor(height*scale) pixels.

    Raises:
        SurfaceError: If the surface cannot be created
    """
    compositor = Compositor.for_viewport(
        viewport, bridge, background_color=background_color, settings=settings
    )
    return await compositor.render(root)
