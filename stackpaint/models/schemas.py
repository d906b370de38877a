"""
Pydantic Models and Schemas
===========================

Core data models for the element tree, its resolved style values and the
render request/response types. The tree arrives fully resolved: every value
is a number, a colour, an enum member or a list of those. Nothing here parses
CSS text.
"""

from typing import Annotated, Optional, List, Dict, Any, Union, Literal, Tuple
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# Enums
class BoxArea(str, Enum):
    """Reference box for background/mask origin and clip."""
    BORDER_BOX = "border-box"
    PADDING_BOX = "padding-box"
    CONTENT_BOX = "content-box"


class RepeatMode(str, Enum):
    """Background/mask repeat modes."""
    REPEAT = "repeat"
    NO_REPEAT = "no-repeat"
    REPEAT_X = "repeat-x"
    REPEAT_Y = "repeat-y"
    ROUND = "round"
    SPACE = "space"


class SizeKeyword(str, Enum):
    """Keywords accepted by background-size and mask-size."""
    AUTO = "auto"
    CONTAIN = "contain"
    COVER = "cover"


class BorderStyle(str, Enum):
    """Border line styles."""
    NONE = "none"
    HIDDEN = "hidden"
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"
    DOUBLE = "double"
    GROOVE = "groove"
    RIDGE = "ridge"
    INSET = "inset"
    OUTSET = "outset"


class Display(str, Enum):
    """Outer/inner display types that matter for painting."""
    NONE = "none"
    BLOCK = "block"
    INLINE = "inline"
    INLINE_BLOCK = "inline-block"
    LIST_ITEM = "list-item"
    INLINE_LIST_ITEM = "inline-list-item"
    FLEX = "flex"
    INLINE_FLEX = "inline-flex"
    GRID = "grid"
    INLINE_GRID = "inline-grid"
    TABLE = "table"
    INLINE_TABLE = "inline-table"
    TABLE_CELL = "table-cell"
    TABLE_ROW = "table-row"
    CONTENTS = "contents"


INLINE_LEVEL_DISPLAYS = frozenset(
    {
        Display.INLINE,
        Display.INLINE_BLOCK,
        Display.INLINE_LIST_ITEM,
        Display.INLINE_FLEX,
        Display.INLINE_GRID,
        Display.INLINE_TABLE,
    }
)


class Position(str, Enum):
    """Positioning schemes."""
    STATIC = "static"
    RELATIVE = "relative"
    ABSOLUTE = "absolute"
    FIXED = "fixed"
    STICKY = "sticky"


class Float(str, Enum):
    """Float values."""
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"
    INLINE_START = "inline-start"
    INLINE_END = "inline-end"


class Overflow(str, Enum):
    """Overflow values."""
    VISIBLE = "visible"
    HIDDEN = "hidden"
    SCROLL = "scroll"
    AUTO = "auto"
    CLIP = "clip"


class Visibility(str, Enum):
    """Visibility values."""
    VISIBLE = "visible"
    HIDDEN = "hidden"
    COLLAPSE = "collapse"


class TextDecorationLine(str, Enum):
    """Text decoration lines."""
    UNDERLINE = "underline"
    OVERLINE = "overline"
    LINE_THROUGH = "line-through"


class TextAlign(str, Enum):
    """Horizontal text alignment."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "justify"


class Direction(str, Enum):
    """Inline base direction."""
    LTR = "ltr"
    RTL = "rtl"


class PaintOrderLayer(str, Enum):
    """Text paint-order layers."""
    FILL = "fill"
    STROKE = "stroke"
    MARKERS = "markers"


class ListStyleType(str, Enum):
    """Supported list marker styles."""
    NONE = "none"
    DISC = "disc"
    CIRCLE = "circle"
    SQUARE = "square"
    DECIMAL = "decimal"
    DECIMAL_LEADING_ZERO = "decimal-leading-zero"
    LOWER_ALPHA = "lower-alpha"
    UPPER_ALPHA = "upper-alpha"
    LOWER_LATIN = "lower-latin"
    UPPER_LATIN = "upper-latin"
    LOWER_ROMAN = "lower-roman"
    UPPER_ROMAN = "upper-roman"


class GradientShape(str, Enum):
    """Radial gradient ending shape."""
    CIRCLE = "circle"
    ELLIPSE = "ellipse"


class GradientExtent(str, Enum):
    """Radial gradient size keywords."""
    CLOSEST_SIDE = "closest-side"
    CLOSEST_CORNER = "closest-corner"
    FARTHEST_SIDE = "farthest-side"
    FARTHEST_CORNER = "farthest-corner"


class FormControlType(str, Enum):
    """Form controls the compositor knows how to paint."""
    CHECKBOX = "checkbox"
    RADIO = "radio"
    TEXT = "text"
    PASSWORD = "password"
    TEXTAREA = "textarea"
    SELECT = "select"


# Scalar value models
class Color(BaseModel):
    """An sRGB colour with straight (non-premultiplied) alpha."""
    model_config = ConfigDict(frozen=True)

    r: int = Field(0, ge=0, le=255)
    g: int = Field(0, ge=0, le=255)
    b: int = Field(0, ge=0, le=255)
    a: float = Field(1.0, ge=0.0, le=1.0)

    @model_validator(mode="before")
    @classmethod
    def coerce_sequence(cls, data: Any) -> Any:
        """Accept ``(r, g, b)`` / ``(r, g, b, a)`` sequences and ``#rrggbb[aa]`` strings."""
        if isinstance(data, (list, tuple)):
            if len(data) not in (3, 4):
                raise ValueError("Color sequences need 3 or 4 components")
            keys = ("r", "g", "b", "a")
            return dict(zip(keys, data))
        if isinstance(data, str):
            return cls._hex_components(data)
        return data

    @staticmethod
    def _hex_components(value: str) -> Dict[str, Any]:
        text = value.strip().lstrip("#")
        if len(text) in (3, 4):
            text = "".join(ch * 2 for ch in text)
        if len(text) not in (6, 8):
            raise ValueError(f"Invalid hex colour: {value!r}")
        components: Dict[str, Any] = {
            "r": int(text[0:2], 16),
            "g": int(text[2:4], 16),
            "b": int(text[4:6], 16),
        }
        if len(text) == 8:
            components["a"] = int(text[6:8], 16) / 255
        return components

    @property
    def is_transparent(self) -> bool:
        return self.a == 0

    def as_rgba(self) -> Tuple[float, float, float, float]:
        """Channels scaled to 0..1 for cairo."""
        return (self.r / 255, self.g / 255, self.b / 255, self.a)


TRANSPARENT = Color(r=0, g=0, b=0, a=0)
BLACK = Color(r=0, g=0, b=0, a=1)


class Length(BaseModel):
    """A resolved length or a percentage of some reference size."""
    model_config = ConfigDict(frozen=True)

    value: float = 0.0
    unit: Literal["px", "%"] = "px"

    @model_validator(mode="before")
    @classmethod
    def coerce_number(cls, data: Any) -> Any:
        """Plain numbers are pixel lengths."""
        if isinstance(data, (int, float)) and not isinstance(data, bool):
            return {"value": data, "unit": "px"}
        return data

    @property
    def is_percentage(self) -> bool:
        return self.unit == "%"

    def resolve(self, reference: float) -> float:
        """Absolute value against ``reference`` (used only for percentages)."""
        if self.unit == "%":
            return reference * self.value / 100
        return self.value


def px(value: float) -> Length:
    """Shorthand for a pixel length."""
    return Length(value=value, unit="px")


def percent(value: float) -> Length:
    """Shorthand for a percentage."""
    return Length(value=value, unit="%")


ZERO = px(0)
FIFTY_PERCENT = percent(50)


class Bounds(BaseModel):
    """An axis-aligned rectangle in CSS pixels."""
    model_config = ConfigDict(frozen=True)

    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def add(self, x: float, y: float, w: float, h: float) -> "Bounds":
        return Bounds(left=self.left + x, top=self.top + y, width=self.width + w, height=self.height + h)


# Image values
class ColorStop(BaseModel):
    """Gradient colour stop; ``stop=None`` means auto-distributed."""
    color: Color
    stop: Optional[Length] = None


class UrlImage(BaseModel):
    """An image referenced by URL (or data URI, or path)."""
    kind: Literal["url"] = "url"
    url: str = Field(..., min_length=1)


class LinearGradient(BaseModel):
    """linear-gradient(); ``angle`` in degrees, 180 is top to bottom."""
    kind: Literal["linear-gradient"] = "linear-gradient"
    angle: float = 180.0
    stops: List[ColorStop] = Field(..., min_length=1)


class RadialGradient(BaseModel):
    """radial-gradient() with a keyword extent or explicit radii."""
    kind: Literal["radial-gradient"] = "radial-gradient"
    shape: GradientShape = GradientShape.ELLIPSE
    size: Union[GradientExtent, List[Length]] = GradientExtent.FARTHEST_CORNER
    position: List[Length] = Field(default_factory=list)
    stops: List[ColorStop] = Field(..., min_length=1)


ImageValue = Annotated[Union[UrlImage, LinearGradient, RadialGradient], Field(discriminator="kind")]

SizeComponent = Union[SizeKeyword, Length]


class BoxShadow(BaseModel):
    """One box-shadow entry."""
    inset: bool = False
    offset_x: float = 0.0
    offset_y: float = 0.0
    blur: float = Field(0.0, ge=0)
    spread: float = 0.0
    color: Color = BLACK


class TextShadow(BaseModel):
    """One text-shadow entry."""
    offset_x: float = 0.0
    offset_y: float = 0.0
    blur: float = Field(0.0, ge=0)
    color: Color = BLACK


def _default_radius() -> Tuple[Length, Length]:
    return (ZERO, ZERO)


class ComputedStyle(BaseModel):
    """Resolved style values for one element. Defaults are the CSS initial values."""
    model_config = ConfigDict(populate_by_name=True)

    # Box
    display: Display = Display.INLINE
    position: Position = Position.STATIC
    z_index: Optional[int] = Field(None, description="None means auto")
    float_: Float = Field(Float.NONE, alias="float")
    opacity: float = Field(1.0, ge=0.0, le=1.0)
    transform: Optional[Tuple[float, float, float, float, float, float]] = Field(
        None, description="2D affine matrix (a, b, c, d, e, f)"
    )
    transform_origin: Tuple[Length, Length] = (FIFTY_PERCENT, FIFTY_PERCENT)
    overflow_x: Overflow = Overflow.VISIBLE
    overflow_y: Overflow = Overflow.VISIBLE
    visibility: Visibility = Visibility.VISIBLE

    padding_top: Length = ZERO
    padding_right: Length = ZERO
    padding_bottom: Length = ZERO
    padding_left: Length = ZERO

    # Borders
    border_top_width: float = Field(0.0, ge=0)
    border_right_width: float = Field(0.0, ge=0)
    border_bottom_width: float = Field(0.0, ge=0)
    border_left_width: float = Field(0.0, ge=0)
    border_top_style: BorderStyle = BorderStyle.NONE
    border_right_style: BorderStyle = BorderStyle.NONE
    border_bottom_style: BorderStyle = BorderStyle.NONE
    border_left_style: BorderStyle = BorderStyle.NONE
    border_top_color: Color = BLACK
    border_right_color: Color = BLACK
    border_bottom_color: Color = BLACK
    border_left_color: Color = BLACK
    border_top_left_radius: Tuple[Length, Length] = Field(default_factory=_default_radius)
    border_top_right_radius: Tuple[Length, Length] = Field(default_factory=_default_radius)
    border_bottom_right_radius: Tuple[Length, Length] = Field(default_factory=_default_radius)
    border_bottom_left_radius: Tuple[Length, Length] = Field(default_factory=_default_radius)

    box_shadow: List[BoxShadow] = Field(default_factory=list)

    # Background layers
    background_color: Color = TRANSPARENT
    background_image: List[ImageValue] = Field(default_factory=list)
    background_origin: List[BoxArea] = Field(
        default_factory=lambda: [BoxArea.PADDING_BOX], min_length=1
    )
    background_clip: List[BoxArea] = Field(
        default_factory=lambda: [BoxArea.BORDER_BOX], min_length=1
    )
    background_size: List[List[SizeComponent]] = Field(
        default_factory=lambda: [[SizeKeyword.AUTO, SizeKeyword.AUTO]], min_length=1
    )
    background_position: List[List[Length]] = Field(
        default_factory=lambda: [[percent(0), percent(0)]], min_length=1
    )
    background_repeat: List[RepeatMode] = Field(
        default_factory=lambda: [RepeatMode.REPEAT], min_length=1
    )

    # Mask layers
    mask_image: List[ImageValue] = Field(default_factory=list)
    mask_origin: List[BoxArea] = Field(
        default_factory=lambda: [BoxArea.BORDER_BOX], min_length=1
    )
    mask_clip: List[BoxArea] = Field(
        default_factory=lambda: [BoxArea.BORDER_BOX], min_length=1
    )
    mask_size: List[List[SizeComponent]] = Field(
        default_factory=lambda: [[SizeKeyword.AUTO, SizeKeyword.AUTO]], min_length=1
    )
    mask_position: List[List[Length]] = Field(
        default_factory=lambda: [[percent(0), percent(0)]], min_length=1
    )
    mask_repeat: List[RepeatMode] = Field(
        default_factory=lambda: [RepeatMode.REPEAT], min_length=1
    )

    # Text
    color: Color = BLACK
    font_family: List[str] = Field(default_factory=lambda: ["sans-serif"])
    font_size: float = Field(16.0, gt=0)
    font_weight: int = Field(400, ge=1, le=1000)
    font_style: Literal["normal", "italic", "oblique"] = "normal"
    letter_spacing: float = 0.0
    line_height: Optional[float] = Field(None, description="None means normal")
    text_align: TextAlign = TextAlign.LEFT
    direction: Direction = Direction.LTR
    text_decoration_line: List[TextDecorationLine] = Field(default_factory=list)
    text_decoration_color: Optional[Color] = None
    text_shadow: List[TextShadow] = Field(default_factory=list)
    paint_order: List[PaintOrderLayer] = Field(
        default_factory=lambda: [PaintOrderLayer.FILL, PaintOrderLayer.STROKE, PaintOrderLayer.MARKERS]
    )
    webkit_text_stroke_width: float = Field(0.0, ge=0)
    webkit_text_stroke_color: Color = BLACK

    # Lists
    list_style_type: ListStyleType = ListStyleType.DISC
    list_style_image: Optional[str] = None

    @field_validator("background_size", "mask_size")
    @classmethod
    def validate_size_lists(cls, v: List[List[SizeComponent]]) -> List[List[SizeComponent]]:
        """Each size entry holds one or two components."""
        for entry in v:
            if not 1 <= len(entry) <= 2:
                raise ValueError("A size entry holds one or two components")
        return v

    @field_validator("background_position", "mask_position")
    @classmethod
    def validate_position_lists(cls, v: List[List[Length]]) -> List[List[Length]]:
        """Each position entry holds one or two lengths."""
        for entry in v:
            if not 1 <= len(entry) <= 2:
                raise ValueError("A position entry holds one or two lengths")
        return v

    def is_visible(self) -> bool:
        return (
            self.display != Display.NONE
            and self.opacity > 0
            and self.visibility == Visibility.VISIBLE
        )

    def is_positioned(self) -> bool:
        return self.position != Position.STATIC

    def is_positioned_with_z_index(self) -> bool:
        return self.is_positioned() and self.z_index is not None

    def is_floating(self) -> bool:
        return self.float_ != Float.NONE

    def is_inline_level(self) -> bool:
        return self.display in INLINE_LEVEL_DISPLAYS

    def is_transformed(self) -> bool:
        return self.transform is not None and self.transform != (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

    def is_list_item(self) -> bool:
        return self.display in (Display.LIST_ITEM, Display.INLINE_LIST_ITEM)

    def clips_overflow(self) -> bool:
        return self.overflow_x != Overflow.VISIBLE

    @property
    def z_order(self) -> int:
        """Stack level; auto paints at level 0."""
        return self.z_index if self.z_index is not None else 0


# Text
class TextRun(BaseModel):
    """One pre-laid-out line fragment of text."""
    text: str
    bounds: Bounds


class TextNode(BaseModel):
    """A text node split into its line runs."""
    runs: List[TextRun] = Field(default_factory=list)


# Replaced content
class ImageContent(BaseModel):
    """<img>: drawn from a resolved bitmap."""
    kind: Literal["image"] = "image"
    src: str = Field(..., min_length=1)
    intrinsic_width: float = Field(0.0, ge=0)
    intrinsic_height: float = Field(0.0, ge=0)


class CanvasContent(BaseModel):
    """<canvas>: a snapshot of the canvas pixels, resolved like an image."""
    kind: Literal["canvas"] = "canvas"
    src: str = Field(..., min_length=1)
    intrinsic_width: float = Field(0.0, ge=0)
    intrinsic_height: float = Field(0.0, ge=0)


class SvgContent(BaseModel):
    """<svg>: serialized markup (or a reference to it)."""
    kind: Literal["svg"] = "svg"
    svg: str = Field(..., min_length=1)
    intrinsic_width: float = Field(0.0, ge=0)
    intrinsic_height: float = Field(0.0, ge=0)


class IFrameContent(BaseModel):
    """<iframe>: a nested document rendered at its own size."""
    kind: Literal["iframe"] = "iframe"
    tree: Optional["ElementNode"] = None
    width: float = Field(0.0, ge=0)
    height: float = Field(0.0, ge=0)
    background_color: Optional[Color] = None


class FormControlContent(BaseModel):
    """<input>, <textarea> and <select>."""
    kind: Literal["form-control"] = "form-control"
    control: FormControlType = FormControlType.TEXT
    checked: bool = False
    value: str = ""


ReplacedContent = Annotated[
    Union[ImageContent, CanvasContent, SvgContent, IFrameContent, FormControlContent],
    Field(discriminator="kind"),
]


class ElementNode(BaseModel):
    """One visual box of the element tree."""
    styles: ComputedStyle = Field(default_factory=ComputedStyle)
    bounds: Bounds = Field(default_factory=Bounds)
    text_nodes: List[TextNode] = Field(default_factory=list)
    children: List["ElementNode"] = Field(default_factory=list)
    replaced: Optional[ReplacedContent] = None

    # List ownership (<ol>/<ul>) and explicit <li value>
    list_owner: bool = False
    list_start: int = 1
    list_reversed: bool = False
    list_value: Optional[int] = None

    name: Optional[str] = Field(None, description="Debug label, e.g. the tag name")


IFrameContent.model_rebuild()
ElementNode.model_rebuild()


# Render I/O
class Viewport(BaseModel):
    """Region of the document mapped onto the output surface."""
    x: float = 0.0
    y: float = 0.0
    width: float = Field(800, gt=0)
    height: float = Field(600, gt=0)
    scale: float = Field(1.0, gt=0)


class RenderOptions(BaseModel):
    """Options for rendering a tree to PNG."""
    x: float = Field(0.0, description="Viewport left in document pixels")
    y: float = Field(0.0, description="Viewport top in document pixels")
    width: int = Field(800, gt=0, le=8000, description="Render width")
    height: int = Field(600, gt=0, le=8000, description="Render height")
    scale: float = Field(1.0, gt=0, le=4.0, description="Device pixel ratio")

    # Image options
    background_color: Optional[Color] = Field(None, description="Surface fill before painting")
    png_quality: Optional[int] = Field(None, ge=0, le=100, description="PNG quality (0-100)")
    optimize_png: bool = Field(False, description="Optimize PNG file size")
    transparent_background: bool = Field(False, description="Turn near-white pixels transparent")

    def viewport(self) -> Viewport:
        return Viewport(x=self.x, y=self.y, width=self.width, height=self.height, scale=self.scale)


class PNGResult(BaseModel):
    """Result of PNG generation."""
    png_data: bytes = Field(..., description="PNG binary data", exclude=True)
    base64_data: str = Field(..., description="Base64 encoded PNG data")
    width: int = Field(..., description="Image width in device pixels")
    height: int = Field(..., description="Image height in device pixels")
    file_size: int = Field(..., description="File size in bytes")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Generation metadata")


class LoadResult(BaseModel):
    """Result of loading an element tree document."""
    success: bool = Field(..., description="Whether loading succeeded")
    tree: Optional[ElementNode] = Field(None, description="Loaded tree")
    errors: List[str] = Field(default_factory=list, description="Loading errors")
    warnings: List[str] = Field(default_factory=list, description="Loading warnings")
    processing_time: Optional[float] = Field(None, description="Loading time in seconds")
