"""
Box Areas
=========

Border, padding and content boxes of an element.
"""

from stackpaint.models.schemas import Bounds, BoxArea, ElementNode


def padding_box(element: ElementNode) -> Bounds:
    """Border box inset by the border widths."""
    styles = element.styles
    return element.bounds.add(
        styles.border_left_width,
        styles.border_top_width,
        -(styles.border_right_width + styles.border_left_width),
        -(styles.border_top_width + styles.border_bottom_width),
    )


def content_box(element: ElementNode) -> Bounds:
    """Padding box inset by the padding. Padding percentages resolve against the border-box width."""
    styles = element.styles
    width = element.bounds.width
    padding_left = styles.padding_left.resolve(width)
    padding_right = styles.padding_right.resolve(width)
    padding_top = styles.padding_top.resolve(width)
    padding_bottom = styles.padding_bottom.resolve(width)

    return element.bounds.add(
        padding_left + styles.border_left_width,
        padding_top + styles.border_top_width,
        -(styles.border_right_width + styles.border_left_width + padding_left + padding_right),
        -(styles.border_top_width + styles.border_bottom_width + padding_top + padding_bottom),
    )


def box_area(area: BoxArea, element: ElementNode) -> Bounds:
    """Map a reference box keyword to a rectangle; anything unknown is the padding box."""
    if area == BoxArea.BORDER_BOX:
        return element.bounds
    if area == BoxArea.CONTENT_BOX:
        return content_box(element)
    return padding_box(element)
