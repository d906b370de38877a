"""
stackpaint
==========

A paint-order renderer for styled element trees.

Takes an element tree whose styles are already resolved (box geometry,
colours, background and mask layers, borders, shadows, text runs) and
rasterises it the way a browser paints it, without a browser.

This package provides:
- Stacking-context construction following the CSS painting order
- Box geometry with rounded-corner curves and layer positioning
- Background, mask, gradient, border, shadow and text compositing on cairo
- PNG output through Pillow
"""

__version__ = "1.0.0"
__author__ = "stackpaint team"
