"""
Rendering Output
================

PNG generation on top of the compositor.

Components:
- png_generator: paint an element tree and encode the surface as PNG
"""
