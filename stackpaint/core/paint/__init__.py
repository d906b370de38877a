"""
Paint
=====

The paint-order pipeline.

Components:
- stacking: stacking context tree and per-element paint records
- effects: opacity/transform/clip effects and the scoped effect stack
- layers: background/mask areas, size resolution and tiling paths
- gradient: linear/radial gradient geometry and colour stops
- border: border side paths and dash distribution
- text: font metrics and text drawing helpers
- surface: the cairo-backed pixel surface
- compositor: executes the CSS painting order onto a surface
"""
