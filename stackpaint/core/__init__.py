"""
Core Paint Logic
================

Core modules for turning an element tree into pixels.

Modules:
- geometry: vectors, bezier curves, paths, box areas and rounded-corner curves
- paint: stacking contexts, effects, layers, borders, surface and compositor
- rendering: PNG output façade
- tree: JSON/YAML element tree loading
- resources: image resolution bridge
"""
