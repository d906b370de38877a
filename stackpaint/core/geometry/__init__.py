"""
Geometry
========

Vectors, bezier curves, paths, box areas and the rounded-corner curves
bounding each element.
"""
