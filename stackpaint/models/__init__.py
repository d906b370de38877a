"""
Data Models
===========

Pydantic data models for the element tree, resolved style values,
render options and results.

Models:
- schemas: element tree, computed styles, image/gradient values, render I/O
"""
