"""
Element Tree Loading
====================

Loaders that turn JSON or YAML documents into validated element trees.

Components:
- loader: format loaders, factory and convenience functions
"""
