"""
Test Utilities
==============

Element tree builders, fake resource bridges and pixel assertions.
"""
