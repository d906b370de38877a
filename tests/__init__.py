"""
Test Suite
==========

Test suite matching the stackpaint/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: End-to-end renders through the compositor
"""
