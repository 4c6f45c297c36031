"""Test fixtures for Teapot.

This package provides reusable test fixtures:
- teapot: Client factories, result collectors and delivery helpers
- mocks: JSON fixture files answered by MockTeapot
"""
