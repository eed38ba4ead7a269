"""Core document engine: node model, locator, mutations, cleanup and services.

Nothing in this package imports a UI toolkit or performs file I/O.
"""
