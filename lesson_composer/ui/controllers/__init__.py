"""UI controllers package for the lesson composer.

Controllers mediate between the presentation layer and the editing services.
They hold no widget code and keep only transient gesture state.
"""

__all__: list[str] = []
