"""Read-only renderings of the lesson tree."""

from .outline import compile_outline, render_outline  # noqa: F401

__all__: list[str] = [
    "compile_outline",
    "render_outline",
]
