"""Content classification and the per-kind renderers used by the file viewer."""

from .router import RenderKind, classify

__all__ = ["RenderKind", "classify"]
