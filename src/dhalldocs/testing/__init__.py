from __future__ import annotations

from .corpus import generate_sources

__all__ = ["generate_sources"]
