"""Domain layer: values, paths, entities and selection strategies."""

from __future__ import annotations
