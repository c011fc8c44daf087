"""Route group exports."""

from . import analysis, health, ingest

__all__ = ["analysis", "health", "ingest"]
