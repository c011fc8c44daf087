"""Depot resolution from warehouse names."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ..config import settings

UNKNOWN_DEPOT = "Inconnu"


def depot_prefix(warehouse: Optional[str]) -> str:
    """Leading whitespace-delimited token of a warehouse name."""
    if not warehouse:
        return ""
    parts = warehouse.split()
    return parts[0] if parts else ""


def resolve_depot_name(
    warehouse: Optional[str],
    prefixes: Mapping[str, Sequence[str]] | None = None,
) -> str:
    """Resolve the configured depot a warehouse belongs to.

    Falls back to the first word of the warehouse name, then to "Inconnu".
    """
    if not warehouse:
        return UNKNOWN_DEPOT

    table = settings.depot_prefixes if prefixes is None else prefixes
    normalized = warehouse.strip().lower()
    for depot, candidates in table.items():
        if any(normalized.startswith(candidate.lower()) for candidate in candidates if candidate):
            return depot

    return depot_prefix(warehouse) or UNKNOWN_DEPOT
