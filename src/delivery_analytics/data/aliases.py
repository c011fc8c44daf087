"""Header alias tables for the tours and tasks spreadsheet exports.

The tables are plain data: canonical field -> accepted header spellings.
Matching is case-, whitespace- and accent-insensitive, so a single spelling
per variant is enough ("Entrepôt " and "entrepot" hit the same alias).
"""

from __future__ import annotations

import unicodedata
from typing import Literal, Optional

Schema = Literal["tours", "tasks"]
FieldType = Literal["numeric", "time", "date", "text"]

SCHEMAS: tuple[Schema, ...] = ("tours", "tasks")

HEADER_ALIASES: dict[str, dict[str, list[str]]] = {
    "tours": {
        "name": ["nom", "tournée"],
        "date": ["date"],
        "warehouse": ["entrepôt"],
        "driver": ["livreur"],
        "planned_duration": ["durée (s)"],
        "reported_duration": ["durée réelle de la tournée (s)"],
        "bin_capacity": ["capacité bac (bacs)"],
        "planned_bins": ["bac (bacs)"],
        "weight_capacity": ["capacité poids (kg)"],
        "planned_weight": ["poids (kg)"],
        "planned_distance": ["kilométrage (km)", "distance (m)"],
        "realized_distance": ["kilométrage réel (km)"],
        "planned_departure": ["départ"],
        "planned_end": ["fin"],
        "realized_departure": ["heure de départ réelle du livreur"],
        "started": ["démarré"],
        "finished": ["terminé"],
        "preparation_time": ["temps de préparation livreur (s)"],
        "service_time": ["temps de service (s)"],
        "travel_time": ["temps de parcours (s)"],
        "majority_postal_code": ["code postal majoritaire"],
    },
    "tasks": {
        "tour_name": ["tournée"],
        "date": ["date", "jour"],
        "warehouse": ["entrepôt"],
        "driver": ["livreur"],
        "sequence": ["séquence"],
        "status": ["avancement"],
        "completed_by": ["complété par"],
        "weight": ["poids", "poids (kg)"],
        "items": ["items"],
        "slot_start": ["départ"],
        "slot_end": ["arrivée"],
        "predicted_arrival": ["arrivée approximative"],
        "realized_arrival": ["heure d'arrivée sur site"],
        "closure": ["heure de clôture"],
        "service_time": ["temps de service", "temps de service (s)"],
        "realized_service_time": ["temps de service réel"],
        "retard": ["retard (s)"],
        "city": ["ville"],
        "postal_code": ["code postal"],
        "rating": ["notez votre livraison"],
        "comment": [
            "qu'avez vous pensé de la livraison de votre commande?",
            "commentaire",
        ],
    },
}

MANDATORY_FIELDS: dict[str, tuple[str, ...]] = {
    "tours": ("name", "date", "warehouse"),
    "tasks": ("tour_name", "date", "warehouse"),
}

# Only these fields may stay None; every other blank optional cell becomes 0.
NULLABLE_FIELDS: frozenset[str] = frozenset({"rating", "comment", "driver", "completed_by"})

_TIME_FIELDS = frozenset(
    {
        "planned_departure",
        "planned_end",
        "realized_departure",
        "started",
        "finished",
        "slot_start",
        "slot_end",
        "predicted_arrival",
        "realized_arrival",
        "closure",
    }
)

_NUMERIC_FIELDS = frozenset(
    {
        "planned_duration",
        "reported_duration",
        "bin_capacity",
        "planned_bins",
        "weight_capacity",
        "planned_weight",
        "planned_distance",
        "realized_distance",
        "preparation_time",
        "service_time",
        "travel_time",
        "sequence",
        "weight",
        "items",
        "realized_service_time",
        "retard",
        "rating",
    }
)


def field_type(field: str) -> FieldType:
    if field == "date":
        return "date"
    if field in _TIME_FIELDS:
        return "time"
    if field in _NUMERIC_FIELDS:
        return "numeric"
    return "text"


def normalize_header(value: object) -> str:
    """Fold a header cell to a comparable key (lowercase, no accents, single spaces)."""
    if value is None:
        return ""
    text = unicodedata.normalize("NFKD", str(value))
    text = "".join(char for char in text if not unicodedata.combining(char))
    text = text.replace("\u2019", "'").replace("\u00a0", " ")
    return " ".join(text.lower().split())


def _build_lookup() -> dict[str, dict[str, str]]:
    lookup: dict[str, dict[str, str]] = {}
    for schema, fields in HEADER_ALIASES.items():
        table: dict[str, str] = {}
        for canonical, aliases in fields.items():
            for alias in aliases:
                table.setdefault(normalize_header(alias), canonical)
        lookup[schema] = table
    return lookup


_LOOKUP = _build_lookup()


def find_field(header: object, schema: Schema) -> Optional[str]:
    """Return the canonical field for a header cell, or None when unknown."""
    key = normalize_header(header)
    if not key:
        return None
    return _LOOKUP[schema].get(key)


def example_alias(field: str, schema: Schema) -> str:
    aliases = HEADER_ALIASES[schema].get(field) or []
    return aliases[0] if aliases else field


def alias_collisions(schema: Schema) -> dict[str, list[str]]:
    """Normalized aliases claimed by more than one canonical field."""
    claims: dict[str, list[str]] = {}
    for canonical, aliases in HEADER_ALIASES[schema].items():
        for alias in aliases:
            owners = claims.setdefault(normalize_header(alias), [])
            if canonical not in owners:
                owners.append(canonical)
    return {alias: owners for alias, owners in claims.items() if len(owners) > 1}
