"""Headline indicators rendered on the dashboard."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import MergedRecord, Tour
from .models import ComparisonKpi, GlobalSummary, Kpi, LateStartAnomaly, OverloadedTour
from .punctuality import PunctualityStats


def format_duration(seconds: float) -> str:
    """``3h 05m`` style rendering; negative values clamp to zero."""
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    return f"{hours}h {remainder // 60:02d}m"


def _change_type(increased: bool) -> str:
    return "increase" if increased else "decrease"


def general_kpis(
    records: Sequence[MergedRecord],
    tours: Sequence[Tour],
    stats: PunctualityStats,
    tolerance: int,
) -> list[Kpi]:
    tolerance_minutes = round(tolerance / 60)
    ratings = [record.task.rating for record in records if record.task.rating is not None and record.task.rating > 0]
    avg_rating = f"{sum(ratings) / len(ratings):.2f}" if ratings else None
    negative = sum(1 for record in records if record.has_bad_review)
    return [
        Kpi(title="Tournées Analysées", value=str(len(tours)), icon="Truck"),
        Kpi(title="Livraisons Analysées", value=str(len(records)), icon="ListChecks"),
        Kpi(
            title="Taux de Ponctualité (Réalisé)",
            value=f"{stats.realized_rate:.1f}%",
            description=f"Seuil de tolérance: ±{tolerance_minutes} min",
            icon="Clock",
        ),
        Kpi(
            title="Notation Moyenne Client",
            value=avg_rating,
            description=f"Basé sur {len(ratings)} avis (sur 5)",
            icon="Star",
        ),
        Kpi(
            title="Livraisons en Retard",
            value=str(stats.late),
            description=f"> {tolerance_minutes} min après le créneau",
            icon="Frown",
        ),
        Kpi(
            title="Livraisons en Avance",
            value=str(stats.early),
            description=f"< -{tolerance_minutes} min avant le créneau",
            icon="Smile",
        ),
        Kpi(title="Avis Négatifs", value=str(negative), description="Note client de 1 à 3 / 5", icon="MessageSquareX"),
    ]


def discrepancy_kpis(tours: Sequence[Tour], stats: PunctualityStats) -> list[ComparisonKpi]:
    """Planned against realized totals over the analysed tours."""
    planned_duration = sum(tour.planned_operational_duration for tour in tours)
    realized_duration = sum(tour.realized_duration for tour in tours)
    planned_weight = sum(tour.planned_weight for tour in tours)
    realized_weight = sum(tour.realized_weight for tour in tours)
    planned_distance = sum(tour.planned_distance for tour in tours)
    realized_distance = sum(tour.realized_distance for tour in tours)
    planned_rate = stats.planned_rate
    realized_rate = stats.realized_rate

    return [
        ComparisonKpi(
            title="Taux de Ponctualité",
            value1=f"{planned_rate:.1f}%",
            label1="Planifié",
            value2=f"{realized_rate:.1f}%",
            label2="Réalisé",
            change=f"{abs(realized_rate - planned_rate):.1f} pts",
            change_type=_change_type(realized_rate < planned_rate),
        ),
        ComparisonKpi(
            title="Tâches Hors Délais",
            value1=str(stats.predicted_out_of_time),
            label1="Planifié",
            value2=str(stats.out_of_time),
            label2="Réalisé",
            change=str(abs(stats.out_of_time - stats.predicted_out_of_time)),
            change_type=_change_type(stats.out_of_time > stats.predicted_out_of_time),
        ),
        ComparisonKpi(
            title="Écart de Durée Totale",
            value1=format_duration(planned_duration),
            label1="Planifié",
            value2=format_duration(realized_duration),
            label2="Réalisé",
            change=format_duration(abs(realized_duration - planned_duration)),
            change_type=_change_type(realized_duration > planned_duration),
        ),
        ComparisonKpi(
            title="Écart de Poids Total",
            value1=f"{planned_weight / 1000:.2f} t",
            label1="Planifié",
            value2=f"{realized_weight / 1000:.2f} t",
            label2="Réalisé",
            change=f"{abs(realized_weight - planned_weight) / 1000:.2f} t",
            change_type=_change_type(realized_weight > planned_weight),
        ),
        ComparisonKpi(
            title="Écart de Kilométrage Total",
            value1=f"{planned_distance:.1f} km",
            label1="Planifié",
            value2=f"{realized_distance:.1f} km",
            label2="Réalisé",
            change=f"{abs(realized_distance - planned_distance):.1f} km",
            change_type=_change_type(realized_distance > planned_distance),
        ),
    ]


def late_start_share(anomalies: Sequence[LateStartAnomaly], tour_count: int) -> float:
    return len(anomalies) / tour_count * 100 if tour_count else 0.0


def quality_kpis(
    records: Sequence[MergedRecord],
    overloaded: Sequence[OverloadedTour],
    late_starts: Sequence[LateStartAnomaly],
    tour_count: int,
) -> tuple[list[Kpi], ComparisonKpi]:
    """Review quality against delays and overloads.

    Returns the scalar indicators and the overloaded-vs-standard bad review
    comparison.
    """
    negative = [record for record in records if record.has_bad_review]
    negative_late = sum(1 for record in negative if record.is_late)
    correlation = negative_late / len(negative) * 100 if negative else 0.0

    overloaded_ids = {tour.unique_id for tour in overloaded}
    rated_overloaded = [
        record for record in records if record.is_rated and record.tour is not None and record.tour.unique_id in overloaded_ids
    ]
    rated_standard = [
        record for record in records if record.is_rated and (record.tour is None or record.tour.unique_id not in overloaded_ids)
    ]

    def bad_share(members: list[MergedRecord]) -> float:
        if not members:
            return 0.0
        return sum(1 for record in members if record.has_bad_review) / len(members) * 100

    overloaded_rate = bad_share(rated_overloaded)
    standard_rate = bad_share(rated_standard)
    comparison = ComparisonKpi(
        title="Taux d'Avis Négatifs (Surcharge vs. Standard)",
        value1=f"{overloaded_rate:.1f}%",
        label1="Surchargées",
        value2=f"{standard_rate:.1f}%",
        label2="Standard",
        change=f"{overloaded_rate - standard_rate:.1f} pts d'écart",
        change_type=_change_type(overloaded_rate > standard_rate),
    )

    first_task_late = late_start_share(late_starts, tour_count)
    indicators = [
        Kpi(title="Corrélation Retards / Avis Négatifs", value=f"{correlation:.1f}%", icon="BarChart"),
        Kpi(title="% Tournées avec Retard à la 1ère Tâche", value=f"{first_task_late:.1f}%", icon="Route"),
    ]
    return indicators, comparison


def global_summary(tours: Sequence[Tour], stats: PunctualityStats) -> GlobalSummary:
    if not tours:
        return GlobalSummary(
            punctuality_rate_planned=stats.planned_rate,
            punctuality_rate_realized=stats.realized_rate,
        )
    planned_duration = sum(tour.planned_operational_duration for tour in tours)
    realized_duration = sum(tour.realized_duration for tour in tours)
    planned_weight = sum(tour.planned_weight for tour in tours)
    realized_weight = sum(tour.realized_weight for tour in tours)
    return GlobalSummary(
        punctuality_rate_planned=stats.planned_rate,
        punctuality_rate_realized=stats.realized_rate,
        avg_duration_discrepancy_per_tour=(realized_duration - planned_duration) / len(tours),
        avg_weight_discrepancy_per_tour=(realized_weight - planned_weight) / len(tours),
        weight_overrun_rate=(realized_weight - planned_weight) / planned_weight * 100 if planned_weight > 0 else 0.0,
        duration_overrun_rate=(
            (realized_duration - planned_duration) / planned_duration * 100 if planned_duration > 0 else 0.0
        ),
    )
