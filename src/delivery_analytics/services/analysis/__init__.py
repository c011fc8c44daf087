"""Delivery analysis services."""

from .anomalies import detect_capacity_overruns, detect_duration_discrepancies, detect_late_start_anomalies
from .filters import FilterConfig, apply_filters, completed_records
from .models import AnalysisReport
from .punctuality import classify_delay, classify_records, predicted_delay
from .service import analyze_records
from .simulation import DemandSimulator

__all__ = [
    "AnalysisReport",
    "DemandSimulator",
    "FilterConfig",
    "analyze_records",
    "apply_filters",
    "classify_delay",
    "classify_records",
    "completed_records",
    "detect_capacity_overruns",
    "detect_duration_discrepancies",
    "detect_late_start_anomalies",
    "predicted_delay",
]
