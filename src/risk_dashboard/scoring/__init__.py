"""Risk scoring module."""

from risk_dashboard.scoring.engine import (
    build_risk_item,
    compute_metrics,
    compute_residual_score,
    compute_score,
    summarize,
    update_risk_item,
    update_risk_status,
    validate_mitigation_effectiveness,
    validate_probability_impact,
    validate_risk_input,
)
from risk_dashboard.scoring.levels import RISK_LEVELS, LEVEL_NAMES, classify_tier

__all__ = [
    "RISK_LEVELS",
    "LEVEL_NAMES",
    "classify_tier",
    "compute_score",
    "compute_residual_score",
    "compute_metrics",
    "validate_probability_impact",
    "validate_mitigation_effectiveness",
    "validate_risk_input",
    "build_risk_item",
    "update_risk_item",
    "update_risk_status",
    "summarize",
]
