"""Severity tier definitions and threshold lookup."""

from risk_dashboard.ingestion.schemas import RiskLevel

# Ordered by ascending threshold. Colors are passed through to the UI.
RISK_LEVELS: tuple[RiskLevel, ...] = (
    RiskLevel(threshold=1, name="LOWEST", color="#bbf7d0", text_color="#166534"),
    RiskLevel(threshold=2, name="VERY LOW", color="#86efac", text_color="#166534"),
    RiskLevel(threshold=3, name="LOW", color="#fde047", text_color="#854d0e"),
    RiskLevel(threshold=4, name="MEDIUM LOW", color="#fdba74", text_color="#9a3412"),
    RiskLevel(threshold=6, name="MEDIUM HIGH", color="#f97316", text_color="#ffedd5"),
    RiskLevel(threshold=9, name="HIGHEST", color="#dc2626", text_color="#fee2e2"),
)

LEVEL_NAMES: tuple[str, ...] = tuple(level.name for level in RISK_LEVELS)

_LEVELS_DESCENDING = sorted(RISK_LEVELS, key=lambda level: level.threshold, reverse=True)


def classify_tier(score: float) -> RiskLevel:
    """Return the tier with the largest threshold that the score meets.

    Scores below every threshold fall back to the threshold-1 tier, so the
    lookup is total even for a score of 0.

    Args:
        score: Severity or residual score

    Returns:
        Matching risk level
    """
    for level in _LEVELS_DESCENDING:
        if score >= level.threshold:
            return level

    return next((level for level in RISK_LEVELS if level.threshold == 1), RISK_LEVELS[0])
