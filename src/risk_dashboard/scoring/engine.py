"""Risk scoring engine.

Pure functions that turn probability/impact/effectiveness inputs into scored
risk records and aggregate collections of them. Validation is reported as a
list of messages and is never applied implicitly: construction computes
whatever is mathematically defined and leaves acceptance to the caller.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from risk_dashboard.ingestion.schemas import (
    EDITABLE_FIELDS,
    RiskDraft,
    RiskInput,
    RiskItem,
    RiskMetrics,
    RiskStatus,
    RiskSummary,
)
from risk_dashboard.logging import get_logger
from risk_dashboard.scoring.levels import LEVEL_NAMES, classify_tier

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 9


def compute_score(probability: int, impact: int) -> int:
    """Calculate the severity score (probability x impact)."""
    return probability * impact


def compute_residual_score(score: float, effectiveness: float) -> float:
    """Calculate the score remaining after mitigation.

    Not rounded or clamped; callers format it for display.
    """
    return score * (1 - effectiveness)


def compute_metrics(
    probability: int,
    impact: int,
    effectiveness: float = 0,
) -> RiskMetrics:
    """Calculate score, tier, residual score and residual tier.

    The residual tier is classified from the unrounded residual score.

    Args:
        probability: Probability rating
        impact: Impact rating
        effectiveness: Mitigation effectiveness as a fraction

    Returns:
        Derived metrics
    """
    score = compute_score(probability, impact)
    residual_score = compute_residual_score(score, effectiveness)

    return RiskMetrics(
        score=score,
        risk_level=classify_tier(score).name,
        residual_score=residual_score,
        residual_risk_level=classify_tier(residual_score).name,
    )


def validate_probability_impact(probability: float, impact: float) -> list[str]:
    """Return one message per out-of-range rating; empty when both are valid."""
    errors = []

    if probability < MIN_RATING or probability > MAX_RATING:
        errors.append(f"Probability must be between {MIN_RATING} and {MAX_RATING}")

    if impact < MIN_RATING or impact > MAX_RATING:
        errors.append(f"Impact must be between {MIN_RATING} and {MAX_RATING}")

    return errors


def validate_mitigation_effectiveness(effectiveness: float) -> list[str]:
    """Return a message if effectiveness is outside [0, 1]."""
    if effectiveness < 0 or effectiveness > 1:
        return ["Mitigation effectiveness must be between 0 and 1 (0% to 100%)"]
    return []


def validate_risk_input(raw: RiskInput) -> list[str]:
    """Collect every violation for a form or import row."""
    errors = []

    if not raw.description or not raw.description.strip():
        errors.append("Description is required")

    errors.extend(validate_probability_impact(raw.probability, raw.impact))

    if raw.mitigation_effectiveness is not None:
        errors.extend(validate_mitigation_effectiveness(raw.mitigation_effectiveness))

    return errors


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_input(raw: RiskInput | Mapping[str, Any]) -> RiskInput:
    if isinstance(raw, RiskInput):
        return raw
    return RiskInput.model_validate(dict(raw))


def build_risk_item(
    raw: RiskInput | Mapping[str, Any],
    now: datetime | None = None,
) -> RiskDraft:
    """Create a scored risk without an identifier.

    Status defaults to Open and effectiveness to 0. Both timestamps are set
    from a single clock read. No validation is performed.

    Args:
        raw: Raw risk fields
        now: Timestamp to stamp; defaults to the current UTC time

    Returns:
        Scored risk draft
    """
    raw = _as_input(raw)
    effectiveness = raw.mitigation_effectiveness if raw.mitigation_effectiveness is not None else 0.0
    metrics = compute_metrics(raw.probability, raw.impact, effectiveness)
    stamp = now or _utcnow()

    return RiskDraft(
        description=raw.description,
        probability=raw.probability,
        impact=raw.impact,
        mitigation_effectiveness=effectiveness,
        owner=raw.owner,
        category=raw.category,
        status=raw.status or RiskStatus.OPEN,
        completion_date=raw.completion_date,
        notes=raw.notes,
        comments=raw.comments,
        created_at=stamp,
        updated_at=stamp,
        **metrics.model_dump(),
    )


def to_risk_input(risk: RiskDraft) -> RiskInput:
    """Extract the editable fields of a scored risk."""
    return RiskInput(
        **{field: getattr(risk, field) for field in EDITABLE_FIELDS}
    )


def update_risk_item(
    item: RiskItem,
    changes: Mapping[str, Any],
    now: datetime | None = None,
) -> RiskItem:
    """Return a copy of a risk with inputs replaced and metrics recomputed.

    Only editable fields are taken from ``changes``; identity and derived
    fields in it are ignored. The identifier and creation time are kept and
    the update time is refreshed.

    Args:
        item: Existing risk
        changes: Field values to replace
        now: Timestamp to stamp; defaults to the current UTC time

    Returns:
        Updated risk
    """
    ignored = set(changes) - EDITABLE_FIELDS
    if ignored:
        logger.debug("risk_update_fields_ignored", risk_id=item.id, fields=sorted(ignored))

    merged = to_risk_input(item).model_dump()
    merged.update({k: v for k, v in changes.items() if k in EDITABLE_FIELDS})

    draft = build_risk_item(merged, now=now)

    return RiskItem(
        **draft.model_dump(exclude={"created_at"}),
        id=item.id,
        created_at=item.created_at,
    )


def update_risk_status(
    item: RiskItem,
    status: RiskStatus | str,
    now: datetime | None = None,
) -> RiskItem:
    """Return a copy of a risk with a new status and refreshed update time."""
    return item.model_copy(
        update={"status": RiskStatus(status), "updated_at": now or _utcnow()}
    )


def summarize(risks: Iterable[RiskDraft]) -> RiskSummary:
    """Count risks by tier and by status.

    Every known tier is present in ``by_level``; ``by_status`` only holds
    statuses that occur. Tiers are read from each risk's stored level.

    Args:
        risks: Risks to aggregate

    Returns:
        Summary counts
    """
    by_level = {name: 0 for name in LEVEL_NAMES}
    by_status: dict[str, int] = {}
    total = 0

    for risk in risks:
        total += 1
        by_level[risk.risk_level] = by_level.get(risk.risk_level, 0) + 1
        status = RiskStatus(risk.status).value
        by_status[status] = by_status.get(status, 0) + 1

    return RiskSummary(total=total, by_level=by_level, by_status=by_status)
