"""Pydantic schemas for risk inputs, risk items and aggregates."""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskStatus(str, Enum):
    """Lifecycle status of a risk."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    MITIGATED = "Mitigated"
    CLOSED = "Closed"


class RiskLevel(BaseModel):
    """A severity tier: inclusive minimum score plus display attributes."""

    model_config = ConfigDict(frozen=True)

    threshold: int
    name: str
    color: str
    text_color: str | None = None


# =============================================================================
# Input Schemas
# =============================================================================


class RiskInput(BaseModel):
    """Raw risk fields as entered in the form or read from an import row.

    Values are not range-checked here; validation is a separate step.
    """

    description: str
    probability: int
    impact: int
    mitigation_effectiveness: float | None = None
    owner: str | None = None
    category: str | None = None
    status: RiskStatus | None = None
    notes: str | None = None
    comments: str | None = None
    completion_date: date | None = None

    @field_validator("owner", "category", "notes", "comments", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


# =============================================================================
# Risk Schemas
# =============================================================================


class RiskMetrics(BaseModel):
    """Derived scoring fields for one probability/impact/effectiveness triple."""

    model_config = ConfigDict(frozen=True)

    score: int
    risk_level: str
    residual_score: float
    residual_risk_level: str


class RiskDraft(BaseModel):
    """A fully scored risk that has not yet been assigned an identifier."""

    model_config = ConfigDict(frozen=True)

    description: str
    probability: int
    impact: int
    score: int
    risk_level: str
    mitigation_effectiveness: float = 0.0
    residual_score: float
    residual_risk_level: str
    owner: str | None = None
    category: str | None = None
    status: RiskStatus = RiskStatus.OPEN
    completion_date: date | None = None
    notes: str | None = None
    comments: str | None = None
    created_at: datetime
    updated_at: datetime


class RiskItem(RiskDraft):
    """A risk held in the register."""

    id: str


# Fields a caller may change on an existing risk; everything else is
# either the identity (id, created_at) or derived.
EDITABLE_FIELDS = frozenset(
    {
        "description",
        "probability",
        "impact",
        "mitigation_effectiveness",
        "owner",
        "category",
        "status",
        "completion_date",
        "notes",
        "comments",
    }
)


# =============================================================================
# Aggregate Schemas
# =============================================================================


class RiskSummary(BaseModel):
    """Counts of risks by tier and by status."""

    total: int
    by_level: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)


class ImportResult(BaseModel):
    """Outcome of a bulk import: built risks plus per-row diagnostics."""

    success: bool
    risks: list[RiskDraft] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    rows_read: int = 0
