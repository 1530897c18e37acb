"""In-memory risk register.

The register is an immutable value. Every mutation returns a new register
so the owner (a UI session or a CLI command) replaces its collection
wholesale and never shares a mutable alias with the scoring code.
"""

import uuid
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from typing import Any

import pandas as pd

from risk_dashboard.ingestion.schemas import RiskDraft, RiskItem, RiskStatus, RiskSummary
from risk_dashboard.logging import get_logger
from risk_dashboard.scoring.engine import summarize, update_risk_item, update_risk_status

logger = get_logger(__name__)


def generate_risk_id(prefix: str = "risk") -> str:
    """Generate a new unique risk ID."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class RiskRegister:
    """Immutable collection of risks owned by one session."""

    __slots__ = ("_risks", "_id_prefix")

    def __init__(self, risks: Iterable[RiskItem] = (), id_prefix: str = "risk"):
        """Initialize register.

        Args:
            risks: Initial risks
            id_prefix: Prefix for generated identifiers

        Raises:
            ValueError: If two risks share an identifier
        """
        self._risks: tuple[RiskItem, ...] = tuple(risks)
        self._id_prefix = id_prefix

        ids = [r.id for r in self._risks]
        if len(ids) != len(set(ids)):
            raise ValueError("Risk identifiers must be unique")

    @property
    def risks(self) -> tuple[RiskItem, ...]:
        return self._risks

    @property
    def id_prefix(self) -> str:
        return self._id_prefix

    def __len__(self) -> int:
        return len(self._risks)

    def __iter__(self) -> Iterator[RiskItem]:
        return iter(self._risks)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RiskRegister):
            return NotImplemented
        return self._risks == other._risks

    def __repr__(self) -> str:
        return f"RiskRegister({len(self._risks)} risks)"

    def __contains__(self, risk_id: object) -> bool:
        return any(r.id == risk_id for r in self.risks)

    @property
    def ids(self) -> list[str]:
        return [r.id for r in self.risks]

    def get(self, risk_id: str) -> RiskItem:
        """Return the risk with the given ID.

        Raises:
            KeyError: If no risk has that ID
        """
        for risk in self.risks:
            if risk.id == risk_id:
                return risk
        raise KeyError(risk_id)

    def _with(self, risks: Iterable[RiskItem]) -> "RiskRegister":
        return RiskRegister(risks, id_prefix=self._id_prefix)

    def _new_id(self, taken: set[str]) -> str:
        risk_id = generate_risk_id(self.id_prefix)
        while risk_id in taken:
            risk_id = generate_risk_id(self.id_prefix)
        return risk_id

    def _replace_item(self, risk_id: str, item: RiskItem) -> "RiskRegister":
        self.get(risk_id)
        return self._with(item if r.id == risk_id else r for r in self.risks)

    def add(self, draft: RiskDraft, risk_id: str | None = None) -> "RiskRegister":
        """Return a register with the draft appended under a fresh ID.

        Args:
            draft: Scored risk without identifier
            risk_id: Explicit identifier; generated when omitted

        Raises:
            ValueError: If the explicit ID is already taken
        """
        taken = set(self.ids)
        if risk_id is None:
            risk_id = self._new_id(taken)
        elif risk_id in taken:
            raise ValueError(f"Duplicate risk id: {risk_id}")

        item = RiskItem(**draft.model_dump(exclude={"id"}), id=risk_id)
        logger.info("risk_added", risk_id=risk_id, risk_level=item.risk_level)
        return self._with([*self.risks, item])

    def add_many(self, drafts: Iterable[RiskDraft]) -> "RiskRegister":
        """Return a register with all drafts appended, each under a fresh ID."""
        taken = set(self.ids)
        new_items = []
        for draft in drafts:
            risk_id = self._new_id(taken)
            taken.add(risk_id)
            new_items.append(RiskItem(**draft.model_dump(exclude={"id"}), id=risk_id))

        logger.info("risks_added", count=len(new_items), total=len(self.risks) + len(new_items))
        return self._with([*self.risks, *new_items])

    def update(
        self,
        risk_id: str,
        changes: Mapping[str, Any],
        now: datetime | None = None,
    ) -> "RiskRegister":
        """Return a register with one risk's fields replaced and rescored."""
        updated = update_risk_item(self.get(risk_id), changes, now=now)
        logger.info("risk_updated", risk_id=risk_id, fields=sorted(changes))
        return self._replace_item(risk_id, updated)

    def replace(self, risk_id: str, draft: RiskDraft) -> "RiskRegister":
        """Return a register where a form-edited draft replaces a risk.

        The identifier and creation time of the existing risk are kept.
        """
        existing = self.get(risk_id)
        item = RiskItem(
            **draft.model_dump(exclude={"id", "created_at"}),
            id=existing.id,
            created_at=existing.created_at,
        )
        logger.info("risk_replaced", risk_id=risk_id, risk_level=item.risk_level)
        return self._replace_item(risk_id, item)

    def update_status(
        self,
        risk_id: str,
        status: RiskStatus | str,
        now: datetime | None = None,
    ) -> "RiskRegister":
        """Return a register with one risk's status changed."""
        updated = update_risk_status(self.get(risk_id), status, now=now)
        logger.info("risk_status_changed", risk_id=risk_id, status=updated.status.value)
        return self._replace_item(risk_id, updated)

    def delete(self, risk_id: str) -> "RiskRegister":
        """Return a register without the given risk."""
        self.get(risk_id)
        logger.info("risk_deleted", risk_id=risk_id)
        return self._with(r for r in self.risks if r.id != risk_id)

    def summary(self) -> RiskSummary:
        """Summarize the register's risks by tier and status."""
        return summarize(self.risks)


# Column order and headers for tabular views and CSV export
TABLE_COLUMNS: dict[str, str] = {
    "id": "ID",
    "description": "Description",
    "probability": "Probability",
    "impact": "Impact",
    "score": "Score",
    "risk_level": "Risk Level",
    "mitigation_effectiveness": "Mitigation Effectiveness",
    "residual_score": "Residual Score",
    "residual_risk_level": "Residual Risk Level",
    "owner": "Owner",
    "category": "Category",
    "status": "Status",
    "completion_date": "Completion Date",
    "notes": "Notes",
    "comments": "Comments",
    "created_at": "Created",
    "updated_at": "Updated",
}


def to_dataframe(risks: Iterable[RiskDraft], headers: bool = False) -> pd.DataFrame:
    """Flatten risks into a DataFrame for display or CSV export.

    Args:
        risks: Risks to tabulate
        headers: Use display headers instead of field names

    Returns:
        One row per risk, columns in table order
    """
    records = [r.model_dump(mode="json") for r in risks]
    df = pd.DataFrame(records, columns=list(TABLE_COLUMNS))

    if headers:
        df = df.rename(columns=TABLE_COLUMNS)
    return df
