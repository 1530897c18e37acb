"""Sample risks for seeding a fresh dashboard session."""

from datetime import datetime

from risk_dashboard.ingestion.schemas import RiskStatus
from risk_dashboard.scoring.engine import build_risk_item
from risk_dashboard.storage.register import RiskRegister

SAMPLE_RISK_DATA = [
    {
        "description": "Data breach due to weak authentication systems",
        "probability": 6,
        "impact": 8,
        "mitigation_effectiveness": 0.3,
        "owner": "IT Security Team",
        "category": "Cybersecurity",
        "status": RiskStatus.IN_PROGRESS,
        "notes": "Implementing multi-factor authentication",
    },
    {
        "description": "Supply chain disruption affecting production",
        "probability": 4,
        "impact": 7,
        "mitigation_effectiveness": 0.5,
        "owner": "Operations Manager",
        "category": "Operations",
        "status": RiskStatus.OPEN,
        "notes": "Evaluating alternative suppliers",
    },
    {
        "description": "Key personnel departure without knowledge transfer",
        "probability": 3,
        "impact": 6,
        "mitigation_effectiveness": 0.7,
        "owner": "HR Department",
        "category": "Human Resources",
        "status": RiskStatus.MITIGATED,
        "notes": "Documentation and cross-training completed",
    },
    {
        "description": "Regulatory compliance failure in new jurisdiction",
        "probability": 5,
        "impact": 9,
        "mitigation_effectiveness": 0.2,
        "owner": "Legal Team",
        "category": "Compliance",
        "status": RiskStatus.OPEN,
        "notes": "Engaging local legal counsel",
    },
    {
        "description": "Server hardware failure during peak season",
        "probability": 2,
        "impact": 8,
        "mitigation_effectiveness": 0.8,
        "owner": "Infrastructure Team",
        "category": "Technology",
        "status": RiskStatus.CLOSED,
        "notes": "Redundant systems implemented and tested",
    },
    {
        "description": "Market downturn affecting customer demand",
        "probability": 7,
        "impact": 5,
        "mitigation_effectiveness": 0.1,
        "owner": "Sales Director",
        "category": "Market",
        "status": RiskStatus.OPEN,
        "notes": "Monitoring economic indicators",
    },
    {
        "description": "Third-party software license compliance issue",
        "probability": 1,
        "impact": 3,
        "mitigation_effectiveness": 0.9,
        "owner": "IT Department",
        "category": "Legal",
        "status": RiskStatus.MITIGATED,
        "notes": "License audit completed and documentation updated",
    },
]


def load_sample_register(
    id_prefix: str = "risk",
    now: datetime | None = None,
) -> RiskRegister:
    """Build a register holding the sample risks."""
    drafts = [build_risk_item(data, now=now) for data in SAMPLE_RISK_DATA]
    return RiskRegister(id_prefix=id_prefix).add_many(drafts)
