"""Risk data schemas and import loaders."""

from risk_dashboard.ingestion.schemas import (
    ImportResult,
    RiskDraft,
    RiskInput,
    RiskItem,
    RiskLevel,
    RiskMetrics,
    RiskStatus,
    RiskSummary,
)
from risk_dashboard.ingestion.loaders import load_buffer, load_csv, load_data, load_excel, load_jsonl

__all__ = [
    "ImportResult",
    "RiskDraft",
    "RiskInput",
    "RiskItem",
    "RiskLevel",
    "RiskMetrics",
    "RiskStatus",
    "RiskSummary",
    "load_buffer",
    "load_csv",
    "load_data",
    "load_excel",
    "load_jsonl",
]
