"""In-memory storage for the current session's risks."""

from risk_dashboard.storage.register import RiskRegister, generate_risk_id, to_dataframe
from risk_dashboard.storage.samples import SAMPLE_RISK_DATA, load_sample_register

__all__ = [
    "RiskRegister",
    "generate_risk_id",
    "to_dataframe",
    "SAMPLE_RISK_DATA",
    "load_sample_register",
]
