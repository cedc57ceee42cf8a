"""Safety services package."""

from optimism.services.safety.crisis_gate import CrisisGate
from optimism.services.safety.crisis_resources import (
    CrisisResource,
    CrisisResourceDirectory,
    EmergencyNumber,
    get_disclaimer,
)

__all__ = [
    "CrisisGate",
    "CrisisResource",
    "CrisisResourceDirectory",
    "EmergencyNumber",
    "get_disclaimer",
]
