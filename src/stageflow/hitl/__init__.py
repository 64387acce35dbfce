"""Human-in-the-loop module.

This module provides:
- Approval gate configuration and lookup
- The intervention manager that workflows call for approvals
- A console handler for interactive CLI runs
"""

from .console import ConsoleInterventionHandler
from .gates import (
    DEFAULT_RESEARCH_GATES,
    ApprovalGateRegistry,
    GateConfig,
)
from .intervention import (
    InterventionHandler,
    InterventionManager,
    PendingApproval,
)

__all__ = [
    "ApprovalGateRegistry",
    "ConsoleInterventionHandler",
    "DEFAULT_RESEARCH_GATES",
    "GateConfig",
    "InterventionHandler",
    "InterventionManager",
    "PendingApproval",
]
