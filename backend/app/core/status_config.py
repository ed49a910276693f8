"""Status Configuration and Transition Rules

Valid status values for the records MRP reads and writes, and the allowed
transitions for MRP runs. A run moves out of 'running' exactly once.
"""
from enum import Enum
from typing import Dict, List, Set


# =============================================================================
# Production Order Status
# =============================================================================

class ProductionOrderStatus(str, Enum):
    """Valid status values for Production Orders"""
    DRAFT = "draft"
    RELEASED = "released"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Only released orders are demand for MRP
MRP_DEMAND_STATUSES: Set[str] = {ProductionOrderStatus.RELEASED.value}


# =============================================================================
# MRP Run Status
# =============================================================================

class MRPRunStatus(str, Enum):
    """Valid status values for MRP runs"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


MRP_RUN_TRANSITIONS: Dict[str, Set[str]] = {
    MRPRunStatus.RUNNING.value: {
        MRPRunStatus.COMPLETED.value,
        MRPRunStatus.FAILED.value,
    },
    MRPRunStatus.COMPLETED.value: set(),  # Terminal
    MRPRunStatus.FAILED.value: set(),  # Terminal
}


def get_allowed_mrp_run_transitions(current_status: str) -> List[str]:
    """Get list of allowed next statuses for an MRP run"""
    return sorted(MRP_RUN_TRANSITIONS.get(current_status, set()))


def is_valid_mrp_run_transition(current_status: str, new_status: str) -> bool:
    """Check if an MRP run status transition is valid"""
    allowed = MRP_RUN_TRANSITIONS.get(current_status, set())
    return new_status in allowed


# =============================================================================
# MRP Requirement Status
# =============================================================================

class MRPRequirementStatus(str, Enum):
    """Classification of a single requirement row"""
    SHORTAGE = "shortage"
    SUFFICIENT = "sufficient"
