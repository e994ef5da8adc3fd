"""
Integrations Module

Provides:
- Collaborator contracts (directory, assignments, status, workload)
- In-memory implementations
"""

from .interfaces import (
    ClinicianSummary,
    AssignmentRequest,
    EntityRef,
    ClinicianDirectory,
    AssignmentService,
    StatusService,
    WorkloadBalancer
)
from .memory import (
    InMemoryClinicianDirectory,
    InMemoryAssignmentService,
    InMemoryStatusService,
    InMemoryWorkloadBalancer
)

__all__ = [
    # Contracts
    "ClinicianSummary",
    "AssignmentRequest",
    "EntityRef",
    "ClinicianDirectory",
    "AssignmentService",
    "StatusService",
    "WorkloadBalancer",
    # In-memory
    "InMemoryClinicianDirectory",
    "InMemoryAssignmentService",
    "InMemoryStatusService",
    "InMemoryWorkloadBalancer"
]
