"""
In-Memory Collaborators

Process-local implementations of the collaborator interfaces, used for
local wiring and tests.
"""

import logging
from typing import Dict, List, Optional, Any

from .interfaces import (
    ClinicianSummary,
    AssignmentRequest,
    EntityRef,
    ClinicianDirectory,
    AssignmentService,
    StatusService,
    WorkloadBalancer
)

logger = logging.getLogger("InMemoryCollaborators")


class InMemoryClinicianDirectory(ClinicianDirectory):
    """Roster held in a list; order is roster order"""

    def __init__(self, clinicians: Optional[List[ClinicianSummary]] = None):
        self._clinicians: List[ClinicianSummary] = list(clinicians or [])
        self._inactive: set = set()

    def add(self, clinician: ClinicianSummary) -> None:
        self._clinicians.append(clinician)

    def deactivate(self, clinician_id: str) -> None:
        self._inactive.add(clinician_id)

    def activate(self, clinician_id: str) -> None:
        self._inactive.discard(clinician_id)

    def get(self, clinician_id: str) -> Optional[ClinicianSummary]:
        for clinician in self._clinicians:
            if clinician.id == clinician_id:
                return clinician
        return None

    async def list_active_clinicians(self, role: Optional[str] = None) -> List[ClinicianSummary]:
        return [
            c for c in self._clinicians
            if c.id not in self._inactive and (role is None or c.role == role)
        ]


class InMemoryAssignmentService(AssignmentService):
    """Records assignments and bumps the clinician's open count"""

    def __init__(self, directory: Optional[InMemoryClinicianDirectory] = None):
        self._directory = directory
        self.assignments: Dict[str, AssignmentRequest] = {}

    async def create_assignment(self, request: AssignmentRequest) -> str:
        assignment_id = f"asg_{len(self.assignments) + 1:04d}"
        self.assignments[assignment_id] = request
        if self._directory is not None:
            clinician = self._directory.get(request.clinician_id)
            if clinician is not None:
                clinician.active_assignment_count += 1
        return assignment_id


class InMemoryStatusService(StatusService):
    """
    Keeps entity fields in a dict.

    In strict mode only entities registered up front can be updated.
    """

    def __init__(self, entities: Optional[Dict[EntityRef, Dict[str, Any]]] = None, strict: bool = False):
        self.entities: Dict[EntityRef, Dict[str, Any]] = dict(entities or {})
        self.strict = strict

    async def set_field(self, entity: EntityRef, field_name: str, value: Any) -> bool:
        if entity not in self.entities:
            if self.strict:
                return False
            self.entities[entity] = {}
        self.entities[entity][field_name] = value
        return True


class InMemoryWorkloadBalancer(WorkloadBalancer):
    """Moves open assignments from the busiest to the least busy clinician"""

    async def rebalance(self, roster: List[ClinicianSummary], criteria: str) -> Dict[str, Any]:
        before = {c.id: c.active_assignment_count for c in roster}
        moves = []

        if len(roster) > 1:
            while True:
                busiest = max(roster, key=lambda c: c.active_assignment_count)
                idlest = min(roster, key=lambda c: c.active_assignment_count)
                if busiest.active_assignment_count - idlest.active_assignment_count <= 1:
                    break
                busiest.active_assignment_count -= 1
                idlest.active_assignment_count += 1
                moves.append({"from": busiest.id, "to": idlest.id})

        logger.debug("Rebalanced %d assignment(s) using %s", len(moves), criteria)
        return {
            "criteria": criteria,
            "moved": len(moves),
            "moves": moves,
            "before": before,
            "after": {c.id: c.active_assignment_count for c in roster}
        }
