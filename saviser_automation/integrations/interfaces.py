"""
Collaborator Interfaces

Contracts for the services the engine calls out to. Implementations live
in the surrounding clinical service; every call is a suspension point.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Any


@dataclass
class ClinicianSummary:
    """Active clinician with current open-assignment count"""

    id: str
    active_assignment_count: int = 0
    role: str = "doctor"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "active_assignment_count": self.active_assignment_count,
            "role": self.role
        }


@dataclass
class AssignmentRequest:
    """Patient-to-clinician assignment to create"""

    patient_id: str
    clinician_id: str
    reason: str
    priority: str
    automatic: bool = True

    def to_dict(self) -> dict:
        return {
            "patient_id": self.patient_id,
            "clinician_id": self.clinician_id,
            "reason": self.reason,
            "priority": self.priority,
            "automatic": self.automatic
        }


@dataclass(frozen=True)
class EntityRef:
    """Reference to a domain entity, e.g. ("appointment", "A1")"""

    kind: str
    id: str


class ClinicianDirectory(ABC):
    """Roster of clinicians"""

    @abstractmethod
    async def list_active_clinicians(self, role: Optional[str] = None) -> List[ClinicianSummary]:
        """Active clinicians in roster order"""


class AssignmentService(ABC):
    """Creates patient assignments"""

    @abstractmethod
    async def create_assignment(self, request: AssignmentRequest) -> str:
        """Create an assignment and return its id"""


class StatusService(ABC):
    """Updates fields on domain entities"""

    @abstractmethod
    async def set_field(self, entity: EntityRef, field_name: str, value: Any) -> bool:
        """Set a field; False when the update did not happen"""


class WorkloadBalancer(ABC):
    """Rebalancing strategy across the clinician roster"""

    @abstractmethod
    async def rebalance(self, roster: List[ClinicianSummary], criteria: str) -> Dict[str, Any]:
        """Move open assignments between clinicians and summarize what changed"""
