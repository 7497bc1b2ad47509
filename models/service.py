"""Datenmodelle für einen Praxisservice und seine Rollen (Pydantic v2)."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ServiceArea(str, Enum):
    COMEDOR = "comedor"
    TAKEAWAY = "takeaway"

    @property
    def label(self) -> str:
        return {"comedor": "Comedor", "takeaway": "Takeaway"}[self.value]


class RoleType(str, Enum):
    LEADER = "leader"
    SECONDARY = "secondary"


class ServiceRole(BaseModel):
    """Ein Posten im Service (z.B. Jefe de sala)."""

    id: str
    name: str
    color: str = "DDDDDD"
    type: RoleType = RoleType.SECONDARY


class Elaboration(BaseModel):
    """Ein Gericht, das eine Gruppe im Service zubereitet."""

    id: str
    name: str
    responsible_group_id: Optional[str] = None


class StudentRoleAssignment(BaseModel):
    student_id: str
    role_id: Optional[str] = None


class AreaGroups(BaseModel):
    """Gruppen-IDs je Bereich."""

    comedor: list[str] = []
    takeaway: list[str] = []

    def for_area(self, area: ServiceArea) -> list[str]:
        return getattr(self, area.value)

    @property
    def all_ids(self) -> list[str]:
        """Alle beteiligten Gruppen, Reihenfolge erhalten, ohne Dubletten."""
        seen: list[str] = []
        for gid in self.comedor + self.takeaway:
            if gid not in seen:
                seen.append(gid)
        return seen


class AreaElaborations(BaseModel):
    comedor: list[Elaboration] = []
    takeaway: list[Elaboration] = []

    def for_area(self, area: ServiceArea) -> list[Elaboration]:
        return getattr(self, area.value)


class Service(BaseModel):
    """Ein geplanter Praxisservice."""

    id: str
    name: str
    date: str                     # "YYYY-MM-DD"
    is_locked: bool = False
    assigned_groups: AreaGroups = AreaGroups()
    elaborations: AreaElaborations = AreaElaborations()
    student_roles: list[StudentRoleAssignment] = []
    evaluation_id: Optional[str] = None

    def role_id_for(self, student_id: str) -> Optional[str]:
        for assignment in self.student_roles:
            if assignment.student_id == student_id:
                return assignment.role_id
        return None
