"""Datenmodell für eine Praxisgruppe (Pydantic v2)."""

from typing import Optional, Sequence

from pydantic import BaseModel


class PracticeGroup(BaseModel):
    """Eine Praxisgruppe mit geordneter Mitgliederliste."""

    id: str
    name: str
    color: str = "CCCCCC"
    student_ids: list[str] = []

    def has_member(self, student_id: str) -> bool:
        return student_id in self.student_ids


def find_practice_group(
    student_id: str, groups: Sequence[PracticeGroup]
) -> Optional[PracticeGroup]:
    """Erste Gruppe, die den Schüler enthält.

    Mehrfachmitgliedschaft wird von ``PracticeData.validate_snapshot`` als
    Fehler gemeldet; hier gilt deterministisch der erste Treffer.
    """
    for group in groups:
        if group.has_member(student_id):
            return group
    return None
