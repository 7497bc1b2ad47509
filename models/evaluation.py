"""Datenmodelle für die Bewertung eines Service (Pydantic v2).

Ein Punktevektor enthält je Kriterium eine Zahl oder ``None`` (noch nicht
bewertet).
"""

from typing import Optional

from pydantic import BaseModel


class PreServiceIndividualEvaluation(BaseModel):
    """Checkliste + Verhalten eines Schülers am Vorbereitungstag."""

    attendance: bool = True
    has_fichas: bool = True
    has_uniforme: bool = True
    has_material: bool = True
    behavior_scores: dict[str, Optional[int]] = {}   # 2 = ++, 1 = +, 0 = -
    observations: str = ""


class PreServiceDayEvaluation(BaseModel):
    name: Optional[str] = None
    group_observations: dict[str, str] = {}
    individual_evaluations: dict[str, PreServiceIndividualEvaluation] = {}


class ServiceDayGroupScores(BaseModel):
    scores: list[Optional[float]] = []
    observations: str = ""

    @property
    def has_scores(self) -> bool:
        return any(s is not None for s in self.scores)

    @property
    def total(self) -> float:
        return sum(s for s in self.scores if s is not None)


class ServiceDayIndividualScores(BaseModel):
    attendance: bool = False
    scores: list[Optional[float]] = []
    observations: str = ""

    @property
    def has_scores(self) -> bool:
        return any(s is not None for s in self.scores)

    @property
    def total(self) -> float:
        return sum(s for s in self.scores if s is not None)

    @property
    def counts(self) -> bool:
        """Nur anwesende Schüler mit mindestens einer Note zählen."""
        return self.attendance and self.has_scores


class ServiceDayEvaluation(BaseModel):
    group_scores: dict[str, ServiceDayGroupScores] = {}
    individual_scores: dict[str, ServiceDayIndividualScores] = {}


class ServiceEvaluation(BaseModel):
    """Bewertung eines Service: Vorbereitungstage (nach Datum) + Servicetag."""

    id: str
    service_id: str
    pre_service: dict[str, PreServiceDayEvaluation] = {}
    service_day: ServiceDayEvaluation = ServiceDayEvaluation()

    def latest_pre_service_date(self) -> Optional[str]:
        """Jüngster Vorbereitungstag (ISO-Datumsschlüssel sortieren lexikalisch)."""
        if not self.pre_service:
            return None
        return max(self.pre_service)
