"""Datenmodell für eine praktische Prüfung (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel

from config.schema import ExamPeriod


class ExamScore(BaseModel):
    score: Optional[float] = None
    notes: str = ""


class PracticalExamEvaluation(BaseModel):
    """Eine praktische Prüfung pro (Schüler, Prüfungszeitraum)."""

    id: str
    student_id: str
    exam_period: ExamPeriod
    scores: dict[str, dict[str, ExamScore]] = {}
    final_score: Optional[float] = None
