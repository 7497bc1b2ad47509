from datetime import date
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class ExamPeriod(str, Enum):
    T1 = "t1"
    T2 = "t2"
    T3 = "t3"
    REC = "rec"


def _parse_iso_day(value: str) -> date:
    parts = value.strip().split("-")
    if len(parts) != 3:
        raise ValueError(f"Ungültiges Datum '{value}' (erwartet YYYY-MM-DD)")
    try:
        year, month, day = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError as e:
        raise ValueError(f"Ungültiges Datum '{value}': {e}") from e


# ─── TRIMESTER (Bewertungszeiträume) ───

class PeriodRange(BaseModel):
    """Ein Bewertungszeitraum (Trimester) als inklusiver Datumsbereich."""
    # Interner Schlüssel, z.B. "t1"
    key: str
    # Anzeigename, z.B. "1er Trimestre"
    name: str
    # Erster Tag im Format "YYYY-MM-DD"
    start: str
    # Letzter Tag im Format "YYYY-MM-DD" (inklusive)
    end: str

    @field_validator("start", "end")
    @classmethod
    def _check_day(cls, v: str) -> str:
        _parse_iso_day(v)
        return v.strip()

    @model_validator(mode='after')
    def _check_order(self):
        if _parse_iso_day(self.start) > _parse_iso_day(self.end):
            raise ValueError(
                f"Trimester '{self.key}': Beginn {self.start} liegt nach Ende {self.end}")
        return self


class ServiceGradeWeights(BaseModel):
    """Gewichtung von Einzel- und Gruppennote in der Servicenote."""
    individual: float = Field(0.6, ge=0.0, le=1.0,
        description="Gewicht der Einzelnote")
    group: float = Field(0.4, ge=0.0, le=1.0,
        description="Gewicht der Gruppennote")


# ─── INSTRUMENTE ───
# Die Quelle eines Instruments ist explizit getaggt (kind), nicht über einen
# String-Schlüssel nachgeschlagen.

class ManualInstrument(BaseModel):
    """Direkt eingetragene Note (z.B. theoretische Prüfung)."""
    kind: Literal["manual"] = "manual"
    key: str
    name: str
    weight: float = Field(ge=0.0)


class ServiceAverageInstrument(BaseModel):
    """Berechnete Servicenote eines Trimesters.

    Ohne explizites ``period`` gilt der Zeitraum, in dem das Instrument steht.
    """
    kind: Literal["service_average"] = "service_average"
    key: str = "servicios"
    name: str = "Servicios prácticos"
    weight: float = Field(ge=0.0)
    period: Optional[str] = None


class ExamInstrument(BaseModel):
    """Abschlussnote einer praktischen Prüfung."""
    kind: Literal["exam"] = "exam"
    key: str
    name: str
    weight: float = Field(ge=0.0)
    exam_period: ExamPeriod


Instrument = Annotated[
    Union[ManualInstrument, ServiceAverageInstrument, ExamInstrument],
    Field(discriminator="kind"),
]


class AcademicPeriod(BaseModel):
    """Ein Bewertungszeitraum mit seinen gewichteten Instrumenten."""
    key: str
    name: str
    instruments: list[Instrument] = Field(default_factory=list)

    @model_validator(mode='after')
    def _unique_keys(self):
        keys = [i.key for i in self.instruments]
        dupes = sorted({k for k in keys if keys.count(k) > 1})
        if dupes:
            raise ValueError(
                f"Zeitraum '{self.key}': doppelte Instrument-Schlüssel {dupes}")
        return self

    @property
    def total_weight(self) -> float:
        return sum(i.weight for i in self.instruments)


# ─── KRITERIEN ───

class BehaviorItem(BaseModel):
    """Ordinales Verhaltenskriterium am Vorbereitungstag (0, 1, 2)."""
    id: str
    label: str


class ScoreCriterion(BaseModel):
    """Ein Bewertungskriterium des Servicetags mit Höchstpunktzahl."""
    label: str
    max_score: float = Field(gt=0)


class EvaluationCriteria(BaseModel):
    """Kriterien für Vorbereitungstag und Servicetag."""
    pre_service_behavior: list[BehaviorItem] = Field(default_factory=list)
    service_day_group: list[ScoreCriterion] = Field(default_factory=list)
    service_day_individual: list[ScoreCriterion] = Field(default_factory=list)

    @property
    def group_max_total(self) -> float:
        return sum(c.max_score for c in self.service_day_group)

    @property
    def individual_max_total(self) -> float:
        return sum(c.max_score for c in self.service_day_individual)


# ─── GESAMT-CONFIG ───

class GradingConfig(BaseModel):
    """Gesamtkonfiguration: Trimester, Gewichte, Instrumente, Kriterien."""
    # Name des Ausbildungsgangs (Kopfzeile Notenübersicht)
    program_name: str = Field("Servicios de Restauración",
        description="Name des Ausbildungsgangs")
    # Schuljahr, z.B. "2025/2026"
    academic_year: str = Field("2025/2026")
    # Trimester in Prüfreihenfolge
    trimesters: list[PeriodRange]
    # Gewichte für Einzel-/Gruppennote
    service_weights: ServiceGradeWeights = Field(default_factory=ServiceGradeWeights)
    # Zeiträume mit gewichteten Instrumenten
    evaluation: list[AcademicPeriod]
    # Bewertungskriterien
    criteria: EvaluationCriteria = Field(default_factory=EvaluationCriteria)
    # Weitere Module (nur Anzeige in der Ficha académica)
    course_modules: list[str] = Field(default_factory=list)

    @model_validator(mode='after')
    def _unique_trimesters(self):
        keys = [t.key for t in self.trimesters]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Doppelte Trimester-Schlüssel: {keys}")
        return self

    def get_period(self, key: str) -> Optional[AcademicPeriod]:
        for p in self.evaluation:
            if p.key == key:
                return p
        return None
