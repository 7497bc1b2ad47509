from config.schema import (
    AcademicPeriod,
    BehaviorItem,
    EvaluationCriteria,
    ExamInstrument,
    ExamPeriod,
    GradingConfig,
    ManualInstrument,
    PeriodRange,
    ScoreCriterion,
    ServiceAverageInstrument,
    ServiceGradeWeights,
)


# Verhaltensstufen am Vorbereitungstag
BEHAVIOR_SYMBOLS: dict[int, str] = {2: "++", 1: "+", 0: "-"}

COURSE_MODULES = [
    "Técnicas de servicio",
    "Bebidas",
    "Inglés profesional",
    "Formación y orientación laboral",
]


def default_trimesters() -> list[PeriodRange]:
    """Trimester des Schuljahres 2025/2026.

    Zwischen den Trimestern liegen die Ferien; Services in den Ferien
    werden keinem Trimester zugeordnet.
    """
    return [
        PeriodRange(key="t1", name="1er Trimestre", start="2025-09-01", end="2025-12-22"),
        PeriodRange(key="t2", name="2º Trimestre", start="2026-01-08", end="2026-04-11"),
        PeriodRange(key="t3", name="3er Trimestre", start="2026-04-22", end="2026-06-24"),
    ]


def default_evaluation() -> list[AcademicPeriod]:
    """Instrumente je Zeitraum.

    Servicenote 40 %, praktische Prüfung 30 %, zwei Theorieprüfungen je 15 %.
    Die Recuperación besteht nur aus Prüfung und Theorie.
    """
    def _trimester(key: str, name: str, exam: ExamPeriod) -> AcademicPeriod:
        return AcademicPeriod(
            key=key,
            name=name,
            instruments=[
                ServiceAverageInstrument(weight=0.4),
                ExamInstrument(key=f"exPractico{exam.value.upper()}",
                               name=f"Examen práctico {exam.value.upper()}",
                               weight=0.3, exam_period=exam),
                ManualInstrument(key="teorico1", name="Examen teórico 1", weight=0.15),
                ManualInstrument(key="teorico2", name="Examen teórico 2", weight=0.15),
            ],
        )

    return [
        _trimester("t1", "1er Trimestre", ExamPeriod.T1),
        _trimester("t2", "2º Trimestre", ExamPeriod.T2),
        _trimester("t3", "3er Trimestre", ExamPeriod.T3),
        AcademicPeriod(
            key="rec",
            name="Recuperación",
            instruments=[
                ExamInstrument(key="exPracticoRec", name="Examen práctico REC",
                               weight=0.5, exam_period=ExamPeriod.REC),
                ManualInstrument(key="teoricoRec", name="Examen teórico REC", weight=0.5),
            ],
        ),
    ]


def default_criteria() -> EvaluationCriteria:
    """Kriterien für Vorbereitungs- und Servicetag (je 10 Punkte gesamt)."""
    return EvaluationCriteria(
        pre_service_behavior=[
            BehaviorItem(id="actitud", label="Actitud"),
            BehaviorItem(id="puntualidad", label="Puntualidad"),
            BehaviorItem(id="trabajoEquipo", label="Trabajo en equipo"),
            BehaviorItem(id="higiene", label="Higiene personal"),
        ],
        service_day_group=[
            ScoreCriterion(label="Mise en place", max_score=2),
            ScoreCriterion(label="Organización del puesto", max_score=2),
            ScoreCriterion(label="Calidad de las elaboraciones", max_score=3),
            ScoreCriterion(label="Tiempos de servicio", max_score=2),
            ScoreCriterion(label="Limpieza final", max_score=1),
        ],
        service_day_individual=[
            ScoreCriterion(label="Uniformidad e higiene", max_score=2),
            ScoreCriterion(label="Técnica", max_score=3),
            ScoreCriterion(label="Atención al cliente", max_score=2),
            ScoreCriterion(label="Actitud", max_score=2),
            ScoreCriterion(label="Limpieza", max_score=1),
        ],
    )


def default_grading_config() -> GradingConfig:
    """Vollständige Standardkonfiguration."""
    return GradingConfig(
        program_name="Servicios de Restauración",
        academic_year="2025/2026",
        trimesters=default_trimesters(),
        service_weights=ServiceGradeWeights(individual=0.6, group=0.4),
        evaluation=default_evaluation(),
        criteria=default_criteria(),
        course_modules=list(COURSE_MODULES),
    )
