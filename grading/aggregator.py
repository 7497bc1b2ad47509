"""Servicenoten je Schüler und Trimester.

Einzel- und Gruppenpunkte werden pro Service aufsummiert, getrennt je
Trimester gesammelt und erst bei der Reduktion gewichtet.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from config.schema import ServiceGradeWeights
from grading.periods import PeriodClassifier
from models.evaluation import ServiceEvaluation
from models.practice_group import PracticeGroup, find_practice_group
from models.service import Service

logger = logging.getLogger(__name__)


def _mean(values: list[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


@dataclass
class PeriodScores:
    """Gesammelte Summen eines Trimesters (nicht paarweise verknüpft)."""

    individual: list[float] = field(default_factory=list)
    group: list[float] = field(default_factory=list)

    @property
    def individual_average(self) -> Optional[float]:
        return _mean(self.individual)

    @property
    def group_average(self) -> Optional[float]:
        return _mean(self.group)


class GradeAggregator:
    """Faltet Servicebewertungen zu Trimester-Servicenoten."""

    def __init__(self, weights: ServiceGradeWeights, classifier: PeriodClassifier):
        self.weights = weights
        self.classifier = classifier

    def aggregate(
        self,
        student_id: str,
        services: Sequence[Service],
        evaluations: Sequence[ServiceEvaluation],
        groups: Sequence[PracticeGroup],
    ) -> dict[str, PeriodScores]:
        """Sammelt Einzel- und Gruppensummen je Trimester.

        Eine Einzelsumme zählt nur bei Anwesenheit und mindestens einem
        Punktwert. Die Gruppensumme der (ersten) Praxisgruppe zählt bei
        Anwesenheit, sobald die Gruppe mindestens einen Punktwert hat.
        Bewertungen ohne Service oder außerhalb aller Trimester entfallen.
        """
        buckets = {key: PeriodScores() for key in self.classifier.period_keys}
        service_by_id = {s.id: s for s in services}
        group = find_practice_group(student_id, groups)

        for evaluation in evaluations:
            service = service_by_id.get(evaluation.service_id)
            if service is None:
                logger.debug(
                    f"Bewertung {evaluation.id}: Service {evaluation.service_id} unbekannt"
                )
                continue
            period = self.classifier.classify(service.date)
            if period is None:
                logger.debug(
                    f"Service {service.id} ({service.date}) liegt in keinem Trimester"
                )
                continue

            individual = evaluation.service_day.individual_scores.get(student_id)
            if individual is None or not individual.attendance:
                continue
            if individual.has_scores:
                buckets[period].individual.append(individual.total)

            if group is not None:
                group_eval = evaluation.service_day.group_scores.get(group.id)
                if group_eval is not None and group_eval.has_scores:
                    buckets[period].group.append(group_eval.total)

        return buckets

    def combine(self, scores: PeriodScores) -> Optional[float]:
        """Gewichtete Servicenote; fehlt eine Seite, zählt die andere allein."""
        ind = scores.individual_average
        grp = scores.group_average
        if ind is not None and grp is not None:
            return ind * self.weights.individual + grp * self.weights.group
        if ind is not None:
            return ind
        return grp

    def service_averages(
        self,
        student_id: str,
        services: Sequence[Service],
        evaluations: Sequence[ServiceEvaluation],
        groups: Sequence[PracticeGroup],
    ) -> dict[str, Optional[float]]:
        buckets = self.aggregate(student_id, services, evaluations, groups)
        return {key: self.combine(scores) for key, scores in buckets.items()}
