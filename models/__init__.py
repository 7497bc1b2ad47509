from models.student import Student
from models.practice_group import PracticeGroup, find_practice_group
from models.service import (
    AreaElaborations, AreaGroups, Elaboration, RoleType, Service, ServiceArea,
    ServiceRole, StudentRoleAssignment,
)
from models.evaluation import (
    PreServiceDayEvaluation, PreServiceIndividualEvaluation, ServiceDayEvaluation,
    ServiceDayGroupScores, ServiceDayIndividualScores, ServiceEvaluation,
)
from models.exam import ExamScore, PracticalExamEvaluation
from models.records import EntryExitRecord, EntryExitType, InstituteData, TeacherData
from models.practice_data import GradeValue, PracticeData, ValidationReport

__all__ = [
    "Student",
    "PracticeGroup",
    "find_practice_group",
    "AreaElaborations",
    "AreaGroups",
    "Elaboration",
    "RoleType",
    "Service",
    "ServiceArea",
    "ServiceRole",
    "StudentRoleAssignment",
    "PreServiceDayEvaluation",
    "PreServiceIndividualEvaluation",
    "ServiceDayEvaluation",
    "ServiceDayGroupScores",
    "ServiceDayIndividualScores",
    "ServiceEvaluation",
    "ExamScore",
    "PracticalExamEvaluation",
    "EntryExitRecord",
    "EntryExitType",
    "InstituteData",
    "TeacherData",
    "GradeValue",
    "PracticeData",
    "ValidationReport",
]
