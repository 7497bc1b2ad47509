"""Anwesenheitsvorfälle und Anzeige-Stammdaten (Pydantic v2)."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class EntryExitType(str, Enum):
    SALIDA_ANTICIPADA = "Salida Anticipada"
    LLEGADA_TARDE = "Llegada Tarde"


class EntryExitRecord(BaseModel):
    """Verfrühtes Gehen oder Zuspätkommen eines Schülers."""

    id: str
    student_id: str
    date: str                 # "DD/MM/YYYY" (Eingabemaske) oder "YYYY-MM-DD"
    type: EntryExitType
    reason: str = ""


class TeacherData(BaseModel):
    name: str = ""
    email: str = ""
    logo: Optional[str] = None     # Data-URL


class InstituteData(BaseModel):
    name: str = ""
    address: str = ""
    cif: str = ""
    logo: Optional[str] = None     # Data-URL
