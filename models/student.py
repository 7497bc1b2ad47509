"""Datenmodell für einen Schüler (Pydantic v2)."""

from pydantic import BaseModel


class Student(BaseModel):
    """Repräsentiert einen Schüler des Ausbildungsgangs."""

    id: str
    nre: str = ""                 # Número Regional de Estudiante
    expediente: str = ""          # Aktenzeichen
    nombre: str
    apellido1: str
    apellido2: str = ""
    grupo: str = ""               # Klasse, z.B. "1º SR"
    subgrupo: str = ""
    fecha_nacimiento: str = ""
    telefono: str = ""
    email_personal: str = ""
    email_oficial: str = ""
    foto_url: str = ""            # Data-URL oder leer

    @property
    def full_name(self) -> str:
        """"Apellido1 Apellido2, Nombre" wie in allen Listen."""
        surnames = f"{self.apellido1} {self.apellido2}".strip()
        return f"{surnames}, {self.nombre}"

    @property
    def display_name(self) -> str:
        """"Nombre Apellido1 Apellido2" für Überschriften."""
        return " ".join(p for p in (self.nombre, self.apellido1, self.apellido2) if p)

    @property
    def short_name(self) -> str:
        """Spaltenkopf in Kreuztabellen: "Apellido1 N."."""
        initial = f" {self.nombre[0]}." if self.nombre else ""
        return f"{self.apellido1}{initial}"

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (self.apellido1.lower(), self.apellido2.lower(), self.nombre.lower())
