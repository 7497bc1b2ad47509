"""Planning del servicio: Leitungsposten, Bereiche, Gruppen, Gerichte und Posten."""

from datetime import date
from typing import Optional

from models.service import ServiceArea
from export.composer import BaseComposer, Cell, Column, DocumentKind
from export.helpers import COLORS, format_date_es, safe_file_name
from export.measure import TextMeasurer
from export.view_model import GroupRoster, ReportViewModel


class PlanningComposer(BaseComposer):
    kind = DocumentKind.PLANNING
    orientation = "L"

    def __init__(self, vm: ReportViewModel, generated_on: date,
                 measurer: Optional[TextMeasurer] = None):
        super().__init__(vm.letterhead, generated_on, measurer)
        self.vm = vm

    def title(self) -> str:
        return f"Planning del Servicio: {self.vm.service.name}"

    def file_name(self) -> str:
        return safe_file_name("Planning", self.vm.service.name)

    # ─── Inhalt ───

    def build_content(self) -> None:
        self._summary()
        self._leaders()
        for area in ServiceArea:
            self._area_section(area)

    def _summary(self) -> None:
        service = self.vm.service
        group_names = {
            area: ", ".join(self.vm.group_name(gid) for gid in service.assigned_groups.for_area(area))
            for area in ServiceArea
        }
        self.key_value_table(
            [
                ("Servicio", service.name),
                ("Fecha", format_date_es(service.date)),
                ("Grupos Comedor", group_names[ServiceArea.COMEDOR] or "Ninguno"),
                ("Grupos Takeaway", group_names[ServiceArea.TAKEAWAY] or "Ninguno"),
                ("Alumnos participantes", str(len(self.vm.participants))),
            ],
            label_width=60, value_width=120,
        )

    def _leaders(self) -> None:
        self.heading("Puestos de responsabilidad")
        columns = [
            Column("Puesto", 70, "L"),
            Column("Alumno", 120, "L"),
            Column("Grupo", 77, "L"),
        ]
        rows = []
        for student, role in self.vm.leaders():
            group = self.vm.group_for(student.id)
            rows.append([
                Cell(role.name, fill=role.color, bold=True),
                student.full_name,
                group.name if group else "N/A",
            ])
        if not rows:
            rows.append(["-", "Sin puestos de responsabilidad asignados", "-"])
        self.table(columns, rows, header_fill=COLORS["leaders"], zebra=True)

    def _area_section(self, area: ServiceArea) -> None:
        service = self.vm.service
        rosters = [r for r in self.vm.groups if area in r.areas]
        elaborations = service.elaborations.for_area(area)

        self.spacer(4)
        self.band(area.label.upper(), fill=COLORS["header"], text_color=(255, 255, 255),
                  keep_with_next=20)
        if not rosters and not elaborations:
            self.paragraph("Ningún grupo asignado.", style="I")
            return

        for roster in rosters:
            self._group_block(area, roster)

        roster_ids = {r.group.id for r in rosters}
        orphans = [e for e in elaborations if e.responsible_group_id not in roster_ids]
        if orphans:
            self.heading("Otras elaboraciones", size=9)
            self.table(
                [Column("Elaboración", 180, "L"), Column("Grupo responsable", 87, "L")],
                [[e.name, self.vm.group_name(e.responsible_group_id)] for e in orphans],
                header_fill=COLORS["header"],
            )

    def _group_block(self, area: ServiceArea, roster: GroupRoster) -> None:
        """Gerichte und Posten einer Gruppe im Bereich."""
        self.heading(f"Grupo: {roster.group.name}", size=10)

        elaborations = [
            e for e in self.vm.service.elaborations.for_area(area)
            if e.responsible_group_id == roster.group.id
        ]
        self.table(
            [Column(f"Elaboraciones {area.label}", self.content_width, "L")],
            [[e.name] for e in elaborations] or [["-"]],
            header_fill=COLORS["header"],
            zebra=True,
            keep_together=True,
        )

        rows = []
        for student in roster.students:
            role = self.vm.role_for(student.id)
            role_cell = Cell(role.name, fill=role.color) if role else Cell("Sin asignar")
            rows.append([student.full_name, role_cell])
        self.spacer(2)
        self.table(
            [Column("Alumno", 150, "L"), Column("Puesto asignado", 117, "L")],
            rows or [["-", "-"]],
            header_fill=COLORS["roles"],
            zebra=True,
            keep_together=True,
        )
