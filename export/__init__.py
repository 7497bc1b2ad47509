"""Export-Modul: PDF-Dokumente (fpdf2) und Notenübersicht (openpyxl)."""

from export.composer import CompositionError, DocumentKind, compose_document
from export.batch import BatchReport, DocumentRequest, ReportService
from export.excel_export import GradebookExcelExporter
from export.pdf_renderer import render_pdf, save_pdf
from export.view_model import ReportViewModelBuilder

__all__ = [
    "CompositionError",
    "DocumentKind",
    "compose_document",
    "BatchReport",
    "DocumentRequest",
    "ReportService",
    "GradebookExcelExporter",
    "render_pdf",
    "save_pdf",
    "ReportViewModelBuilder",
]
