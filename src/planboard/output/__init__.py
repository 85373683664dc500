"""Output generation for planning boards (text, PDF)."""

from planboard.output.pdf_generator import PDFGenerator
from planboard.output.report_generator import ReportGenerator

__all__ = [
    "PDFGenerator",
    "ReportGenerator",
]
