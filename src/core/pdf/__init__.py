from src.core.pdf.layout import PageGeometry, TableColumn, TableLayout, layout_table
from src.core.pdf.service import PDFService, pdf_service

__all__ = [
    "pdf_service",
    "PDFService",
    "PageGeometry",
    "TableColumn",
    "TableLayout",
    "layout_table",
]
