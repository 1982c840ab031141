"""PDF generation service (tabular reports) from HTML templates."""

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from src.core.exceptions import ExportUnavailableError
from src.core.pdf.layout import PageGeometry, TableLayout

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent.parent / "templates" / "pdf"


class PDFService:
    """Generate PDF documents from Jinja2 templates and WeasyPrint."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=True,
        )

    def render_html(
        self,
        template_name: str,
        context: dict,
        layout: TableLayout,
        geometry: PageGeometry | None = None,
    ) -> str:
        """Render the template; pages and rows come from the precomputed layout."""
        template = self._env.get_template(template_name)
        return template.render(layout=layout, geometry=geometry or PageGeometry(), **context)

    def generate_table_pdf(
        self,
        template_name: str,
        context: dict,
        layout: TableLayout,
        geometry: PageGeometry | None = None,
    ) -> bytes:
        """Render template with context and layout and return PDF bytes."""
        try:
            from weasyprint import HTML
        except (OSError, ImportError) as e:
            raise ExportUnavailableError(
                f"PDF generation unavailable (WeasyPrint/system libs). On macOS: brew install pango glib. {e!s}"
            ) from e
        html_content = self.render_html(template_name, context, layout, geometry)
        logger.debug("Rendering %s: %s pages", template_name, len(layout.pages))
        try:
            return HTML(string=html_content).write_pdf()
        except Exception as e:
            raise ExportUnavailableError(str(e)) from e


pdf_service = PDFService()
