"""
PDF generation service using WeasyPrint.

Turns the rendered submission document HTML into PDF bytes. The HTML is
produced by the document renderer; this service only rasterizes it.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from weasyprint import HTML  # type: ignore
from weasyprint.text.fonts import FontConfiguration  # type: ignore

logger = logging.getLogger(__name__)


class PDFService:
    """
    Service for converting HTML documents to PDF.

    Relative resource paths in the HTML (fonts, images) are resolved
    against the backend directory.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        # backend/
        self.base_dir = base_dir or Path(__file__).parent.parent.parent

    def html_to_pdf(self, html: str, metadata: Optional[Dict[str, Any]] = None) -> bytes:
        """
        Rasterize an HTML document to PDF.

        Args:
            html: Complete HTML document
            metadata: Optional title, author, subject and creation_date

        Returns:
            PDF file content as bytes

        Raises:
            Exception: If WeasyPrint fails to render the document
        """
        metadata = metadata or {}
        try:
            font_config = FontConfiguration()
            document = HTML(string=html, base_url=str(self.base_dir)).render(font_config=font_config)

            if metadata.get("title"):
                document.metadata.title = metadata["title"]
            if metadata.get("author"):
                document.metadata.authors = [metadata["author"]]
            if metadata.get("subject"):
                document.metadata.description = metadata["subject"]
            document.metadata.generator = "Intake Forms"
            created = metadata.get("creation_date")
            if isinstance(created, datetime):
                document.metadata.created = created.isoformat()

            pdf_bytes = document.write_pdf()
            if pdf_bytes is None:
                raise Exception("PDF generation returned None")

            logger.info(f"PDF generated, size: {len(pdf_bytes)} bytes")
            return pdf_bytes

        except Exception as e:
            logger.exception(f"Error generating PDF: {e}")
            raise
