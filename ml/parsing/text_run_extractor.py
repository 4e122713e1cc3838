"""Low-fidelity PDF text recovery from individual text runs"""

import fitz  # PyMuPDF

from backend.app.core.logging import get_logger
from ml.parsing.text_extractor import BaseExtractor, PDF

logger = get_logger(__name__)


class TextRunPdfExtractor(BaseExtractor):
    """
    Last-resort PDF tier

    Walks every span PyMuPDF finds on every page and joins the runs with
    single spaces. Line and column structure is lost; the point is to recover
    *some* text from PDFs whose text layer the native reader rejects.
    """

    method = "text_runs"
    file_types = (PDF,)

    def extract(self, buffer: bytes, file_type: str) -> str:
        runs = []

        with fitz.open(stream=buffer, filetype="pdf") as document:
            for page in document:
                page_dict = page.get_text("dict")
                for block in page_dict.get("blocks", []):
                    for line in block.get("lines", []):
                        for span in line.get("spans", []):
                            run = span.get("text", "").strip()
                            if run:
                                runs.append(run)

        text = " ".join(runs).strip()
        logger.info(f"Recovered {len(text)} characters from {len(runs)} PDF text runs")
        return text
