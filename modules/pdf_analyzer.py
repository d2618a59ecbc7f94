"""Page counting for uploaded PDFs."""

from __future__ import annotations

import io
from typing import Dict, Any

from pypdf import PdfReader
from pypdf.errors import PyPdfError

POINTS_PER_INCH = 72


class PDFAnalyzer:
    """
    Reads an uploaded PDF from memory and reports its page count, size,
    encryption flag and first-page size in inches.

    Never raises for a bad document: ``pages`` stays 0 and ``error`` says
    why, and the upload route turns that into a validation error.
    """

    def analyze(self, data: bytes) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "pages": 0,
            "size_kb": round(len(data) / 1024, 2),
            "encrypted": False,
            "page_size": None,
        }

        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                info["encrypted"] = True
                # Owner-password-only PDFs open with an empty user password
                if not reader.decrypt(""):
                    info["error"] = "PDF is password protected"
                    return info

            info["pages"] = len(reader.pages)
            if info["pages"]:
                box = reader.pages[0].mediabox
                info["page_size"] = {
                    "width_in": round(float(box.width) / POINTS_PER_INCH, 2),
                    "height_in": round(float(box.height) / POINTS_PER_INCH, 2),
                }
        except (PyPdfError, ValueError, OSError) as exc:
            info["error"] = f"PDF analysis failed: {exc}"

        return info
