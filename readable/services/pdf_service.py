"""PDF upload validation and text extraction.

Every upload surface and every JSON route that receives a document goes
through the same UploadPolicy.
"""
from __future__ import annotations

import base64
import binascii
import io
import os
import shutil
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import PyPDF2

try:
    import fitz  # PyMuPDF
except ImportError:
    fitz = None

try:
    from PIL import Image
except ImportError:
    Image = None

try:
    import pytesseract
except ImportError:
    pytesseract = None

# Ensure pytesseract can find the tesseract binary
if pytesseract is not None and shutil.which("tesseract") is None:
    for cand in ("/usr/bin/tesseract", "/usr/local/bin/tesseract"):
        if os.path.exists(cand):
            pytesseract.pytesseract.tesseract_cmd = cand
            break

PDF_MIME = "application/pdf"
PDF_MAGIC = b"%PDF"


@dataclass(frozen=True)
class UploadPolicy:
    max_bytes: int
    require_pdf: bool = True

    @classmethod
    def for_mode(cls, cfg: Dict[str, Any], mode: str) -> "UploadPolicy":
        """Build the policy for a mode from app config, applying per-mode overrides."""
        base = cls(max_bytes=int(cfg.get("MAX_UPLOAD_BYTES") or 10 * 1024 * 1024))
        override = (cfg.get("UPLOAD_POLICY_OVERRIDES") or {}).get(mode) or {}
        if not isinstance(override, dict):
            return base
        return cls(
            max_bytes=int(override.get("max_bytes", base.max_bytes)),
            require_pdf=bool(override.get("require_pdf", base.require_pdf)),
        )

    def check(self, data: bytes, content_type: str = PDF_MIME) -> str:
        """Return an error message, or "" when the upload is acceptable."""
        if not data:
            return "The file is empty"
        if len(data) > self.max_bytes:
            mb = self.max_bytes / (1024 * 1024)
            return f"File too large. Please use a PDF smaller than {mb:g}MB"
        if self.require_pdf:
            ctype = (content_type or "").split(";", 1)[0].strip().lower()
            if ctype and ctype not in (PDF_MIME, "application/octet-stream"):
                return "Please upload a PDF file"
            if not data.startswith(PDF_MAGIC):
                return "Please upload a PDF file"
        return ""


def decode_pdf_base64(value: Any) -> Tuple[bytes, str]:
    """Decode a base64 document, tolerating a data: URL prefix."""
    text = (value or "").strip() if isinstance(value, str) else ""
    if not text:
        return b"", "No PDF provided"
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]
    try:
        return base64.b64decode(text, validate=True), ""
    except (binascii.Error, ValueError):
        return b"", "PDF data is not valid base64"


def encode_pdf_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def read_upload(file_storage) -> Tuple[bytes, str]:
    """Read a werkzeug FileStorage into (bytes, content_type)."""
    data = file_storage.read() or b""
    return data, (getattr(file_storage, "mimetype", "") or "")


def extract_pdf_text(data: bytes) -> str:
    reader = PyPDF2.PdfReader(io.BytesIO(data))
    parts: List[str] = []
    for page in reader.pages:
        parts.append(page.extract_text() or "")
    return "\n".join(parts).strip()


def text_is_meaningful(text: str) -> bool:
    s = (text or "").strip()
    if len(s) < 40:
        return False
    alpha = sum(1 for ch in s if ch.isalpha())
    return alpha / max(len(s), 1) >= 0.25


def ocr_ready() -> Tuple[bool, str]:
    if fitz is None:
        return False, "PyMuPDF not available"
    if Image is None:
        return False, "Pillow not available"
    if pytesseract is None:
        return False, "pytesseract not available"
    try:
        pytesseract.get_tesseract_version()
    except Exception as e:
        return False, f"tesseract not available: {e}"
    return True, ""


def ocr_pdf_bytes(data: bytes, max_pages: int = 12) -> Tuple[str, str]:
    ok, msg = ocr_ready()
    if not ok:
        return "", msg
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        return "", f"Could not open PDF for OCR: {e}"

    parts: List[str] = []
    try:
        for i in range(min(len(doc), max_pages)):
            pix = doc.load_page(i).get_pixmap(dpi=220, alpha=False)
            img = Image.open(io.BytesIO(pix.tobytes("png"))).convert("L")
            parts.append(pytesseract.image_to_string(img, config="--psm 6") or "")
    except Exception as e:
        return "", f"OCR failed: {e}"
    finally:
        doc.close()
    return "\n".join(parts).strip(), ""


def extract_text(data: bytes, ocr_fallback: bool = True) -> Tuple[Optional[str], str]:
    """Extract text with PyPDF2, falling back to OCR for scanned documents."""
    try:
        text = extract_pdf_text(data)
    except Exception as e:
        return None, f"Could not read PDF: {e}"

    if text_is_meaningful(text) or not ocr_fallback:
        if not text:
            return None, "No readable text found in PDF"
        return text, ""

    ocr_text, err = ocr_pdf_bytes(data)
    if ocr_text:
        return ocr_text, ""
    if text:
        return text, ""
    return None, err or "No readable text found in PDF"
