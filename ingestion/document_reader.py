"""
ingestion/document_reader.py
SoF Document Reader
Reads Statement of Fact text from PDFs (page-by-page, PyMuPDF) or plain-text files.
"""
import re
from dataclasses import dataclass, field
from pathlib import Path

from monitoring import get_logger

log = get_logger(__name__)

TEXT_SUFFIXES = {".txt", ".text", ".csv", ".md", ""}


@dataclass
class SofDocument:
    source_path: str
    total_pages: int
    pages: list[str]
    full_text: str
    metadata: dict = field(default_factory=dict)


class SofDocumentReader:
    """
    Loads SoF content for extraction.
    Scanned PDFs without a text layer come back empty; OCR is not attempted.
    """

    def read(self, path: str | Path) -> SofDocument:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"SoF file not found: {path}")

        suffix = path.suffix.lower()
        if suffix == ".pdf":
            pages = self._read_pdf(path)
        elif suffix in TEXT_SUFFIXES:
            pages = [self._clean(path.read_text(encoding="utf-8", errors="replace"))]
        else:
            raise ValueError(f"Unsupported SoF file type: {path.suffix}")

        full_text = "\n\n".join(p for p in pages if p)
        log.info("SoF document read", path=str(path), pages=len(pages), chars=len(full_text))
        if not full_text:
            log.warning("SoF document has no extractable text", path=str(path))

        return SofDocument(
            source_path=str(path),
            total_pages=len(pages),
            pages=pages,
            full_text=full_text,
            metadata={"filename": path.name, "total_pages": len(pages)},
        )

    def _read_pdf(self, path: Path) -> list[str]:
        import fitz  # PyMuPDF

        doc = fitz.open(str(path))
        try:
            return [self._clean(doc[idx].get_text("text")) for idx in range(len(doc))]
        finally:
            doc.close()

    @staticmethod
    def _clean(text: str) -> str:
        text = re.sub(r"\.{4,}", " ", text)
        text = re.sub(r"_{4,}", " ", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        text = re.sub(r"[ \t]{2,}", " ", text)
        return text.strip()
