"""
Document text extraction for job descriptions.

Extracts text content from PDF uploads using pypdf; plain-text uploads are
decoded as UTF-8.
"""

from io import BytesIO

from langchain_core.tools import tool
from pypdf import PdfReader
from pypdf.errors import PdfReadError


@tool
def parse_pdf(pdf_content: bytes) -> str:
    """
    Extract text from a PDF file.

    Args:
        pdf_content: Raw bytes of the PDF file

    Returns:
        Extracted text content from all pages
    """
    reader = PdfReader(BytesIO(pdf_content))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n\n".join(p for p in pages if p.strip())


def extract_document_text(filename: str, content: bytes) -> str:
    """
    Extract text from an uploaded JD document.

    Raises:
        ValueError: Unsupported file type or unreadable PDF
    """
    name = (filename or "").lower()
    if name.endswith(".pdf"):
        try:
            return parse_pdf.invoke({"pdf_content": content})
        except PdfReadError as e:
            raise ValueError(f"Failed to parse PDF: {e}") from e
    if name.endswith((".txt", ".md", ".eml")):
        return content.decode("utf-8", errors="replace")
    raise ValueError("Only PDF and text files are supported")


def extract_document_text_from_path(file_path: str) -> str:
    """Extract text from a .pdf or .txt file on disk."""
    with open(file_path, "rb") as f:
        return extract_document_text(file_path, f.read())
