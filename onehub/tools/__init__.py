"""
Tools for OneHub.

- email_server: Client for the bulk email sending server
- groq_llm: Groq chat model access with rate-limit backoff
- pdf_parser: Extract text from JD documents
"""

from onehub.tools.email_server import EmailServerClient
from onehub.tools.groq_llm import complete, create_llm
from onehub.tools.pdf_parser import extract_document_text, parse_pdf

__all__ = ["EmailServerClient", "complete", "create_llm", "extract_document_text", "parse_pdf"]
