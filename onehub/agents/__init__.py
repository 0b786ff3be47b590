"""
LLM-assisted agents.

- jd_parser: Rule-based JD extraction with Groq fallback
- job_extractor: Classifies inbound emails and extracts job details
- interview_focus: Generates interview prep focus points
"""

from onehub.agents.jd_parser import parse_jd

__all__ = ["parse_jd"]
