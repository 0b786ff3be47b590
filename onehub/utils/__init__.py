"""Utility modules."""

from .parser import extract_json, parse_field_response, parse_job_email_response

__all__ = ["extract_json", "parse_field_response", "parse_job_email_response"]
