"""
Robust JSON parser for LLM output.

Handles the shapes Groq models return in practice:
- Clean JSON
- JSON in ```json blocks
- JSON in ``` blocks (no language tag)
- JSON surrounded by prose
"""

import json
import re
from typing import Any


def extract_json(text: str, expect_array: bool = False) -> dict | list | None:
    """
    Extract JSON from an LLM response using multiple strategies.

    Args:
        text: Raw model response text
        expect_array: If True, prefer a JSON array; otherwise an object

    Returns:
        Parsed JSON (dict or list) or None if extraction fails
    """
    if not text or not text.strip():
        return None

    for strategy in (_try_clean_json, _try_fenced_json, _try_fenced_any, _try_find_json_bounds):
        result = strategy(text, expect_array)
        if result is None:
            continue
        if expect_array == isinstance(result, list):
            return result
        # Type mismatch but valid JSON - might still be useful
        if result:
            return result

    return None


def _prefer_shape(candidates: list[str], expect_array: bool) -> dict | list | None:
    """Parse each candidate; the first of the expected shape wins, else the first valid one."""
    fallback = None
    for candidate in candidates:
        try:
            parsed = json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue
        if expect_array == isinstance(parsed, list):
            return parsed
        if fallback is None:
            fallback = parsed
    return fallback


def _try_clean_json(text: str, expect_array: bool) -> dict | list | None:
    return _prefer_shape([text], expect_array)


def _try_fenced_json(text: str, expect_array: bool) -> dict | list | None:
    """Extract JSON from ```json ... ``` blocks."""
    return _prefer_shape(re.findall(r"```json\s*([\s\S]*?)\s*```", text, re.IGNORECASE), expect_array)


def _try_fenced_any(text: str, expect_array: bool) -> dict | list | None:
    """Extract JSON from ``` ... ``` blocks (any language or none)."""
    return _prefer_shape(re.findall(r"```(?:\w*)\s*([\s\S]*?)\s*```", text), expect_array)


def _try_find_json_bounds(text: str, expect_array: bool) -> dict | list | None:
    """Find JSON by matching brackets/braces, preferred shape first."""
    pairs = [("[", "]"), ("{", "}")] if expect_array else [("{", "}"), ("[", "]")]

    for open_char, close_char in pairs:
        start = text.find(open_char)
        while start != -1:
            candidate = _extract_balanced(text, start, open_char, close_char)
            if candidate:
                try:
                    return json.loads(candidate)
                except json.JSONDecodeError:
                    pass
            start = text.find(open_char, start + 1)

    return None


def _extract_balanced(text: str, start: int, open_char: str, close_char: str) -> str | None:
    """Extract balanced brackets/braces starting from position."""
    depth = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(text[start:], start):
        if escape_next:
            escape_next = False
            continue

        if char == "\\" and in_string:
            escape_next = True
            continue

        if char == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return None


def _clean_str(value: Any) -> str | None:
    """Strip strings; map empty / 'null' / 'n/a' to None."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v).strip() for v in value if str(v).strip())
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a", "unknown"):
        return None
    return text


def _confidence(value: Any) -> int:
    if isinstance(value, (int, float)):
        return max(0, min(100, int(value)))
    if isinstance(value, str):
        m = re.search(r"\d+", value)
        if m:
            return max(0, min(100, int(m.group())))
    return 0


def parse_job_email_response(text: str) -> dict:
    """
    Parse the job-email classifier response.

    Returns dict with: is_job_email, title, company, location, salary,
    skills, job_type, description, confidence
    """
    data = extract_json(text)
    if not isinstance(data, dict):
        return {"is_job_email": False, "confidence": 0}

    is_job = data.get("isJobEmail", data.get("is_job_email", False))
    if isinstance(is_job, str):
        is_job = is_job.strip().lower() in ("true", "yes", "1")

    return {
        "is_job_email": bool(is_job),
        "title": _clean_str(data.get("title") or data.get("jobTitle")),
        "company": _clean_str(data.get("company") or data.get("companyName")),
        "location": _clean_str(data.get("location")),
        "salary": _clean_str(data.get("salary") or data.get("rate")),
        "skills": _clean_str(data.get("skills") or data.get("requirements")),
        "job_type": _clean_str(data.get("jobType") or data.get("type")),
        "description": _clean_str(data.get("description")),
        "confidence": _confidence(data.get("confidence", data.get("confidenceScore"))),
    }


def parse_field_response(text: str, fields: list[str]) -> dict[str, str | None]:
    """Pick the requested string fields out of a JSON response (None when absent)."""
    data = extract_json(text)
    if not isinstance(data, dict):
        return {f: None for f in fields}
    return {f: _clean_str(data.get(f)) for f in fields}
