"""
Recipient list parsing and sending-account rotation.

Accepted recipient formats (one per line or separated by ';'):
- Jane Doe <jane@acme.com>
- jane@acme.com, Jane Doe
- jane@acme.com Jane Doe
- jane@acme.com
"""

import re
from email.utils import formataddr, getaddresses

from onehub.utils.validation import is_valid_email

ANGLE_RE = re.compile(r"^(.*?)<\s*([^>]+?)\s*>\s*$")
ENTRY_SPLIT_RE = re.compile(r"[\n;]+")


def parse_single_email(entry: str) -> dict | None:
    """Parse one recipient entry into {email, name}; None if no valid address."""
    entry = entry.strip().strip(",").strip()
    if not entry:
        return None

    m = ANGLE_RE.match(entry)
    if m:
        name = m.group(1).strip().strip('"').strip() or None
        email = m.group(2).strip()
    elif "," in entry:
        email, _, name = entry.partition(",")
        email, name = email.strip(), name.strip() or None
    else:
        parts = entry.split()
        email = next((p for p in parts if "@" in p), "")
        rest = [p for p in parts if p != email]
        name = " ".join(rest) or None

    email = email.lower()
    if not is_valid_email(email):
        return None
    return {"email": email, "name": name}


def _address_entries(chunk: str) -> list[str]:
    """Split a line holding several addresses. Quoted display names keep their commas."""
    pairs = getaddresses([chunk])
    if pairs and all(is_valid_email(address) for _, address in pairs):
        return [formataddr((name, address)) if name else address for name, address in pairs]
    return chunk.split(",")


def parse_email_list(text: str) -> list[dict]:
    """Parse free-form recipient text into a de-duplicated list (case-insensitive)."""
    recipients: list[dict] = []
    seen: set[str] = set()

    for chunk in ENTRY_SPLIT_RE.split(text or ""):
        # "a@x.com, b@y.com" on one line is a list, "a@x.com, Name" is one entry
        entries = _address_entries(chunk) if chunk.count("@") > 1 else [chunk]
        for entry in entries:
            parsed = parse_single_email(entry)
            if parsed is None or parsed["email"] in seen:
                continue
            seen.add(parsed["email"])
            recipients.append(parsed)

    return recipients


def dedupe_recipients(recipients: list[dict]) -> list[dict]:
    """Drop invalid and repeated addresses, keeping first occurrence order."""
    result: list[dict] = []
    seen: set[str] = set()
    for r in recipients:
        email = (r.get("email") or "").strip().lower()
        if not is_valid_email(email) or email in seen:
            continue
        seen.add(email)
        result.append({"email": email, "name": (r.get("name") or "").strip() or None})
    return result


def account_index(position: int, account_count: int, emails_per_account: int | None) -> int:
    """
    Which account sends the recipient at `position`.

    With rotation each account sends `emails_per_account` consecutive emails
    before handing off; without rotation accounts alternate per email.
    """
    if account_count <= 0:
        raise ValueError("At least one email account is required")
    if emails_per_account and emails_per_account > 0:
        return (position // emails_per_account) % account_count
    return position % account_count


def assign_accounts(
    recipients: list[dict],
    account_ids: list[str],
    rotation_enabled: bool,
    emails_per_account: int,
) -> list[str]:
    """Account id for each recipient, in order."""
    per_account = emails_per_account if rotation_enabled else None
    return [account_ids[account_index(i, len(account_ids), per_account)] for i in range(len(recipients))]
