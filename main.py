"""
OneHub CRM - CLI Entry Point.

Parse job descriptions from files or pasted text, and follow bulk email
campaigns from the terminal.

Usage:
    python main.py [jd_file]
    python main.py --poll <campaign_id>
"""

import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from onehub.agents.jd_parser import parse_jd
from onehub.db.base import get_session_factory, init_db
from onehub.db.tables import BulkEmailCampaign
from onehub.services.bulk_email import poll_campaign
from onehub.tools.pdf_parser import extract_document_text_from_path

FIELD_LABELS = {
    "job_title": "Job title",
    "hiring_company": "Company",
    "end_client": "End client",
    "key_skills": "Skills",
    "rate": "Rate",
    "work_location_type": "Work type",
    "location": "Location",
    "duration": "Duration",
    "vendor": "Vendor",
    "vendor_contact": "Vendor contact",
    "vendor_phone": "Vendor phone",
    "vendor_email": "Vendor email",
}


def print_parsed(parsed: dict) -> None:
    """Print the extracted JD fields, skipping empty ones."""
    print("-" * 40)
    for key, label in FIELD_LABELS.items():
        value = parsed.get(key)
        if isinstance(value, list):
            value = ", ".join(value)
        if value:
            print(f"{label:>15}: {value}")
    print("-" * 40)


def parse_file(path: Path) -> bool:
    if not path.exists():
        print(f"Not found: {path}")
        return False
    try:
        text = extract_document_text_from_path(str(path))
    except ValueError as e:
        print(f"Error: {e}")
        return False

    print(f"Extracted {len(text)} chars from {path.name}")
    print_parsed(parse_jd(text))
    return True


def read_pasted() -> str:
    """Collect pasted lines until an empty line."""
    lines = []
    while True:
        line = input()
        if not line.strip():
            break
        lines.append(line)
    return "\n".join(lines)


def poll(campaign_id: str) -> int:
    """Follow a campaign until it finishes or the poll times out."""
    try:
        init_db()
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    db = get_session_factory()()
    try:
        campaign = db.get(BulkEmailCampaign, campaign_id)
        if campaign is None:
            print(f"Campaign not found: {campaign_id}")
            return 1
        if not campaign.email_server_campaign_id:
            print(f"Campaign {campaign_id} was not queued (status: {campaign.status})")
            return 1

        def on_progress(snapshot: dict) -> None:
            print(
                f"[{snapshot['status']}] {snapshot['processed']}/{snapshot['total']} "
                f"sent={snapshot['sent']} failed={snapshot['failed']} ({snapshot['progress']}%)"
            )

        result = poll_campaign(db, campaign, on_progress=on_progress)
        if result["timed_out"]:
            print("Timed out waiting for the campaign to finish")
            return 2
        print(f"Campaign {campaign.status}")
        return 0
    finally:
        db.close()


def main() -> int:
    """Run the OneHub CLI."""
    args = sys.argv[1:]
    if args and args[0] == "--poll":
        if len(args) != 2:
            print("Usage: python main.py --poll <campaign_id>")
            return 1
        return poll(args[1])

    print("OneHub JD Parser")
    print("=" * 40)

    if args:
        # Join all args for filenames with spaces
        if not parse_file(Path(" ".join(args))):
            return 1

    print("Commands: /quit, /upload <path>")
    print("Paste a JD and finish with an empty line.")
    print("-" * 40)

    while True:
        try:
            user_input = input("JD: ").strip()
            if not user_input:
                continue

            if user_input.lower() == "/quit":
                break

            if user_input.startswith("/upload "):
                parse_file(Path(user_input[8:].strip()))
                continue

            text = "\n".join([user_input, read_pasted()]).strip()
            print_parsed(parse_jd(text))

        except (KeyboardInterrupt, EOFError):
            break

    print("Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
