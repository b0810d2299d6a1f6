from __future__ import annotations

import re
from typing import List, Optional, Tuple

from .types import KeyPerson, Lead

SUGGESTIONS = [
    "High-growth startups",
    "Luxury retail owners",
    "Seed stage founders",
    "Boutique design teams",
]


# ----------------------------
# Contact actions
# ----------------------------
def contact_url(kind: str, value: Optional[str]) -> Optional[str]:
    """
    URL to open for a contact button: mailto: for Email, tel: for Phone,
    otherwise a web link (https:// is added when the value has no scheme).
    Empty values give None.
    """
    value = (value or "").strip()
    if not value:
        return None
    if kind == "Email":
        return f"mailto:{value}"
    if kind == "Phone":
        return f"tel:{value}"
    return value if value.startswith("http") else f"https://{value}"


def lead_contacts(lead: Lead) -> List[Tuple[str, str]]:
    """(label, url) pairs for the contact buttons of a lead, empty ones skipped."""
    socials = lead.socials
    items = [
        ("Website", lead.website),
        ("Email", lead.email),
        ("Phone", lead.phone),
        ("LinkedIn", socials.linkedin if socials else None),
        ("Instagram", socials.instagram if socials else None),
        ("Twitter", socials.twitter if socials else None),
    ]
    out: List[Tuple[str, str]] = []
    for label, value in items:
        url = contact_url(label, value)
        if url:
            out.append((label, url))
    return out


def person_contacts(person: KeyPerson) -> List[Tuple[str, str]]:
    out: List[Tuple[str, str]] = []
    for label, value in (("LinkedIn", person.linkedin), ("Email", person.email)):
        url = contact_url(label, value)
        if url:
            out.append((label, url))
    return out


# ----------------------------
# Formatting
# ----------------------------
def display_percent(value: float) -> str:
    # scores are never clamped, only rounded; inf and nan show as a dash
    try:
        return f"{round(float(value))}%"
    except (TypeError, ValueError, OverflowError):
        return "—"


def split_markdown_table(text: str) -> Optional[Tuple[List[str], List[List[str]]]]:
    """
    Return (header, rows) when `text` holds a markdown table, else None.
    The separator line (second `|` row) is skipped.
    """
    if not text or "|" not in text or "-|" not in text:
        return None
    rows = [r for r in text.split("\n") if r.strip().startswith("|")]
    if len(rows) <= 2:
        return None

    def cells(row: str) -> List[str]:
        return [c.strip() for c in row.split("|") if c.strip()]

    return cells(rows[0]), [cells(r) for r in rows[2:]]


def strip_emphasis(text: str) -> str:
    """Drop markdown bold/italic markers the model sometimes leaves in prose."""
    text = re.sub(r"\*\*(.*?)\*\*", r"\1", text or "")
    return re.sub(r"\*(.*?)\*", r"\1", text)


def lead_overview(lead: Lead) -> str:
    """Briefing overview, or the short description when the briefing has none."""
    briefing = lead.detailed_briefing
    if briefing and briefing.overview:
        return briefing.overview
    return lead.description
