from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from .types import (
    AppMode,
    DetailedBriefing,
    GrowthSignal,
    KeyPerson,
    Lead,
    LeadResult,
    OutOfContextResult,
    Result,
    Socials,
    TextResult,
)


# ----------------------------
# Utilities
# ----------------------------
def _opt_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    return str(v)


def _str(v: Any, default: str = "") -> str:
    return default if v is None else str(v)


def _number(v: Any) -> float:
    # non-finite values (Infinity, NaN, "inf") read as 0
    if isinstance(v, bool):
        return 0.0
    try:
        n = float(v) if isinstance(v, (int, float)) else float(str(v).strip().rstrip("%"))
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return n if math.isfinite(n) else 0.0


def _str_list(v: Any) -> Optional[List[str]]:
    if v is None:
        return None
    items = v if isinstance(v, list) else [v]
    return [str(x) for x in items if x is not None]


def _dicts(v: Any) -> List[Dict[str, Any]]:
    if not isinstance(v, list):
        return []
    return [x for x in v if isinstance(x, dict)]


def _parse_socials(raw: Any) -> Optional[Socials]:
    if not isinstance(raw, dict):
        return None
    return Socials(
        linkedin=_opt_str(raw.get("linkedin")),
        instagram=_opt_str(raw.get("instagram")),
        facebook=_opt_str(raw.get("facebook")),
        twitter=_opt_str(raw.get("twitter")),
    )


def _parse_briefing(raw: Any) -> Optional[DetailedBriefing]:
    if not isinstance(raw, dict):
        return None
    return DetailedBriefing(
        overview=_str(raw.get("overview")),
        background=_str(raw.get("background")),
        context=_str(raw.get("context")),
    )


def parse_lead(raw: Dict[str, Any]) -> Lead:
    """Map one lead object from the model onto `Lead`. Absent optionals stay None."""
    key_people = None
    if raw.get("keyPeople") is not None:
        key_people = [
            KeyPerson(
                name=_str(p.get("name")),
                role=_str(p.get("role")),
                email=_opt_str(p.get("email")),
                linkedin=_opt_str(p.get("linkedin")),
                instagram=_opt_str(p.get("instagram")),
                phone=_opt_str(p.get("phone")),
            )
            for p in _dicts(raw.get("keyPeople"))
        ]

    growth_signals = None
    if raw.get("growthSignals") is not None:
        growth_signals = [
            GrowthSignal(activity=_str(g.get("activity")), date=_str(g.get("date")))
            for g in _dicts(raw.get("growthSignals"))
        ]

    lead_type = _str(raw.get("type"), "company").strip().lower()

    return Lead(
        name=_str(raw.get("name")).strip(),
        description=_str(raw.get("description")),
        location=_str(raw.get("location")),
        industry=_str(raw.get("industry")),
        website=_opt_str(raw.get("website")),
        email=_opt_str(raw.get("email")),
        phone=_opt_str(raw.get("phone")),
        socials=_parse_socials(raw.get("socials")),
        key_people=key_people,
        growth_signals=growth_signals,
        match_score=_number(raw.get("matchScore")),
        market_heat=_number(raw.get("marketHeat")),
        type=lead_type or "company",
        detailed_briefing=_parse_briefing(raw.get("detailedBriefing")),
    )


def resolve_mode(data: Dict[str, Any]) -> AppMode:
    """
    Uppercase the `mode` tag. Missing, empty or unknown tags fall back to
    LEAD when a non-empty leads list is present, otherwise TEXT.
    """
    raw = data.get("mode")
    tag = str(raw).strip().upper() if raw is not None else ""
    if tag in AppMode.__members__:
        return AppMode(tag)
    leads = data.get("leads")
    if isinstance(leads, list) and leads:
        return AppMode.LEAD
    return AppMode.TEXT


# ----------------------------
# Public API
# ----------------------------
def normalize_result(data: Any, query: str) -> Result:
    """
    Turn salvaged JSON into a typed result and attach the original query.

    The input is assumed to be valid JSON already (see salvage.extract_json).
    A bare top-level array is read as the lead list.
    """
    if isinstance(data, list):
        data = {"leads": data}
    elif not isinstance(data, dict):
        data = {}

    mode = resolve_mode(data)

    if mode is AppMode.LEAD:
        return LeadResult(
            query=query,
            leads=[parse_lead(x) for x in _dicts(data.get("leads"))],
            explanation=_opt_str(data.get("explanation")),
            follow_ups=_str_list(data.get("followUps")),
        )

    if mode is AppMode.TEXT:
        return TextResult(
            query=query,
            summary=_opt_str(data.get("summary")),
            paragraphs=_str_list(data.get("paragraphs")),
        )

    return OutOfContextResult(query=query, message=_opt_str(data.get("outOfContextMessage")))
