from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class AppMode(str, Enum):
    LEAD = "LEAD"
    TEXT = "TEXT"
    OUT_OF_CONTEXT = "OUT_OF_CONTEXT"


class View(str, Enum):
    HOME = "HOME"
    SAVED_LIST = "SAVED_LIST"


# ----------------------------
# Leads
# ----------------------------
@dataclass
class Socials:
    linkedin: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    twitter: Optional[str] = None


@dataclass
class KeyPerson:
    name: str
    role: str = ""
    email: Optional[str] = None
    linkedin: Optional[str] = None
    instagram: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class GrowthSignal:
    activity: str
    date: str = ""


@dataclass
class DetailedBriefing:
    overview: str = ""
    background: str = ""
    context: str = ""


@dataclass
class Lead:
    name: str
    description: str = ""
    location: str = ""
    industry: str = ""

    website: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    socials: Optional[Socials] = None
    key_people: Optional[List[KeyPerson]] = None
    growth_signals: Optional[List[GrowthSignal]] = None

    # 0-100 by convention; never clamped, only rounded for display
    match_score: float = 0.0
    market_heat: float = 0.0

    type: str = "company"  # person | company
    detailed_briefing: Optional[DetailedBriefing] = None


@dataclass
class SavedLead:
    lead: Lead
    saved_at: float

    @property
    def name(self) -> str:
        return self.lead.name


# ----------------------------
# Results (closed variant, tagged by mode)
# ----------------------------
@dataclass
class LeadResult:
    query: str
    leads: List[Lead] = field(default_factory=list)
    explanation: Optional[str] = None
    follow_ups: Optional[List[str]] = None

    @property
    def mode(self) -> AppMode:
        return AppMode.LEAD


@dataclass
class TextResult:
    query: str
    summary: Optional[str] = None
    paragraphs: Optional[List[str]] = None

    @property
    def mode(self) -> AppMode:
        return AppMode.TEXT


@dataclass
class OutOfContextResult:
    query: str
    message: Optional[str] = None

    @property
    def mode(self) -> AppMode:
        return AppMode.OUT_OF_CONTEXT


Result = Union[LeadResult, TextResult, OutOfContextResult]


# ----------------------------
# Conversation
# ----------------------------
@dataclass
class ThreadEntry:
    query: str
    result: Optional[Result] = None
    is_loading: bool = True
    error_kind: Optional[str] = None  # set only when the request failed


@dataclass
class ChatTurn:
    role: str  # user | model
    text: str

    def to_dict(self) -> dict:
        return {"role": self.role, "parts": [{"text": self.text}]}


@dataclass
class HistoryItem:
    id: str
    query: str
    timestamp: float
    result: Result
