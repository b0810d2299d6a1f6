"""
Conversation state for one user session.

`ResearchSession` owns the active thread, the rolling chat-history window
sent back to the model, the history log of finished searches and the saved
lead vault. All mutation goes through its transitions:

    submit / begin -> complete | fail
    start_new_chat, restore, save_lead

Only one request may be in flight. A ticket issued by `begin` identifies the
thread entry it will resolve and the thread generation it belongs to, so a
response that arrives after `start_new_chat` or `restore` is dropped instead
of patching an unrelated thread.
"""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Optional, Sequence, Set

from . import completion
from .config import Settings
from .normalize import normalize_result
from .salvage import MalformedJson, NoStructureFound, extract_json
from .types import (
    AppMode,
    ChatTurn,
    HistoryItem,
    Lead,
    LeadResult,
    OutOfContextResult,
    Result,
    SavedLead,
    ThreadEntry,
    View,
)
from .usage import UsageSink

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "I couldn't complete that search. Please try again."
SUMMARY_PREVIEW_CHARS = 50

SendFn = Callable[[str, Sequence[ChatTurn]], str]


@dataclass(frozen=True)
class Ticket:
    generation: int
    index: int
    query: str
    is_first: bool


# ----------------------------
# Pure helpers
# ----------------------------
def failure_kind(exc: BaseException) -> str:
    if isinstance(exc, NoStructureFound):
        return "NoStructureFound"
    if isinstance(exc, MalformedJson):
        return "MalformedJson"
    return "TransportFailure"


def lead_count(result: Result) -> int:
    return len(result.leads) if isinstance(result, LeadResult) else 0


def model_summary(result: Result) -> str:
    """Short model turn for the history window: lead count, or the start of the summary."""
    if result.mode is AppMode.LEAD:
        return f"Found {lead_count(result)} matches."
    summary = getattr(result, "summary", None)
    return summary[:SUMMARY_PREVIEW_CHARS] if summary else "Complete."


def append_exchange(window: Sequence[ChatTurn], query: str, result: Result, limit: int) -> List[ChatTurn]:
    """New window with one user/model exchange appended, keeping the last `limit` turns."""
    turns = list(window) + [ChatTurn("user", query), ChatTurn("model", model_summary(result))]
    if limit <= 0:
        return []
    return turns[-limit:]


def retry_result(query: str) -> OutOfContextResult:
    return OutOfContextResult(query=query, message=RETRY_MESSAGE)


# ----------------------------
# Session
# ----------------------------
class ResearchSession:
    def __init__(
        self,
        send: Optional[SendFn] = None,
        usage: Optional[UsageSink] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or Settings()
        self._send: SendFn = send or partial(completion.send, settings=self.settings)
        self._usage = usage
        self._clock = clock

        self.view: View = View.HOME
        self.thread: List[ThreadEntry] = []
        self.chat_history: List[ChatTurn] = []
        self.history: List[HistoryItem] = []
        self.saved_leads: List[SavedLead] = []
        self.expanded_contexts: Set[int] = set()
        self.user_agent = ""

        self._generation = 0
        self._in_flight: Optional[Ticket] = None

    # ---------- queries ----------
    @property
    def is_loading(self) -> bool:
        return self._in_flight is not None

    def can_submit(self, query: str) -> bool:
        return bool(query and query.strip()) and not self.is_loading

    def is_saved(self, name: str) -> bool:
        return any(s.name == name for s in self.saved_leads)

    def is_context_expanded(self, index: int) -> bool:
        return index in self.expanded_contexts

    def follow_ups_for(self, index: int) -> List[str]:
        """Follow-up suggestions are offered for the latest lead answer only."""
        if index != len(self.thread) - 1:
            return []
        result = self.thread[index].result
        if isinstance(result, LeadResult) and result.follow_ups:
            return list(result.follow_ups)
        return []

    # ---------- request lifecycle ----------
    def begin(self, query: str) -> Optional[Ticket]:
        """Append a loading entry for `query`. Returns None when submission is blocked."""
        if not self.can_submit(query):
            logger.debug("Submission ignored (blank query or request in flight)")
            return None

        is_first = not self.thread
        self.thread.append(ThreadEntry(query=query))
        self.view = View.HOME
        ticket = Ticket(self._generation, len(self.thread) - 1, query, is_first)
        self._in_flight = ticket
        return ticket

    def complete(self, ticket: Ticket, result: Result) -> bool:
        """Resolve the ticket's entry. Returns False when the ticket is stale."""
        if not self._release(ticket):
            return False

        entry = self.thread[ticket.index]
        entry.result = result
        entry.is_loading = False

        self._track(ticket.query, result)

        if ticket.is_first:
            self.history.insert(
                0,
                HistoryItem(
                    id=uuid.uuid4().hex[:7],
                    query=ticket.query,
                    timestamp=self._clock(),
                    result=result,
                ),
            )

        self.chat_history = append_exchange(
            self.chat_history, ticket.query, result, self.settings.history_window
        )
        return True

    def fail(self, ticket: Ticket, exc: BaseException) -> bool:
        """Resolve the ticket's entry with the generic retry message."""
        kind = failure_kind(exc)
        logger.warning("Search failed (%s) for query %r", kind, ticket.query, exc_info=exc)
        if not self._release(ticket):
            return False

        entry = self.thread[ticket.index]
        entry.result = retry_result(ticket.query)
        entry.is_loading = False
        entry.error_kind = kind
        return True

    def submit(self, query: str) -> Optional[ThreadEntry]:
        """
        Run one search end to end: send -> salvage -> normalize -> resolve.
        Returns the resolved entry, or None if the submission was ignored or
        the thread was reset while the request ran.
        """
        ticket = self.begin(query)
        if ticket is None:
            return None

        logger.info("Search submitted: %r (turn %d)", query, ticket.index + 1)
        try:
            raw = self._send(ticket.query, list(self.chat_history))
            result = normalize_result(extract_json(raw), ticket.query)
        except Exception as exc:
            resolved = self.fail(ticket, exc)
        else:
            resolved = self.complete(ticket, result)

        return self.thread[ticket.index] if resolved else None

    # ---------- other transitions ----------
    def start_new_chat(self) -> None:
        """Clear thread and history window. History log and vault are kept."""
        self._generation += 1
        self.thread = []
        self.chat_history = []
        self.expanded_contexts = set()
        self.view = View.HOME

    def restore(self, item: HistoryItem) -> None:
        """
        Replace the thread with the snapshot of a past search. The window is
        not rebuilt, so follow-ups on a restored thread start without context.
        """
        self._generation += 1
        self.thread = [ThreadEntry(query=item.query, result=item.result, is_loading=False)]
        self.chat_history = []
        self.expanded_contexts = set()
        self.view = View.HOME

    def save_lead(self, lead: Lead) -> bool:
        """Add `lead` to the vault unless one with the same name is there. First save wins."""
        if self.is_saved(lead.name):
            return False
        self.saved_leads.insert(0, SavedLead(lead=lead, saved_at=self._clock()))
        return True

    def toggle_context(self, index: int) -> None:
        if index in self.expanded_contexts:
            self.expanded_contexts.discard(index)
        else:
            self.expanded_contexts.add(index)

    def show_saved(self) -> None:
        self.view = View.SAVED_LIST

    def show_home(self) -> None:
        self.view = View.HOME

    # ---------- internals ----------
    def _release(self, ticket: Ticket) -> bool:
        """Free the in-flight slot; True if the ticket still targets the live thread."""
        if self._in_flight == ticket:
            self._in_flight = None
        if ticket.generation != self._generation:
            logger.info("Discarding stale response for %r (thread was reset)", ticket.query)
            return False
        return True

    def _track(self, query: str, result: Result) -> None:
        if self._usage is None:
            return
        try:
            self._usage.track(query, result.mode.value, lead_count(result), self.user_agent)
        except Exception:
            logger.warning("Usage tracking could not be queued", exc_info=True)
