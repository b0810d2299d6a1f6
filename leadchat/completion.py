import json
import logging
from typing import Any, Dict, Optional, Sequence

from openai import OpenAI

from .config import Settings
from .types import ChatTurn

logger = logging.getLogger(__name__)

_client: Optional[OpenAI] = None
_client_key: Optional[tuple] = None


SYSTEM_INSTRUCTION = """
You are a professional research assistant providing high-quality business leads.
Use clear, natural human language.

STRICT RULES ON OUTPUT:
- NEVER use AI jargon, intelligence buzzwords, or technical system language.
- NEVER output raw markdown symbols like **asterisks** or double quotes in the summary text.
- Use natural text formatting.
- In TEXT mode, if comparing data, render clean Markdown tables.
- If the request has nothing to do with finding people, companies or market research,
  answer in OUT_OF_CONTEXT mode with a short outOfContextMessage.

LEAD QUANTITY RULE:
- In LEAD mode, return AT LEAST 7 leads. Target 7-12.
- Use as many tokens as needed for rich, accurate data. Never truncate.

CONTINUITY:
- Respect the chat history. Maintain context for follow-up refinements.

SCORING LOGIC (1-100):
- Match Strength (matchScore): intent and industry alignment.
- Market Traction (marketHeat): momentum and growth signals.

OUTPUT MUST BE STRICTLY VALID JSON.
""".strip()


def _string() -> Dict[str, Any]:
    return {"type": "string"}


def _object(properties: Dict[str, Any], required: Sequence[str] = ()) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = list(required)
    return schema


RESPONSE_SCHEMA: Dict[str, Any] = _object(
    {
        "mode": {"type": "string", "enum": ["LEAD", "TEXT", "OUT_OF_CONTEXT"]},
        "summary": _string(),
        "paragraphs": {"type": "array", "items": _string()},
        "leads": {
            "type": "array",
            "items": _object(
                {
                    "name": _string(),
                    "description": _string(),
                    "industry": _string(),
                    "location": _string(),
                    "website": _string(),
                    "email": _string(),
                    "phone": _string(),
                    "socials": _object(
                        {
                            "linkedin": _string(),
                            "instagram": _string(),
                            "facebook": _string(),
                            "twitter": _string(),
                        }
                    ),
                    "keyPeople": {
                        "type": "array",
                        "items": _object(
                            {
                                "name": _string(),
                                "role": _string(),
                                "email": _string(),
                                "linkedin": _string(),
                                "phone": _string(),
                            }
                        ),
                    },
                    "growthSignals": {
                        "type": "array",
                        "items": _object({"activity": _string(), "date": _string()}),
                    },
                    "matchScore": {"type": "number"},
                    "marketHeat": {"type": "number"},
                    "type": {"type": "string", "enum": ["person", "company"]},
                    "detailedBriefing": _object(
                        {
                            "overview": _string(),
                            "background": _string(),
                            "context": _string(),
                        },
                        required=["overview", "background", "context"],
                    ),
                },
                required=[
                    "name",
                    "description",
                    "matchScore",
                    "marketHeat",
                    "type",
                    "detailedBriefing",
                    "industry",
                    "location",
                ],
            ),
        },
        "explanation": _string(),
        "outOfContextMessage": _string(),
        "followUps": {"type": "array", "items": _string()},
    },
    required=["mode"],
)


def _get_client(settings: Settings) -> OpenAI:
    """One OpenAI client per (key, timeout); created on first use."""
    global _client, _client_key
    key = (settings.openai_api_key, settings.timeout_s)
    if _client is None or _client_key != key:
        kwargs: Dict[str, Any] = {"timeout": settings.timeout_s}
        if settings.openai_api_key:
            kwargs["api_key"] = settings.openai_api_key
        _client = OpenAI(**kwargs)
        _client_key = key
    return _client


def build_prompt(query: str, history: Sequence[ChatTurn]) -> str:
    """System block + serialized rolling history + current request, as one user turn."""
    history_json = json.dumps([t.to_dict() for t in history], ensure_ascii=False)
    return (
        f"System Context: {SYSTEM_INSTRUCTION}\n\n"
        f"Search Context: {history_json}\n\n"
        f"Current Request: {query}"
    )


def build_request(query: str, history: Sequence[ChatTurn], settings: Settings) -> Dict[str, Any]:
    request: Dict[str, Any] = {
        "model": settings.model,
        "input": [{"role": "user", "content": build_prompt(query, history)}],
        "text": {
            "format": {
                "type": "json_schema",
                "name": "lead_search_result",
                "schema": RESPONSE_SCHEMA,
                "strict": False,
            }
        },
        "temperature": settings.temperature,
        "max_output_tokens": settings.max_output_tokens,
    }
    if settings.reasoning_effort:
        request["reasoning"] = {"effort": settings.reasoning_effort}
    return request


def send(query: str, history: Sequence[ChatTurn], settings: Optional[Settings] = None) -> str:
    """
    Single request/response call. Returns the raw text payload, which should be
    JSON but is not guaranteed to be. Provider errors propagate unchanged.
    """
    settings = settings or Settings.from_env()
    request = build_request(query, history, settings)

    logger.info("Completion request: model=%s history_turns=%d", settings.model, len(history))
    resp = _get_client(settings).responses.create(**request)
    text = (resp.output_text or "").strip()
    logger.debug("Completion response: %d chars", len(text))
    return text
