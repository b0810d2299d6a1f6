from __future__ import annotations

from leadchat.display import display_percent
from leadchat.normalize import normalize_result, parse_lead, resolve_mode
from leadchat.salvage import extract_json
from leadchat.types import AppMode, LeadResult, OutOfContextResult, TextResult


def _lead(name: str = "Acme", **extra) -> dict:
    raw = {
        "name": name,
        "description": "Builds rockets",
        "industry": "Aerospace",
        "location": "Berlin",
        "matchScore": 87.6,
        "marketHeat": 64,
        "type": "company",
        "detailedBriefing": {"overview": "o", "background": "b", "context": "c"},
    }
    raw.update(extra)
    return raw


def test_leads_without_mode_infer_lead() -> None:
    result = normalize_result({"leads": [_lead()]}, "rocket startups")

    assert isinstance(result, LeadResult)
    assert result.mode is AppMode.LEAD
    assert result.query == "rocket startups"
    assert [l.name for l in result.leads] == ["Acme"]


def test_empty_object_infers_text() -> None:
    result = normalize_result({}, "hello")

    assert isinstance(result, TextResult)
    assert result.mode is AppMode.TEXT
    assert result.summary is None
    assert result.paragraphs is None


def test_empty_leads_list_without_mode_is_text() -> None:
    assert resolve_mode({"leads": []}) is AppMode.TEXT


def test_mode_is_case_normalized() -> None:
    assert resolve_mode({"mode": "lead"}) is AppMode.LEAD
    assert resolve_mode({"mode": " text "}) is AppMode.TEXT
    assert resolve_mode({"mode": "out_of_context"}) is AppMode.OUT_OF_CONTEXT


def test_unknown_mode_falls_back_to_inference() -> None:
    assert resolve_mode({"mode": "ANSWER", "leads": [_lead()]}) is AppMode.LEAD
    assert resolve_mode({"mode": ""}) is AppMode.TEXT


def test_query_is_attached_even_when_response_has_one() -> None:
    result = normalize_result({"mode": "TEXT", "query": "something else", "summary": "s"}, "mine")

    assert result.query == "mine"


def test_out_of_context_message() -> None:
    result = normalize_result(
        {"mode": "OUT_OF_CONTEXT", "outOfContextMessage": "I only research leads."}, "weather?"
    )

    assert isinstance(result, OutOfContextResult)
    assert result.message == "I only research leads."


def test_lead_result_keeps_explanation_and_follow_ups() -> None:
    result = normalize_result(
        {
            "mode": "LEAD",
            "leads": [_lead(), "not a lead", None],
            "explanation": "Picked by traction",
            "followUps": ["Only in Munich", "Series A only"],
        },
        "q",
    )

    assert isinstance(result, LeadResult)
    assert len(result.leads) == 1
    assert result.explanation == "Picked by traction"
    assert result.follow_ups == ["Only in Munich", "Series A only"]


def test_text_result_paragraphs() -> None:
    result = normalize_result(
        {"mode": "TEXT", "summary": "Short answer", "paragraphs": ["one", "two"]}, "q"
    )

    assert isinstance(result, TextResult)
    assert result.summary == "Short answer"
    assert result.paragraphs == ["one", "two"]


def test_bare_array_is_read_as_lead_list() -> None:
    result = normalize_result([_lead("A"), _lead("B")], "q")

    assert isinstance(result, LeadResult)
    assert [l.name for l in result.leads] == ["A", "B"]


def test_scores_pass_through_unclamped() -> None:
    lead = parse_lead(_lead(matchScore=140, marketHeat=-5))

    assert lead.match_score == 140
    assert lead.market_heat == -5


def test_numeric_strings_are_read_as_numbers() -> None:
    lead = parse_lead(_lead(matchScore="72", marketHeat="55%"))

    assert lead.match_score == 72.0
    assert lead.market_heat == 55.0


def test_non_finite_scores_read_as_zero() -> None:
    data = extract_json('{"leads": [{"name": "Acme", "matchScore": Infinity, "marketHeat": NaN}]}')
    result = normalize_result(data, "q")

    assert result.leads[0].match_score == 0.0
    assert result.leads[0].market_heat == 0.0

    lead = parse_lead(_lead(matchScore="inf", marketHeat="-Infinity%"))
    assert lead.match_score == 0.0
    assert lead.market_heat == 0.0
    assert display_percent(lead.match_score) == "0%"


def test_absent_optional_fields_stay_absent() -> None:
    lead = parse_lead({"name": "Solo", "description": "d"})

    assert lead.website is None
    assert lead.email is None
    assert lead.phone is None
    assert lead.socials is None
    assert lead.key_people is None
    assert lead.growth_signals is None
    assert lead.detailed_briefing is None
    assert lead.type == "company"


def test_nested_contact_fields_are_parsed() -> None:
    lead = parse_lead(
        _lead(
            website="acme.io",
            socials={"linkedin": "linkedin.com/company/acme"},
            keyPeople=[{"name": "Ada", "role": "CEO", "email": "ada@acme.io"}],
            growthSignals=[{"activity": "Raised Series A", "date": "2024-03"}],
            type="Person",
        )
    )

    assert lead.website == "acme.io"
    assert lead.socials is not None
    assert lead.socials.linkedin == "linkedin.com/company/acme"
    assert lead.socials.twitter is None
    assert lead.key_people is not None and lead.key_people[0].role == "CEO"
    assert lead.growth_signals is not None and lead.growth_signals[0].date == "2024-03"
    assert lead.type == "person"
    assert lead.detailed_briefing is not None and lead.detailed_briefing.context == "c"
