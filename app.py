# app.py
import html

import streamlit as st

from leadchat.config import Settings
from leadchat.display import (
    SUGGESTIONS,
    display_percent,
    lead_contacts,
    lead_overview,
    person_contacts,
    split_markdown_table,
    strip_emphasis,
)
from leadchat.logging import setup_logging
from leadchat.session import ResearchSession
from leadchat.types import Lead, LeadResult, TextResult
from leadchat.usage import UsageSink


# ----------------------------
# Page config (ONLY ONCE in multipage app)
# ----------------------------
st.set_page_config(
    page_title="Lead Research",
    layout="centered",
    initial_sidebar_state="collapsed",
)

CSS = """
<style>
#MainMenu {visibility: hidden;}
footer {visibility: hidden;}

.lr-title {
  font-size: 28px;
  font-weight: 900;
  text-align: center;
  margin: 12vh 0 24px 0;
}
.lr-query {
  background: rgba(248,250,252,1);
  border: 1px solid rgba(0,0,0,0.04);
  border-radius: 20px;
  padding: 8px 16px;
  font-weight: 700;
  margin-left: auto;
  width: fit-content;
  max-width: 85%;
}
.lr-ooc {
  text-align: center;
  padding: 32px 24px;
  border-radius: 32px;
  border: 1px solid rgba(0,0,0,0.04);
}
</style>
"""
st.markdown(CSS, unsafe_allow_html=True)


# ----------------------------
# Resources (shared across reruns)
# ----------------------------
@st.cache_resource
def _settings() -> Settings:
    settings = Settings.from_env()
    setup_logging(level=settings.log_level, log_file=settings.log_file)
    return settings


@st.cache_resource
def _usage_sink() -> UsageSink:
    return UsageSink(_settings())


def _session() -> ResearchSession:
    if "rs_session" not in st.session_state:
        st.session_state["rs_session"] = ResearchSession(usage=_usage_sink(), settings=_settings())
    session = st.session_state["rs_session"]
    session.user_agent = st.context.headers.get("User-Agent", "") or ""
    return session


session = _session()


# ----------------------------
# Helpers
# ----------------------------
def _run_search(query: str):
    if not session.can_submit(query):
        return
    with st.spinner("Searching…"):
        session.submit(query)
    st.rerun()


def _render_text(text: str):
    table = split_markdown_table(text)
    if table:
        header, rows = table
        width = len(header)
        st.table([dict(zip(header, r + [""] * (width - len(r)))) for r in rows])
        return
    st.markdown(text)


def _render_lead(lead: Lead, key: str):
    with st.expander(f"**{lead.name or '(unknown)'}** · {lead.industry} · {lead.location}"):
        overview = lead_overview(lead)
        if lead.description and lead.description != overview:
            st.write(lead.description)

        m1, m2 = st.columns(2)
        m1.metric("Match Score", display_percent(lead.match_score))
        m2.metric("Market Heat", display_percent(lead.market_heat))

        if overview:
            st.markdown("#### Overview")
            _render_text(overview)
        if lead.detailed_briefing and lead.detailed_briefing.background:
            st.markdown("#### Background")
            _render_text(lead.detailed_briefing.background)

        contacts = lead_contacts(lead)
        if contacts:
            st.markdown("#### Contact Methods")
            cols = st.columns(2)
            for i, (label, url) in enumerate(contacts):
                cols[i % 2].link_button(label, url, use_container_width=True)

        if lead.key_people:
            st.markdown("#### Key People")
            for p in lead.key_people:
                st.write(f"- **{p.name}** · {p.role}" if p.role else f"- **{p.name}**")
                links = person_contacts(p)
                if links:
                    cols = st.columns(len(links))
                    for col, (label, url) in zip(cols, links):
                        col.link_button(label, url, use_container_width=True)

        if lead.growth_signals:
            st.markdown("#### Growth Signals")
            for g in lead.growth_signals:
                st.write(f"- {g.activity} ({g.date})" if g.date else f"- {g.activity}")

        if session.is_saved(lead.name):
            st.caption("Saved to Research Vault ✅")
        elif st.button("Archive to Research Vault", key=f"save_{key}", use_container_width=True):
            session.save_lead(lead)
            st.rerun()


# ----------------------------
# Sidebar: new search + history log
# ----------------------------
with st.sidebar:
    if st.button("New Search", type="primary", use_container_width=True):
        session.start_new_chat()
        st.rerun()
    st.page_link("pages/1_Vault.py", label="Research Vault", icon="🗂️", use_container_width=True)

    st.divider()
    st.header("Search History")
    if not session.history:
        st.caption("No searches yet.")
    for item in session.history:
        if st.button(item.query, key=f"hist_{item.id}", use_container_width=True):
            session.restore(item)
            st.rerun()


# ----------------------------
# Thread
# ----------------------------
if not session.thread and not session.is_loading:
    st.markdown('<div class="lr-title">What are you<br/>searching today?</div>', unsafe_allow_html=True)
    cols = st.columns(2)
    for i, s in enumerate(SUGGESTIONS):
        if cols[i % 2].button(s, key=f"sugg_{i}", use_container_width=True):
            _run_search(s)

for idx, entry in enumerate(session.thread):
    st.markdown(f'<div class="lr-query">{html.escape(entry.query)}</div>', unsafe_allow_html=True)
    st.write("")

    result = entry.result
    if entry.is_loading or result is None:
        st.caption("Searching…")
        continue

    if isinstance(result, LeadResult):
        if result.explanation:
            label = "Hide Research" if session.is_context_expanded(idx) else "Show Research Context"
            if st.button(label, key=f"ctx_{idx}"):
                session.toggle_context(idx)
                st.rerun()
            if session.is_context_expanded(idx):
                _render_text(result.explanation)

        for li, lead in enumerate(result.leads):
            _render_lead(lead, key=f"{idx}_{li}")

        follow_ups = session.follow_ups_for(idx)
        if follow_ups:
            st.caption("DEEPEN SEARCH")
            for fi, fu in enumerate(follow_ups):
                if st.button(fu, key=f"fu_{idx}_{fi}", use_container_width=True):
                    _run_search(fu)

    elif isinstance(result, TextResult):
        if result.summary:
            st.subheader(strip_emphasis(result.summary))
        for para in result.paragraphs or []:
            _render_text(para)

    else:
        message = result.message or "I couldn't find matches for this request."
        st.markdown(f'<div class="lr-ooc">{html.escape(message)}</div>', unsafe_allow_html=True)
        if st.button("Start New Search", key=f"ooc_new_{idx}"):
            session.start_new_chat()
            st.rerun()

    st.divider()


# ----------------------------
# Search bar
# ----------------------------
query = st.chat_input("Search for leads…", disabled=session.is_loading)
if query:
    _run_search(query)
