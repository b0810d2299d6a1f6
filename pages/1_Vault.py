# pages/1_Vault.py
# Research Vault: leads archived from the chat page (same session object).

import streamlit as st

from leadchat.display import display_percent, lead_contacts
from leadchat.io import saved_leads_csv, saved_leads_frame


session = st.session_state.get("rs_session")
saved = session.saved_leads if session is not None else []

if session is not None:
    session.show_saved()


# ----------------------------
# Page
# ----------------------------
st.title("Research Vault")

if not saved:
    st.info("Vault empty.")
    st.page_link("app.py", label="Start finding leads", icon="🔎")
    st.stop()

st.caption(f"{len(saved)} saved lead(s), newest first.")
st.dataframe(saved_leads_frame(saved), use_container_width=True, hide_index=True)
st.download_button(
    "Download CSV",
    data=saved_leads_csv(saved),
    file_name="research_vault.csv",
    mime="text/csv",
    use_container_width=True,
)

st.divider()

for s in saved:
    lead = s.lead
    with st.expander(f"**{lead.name}** · {lead.industry} · {lead.location}"):
        st.write(lead.description)
        c1, c2 = st.columns(2)
        c1.metric("Match Score", display_percent(lead.match_score))
        c2.metric("Market Heat", display_percent(lead.market_heat))
        for label, url in lead_contacts(lead):
            st.link_button(label, url)

if st.button("← Back to search", type="primary", use_container_width=True):
    session.show_home()
    st.switch_page("app.py")
