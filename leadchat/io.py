from datetime import datetime, timezone

import pandas as pd

from .types import SavedLead

VAULT_COLUMNS = [
    "name",
    "industry",
    "location",
    "type",
    "match_score",
    "market_heat",
    "website",
    "email",
    "phone",
    "saved_at",
]


def saved_leads_frame(saved: list[SavedLead]) -> pd.DataFrame:
    rows = []
    for s in saved:
        l = s.lead
        rows.append(
            {
                "name": l.name,
                "industry": l.industry,
                "location": l.location,
                "type": l.type,
                "match_score": l.match_score,
                "market_heat": l.market_heat,
                "website": l.website or "",
                "email": l.email or "",
                "phone": l.phone or "",
                "saved_at": datetime.fromtimestamp(s.saved_at, tz=timezone.utc).isoformat(timespec="seconds"),
            }
        )

    # Keep column order stable even for an empty vault
    return pd.DataFrame(rows, columns=VAULT_COLUMNS)


def saved_leads_csv(saved: list[SavedLead]) -> str:
    return saved_leads_frame(saved).to_csv(index=False)
