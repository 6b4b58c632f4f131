from datetime import date

import streamlit as st

from workshop_tracker.incomes import list_incomes
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import error_panel, format_currency, require_viewer
from workshop_tracker.workshops import (
    UPCOMING_DAYS,
    calendar_events,
    event_format,
    list_workshops,
    upcoming_workshops,
    workshop_title,
)


def _upcoming(workshops):
    st.subheader(f"📅 Next {UPCOMING_DAYS} days")
    if not workshops:
        st.caption("No workshops scheduled.")
        return
    for w in workshops:
        platform = w.get("platform") or "TBD"
        st.markdown(
            f"**{workshop_title(w)}** · {w.get('date')} · {platform} ({event_format(w.get('platform'))})"
        )


def render_workshops(ctx: AppContext):
    viewer = require_viewer(ctx)
    st.title("🗓️ Workshops")

    try:
        upcoming = upcoming_workshops(ctx.client, viewer, date.today())
        workshops = list_workshops(ctx.client, viewer)
        incomes = list_incomes(ctx.client, viewer)
    except Exception as e:
        error_panel(str(e), "workshops")
        return

    _upcoming(upcoming)

    st.divider()
    st.subheader("Calendar")
    days = calendar_events(workshops, incomes)
    if not days:
        st.info("No workshops or income records yet.")
        return

    for day, events in days.items():
        revenue = sum(e["revenue"] or 0 for e in events)
        with st.expander(f"{day} · {len(events)} event(s) · {format_currency(revenue)}"):
            for e in events:
                kind = "Scheduled" if e["type"] == "workshop" else "Recorded"
                line = f"**{e['name']}** ({kind}) · {e['class_type']} · {e['location']} · {e['instructor']}"
                line += f" · {e['participants']} participant(s)"
                if e["revenue"] is not None:
                    line += f" · {format_currency(e['revenue'])}"
                st.markdown(line)
