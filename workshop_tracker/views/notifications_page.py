import pandas as pd
import streamlit as st

from workshop_tracker.notifications import check_configuration, notification_history, send_test_notification
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import require_viewer


def render_notifications(ctx: AppContext):
    viewer = require_viewer(ctx)
    st.title("✉️ Email Notifications")
    st.caption("Admins are emailed whenever a new income or expense is recorded.")

    # --- Status ---
    c1, c2 = st.columns(2)
    with c1:
        if st.button("Check configuration"):
            if check_configuration(ctx.cfg):
                st.success("Email notification function is reachable.")
            else:
                st.error("Email notification function is not configured or unreachable.")
    with c2:
        if st.button("Send test email"):
            result = send_test_notification(ctx.client, ctx.cfg, viewer)
            if result["success"]:
                st.success("Test email notification sent successfully!")
            else:
                st.error(result["error"])

    # --- History ---
    st.divider()
    st.subheader("Recent notifications")
    history = notification_history(ctx.client, viewer, ctx.cfg.notifications.history_limit)
    if not history:
        st.info("No notifications sent yet.")
        return

    df = pd.DataFrame(history)
    df["user"] = [(h.get("profiles") or {}).get("full_name", "") for h in history]
    display_cols = ["sent_at", "notification_type", "subject", "user", "successful_sends", "failed_sends"]
    st.dataframe(df[[c for c in display_cols if c in df.columns]], use_container_width=True, hide_index=True)
