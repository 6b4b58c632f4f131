import streamlit as st

from workshop_tracker.errors import TrackerError
from workshop_tracker.profiles import clean_profile_form, upload_avatar
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import require_viewer


def render_profile(ctx: AppContext):
    viewer = require_viewer(ctx)
    auth = ctx.auth
    profile = auth.profile or {}
    st.title("👤 My Profile")

    if not auth.profile:
        st.warning("Profile not found. Please contact support.")

    left, right = st.columns([1, 2])
    with left:
        if profile.get("avatar_url"):
            st.image(profile["avatar_url"], width=140)
        st.write(f"**{profile.get('full_name') or auth.display_name}**")
        st.caption(f"Role: {profile.get('role', 'user')}")

        avatar = st.file_uploader("Change avatar", type=["png", "jpg", "jpeg", "gif", "webp"])
        if avatar is not None and st.button("Upload avatar"):
            try:
                url = upload_avatar(ctx.client, viewer, avatar.name, avatar.getvalue(), avatar.type or "")
                result = auth.update_profile({**profile, "avatar_url": url})
                if result["success"]:
                    st.success("Avatar updated!")
                    st.rerun()
                st.error(result["error"])
            except TrackerError as e:
                st.error(str(e))
            except Exception as e:
                st.error(f"Failed to upload image: {e}")

    with right:
        with st.form("profile-form"):
            full_name = st.text_input("Full name", value=profile.get("full_name") or "")
            username = st.text_input("Username", value=profile.get("username") or "")
            phone_number = st.text_input("Phone number", value=profile.get("phone_number") or "")
            avatar_url = st.text_input("Avatar URL", value=profile.get("avatar_url") or "")
            submitted = st.form_submit_button("Save changes")

        if submitted:
            try:
                updates = clean_profile_form({
                    "full_name": full_name, "username": username,
                    "phone_number": phone_number, "avatar_url": avatar_url,
                })
            except TrackerError as e:
                st.error(str(e))
                return
            result = auth.update_profile(updates)
            if result["success"]:
                st.success("Profile updated successfully")
                st.rerun()
            else:
                st.error(result["error"])

        st.divider()
        with st.form("password-form"):
            new_password = st.text_input("New password", type="password")
            confirm = st.text_input("Confirm new password", type="password")
            change = st.form_submit_button("Change password")
        if change:
            if new_password != confirm:
                st.error("Passwords do not match.")
            else:
                result = auth.update_password(new_password)
                if result["success"]:
                    st.success("Password updated.")
                else:
                    st.error(result["error"])
