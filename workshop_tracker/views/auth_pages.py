import streamlit as st

from workshop_tracker.routing import after_login
from workshop_tracker.session import AppContext


def _go(page: str) -> None:
    st.query_params["page"] = page
    st.rerun()


# ---------------------- LOGIN ----------------------

def render_login(ctx: AppContext):
    branding = ctx.cfg.branding
    st.title(f"🔐 {branding.app_name}")
    st.caption(f"Sign in with your {branding.company_name} account")

    next_page = st.query_params.get("next")
    if next_page:
        st.info("Please sign in to continue.")

    with st.form("login-form"):
        email = st.text_input("Email", placeholder=f"name@{branding.company_domain}")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", use_container_width=True)

    if submitted:
        if not email or not password:
            st.error("Please enter your email and password.")
            return
        with st.spinner("Signing in..."):
            result = ctx.auth.sign_in(email, password)
        if not result["success"]:
            st.error(result["error"])
            return
        if "next" in st.query_params:
            del st.query_params["next"]
        _go(after_login(next_page))

    c1, c2 = st.columns(2)
    if c1.button("Create an account"):
        _go("Sign up")
    if c2.button("Forgot password?"):
        _go("Forgot password")


# ---------------------- SIGN UP ----------------------

def render_signup(ctx: AppContext):
    branding = ctx.cfg.branding
    st.title("📝 Create your account")
    st.caption(branding.signup_restriction_message)

    with st.form("signup-form"):
        full_name = st.text_input("Full name")
        username = st.text_input("Username (optional)")
        phone_number = st.text_input("Phone number (optional)")
        email = st.text_input("Email", placeholder=f"name@{branding.company_domain}")
        password = st.text_input(
            "Password", type="password",
            help=f"At least {ctx.cfg.auth.min_password_length} characters",
        )
        confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Sign up", use_container_width=True)

    if not submitted:
        return
    if password != confirm:
        st.error("Passwords do not match.")
        return

    with st.spinner("Creating account..."):
        result = ctx.auth.sign_up(
            email, password,
            {"full_name": full_name, "username": username, "phone_number": phone_number},
        )

    if not result["success"]:
        st.error(result["error"])
        return

    if result["data"]["profile"] is None:
        st.warning(
            "Your account was created but your profile could not be set up. "
            "Please contact an administrator."
        )
    else:
        st.success("Account created! Check your inbox to confirm your email, then sign in.")


# ---------------------- PASSWORD RESET ----------------------

def render_forgot_password(ctx: AppContext):
    st.title("🔑 Reset your password")
    with st.form("forgot-form"):
        email = st.text_input("Email")
        submitted = st.form_submit_button("Send reset link")

    if submitted:
        result = ctx.auth.reset_password(email)
        if result["success"]:
            st.success("If that account exists, a reset link is on its way.")
        else:
            st.error(result["error"])

    if st.button("Back to sign in"):
        _go("Login")


def render_reset_password(ctx: AppContext):
    st.title("🔑 Choose a new password")
    if not ctx.auth.is_authenticated:
        st.warning("This reset link is invalid or has expired. Request a new one.")
        return

    with st.form("reset-form"):
        password = st.text_input("New password", type="password")
        confirm = st.text_input("Confirm new password", type="password")
        submitted = st.form_submit_button("Update password")

    if submitted:
        if password != confirm:
            st.error("Passwords do not match.")
            return
        result = ctx.auth.update_password(password)
        if result["success"]:
            st.success("Password updated.")
        else:
            st.error(result["error"])
