"""Account validation and authentication against Supabase or the SQL fallback."""

from __future__ import annotations

import re
from typing import Dict, List, Optional

import bleach
from flask import current_app, has_app_context, session
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from supabase import create_client
from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db

from .models import Profile

SESSION_USER_KEY = "user"
PROFILES_TABLE = "profiles"

MIN_USERNAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

INVALID_LOGIN_MESSAGE = "Invalid email/username or password."
USERNAME_TAKEN_MESSAGE = "Username is already taken."

FieldErrors = Dict[str, List[str]]


class AccountError(Exception):
    """Raised with per-field messages when signup or login fails."""

    def __init__(self, errors: FieldErrors, status_code: int = 400):
        super().__init__("; ".join(msg for msgs in errors.values() for msg in msgs))
        self.errors = errors
        self.status_code = status_code


def validate_signup(username: str, email: str, password: str, confirm_password: str) -> FieldErrors:
    errors: FieldErrors = {}
    username = (username or "").strip()
    email = (email or "").strip()
    password = (password or "").strip()

    if len(username) < MIN_USERNAME_LENGTH:
        errors.setdefault("username", []).append("Username must be at least 2 characters.")
    if not EMAIL_PATTERN.match(email):
        errors.setdefault("email", []).append("Invalid email address.")

    password_errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        password_errors.append("Password must be at least 6 characters.")
    if not re.search(r"[a-zA-Z]", password):
        password_errors.append("Password must contain at least one letter.")
    if not re.search(r"[0-9]", password):
        password_errors.append("Password must contain at least one number.")
    if not re.search(r"[^a-zA-Z0-9]", password):
        password_errors.append("Password must contain at least one special character.")
    if password_errors:
        errors["password"] = password_errors

    if not confirm_password:
        errors.setdefault("confirmPassword", []).append("Please confirm your password.")
    elif not errors and password != confirm_password.strip():
        errors["confirmPassword"] = ["Passwords do not match."]
    return errors


def validate_login(identifier: str, password: str) -> FieldErrors:
    errors: FieldErrors = {}
    if not (identifier or "").strip():
        errors["emailusername"] = ["Email/Username is required."]
    if not (password or "").strip():
        errors["password"] = ["Password is required."]
    return errors


def clean_username(raw: str) -> str:
    cleaned = bleach.clean(raw or "", tags=[], attributes={}, strip=True)
    return cleaned.strip().lower()


def sign_up(username: str, email: str, password: str, confirm_password: str) -> dict:
    errors = validate_signup(username, email, password, confirm_password)
    if errors:
        raise AccountError(errors)

    username = clean_username(username)
    if len(username) < MIN_USERNAME_LENGTH:
        raise AccountError({"username": ["Username must be at least 2 characters."]})
    email = email.strip().lower()
    password = password.strip()

    client = _data_client()
    if client:
        return _sign_up_supabase(client, username, email, password)
    return _sign_up_sql(username, email, password)


def log_in(identifier: str, password: str) -> dict:
    errors = validate_login(identifier, password)
    if errors:
        raise AccountError(errors)

    identifier = identifier.strip()
    password = password.strip()
    client = _data_client()
    if client:
        user = _log_in_supabase(client, identifier, password)
    else:
        user = _log_in_sql(identifier, password)
    session[SESSION_USER_KEY] = user
    session.permanent = True
    return user


def log_out() -> None:
    session.pop(SESSION_USER_KEY, None)


def get_current_user() -> Optional[dict]:
    """Return the logged-in player's session record or None."""
    user = session.get(SESSION_USER_KEY)
    if not user or not user.get("id"):
        return None
    return user


def _sign_up_supabase(client, username: str, email: str, password: str) -> dict:
    try:
        auth_resp = _auth_client().auth.sign_up({"email": email, "password": password})
    except Exception as exc:  # gotrue raises AuthApiError and friends
        _log_account_warning("signing up", exc)
        raise AccountError({"email": [str(exc)]}) from exc

    auth_user = getattr(auth_resp, "user", None)
    if not auth_user:
        raise AccountError({"email": ["Could not create the account."]})

    profile = {"id": str(auth_user.id), "username": username, "email": email}
    try:
        client.table(PROFILES_TABLE).insert(profile).execute()
    except Exception as exc:
        _log_account_warning("inserting profile", exc)
        raise AccountError({"username": [USERNAME_TAKEN_MESSAGE]}) from exc
    return {**profile, "admin": False}


def _sign_up_sql(username: str, email: str, password: str) -> dict:
    taken = Profile.query.filter(
        or_(func.lower(Profile.username) == username, func.lower(Profile.email) == email)
    ).first()
    if taken:
        field = "username" if taken.username == username else "email"
        message = USERNAME_TAKEN_MESSAGE if field == "username" else "Email is already registered."
        raise AccountError({field: [message]})

    profile = Profile(username=username, email=email, password_hash=generate_password_hash(password))
    db.session.add(profile)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise AccountError({"username": [USERNAME_TAKEN_MESSAGE]}) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        _log_account_warning("creating profile", exc)
        raise AccountError({"email": ["Could not create the account."]}, status_code=503) from exc
    return profile.to_session_dict()


def _log_in_supabase(client, identifier: str, password: str) -> dict:
    email = identifier.lower()
    if "@" not in identifier:
        rows = _profiles_where(client, "username", identifier.lower())
        if not rows:
            raise AccountError({"emailusername": [INVALID_LOGIN_MESSAGE]}, status_code=401)
        email = rows[0].get("email") or ""

    try:
        auth_resp = _auth_client().auth.sign_in_with_password({"email": email, "password": password})
    except Exception as exc:
        _log_account_warning("signing in", exc)
        raise AccountError({"emailusername": [INVALID_LOGIN_MESSAGE]}, status_code=401) from exc

    auth_user = getattr(auth_resp, "user", None)
    if not auth_user:
        raise AccountError({"emailusername": [INVALID_LOGIN_MESSAGE]}, status_code=401)

    user_id = str(auth_user.id)
    rows = _profiles_where(client, "id", user_id)
    profile = rows[0] if rows else {}
    return {
        "id": user_id,
        "email": profile.get("email") or email,
        "username": profile.get("username") or "",
        "admin": bool(profile.get("admin")),
    }


def _log_in_sql(identifier: str, password: str) -> dict:
    lookup = identifier.lower()
    column = Profile.email if "@" in identifier else Profile.username
    profile = Profile.query.filter(func.lower(column) == lookup).first()
    if not profile or not profile.password_hash or not check_password_hash(profile.password_hash, password):
        raise AccountError({"emailusername": [INVALID_LOGIN_MESSAGE]}, status_code=401)
    return profile.to_session_dict()


def _profiles_where(client, column: str, value: str) -> List[dict]:
    try:
        resp = client.table(PROFILES_TABLE).select("id, username, email, admin").eq(column, value).limit(1).execute()
    except Exception as exc:
        _log_account_warning(f"looking up profile by {column}", exc)
        return []
    return resp.data or []


def _data_client():
    if not has_app_context():
        return None
    if not current_app.config.get("USE_SUPABASE"):
        return None
    return current_app.config.get("SUPABASE_CLIENT") or None


def _auth_client():
    # Auth calls store a session on the client, so each one gets its own.
    url = current_app.config.get("SUPABASE_URL")
    key = current_app.config.get("SUPABASE_ANON_KEY") or current_app.config.get("SUPABASE_KEY")
    return create_client(url, key)


def _log_account_warning(action: str, exc: Exception) -> None:
    if not has_app_context():
        return
    logger = getattr(current_app, "logger", None)
    if logger:
        logger.warning("Account error while %s: %s", action, exc)
