"""
User Authentication — signup, login and bearer-token sessions.

Credentials live in the record store under ``auth:<email>`` with a werkzeug
password hash; profiles live under ``user:<id>``. Login issues an HS256 JWT.
Flask-Login's request loader turns the ``Authorization: Bearer`` header back
into a ``User`` on every request, so the session is an explicit per-request
object rather than server-side state.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone

from flask import Blueprint, current_app, jsonify
from flask_login import LoginManager, UserMixin, current_user, login_required
from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from audit import log_event
from errors import Unauthorized, ValidationError
from helpers import json_body, require_fields
from stores import CredentialStore, UserProfileStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

auth_bp = Blueprint("auth", __name__)
login_manager = LoginManager()
login_manager.session_protection = None


class User(UserMixin):
    """The authenticated caller, rebuilt from the bearer token per request."""

    def __init__(self, id: str, email: str, name: str = ""):
        self.id = id
        self.email = email
        self.name = name

    @staticmethod
    def from_token(token: str) -> User | None:
        claims = decode_access_token(token)
        if not claims or not claims.get("sub"):
            return None
        if UserProfileStore.get(claims["sub"]) is None:
            return None
        return User(claims["sub"], claims.get("email", ""), claims.get("name", ""))


def create_access_token(user_id: str, email: str, name: str = "") -> str:
    cfg = current_app.config
    expire = datetime.now(timezone.utc) + timedelta(minutes=cfg["ACCESS_TOKEN_EXPIRE_MINUTES"])
    claims = {"sub": user_id, "email": email, "name": name, "exp": expire}
    return jwt.encode(claims, cfg["JWT_SECRET"], algorithm=cfg["JWT_ALGORITHM"])


def decode_access_token(token: str) -> dict | None:
    cfg = current_app.config
    try:
        return jwt.decode(token, cfg["JWT_SECRET"], algorithms=[cfg["JWT_ALGORITHM"]])
    except JWTError as e:
        logger.debug("Rejected bearer token: %s", e)
        return None


@login_manager.request_loader
def load_user_from_request(req):
    scheme, _, token = req.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return User.from_token(token.strip())


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Unauthorized"}), 401


def _validate_signup(data: dict) -> None:
    require_fields(data, "email", "password", "fullName",
                   message="Email, password, and full name are required")
    if not EMAIL_PATTERN.match(str(data["email"])):
        raise ValidationError("Invalid email address format")
    if len(str(data["password"])) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


@auth_bp.route("/signup", methods=["POST"])
def signup():
    data = json_body()
    _validate_signup(data)

    email = str(data["email"]).strip().lower()
    user_id = str(uuid.uuid4())
    CredentialStore.create(
        user_id=user_id,
        email=email,
        name=data["fullName"],
        password_hash=generate_password_hash(str(data["password"])),
    )
    UserProfileStore.create(
        user_id=user_id,
        email=email,
        full_name=data["fullName"],
        university=data.get("university", ""),
        department=data.get("department", ""),
        year=data.get("year", ""),
        skills=data.get("skills", ""),
    )

    log_event("signup", user_id, f"email={email}")
    return jsonify({"message": "User created successfully. Please log in.", "userId": user_id})


@auth_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    require_fields(data, "email", "password", message="Email and password are required")

    email = str(data["email"]).strip().lower()
    creds = CredentialStore.get(email)
    if not creds or not check_password_hash(creds["passwordHash"], str(data["password"])):
        log_event("login_failed", creds["id"] if creds else None, f"email={email}")
        raise Unauthorized("Invalid email or password")

    token = create_access_token(creds["id"], creds["email"], creds.get("name", ""))
    profile = UserProfileStore.get(creds["id"]) or {"id": creds["id"], "email": creds["email"]}
    log_event("login_success", creds["id"])
    return jsonify({"accessToken": token, "user": profile})


@auth_bp.route("/me")
@login_required
def me():
    profile = UserProfileStore.get(current_user.id)
    return jsonify(profile or {"id": current_user.id, "email": current_user.email})
