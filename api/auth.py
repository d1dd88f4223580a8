"""
Authentication blueprint:
- POST /identity/account/login
- POST /identity/account/register
- POST /identity/account/refresh

The implementation:
- Uses argon2 for password hashing (via identity.security)
- Issues short-lived access tokens (JWTs signed with HS256) and one
  rotating refresh token per user, kept in a single DB slot together with
  the previous token and its short grace window
- All protocol rules live in identity.session.SessionCoordinator; this module
  only validates payloads and shapes responses
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, abort, current_app

from models.schemas.user import LoginSchema, RegisterSchema, RefreshSchema, JwtResponseSchema

bp = Blueprint("auth", __name__, url_prefix="/identity/account")

login_schema = LoginSchema()
register_schema = RegisterSchema()
refresh_schema = RefreshSchema()
jwt_response_schema = JwtResponseSchema()
login_response_schema = JwtResponseSchema(exclude=("previous_refresh_token", "previous_refresh_token_expiry"))


def _coordinator():
    return current_app.extensions["identity"]


@bp.post("/login")
def login():
    """
    Login: return access token and refresh token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      404:
        description: User/Password problem
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        abort(422, description="email and password are required")

    tokens = _coordinator().login(email, password)
    return jsonify(login_response_schema.dump(tokens)), 200


@bp.post("/register")
def register():
    """
    Register a new user and return its first token pair.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
            firstName: { type: string }
            lastName: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)

    tokens = _coordinator().register(
        data["email"], data["password"], data.get("first_name"), data.get("last_name")
    )
    return jsonify(jwt_response_schema.dump(tokens)), 200


@bp.post("/refresh")
def refresh():
    """
    Use an access token (expired or not) and a refresh token to obtain a new
    token pair. The refresh token is rotated; a retry with the just-replaced
    token inside the grace window gets the same pair back.
    An unknown or expired refresh token is answered as a client rejection
    (401); only an inconsistent refresh slot is a server fault (500).
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             accessToken: { type: string }
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Malformed access token or unknown user
      401:
        description: No valid refresh token
      500:
        description: Refresh slot in an inconsistent state
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)

    tokens = _coordinator().refresh(data["access_token"], data["refresh_token"])
    return jsonify(jwt_response_schema.dump(tokens)), 200
