"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout

The implementation:
- Uses argon2 for password hashing (via utils.security.CredentialHasher)
- Issues short-lived access tokens and longer-lived refresh tokens (HS256 JWTs,
  each class with its own secret)
- Stores a hash of every refresh token so it can be revoked on logout and
  rotated (one-time use) on refresh
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort

from models import get_storage
from models.user import User
from models.schemas.user import LoginSchema, RefreshTokenSchema, RegisterSchema, UserOutSchema
from utils.decorators import get_auth_service, jwt_required

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
user_out_schema = UserOutSchema()


def token_response(pair, user: User | None = None):
    body = {
        "access_token": pair.access_token,
        "refresh_token": pair.refresh_token,
        "token_type": pair.token_type,
        "expires_in": pair.expires_in,
    }
    if user is not None:
        body["user"] = user_out_schema.dump(user)
    return body


@bp.post("/auth/register")
def register():
    """
    Register a new user.
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
          required: [email, username, password]
          properties:
            email: { type: string }
            username: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created
      409:
        description: Email or username already exists
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)

    session = get_storage().get_session()
    existing = session.query(User).filter(
        (User.email == data["email"]) | (User.username == data["username"])
    ).first()
    if existing:
        abort(409, description="Email or username already exists")

    auth = get_auth_service()
    user = User(
        email=data["email"],
        username=data["username"],
        password_hash=auth.hash_password(data["password"]),
        role="user",
    )
    storage = get_storage()
    storage.new(user)
    storage.save()

    # No mail delivery; verification is simulated
    logger.info("Verification email would be sent here (user_id=%s)", user.id)

    return jsonify(
        {
            "message": "Registration successful. Please check your email for verification.",
            "data": user_out_schema.dump(user),
        }
    ), 201


@bp.post("/auth/login")
def login():
    """
    Login with email or username: returns access_token and refresh_token
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
           required: [login, password]
           properties:
             login: { type: string, description: email or username }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens and user)
      401:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)

    auth = get_auth_service()
    user = auth.verify_credentials(data["login"], data["password"])
    pair = auth.issue_session(user.id, user.role)

    logger.info("Successful login (user_id=%s)", user.id)
    return jsonify(token_response(pair, user)), 200


@bp.post("/auth/refresh")
def refresh():
    """
    Exchange a refresh token for a new token pair (rotation: the old refresh token stops working)
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
           required: [refresh_token]
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: New access and refresh tokens
      401:
        description: Invalid refresh token
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)

    pair = get_auth_service().refresh_session(data["refresh_token"])
    return jsonify(token_response(pair)), 200


@bp.post("/auth/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the given refresh token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [refresh_token]
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: Successfully logged out
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)

    get_auth_service().end_session(data["refresh_token"], user_id=g.current_identity.user_id)
    return jsonify({"message": "Successfully logged out"}), 200
