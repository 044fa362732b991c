from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort

from models import get_storage
from models.user import User
from models.user_profile import UserProfile
from models.schemas.profile import ProfileOutSchema, ProfileUpdateSchema
from models.schemas.user import ChangePasswordSchema, UserOutSchema
from utils.decorators import get_auth_service, jwt_required

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()
profile_out_schema = ProfileOutSchema()
profile_update_schema = ProfileUpdateSchema()
change_password_schema = ChangePasswordSchema()


def current_user() -> User:
    user = get_auth_service().accounts.get(g.current_identity.user_id)
    if user is None:
        abort(404, description="User not found")
    return user


@bp.get("/users/profile")
@jwt_required()
def get_profile():
    """
    Get the profile of the authenticated user.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      404:
        description: User not found
    """
    user = current_user()
    profile = user.profile or UserProfile(user_id=user.id)
    return jsonify(
        {
            "user": user_out_schema.dump(user),
            "profile": profile_out_schema.dump(profile),
        }
    ), 200


@bp.put("/users/profile")
@jwt_required()
def update_profile():
    """
    Create or update the profile of the authenticated user.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            firstName: { type: string }
            lastName: { type: string }
            bio: { type: string }
            avatarURL: { type: string }
    responses:
      200:
        description: OK
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = profile_update_schema.load(payload)

    user = current_user()
    profile = user.profile
    if profile is None:
        profile = UserProfile(user_id=user.id)
    for key, value in data.items():
        setattr(profile, key, value)

    storage = get_storage()
    storage.new(profile)
    storage.save()
    return jsonify({"profile": profile_out_schema.dump(profile)}), 200


@bp.put("/users/change-password")
@jwt_required()
def change_password():
    """
    Change the password of the authenticated user.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [currentPassword, newPassword]
          properties:
            currentPassword: { type: string }
            newPassword: { type: string }
    responses:
      200:
        description: Password changed
      401:
        description: Current password is incorrect
    """
    payload = request.get_json(silent=True) or {}
    data = change_password_schema.load(payload)

    auth = get_auth_service()
    user = current_user()
    if not auth.check_password(user.password_hash, data["current_password"]):
        abort(401, description="Current password is incorrect")

    auth.accounts.update_password_hash(user, auth.hash_password(data["new_password"]))
    logger.info("Password changed (user_id=%s)", user.id)
    return jsonify({"message": "Password changed successfully"}), 200


@bp.delete("/users/account")
@jwt_required()
def delete_account():
    """
    Delete the authenticated user's account (soft delete); profile and sessions are removed.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: Account deleted
    """
    user = current_user()
    storage = get_storage()

    # one transaction: sessions, profile, user
    get_auth_service().end_all_sessions(user.id, commit=False)
    if user.profile is not None:
        storage.delete(user.profile)
    user.soft_delete()
    storage.new(user)
    storage.save()

    logger.info("Account deleted (user_id=%s)", user.id)
    return jsonify({"message": "Account deleted successfully"}), 200
