from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, abort, g
from sqlalchemy.orm import selectinload

from models import get_storage
from models.user import User
from models.schemas.user import ChangeRoleSchema, UserListOutSchema, UserOutSchema
from utils.decorators import roles_required

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__)

change_role_schema = ChangeRoleSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserListOutSchema(many=True)


@bp.get("/admin/users")
@roles_required(["admin"])
def list_users():
    """
    List all users - admin
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      403: { description: Forbidden - admin access required }
    """
    session = get_storage().get_session()
    rows = (
        session.query(User)
        .options(selectinload(User.profile))
        .filter(User.deleted_at.is_(None))
        .order_by(User.id.asc())
        .all()
    )
    return jsonify({"users": user_list_out_schema.dump(rows)}), 200


@bp.put("/admin/users/<int:user_id>/role")
@roles_required(["admin"])
def change_user_role(user_id: int):
    """
    Change the role of a user - admin.
    The new role shows up in the user's tokens from their next login or refresh.
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: integer
         required: true
      -  in: body
         name: body
         schema:
           type: object
           required: [role]
           properties:
             role: { type: string, enum: [user, admin] }
    responses:
      200: { description: OK }
      404: { description: User not found }
      422: { description: Validation error }
    """
    payload = request.get_json(silent=True) or {}
    data = change_role_schema.load(payload)

    storage = get_storage()
    user = storage.get(User, user_id)
    if not user or user.is_deleted:
        abort(404, description="User not found")

    user.role = data["role"]
    storage.new(user)
    storage.save()

    logger.info(
        "User role updated (user_id=%s, new_role=%s, by=%s)", user_id, user.role, g.current_identity.user_id
    )
    return jsonify(
        {
            "message": "User role updated successfully",
            "user": user_out_schema.dump(user),
        }
    ), 200
