from __future__ import annotations

from flask import Blueprint, jsonify, g

from identity.decorators import jwt_required
from models.schemas.user import UserOutSchema

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()


@bp.get("/identity/account/me")
@jwt_required()
def me():
    """
    Get current user info.
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
    """
    user = g.current_user
    return jsonify(
        {
            "data": user_out_schema.dump(user)
        }
    ), 200
