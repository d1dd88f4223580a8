from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app

from identity.errors import IdentityError


def jwt_required():
    """
    Require a valid, unexpired access token in the Authorization header.
    Access tokens carry no revocation state: signature plus expiry is enough.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()

            coordinator = current_app.extensions["identity"]
            try:
                user = coordinator.current_user(token)
            except IdentityError as e:
                abort(401, description=e.message)

            g.current_user = user
            g.current_user_roles = list(user.roles or [])
            return fn(*args, **kwargs)

        return wrapper

    return decorator
