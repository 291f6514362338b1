# commission_api/common/auth.py
from __future__ import annotations

from functools import wraps
from typing import Optional, Set

from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity

from commission_api.common.http import fail
from commission_api.extensions import db
from commission_api.models.user import User

ADMIN_ROLE = "admin"


def current_actor_id() -> Optional[int]:
    """JWT identity as int, or None outside an authenticated request."""
    try:
        uid = get_jwt_identity()
    except Exception:
        return None
    try:
        return int(uid) if uid is not None else None
    except (TypeError, ValueError):
        return None


def _roles_from_db(user_id) -> Set[str]:
    u = db.session.get(User, int(user_id))
    if not u or u.status != "active":
        return set()
    return set(u.role_codes())


def requires_roles(*codes: str):
    """
    Guard a route with a JWT and a role check.

    The user passes when they hold any of ``codes`` ("admin", "hr", "viewer").
    Admins pass every guard. Tokens minted without a ``roles`` claim are
    checked against the users table instead.
    """
    wanted = set(codes)

    def outer(fn):
        @wraps(fn)
        @jwt_required()
        def inner(*args, **kwargs):
            roles = set((get_jwt() or {}).get("roles") or [])
            if not roles:
                uid = get_jwt_identity()
                if uid is None:
                    return fail("Unauthorized", status=401)
                roles = _roles_from_db(uid)

            if ADMIN_ROLE in roles or not wanted or roles & wanted:
                return fn(*args, **kwargs)
            return fail("Forbidden", status=403, code="FORBIDDEN")
        return inner
    return outer
