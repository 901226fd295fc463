"""
Shared helpers for the JSON route modules
"""

from datetime import datetime
from functools import wraps

from flask import request
from flask_login import current_user

from marketplace.buisness.core.actor import Actor
from marketplace.buisness.errors import Forbidden, InvalidRequest
from marketplace.utils.logging_sanitizer import sanitize_dict


def current_actor() -> Actor:
    return Actor.from_user(current_user)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequest("Request body must be a JSON object")
    return data


def loggable_body() -> dict:
    """Request body with credentials and contact details redacted"""
    return sanitize_dict(json_body()) or {}


def parse_datetime(value, name: str):
    if value in (None, ''):
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise InvalidRequest(f"{name} must be an ISO date")


def roles_required(*roles):
    """Reject the request with Forbidden unless the current user has one of ``roles``"""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            actor = current_actor()
            if actor.role not in {getattr(role, 'value', role) for role in roles}:
                raise Forbidden(f"Role '{actor.role}' may not access this resource")
            return view(*args, **kwargs)
        return wrapped
    return decorator


def approved_supplier_required(view):
    """Suppliers must be approved by an admin before they can manage products or orders"""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_approved_supplier:
            raise Forbidden("Supplier account is not approved")
        return view(*args, **kwargs)
    return wrapped
