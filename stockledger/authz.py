"""Permission gate for ledger routes.

The ledger does not own users or roles. The host application registers a
checker callable that answers "may the current caller do X?"; without one,
every permission is denied.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Callable

from flask import Flask, current_app, request

from .utils.api_responses import APIResponse

logger = logging.getLogger(__name__)

INVENTORY_VIEW = "inventory.view"
_CHECKER_KEY = "stockledger.permission_checker"

PermissionChecker = Callable[[str], bool]


def register_permission_checker(app: Flask, checker: PermissionChecker | None) -> None:
    if checker is None:
        app.extensions.pop(_CHECKER_KEY, None)
        return
    app.extensions[_CHECKER_KEY] = checker


def has_permission(permission_name: str) -> bool:
    checker = current_app.extensions.get(_CHECKER_KEY)
    if checker is None:
        return False
    return bool(checker(permission_name))


def permission_required(permission_name: str):
    """Reject the request with 403 unless the registered checker grants ``permission_name``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if has_permission(permission_name):
                return f(*args, **kwargs)
            logger.warning("Permission denied: %s on %s", permission_name, request.path)
            return APIResponse.forbidden(f"Permission denied: {permission_name}")
        return decorated_function
    return decorator
