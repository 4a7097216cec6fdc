"""Authorization for the nodemeta web service.

Permissions are checked against a Bearer token before any response is
built. The admin token (``AUTH_TOKEN``) grants every permission; the optional
read token (``READ_TOKEN``) grants READ only. With no admin token configured
every permission is granted (development mode).
"""

import hmac
import logging
from dataclasses import dataclass
from functools import wraps
from urllib.parse import urlparse

from flask import current_app, jsonify, request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Permission:
    id: str
    description: str = ""


READ = Permission("read", "View metadata definitions and node metadata")
CONFIGURE_NODES = Permission("nodes.configure", "Change metadata on build nodes")
CONFIGURE_DEFINITIONS = Permission(
    "metadata.definitions.configure", "Configure preset metadata definitions"
)


def _bearer_token() -> str:
    """Extract bearer token from Authorization header, or empty string."""
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth[7:]
    return ""


def _matches(provided: str, configured: str) -> bool:
    return bool(provided) and hmac.compare_digest(
        provided.encode(), configured.encode()
    )


def has_permission(permission: Permission) -> bool:
    """Whether the current request holds ``permission``."""
    admin_token = current_app.config.get("AUTH_TOKEN", "")
    if not admin_token:
        return True

    token = _bearer_token()
    if _matches(token, admin_token):
        return True

    if permission == READ:
        read_token = current_app.config.get("READ_TOKEN", "")
        if not read_token:
            return True
        return _matches(token, read_token)
    return False


def require_permission(permission: Permission):
    """Decorator rejecting requests that lack ``permission``.

    Returns 401 when no credentials were sent and 403 when the token
    does not grant the permission.
    """

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if has_permission(permission):
                return f(*args, **kwargs)
            if not _bearer_token():
                return jsonify({"error": "Missing or invalid authorization"}), 401
            logger.warning(f"Permission '{permission.id}' denied for {request.path}")
            return jsonify({"error": f"Missing permission: {permission.id}"}), 403

        return decorated

    return decorator


def csrf_protect(f):
    """Decorator that validates Origin/Referer on state-changing requests.

    Rejects form posts whose Origin or Referer header does not match the
    server's own host. Bearer-authenticated requests are exempt
    (programmatic clients don't send Origin).
    """

    @wraps(f)
    def decorated(*args, **kwargs):
        if _bearer_token():
            return f(*args, **kwargs)

        origin = request.headers.get("Origin", "")
        referer = request.headers.get("Referer", "")

        if not origin and not referer:
            return "CSRF validation failed: missing Origin header", 403

        server_host = request.host
        if origin:
            parsed = urlparse(origin)
            request_host = parsed.netloc or parsed.path
        else:
            parsed = urlparse(referer)
            request_host = parsed.netloc

        if request_host != server_host:
            logger.warning(f"CSRF rejected: origin={request_host} server={server_host}")
            return "CSRF validation failed: origin mismatch", 403

        return f(*args, **kwargs)

    return decorated
