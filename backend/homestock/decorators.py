# Overview: Request decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request


def require_identity(f):
    """
    Require a caller identity and expose it as g.identity.

    The identity is an opaque string, verified upstream by the identity
    provider and forwarded in the configured header (default X-Identity).
    Routes pass g.identity explicitly into services; services never read g.

    Returns 401 if the header is missing or blank.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = current_app.config.get("IDENTITY_HEADER", "X-Identity")
        identity = (request.headers.get(header) or "").strip()

        if not identity:
            return jsonify({"error": "unauthenticated", "message": "Identity required"}), 401

        g.identity = identity
        return f(*args, **kwargs)

    return decorated_function
