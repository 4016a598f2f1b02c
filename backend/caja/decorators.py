# Overview: Request decorators for API routes (HTTP Basic gate on admin operations).

from functools import wraps
from flask import request, jsonify

from .services import auth_service


def _unauthorized():
    response = jsonify({"error": "Authentication required"})
    response.status_code = 401
    response.headers["WWW-Authenticate"] = 'Basic realm="POS Admin"'
    return response


def require_basic_auth(f):
    """
    Require HTTP Basic credentials matching ADMIN_USERNAME / ADMIN_PASSWORD.

    Returns 401 with a WWW-Authenticate challenge when the header is
    missing or the credentials do not match.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth = request.authorization
        if auth is None or auth.type != "basic":
            return _unauthorized()
        if not auth_service.check_admin_credentials(auth.username, auth.password):
            return _unauthorized()
        return f(*args, **kwargs)

    return decorated_function

