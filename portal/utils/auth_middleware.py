from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, jsonify, request


def validate_json_data(required_fields):
    """Reject requests whose JSON body lacks any of `required_fields`"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                return jsonify({'error': 'Request body must be JSON'}), 400

            missing = [field for field in required_fields
                       if data.get(field) in (None, '')]
            if missing:
                return jsonify({
                    'error': f"Missing required fields: {', '.join(missing)}"
                }), 400

            return f(*args, **kwargs)
        return decorated_function
    return decorator


# News service: bearer tokens

def create_access_token(user_id):
    """Issue a signed token identifying `user_id`"""
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=current_app.config['JWT_EXPIRES_MINUTES']
    )
    payload = {'user_id': str(user_id), 'exp': expires}
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm='HS256')


def decode_access_token(token):
    """Return the user id carried by `token`; raises jwt.InvalidTokenError"""
    payload = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=['HS256'])
    if 'user_id' not in payload:
        raise jwt.InvalidTokenError('Token carries no user')
    return payload['user_id']


def bearer_token():
    """Token from an `Authorization: Bearer <token>` header, or None"""
    header = request.headers.get('Authorization', '')
    parts = header.split(' ', 1)
    if len(parts) != 2 or parts[0].lower() != 'bearer' or not parts[1].strip():
        return None
    return parts[1].strip()


def load_user_from_request(req, user_lookup):
    """Flask-Login request loader for bearer tokens.

    Records why authentication failed in `g.auth_error` so the
    unauthorized handler can report it.
    """
    token = bearer_token()
    if not token:
        g.auth_error = 'Unauthorized'
        return None

    try:
        user_id = decode_access_token(token)
    except jwt.InvalidTokenError:
        g.auth_error = 'Invalid token'
        return None

    user = user_lookup(user_id)
    if user is None:
        g.auth_error = 'User not found'
    return user


def unauthorized_response():
    return jsonify({'error': g.get('auth_error', 'Unauthorized')}), 401


# Family service: admin credentials in the request body

def request_credentials():
    """Email and password from a JSON body, a form, or (GET) the query string"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form if request.form else request.args
    return data.get('email'), data.get('password')


def check_admin_credentials(email, password):
    admin_email = current_app.config.get('ADMIN_EMAIL')
    admin_password = current_app.config.get('ADMIN_PASSWORD')
    if not admin_email or not admin_password:
        return False
    if not isinstance(email, str) or not isinstance(password, str):
        return False
    return email.strip().lower() == admin_email.strip().lower() and password == admin_password


def admin_required(f):
    """Reject requests that do not carry the configured admin credentials"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        email, password = request_credentials()
        if not email or not password:
            return jsonify({'error': 'Admin email and password are required'}), 401
        if not check_admin_credentials(email, password):
            return jsonify({'error': 'Invalid admin credentials'}), 401
        return f(*args, **kwargs)
    return decorated_function
