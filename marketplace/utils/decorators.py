from functools import wraps
from flask import jsonify
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from marketplace.extensions import db
from marketplace.models.user import User


def _load_current_user():
    verify_jwt_in_request()
    user = db.session.get(User, get_jwt_identity())
    if not user or not user.is_active or user.is_deleted:
        return None
    return user


def role_required(*roles):
    """Decorator to check if user has required role"""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = _load_current_user()
            if user is None:
                return jsonify({'error': 'User not found or inactive'}), 403

            if user.role not in roles:
                return jsonify({'error': 'Insufficient permissions'}), 403

            # Pass user to route handler
            kwargs['current_user'] = user
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def login_required(fn):
    """Any active user, whatever the role"""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = _load_current_user()
        if user is None:
            return jsonify({'error': 'User not found or inactive'}), 403
        kwargs['current_user'] = user
        return fn(*args, **kwargs)
    return wrapper
