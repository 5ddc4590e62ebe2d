import logging

from flask_jwt_extended import create_access_token, create_refresh_token

from marketplace.models.user import User
from marketplace.extensions import db
from marketplace.enums import UserRole
from marketplace.exceptions import ValidationError, InvalidCredentials, NotFound
from marketplace.utils.helpers import parse_enum

logger = logging.getLogger(__name__)

# Admin accounts are created from the CLI only
SELF_SERVICE_ROLES = {UserRole.CUSTOMER, UserRole.STUDIO}


class AuthService:
    @staticmethod
    def _ensure_unique(email: str, username: str):
        if User.query.filter_by(email=email).first():
            raise ValidationError("Email already exists")
        if User.query.filter_by(username=username).first():
            raise ValidationError("Username already exists")

    @staticmethod
    def register_user(email: str, username: str, password: str, role: str, **kwargs) -> User:
        role = parse_enum(UserRole, role, "role")
        if role not in SELF_SERVICE_ROLES:
            raise ValidationError("Role not allowed")
        AuthService._ensure_unique(email, username)

        user = User(
            email=email,
            username=username,
            role=role,
            full_name=kwargs.get("full_name"),
            phone=kwargs.get("phone"),
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        logger.info(f"Registered {role.value} account {username}")
        return user

    @staticmethod
    def create_admin(email: str, username: str, password: str) -> User:
        AuthService._ensure_unique(email, username)

        user = User(email=email, username=username, role=UserRole.ADMIN, is_verified=True)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        logger.info(f"Created admin account {username}")
        return user

    @staticmethod
    def login_user(username: str, password: str) -> dict:
        """Check the password and issue an access/refresh token pair"""
        user = User.query.filter_by(username=username).first()

        if not user or not user.check_password(password):
            raise InvalidCredentials()

        if not user.is_active or user.is_deleted:
            raise InvalidCredentials("Account is deactivated")

        return {
            "access_token": create_access_token(identity=user.id),
            "refresh_token": create_refresh_token(identity=user.id),
            "user": user.to_dict(),
        }

    @staticmethod
    def get_user_by_id(user_id: str) -> User:
        user = db.session.get(User, user_id)
        if not user or user.is_deleted:
            raise NotFound("User not found")
        return user
