# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for password hashing
and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Bearer tokens managed separately (see session_service.py)
- Each user has exactly one role
"""

import bcrypt
import re

from flask import current_app, has_app_context

from ..extensions import db
from ..models import User, Role
from ..errors import ValidationError, NotFoundError, ConflictError, AuthenticationError
from ..permissions import DEFAULT_ROLE_DESCRIPTIONS
from tablepos.time_utils import utcnow

DEFAULT_BCRYPT_ROUNDS = 12


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def _bcrypt_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS))
    return DEFAULT_BCRYPT_ROUNDS


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including a
    malformed stored hash).
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def get_role_by_name(role_name: str) -> Role:
    role = db.session.query(Role).filter_by(name=role_name).first()
    if not role:
        raise NotFoundError(f"Role {role_name} not found")
    return role


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.username.asc()).all()


def get_user(user_id: int) -> User:
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(username: str, password: str, role_name: str) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: blank username or weak password
        ConflictError: username already taken
        NotFoundError: role does not exist
    """
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required")

    if db.session.query(User.id).filter_by(username=username).first():
        raise ConflictError("Username already exists")

    role = get_role_by_name(role_name)

    user = User(
        username=username,
        password_hash=hash_password(password),
        role_id=role.id,
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("User %r created with role %s", username, role.name)
    return user


def delete_user(user_id: int, *, acting_user_id: int | None = None) -> None:
    user = get_user(user_id)
    if acting_user_id is not None and user.id == acting_user_id:
        raise ConflictError("Cannot delete your own account")
    db.session.delete(user)
    db.session.commit()


def change_password(user_id: int, new_password: str) -> User:
    user = get_user(user_id)
    user.password_hash = hash_password(new_password)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate user with username and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    if not username or not password:
        return None

    user = db.session.query(User).filter(
        User.username == username,
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def login(username: str, password: str) -> User:
    """authenticate() for the login route: raises instead of returning None."""
    user = authenticate(username, password)
    if not user:
        current_app.logger.warning("Failed login for %r", username)
        raise AuthenticationError("Invalid credentials")
    return user


def create_default_roles() -> int:
    """Create standard roles if they don't exist."""
    created = 0
    for name, desc in DEFAULT_ROLE_DESCRIPTIONS.items():
        existing = db.session.query(Role).filter_by(name=name).first()
        if not existing:
            db.session.add(Role(name=name, description=desc))
            created += 1

    db.session.commit()
    return created
