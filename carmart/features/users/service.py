"""
User domain service.
- register_user(user_id, username, role)
- get_user(user_id)
"""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, insert

from carmart.core.database import get_db_session, users as app_users
from carmart.core.errors import ConflictError, ValidationError
from carmart.features.subscriptions.service import create_default_subscription
from carmart.models.user import User, UserRole


def _row_to_user(row) -> User:
    return User(
        user_id=row.user_id,
        username=row.username,
        role=UserRole(row.role),
        created_at=row.created_at,
        display_name=row.display_name or User.normalized_display_name(row.username, None),
    )


def get_user(user_id: str) -> Optional[User]:
    with get_db_session() as session:
        row = session.execute(select(app_users).where(app_users.c.user_id == user_id)).first()
        if not row:
            return None
        return _row_to_user(row)


def register_user(
    user_id: str,
    username: str,
    role: str = UserRole.BUYER.value,
    display_name: Optional[str] = None,
) -> User:
    """
    Create a user and their implicit FREE subscription.

    Raises:
        ValidationError: unknown role or blank username
        ConflictError: user_id already registered
    """
    try:
        user_role = UserRole(role)
    except ValueError:
        raise ValidationError(f"Invalid role: {role!r}")
    if not username or not username.strip():
        raise ValidationError("username must not be blank")

    if get_user(user_id):
        raise ConflictError(f"User {user_id} already exists")

    username = username.strip()
    now = datetime.now(timezone.utc)
    display = User.normalized_display_name(username, display_name)
    with get_db_session() as session:
        session.execute(
            insert(app_users).values(
                user_id=user_id,
                username=username,
                role=user_role.value,
                display_name=display,
                created_at=now,
            )
        )

    create_default_subscription(user_id, now=now)

    return User(user_id=user_id, username=username, role=user_role, created_at=now, display_name=display)
