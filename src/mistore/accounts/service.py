"""User accounts — password hashing, admin bootstrap, login."""

import logging

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mistore.accounts.models import UserModel
from mistore.common.database import insert_if_absent
from mistore.common.exceptions import ValidationError
from mistore.common.models import utcnow

logger = logging.getLogger(__name__)

ROLES = frozenset({"admin", "user"})


def hash_password(password: str) -> str:
    """Salted bcrypt hash of a clear-text password."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


class AccountService:
    """User and administrator management."""

    async def get_by_username(
        self, session: AsyncSession, username: str
    ) -> UserModel | None:
        result = await session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        return result.scalar_one_or_none()

    async def create_user(
        self,
        session: AsyncSession,
        username: str,
        password: str,
        role: str = "user",
    ) -> UserModel:
        username = username.strip()
        if not username or not password:
            raise ValidationError("Username and password are required")
        if role not in ROLES:
            raise ValidationError(f"Unknown role: {role}")
        user = UserModel(
            username=username,
            password_hash=hash_password(password),
            role=role,
        )
        session.add(user)
        await session.flush()
        return user

    async def ensure_admin(
        self, session: AsyncSession, username: str, password: str
    ) -> tuple[UserModel, bool]:
        """Create the administrator unless the username is taken.

        Returns (user, created). Repeated or concurrent calls never duplicate
        the row and never fail on the unique username.
        """
        username = username.strip()
        if not username or not password:
            raise ValidationError("Username and password are required")
        created = await insert_if_absent(
            session,
            UserModel,
            {
                "username": username,
                "password_hash": hash_password(password),
                "role": "admin",
                "created_at": utcnow(),
            },
            conflict_columns=["username"],
        )
        user = await self.get_by_username(session, username)
        if not created and user.role != "admin":
            raise ValidationError(f"User {username} exists and is not an administrator")
        if created:
            logger.info("Admin user created: %s", username)
        else:
            logger.info("Admin user already exists: %s", username)
        return user, created

    async def authenticate(
        self, session: AsyncSession, username: str, password: str
    ) -> UserModel | None:
        """Return the user when the password matches, otherwise None."""
        user = await self.get_by_username(session, username.strip())
        if user is None:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user
