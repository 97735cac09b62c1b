"""Staff accounts: signup and credential check."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_portal.core.errors import AuthError, ConflictError, PersistenceError
from leave_portal.core.security import hash_password, verify_password
from leave_portal.models.user import User

logger = logging.getLogger(__name__)

USER_EXISTS = "user with this email already exists"


class AccountService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def signup(
        self, full_name: str, email: str, password: str, phone_number: str | None = None
    ) -> User:
        if await self.get_by_email(email):
            logger.warning("Signup attempt with existing email: %s", email)
            raise ConflictError(USER_EXISTS)

        user = User(
            full_name=full_name,
            email=email,
            hashed_password=hash_password(password),
            phone_number=phone_number,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same address
            await self.db.rollback()
            raise ConflictError(USER_EXISTS)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Failed to create user: %s", e)
            raise PersistenceError("failed to create user")

        logger.info("User registered: %s (%s)", user.full_name, user.email)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            logger.warning("Failed login for %s", email)
            raise AuthError("invalid email or password")
        logger.info("User logged in: %s", user.email)
        return user
